"""Stop-loss rules and the manager that applies them to incoming quotes."""

from __future__ import annotations

import enum
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class StopLossType(enum.IntEnum):
    """Kinds of stop-loss rule, as stored in configuration entries."""

    FIX = 0
    PERCENTAGE = 1
    MOVE = 2
    ATR = 3
    SAR = 4
    KEY = 5
    STEP = 6
    TIME = 7


_NAMES: dict[str, StopLossType] = {
    "fix": StopLossType.FIX,
    "percent": StopLossType.PERCENTAGE,
    "move": StopLossType.MOVE,
    "atr": StopLossType.ATR,
    "sar": StopLossType.SAR,
    "key": StopLossType.KEY,
    "step": StopLossType.STEP,
    "time": StopLossType.TIME,
}


@dataclass
class StopLossInfo:
    """Reference price of a holding and the fraction of it allowed to be lost."""

    price: float = 0.0
    percent: float = 0.0


class StopLoss(ABC):
    """A thread-safe rule that decides which symbols must be sold."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @abstractmethod
    def check(self, closes: Mapping[str, float]) -> list[str]:
        """Symbols among ``closes`` (symbol to close price) that must be sold."""

    @abstractmethod
    def add(self, symbol: str, info: StopLossInfo) -> None:
        """Start watching ``symbol``."""

    @abstractmethod
    def remove(self, symbols: Iterable[str]) -> None:
        """Stop watching ``symbols``; unknown ones are ignored."""

    @abstractmethod
    def update(self, symbol: str, info: StopLossInfo) -> None:
        """Replace the settings of ``symbol``."""


class SLPercentage(StopLoss):
    """Sell once the close falls below the reference price by a fixed fraction."""

    def __init__(self) -> None:
        super().__init__()
        self._limits: dict[str, tuple[float, float]] = {}

    def check(self, closes: Mapping[str, float]) -> list[str]:
        with self._lock:
            sells = []
            for symbol, close in closes.items():
                limit = self._limits.get(symbol)
                if limit is None:
                    continue
                price, percent = limit
                if close < price * (1 - percent):
                    sells.append(symbol)
            return sells

    def add(self, symbol: str, info: StopLossInfo) -> None:
        with self._lock:
            self._limits[symbol] = (info.price, info.percent)

    def remove(self, symbols: Iterable[str]) -> None:
        with self._lock:
            for symbol in symbols:
                self._limits.pop(symbol, None)

    def update(self, symbol: str, info: StopLossInfo) -> None:
        self.add(symbol, info)


@dataclass
class _StepState:
    org_price: float
    lower: float
    percent: float


class StepPercentage(StopLoss):
    """Trailing stop: the floor rises with the highest close seen.

    A symbol is sold when its close drops below that highest close by the
    fraction of the original price.
    """

    def __init__(self) -> None:
        super().__init__()
        self._states: dict[str, _StepState] = {}

    def check(self, closes: Mapping[str, float]) -> list[str]:
        with self._lock:
            sells = []
            for symbol, close in closes.items():
                state = self._states.get(symbol)
                if state is None:
                    continue
                if close > state.lower:
                    state.lower = close
                step = state.org_price * state.percent
                if close < state.lower - step:
                    sells.append(symbol)
            return sells

    def add(self, symbol: str, info: StopLossInfo) -> None:
        with self._lock:
            self._states[symbol] = _StepState(info.price, info.price, info.percent)

    def remove(self, symbols: Iterable[str]) -> None:
        with self._lock:
            for symbol in symbols:
                self._states.pop(symbol, None)

    def update(self, symbol: str, info: StopLossInfo) -> None:
        self.add(symbol, info)


class ATRStopLoss(StopLoss):
    """ATR-based rule; it keeps its symbols but never asks for a sale."""

    def __init__(self) -> None:
        super().__init__()
        self._watched: dict[str, StopLossInfo] = {}

    def check(self, closes: Mapping[str, float]) -> list[str]:
        return []

    def add(self, symbol: str, info: StopLossInfo) -> None:
        with self._lock:
            self._watched[symbol] = info

    def remove(self, symbols: Iterable[str]) -> None:
        with self._lock:
            for symbol in symbols:
                self._watched.pop(symbol, None)

    def update(self, symbol: str, info: StopLossInfo) -> None:
        self.add(symbol, info)


class StopLossManager:
    """Holds one rule per kind and the e-mail address notified for each symbol."""

    def __init__(self) -> None:
        self._rules: dict[StopLossType, StopLoss] = {}
        self._mails: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_or_create(self, kind: StopLossType | int) -> StopLoss:
        """The rule of this kind, created on first use."""
        kind = StopLossType(kind)
        rule = self._rules.get(kind)
        if rule is None:
            if kind is StopLossType.STEP:
                rule = StepPercentage()
            elif kind is StopLossType.ATR:
                rule = ATRStopLoss()
            else:
                rule = SLPercentage()
            self._rules[kind] = rule
        return rule

    def switch(self, name: str) -> StopLoss | None:
        """The existing rule named ``name``.

        Unknown names and ``"percent"`` give the percentage rule, if one was
        created; other kinds are not supported and give None.
        """
        kind = _NAMES.get(name)
        if kind is None or kind is StopLossType.PERCENTAGE:
            return self._rules.get(StopLossType.PERCENTAGE)
        logger.warning("not implemented stop loss: %s", name)
        return None

    def register(self, entry: Mapping[str, Any]) -> None:
        """Watch every target of a configuration entry.

        ``entry`` holds ``email``, ``type`` and ``target``, a list of
        ``{"symbol", "price"}`` items that also carry ``percent`` for the
        percentage kind. A symbol already tied to another address keeps it.
        """
        email = str(entry["email"])
        kind = StopLossType(int(entry["type"]))
        rule = self.get_or_create(kind)
        for target in entry["target"]:
            info = StopLossInfo(price=float(target["price"]))
            if kind is StopLossType.PERCENTAGE:
                info.percent = float(target["percent"])
            symbol = str(target["symbol"])
            rule.add(symbol, info)
            with self._lock:
                current = self._mails.get(symbol)
                if current is not None and current != email:
                    logger.warning(
                        "%s has email %s but current is %s", symbol, current, email
                    )
                    continue
                self._mails[symbol] = email

    def unregister(self, entry: Mapping[str, Any]) -> None:
        """Stop watching the targets of a configuration entry."""
        rule = self.get_or_create(int(entry["type"]))
        rule.remove([str(target["symbol"]) for target in entry["target"]])

    def on_quote(self, symbol: str, close: float) -> list[str]:
        """Apply every rule to a new close; triggered symbols are dropped and returned."""
        triggered: list[str] = []
        for kind in sorted(self._rules):
            rule = self._rules[kind]
            sells = rule.check({symbol: close})
            if sells:
                rule.remove(sells)
                triggered.extend(sells)
        return triggered

    def notifications(
        self, symbols: Iterable[str], buy: bool, now: datetime | str
    ) -> dict[str, str]:
        """Messages to send, keyed by e-mail address.

        Symbols sharing an address go into one message of the form
        ``"<time>: <buy|sell> <sym1>,<sym2>"``. Symbols with no address are
        skipped with a warning.
        """
        stamp = now.strftime(TIME_FORMAT) if isinstance(now, datetime) else str(now)
        operation = "buy" if buy else "sell"
        grouped: dict[str, list[str]] = {}
        with self._lock:
            for symbol in symbols:
                email = self._mails.get(symbol)
                if email is None:
                    logger.warning("%s has no email address configured", symbol)
                    continue
                grouped.setdefault(email, []).append(symbol)
        return {
            email: f"{stamp}: {operation} {','.join(grouped[email])}"
            for email in sorted(grouped)
        }