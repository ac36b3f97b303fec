"""Streaming price features and the pipeline that feeds quotes through them."""

from __future__ import annotations

import enum
import logging
import math
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """One market quote of a symbol at a point in time (seconds)."""

    symbol: str
    time: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: int = 0


class FeatureType(enum.IntEnum):
    """Kinds of feature a pipeline can produce."""

    ATR = 0
    EMA = 1
    VWAP = 2


class Feature(ABC):
    """A stateful feature computed one quote at a time."""

    name: str = ""
    type: FeatureType

    @property
    def desc(self) -> str:
        return self.name

    @abstractmethod
    def deal(self, quote: Quote) -> float:
        """Take the next quote and return the current value (NaN while warming up)."""


def _param(params: Mapping[str, Any] | None, key: str) -> Any:
    if params is None:
        return None
    return params.get(key)


class ATRFeature(Feature):
    """Average true range over the last ``N`` true ranges."""

    name = "ATR"
    type = FeatureType.ATR
    DEFAULT_PERIOD = 14

    def __init__(self, params: Mapping[str, Any] | None = None) -> None:
        period = _param(params, "N")
        if period is None:
            logger.warning("ATRFeature: no period N given, using %d", self.DEFAULT_PERIOD)
            period = self.DEFAULT_PERIOD
        period = int(period)
        if period <= 0:
            raise ValueError("ATR period must be positive")
        self.period = period
        self._prev_close: float | None = None
        self._ranges: deque[float] = deque(maxlen=period)

    def deal(self, quote: Quote) -> float:
        prev = self._prev_close
        self._prev_close = quote.close
        if prev is None:
            return math.nan
        true_range = max(
            quote.high - quote.low,
            abs(prev - quote.high),
            abs(prev - quote.low),
        )
        self._ranges.append(true_range)
        if len(self._ranges) < self.period:
            return math.nan
        return sum(self._ranges) / self.period


class EMAFeature(Feature):
    """Exponential moving average of the close with ``alpha = 2 / (N + 1)``.

    Without ``N`` the smoothing factor is 1, so the average follows the close.
    """

    name = "EMA"
    type = FeatureType.EMA

    def __init__(self, params: Mapping[str, Any] | None = None) -> None:
        self.period = 12
        self.alpha = 1.0
        period = _param(params, "N")
        if period is not None:
            self.period = int(period)
            if self.period <= 0:
                raise ValueError("EMA period must be positive")
            self.alpha = 2.0 / (self.period + 1)
        self._prev: float | None = None

    def deal(self, quote: Quote) -> float:
        if self._prev is None:
            self._prev = float(quote.close)
        else:
            self._prev = self.alpha * quote.close + (1 - self.alpha) * self._prev
        return self._prev


class VWAPFeature(Feature):
    """Volume-weighted typical price over a trailing window.

    ``N`` is the window length in minutes; the default window is 60 seconds.
    """

    name = "VWAP"
    type = FeatureType.VWAP

    def __init__(self, params: Mapping[str, Any] | None = None) -> None:
        self.window = 60
        minutes = _param(params, "N")
        if minutes is not None:
            self.window = 60 * int(minutes)
        self._prices: deque[tuple[float, float, int]] = deque()

    def deal(self, quote: Quote) -> float:
        price = (quote.high + quote.low + quote.close) / 3
        self._prices.append((quote.time, price, quote.volume))
        latest = quote.time
        while self._prices and latest - self._prices[0][0] > self.window:
            self._prices.popleft()
        total_volume = sum(volume for _, _, volume in self._prices)
        if total_volume == 0:
            return math.nan
        weighted = sum(p * volume for _, p, volume in self._prices)
        return weighted / total_volume


_FACTORY: dict[str, type[Feature]] = {
    cls.name: cls for cls in (ATRFeature, EMAFeature, VWAPFeature)
}


def create_feature(name: str, params: Mapping[str, Any] | None = None) -> Feature:
    """Build a feature by its name (``"ATR"``, ``"EMA"`` or ``"VWAP"``)."""
    try:
        cls = _FACTORY[name]
    except KeyError:
        raise ValueError(f"unknown feature type: {name!r}") from None
    return cls(params or {})


def _unpack(spec: Any) -> tuple[str, Mapping[str, Any]]:
    """Feature type and parameters of a spec: an object with ``type`` and
    ``params`` attributes, a mapping with those keys, or a pair."""
    if isinstance(spec, Mapping):
        return str(spec["type"]), spec.get("params") or {}
    if hasattr(spec, "type") and hasattr(spec, "params"):
        return str(spec.type), spec.params or {}
    kind, params = spec
    return str(kind), params or {}


class FeaturePipeline:
    """Routes quotes of watched symbols through their configured features."""

    def __init__(self) -> None:
        self._tasks: dict[str, set[str]] = {}
        self._pipelines: dict[str, list[Feature]] = {}
        self._lock = threading.Lock()

    @property
    def tasks(self) -> dict[str, set[str]]:
        """Strategy name to the symbols it watches."""
        return {name: set(symbols) for name, symbols in self._tasks.items()}

    def symbols(self) -> list[str]:
        """All watched symbols, sorted."""
        return sorted(self._pipelines)

    def load_config(self, name: str, pool: Iterable[str], features: Iterable[Any]) -> None:
        """Register strategy ``name`` watching ``pool`` with the given features.

        Each symbol gets its own instance of every feature. Features of an
        unknown type are skipped with a warning.
        """
        symbols = {str(symbol) for symbol in pool}
        specs = [_unpack(spec) for spec in features]
        with self._lock:
            self._tasks[name] = symbols
            for kind, params in specs:
                try:
                    built = {symbol: create_feature(kind, params) for symbol in sorted(symbols)}
                except ValueError:
                    logger.warning("%s is not created", kind)
                    continue
                for symbol, feature in built.items():
                    self._pipelines.setdefault(symbol, []).append(feature)

    def process(self, quote: Quote) -> list[tuple[FeatureType, float]] | None:
        """Feed a quote to its symbol's features.

        Returns the feature types and values in configuration order, or None
        when the symbol is not watched.
        """
        with self._lock:
            features = self._pipelines.get(quote.symbol)
            if features is None:
                return None
            features = list(features)
        return [(feature.type, feature.deal(quote)) for feature in features]