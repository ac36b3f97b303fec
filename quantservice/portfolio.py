"""Portfolios: held assets, symbol pools and their bookkeeping."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np


class ContractOperator(enum.IntFlag):
    """Trade operations; combined as bit flags."""

    HOLD = 0
    BUY = 1
    SELL = 2
    LONG = 4
    SHORT = 8


@dataclass
class Asset:
    """A held asset: share count and unit price."""

    hold: int = 0
    price: float = 0.0
    symbol: str = ""


@dataclass
class PortfolioInfo:
    """Holdings, capital, symbol pool and risk matrices of one portfolio."""

    holds: dict[str, Asset] = field(default_factory=dict)
    principal: float = 0.0
    pools: set[str] = field(default_factory=set)
    sigma: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    corr: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))


class PortfolioSubSystem:
    """Keeps portfolios by integer id, with a default one."""

    def __init__(self) -> None:
        self._portfolios: dict[int, PortfolioInfo] = {}
        self._default = 0
        self._position = 0.0

    @property
    def default(self) -> int:
        """Id of the default portfolio (0 when none was set)."""
        return self._default

    @property
    def position(self) -> float:
        """Overall position ratio."""
        return self._position

    def create_portfolio(self) -> int:
        """Create an empty portfolio and return its id.

        The first one gets id 1 and becomes the default; later ones get
        one more than the largest id in use.
        """
        if not self._portfolios:
            self._default = 1
            self._portfolios[1] = PortfolioInfo()
            return 1
        new_id = max(self._portfolios) + 1
        self._portfolios[new_id] = PortfolioInfo()
        return new_id

    def portfolio_ids(self) -> list[int]:
        """All portfolio ids in ascending order."""
        return sorted(self._portfolios)

    def has_portfolio(self, pid: int) -> bool:
        return pid in self._portfolios

    def get_portfolio(self, pid: int) -> PortfolioInfo:
        """The portfolio with this id, created empty if it does not exist."""
        return self._portfolios.setdefault(pid, PortfolioInfo())

    def erase_portfolio(self, pid: int) -> None:
        """Remove a portfolio; unknown ids are ignored."""
        self._portfolios.pop(pid, None)

    def set_default(self, pid: int) -> None:
        self._default = pid

    def add_portfolio(self, spec: Mapping[str, Any]) -> None:
        """Add the symbols of ``spec["pool"]`` to portfolio ``spec["id"]``."""
        info = self.get_portfolio(int(spec["id"]))
        info.pools.update(str(symbol) for symbol in spec["pool"])