"""Value-at-risk figures for a portfolio over a data group."""

from __future__ import annotations

import math
from statistics import NormalDist

import numpy as np

from quantservice.datagroup import DataGroup
from quantservice.portfolio import PortfolioInfo

RETURN_DAYS = 21


class RiskMetric:
    """Weights, mean return, volatilities and correlation of a portfolio's holdings.

    Weights are each holding's value over the total value. The mean is the
    weighted average of each symbol's 21-day log return.
    """

    def __init__(
        self,
        confidence: float,
        freerate: float,
        portfolio: PortfolioInfo,
        group: DataGroup,
    ) -> None:
        if not portfolio.holds:
            raise ValueError("portfolio has no holdings")
        self.confidence = confidence
        self.freerate = freerate
        self.mean = 0.0
        self.weights = np.zeros(0)
        self.sigmas: list[float] = []
        self.correlation = np.zeros((0, 0))

        assets = list(portfolio.holds.values())
        total = sum(asset.hold * asset.price for asset in assets)
        if total == 0:
            return

        self.weights = np.array([asset.hold * asset.price / total for asset in assets])
        symbols = [asset.symbol for asset in assets]
        self.correlation = group.correlation(symbols)

        for weight, symbol in zip(self.weights, symbols):
            returns = group.returns(symbol, RETURN_DAYS)
            finite = returns[np.isfinite(returns)]
            if finite.size:
                self.mean += float(weight) * float(finite.mean())
            self.sigmas.append(group.sigma(symbol, RETURN_DAYS))

    def parametric_var(self, gap: int) -> list[float]:
        """Parametric VaR of each holding over ``gap`` periods at the confidence level."""
        factor = NormalDist(0.0, 1.0).inv_cdf(self.confidence)
        root = math.sqrt(gap)
        return [self.mean + factor * sigma * root for sigma in self.sigmas]