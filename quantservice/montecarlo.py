"""Monte Carlo price paths of a symbol and option values read from them."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

import numpy as np

from quantservice.datagroup import DataGroup

SECONDS_PER_YEAR = 60 * 60 * 24 * 252


class ContractType(enum.IntEnum):
    """Kinds of contract a symbol or a derivative on it can be."""

    ASTOCK = 0
    ETF = 1
    LOF = 2
    FUTURE = 3
    OPTION = 4
    EUROPEAN_OPTION = 5
    BINARY_OPTION = 6
    BARRIER_OPTION = 7
    ASIAN_OPTION = 8
    AMERICAN_OPTION = 9
    INDEX = 10


@dataclass
class SimulationResult:
    """Simulated paths, the mean final price and, where priced, option values.

    ``paths`` has one row per simulation and ``steps + 1`` columns, the
    first being the start price. ``call`` and ``put`` are None unless the
    derivative was priced with a positive call payoff.
    """

    paths: np.ndarray
    expected: float
    start_price: float
    mean: float
    sigma: float
    call: float | None = None
    put: float | None = None


def monte_carlo(
    group: DataGroup,
    symbol: str,
    start: float,
    times: int,
    steps: int,
    dt: float,
    freerate: float = 0.0,
    derivative: ContractType | int = ContractType.ASTOCK,
    strike: float = 0.0,
    rng: np.random.Generator | None = None,
) -> SimulationResult:
    """Simulate ``times`` geometric Brownian paths of ``steps`` steps each.

    The drift is the mean one-row log return of the close plus ``freerate``;
    the volatility is the standard deviation of the close. Paths start at the
    close of the first row whose ``datetime`` is at or after ``start``.
    ``dt`` is the step length in seconds, scaled by a 252-day trading year.
    European options pay ``max(0, p - strike)`` for a call and the reverse for
    a put; binary options pay 1 when in the money.
    """
    if not group.is_valid():
        raise ValueError("data group has no data")
    size = group.size(symbol)
    if size == 0:
        raise ValueError(f"no data for symbol {symbol!r}")
    if size < 2:
        raise ValueError("at least two rows are needed to estimate returns")
    if times <= 0:
        raise ValueError("times must be positive")
    if steps < 0:
        raise ValueError("steps must not be negative")

    derivative = ContractType(derivative)
    dt_years = dt / SECONDS_PER_YEAR

    returns = group.returns(symbol, 0)
    mean = float(np.nansum(returns[1:])) / (size - 1)
    sigma = float(group.sigma(symbol))

    stamps = group.column(symbol, "datetime")
    closes = group.column(symbol, "close")
    hits = np.flatnonzero(stamps >= start)
    if hits.size == 0:
        raise ValueError(f"no data at or after {start!r} for {symbol!r}")
    start_price = float(closes[hits[0]])

    generator = rng if rng is not None else np.random.default_rng()
    noise = generator.standard_normal((times, steps))

    drift = (mean + freerate) * dt_years
    shock = sigma * math.sqrt(dt_years)
    paths = np.empty((times, steps + 1))
    paths[:, 0] = start_price
    for step, column in enumerate(noise.T, start=1):
        paths[:, step] = paths[:, step - 1] * (1.0 + drift + shock * column)

    finals = paths[:, -1]
    result = SimulationResult(
        paths=paths,
        expected=float(finals.mean()),
        start_price=start_price,
        mean=mean,
        sigma=sigma,
    )

    call = put = 0.0
    if derivative is ContractType.EUROPEAN_OPTION:
        call = float(np.maximum(0.0, finals - strike).sum())
        put = float(np.maximum(0.0, strike - finals).sum())
    elif derivative is ContractType.BINARY_OPTION:
        call = float(np.count_nonzero(finals - strike > 0))
        put = float(np.count_nonzero(strike - finals > 0))

    if call > 0:
        discount = math.exp(-freerate * times * dt_years)
        result.call = discount * call / times
        result.put = discount * put / times
    return result