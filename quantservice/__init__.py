"""Data groups, portfolios, stop losses, streaming features, risk metrics,
Monte Carlo pricing and quote recording for a quantitative trading service."""

__version__ = "0.1.0"