[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quantservice"
version = "0.1.0"
description = "Building blocks for a quantitative trading service: data groups, portfolios, stop losses, streaming features, risk metrics, Monte Carlo pricing and quote recording."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["quant", "trading", "portfolio", "stop-loss", "monte-carlo", "value-at-risk", "vwap", "ema", "atr"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["quantservice"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
