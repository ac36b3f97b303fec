# quantservice

Components for a quantitative trading service, used as a plain Python
library. The only runtime dependency is numpy.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `quantservice.datagroup`

`DataGroup(symbols, data)` takes a mapping of symbol to frame, where a frame
maps column names (`"close"`, `"datetime"`, ...) to equal-length sequences.
Symbols without data are left out; frames are kept in symbol order. A cursor
starts at row 0 and `move_next()` advances it.

- `get(symbol, column, index=0)`: value at the cursor plus `index`.
- `column(symbol, column)`, `size(symbol)`, `symbols()`, `is_valid()`.
- `returns(symbol, nday)`: log returns of the close over `nday` rows, NaN
  for the first `nday` entries.
- `sigma(symbol, nday=21)`: sample standard deviation of the whole close
  column.
- `correlation(symbols)`: correlation matrix of close prices.
- `zscore(column, index=0)`: cross-sectional scores at the cursor row.

### `quantservice.portfolio`

`Asset`, `PortfolioInfo`, the `ContractOperator` flags and
`PortfolioSubSystem`, which keeps portfolios by integer id. The first
portfolio created gets id 1 and becomes the default.

### `quantservice.stoploss`

Stop-loss rules `SLPercentage`, `StepPercentage` (trailing) and
`ATRStopLoss` (keeps symbols but never triggers), all behind the `StopLoss`
interface, plus `StopLossType` and `StopLossInfo`. `StopLossManager`
registers configuration entries, applies every rule to a new close with
`on_quote`, and builds the messages to send with `notifications`, grouped
by e-mail address.

```python
from quantservice.stoploss import StopLossManager

manager = StopLossManager()
manager.register({
    "email": "trader@example.com",
    "type": 1,
    "target": [{"symbol": "sh.600000", "price": 10.0, "percent": 0.05}],
})
sells = manager.on_quote("sh.600000", 9.0)          # ["sh.600000"]
messages = manager.notifications(sells, buy=False, now="2024-01-02 10:00:00")
# {"trader@example.com": "2024-01-02 10:00:00: sell sh.600000"}
```

### `quantservice.features`

Streaming indicators fed one `Quote` at a time: `ATRFeature`, `EMAFeature`
and `VWAPFeature`. `create_feature(name, params)` builds one by name
(`"ATR"`, `"EMA"`, `"VWAP"`). `FeaturePipeline.load_config(name, pool,
features)` gives each symbol in the pool its own feature instances, and
`process(quote)` returns `(FeatureType, value)` pairs, or None for an
unwatched symbol.

```python
from quantservice.features import Quote, create_feature

ema = create_feature("EMA", {"N": 12})
ema.deal(Quote(symbol="sh.600000", time=0, close=10.0))
```

### `quantservice.risk_metric`

`RiskMetric(confidence, freerate, portfolio, group)` computes holding
weights, the weighted mean 21-day log return, volatilities and correlation;
`parametric_var(gap)` gives a parametric value at risk per holding.

### `quantservice.montecarlo`

`monte_carlo(group, symbol, start, times, steps, dt, ...)` simulates
geometric Brownian paths and returns a `SimulationResult`. European and
binary options (`ContractType.EUROPEAN_OPTION`, `ContractType.BINARY_OPTION`)
are valued against `strike`; pass `rng` for reproducible runs.

### `quantservice.recorder`

`QuoteRecorder(root)` appends quotes to `<root>/<symbol>.csv`, writing the
`csv_header()` line into new files and flushing every tenth quote per file.
`format_quote_line(quote)` renders a single line. It is a context manager.

### `quantservice.strategy`

`StrategySubSystem` keeps strategy names and passes the features of each
`AgentStrategyInfo` (a list of `FeatureInfo`) to a `FeaturePipeline`.

### `quantservice.transfer`

`Transfer(work)` runs `work(source, sink)` in a named thread until it
returns False or `stop()` is called; `join()` re-raises any error from the
work function.

## What this package does not do

There is no command-line program, HTTP server or network message bus, no
connection to exchanges or brokers, and no order execution. Portfolios and
strategies live in memory only; nothing is stored except the CSV files a
`QuoteRecorder` writes. `StopLossManager.notifications` only builds the
message texts; sending e-mail is left to the caller.