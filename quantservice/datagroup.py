"""A group of per-symbol price frames read together through a moving cursor."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np

Frame = Mapping[str, Sequence[Any]]


def _frame_length(frame: Frame) -> int:
    """Number of rows in a frame: the length of its columns."""
    for values in frame.values():
        return len(values)
    return 0


class DataGroup:
    """Frames for a set of symbols, read from a shared row offset.

    Each frame maps a column name (``"close"``, ``"datetime"``, ...) to a
    sequence of values; all columns of a frame have the same length.
    Symbols without data are left out. Frames are kept in symbol order.
    """

    def __init__(self, symbols: Iterable[str], data: Mapping[str, Frame]) -> None:
        self._offset = 0
        chosen = {symbol: data[symbol] for symbol in symbols if symbol in data}
        self._frames: dict[str, Frame] = dict(sorted(chosen.items()))

    @property
    def offset(self) -> int:
        """The current row offset of the cursor."""
        return self._offset

    def is_valid(self) -> bool:
        """True when at least one symbol has data."""
        return bool(self._frames)

    def move_next(self) -> bool:
        """Advance the cursor one row; False once past the end of the first frame."""
        self._offset += 1
        first = next(iter(self._frames.values()), None)
        if first is None:
            return False
        return self._offset < _frame_length(first)

    def symbols(self) -> list[str]:
        """All symbols of the group, in order."""
        return list(self._frames)

    def _frame(self, symbol: str) -> Frame:
        try:
            return self._frames[symbol]
        except KeyError:
            raise KeyError(f"no data for symbol {symbol!r}") from None

    def get(self, symbol: str, column: str, index: int = 0) -> Any:
        """Value of a column at the cursor offset plus ``index`` (never below row 0)."""
        pos = max(0, self._offset + index)
        return self._frame(symbol)[column][pos]

    def column(self, symbol: str, column: str) -> np.ndarray:
        """A whole column of a symbol's frame."""
        return np.asarray(self._frame(symbol)[column])

    def size(self, symbol: str) -> int:
        """Row count of a symbol's frame, 0 if the symbol is not in the group."""
        frame = self._frames.get(symbol)
        return 0 if frame is None else _frame_length(frame)

    def _closes(self, symbol: str) -> np.ndarray:
        return np.asarray(self._frame(symbol)["close"], dtype=float)

    def correlation(self, symbols: Sequence[str]) -> np.ndarray:
        """Correlation matrix of the close prices of ``symbols``, ones on the diagonal."""
        count = len(symbols)
        if count == 0:
            return np.zeros((0, 0))
        closes = [self._closes(symbol) for symbol in symbols]
        lengths = {len(c) for c in closes}
        if len(lengths) != 1:
            raise ValueError("close series must have the same length")
        with np.errstate(invalid="ignore", divide="ignore"):
            matrix = np.atleast_2d(np.corrcoef(np.vstack(closes)))
        matrix = np.array(matrix, dtype=float)
        np.fill_diagonal(matrix, 1.0)
        return matrix

    def returns(self, symbol: str, nday: int) -> np.ndarray:
        """Log returns of close over ``nday`` rows (1 if not positive).

        The first ``nday`` entries have no earlier price and are NaN. An
        unknown symbol gives an empty array.
        """
        if symbol not in self._frames:
            return np.array([], dtype=float)
        period = nday if nday > 0 else 1
        close = self._closes(symbol)
        result = np.full(len(close), np.nan)
        if len(close) > period:
            result[period:] = np.log(close[period:] / close[:-period])
        return result

    def sigma(self, symbol: str, nday: int = 21) -> float:
        """Sample standard deviation of the whole close column.

        ``nday`` is accepted for callers that pass a window; the deviation
        always covers every row. An unknown symbol gives 0.
        """
        if symbol not in self._frames:
            return 0.0
        close = self._closes(symbol)
        if len(close) < 2:
            return math.nan
        return float(np.std(close, ddof=1))

    def zscore(self, column: str, index: int = 0) -> np.ndarray:
        """Cross-sectional scores of ``column`` at the cursor row over all symbols.

        Values are centred on their mean and divided by the root of the sum
        of squared deviations.
        """
        if not self._frames:
            raise ValueError("data group has no frames")
        pos = max(0, self._offset + index)
        values = np.array(
            [float(frame[column][pos]) for frame in self._frames.values()]
        )
        centred = values - values.mean()
        spread = math.sqrt(float(np.sum(centred * centred)))
        with np.errstate(invalid="ignore", divide="ignore"):
            return centred / spread