"""Appends incoming quotes to one CSV file per symbol."""

from __future__ import annotations

import sys
from datetime import datetime
from itertools import chain, islice, repeat
from pathlib import Path
from typing import IO, Any

LEVELS = 5
FLUSH_EVERY = 10
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_EPSILON = sys.float_info.epsilon


def csv_header() -> str:
    """The header line written at the top of a new quote file."""
    columns = ["datetime", "open", "close", "volumn", "turnover"]
    for level in range(1, LEVELS + 1):
        columns += [
            f"bid{level}",
            f"ask{level}",
            f"ask_volumn{level}",
            f"bid_volumn{level}",
        ]
    return ",".join(columns) + ",\n"


def _number(value: Any) -> str:
    """Shortest text of a number, without a trailing ``.0`` on whole floats."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def _levels(quote: Any, name: str) -> list[Any]:
    values = getattr(quote, name, None) or ()
    return list(islice(chain(values, repeat(0)), LEVELS))


def _timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime(TIME_FORMAT)
    return datetime.fromtimestamp(value).strftime(TIME_FORMAT)


def format_quote_line(quote: Any) -> str:
    """One CSV line for a quote.

    The quote needs ``time`` (a datetime or seconds since the epoch),
    ``open``, ``close`` and ``volume``; ``turnover`` and the order book
    sequences ``bid_prices``, ``ask_prices``, ``bid_volumes`` and
    ``ask_volumes`` are optional. Book levels are written until the first
    one with neither a bid nor an ask price.
    """
    fields = [
        _timestamp(quote.time),
        f"{quote.open:.4f}",
        f"{quote.close:.4f}",
        _number(quote.volume),
        _number(getattr(quote, "turnover", 0)),
    ]
    levels = zip(
        _levels(quote, "bid_prices"),
        _levels(quote, "ask_prices"),
        _levels(quote, "ask_volumes"),
        _levels(quote, "bid_volumes"),
    )
    for bid, ask, ask_volume, bid_volume in levels:
        if not (bid > _EPSILON or ask > _EPSILON):
            break
        fields += [f"{bid:.4f}", f"{ask:.4f}", _number(ask_volume), _number(bid_volume)]
    return ",".join(fields) + "\n"


class QuoteRecorder:
    """Writes quotes under ``root`` as ``<symbol>.csv``, one file per symbol.

    New files start with the header; existing files are appended to. Each
    file is flushed after every tenth quote written to it.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._files: dict[str, IO[str]] = {}
        self._counts: dict[str, int] = {}

    def _open(self, symbol: str) -> IO[str]:
        stream = self._files.get(symbol)
        if stream is None:
            self.root.mkdir(parents=True, exist_ok=True)
            path = self.root / f"{symbol}.csv"
            is_new = not path.exists()
            stream = path.open("a", encoding="utf-8", newline="")
            if is_new:
                stream.write(csv_header())
            self._files[symbol] = stream
        return stream

    def write(self, symbol: str, quote: Any) -> bool:
        """Append a quote to the symbol's file; False for an empty or ``"0"`` symbol."""
        if not symbol or symbol == "0":
            return False
        stream = self._open(symbol)
        stream.write(format_quote_line(quote))
        count = self._counts.get(symbol, 0) + 1
        self._counts[symbol] = count
        if count % FLUSH_EVERY == 0:
            stream.flush()
        return True

    def flush(self) -> None:
        """Flush every open file."""
        for stream in self._files.values():
            stream.flush()

    def close(self) -> None:
        """Flush and close every open file."""
        for stream in self._files.values():
            stream.flush()
            stream.close()
        self._files.clear()

    def __enter__(self) -> QuoteRecorder:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()