from datetime import datetime
from types import SimpleNamespace

from quantservice.recorder import QuoteRecorder, csv_header, format_quote_line


def _quote(**extra):
    values = dict(
        time=datetime(2024, 1, 2, 9, 30, 0),
        open=10.5,
        close=10.75,
        volume=100,
        turnover=1075.0,
        bid_prices=[10.7],
        ask_prices=[10.8],
        ask_volumes=[5],
        bid_volumes=[7],
    )
    values.update(extra)
    return SimpleNamespace(**values)


def test_header_columns():
    header = csv_header()
    assert header.startswith("datetime,open,close,volumn,turnover,bid1,ask1,ask_volumn1,bid_volumn1,")
    assert header.endswith("bid5,ask5,ask_volumn5,bid_volumn5,\n")
    assert header.count(",") == 25


def test_format_line_with_one_level():
    line = format_quote_line(_quote())
    assert line == "2024-01-02 09:30:00,10.5000,10.7500,100,1075,10.7000,10.8000,5,7\n"


def test_format_stops_at_first_empty_level():
    quote = _quote(
        bid_prices=[10.7, 0.0, 10.5],
        ask_prices=[10.8, 0.0, 10.9],
        ask_volumes=[5, 0, 3],
        bid_volumes=[7, 0, 2],
    )
    assert format_quote_line(quote) == format_quote_line(_quote())


def test_format_without_book():
    quote = _quote(bid_prices=[], ask_prices=[], ask_volumes=[], bid_volumes=[])
    fields = format_quote_line(quote).rstrip("\n").split(",")
    assert len(fields) == 5
    assert fields[1] == "10.5000"


def test_write_creates_file_with_header(tmp_path):
    quote = _quote()
    with QuoteRecorder(tmp_path / "stock") as recorder:
        assert recorder.write("600000", quote) is True
    content = (tmp_path / "stock" / "600000.csv").read_text(encoding="utf-8")
    assert content == csv_header() + format_quote_line(quote)


def test_reopen_appends_without_second_header(tmp_path):
    quote = _quote()
    with QuoteRecorder(tmp_path) as recorder:
        recorder.write("600000", quote)
    with QuoteRecorder(tmp_path) as recorder:
        recorder.write("600000", quote)
    lines = (tmp_path / "600000.csv").read_text(encoding="utf-8").splitlines()
    assert lines.count(csv_header().rstrip("\n")) == 1
    assert len(lines) == 3


def test_zero_symbol_is_ignored(tmp_path):
    with QuoteRecorder(tmp_path) as recorder:
        assert recorder.write("0", _quote()) is False
    assert list(tmp_path.iterdir()) == []


def test_flush_makes_data_visible(tmp_path):
    recorder = QuoteRecorder(tmp_path)
    quote = _quote()
    recorder.write("600000", quote)
    recorder.flush()
    content = (tmp_path / "600000.csv").read_text(encoding="utf-8")
    recorder.close()
    assert content.endswith(format_quote_line(quote))


def test_tenth_quote_is_flushed(tmp_path):
    recorder = QuoteRecorder(tmp_path)
    quote = _quote()
    for _ in range(10):
        recorder.write("600000", quote)
    lines = (tmp_path / "600000.csv").read_text(encoding="utf-8").splitlines()
    recorder.close()
    assert len(lines) == 11


def test_separate_files_per_symbol(tmp_path):
    with QuoteRecorder(tmp_path) as recorder:
        recorder.write("600000", _quote())
        recorder.write("000001", _quote(close=9.0))
    assert sorted(p.name for p in tmp_path.iterdir()) == ["000001.csv", "600000.csv"]