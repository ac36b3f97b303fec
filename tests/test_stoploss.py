from datetime import datetime

import pytest

from quantservice.stoploss import (
    ATRStopLoss,
    SLPercentage,
    StepPercentage,
    StopLossInfo,
    StopLossManager,
    StopLossType,
)


def _percent_entry(email="alice@example.com", symbol="600000", price=100.0, percent=0.1):
    return {
        "email": email,
        "type": int(StopLossType.PERCENTAGE),
        "target": [{"symbol": symbol, "price": price, "percent": percent}],
    }


def test_percentage_triggers_below_floor():
    rule = SLPercentage()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    assert rule.check({"A": 89.0}) == ["A"]
    assert rule.check({"A": 91.0}) == []


def test_percentage_ignores_unknown_symbols():
    rule = SLPercentage()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    assert rule.check({"B": 1.0}) == []


def test_percentage_remove_and_update():
    rule = SLPercentage()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    rule.remove(["A", "missing"])
    assert rule.check({"A": 1.0}) == []
    rule.update("A", StopLossInfo(price=50.0, percent=0.5))
    assert rule.check({"A": 30.0}) == []
    assert rule.check({"A": 20.0}) == ["A"]


def test_step_trails_highest_close():
    rule = StepPercentage()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    assert rule.check({"A": 95.0}) == []
    assert rule.check({"A": 120.0}) == []
    # floor is now 120 - 10
    assert rule.check({"A": 111.0}) == []
    assert rule.check({"A": 109.0}) == ["A"]


def test_step_remove():
    rule = StepPercentage()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    rule.remove(["A"])
    assert rule.check({"A": 0.0}) == []


def test_atr_never_sells():
    rule = ATRStopLoss()
    rule.add("A", StopLossInfo(price=100.0, percent=0.1))
    assert rule.check({"A": 0.0}) == []


def test_get_or_create_kinds_and_reuse():
    manager = StopLossManager()
    assert isinstance(manager.get_or_create(StopLossType.PERCENTAGE), SLPercentage)
    assert isinstance(manager.get_or_create(StopLossType.STEP), StepPercentage)
    assert isinstance(manager.get_or_create(StopLossType.ATR), ATRStopLoss)
    assert isinstance(manager.get_or_create(StopLossType.FIX), SLPercentage)
    first = manager.get_or_create(int(StopLossType.PERCENTAGE))
    assert manager.get_or_create(StopLossType.PERCENTAGE) is first


def test_get_or_create_rejects_unknown_kind():
    with pytest.raises(ValueError):
        StopLossManager().get_or_create(99)


def test_switch():
    manager = StopLossManager()
    assert manager.switch("percent") is None
    rule = manager.get_or_create(StopLossType.PERCENTAGE)
    assert manager.switch("percent") is rule
    assert manager.switch("unknown") is rule
    assert manager.switch("atr") is None


def test_register_and_quote_trigger_once():
    manager = StopLossManager()
    manager.register(_percent_entry(symbol="600000", price=100.0, percent=0.1))
    assert manager.on_quote("600000", 95.0) == []
    assert manager.on_quote("600000", 80.0) == ["600000"]
    assert manager.on_quote("600000", 80.0) == []


def test_unregister_stops_watching():
    manager = StopLossManager()
    entry = _percent_entry(symbol="600000")
    manager.register(entry)
    manager.unregister(entry)
    assert manager.on_quote("600000", 1.0) == []


def test_notifications_message_format():
    manager = StopLossManager()
    manager.register(_percent_entry(email="alice@example.com", symbol="AAA"))
    manager.register(_percent_entry(email="alice@example.com", symbol="BBB"))
    now = datetime(2024, 1, 2, 3, 4, 5)
    messages = manager.notifications(["AAA", "BBB"], False, now)
    assert messages == {"alice@example.com": "2024-01-02 03:04:05: sell AAA,BBB"}


def test_notifications_group_by_address_and_skip_unknown():
    manager = StopLossManager()
    manager.register(_percent_entry(email="alice@example.com", symbol="AAA"))
    manager.register(_percent_entry(email="bob@example.com", symbol="BBB"))
    messages = manager.notifications(["AAA", "BBB", "CCC"], True, "T")
    assert set(messages) == {"alice@example.com", "bob@example.com"}
    assert messages["alice@example.com"] == "T: buy AAA"
    assert messages["bob@example.com"] == "T: buy BBB"


def test_first_address_is_kept():
    manager = StopLossManager()
    manager.register(_percent_entry(email="alice@example.com", symbol="AAA"))
    manager.register(_percent_entry(email="bob@example.com", symbol="AAA"))
    messages = manager.notifications(["AAA"], False, "T")
    assert list(messages) == ["alice@example.com"]
    # the rule itself still takes the newer settings
    assert manager.on_quote("AAA", 1.0) == ["AAA"]