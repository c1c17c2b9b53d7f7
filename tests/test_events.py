from datetime import datetime

from ledger.domain import Budget
from ledger.events import EXPENSE_LOGGED, Event, EventBus, budget_payload, check_budget_handler, default_bus


def make_event(payload):
    return Event(name=EXPENSE_LOGGED, ts=datetime.now().isoformat(), payload=payload)


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event, payload):
        seen.append(event.name)
        return {"ok": True}

    bus.subscribe(EXPENSE_LOGGED, handler)
    assert bus.publish(EXPENSE_LOGGED, {"amount": 5}) == [{"ok": True}]
    assert seen == [EXPENSE_LOGGED]

    bus.unsubscribe(EXPENSE_LOGGED, handler)
    assert bus.publish(EXPENSE_LOGGED, {"amount": 5}) == []


def test_publish_without_subscribers():
    assert EventBus().publish("UNKNOWN", {}) == []


def test_check_budget_handler_levels():
    under = budget_payload(Budget("b1", "Food", 1000.0, 200.0, ""), 200.0)
    close = budget_payload(Budget("b1", "Food", 1000.0, 900.0, ""), 100.0)
    over = budget_payload(Budget("b1", "Food", 1000.0, 1200.0, ""), 300.0)

    assert check_budget_handler(make_event(under), under) == {}
    assert check_budget_handler(make_event(close), close)["level"] == "close"
    result = check_budget_handler(make_event(over), over)
    assert result["level"] == "over"
    assert "1,200 / 1,000" in result["alert"]


def test_check_budget_handler_is_pure():
    payload = budget_payload(Budget("b1", "Food", 100.0, 150.0, ""), 50.0)
    copy = dict(payload)
    first = check_budget_handler(make_event(payload), payload)
    second = check_budget_handler(make_event(payload), payload)
    assert first == second
    assert payload == copy


def test_default_bus_raises_alerts():
    payload = budget_payload(Budget("b1", "Fun", 100.0, 101.0, ""), 101.0)
    results = default_bus().publish(EXPENSE_LOGGED, payload)
    assert results[0]["category"] == "Fun"
