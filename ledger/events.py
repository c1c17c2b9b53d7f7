from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from ledger.domain import Budget
from ledger.transforms import budget_status

__all__ = ['EXPENSE_LOGGED', 'Event', 'EventBus', 'check_budget_handler', 'budget_payload', 'default_bus']


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in self._subscribers[name]]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


EXPENSE_LOGGED = "EXPENSE_LOGGED"


def budget_payload(b: Budget, amount: float) -> dict:
    return {"budget_id": b.id, "category": b.category, "amount": amount, "spent": b.spent, "limit": b.limit}


def check_budget_handler(event: Event, payload: dict) -> dict:
    b = Budget(
        id=payload.get("budget_id", ""),
        category=payload.get("category", ""),
        limit=payload.get("limit", 0),
        spent=payload.get("spent", 0),
        color="",
    )
    status = budget_status(b)
    if status.is_over:
        return {
            "alert": f"{b.category} is over its limit: {b.spent:,.0f} / {b.limit:,.0f}",
            "level": "over",
            "category": b.category,
        }
    if status.is_close:
        return {
            "alert": f"{b.category} is at {status.percentage:.0f}% of its limit",
            "level": "close",
            "category": b.category,
        }
    return {}


def default_bus() -> EventBus:
    bus = EventBus()
    bus.subscribe(EXPENSE_LOGGED, check_budget_handler)
    return bus
