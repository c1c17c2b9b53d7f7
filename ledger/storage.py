"""Snapshot persistence.

The whole ledger is written as one JSON object under a fixed storage key
(the file name). A missing, unreadable or malformed file loads as a fresh
state that still needs onboarding.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ledger import config
from ledger.domain import (
    Budget,
    ChatMessage,
    Currency,
    IncomeStream,
    LedgerState,
    Transaction,
)
from ledger.onboarding import parse_payday

logger = logging.getLogger(__name__)


def _budget_from(d: Dict[str, Any]) -> Budget:
    return Budget(
        id=str(d["id"]),
        category=str(d["category"]),
        limit=float(d["limit"]),
        spent=float(d.get("spent", 0)),
        color=str(d.get("color", "")),
    )


def _income_from(d: Dict[str, Any]) -> IncomeStream:
    return IncomeStream(id=str(d["id"]), source=str(d.get("source", "")), amount=float(d["amount"]))


def _message_from(d: Dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=str(d["id"]),
        role=str(d["role"]),
        text=str(d["text"]),
        timestamp=int(d.get("timestamp", 0)),
    )


def _transaction_from(d: Dict[str, Any]) -> Transaction:
    return Transaction(
        id=str(d["id"]),
        amount=float(d["amount"]),
        category=str(d["category"]),
        description=str(d.get("description", "")),
        date=str(d.get("date", "")),
        currency=str(d.get("currency", Currency.USD.value)),
        budget_id=d.get("budgetId"),
    )


def state_from_dict(data: Dict[str, Any]) -> LedgerState:
    """Build a state from a decoded snapshot. Raises on malformed records."""
    if not isinstance(data, dict):
        raise ValueError("snapshot is not an object")
    last_reset = data.get("lastResetMonth")
    return LedgerState(
        is_onboarded=data.get("isOnboarded") is True,
        budgets=tuple(_budget_from(b) for b in data.get("budgets") or []),
        incomes=tuple(_income_from(i) for i in data.get("incomes") or []),
        messages=tuple(_message_from(m) for m in data.get("messages") or []),
        transactions=tuple(_transaction_from(t) for t in data.get("transactions") or []),
        currency=Currency(data.get("selectedCurrency") or Currency.USD.value),
        payday=parse_payday(data.get("payday")),
        last_reset_month=-1 if last_reset is None else int(last_reset),
    )


def state_to_dict(state: LedgerState) -> Dict[str, Any]:
    def _tx(t: Transaction) -> Dict[str, Any]:
        row = {
            "id": t.id,
            "amount": t.amount,
            "category": t.category,
            "description": t.description,
            "date": t.date,
            "currency": t.currency,
        }
        if t.budget_id is not None:
            row["budgetId"] = t.budget_id
        return row

    return {
        "isOnboarded": state.is_onboarded,
        "budgets": [
            {"id": b.id, "category": b.category, "limit": b.limit, "spent": b.spent, "color": b.color}
            for b in state.budgets
        ],
        "incomes": [{"id": i.id, "source": i.source, "amount": i.amount} for i in state.incomes],
        "messages": [
            {"id": m.id, "role": m.role, "text": m.text, "timestamp": m.timestamp}
            for m in state.messages
        ],
        "transactions": [_tx(t) for t in state.transactions],
        "selectedCurrency": state.currency.value,
        "payday": state.payday,
        "lastResetMonth": state.last_reset_month,
    }


def load_state(path: Optional[Path] = None) -> LedgerState:
    target = Path(path or config.STORAGE_PATH)
    if not target.exists():
        return LedgerState()
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
        return state_from_dict(data)
    except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
        logger.warning("discarding unreadable snapshot %s: %s", target, e)
        return LedgerState()


def save_state(state: LedgerState, path: Optional[Path] = None) -> None:
    """Write the snapshot to a sibling temp file, then swap it into place.

    A failed write leaves the previous snapshot untouched.
    """
    target = Path(path or config.STORAGE_PATH)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    try:
        with tmp.open('w', encoding='utf-8') as handle:
            json.dump(state_to_dict(state), handle, indent=2, ensure_ascii=False)
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("snapshot written to %s", target)
