"""Apply the actions of one assistant reply to the ledger.

Actions run in order and each one stands alone: an action that fails its
checks is skipped and reported, while the actions before it stay applied.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional, Tuple

from ledger.assistant import ActionData, AssistantAction
from ledger.domain import LedgerState
from ledger.functional import Either, Left, Right
from ledger.transforms import resolve_create_budget, resolve_expense, transfer_budget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    type: str
    applied: bool
    detail: str = ""
    category: Optional[str] = None
    advice: Optional[str] = None


Handler = Callable[[LedgerState, ActionData, datetime], Either[str, LedgerState]]


def _log_expense(state: LedgerState, data: ActionData, now: datetime) -> Either[str, LedgerState]:
    if not data.amount or not data.category:
        return Left("LOG_EXPENSE needs amount and category")
    return resolve_expense(state, data.category, data.amount, data.item, now)


def _create_budget(state: LedgerState, data: ActionData, now: datetime) -> Either[str, LedgerState]:
    if not data.category or not data.limit:
        return Left("CREATE_BUDGET needs category and limit")
    return resolve_create_budget(state, data.category, data.limit, data.amount, data.item, now)


def _transfer(state: LedgerState, data: ActionData, now: datetime) -> Either[str, LedgerState]:
    if not data.from_category or not data.to_category or not data.amount:
        return Left("TRANSFER_BUDGET needs fromCategory, toCategory and amount")
    return transfer_budget(state, data.from_category, data.to_category, data.amount)


def _no_change(state: LedgerState, data: ActionData, now: datetime) -> Either[str, LedgerState]:
    return Right(state)


HANDLERS: Dict[str, Handler] = {
    "LOG_EXPENSE": _log_expense,
    "CREATE_BUDGET": _create_budget,
    "TRANSFER_BUDGET": _transfer,
    "REQUEST_BUDGET_CREATION": _no_change,
    "GIVE_ADVICE": _no_change,
    "NONE": _no_change,
}


def apply_action(state: LedgerState, action: AssistantAction,
                 now: Optional[datetime] = None) -> Tuple[LedgerState, ActionOutcome]:
    now = now or datetime.now()
    data = action.data or ActionData()
    result = HANDLERS[action.type](state, data, now)
    if result.is_left():
        logger.debug("skipped %s: %s", action.type, result.get_error())
        return state, ActionOutcome(
            type=action.type,
            applied=False,
            detail=result.get_error(),
            category=data.category,
        )
    return result.get_or_else(state), ActionOutcome(
        type=action.type,
        applied=True,
        category=data.category or data.to_category,
        advice=data.advice if action.type == "GIVE_ADVICE" else None,
    )


def apply_actions(state: LedgerState, actions: Iterable[AssistantAction],
                  now: Optional[datetime] = None) -> Tuple[LedgerState, Tuple[ActionOutcome, ...]]:
    outcomes = []
    for action in actions:
        state, outcome = apply_action(state, action, now)
        outcomes.append(outcome)
    return state, tuple(outcomes)
