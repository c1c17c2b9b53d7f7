"""Pure state transitions for budgets, transactions, incomes and chat.

Every function takes the current ``LedgerState`` and returns the next one.
Invalid input never raises: the caller gets the state back unchanged.
"""
import logging
from dataclasses import replace
from datetime import datetime
from functools import reduce
from typing import Any, Optional
from uuid import uuid4

from ledger.domain import (
    COLORS,
    DEFAULT_BUDGET_LIMIT,
    WELCOME_MESSAGE,
    Budget,
    BudgetStatus,
    ChatMessage,
    Currency,
    IncomeStream,
    LedgerState,
    Transaction,
)
from ledger.functional import (
    Either,
    Left,
    Right,
    belongs_to,
    parse_amount,
    parse_non_negative,
    safe_budget,
    safe_budget_by_id,
    safe_transaction,
)
from ledger.onboarding import OnboardingResult

logger = logging.getLogger(__name__)

CLOSE_TO_LIMIT_PCT = 85


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now()


def date_label(now: datetime) -> str:
    return f"{now.month}/{now.day}/{now.year}"


def cycle_marker(now: datetime) -> int:
    return now.year * 12 + (now.month - 1)


def next_color(budgets) -> str:
    return COLORS[len(budgets) % len(COLORS)]


def _new_transaction(state: LedgerState, budget: Budget, amount: float,
                     description: str, now: datetime) -> Transaction:
    return Transaction(
        id=str(uuid4()),
        amount=amount,
        category=budget.category,
        description=description,
        date=date_label(now),
        currency=state.currency.value,
        budget_id=budget.id,
    )


def _charge(state: LedgerState, budget: Budget, amount: float,
            description: str, now: datetime) -> LedgerState:
    budgets = tuple(
        replace(b, spent=b.spent + amount) if b.id == budget.id else b
        for b in state.budgets
    )
    tx = _new_transaction(state, budget, amount, description, now)
    return replace(state, budgets=budgets, transactions=(tx,) + state.transactions)


def _add_budget(state: LedgerState, category: str, limit: float, spent: float) -> Budget:
    return Budget(
        id=str(uuid4()),
        category=category,
        limit=limit,
        spent=spent,
        color=next_color(state.budgets),
    )


# --- dashboard edits

def log_expense(state: LedgerState, budget_id: str, amount: Any,
                now: Optional[datetime] = None) -> LedgerState:
    parsed = parse_amount(amount)
    found = safe_budget_by_id(state.budgets, budget_id)
    if parsed.is_none() or found.is_none():
        logger.debug("ignored manual log %r on budget %s", amount, budget_id)
        return state
    return _charge(state, found.get_or_else(None), parsed.get_or_else(0.0), "Manual Log", _now(now))


def update_budget(state: LedgerState, budget_id: str, new_limit: Any,
                  new_category: Optional[str]) -> LedgerState:
    limit = parse_amount(new_limit)
    category = (new_category or "").strip()
    found = safe_budget_by_id(state.budgets, budget_id)
    if limit.is_none() or not category or found.is_none():
        logger.debug("ignored budget update for %s", budget_id)
        return state
    clash = safe_budget(state.budgets, category)
    if clash.is_some() and clash.get_or_else(None).id != budget_id:
        logger.debug("category %r already taken", category)
        return state

    old = found.get_or_else(None)
    budgets = tuple(
        replace(b, limit=limit.get_or_else(0.0), category=category) if b.id == budget_id else b
        for b in state.budgets
    )
    # linked transactions follow the rename so a later delete still cascades
    transactions = tuple(
        replace(t, category=category, budget_id=budget_id) if belongs_to(t, old) else t
        for t in state.transactions
    )
    return replace(state, budgets=budgets, transactions=transactions)


def delete_budget(state: LedgerState, budget_id: str) -> LedgerState:
    found = safe_budget_by_id(state.budgets, budget_id)
    if found.is_none():
        return state
    budget = found.get_or_else(None)
    return replace(
        state,
        budgets=tuple(b for b in state.budgets if b.id != budget_id),
        transactions=tuple(t for t in state.transactions if not belongs_to(t, budget)),
    )


def delete_transaction(state: LedgerState, tx_id: str) -> LedgerState:
    found = safe_transaction(state.transactions, tx_id)
    if found.is_none():
        return state
    tx = found.get_or_else(None)
    budgets = tuple(
        replace(b, spent=max(0.0, b.spent - tx.amount)) if belongs_to(tx, b) else b
        for b in state.budgets
    )
    return replace(
        state,
        budgets=budgets,
        transactions=tuple(t for t in state.transactions if t.id != tx_id),
    )


def edit_transaction(state: LedgerState, tx_id: str, new_amount: Any,
                     new_description: Optional[str]) -> LedgerState:
    parsed = parse_amount(new_amount)
    found = safe_transaction(state.transactions, tx_id)
    if parsed.is_none() or not new_description or found.is_none():
        logger.debug("ignored edit of transaction %s", tx_id)
        return state
    old = found.get_or_else(None)
    amount = parsed.get_or_else(0.0)
    diff = amount - old.amount
    budgets = tuple(
        replace(b, spent=max(0.0, b.spent + diff)) if belongs_to(old, b) else b
        for b in state.budgets
    )
    transactions = tuple(
        replace(t, amount=amount, description=new_description) if t.id == tx_id else t
        for t in state.transactions
    )
    return replace(state, budgets=budgets, transactions=transactions)


# --- assistant-driven edits

def resolve_expense(state: LedgerState, category: Optional[str], amount: Any,
                    item: Optional[str] = None,
                    now: Optional[datetime] = None) -> Either[str, LedgerState]:
    parsed = parse_amount(amount)
    if parsed.is_none():
        return Left(f"invalid amount {amount!r}")
    name = (category or "").strip()
    if not name:
        return Left("missing category")

    now = _now(now)
    value = parsed.get_or_else(0.0)
    description = item or "Expense"
    found = safe_budget(state.budgets, name)
    if found.is_some():
        return Right(_charge(state, found.get_or_else(None), value, description, now))

    budget = _add_budget(state, name, DEFAULT_BUDGET_LIMIT, value)
    tx = _new_transaction(state, budget, value, description, now)
    return Right(replace(
        state,
        budgets=state.budgets + (budget,),
        transactions=(tx,) + state.transactions,
    ))


def resolve_expense_action(state: LedgerState, category: Optional[str], amount: Any,
                           item: Optional[str] = None,
                           now: Optional[datetime] = None) -> LedgerState:
    return resolve_expense(state, category, amount, item, now).get_or_else(state)


def resolve_create_budget(state: LedgerState, category: Optional[str], limit: Any,
                          initial_amount: Any = None, item: Optional[str] = None,
                          now: Optional[datetime] = None) -> Either[str, LedgerState]:
    parsed_limit = parse_amount(limit)
    if parsed_limit.is_none():
        return Left(f"invalid limit {limit!r}")
    name = (category or "").strip()
    if not name:
        return Left("missing category")

    initial = parse_amount(initial_amount).get_or_else(0.0)
    existing = safe_budget(state.budgets, name)
    if existing.is_some():
        if initial > 0:
            # the budget is there already; the confirmed expense still lands on it
            return Right(_charge(state, existing.get_or_else(None), initial,
                                 item or "Expense", _now(now)))
        return Left(f"budget {name!r} already exists")

    budget = _add_budget(state, name, parsed_limit.get_or_else(0.0), initial)
    state = replace(state, budgets=state.budgets + (budget,))
    if initial > 0:
        tx = _new_transaction(state, budget, initial, item or "Expense", _now(now))
        state = replace(state, transactions=(tx,) + state.transactions)
    return Right(state)


def resolve_create_budget_action(state: LedgerState, category: Optional[str], limit: Any,
                                 initial_amount: Any = None, item: Optional[str] = None,
                                 now: Optional[datetime] = None) -> LedgerState:
    return resolve_create_budget(state, category, limit, initial_amount, item, now).get_or_else(state)


def transfer_budget(state: LedgerState, from_category: Optional[str],
                    to_category: Optional[str], amount: Any) -> Either[str, LedgerState]:
    parsed = parse_amount(amount)
    if parsed.is_none():
        return Left(f"invalid amount {amount!r}")
    source = safe_budget(state.budgets, from_category)
    target = safe_budget(state.budgets, to_category)
    if source.is_none() or target.is_none():
        return Left(f"unknown budget in transfer {from_category!r} -> {to_category!r}")
    src, dst = source.get_or_else(None), target.get_or_else(None)
    if src.id == dst.id:
        return Left("transfer within the same budget")
    value = parsed.get_or_else(0.0)
    if src.limit - value <= 0:
        return Left(f"{src.category} cannot give up {value}")

    def _shift(b: Budget) -> Budget:
        if b.id == src.id:
            return replace(b, limit=b.limit - value)
        if b.id == dst.id:
            return replace(b, limit=b.limit + value)
        return b

    return Right(replace(state, budgets=tuple(map(_shift, state.budgets))))


# --- onboarding and settings

def complete_onboarding(state: LedgerState, result: OnboardingResult,
                        now: Optional[datetime] = None) -> LedgerState:
    now = _now(now)
    welcome = ChatMessage(
        id="init",
        role="model",
        text=WELCOME_MESSAGE,
        timestamp=int(now.timestamp() * 1000),
    )
    return replace(
        state,
        is_onboarded=True,
        incomes=tuple(result.incomes),
        budgets=tuple(result.budgets),
        currency=result.currency,
        payday=result.payday,
        messages=(welcome,),
        last_reset_month=cycle_marker(now),
    )


def set_currency(state: LedgerState, currency: Currency) -> LedgerState:
    return replace(state, currency=currency)


def set_payday(state: LedgerState, raw: Any) -> LedgerState:
    try:
        day = int(str(raw).strip())
    except (TypeError, ValueError):
        return state
    if not 1 <= day <= 31:
        return state
    return replace(state, payday=day)


def add_income(state: LedgerState, source: str = "", amount: Any = 0) -> LedgerState:
    stream = IncomeStream(id=str(uuid4()), source=source, amount=parse_non_negative(amount))
    return replace(state, incomes=state.incomes + (stream,))


def update_income(state: LedgerState, income_id: str, source: Optional[str] = None,
                  amount: Any = None) -> LedgerState:
    def _edit(i: IncomeStream) -> IncomeStream:
        if i.id != income_id:
            return i
        return replace(
            i,
            source=i.source if source is None else source,
            amount=i.amount if amount is None else parse_non_negative(amount),
        )

    return replace(state, incomes=tuple(map(_edit, state.incomes)))


def remove_income(state: LedgerState, income_id: str) -> LedgerState:
    return replace(state, incomes=tuple(i for i in state.incomes if i.id != income_id))


def append_message(state: LedgerState, role: str, text: str,
                   now: Optional[datetime] = None) -> LedgerState:
    msg = ChatMessage(
        id=str(uuid4()),
        role=role,
        text=text,
        timestamp=int(_now(now).timestamp() * 1000),
    )
    return replace(state, messages=state.messages + (msg,))


# --- derived values

def total_income(state: LedgerState) -> float:
    return reduce(lambda acc, i: acc + i.amount, state.incomes, 0.0)


def total_spent(state: LedgerState) -> float:
    return reduce(lambda acc, b: acc + b.spent, state.budgets, 0.0)


def total_allocated(state: LedgerState) -> float:
    return reduce(lambda acc, b: acc + b.limit, state.budgets, 0.0)


def surplus(state: LedgerState) -> float:
    return total_income(state) - total_spent(state)


def budget_status(b: Budget) -> BudgetStatus:
    percentage = min(b.spent / b.limit * 100, 100.0) if b.limit > 0 else 100.0
    remaining = b.limit - b.spent
    is_over = remaining < 0
    return BudgetStatus(
        percentage=percentage,
        remaining=remaining,
        is_over=is_over,
        is_close=not is_over and percentage > CLOSE_TO_LIMIT_PCT,
    )
