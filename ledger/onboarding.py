"""Four-step onboarding wizard.

CURRENCY -> CYCLE_DAY -> INCOME -> ALLOCATION -> COMPLETE, one step at a
time. ``advance`` checks the guard of the current step and either moves on
or keeps the draft where it is with ``error`` set. ``go_back`` moves one
step back.
"""
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Optional, Tuple
from uuid import uuid4

from ledger.domain import COLORS, DEFAULT_BUDGET_LIMIT, Budget, Currency, IncomeStream
from ledger.functional import Either, Left, Right, parse_non_negative

MISSING_CYCLE_DAY = "Please define a cycle datum."
ZERO_INCOME = "Inflows cannot be zero."
OVER_ALLOCATED = "Allocations exceed your projected capital."
UNNAMED_ALLOCATION = "Every allocation needs a name."
DUPLICATE_ALLOCATION = "Allocation names must be unique."
NON_POSITIVE_ALLOCATION = "Allocations must be positive."


class OnboardingStep(IntEnum):
    CURRENCY = 1
    CYCLE_DAY = 2
    INCOME = 3
    ALLOCATION = 4
    COMPLETE = 5


def _seed_incomes() -> Tuple[IncomeStream, ...]:
    return (IncomeStream(id="1", source="Primary Salary", amount=5000.0),)


def _seed_budgets() -> Tuple[Budget, ...]:
    return (
        Budget(id="1", category="Rent & Living", limit=2000.0, spent=0.0, color=COLORS[0]),
        Budget(id="2", category="Lifestyle", limit=800.0, spent=0.0, color=COLORS[1]),
        Budget(id="3", category="Savings", limit=500.0, spent=0.0, color=COLORS[2]),
    )


@dataclass(frozen=True)
class OnboardingDraft:
    step: OnboardingStep = OnboardingStep.CURRENCY
    currency: Currency = Currency.USD
    payday_input: str = "1"
    incomes: Tuple[IncomeStream, ...] = _seed_incomes()
    budgets: Tuple[Budget, ...] = _seed_budgets()
    error: Optional[str] = None

    @property
    def total_income(self) -> float:
        return sum(i.amount for i in self.incomes)

    @property
    def total_budget(self) -> float:
        return sum(b.limit for b in self.budgets)

    @property
    def remaining(self) -> float:
        return self.total_income - self.total_budget


@dataclass(frozen=True)
class OnboardingResult:
    incomes: Tuple[IncomeStream, ...]
    budgets: Tuple[Budget, ...]
    currency: Currency
    payday: int


# --- guards

def check_cycle_day(draft: OnboardingDraft) -> Either[str, OnboardingDraft]:
    # presence only; the number itself is parsed on completion
    if not draft.payday_input:
        return Left(MISSING_CYCLE_DAY)
    return Right(draft)


def check_income(draft: OnboardingDraft) -> Either[str, OnboardingDraft]:
    if draft.total_income <= 0:
        return Left(ZERO_INCOME)
    return Right(draft)


def check_allocation(draft: OnboardingDraft) -> Either[str, OnboardingDraft]:
    names = [b.category.strip().lower() for b in draft.budgets]
    if any(not n for n in names):
        return Left(UNNAMED_ALLOCATION)
    if len(set(names)) != len(names):
        return Left(DUPLICATE_ALLOCATION)
    if any(b.limit <= 0 for b in draft.budgets):
        return Left(NON_POSITIVE_ALLOCATION)
    if draft.total_budget > draft.total_income:
        return Left(OVER_ALLOCATED)
    return Right(draft)


_GUARDS = {
    OnboardingStep.CURRENCY: Right,
    OnboardingStep.CYCLE_DAY: check_cycle_day,
    OnboardingStep.INCOME: check_income,
    OnboardingStep.ALLOCATION: check_allocation,
}


def advance(draft: OnboardingDraft) -> OnboardingDraft:
    if draft.step == OnboardingStep.COMPLETE:
        return draft
    draft = replace(draft, error=None)
    checked = _GUARDS[draft.step](draft)
    if checked.is_left():
        return replace(draft, error=checked.get_error())
    return replace(draft, step=OnboardingStep(draft.step + 1))


def go_back(draft: OnboardingDraft) -> OnboardingDraft:
    if draft.step in (OnboardingStep.CURRENCY, OnboardingStep.COMPLETE):
        return draft
    return replace(draft, step=OnboardingStep(draft.step - 1), error=None)


def parse_payday(raw: str) -> int:
    try:
        day = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return day if 1 <= day <= 31 else 1


def finalize(draft: OnboardingDraft) -> OnboardingResult:
    if draft.step != OnboardingStep.COMPLETE:
        raise ValueError(f"onboarding not complete (step {draft.step.name})")
    return OnboardingResult(
        incomes=draft.incomes,
        budgets=tuple(replace(b, category=b.category.strip(), spent=0.0) for b in draft.budgets),
        currency=draft.currency,
        payday=parse_payday(draft.payday_input),
    )


# --- row editing

def select_currency(draft: OnboardingDraft, currency: Currency) -> OnboardingDraft:
    return replace(draft, currency=currency)


def set_payday_input(draft: OnboardingDraft, raw: str) -> OnboardingDraft:
    return replace(draft, payday_input=raw)


def add_income(draft: OnboardingDraft) -> OnboardingDraft:
    stream = IncomeStream(id=str(uuid4()), source="", amount=0.0)
    return replace(draft, incomes=draft.incomes + (stream,))


def update_income(draft: OnboardingDraft, income_id: str, source: Optional[str] = None,
                  amount: Any = None) -> OnboardingDraft:
    incomes = tuple(
        replace(
            i,
            source=i.source if source is None else source,
            amount=i.amount if amount is None else parse_non_negative(amount),
        ) if i.id == income_id else i
        for i in draft.incomes
    )
    return replace(draft, incomes=incomes)


def remove_income(draft: OnboardingDraft, income_id: str) -> OnboardingDraft:
    return replace(draft, incomes=tuple(i for i in draft.incomes if i.id != income_id))


def add_budget(draft: OnboardingDraft) -> OnboardingDraft:
    row = Budget(
        id=str(uuid4()),
        category="",
        limit=DEFAULT_BUDGET_LIMIT,
        spent=0.0,
        color=COLORS[len(draft.budgets) % len(COLORS)],
    )
    return replace(draft, budgets=draft.budgets + (row,))


def update_budget_row(draft: OnboardingDraft, budget_id: str, category: Optional[str] = None,
                      limit: Any = None) -> OnboardingDraft:
    budgets = tuple(
        replace(
            b,
            category=b.category if category is None else category,
            limit=b.limit if limit is None else parse_non_negative(limit),
        ) if b.id == budget_id else b
        for b in draft.budgets
    )
    return replace(draft, budgets=budgets)


def remove_budget(draft: OnboardingDraft, budget_id: str) -> OnboardingDraft:
    return replace(draft, budgets=tuple(b for b in draft.budgets if b.id != budget_id))
