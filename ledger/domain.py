from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Currency(Enum):
    USD = "$"
    NGN = "₦"
    EUR = "€"
    GBP = "£"
    JPY = "¥"
    INR = "₹"


COLORS = (
    "#007AFF",
    "#FF2D55",
    "#34C759",
    "#FFCC00",
    "#5856D6",
    "#AF52DE",
)

DEFAULT_BUDGET_LIMIT = 1000.0
WELCOME_MESSAGE = "Account structure verified. Active."


@dataclass(frozen=True)
class Budget:
    id: str
    category: str    # display name, unique case-insensitively
    limit: float
    spent: float
    color: str


@dataclass(frozen=True)
class IncomeStream:
    id: str
    source: str
    amount: float


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    category: str
    description: str
    date: str        # display string, e.g. "10/19/2026"
    currency: str    # currency symbol at the time of logging
    budget_id: Optional[str] = None  # None on records saved before budgets were linked by id


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str        # "user" or "model"
    text: str
    timestamp: int   # epoch millis


@dataclass(frozen=True)
class LedgerState:
    is_onboarded: bool = False
    budgets: Tuple[Budget, ...] = ()
    incomes: Tuple[IncomeStream, ...] = ()
    messages: Tuple[ChatMessage, ...] = ()
    transactions: Tuple[Transaction, ...] = ()  # newest first
    currency: Currency = Currency.USD
    payday: int = 1
    last_reset_month: int = -1  # year * 12 + zero-based month


@dataclass(frozen=True)
class BudgetStatus:
    percentage: float
    remaining: float
    is_over: bool
    is_close: bool
