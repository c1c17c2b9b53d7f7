"""Aggregate spending views for the dashboard."""
from typing import Dict, Iterable

import pandas as pd

from ledger.domain import Budget, LedgerState, Transaction
from ledger.transforms import surplus, total_allocated, total_income, total_spent

TRANSACTION_COLUMNS = ["id", "date", "category", "description", "amount", "currency"]


def transactions_frame(trans: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "date": t.date,
            "category": t.category,
            "description": t.description,
            "amount": t.amount,
            "currency": t.currency,
        }
        for t in trans
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def spending_breakdown(budgets: Iterable[Budget]) -> pd.DataFrame:
    """One row per budget with money spent, in budget order (donut chart data)."""
    rows = [{"category": b.category, "value": b.spent, "color": b.color} for b in budgets if b.spent > 0]
    return pd.DataFrame(rows, columns=["category", "value", "color"])


def category_totals(trans: Iterable[Transaction]) -> pd.Series:
    df = transactions_frame(trans)
    if df.empty:
        return pd.Series(dtype=float, name="amount")
    return df.groupby("category")["amount"].sum().sort_values(ascending=False)


def dashboard_summary(state: LedgerState) -> Dict[str, float]:
    return {
        "income": total_income(state),
        "spent": total_spent(state),
        "allocated": total_allocated(state),
        "surplus": surplus(state),
    }
