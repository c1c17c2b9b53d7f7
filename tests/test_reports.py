from ledger.domain import Budget, IncomeStream, LedgerState, Transaction
from ledger.reports import category_totals, dashboard_summary, spending_breakdown, transactions_frame


def sample_state():
    return LedgerState(
        is_onboarded=True,
        budgets=(
            Budget("b1", "Rent", 2000.0, 2000.0, "#007AFF"),
            Budget("b2", "Lifestyle", 800.0, 0.0, "#FF2D55"),
            Budget("b3", "Food", 1000.0, 350.0, "#34C759"),
        ),
        incomes=(IncomeStream("i1", "Salary", 5000.0), IncomeStream("i2", "Gig", 500.0)),
        transactions=(
            Transaction("t3", 150.0, "Food", "lunch", "3/8/2026", "$", "b3"),
            Transaction("t2", 200.0, "Food", "groceries", "3/7/2026", "$", "b3"),
            Transaction("t1", 2000.0, "Rent", "March", "3/1/2026", "$", "b1"),
        ),
    )


def test_spending_breakdown_skips_unspent_budgets():
    df = spending_breakdown(sample_state().budgets)
    assert list(df["category"]) == ["Rent", "Food"]
    assert list(df["value"]) == [2000, 350]
    assert list(df["color"]) == ["#007AFF", "#34C759"]


def test_spending_breakdown_empty():
    df = spending_breakdown(())
    assert df.empty
    assert list(df.columns) == ["category", "value", "color"]


def test_transactions_frame():
    df = transactions_frame(sample_state().transactions)
    assert len(df) == 3
    assert df["amount"].sum() == 2350
    assert transactions_frame(()).empty


def test_category_totals_match_budget_spent():
    state = sample_state()
    totals = category_totals(state.transactions)
    for b in state.budgets:
        assert totals.get(b.category, 0) == b.spent
    assert category_totals(()).empty


def test_dashboard_summary():
    summary = dashboard_summary(sample_state())
    assert summary == {"income": 5500, "spent": 2350, "allocated": 3800, "surplus": 3150}
