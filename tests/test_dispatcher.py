from datetime import datetime

from ledger.assistant import ActionData, AssistantAction
from ledger.dispatcher import apply_action, apply_actions
from ledger.domain import Budget, LedgerState

NOW = datetime(2026, 10, 19, 9, 30)


def action(type, **data):
    return AssistantAction(type=type, data=ActionData(**data) if data else None)


def food_state(spent=0.0):
    return LedgerState(
        is_onboarded=True,
        budgets=(Budget("b1", "Food", 1000.0, spent, "#007AFF"),),
    )


def test_multi_expense_message():
    actions = [
        action("LOG_EXPENSE", amount=4500, category="Food", item="tangerine"),
        action("LOG_EXPENSE", amount=2000, category="food", item="chocolate"),
        action("REQUEST_BUDGET_CREATION", amount=5000, category="Personal"),
    ]
    state, outcomes = apply_actions(food_state(), actions, NOW)
    assert [b.category for b in state.budgets] == ["Food"]
    assert state.budgets[0].spent == 6500
    assert [t.description for t in state.transactions] == ["chocolate", "tangerine"]
    assert all(t.date == "10/19/2026" for t in state.transactions)
    assert [o.applied for o in outcomes] == [True, True, True]
    assert outcomes[2].category == "Personal"


def test_log_expense_auto_creates_budget():
    state, outcomes = apply_actions(LedgerState(), [action("LOG_EXPENSE", amount=4500, category="Food")], NOW)
    b = state.budgets[0]
    assert (b.category, b.limit, b.spent) == ("Food", 1000, 4500)
    assert len(state.transactions) == 1
    assert outcomes[0].applied


def test_missing_fields_are_skipped():
    actions = [
        action("LOG_EXPENSE", category="Food"),
        action("LOG_EXPENSE", amount=10),
        action("LOG_EXPENSE"),
        action("CREATE_BUDGET", category="Travel"),
        action("CREATE_BUDGET", limit=300),
        action("TRANSFER_BUDGET", fromCategory="Food", amount=10),
    ]
    state = food_state()
    new_state, outcomes = apply_actions(state, actions, NOW)
    assert new_state is state
    assert not any(o.applied for o in outcomes)
    assert "needs" in outcomes[0].detail


def test_partial_application_is_kept():
    actions = [
        action("LOG_EXPENSE", amount=100, category="Food"),
        action("LOG_EXPENSE", amount=-5, category="Food"),
        action("CREATE_BUDGET", category="Travel", limit=500, amount=120, item="train"),
    ]
    state, outcomes = apply_actions(food_state(), actions, NOW)
    assert [o.applied for o in outcomes] == [True, False, True]
    assert state.budgets[0].spent == 100
    travel = state.budgets[1]
    assert (travel.category, travel.limit, travel.spent) == ("Travel", 500, 120)
    assert [t.amount for t in state.transactions] == [120, 100]


def test_create_budget_for_existing_category():
    state, outcomes = apply_actions(food_state(), [action("CREATE_BUDGET", category="FOOD", limit=50)], NOW)
    assert len(state.budgets) == 1
    assert state.budgets[0].limit == 1000
    assert not outcomes[0].applied


def test_transfer_budget():
    state = LedgerState(budgets=(
        Budget("b1", "Food", 1000.0, 0.0, "#007AFF"),
        Budget("b2", "Savings", 500.0, 0.0, "#FF2D55"),
    ))
    state, outcomes = apply_actions(
        state, [action("TRANSFER_BUDGET", fromCategory="Food", toCategory="savings", amount=250)], NOW,
    )
    assert [b.limit for b in state.budgets] == [750, 750]
    assert outcomes[0].applied
    assert outcomes[0].category == "savings"


def test_advice_and_none_leave_state_alone():
    state = food_state()
    new_state, outcome = apply_action(state, action("GIVE_ADVICE", advice="Cook at home."), NOW)
    assert new_state is state
    assert outcome.applied
    assert outcome.advice == "Cook at home."

    new_state, outcome = apply_action(state, AssistantAction(type="NONE"), NOW)
    assert new_state is state
    assert outcome.advice is None
