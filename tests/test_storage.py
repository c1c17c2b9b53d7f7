import json

import pytest

from ledger import storage
from ledger.domain import Budget, ChatMessage, Currency, IncomeStream, LedgerState, Transaction
from ledger.storage import load_state, save_state, state_from_dict, state_to_dict


def sample_state():
    return LedgerState(
        is_onboarded=True,
        budgets=(Budget("b1", "Food", 1000.0, 45.0, "#007AFF"),),
        incomes=(IncomeStream("i1", "Salary", 5000.0),),
        messages=(ChatMessage("init", "model", "Account structure verified. Active.", 1700000000000),),
        transactions=(Transaction("t1", 45.0, "Food", "apple", "3/7/2026", "₦", budget_id="b1"),),
        currency=Currency.NGN,
        payday=25,
        last_reset_month=24314,
    )


def test_missing_file_needs_onboarding(tmp_path):
    state = load_state(tmp_path / "absent.json")
    assert state == LedgerState()
    assert not state.is_onboarded


def test_save_and_load(tmp_path):
    target = tmp_path / "nested" / "snapshot.json"
    save_state(sample_state(), target)
    assert load_state(target) == sample_state()


def test_snapshot_layout(tmp_path):
    target = tmp_path / "snapshot.json"
    save_state(sample_state(), target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert set(data) == {
        "isOnboarded", "budgets", "incomes", "messages", "transactions",
        "selectedCurrency", "payday", "lastResetMonth",
    }
    assert data["selectedCurrency"] == "₦"
    assert data["transactions"][0]["budgetId"] == "b1"


def test_corrupt_file_resets(tmp_path):
    target = tmp_path / "snapshot.json"
    target.write_text("{not json", encoding="utf-8")
    assert load_state(target) == LedgerState()


def test_malformed_records_reset(tmp_path):
    target = tmp_path / "snapshot.json"
    target.write_text(json.dumps({"isOnboarded": True, "budgets": [{"id": "b1"}]}), encoding="utf-8")
    assert load_state(target) == LedgerState()

    target.write_text(json.dumps({"isOnboarded": True, "selectedCurrency": "XYZ"}), encoding="utf-8")
    assert load_state(target) == LedgerState()

    target.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_state(target) == LedgerState()


def test_partial_snapshot_uses_defaults():
    state = state_from_dict({"isOnboarded": True})
    assert state.is_onboarded
    assert state.budgets == ()
    assert state.currency == Currency.USD
    assert state.payday == 1
    assert state.last_reset_month == -1


def test_onboarded_flag_must_be_true():
    assert not state_from_dict({"isOnboarded": "yes"}).is_onboarded


def test_legacy_transactions_without_budget_id():
    data = state_to_dict(sample_state())
    del data["transactions"][0]["budgetId"]
    state = state_from_dict(data)
    assert state.transactions[0].budget_id is None
    assert "budgetId" not in state_to_dict(state)["transactions"][0]


def test_failed_write_keeps_previous_snapshot(tmp_path, monkeypatch):
    target = tmp_path / "snapshot.json"
    save_state(sample_state(), target)

    def broken_dump(obj, handle, **kwargs):
        handle.write('{"isOnboarded": true, "budg')
        raise OSError("disk full")

    monkeypatch.setattr(storage.json, "dump", broken_dump)
    with pytest.raises(OSError):
        save_state(LedgerState(is_onboarded=True), target)

    assert load_state(target) == sample_state()
    assert list(tmp_path.iterdir()) == [target]


@pytest.mark.parametrize("stored", [99, 0, "abc", None])
def test_out_of_range_payday_loads_as_first(stored):
    state = state_from_dict({"isOnboarded": True, "payday": stored})
    assert state.is_onboarded
    assert state.payday == 1
