from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from ledger import config
from ledger.domain import LedgerState
from ledger.onboarding import OnboardingDraft, OnboardingStep, advance, finalize
from ledger.storage import save_state
from ledger.transforms import complete_onboarding, log_expense

APP = str(Path(__file__).resolve().parent.parent / "app" / "main.py")


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "STORAGE_PATH", tmp_path / "snapshot.json")
    at = AppTest.from_file(APP, default_timeout=30)
    at.run()
    return at


def drafted():
    draft = OnboardingDraft()
    while draft.step != OnboardingStep.COMPLETE:
        draft = advance(draft)
    return draft


def click(at, label):
    next(b for b in at.button if b.label == label).click().run()


def labelled(at, label):
    return [w for w in at.text_input if w.label == label]


def test_onboarding_add_and_remove_income_rows_render_at_once(app):
    click(app, "Continue")
    click(app, "Continue")
    assert len(labelled(app, "Stream Name")) == 1

    click(app, "+ Add Stream")
    assert len(labelled(app, "Stream Name")) == 2

    click(app, "🗑")
    assert len(labelled(app, "Stream Name")) == 1


def test_onboarding_add_budget_row_renders_at_once(app):
    for _ in range(3):
        click(app, "Continue")
    assert len(labelled(app, "Category")) == 3

    click(app, "+ Add")
    assert len(labelled(app, "Category")) == 4


def test_dashboard_shows_spending_by_category(tmp_path, monkeypatch):
    path = tmp_path / "snapshot.json"
    monkeypatch.setattr(config, "STORAGE_PATH", path)
    state = complete_onboarding(LedgerState(), finalize(drafted()))
    save_state(log_expense(state, "2", "120"), path)

    at = AppTest.from_file(APP, default_timeout=30)
    at.run()

    assert not at.exception
    assert "Spent by category" in [c.value for c in at.caption]
