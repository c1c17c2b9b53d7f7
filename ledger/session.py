import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from ledger import assistant, config, storage, transforms
from ledger.dispatcher import ActionOutcome, apply_actions
from ledger.domain import Currency, LedgerState
from ledger.events import EXPENSE_LOGGED, EventBus, budget_payload, default_bus
from ledger.functional import pipe
from ledger.onboarding import OnboardingResult

logger = logging.getLogger(__name__)


class LedgerSession:
    """Single owner of the ledger state.

    Each accepted change replaces ``state`` and is then written to storage
    (once onboarding is done). The assistant client is injectable so the
    chat path can run without network access.
    """

    def __init__(self, path: Optional[Path] = None, client: Any = None,
                 bus: Optional[EventBus] = None, state: Optional[LedgerState] = None):
        self.path = path
        self.client = client
        self.bus = bus or default_bus()
        self.state = state if state is not None else storage.load_state(path)
        self.is_typing = False
        self.alerts: List[dict] = []
        self.last_outcomes: Tuple[ActionOutcome, ...] = ()

    def _swap(self, new_state: LedgerState) -> bool:
        """Install ``new_state``; True when it must be written to storage."""
        if new_state is self.state:
            return False
        old_state, self.state = self.state, new_state
        self._publish_spending(old_state, new_state)
        return new_state.is_onboarded

    def _commit(self, new_state: LedgerState) -> LedgerState:
        if self._swap(new_state):
            storage.save_state(new_state, self.path)
        return self.state

    async def _commit_async(self, new_state: LedgerState) -> LedgerState:
        if self._swap(new_state):
            await asyncio.to_thread(storage.save_state, new_state, self.path)
        return self.state

    def _publish_spending(self, old: LedgerState, new: LedgerState) -> None:
        before = {b.id: b.spent for b in old.budgets}
        for b in new.budgets:
            grew_by = b.spent - before.get(b.id, 0.0)
            if grew_by <= 0:
                continue
            for result in self.bus.publish(EXPENSE_LOGGED, budget_payload(b, grew_by)):
                if result.get("alert"):
                    self.alerts.append(result)
        del self.alerts[:-config.MAX_ALERTS]

    def apply(self, change: Callable[..., LedgerState], *args, **kwargs) -> LedgerState:
        return self._commit(change(self.state, *args, **kwargs))

    # --- onboarding and settings

    def complete_onboarding(self, result: OnboardingResult, now: Optional[datetime] = None) -> LedgerState:
        return self.apply(transforms.complete_onboarding, result, now)

    def set_currency(self, currency: Currency) -> LedgerState:
        return self.apply(transforms.set_currency, currency)

    def set_payday(self, raw: Any) -> LedgerState:
        return self.apply(transforms.set_payday, raw)

    def add_income(self, source: str = "", amount: Any = 0) -> LedgerState:
        return self.apply(transforms.add_income, source, amount)

    def update_income(self, income_id: str, source: Optional[str] = None, amount: Any = None) -> LedgerState:
        return self.apply(transforms.update_income, income_id, source, amount)

    def remove_income(self, income_id: str) -> LedgerState:
        return self.apply(transforms.remove_income, income_id)

    # --- dashboard

    def log_expense(self, budget_id: str, amount: Any) -> LedgerState:
        return self.apply(transforms.log_expense, budget_id, amount)

    def update_budget(self, budget_id: str, limit: Any, category: Optional[str]) -> LedgerState:
        return self.apply(transforms.update_budget, budget_id, limit, category)

    def delete_budget(self, budget_id: str) -> LedgerState:
        return self.apply(transforms.delete_budget, budget_id)

    def delete_transaction(self, tx_id: str) -> LedgerState:
        return self.apply(transforms.delete_transaction, tx_id)

    def edit_transaction(self, tx_id: str, amount: Any, description: Optional[str]) -> LedgerState:
        return self.apply(transforms.edit_transaction, tx_id, amount, description)

    def clear_alerts(self) -> None:
        self.alerts = []

    # --- chat

    async def send_message(self, text: str, now: Optional[datetime] = None) -> LedgerState:
        text = (text or "").strip()
        if not text:
            return self.state
        await self._commit_async(transforms.append_message(self.state, "user", text, now))
        self.is_typing = True
        try:
            reply = await assistant.process_user_message(
                text,
                self.state.messages,
                self.state.budgets,
                self.state.incomes,
                self.state.transactions,
                client=self.client,
            )
            state, self.last_outcomes = apply_actions(self.state, reply.actions, now)
            skipped = [o for o in self.last_outcomes if not o.applied]
            if skipped:
                logger.info("%d of %d action(s) skipped", len(skipped), len(self.last_outcomes))

            advice = [
                o.advice for o in self.last_outcomes
                if o.advice and o.advice not in reply.message
            ]
            state = pipe(
                state,
                lambda s: transforms.append_message(s, "model", reply.message, now),
                *[lambda s, a=a: transforms.append_message(s, "model", a, now) for a in advice],
            )
            return await self._commit_async(state)
        finally:
            self.is_typing = False
