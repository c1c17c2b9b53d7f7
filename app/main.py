import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio

import streamlit as st
import plotly.graph_objects as go

from ledger import onboarding as ob
from ledger.config import configure_logging
from ledger.domain import Currency
from ledger.reports import category_totals, dashboard_summary, spending_breakdown, transactions_frame
from ledger.session import LedgerSession
from ledger.transforms import budget_status

configure_logging()
st.set_page_config(page_title="Freddy", layout="wide")

if "ledger" not in st.session_state:
    st.session_state.ledger = LedgerSession()
if "draft" not in st.session_state:
    st.session_state.draft = ob.OnboardingDraft()

session: LedgerSession = st.session_state.ledger


def fmt(num: float) -> str:
    return f"{num:,.2f}".rstrip("0").rstrip(".")


def onboarding_page():
    draft: ob.OnboardingDraft = st.session_state.draft
    sym = draft.currency.value
    st.title("Freddy")
    st.caption("Refined Ledger Logic")
    st.progress((int(draft.step) - 1) / 4)

    if draft.step == ob.OnboardingStep.CURRENCY:
        st.subheader("Denomination")
        options = list(Currency)
        choice = st.radio(
            "Core Account Unit",
            options,
            index=options.index(draft.currency),
            format_func=lambda c: f"{c.value}  {c.name}",
            horizontal=True,
        )
        draft = ob.select_currency(draft, choice)

    elif draft.step == ob.OnboardingStep.CYCLE_DAY:
        st.subheader("Pulse Cycle")
        raw = st.text_input("Monthly Sync Day (1-31)", value=draft.payday_input)
        draft = ob.set_payday_input(draft, raw)

    elif draft.step == ob.OnboardingStep.INCOME:
        st.subheader("Capital Inflows")
        for income in draft.incomes:
            c1, c2, c3 = st.columns([3, 2, 1])
            with c1:
                source = st.text_input("Stream Name", value=income.source, key=f"ob_src_{income.id}")
            with c2:
                amount = st.number_input(f"Amount ({sym})", value=float(income.amount), min_value=0.0,
                                         step=100.0, key=f"ob_amt_{income.id}")
            draft = ob.update_income(draft, income.id, source=source, amount=amount)
            with c3:
                if st.button("🗑", key=f"ob_rm_{income.id}"):
                    draft = ob.remove_income(draft, income.id)
                    st.session_state.draft = draft
                    st.rerun()
        if st.button("+ Add Stream"):
            draft = ob.add_income(draft)
            st.session_state.draft = draft
            st.rerun()

    elif draft.step == ob.OnboardingStep.ALLOCATION:
        st.subheader("Allocations")
        k1, k2 = st.columns(2)
        k1.metric("Assigned", f"{sym}{fmt(draft.total_budget)}")
        k2.metric("Retained", f"{sym}{fmt(draft.remaining)}")
        for budget in draft.budgets:
            c1, c2, c3 = st.columns([3, 2, 1])
            with c1:
                name = st.text_input("Category", value=budget.category, key=f"ob_cat_{budget.id}")
            with c2:
                limit = st.number_input(f"Limit ({sym})", value=float(budget.limit), min_value=0.0,
                                        step=100.0, key=f"ob_lim_{budget.id}")
            draft = ob.update_budget_row(draft, budget.id, category=name, limit=limit)
            with c3:
                if st.button("🗑", key=f"ob_rmb_{budget.id}"):
                    draft = ob.remove_budget(draft, budget.id)
                    st.session_state.draft = draft
                    st.rerun()
        if st.button("+ Add"):
            draft = ob.add_budget(draft)
            st.session_state.draft = draft
            st.rerun()

    if draft.error:
        st.error(draft.error)

    col_next, col_back = st.columns(2)
    with col_next:
        label = "Synchronize All" if draft.step == ob.OnboardingStep.ALLOCATION else "Continue"
        if st.button(label, type="primary"):
            draft = ob.advance(draft)
            if draft.step == ob.OnboardingStep.COMPLETE:
                session.complete_onboarding(ob.finalize(draft))
                del st.session_state["draft"]
                st.rerun()
            st.session_state.draft = draft
            st.rerun()
    with col_back:
        if draft.step > ob.OnboardingStep.CURRENCY and st.button("Go Back"):
            draft = ob.go_back(draft)
            st.session_state.draft = draft
            st.rerun()

    st.session_state.draft = draft


def donut_chart(state):
    data = spending_breakdown(state.budgets)
    if data.empty:
        st.info("Awaiting Input")
        return
    fig = go.Figure(go.Pie(
        labels=data["category"],
        values=data["value"],
        marker=dict(colors=list(data["color"])),
        hole=0.75,
        sort=False,
    ))
    fig.update_layout(showlegend=False, margin=dict(t=10, b=10, l=10, r=10), height=260)
    st.plotly_chart(fig, use_container_width=True)


def dashboard_page():
    state = session.state
    sym = state.currency.value
    summary = dashboard_summary(state)

    st.title("Monthly Retained")
    st.caption(f"Day {state.payday} Sync")
    k1, k2, k3 = st.columns(3)
    k1.metric("Retained", f"{sym}{fmt(summary['surplus'])}")
    k2.metric("Inflow", f"{sym}{fmt(summary['income'])}")
    k3.metric("Spent", f"{sym}{fmt(summary['spent'])}")
    donut_chart(state)

    for alert in session.alerts[-5:]:
        if alert["level"] == "over":
            st.error(alert["alert"])
        else:
            st.warning(alert["alert"])
    if session.alerts and st.button("Clear Alerts"):
        session.clear_alerts()
        st.rerun()

    st.subheader("Budgets")
    for budget in state.budgets:
        status = budget_status(budget)
        label = "Over" if status.is_over else "Limit" if status.is_close else "Stable"
        with st.expander(f"{budget.category} · {sym}{fmt(budget.spent)} / {sym}{fmt(budget.limit)} · {label}"):
            st.progress(status.percentage / 100)
            with st.form(f"log_{budget.id}", clear_on_submit=True):
                amount = st.text_input("Amount")
                if st.form_submit_button("Log"):
                    session.log_expense(budget.id, amount)
                    st.rerun()
            with st.form(f"edit_{budget.id}"):
                category = st.text_input("Category", value=budget.category)
                limit = st.text_input("Limit", value=f"{budget.limit:g}")
                c1, c2 = st.columns(2)
                if c1.form_submit_button("Save"):
                    session.update_budget(budget.id, limit, category)
                    st.rerun()
                if c2.form_submit_button("Delete"):
                    session.delete_budget(budget.id)
                    st.rerun()

    st.subheader("History")
    if not state.transactions:
        st.info("No transactions yet.")
        return
    st.dataframe(transactions_frame(state.transactions).drop(columns=["id"]), use_container_width=True)
    st.caption("Spent by category")
    st.bar_chart(category_totals(state.transactions))
    for tx in state.transactions:
        with st.expander(f"{tx.date} · {tx.category} · {tx.description} · -{tx.currency}{fmt(tx.amount)}"):
            with st.form(f"tx_{tx.id}"):
                amount = st.text_input("Amount", value=f"{tx.amount:g}")
                description = st.text_input("Description", value=tx.description)
                c1, c2 = st.columns(2)
                if c1.form_submit_button("Update"):
                    session.edit_transaction(tx.id, amount, description)
                    st.rerun()
                if c2.form_submit_button("Delete"):
                    session.delete_transaction(tx.id)
                    st.rerun()


def chat_page():
    st.title("Freddy")
    st.caption("Financial Assistant")
    for msg in session.state.messages:
        with st.chat_message("user" if msg.role == "user" else "assistant"):
            st.write(msg.text)
    text = st.chat_input("Log an expense or ask Freddy", disabled=session.is_typing)
    if text:
        with st.spinner("Freddy is thinking..."):
            asyncio.run(session.send_message(text))
        st.rerun()


def settings_page():
    state = session.state
    st.title("Settings")

    st.subheader("Ledger Unit")
    options = list(Currency)
    choice = st.radio("Currency", options, index=options.index(state.currency),
                      format_func=lambda c: f"{c.value}  {c.name}", horizontal=True)
    if choice != state.currency:
        session.set_currency(choice)
        st.rerun()

    st.subheader("Cycle Synchrony")
    raw = st.text_input("Day of Month", value=str(state.payday))
    if raw != str(state.payday):
        session.set_payday(raw)

    st.subheader("Projected Flow")
    for income in state.incomes:
        c1, c2, c3 = st.columns([3, 2, 1])
        with c1:
            source = st.text_input("Source Name", value=income.source, key=f"src_{income.id}")
        with c2:
            amount = st.number_input(f"Amount ({state.currency.value})", value=float(income.amount),
                                     min_value=0.0, step=100.0, key=f"amt_{income.id}")
        if source != income.source or amount != income.amount:
            session.update_income(income.id, source=source, amount=amount)
        with c3:
            if st.button("🗑", key=f"rm_{income.id}"):
                session.remove_income(income.id)
                st.rerun()
    if st.button("+ New Stream"):
        session.add_income()
        st.rerun()


if not session.state.is_onboarded:
    onboarding_page()
else:
    menu = st.sidebar.radio("Menu", ["🏠 Dashboard", "💬 Chat", "⚙️ Settings"])
    if menu == "🏠 Dashboard":
        dashboard_page()
    elif menu == "💬 Chat":
        chat_page()
    else:
        settings_page()
