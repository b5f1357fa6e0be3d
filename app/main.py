"""
Streamlit Frontend for Kakeibo

The household ledger UI: scan a receipt, review what was read, commit it,
and keep an eye on the month.

DESIGN PRINCIPLES:
1. Nothing reaches the ledger without the user pressing "Add to ledger"
2. Every staged row is editable, including ones the engine got wrong
3. Failures explain themselves in the progress log

The UI is a thin layer: all state lives in the CaptureSession and the
ledger store, and all rules live in the orchestrator.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st
from pydantic import ValidationError

from kakeibo.capture import CaptureSession
from kakeibo.config import get_settings, validate_all_settings
from kakeibo.models.ledger import (
    Category,
    EngineId,
    SavingsGoal,
    TransactionPatch,
    TransactionType,
)
from kakeibo.orchestrator import (
    CommitProcess,
    ExtractionCoordinator,
    InvalidEntryError,
    ManualEntryFlow,
    create_app_components,
)
from kakeibo.queries import format_currency, months_remaining, summarize_ledger
from kakeibo.services.storage import LedgerStoreInterface


st.set_page_config(
    page_title="Kakeibo",
    page_icon="📒",
    layout="centered",
)

CATEGORIES = list(Category)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def get_capture_session() -> CaptureSession:
    if "capture_session" not in st.session_state:
        st.session_state.capture_session = CaptureSession()
    return st.session_state.capture_session


def main():
    """Main application entry point."""
    coordinator, commit_process, manual_entry, store = get_components()

    st.sidebar.title("📒 Kakeibo")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📷 Scan Receipt", "✍️ Manual Entry", "📊 Overview", "📜 History", "⚙️ Settings"],
        index=0,
    )

    if page == "📷 Scan Receipt":
        render_scan_page(coordinator, commit_process)
    elif page == "✍️ Manual Entry":
        render_manual_page(manual_entry)
    elif page == "📊 Overview":
        render_overview_page(store)
    elif page == "📜 History":
        render_history_page(store, manual_entry)
    elif page == "⚙️ Settings":
        render_settings_page(coordinator, store)


def render_scan_page(coordinator: ExtractionCoordinator, commit_process: CommitProcess):
    """Capture, review and commit a receipt."""
    st.title("📷 Scan Receipt")
    session = get_capture_session()

    engine = st.selectbox(
        "Engine",
        coordinator.engines,
        index=coordinator.engines.index(coordinator.default_engine()),
        format_func=lambda e: e.value,
    )

    photo = st.camera_input("Take a photo of the receipt")
    uploaded = photo or st.file_uploader(
        "...or upload an image",
        type=get_settings().app.supported_formats_list,
    )

    if uploaded and st.button("🔍 Read receipt", type="primary"):
        with st.spinner("Reading the receipt..."):
            run_async(coordinator.extract(session, uploaded.getvalue(), EngineId(engine)))
        st.rerun()

    if len(session.progress):
        with st.expander("Progress", expanded=not len(session.staging)):
            for line in session.progress:
                st.text(line)

    if not len(session.staging):
        return

    st.subheader("Review items")
    st.caption("Rows with a price of 0 are skipped when adding to the ledger.")

    for item in session.staging.items:
        cols = st.columns([4, 2, 3, 1])
        name = cols[0].text_input("Name", item.name, key=f"name_{item.item_id}")
        price = cols[1].number_input(
            "Price", min_value=0, value=item.price, step=1, key=f"price_{item.item_id}"
        )
        category = cols[2].selectbox(
            "Category",
            CATEGORIES,
            index=CATEGORIES.index(item.category),
            format_func=lambda c: f"{c.emoji} {c.display_name}",
            key=f"cat_{item.item_id}",
        )
        if cols[3].button("🗑️", key=f"remove_{item.item_id}"):
            session.staging.remove(item.item_id)
            st.rerun()

        session.staging.update_field(item.item_id, "name", name)
        session.staging.update_field(item.item_id, "price", int(price))
        session.staging.update_field(item.item_id, "category", category)

    st.markdown(f"**Total: {format_currency(session.staging.total)}**")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Add to ledger", type="primary"):
            count = run_async(commit_process.commit(session))
            st.session_state.capture_session = CaptureSession()
            st.success(f"Added {count} transaction(s).")
    with col2:
        if st.button("❌ Discard"):
            run_async(commit_process.discard(session))
            st.session_state.capture_session = CaptureSession()
            st.rerun()


def render_manual_page(manual_entry: ManualEntryFlow):
    """Hand-entered income or expense."""
    st.title("✍️ Manual Entry")

    with st.form("manual_entry"):
        entry_type = st.radio(
            "Type",
            list(TransactionType),
            format_func=lambda t: t.value.title(),
            horizontal=True,
        )
        amount = st.text_input("Amount (¥)")
        category = st.selectbox(
            "Category",
            CATEGORIES,
            format_func=lambda c: f"{c.emoji} {c.display_name}",
        )
        on_date = st.date_input("Date", value=date.today())
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        try:
            transaction = run_async(manual_entry.record(amount, category, on_date, entry_type))
        except InvalidEntryError as e:
            st.error(str(e))
        else:
            st.success(f"Saved {format_currency(transaction.amount)}")


def render_overview_page(store: LedgerStoreInterface):
    """Balance, daily budget and savings goals."""
    st.title("📊 Overview")
    summary = summarize_ledger(store)

    col1, col2, col3 = st.columns(3)
    col1.metric("Balance", format_currency(summary.balance))
    col2.metric("Per day", format_currency(summary.daily_budget))
    col3.metric("Saved", f"{summary.savings_percent}%")

    st.subheader("Savings goals")
    for goal in store.list_goals():
        months = months_remaining(goal.deadline)
        st.markdown(
            f"{goal.emoji} **{goal.title}**: {format_currency(goal.current)} / "
            f"{format_currency(goal.target)} ({months} month(s) left)"
        )
        progress = float(min(goal.current / goal.target, 1))
        st.progress(progress)

    with st.form("new_goal"):
        title = st.text_input("Goal")
        target = st.number_input("Target (¥)", min_value=1, step=1000)
        deadline = st.date_input("Deadline")
        if st.form_submit_button("Add goal") and title:
            store.add_goal(SavingsGoal(title=title, target=target, deadline=deadline))
            st.rerun()


def render_history_page(store: LedgerStoreInterface, manual_entry: ManualEntryFlow):
    """Transactions for one year, newest first."""
    st.title("📜 History")
    year = st.number_input("Year", min_value=2000, max_value=2100, value=date.today().year)

    transactions = store.transactions_for_year(int(year))
    if not transactions:
        st.info("No transactions for this year.")
        return

    for t in reversed(transactions):
        cols = st.columns([2, 3, 2, 1])
        cols[0].text(t.date.isoformat())
        cols[1].text(f"{t.category.emoji} {t.category.display_name}")
        cols[2].text(format_currency(t.amount))
        if cols[3].button("🗑️", key=f"del_{t.id}"):
            run_async(manual_entry.delete(t.id))
            st.rerun()

        with st.expander("Edit", expanded=False):
            with st.form(f"edit_{t.id}"):
                amount = st.number_input(
                    "Amount (¥)",
                    min_value=1,
                    value=max(1, int(abs(t.amount))),
                    step=1,
                    key=f"amount_{t.id}",
                )
                category = st.selectbox(
                    "Category",
                    CATEGORIES,
                    index=CATEGORIES.index(t.category),
                    format_func=lambda c: f"{c.emoji} {c.display_name}",
                    key=f"category_{t.id}",
                )
                on_date = st.date_input("Date", value=t.date, key=f"date_{t.id}")
                if st.form_submit_button("Save changes"):
                    signed = -amount if t.type == TransactionType.EXPENSE else amount
                    patch = TransactionPatch(
                        amount=Decimal(signed), category=category, date=on_date
                    )
                    run_async(manual_entry.update(t.id, patch))
                    st.rerun()

    st.download_button(
        "⬇️ Export ledger (JSON)",
        store.to_blob(),
        file_name="kakeibo.json",
        mime="application/json",
    )


def render_settings_page(coordinator: ExtractionCoordinator, store: LedgerStoreInterface):
    """Configuration status and ledger data management."""
    st.title("⚙️ Settings")
    st.markdown(f"Default engine: **{coordinator.default_engine().value}**")

    results = validate_all_settings()
    for section in ("cloud_vision", "local_llm", "local_ocr", "app"):
        if results.get(section):
            st.success(f"✅ {section}")
        else:
            st.error(f"❌ {section}: {results.get(f'{section}_error', 'invalid')}")

    if not get_settings().cloud_vision.is_configured:
        st.warning("GEMINI_API_KEY is not set; the cloud-vision engine will not work.")

    st.subheader("Data")
    backup = st.file_uploader("Restore ledger from an export (JSON)", type=["json"])
    if backup and st.button("♻️ Restore"):
        try:
            store.load_blob(backup.getvalue().decode("utf-8"))
        except (ValidationError, UnicodeDecodeError) as e:
            st.error(f"This file is not a ledger export: {e}")
        else:
            st.success("Ledger restored.")

    confirm = st.checkbox("I understand this deletes every transaction and goal")
    if st.button("🗑️ Clear all data", disabled=not confirm):
        store.clear()
        st.success("All data cleared.")


if __name__ == "__main__":
    main()
