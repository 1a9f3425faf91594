"""
Streamlit Frontend for SplitSync

The view-state-and-render loop: every widget action calls one
LedgerStore operation, the store persists the vault, and the page
re-renders balances from scratch.

DESIGN PRINCIPLES:
1. Balances are always recomputed, never cached in session state
2. Destructive actions (delete group, remove person, reset) need a
   confirmation checkbox first
3. Invalid input does nothing; the form simply stays as it was
"""

import asyncio
import html
from datetime import timezone

import streamlit as st

from splitsync.audit import configure_logging
from splitsync.config import get_settings, validate_all_settings
from splitsync.ledger import (
    balance_status,
    category_totals,
    group_total,
    suggest_settlements,
)
from splitsync.ledger.store import LedgerStore
from splitsync.models.ledger import BalanceStatus, ExpenseCategory, Group
from splitsync.orchestrator import InsightFlow, create_app_components
from splitsync.reports import export_group_csv, report_filename
from splitsync.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="SplitSync",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .owed-box {
        padding: 14px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 6px 0;
    }
    .owes-box {
        padding: 14px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 6px 0;
    }
    .settled-box {
        padding: 14px;
        background-color: #e2e3e5;
        border-radius: 10px;
        border-left: 5px solid #6c757d;
        margin: 6px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[LedgerStore, InsightFlow]:
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.debug_mode)
    return create_app_components()


def fmt(value: float) -> str:
    return get_settings().app.format_currency(value)


def guarded(action, *args, **kwargs):
    """Run a store mutation, showing storage failures instead of crashing."""
    try:
        return action(*args, **kwargs)
    except StorageError as e:
        st.error(f"Could not save your changes: {e}")
        return None


def main():
    """Main application entry point."""
    store, insight_flow = get_components()

    if store.vault_unread:
        st.warning(
            "Saved data could not be read. You are looking at a temporary "
            "group and changes will not be saved until the data loads."
        )
        if st.button("🔁 Retry loading saved data"):
            store.load()
            st.rerun()

    render_sidebar(store)

    group = store.active_group
    if group is None:
        st.title("No groups yet")
        st.markdown("Create a group from the sidebar to start splitting expenses.")
        return

    tab_ledger, tab_people, tab_insights, tab_settings = st.tabs(
        ["💸 Ledger", "👥 People", "✨ Insights", "⚙️ Settings"]
    )
    with tab_ledger:
        render_ledger_tab(store, group)
    with tab_people:
        render_people_tab(store, group)
    with tab_insights:
        render_insights_tab(insight_flow, group)
    with tab_settings:
        render_settings_tab(store)


def render_sidebar(store: LedgerStore):
    """Group list, group creation and deletion."""
    st.sidebar.title("💸 SplitSync")
    st.sidebar.markdown("---")

    groups = store.groups
    if groups:
        ids = [g.id for g in groups]
        active_idx = ids.index(store.active_group_id) if store.active_group_id in ids else 0
        selected = st.sidebar.radio(
            "Groups",
            options=ids,
            index=active_idx,
            format_func=lambda gid: store.get_group(gid).name,
        )
        if selected != store.active_group_id:
            store.select_group(selected)
            st.rerun()

    with st.sidebar.form("create_group", clear_on_submit=True):
        name = st.text_input("New group name")
        if st.form_submit_button("➕ Create Group"):
            if guarded(store.create_group, name):
                st.rerun()

    group = store.active_group
    if group:
        st.sidebar.markdown("---")
        confirm = st.sidebar.checkbox(f"Delete '{group.name}' and all its data")
        if st.sidebar.button("🗑️ Delete Group", disabled=not confirm):
            guarded(store.delete_group, group.id)
            st.rerun()


def render_ledger_tab(store: LedgerStore, group: Group):
    """Expense form, balances and history for the active group."""
    st.title(group.name)

    col_form, col_balances = st.columns([2, 3])

    with col_form:
        st.subheader("Add Expense")
        with st.form("add_expense", clear_on_submit=True):
            description = st.text_input("Description", placeholder="e.g., Dinner at Koshy's")
            amount = st.text_input("Amount (₹)", placeholder="0.00")
            people_ids = [p.id for p in group.people]
            paid_by = st.selectbox(
                "Paid by",
                options=people_ids,
                format_func=group.person_name,
            )
            category = st.selectbox(
                "Category",
                options=list(ExpenseCategory),
                format_func=lambda c: c.value,
            )
            if st.form_submit_button("Add Expense", type="primary"):
                if guarded(store.add_expense, group.id, description, amount, paid_by, category):
                    st.rerun()
                else:
                    st.warning("Enter a description and a valid amount.")

    with col_balances:
        st.subheader("Balances")
        total = group_total(group)
        epsilon = get_settings().app.settled_epsilon
        st.metric("Total spent", fmt(total))

        for balance in store.balances(group.id):
            name = html.escape(group.person_name(balance.person_id))
            status = balance_status(balance, epsilon)
            if status == BalanceStatus.SETTLED:
                css, label = "settled-box", "Settled"
            elif status == BalanceStatus.OWED:
                css, label = "owed-box", f"is owed {fmt(balance.net)}"
            else:
                css, label = "owes-box", f"owes {fmt(abs(balance.net))}"
            st.markdown(f"""
            <div class="{css}">
                <strong>{name}</strong> {label}<br/>
                <small>Paid {fmt(balance.paid)} · Share {fmt(balance.share)}</small>
            </div>
            """, unsafe_allow_html=True)

        settlements = suggest_settlements(group, epsilon)
        if settlements:
            with st.expander("🤝 How to settle up"):
                for s in settlements:
                    st.markdown(
                        f"- **{group.person_name(s.from_person_id)}** pays "
                        f"**{group.person_name(s.to_person_id)}** {fmt(s.amount)}"
                    )

    st.markdown("---")
    st.subheader("History")

    if not group.expenses:
        st.info("No expenses yet. Add the first one above.")
    for expense in group.expenses:
        c1, c2, c3, c4 = st.columns([4, 2, 2, 1])
        c1.markdown(f"**{expense.description}**  \n{expense.timestamp.strftime('%d %b %Y')}")
        c2.markdown(f"{expense.category.value}  \n_{group.person_name(expense.paid_by_id)}_")
        c3.markdown(f"**{fmt(expense.amount)}**")
        if c4.button("🗑️", key=f"rm_{expense.id}"):
            guarded(store.remove_expense, group.id, expense.id)
            st.rerun()

    st.markdown("---")
    col_export, col_reset = st.columns(2)
    with col_export:
        st.download_button(
            "⬇️ Export CSV",
            data=export_group_csv(group),
            file_name=report_filename(group),
            mime="text/csv",
            disabled=not group.expenses,
        )
    with col_reset:
        confirm = st.checkbox("Reset all balances to 0 (deletes history)")
        if st.button("🔄 Reset History", disabled=not confirm):
            guarded(store.reset_history, group.id)
            st.rerun()


def rename_from_widget(store: LedgerStore, group_id: str, person_id: str, name_key: str):
    """Rename once per edit; a rejected name puts the field back."""
    new_name = st.session_state[name_key]
    if guarded(store.rename_person, group_id, person_id, new_name) is None:
        group = store.get_group(group_id)
        current = group.person_name(person_id) if group else ""
        if current != new_name.strip():
            st.session_state[name_key] = current
            st.session_state["people_notice"] = "Names must be 1 to 100 characters."


def render_people_tab(store: LedgerStore, group: Group):
    """Add, rename and remove members."""
    st.subheader("People")
    notice = st.session_state.pop("people_notice", None)
    if notice:
        st.warning(notice)

    for person in group.people:
        c1, c2, c3 = st.columns([1, 4, 2])
        if person.avatar_url:
            c1.image(person.avatar_url, width=48)
        name_key = f"name_{group.id}_{person.id}"
        if name_key not in st.session_state:
            st.session_state[name_key] = person.name
        c2.text_input(
            "Name",
            key=name_key,
            label_visibility="collapsed",
            on_change=rename_from_widget,
            args=(store, group.id, person.id, name_key),
        )
        paid_count = sum(1 for e in group.expenses if e.paid_by_id == person.id)
        confirm = c3.checkbox(
            f"Remove (and their {paid_count} expenses)",
            key=f"confirm_rm_{person.id}",
            disabled=group.person_count <= 1,
        )
        if confirm and c3.button("Remove", key=f"rm_person_{person.id}"):
            guarded(store.remove_person, group.id, person.id)
            st.rerun()

    with st.form("add_person", clear_on_submit=True):
        name = st.text_input("Add someone", placeholder="Name")
        if st.form_submit_button("➕ Add Person"):
            if guarded(store.add_person, group.id, name):
                st.rerun()


def render_insights_tab(insight_flow: InsightFlow, group: Group):
    """Gemini spending summary plus a category breakdown."""
    st.subheader("Spending by Category")
    totals = category_totals(group)
    st.bar_chart({c.value: v for c, v in totals.items()})

    st.subheader("✨ AI Insights")
    if st.button("Analyze Spending", type="primary"):
        with st.spinner("Reading your expenses..."):
            result = run_async(insight_flow.generate(group.id))
            if result is not None:
                insight_flow.apply(result)

    latest = insight_flow.latest(group.id)
    if latest:
        if latest.available:
            st.markdown(latest.text)
            st.caption(
                f"Based on {latest.expense_count} recent expenses · "
                f"{latest.generated_at.astimezone(timezone.utc).strftime('%d %b %Y %H:%M')} UTC"
            )
        else:
            st.info(latest.text)


def render_settings_tab(store: LedgerStore):
    """Connection status and factory reset."""
    st.markdown("### Configuration Status")

    status = validate_all_settings()
    sections = [
        ("Storage", "storage"),
        ("Google Sheets", "google_sheets"),
        ("Gemini (AI insights)", "gemini"),
        ("App", "app"),
    ]
    for name, key in sections:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - Configured")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    st.markdown("---")
    st.markdown("### Danger Zone")
    confirm = st.checkbox(
        "DANGER: delete ALL data across ALL groups. This cannot be undone."
    )
    if st.button("💣 Factory Reset", disabled=not confirm):
        guarded(store.factory_reset)
        st.rerun()


if __name__ == "__main__":
    main()
