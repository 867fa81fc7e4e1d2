"""
Streamlit Frontend for Ledgerwise

A thin shell over the orchestrator. It owns the two things the engines
never look up themselves: who is signed in, and what time it is.

Pages:
1. Dashboard - period summary with changes against the previous period
2. Notifications - alerts raised by the rule battery
3. Budgets - allocation against this month's income
4. Settings - configuration status
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal

import streamlit as st

from ledgerwise.analytics import custom_range, format_date_range
from ledgerwise.audit import user_friendly_error_message
from ledgerwise.config import get_settings, validate_all_settings
from ledgerwise.models import (
    BudgetSnapshot,
    ChangeType,
    GoalContribution,
    PercentChange,
    ReportingPeriod,
    SavingsGoal,
    Subscription,
    Transaction,
    TransactionType,
)
from ledgerwise.orchestrator import AppComponents, create_app_components
from ledgerwise.services import StaticSession
from ledgerwise.services.storage import InMemoryFinanceStorage


# Page configuration
st.set_page_config(
    page_title="Ledgerwise",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

DEMO_USER_ID = "demo-user"

PRIORITY_ICONS = {
    "urgent": "🚨",
    "high": "⚠️",
    "normal": "🔔",
    "low": "ℹ️",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def seed_demo_data(storage: InMemoryFinanceStorage, user_id: str, today: date) -> None:
    """A small ledger so the in-memory demo has something to show."""
    storage.add_transaction(user_id, Transaction(
        type=TransactionType.INCOME, amount=Decimal("3200"), category="salary",
        description="Salary", date=today.replace(day=1),
    ))
    storage.add_transaction(user_id, Transaction(
        type=TransactionType.EXPENSE, amount=Decimal("1100"), category="rent",
        description="Rent", date=today.replace(day=1),
    ))
    storage.add_transaction(user_id, Transaction(
        type=TransactionType.EXPENSE, amount=Decimal("45"), category="utilities",
        description="Internet", date=today + timedelta(days=2), is_recurring=True,
    ))
    storage.add_budget(user_id, BudgetSnapshot(
        category="Groceries", allocated=Decimal("400"), spent=Decimal("352"),
    ))
    goal = SavingsGoal(
        name="Emergency fund", target_amount=Decimal("5000"),
        current_amount=Decimal("3900"), target_date=today + timedelta(days=21),
    )
    storage.add_goal(user_id, goal)
    storage.add_contribution(user_id, GoalContribution(
        goal_id=goal.id, added_amount=Decimal("250"), recorded_at=datetime.now(),
    ))
    storage.add_subscription(user_id, Subscription(
        name="Streaming", amount=Decimal("12.99"), reminder_date=today + timedelta(days=1),
    ))


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    session = StaticSession(DEMO_USER_ID)
    components = create_app_components(use_storage=True, session=session)
    if isinstance(components.finance_storage, InMemoryFinanceStorage):
        seed_demo_data(components.finance_storage, DEMO_USER_ID, date.today())
    return components


def render_change(change: PercentChange) -> str:
    if change.type == ChangeType.NEUTRAL:
        return "off"
    return "normal"


def main():
    """Main application entry point."""
    components = get_components()

    # Run one evaluation pass per page load; dedup keeps this idempotent
    try:
        run_async(components.pipeline.run_pass())
    except Exception as e:
        st.sidebar.warning(user_friendly_error_message(e))

    st.sidebar.title("💰 Ledgerwise")
    st.sidebar.markdown("---")

    unread = run_async(components.inbox.unread_count())
    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", f"🔔 Notifications ({unread})", "🧾 Budgets", "⚙️ Settings"],
        index=0,
    )

    if page.startswith("📊"):
        render_dashboard_page(components)
    elif page.startswith("🔔"):
        render_notifications_page(components)
    elif page.startswith("🧾"):
        render_budgets_page(components)
    else:
        render_settings_page()


def render_dashboard_page(components: AppComponents):
    """Render the period summary."""
    st.title("📊 Dashboard")

    col1, col2 = st.columns([1, 2])
    with col1:
        default_period = get_settings().app.default_period
        period = st.selectbox(
            "Period",
            options=list(ReportingPeriod),
            index=list(ReportingPeriod).index(ReportingPeriod(default_period)),
            format_func=lambda p: p.value.title(),
        )
    with col2:
        picked = st.date_input("Custom range (optional)", value=[])

    window = None
    if isinstance(picked, (list, tuple)) and len(picked) == 2:
        window = custom_range(picked[0], picked[1])

    try:
        summary = run_async(components.reporting.summary(period=period, window=window))
    except Exception as e:
        st.error(user_friendly_error_message(e))
        return

    st.caption(
        f"{format_date_range(summary.current_range)} compared with "
        f"{format_date_range(summary.previous_range)}"
    )

    c1, c2, c3, c4 = st.columns(4)
    for column, label, value, change in (
        (c1, "Income", summary.current.income, summary.changes.income),
        (c2, "Expenses", summary.current.expenses, summary.changes.expenses),
        (c3, "Balance", summary.current.balance, summary.changes.balance),
        (c4, "Saved this period", summary.current.contributions, summary.changes.contributions),
    ):
        column.metric(label, f"${value:,.2f}", change.text, delta_color=render_change(change))

    st.markdown("---")
    st.markdown("#### Right now")
    p1, p2, p3 = st.columns(3)
    p1.metric("Total savings", f"${summary.point_in_time.total_savings:,.2f}")
    p2.metric("Total budget", f"${summary.point_in_time.total_budget:,.2f}")
    p3.metric("Budget spent", f"${summary.point_in_time.total_spent:,.2f}")


def render_notifications_page(components: AppComponents):
    """Render the notification inbox."""
    st.title("🔔 Notifications")

    notifications = run_async(components.inbox.notifications())
    if not notifications:
        st.info("You're all caught up.")
        return

    if st.button("Mark all as read"):
        run_async(components.inbox.mark_all_read())
        st.rerun()

    for notification in notifications:
        icon = PRIORITY_ICONS.get(notification.priority.value, "🔔")
        weight = "" if notification.is_read else "**"
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(f"{icon} {weight}{notification.title}{weight}")
            st.caption(notification.message)
        with col2:
            if st.button("Dismiss", key=f"dismiss-{notification.id}"):
                run_async(components.inbox.dismiss(notification.id))
                st.rerun()


def render_budgets_page(components: AppComponents):
    """Render budget allocation totals."""
    st.title("🧾 Budgets")

    totals = run_async(components.reporting.budget_overview())
    c1, c2, c3 = st.columns(3)
    c1.metric("Monthly income", f"${totals.monthly_income:,.2f}")
    c2.metric("Allocated", f"${totals.total_allocation:,.2f}")
    c3.metric("Left to allocate", f"${totals.remaining_to_allocate:,.2f}")

    if totals.is_over_allocated:
        st.error("Your budgets allocate more than this month's income.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    sections = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Notification rules", "notifications"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Loaded")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "Without Google Sheets credentials the app runs on in-memory demo data. "
        "Set `GOOGLE_SHEETS_CREDENTIALS_PATH` and `GOOGLE_SHEETS_SPREADSHEET_ID` "
        "in a `.env` file to use your own spreadsheet."
    )


if __name__ == "__main__":
    main()
