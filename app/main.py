"""
Streamlit Frontend for Expense Tracker

This is the user interface people use daily to log what they spend.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. The AI only ever suggests; the user decides what is saved

Sign-in goes through Streamlit's built-in OIDC support (st.login), so
passwords never reach this app. Signed-out visitors see the guest page.
"""

import asyncio
from datetime import date
from typing import Optional

import streamlit as st

from expense_tracker.actions import (
    ExpenseActions,
    create_app_components,
    question_for_insight,
)
from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.expense import (
    AIInsight,
    ExpenseCategory,
    UserIdentity,
)
from expense_tracker.presentation import (
    UIContext,
    build_daily_bar_chart,
    daily_chart_series,
    insight_card_html,
    welcome_html,
)


# Page configuration
st.set_page_config(
    page_title="ExpenseTracker AI",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .tip-box {
        padding: 20px;
        background-color: #e8f5e9;
        border-radius: 10px;
        border-left: 5px solid #2e7d32;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
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
def get_actions() -> ExpenseActions:
    """Get or create the action layer (cached)."""
    configure_logging(get_settings().app.log_level)
    return create_app_components()


def get_ui_context() -> UIContext:
    if "ui_context" not in st.session_state:
        st.session_state.ui_context = UIContext()
    return st.session_state.ui_context


def current_identity() -> Optional[UserIdentity]:
    """What the identity provider told us about the visitor, if signed in."""
    if not st.user.is_logged_in:
        return None
    return UserIdentity(
        external_id=st.user.get("sub"),
        first_name=st.user.get("given_name"),
        last_name=st.user.get("family_name"),
        email=st.user.get("email"),
        image_url=st.user.get("picture"),
    )


def main():
    """Main application entry point."""
    ctx = get_ui_context()

    st.sidebar.title("💰 ExpenseTracker AI")
    st.sidebar.markdown("---")

    dark = st.sidebar.toggle("🌙 Dark mode", value=ctx.is_dark)
    if dark != ctx.is_dark:
        st.session_state.ui_context = ctx.toggled()
        st.rerun()

    identity = current_identity()
    if identity is None:
        render_guest_page()
        return

    if st.sidebar.button("🚪 Sign out"):
        st.logout()

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "⚙️ Settings"],
        index=0,
    )

    actions = get_actions()
    if page == "🏠 Dashboard":
        render_dashboard(actions, identity, ctx)
    else:
        render_settings_page()


def render_guest_page():
    """Landing page for signed-out visitors."""
    st.title("💰 ExpenseTracker AI")
    st.markdown("#### AI Financial Management")
    st.markdown(
        """
        Track your expenses, see where your money goes day by day,
        and get AI-powered insights about your spending habits.

        - **Quick entry** with AI category suggestions
        - **Daily chart** of what you spent
        - **Personal insights** about your last 30 days
        """
    )
    if st.button("🔐 Sign in to get started", type="primary"):
        st.login()


def render_dashboard(actions: ExpenseActions, identity: UserIdentity, ctx: UIContext):
    user = run_async(actions.check_user(identity))

    left, right = st.columns(2)

    with left:
        name = identity.first_name or (user.name if user else None) or "there"
        joined = user.created_at if user else None
        st.markdown(welcome_html(name, joined), unsafe_allow_html=True)

        render_add_expense(actions, identity)

    with right:
        render_chart(actions, identity, ctx)
        render_statistics(actions, identity, ctx)

    st.markdown("---")
    render_insights(actions, identity)
    st.markdown("---")
    render_history(actions, identity, ctx)


def render_add_expense(actions: ExpenseActions, identity: UserIdentity):
    """The add-expense form with the AI category helper."""
    st.subheader("➕ Add New Expense")

    categories = [c.value for c in ExpenseCategory]
    if "category_choice" not in st.session_state:
        st.session_state.category_choice = categories[0]

    description = st.text_input(
        "Expense Description *",
        placeholder="e.g., Coffee from Starbucks",
        key="expense_text",
    )

    if st.button("✨ AI Suggest Category"):
        with st.spinner("Asking the AI..."):
            suggestion = run_async(actions.suggest_category(description))
        st.session_state.category_choice = suggestion.category
        if suggestion.error:
            st.warning(suggestion.error)
        else:
            st.success(f"AI suggests: {suggestion.category}")

    col1, col2 = st.columns(2)
    with col1:
        category = st.selectbox("Category *", options=categories, key="category_choice")
        amount = st.number_input(
            "Amount ($) *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
    with col2:
        expense_date = st.date_input("Expense Date *", value=date.today())

    if st.button("💾 Add Expense", type="primary"):
        form = {
            "text": description,
            "amount": str(amount),
            "category": category,
            "date": expense_date.isoformat() if expense_date else "",
        }
        result = run_async(actions.add_expense_record(identity, form))
        if result.error:
            st.markdown(f"""
            <div class="warning-box">
                <h4>❌ Could not add expense</h4>
                <p>{result.error}</p>
            </div>
            """, unsafe_allow_html=True)
        else:
            st.success("Expense record added successfully!")
            st.rerun()


def render_chart(actions: ExpenseActions, identity: UserIdentity, ctx: UIContext):
    st.subheader("📊 Expense Chart")
    result = run_async(actions.get_chart_buckets(identity))
    if result.error:
        st.error(result.error)
        return
    if not result.buckets:
        st.info("No expense data to display yet. Add your first expense to see the chart.")
        return

    series = daily_chart_series(result.buckets, ctx)
    st.plotly_chart(build_daily_bar_chart(series, ctx), use_container_width=True)


def render_statistics(actions: ExpenseActions, identity: UserIdentity, ctx: UIContext):
    st.subheader("📈 Expense Statistics")
    result = run_async(actions.get_expense_statistics(identity))
    if result.error:
        st.error(result.error)
        return

    summary = result.summary
    st.markdown(f"""
    <div class="info-box">
        <p>Average Daily Spending</p>
        <p class="big-number">{ctx.money(summary.average_per_active_day)}</p>
        <p>Based on {summary.active_days} days with expenses</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    col1.metric("Highest", ctx.money(summary.max_amount))
    col2.metric("Lowest", ctx.money(summary.min_amount))


def render_insight(actions: ExpenseActions, identity: UserIdentity, insight: AIInsight):
    st.markdown(insight_card_html(insight), unsafe_allow_html=True)

    answers = st.session_state.setdefault("insight_answers", {})
    if insight.action and st.button(f"👉 {insight.action}", key=f"ask-{insight.id}"):
        with st.spinner("Thinking..."):
            answers[insight.id] = run_async(
                actions.generate_insight_answer(identity, question_for_insight(insight))
            )
    if insight.id in answers:
        st.markdown(f"**AI Answer:** {answers[insight.id]}")


def render_insights(actions: ExpenseActions, identity: UserIdentity):
    """AI insight cards, each with its own follow-up button."""
    header, refresh = st.columns([4, 1])
    header.subheader("🤖 AI Insights")
    if refresh.button("🔄 Refresh"):
        st.session_state.pop("insights", None)
        st.session_state.pop("insight_answers", None)

    if "insights" not in st.session_state:
        with st.spinner("Analyzing your expenses..."):
            st.session_state.insights = run_async(actions.get_ai_insights(identity))

    columns = st.columns(2)
    for index, insight in enumerate(st.session_state.insights):
        with columns[index % 2]:
            render_insight(actions, identity, insight)


def render_history(actions: ExpenseActions, identity: UserIdentity, ctx: UIContext):
    st.subheader("🧾 Expense History")
    result = run_async(actions.get_records(identity))
    if result.error:
        st.error(result.error)
        return
    if not result.records:
        st.info("No expense records found. Start tracking your expenses!")
        return

    for record in result.records:
        col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
        col1.markdown(record.occurred_on.strftime("%d %b %Y"))
        col2.markdown(f"**{record.description}** · {record.category}")
        col3.markdown(ctx.money(record.amount))
        if col4.button("🗑️", key=f"delete-{record.id}", help="Delete this record"):
            deleted = run_async(actions.delete_record(identity, record.id))
            if deleted.error:
                st.error(deleted.error)
            else:
                st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    backend = get_settings().app.storage_backend

    services = [
        ("Database (SQL storage)", "database"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
    ]

    st.markdown(f"**Active storage backend:** `{backend}`")
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
