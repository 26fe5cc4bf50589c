"""Streamlit app for the Spendy dashboard.

The page ties the engines together: an uploaded CSV is normalised and
windowed to the most recent months, aggregated, and fed to the alert,
savings, suggestion, goal and chat engines. Alert preferences and savings
goals live in ``st.session_state`` and are written back through their JSON
adapters whenever the user changes them.

To run the dashboard from the command line::

    streamlit run spendy_dashboard/dashboard.py
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List

import pandas as pd
import streamlit as st

# Support both ``streamlit run spendy_dashboard/dashboard.py`` and package imports.
if __package__:
    from . import config
    from . import data_processing as dp
    from . import visualization as viz
    from .alerts import Alert, Severity, filter_dismissed, generate_alerts
    from .chatbot import generate_response
    from .formatting import format_currency
    from .goals import GOAL_CATEGORIES, GoalStorage, GoalStore, calculate_goal_progress
    from .monthly import aggregate, filter_recent_months, latest_months
    from .preferences import (
        BOOLEAN_SETTINGS,
        BUDGET_WARNING_THRESHOLD,
        MINIMUM_SPENDING_FOR_ALERTS,
        AlertPreferences,
        PreferencesStorage,
    )
    from .savings import adjust_capacity, calculate_savings_capacity, suggest_savings_amount
    from .suggestions import generate_cutback_suggestions, generate_smart_suggestions
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from spendy_dashboard import config  # type: ignore
    from spendy_dashboard import data_processing as dp  # type: ignore
    from spendy_dashboard import visualization as viz  # type: ignore
    from spendy_dashboard.alerts import Alert, Severity, filter_dismissed, generate_alerts  # type: ignore
    from spendy_dashboard.chatbot import generate_response  # type: ignore
    from spendy_dashboard.formatting import format_currency  # type: ignore
    from spendy_dashboard.goals import (  # type: ignore
        GOAL_CATEGORIES,
        GoalStorage,
        GoalStore,
        calculate_goal_progress,
    )
    from spendy_dashboard.monthly import aggregate, filter_recent_months, latest_months  # type: ignore
    from spendy_dashboard.preferences import (  # type: ignore
        BOOLEAN_SETTINGS,
        BUDGET_WARNING_THRESHOLD,
        MINIMUM_SPENDING_FOR_ALERTS,
        AlertPreferences,
        PreferencesStorage,
    )
    from spendy_dashboard.savings import (  # type: ignore
        adjust_capacity,
        calculate_savings_capacity,
        suggest_savings_amount,
    )
    from spendy_dashboard.suggestions import (  # type: ignore
        generate_cutback_suggestions,
        generate_smart_suggestions,
    )

logger = logging.getLogger(__name__)

SEVERITY_DISPLAY = {
    Severity.CRITICAL: st.error,
    Severity.HIGH: st.warning,
    Severity.MEDIUM: st.info,
    Severity.LOW: st.success,
}

SETTING_LABELS = {
    'budgetExceededEnabled': "Budget alerts",
    'categorySpikesEnabled': "Category spikes",
    'unusualSpendingEnabled': "Unusual spending",
    'savingsOpportunitiesEnabled': "Savings opportunities",
    'incomeChangesEnabled': "Income changes",
}


def init_session_state() -> None:
    """Load persisted preferences and goals once per session."""
    if 'preferences_storage' not in st.session_state:
        st.session_state.preferences_storage = PreferencesStorage()
    if 'goal_storage' not in st.session_state:
        st.session_state.goal_storage = GoalStorage()
    if 'preferences' not in st.session_state:
        st.session_state.preferences = st.session_state.preferences_storage.load()
    if 'goals' not in st.session_state:
        st.session_state.goals = st.session_state.goal_storage.load()
    if 'chat_history' not in st.session_state:
        st.session_state.chat_history = []


def save_preferences() -> None:
    try:
        st.session_state.preferences_storage.save(st.session_state.preferences)
    except OSError as exc:
        st.error(f"Could not save preferences: {exc}")


def save_goals() -> None:
    try:
        st.session_state.goal_storage.save(st.session_state.goals)
    except OSError as exc:
        st.error(f"Could not save goals: {exc}")


def load_data(file) -> pd.DataFrame:
    """Read an uploaded CSV, showing an error and returning an empty frame on failure."""
    try:
        return dp.read_transactions(file)
    except (ValueError, OSError, pd.errors.ParserError) as exc:
        logger.warning("Could not read uploaded file: %s", exc)
        st.error(f"Failed to read file: {exc}")
        return pd.DataFrame()


def render_alert_settings(preferences: AlertPreferences) -> None:
    st.sidebar.header("Alert settings")
    changed = False

    threshold = st.sidebar.slider(
        "Budget warning at (% of budget)",
        min_value=0,
        max_value=100,
        value=int(preferences.get_alert_setting(BUDGET_WARNING_THRESHOLD)),
        step=5,
    )
    if threshold != preferences.get_alert_setting(BUDGET_WARNING_THRESHOLD):
        preferences.set_alert_setting(BUDGET_WARNING_THRESHOLD, float(threshold))
        changed = True

    minimum = st.sidebar.number_input(
        "Minimum spend for spike alerts",
        min_value=0.0,
        value=float(preferences.get_alert_setting(MINIMUM_SPENDING_FOR_ALERTS)),
        step=10.0,
    )
    if minimum != preferences.get_alert_setting(MINIMUM_SPENDING_FOR_ALERTS):
        preferences.set_alert_setting(MINIMUM_SPENDING_FOR_ALERTS, float(minimum))
        changed = True

    for name in sorted(BOOLEAN_SETTINGS):
        enabled = st.sidebar.checkbox(
            SETTING_LABELS.get(name, name), value=bool(preferences.get_alert_setting(name))
        )
        if enabled != preferences.get_alert_setting(name):
            preferences.set_alert_setting(name, enabled)
            changed = True

    with st.sidebar.expander("Monthly budgets"):
        for category in sorted(preferences.budget_thresholds):
            amount = st.number_input(
                category,
                min_value=0.0,
                value=float(preferences.get_budget_threshold(category)),
                step=10.0,
                key=f"budget_{category}",
            )
            if amount != preferences.get_budget_threshold(category):
                preferences.set_budget_threshold(category, amount)
                changed = True

    col1, col2 = st.sidebar.columns(2)
    if col1.button("Reset defaults"):
        preferences.reset_to_defaults()
        changed = True
    if col2.button("Restore dismissed"):
        preferences.clear_dismissed_alerts()
        changed = True

    if changed:
        save_preferences()


def render_alerts(alerts: List[Alert], preferences: AlertPreferences) -> None:
    st.subheader("🔔 Alerts")
    visible = filter_dismissed(alerts, preferences)
    if not visible:
        st.success("No active alerts. Your spending looks on track!")
        return
    for alert in visible:
        body, action = st.columns([6, 1])
        with body:
            SEVERITY_DISPLAY[alert.severity](f"**{alert.title}**\n\n{alert.message}")
        with action:
            if st.button("Dismiss", key=f"dismiss_{alert.id}"):
                preferences.dismiss_alert(alert.id)
                save_preferences()
                st.rerun()


def render_summary(monthly_data) -> None:
    current_month, previous_month = latest_months(monthly_data)
    if current_month is None:
        return
    current = monthly_data[current_month]
    previous = monthly_data.get(previous_month) if previous_month else None

    st.subheader(f"📅 {current_month}")
    col1, col2, col3 = st.columns(3)
    col1.metric(
        "Income",
        format_currency(current.income),
        format_currency(current.income - previous.income) if previous else None,
    )
    col2.metric(
        "Expenses",
        format_currency(current.expenses),
        format_currency(current.expenses - previous.expenses) if previous else None,
        delta_color="inverse",
    )
    col3.metric("Net", format_currency(current.net))

    chart_col, pie_col = st.columns(2)
    with chart_col:
        st.plotly_chart(viz.create_monthly_overview_chart(monthly_data), use_container_width=True)
    with pie_col:
        st.plotly_chart(viz.create_category_pie_chart(current.categories), use_container_width=True)
    st.plotly_chart(
        viz.create_budget_usage_chart(current.categories, st.session_state.preferences),
        use_container_width=True,
    )


def render_savings(monthly_data, transactions: pd.DataFrame, goals: GoalStore) -> None:
    capacity = calculate_savings_capacity(monthly_data)

    col1, col2, col3 = st.columns(3)
    col1.metric("Average income", format_currency(capacity.avg_income))
    col2.metric("Average expenses", format_currency(capacity.avg_expenses))
    col3.metric(
        "Savings rate",
        f"{capacity.savings_rate:.1f}%" if capacity.has_savings_rate else "n/a",
    )

    cutbacks = generate_cutback_suggestions(capacity.category_averages, capacity)
    st.markdown("#### ✂️ Spending cuts")
    selected = []
    for index, cutback in enumerate(cutbacks[:8]):
        label = (
            f"{cutback.category}: cut {cutback.reduction_percentage:.0f}% "
            f"to save {format_currency(cutback.potential_savings)}/month "
            f"({cutback.difficulty})"
        )
        if st.checkbox(label, key=f"cutback_{index}", help="\n".join(cutback.tips)):
            selected.append(cutback)

    adjusted = adjust_capacity(capacity, selected)
    suggestion = suggest_savings_amount(adjusted, goals.list())
    st.markdown("#### 💡 Suggested monthly saving")
    col1, col2, col3 = st.columns(3)
    col1.metric("Conservative", format_currency(suggestion.conservative))
    col2.metric("Aggressive", format_currency(suggestion.aggressive))
    col3.metric("Available surplus", format_currency(suggestion.available))

    smart = generate_smart_suggestions(capacity.category_averages, transactions)
    if smart:
        st.markdown("#### 🧠 Smart suggestions")
        for item in smart:
            with st.expander(f"{item.title} (save ~{format_currency(item.potential_savings)})"):
                st.write(item.description)
                for action in item.action_items:
                    st.markdown(f"- {action}")


def render_goals(goals: GoalStore, monthly_data) -> None:
    st.markdown("#### 🎯 Savings goals")
    with st.form("new_goal", clear_on_submit=True):
        name = st.text_input("Goal name")
        target = st.number_input("Target amount", min_value=0.0, step=50.0)
        monthly = st.number_input("Monthly contribution", min_value=0.0, step=10.0)
        category = st.selectbox(
            "Category", options=list(GOAL_CATEGORIES), format_func=GOAL_CATEGORIES.get,
            index=list(GOAL_CATEGORIES).index('general'),
        )
        target_date = st.date_input("Target date", value=None)
        if st.form_submit_button("Add goal"):
            try:
                goals.create(name, target, monthly, category=category, target_date=target_date)
            except ValueError as exc:
                st.error(str(exc))
            else:
                save_goals()

    if not len(goals):
        st.info("No savings goals yet.")
        return

    st.plotly_chart(viz.create_goal_progress_chart(goals.list(), monthly_data), use_container_width=True)
    for goal in goals.list():
        progress = calculate_goal_progress(goal, monthly_data)
        with st.expander(f"{goal.name} ({goal.category_label})"):
            st.progress(progress.percentage / 100)
            st.write(
                f"{format_currency(goal.current_amount)} of {format_currency(goal.target_amount)} "
                f"({progress.percentage:.1f}%)"
            )
            if progress.months_to_goal is not None:
                st.write(f"About {progress.months_to_goal} months to go at {format_currency(goal.monthly_amount)}/month")
            if not progress.on_track:
                st.warning(f"Behind schedule by {format_currency(progress.shortfall)}")

            amount = st.number_input("Amount", min_value=0.0, step=10.0, key=f"amount_{goal.id}")
            add_col, remove_col, delete_col = st.columns(3)
            try:
                if add_col.button("Add", key=f"add_{goal.id}"):
                    goals.add_amount(goal.id, amount)
                    save_goals()
                    st.rerun()
                if remove_col.button("Remove", key=f"remove_{goal.id}"):
                    goals.remove_amount(goal.id, amount)
                    save_goals()
                    st.rerun()
            except ValueError as exc:
                st.error(str(exc))
            if delete_col.button("Delete goal", key=f"delete_{goal.id}"):
                goals.delete(goal.id)
                save_goals()
                st.rerun()


def render_chat(transactions: pd.DataFrame, monthly_data, goals: GoalStore) -> None:
    st.subheader("💬 Ask Spendy Buddy")
    for role, message in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(message)
    question = st.chat_input("Ask about your spending")
    if question:
        answer = generate_response(question, transactions, monthly_data, goals=goals.list())
        st.session_state.chat_history.append(("user", question))
        st.session_state.chat_history.append(("assistant", answer))
        st.rerun()


def main() -> None:
    """Entry point for the Streamlit app."""
    config.configure_logging()
    config.ensure_data_directories()
    st.set_page_config(page_title="Spendy", layout="wide", initial_sidebar_state="expanded")
    st.title("Spendy")
    st.markdown("Upload a CSV bank export to see alerts, savings recommendations and goal progress.")

    init_session_state()
    preferences: AlertPreferences = st.session_state.preferences
    goals: GoalStore = st.session_state.goals

    uploaded_file = st.sidebar.file_uploader("Choose a CSV file", type=["csv"], accept_multiple_files=False)
    months = st.sidebar.number_input(
        "Months to analyse", min_value=1, max_value=24, value=config.RECENT_MONTHS, step=1
    )
    render_alert_settings(preferences)

    if uploaded_file is None:
        st.info("Please upload a file to begin.")
        st.stop()

    data = load_data(uploaded_file)
    if data.empty:
        st.warning("The uploaded file contains no data.")
        st.stop()

    skipped = int(data[dp.DATE_COL].isna().sum())
    if skipped:
        st.caption(f"{skipped} rows without a valid date were ignored.")

    transactions = filter_recent_months(data, months=int(months))
    monthly_data = aggregate(transactions)
    alerts = generate_alerts(monthly_data, transactions, preferences)
    logger.debug("Generated %d alerts for %d months", len(alerts), len(monthly_data))

    overview_tab, savings_tab, chat_tab = st.tabs(["📊 Dashboard", "🐷 Savings", "💬 Chat"])
    with overview_tab:
        render_alerts(alerts, preferences)
        render_summary(monthly_data)
        st.subheader("Recent transactions")
        st.dataframe(
            transactions.sort_values(dp.DATE_COL, ascending=False)[dp.STANDARD_COLUMNS + [dp.CATEGORY_COL]].head(50),
            use_container_width=True,
        )
    with savings_tab:
        render_savings(monthly_data, transactions, goals)
        render_goals(goals, monthly_data)
    with chat_tab:
        render_chat(transactions, monthly_data, goals)


if __name__ == "__main__":  # pragma: no cover
    main()
