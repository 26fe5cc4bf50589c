"""Plotly figures for the Spendy dashboard.

Each function takes the objects produced by the engine modules
(monthly aggregates, category totals, preferences, goals) and returns a
``plotly.graph_objects.Figure`` ready for ``st.plotly_chart``. Empty
input yields a blank figure titled "No data to display" rather than an
error, so the pages can render before any data is loaded.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .goals import SavingsGoal, calculate_goal_progress
from .monthly import MonthlyDataLike, monthly_frame
from .preferences import AlertPreferences


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_monthly_overview_chart(monthly_data: MonthlyDataLike, title: str | None = None) -> go.Figure:
    """Grouped income/expense bars per month with a savings line.

    Parameters
    ----------
    monthly_data : mapping
        Output of :func:`monthly.aggregate`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bars for income and expenses, line for net savings, months in
        chronological order.
    """
    df = monthly_frame(monthly_data)
    if df.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["Month"], y=df["Income"], name="Income", marker_color="#22c55e"))
    fig.add_trace(go.Bar(x=df["Month"], y=df["Expenses"], name="Expenses", marker_color="#ef4444"))
    fig.add_trace(
        go.Scatter(x=df["Month"], y=df["Savings"], name="Savings", mode="lines+markers", line_color="#3b82f6")
    )
    fig.update_layout(
        title=title or "Monthly overview",
        barmode="group",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_category_pie_chart(
    categories: Union[pd.Series, Mapping[str, float]],
    title: str | None = None,
) -> go.Figure:
    """Pie chart of spending per category."""
    series = categories if isinstance(categories, pd.Series) else pd.Series(dict(categories or {}), dtype=float)
    series = series[series > 0]
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Category", "Value"]
    fig = px.pie(df, names="Category", values="Value", hole=0.4)
    fig.update_layout(title=title or "Category breakdown")
    return fig


def create_budget_usage_chart(
    categories: Mapping[str, float],
    preferences: Optional[AlertPreferences] = None,
    title: str | None = None,
) -> go.Figure:
    """Compare a month's category spending with the configured budgets.

    Parameters
    ----------
    categories : mapping
        Category totals for one month.
    preferences : AlertPreferences, optional
        Source of the budget thresholds; defaults when omitted.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Horizontal bars of spending overlaid on budget bars.
    """
    if not categories:
        return _empty_figure()
    preferences = preferences or AlertPreferences()
    rows = [
        {"Category": category, "Spent": spent, "Budget": preferences.get_budget_threshold(category)}
        for category, spent in categories.items()
    ]
    df = pd.DataFrame(rows).sort_values("Spent")
    colors = ["#ef4444" if spent >= budget > 0 else "#3b82f6" for spent, budget in zip(df["Spent"], df["Budget"])]
    fig = go.Figure()
    fig.add_trace(go.Bar(y=df["Category"], x=df["Budget"], name="Budget", orientation="h", marker_color="#cbd5e1"))
    fig.add_trace(go.Bar(y=df["Category"], x=df["Spent"], name="Spent", orientation="h", marker_color=colors))
    fig.update_layout(
        title=title or "Budget usage",
        barmode="overlay",
        xaxis_title="Amount",
        yaxis_title="Category",
    )
    return fig


def create_goal_progress_chart(
    goals: Iterable[SavingsGoal],
    monthly_data: Optional[MonthlyDataLike] = None,
    title: str | None = None,
) -> go.Figure:
    """Horizontal progress bars, one per savings goal, capped at 100%."""
    rows = []
    for goal in goals:
        progress = calculate_goal_progress(goal, monthly_data)
        rows.append({
            "Goal": goal.name,
            "Progress": progress.percentage,
            "Status": "On track" if progress.on_track else "Behind",
        })
    if not rows:
        return _empty_figure("No savings goals yet")
    df = pd.DataFrame(rows)
    fig = px.bar(
        df,
        x="Progress",
        y="Goal",
        color="Status",
        orientation="h",
        range_x=[0, 100],
        color_discrete_map={"On track": "#22c55e", "Behind": "#f59e0b"},
    )
    fig.update_layout(
        title=title or "Savings goal progress",
        xaxis_title="Progress (%)",
        yaxis_title="Goal",
    )
    return fig
