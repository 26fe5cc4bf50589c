import pandas as pd
import plotly.graph_objects as go

from spendy_dashboard import visualization as viz
from spendy_dashboard.goals import SavingsGoal
from spendy_dashboard.preferences import AlertPreferences


def _monthly():
    return {
        'June 2025': {'income': 3000, 'expenses': 900, 'categories': {'Shopping': 250, 'Transport': 40}},
        'May 2025': {'income': 3000, 'expenses': 700, 'categories': {'Shopping': 100}},
    }


def test_monthly_overview_chart():
    fig = viz.create_monthly_overview_chart(_monthly())
    assert isinstance(fig, go.Figure)
    assert [trace.name for trace in fig.data] == ['Income', 'Expenses', 'Savings']
    assert list(fig.data[0].x) == ['May 2025', 'June 2025']
    assert list(fig.data[2].y) == [2300, 2100]


def test_empty_inputs_give_placeholder_figures():
    assert viz.create_monthly_overview_chart({}).layout.title.text == 'No data to display'
    assert viz.create_category_pie_chart({}).layout.title.text == 'No data to display'
    assert viz.create_budget_usage_chart({}).layout.title.text == 'No data to display'
    assert viz.create_goal_progress_chart([]).layout.title.text == 'No savings goals yet'


def test_category_pie_chart_accepts_mapping_or_series():
    from_mapping = viz.create_category_pie_chart({'Shopping': 250, 'Transport': 40, 'Fees': 0})
    assert sorted(from_mapping.data[0].labels) == ['Shopping', 'Transport']
    from_series = viz.create_category_pie_chart(pd.Series({'Shopping': 10.0}))
    assert list(from_series.data[0].labels) == ['Shopping']


def test_budget_usage_chart_uses_thresholds():
    preferences = AlertPreferences()
    preferences.set_budget_threshold('Transport', 30)
    fig = viz.create_budget_usage_chart({'Shopping': 250, 'Transport': 40}, preferences)
    budget, spent = fig.data
    assert dict(zip(budget.y, budget.x)) == {'Shopping': 200.0, 'Transport': 30.0}
    assert dict(zip(spent.y, spent.x)) == {'Shopping': 250, 'Transport': 40}


def test_goal_progress_chart():
    goals = [
        SavingsGoal('Trip', 1000, 100, current_amount=500),
        SavingsGoal('Car', 5000, 200, current_amount=0),
    ]
    fig = viz.create_goal_progress_chart(goals, _monthly())
    shown = {name for trace in fig.data for name in trace.y}
    assert shown == {'Trip', 'Car'}
