from datetime import datetime

import pytest

from spendy_dashboard import preferences as prefs
from spendy_dashboard.alerts import (
    Alert,
    AlertEngine,
    AlertType,
    Severity,
    alert_id,
    filter_dismissed,
    generate_alerts,
    rank_alerts,
)
from spendy_dashboard.preferences import AlertPreferences

FIXED_NOW = datetime(2025, 7, 1, 9, 30)


def _clock():
    return FIXED_NOW


def _month(income=0.0, expenses=None, **categories):
    if expenses is None:
        expenses = sum(categories.values())
    return {'income': income, 'expenses': expenses, 'categories': categories}


def _of_type(alerts, alert_type):
    return [alert for alert in alerts if alert.type == alert_type]


def test_budget_exceeded_scenario():
    monthly = {'June 2025': {'income': 0, 'expenses': 180, 'categories': {'Entertainment': 180}}}
    alerts = generate_alerts(monthly, [], AlertPreferences(), clock=_clock)

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.type == AlertType.BUDGET_EXCEEDED
    assert alert.severity == Severity.CRITICAL
    assert alert.percentage == '120.0'
    assert alert.category == 'Entertainment'
    assert alert.value == 180
    assert alert.threshold == 150
    assert '€180.00' in alert.message and '€150.00' in alert.message and '120%' in alert.message
    assert alert.id == 'budget_exceeded:June 2025:Entertainment'
    assert alert.timestamp == FIXED_NOW


@pytest.mark.parametrize(
    'spent, expected_type',
    [
        (150, AlertType.BUDGET_EXCEEDED),
        (120, AlertType.BUDGET_WARNING),
        (119, None),
    ],
)
def test_budget_threshold_boundaries(spent, expected_type):
    monthly = {'June 2025': _month(Entertainment=spent)}
    alerts = generate_alerts(monthly, None, AlertPreferences())
    budget_alerts = [
        alert for alert in alerts
        if alert.type in (AlertType.BUDGET_EXCEEDED, AlertType.BUDGET_WARNING)
    ]
    if expected_type is None:
        assert budget_alerts == []
    else:
        assert [alert.type for alert in budget_alerts] == [expected_type]


def test_budget_warning_uses_configured_threshold():
    preferences = AlertPreferences()
    preferences.set_alert_setting(prefs.BUDGET_WARNING_THRESHOLD, 50)
    alerts = generate_alerts({'June 2025': _month(Entertainment=75)}, None, preferences)
    assert [alert.type for alert in alerts] == [AlertType.BUDGET_WARNING]
    assert alerts[0].severity == Severity.HIGH


def test_unknown_category_uses_other_threshold():
    alerts = generate_alerts({'June 2025': _month(Fees=160)}, None, AlertPreferences())
    assert [alert.type for alert in alerts] == [AlertType.BUDGET_EXCEEDED]
    assert alerts[0].threshold == 150.0


def test_unknown_category_ignores_customised_other_budget():
    preferences = AlertPreferences()
    preferences.set_budget_threshold('Other', 1000)
    alerts = generate_alerts({'June 2025': _month(Fees=160)}, None, preferences)
    assert [alert.type for alert in alerts] == [AlertType.BUDGET_EXCEEDED]
    assert alerts[0].threshold == 150.0
    assert alerts[0].category == 'Fees'


def test_category_spike_scenario():
    monthly = {
        'May 2025': _month(income=3000, Entertainment=50),
        'June 2025': _month(income=3000, Entertainment=180),
    }
    alerts = generate_alerts(monthly, [], AlertPreferences())
    spikes = _of_type(alerts, AlertType.CATEGORY_SPIKE)

    assert len(spikes) == 1
    assert spikes[0].severity == Severity.MEDIUM
    assert spikes[0].percentage == '260.0'
    assert spikes[0].details['previous_value'] == 50
    assert [alert.type for alert in alerts] == [AlertType.BUDGET_EXCEEDED, AlertType.CATEGORY_SPIKE]


def test_no_spike_without_previous_spend_or_below_minimum():
    monthly = {
        'May 2025': _month(income=3000, Entertainment=20),
        'June 2025': _month(income=3000, Entertainment=50, Shopping=120),
    }
    alerts = generate_alerts(monthly, [], AlertPreferences())
    assert _of_type(alerts, AlertType.CATEGORY_SPIKE) == []


def test_single_month_skips_month_over_month_checks():
    monthly = {'June 2025': _month(income=100, expenses=2000, Entertainment=500)}
    alerts = generate_alerts(monthly, [], AlertPreferences())
    types = {alert.type for alert in alerts}
    assert AlertType.CATEGORY_SPIKE not in types
    assert AlertType.INCOME_DROP not in types


def test_empty_monthly_data_gives_no_alerts():
    assert generate_alerts({}, [], AlertPreferences()) == []
    assert generate_alerts(None, None) == []


def test_unusual_spending():
    monthly = {
        'April 2025': _month(income=5000, expenses=1000),
        'May 2025': _month(income=5000, expenses=1000),
        'June 2025': _month(income=5000, expenses=2000),
    }
    alerts = generate_alerts(monthly, [], AlertPreferences())
    assert [alert.type for alert in alerts] == [AlertType.UNUSUAL_SPENDING]
    assert alerts[0].percentage == '50.0'


def test_unusual_spending_needs_large_total():
    monthly = {
        'May 2025': _month(income=5000, expenses=400),
        'June 2025': _month(income=5000, expenses=900),
    }
    assert generate_alerts(monthly, [], AlertPreferences()) == []


def test_low_savings_rate():
    alerts = generate_alerts({'June 2025': _month(income=1000, expenses=950)}, [], AlertPreferences())
    assert [alert.type for alert in alerts] == [AlertType.SAVINGS_OPPORTUNITY]
    assert alerts[0].severity == Severity.LOW
    assert alerts[0].percentage == '5.0'


def test_income_drop_uses_chronological_months():
    # June is inserted first; sorting keys as strings would make May "current"
    monthly = {
        'June 2025': _month(income=2000, expenses=100),
        'May 2025': _month(income=3000, expenses=100),
    }
    alerts = generate_alerts(monthly, [], AlertPreferences())
    assert [alert.type for alert in alerts] == [AlertType.INCOME_DROP]
    assert alerts[0].severity == Severity.HIGH
    assert alerts[0].month == 'June 2025'
    assert alerts[0].percentage == '-33.3'


def test_disabled_checks_are_skipped():
    preferences = AlertPreferences()
    for name in prefs.BOOLEAN_SETTINGS:
        preferences.set_alert_setting(name, False)
    monthly = {
        'May 2025': _month(income=3000, Entertainment=50),
        'June 2025': _month(income=1000, expenses=1900, Entertainment=180),
    }
    assert generate_alerts(monthly, [], preferences) == []


def test_zero_threshold_or_bad_value_only_skips_that_category():
    preferences = AlertPreferences()
    preferences.set_budget_threshold('Entertainment', 0)
    monthly = {
        'June 2025': {
            'income': 0,
            'expenses': 500,
            'categories': {'Entertainment': 180, 'Food & Dining': float('nan'), 'Shopping': 250},
        }
    }
    alerts = generate_alerts(monthly, [], preferences)
    assert [(alert.type, alert.category) for alert in alerts] == [
        (AlertType.BUDGET_EXCEEDED, 'Shopping'),
    ]


def test_alerts_are_sorted_by_severity_with_stable_ties():
    monthly = {
        'May 2025': _month(income=3000, Entertainment=50, Shopping=100),
        'June 2025': _month(income=1000, expenses=1950, Entertainment=180, Shopping=250),
    }
    alerts = generate_alerts(monthly, [], AlertPreferences())
    weights = [alert.severity.weight for alert in alerts]
    assert weights == sorted(weights, reverse=True)
    critical = [alert.category for alert in alerts if alert.severity == Severity.CRITICAL]
    assert critical == ['Entertainment', 'Shopping']


def _alert(name, severity):
    return Alert(
        id=name,
        timestamp=FIXED_NOW,
        type=AlertType.BUDGET_WARNING,
        severity=severity,
        title=name,
        message=name,
        month='June 2025',
    )


def test_rank_alerts_orders_by_weight_and_preserves_ties():
    alerts = [
        _alert('low', Severity.LOW),
        _alert('critical-1', Severity.CRITICAL),
        _alert('medium', Severity.MEDIUM),
        _alert('high', Severity.HIGH),
        _alert('critical-2', Severity.CRITICAL),
    ]
    ranked = rank_alerts(alerts)
    assert [alert.id for alert in ranked] == ['critical-1', 'critical-2', 'high', 'medium', 'low']


def test_alert_ids_are_stable_and_dismissal_filters():
    monthly = {'June 2025': _month(Entertainment=180, Shopping=250)}
    first = generate_alerts(monthly, [], AlertPreferences())
    second = generate_alerts(monthly, [], AlertPreferences())
    assert [alert.id for alert in first] == [alert.id for alert in second]

    preferences = AlertPreferences()
    preferences.dismiss_alert(alert_id(AlertType.BUDGET_EXCEEDED, 'June 2025', 'Shopping'))
    visible = filter_dismissed(second, preferences)
    assert [alert.category for alert in visible] == ['Entertainment']


def test_preferences_are_read_at_check_time():
    preferences = AlertPreferences()
    engine = AlertEngine({'June 2025': _month(Entertainment=180)}, [], preferences)
    assert len(engine.generate_alerts()) == 1
    preferences.set_alert_setting(prefs.BUDGET_EXCEEDED_ENABLED, False)
    assert engine.generate_alerts() == []


def test_alert_to_dict():
    monthly = {
        'May 2025': _month(income=3000, Entertainment=50),
        'June 2025': _month(income=3000, Entertainment=90),
    }
    spike = _of_type(generate_alerts(monthly, [], AlertPreferences(), clock=_clock), AlertType.CATEGORY_SPIKE)[0]
    payload = spike.to_dict()
    assert payload['type'] == 'category_spike'
    assert payload['severity'] == 'medium'
    assert payload['timestamp'] == FIXED_NOW.isoformat()
    assert payload['previous_value'] == 50
    assert payload['increase'] == '80.0'
