from datetime import datetime

import pandas as pd
import pytest

from spendy_dashboard.data_processing import Transaction
from spendy_dashboard.suggestions import (
    analyze_spending_patterns,
    generate_cutback_suggestions,
    generate_smart_suggestions,
    reduction_steps,
    total_potential_savings,
)


def _build_df(rows):
    return pd.DataFrame(rows)


def test_reduction_steps_are_limited_and_deduplicated():
    assert reduction_steps(0.15) == [0.10, 0.15]
    assert reduction_steps(0.20) == [0.10, 0.15, 0.20]
    assert reduction_steps(0.40) == [0.10, 0.15, 0.20, 0.40]


def test_cutback_suggestions():
    suggestions = generate_cutback_suggestions(
        {'Food & Dining': 400, 'Groceries & Cafe': 200, 'Housing': 800, 'Entertainment': 40}
    )
    assert [(s.category, s.reduction_percentage) for s in suggestions] == [
        ('Food & Dining', 25.0),
        ('Food & Dining', 20.0),
        ('Food & Dining', 15.0),
        ('Food & Dining', 10.0),
        ('Groceries & Cafe', 15.0),
        ('Groceries & Cafe', 10.0),
    ]
    top = suggestions[0]
    assert top.potential_savings == pytest.approx(100)
    assert top.new_amount == pytest.approx(300)
    assert top.annual_savings == pytest.approx(1200)
    assert top.difficulty == 'Easy'
    assert 'Cook more meals at home' in top.tips


def test_cutbacks_require_more_than_fifty_per_month():
    assert generate_cutback_suggestions({'Shopping': 50, 'Transport': 'n/a'}) == []
    assert len(generate_cutback_suggestions({'Shopping': 50.01})) == 4


def test_frequent_small_purchases():
    df = _build_df([
        {'Transaction Date': '2025-06-02', 'Description': 'Starbucks', 'Amount': -4.5},
        {'Transaction Date': '2025-06-03', 'Description': 'STARBUCKS', 'Amount': -4.5},
        {'Transaction Date': '2025-06-04', 'Description': 'starbucks', 'Amount': -4.5},
        {'Transaction Date': '2025-06-04', 'Description': 'ACME payroll', 'Amount': 2000},
    ])
    patterns = analyze_spending_patterns(df)
    assert len(patterns.frequent_small_purchases) == 1
    pattern = patterns.frequent_small_purchases[0]
    assert pattern.description == 'starbucks'
    assert pattern.frequency == 3
    assert pattern.total == pytest.approx(13.5)
    assert pattern.category == 'Groceries & Cafe'

    suggestions = generate_smart_suggestions({}, df)
    assert len(suggestions) == 1
    assert suggestions[0].type == 'frequency'
    assert suggestions[0].title == 'Reduce starbucks purchases'
    assert suggestions[0].potential_savings == pytest.approx(13.5 * 0.3)


def test_weekend_premium():
    df = _build_df([
        {'Transaction Date': '2025-06-02', 'Description': 'Shop A', 'Amount': -20.0},  # Monday
        {'Transaction Date': '2025-06-03', 'Description': 'Shop B', 'Amount': -20.0},
        {'Transaction Date': '2025-06-07', 'Description': 'Shop C', 'Amount': -50.0},  # Saturday
    ])
    patterns = analyze_spending_patterns(df)
    assert patterns.weekend_premium == pytest.approx(150.0)
    assert patterns.weekend_excess == pytest.approx(30.0)

    suggestions = generate_smart_suggestions({}, df)
    assert [s.title for s in suggestions] == ['Reduce weekend premium spending']
    assert suggestions[0].potential_savings == pytest.approx(12.0)


def test_late_night_spending_counts_midnight_purchases():
    transactions = [
        Transaction(datetime(2025, 6, 2, 23, 15), 'Online shop', -40.0),
        Transaction(datetime(2025, 6, 3, 0, 0), 'Food delivery', -40.0),
        Transaction(datetime(2025, 6, 3, 12, 0), 'Lunch', -15.0),
    ]
    patterns = analyze_spending_patterns(transactions)
    assert patterns.late_night_spending == pytest.approx(80.0)

    suggestions = generate_smart_suggestions({}, transactions)
    assert [s.title for s in suggestions] == ['Avoid late-night impulse purchases']
    assert suggestions[0].potential_savings == pytest.approx(48.0)


def test_late_night_spending_skipped_for_date_only_exports():
    df = _build_df([
        {'Transaction Date': '2025-06-02', 'Description': 'Online shop', 'Amount': -40.0},
        {'Transaction Date': '2025-06-03', 'Description': 'Lidl', 'Amount': -60.0},
    ])
    assert analyze_spending_patterns(df).late_night_spending == 0.0
    assert generate_smart_suggestions({}, df) == []


def test_smart_suggestions_sorted_by_savings():
    df = _build_df([
        {'Transaction Date': '2025-06-02', 'Description': 'Kiosk', 'Amount': -5.0},
        {'Transaction Date': '2025-06-03', 'Description': 'Kiosk', 'Amount': -5.0},
        {'Transaction Date': '2025-06-04', 'Description': 'Kiosk', 'Amount': -5.0},
        {'Transaction Date': '2025-06-05 22:00', 'Description': 'Online shop', 'Amount': -80.0},
    ])
    suggestions = generate_smart_suggestions({}, df)
    savings = [s.potential_savings for s in suggestions]
    assert savings == sorted(savings, reverse=True)
    assert suggestions[0].title == 'Avoid late-night impulse purchases'
    assert total_potential_savings(suggestions) == pytest.approx(sum(savings))


def test_smart_suggestions_without_debits():
    assert generate_smart_suggestions({}, []) == []
    credits_only = _build_df([
        {'Transaction Date': '2025-06-02', 'Description': 'ACME payroll', 'Amount': 2000},
    ])
    assert generate_smart_suggestions({}, credits_only) == []
