import random

import pandas as pd
import pytest

from spendy_dashboard import chatbot
from spendy_dashboard.chatbot import classify_intent, generate_response


def _transactions():
    return pd.DataFrame([
        {'Transaction Date': '2025-05-01', 'Description': 'ACME payroll', 'Amount': 3000.0},
        {'Transaction Date': '2025-05-05', 'Description': 'Dominos Pizza', 'Amount': -60.0},
        {'Transaction Date': '2025-05-09', 'Description': 'Netflix', 'Amount': -15.0},
        {'Transaction Date': '2025-06-01', 'Description': 'ACME payroll', 'Amount': 3000.0},
        {'Transaction Date': '2025-06-04', 'Description': 'Pizza place', 'Amount': -80.0},
        {'Transaction Date': '2025-06-12', 'Description': 'Amazon order', 'Amount': -200.0},
    ])


@pytest.mark.parametrize(
    'question, intent',
    [
        ('hello', 'greeting'),
        ('Hi there', 'greeting'),
        ('thanks!', 'greeting'),
        ('where am I spending too much on food?', 'expense_analysis'),
        ('What are my biggest expenses?', 'expense_analysis'),
        ('give me a summary', 'spending_summary'),
        ('how much did I spend on food?', 'category_spending'),
        ('any savings tips?', 'savings'),
        ('show me the trend', 'trend'),
        ('help me budget', 'budget'),
        ('what about june?', 'time_period'),
        ('compare them', 'comparison'),
        ('tell me about my money', 'general'),
        ('what is the weather', 'default'),
    ],
)
def test_classify_intent_priority(question, intent):
    assert classify_intent(question) == intent


def test_intent_order_is_fixed():
    assert [intent.name for intent in chatbot.INTENTS] == [
        'greeting',
        'expense_analysis',
        'spending_summary',
        'category_spending',
        'savings',
        'trend',
        'budget',
        'time_period',
        'comparison',
        'general',
    ]


def test_greeting_and_default_use_supplied_rng():
    greeting = generate_response('hello', [], rng=random.Random(1))
    assert greeting in chatbot.GREETING_RESPONSES
    fallback = generate_response('what is the weather', [], rng=random.Random(1))
    assert fallback in chatbot.DEFAULT_RESPONSES


def test_spending_summary():
    answer = generate_response('give me a summary', _transactions())
    assert '**Total Expenses:** €355.00' in answer
    assert '**Total Income:** €6,000.00' in answer
    assert '**Average Monthly Spending:** €177.50' in answer
    assert '**Top Category:** Shopping (€200.00)' in answer


def test_category_spending():
    answer = generate_response('how much did I spend on food?', _transactions())
    assert 'Food & Dining & Groceries & Cafe Spending' in answer
    assert '**Total Spent:** €140.00' in answer
    assert '**Number of Transactions:** 2' in answer
    assert '**Average per Transaction:** €70.00' in answer


def test_expense_analysis():
    answer = generate_response('where am I spending too much on food?', _transactions())
    assert 'Where You Might Be Spending Too Much' in answer
    assert 'Shopping: €200.00 (56.3%)' in answer
    assert '**Largest Single Expense:** €200.00' in answer
    assert 'Amazon order' in answer
    assert '2025-06-12' in answer


def test_savings_advice_includes_capacity():
    answer = generate_response('any savings tips?', _transactions())
    assert '**Focus Area:** Shopping (€200.00)' in answer
    assert 'Create a 24-hour waiting period' in answer
    assert 'Suggested Monthly Saving' in answer


def test_trend_and_comparison():
    trend = generate_response('show me the trend', _transactions())
    assert '**May 2025:** €75.00' in trend
    assert '**June 2025:** €280.00' in trend
    assert 'Spending increased by €205.00' in trend

    comparison = generate_response('compare them', _transactions())
    assert '**Increase:** €205.00' in comparison


def test_time_period_for_named_month():
    answer = generate_response('what about june?', _transactions())
    assert 'June 2025 Analysis' in answer
    assert '**Total Spending:** €280.00' in answer
    assert '**Number of Transactions:** 2' in answer


def test_budget_advice_divides_by_month_count():
    answer = generate_response('help me budget', _transactions())
    assert '**Monthly Income:** €3,000.00' in answer
    assert '**Monthly Expenses:** €177.50' in answer


def test_answers_without_data_do_not_fail():
    assert generate_response('give me a summary', []) == chatbot.NO_DATA_MESSAGE
    assert 'at least 2 months' in generate_response('show me the trend', [])
    assert 'at least 2 months' in generate_response('compare them', [])
    assert "don't have enough" in generate_response('where do I spend?', [])
    assert 'different time periods' in generate_response('what about june?', [])
    assert generate_response('help me budget', None).startswith('💰 **Budget Recommendations**')


def test_monthly_data_can_be_supplied():
    monthly = {'June 2025': {'income': 10, 'expenses': 5}, 'May 2025': {'income': 10, 'expenses': 20}}
    answer = generate_response('compare them', [], monthly)
    assert '**Decrease:** €15.00' in answer
