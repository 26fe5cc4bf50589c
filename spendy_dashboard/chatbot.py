"""Keyword-driven question answering over the user's transactions.

Questions are lower-cased and tested against an ordered list of intents.
The first intent whose predicate matches produces the answer, so the order
of :data:`INTENTS` is a priority list: expense analysis is tried before the
generic spending summary, which catches "where am I spending too much on
food?" before the broader "how much" phrasing does.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .categorizer import (
    ENTERTAINMENT,
    FOOD_AND_DINING,
    GROCERIES_AND_CAFE,
    HOUSING,
    SHOPPING,
    TRANSPORT,
)
from .data_processing import (
    ABS_AMOUNT_COL,
    CATEGORY_COL,
    DATE_COL,
    DESCRIPTION_COL,
    TransactionsLike,
    credit_rows,
    debit_rows,
    prepare_transactions,
    valid_transactions,
)
from .formatting import format_currency
from .monthly import (
    MonthlyData,
    MonthlyDataLike,
    aggregate,
    coerce_monthly_data,
    month_key,
    sorted_month_keys,
)
from .savings import calculate_savings_capacity, suggest_savings_amount

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = (
    "I don't have any transaction data to analyze yet. Please make sure your data is loaded!"
)

GREETING_WORDS = (
    'hi', 'hello', 'hey', 'good morning', 'good afternoon', 'good evening', 'thanks', 'thank you',
)
EXPENSE_ANALYSIS_KEYWORDS = (
    'biggest', 'largest', 'most', 'highest', 'expensive', 'analyze', 'breakdown', 'too much',
    'spending too much', 'overspending', 'where', 'which', 'what category', 'problem areas',
    'wasteful', 'excessive', 'spending patterns', 'where am i spending', 'where do i spend',
    'spending habits',
)
EXPENSE_ANALYSIS_PATTERNS = (
    'where do you think',
    'where am i spending too much',
    'where do i spend too much',
    'am i spending too much',
    'spending too much money',
    'overspending',
)
SUMMARY_KEYWORDS = ('summary', 'overview', 'total', 'spent', 'spending', 'expenses', 'how much')
SUMMARY_EXCLUSIONS = ('category', 'food', 'entertainment')
SAVINGS_KEYWORDS = (
    'save', 'saving', 'savings', 'tips', 'advice', 'recommendations', 'reduce', 'cut',
    'cut down', 'lower my expenses', 'spend less', 'save money', 'reduce spending',
)
TREND_KEYWORDS = ('trend', 'pattern', 'change', 'increase', 'decrease', 'over time', 'month', 'monthly')
BUDGET_KEYWORDS = ('budget', 'budgeting', 'plan', 'planning', 'allocate', 'limit')
TIME_PERIOD_KEYWORDS = ('last month', 'this month', 'april', 'may', 'june', 'week', 'day')
COMPARISON_KEYWORDS = ('compare', 'comparison', 'vs', 'versus', 'difference', 'between')
GENERAL_KEYWORDS = (
    'spending', 'spend', 'money', 'expenses', 'financial', 'finances', 'budget', 'cost',
    'costs', 'bills', 'payments',
)

# Keyword in the question -> categories it refers to; first hit wins
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('food', (FOOD_AND_DINING, GROCERIES_AND_CAFE)),
    ('dining', (FOOD_AND_DINING,)),
    ('entertainment', (ENTERTAINMENT,)),
    ('shopping', (SHOPPING,)),
    ('transport', (TRANSPORT,)),
    ('groceries', (GROCERIES_AND_CAFE,)),
    ('housing', (HOUSING,)),
    ('rent', (HOUSING,)),
)

SAVINGS_TIPS: Dict[str, Tuple[str, ...]] = {
    FOOD_AND_DINING: (
        '🍳 Cook more meals at home instead of dining out',
        '📱 Use food delivery apps less frequently',
        '🥪 Pack lunches for work',
        '🛒 Plan meals and make shopping lists',
    ),
    ENTERTAINMENT: (
        '🎬 Consider subscription sharing with family/friends',
        '🎵 Look for free entertainment options in your area',
        '📚 Use your local library for books, movies, and events',
        '🎮 Wait for sales before buying games or entertainment',
    ),
    SHOPPING: (
        '🛍️ Create a 24-hour waiting period before non-essential purchases',
        '🔍 Compare prices across different retailers',
        '💳 Use cashback apps and browser extensions',
        '📝 Make shopping lists and stick to them',
    ),
    TRANSPORT: (
        '🚗 Consider carpooling or public transportation',
        '🚲 Use bike-sharing or walk for short distances',
        '⛽ Use apps to find cheaper gas stations',
        '🅿️ Look for free parking alternatives',
    ),
    GROCERIES_AND_CAFE: (
        '☕ Make coffee at home instead of buying daily',
        '🛒 Shop with a list and stick to it',
        '🏪 Compare prices at different stores',
        '🥫 Buy generic brands for basics',
    ),
}

# (category group, share of expenses above which it is flagged, issue, suggestion)
CONCERN_RULES = (
    (
        (FOOD_AND_DINING, GROCERIES_AND_CAFE), FOOD_AND_DINING, 25.0,
        'Food spending is quite high',
        'Consider cooking more meals at home and reducing takeout/restaurant visits',
    ),
    (
        (ENTERTAINMENT,), ENTERTAINMENT, 15.0,
        'Entertainment spending is above average',
        'Look for free or low-cost entertainment alternatives',
    ),
    (
        (SHOPPING,), SHOPPING, 20.0,
        'Shopping expenses are quite high',
        'Try implementing a 24-hour wait rule before purchases and create shopping lists',
    ),
)

RANK_MARKERS = ('🥇', '🥈', '🥉', '4️⃣', '5️⃣')

GREETING_RESPONSES = (
    "Hello! I'm here to help you understand your spending better! 😊\n\n"
    "What would you like to know about your finances?",
    "Hi there! Ready to dive into your spending data? I'm here to help! 💰\n\n"
    "Ask me anything about your expenses!",
    "Hey! Great to see you! Let's explore your spending patterns together! 📊\n\n"
    "What can I help you with today?",
)

DEFAULT_RESPONSES = (
    "I'm here to help you understand your spending! Try asking me:\n\n"
    "• 'What's my spending summary?'\n• 'How much did I spend on food?'\n"
    "• 'What are my biggest expenses?'\n• 'Show me my spending trends'\n• 'Give me savings tips'",
    "I can help you analyze your finances! Here are some things you can ask:\n\n"
    "• Category-specific spending questions\n• Monthly comparisons\n• Savings recommendations\n"
    "• Budget advice\n• Expense breakdowns",
    "Let me help you with your finances! I can answer questions about:\n\n"
    "• Your spending patterns\n• Budget recommendations\n• Savings opportunities\n"
    "• Expense categories\n• Monthly trends",
)


class ChatContext:
    """Snapshot of the data one question is answered from."""

    def __init__(
        self,
        transactions: TransactionsLike,
        monthly_data: Optional[MonthlyDataLike] = None,
        goals: Optional[Iterable[Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.frame = valid_transactions(prepare_transactions(transactions))
        self.debits = debit_rows(self.frame)
        self.credits = credit_rows(self.frame)
        if monthly_data is None:
            self.monthly: MonthlyData = aggregate(self.frame)
        else:
            self.monthly = coerce_monthly_data(monthly_data)
        self.months = sorted_month_keys(self.monthly)
        self.goals = list(goals or [])
        self.rng = rng or random.Random()

    @property
    def has_data(self) -> bool:
        return not self.frame.empty

    @property
    def month_count(self) -> int:
        return max(1, len(self.months))

    @property
    def total_expenses(self) -> float:
        return float(self.debits[ABS_AMOUNT_COL].sum()) if not self.debits.empty else 0.0

    @property
    def total_income(self) -> float:
        return float(self.credits[ABS_AMOUNT_COL].sum()) if not self.credits.empty else 0.0

    def category_breakdown(self) -> List[Tuple[str, float]]:
        """Expense totals per category, largest first."""
        if self.debits.empty:
            return []
        totals = self.debits.groupby(CATEGORY_COL, sort=False)[ABS_AMOUNT_COL].sum()
        ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        return [(str(category), float(amount)) for category, amount in ordered]


@dataclass(frozen=True)
class Intent:
    name: str
    matches: Callable[[str], bool]
    respond: Callable[[str, ChatContext], str]


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _share(amount: float, total: float) -> float:
    return amount / total * 100 if total > 0 else 0.0


# Predicates

def is_greeting(text: str) -> bool:
    text = text.strip()
    return any(
        text == word
        or text.startswith(word + ' ')
        or text.endswith(' ' + word)
        or text.startswith(word + '!')
        or text.endswith(' ' + word + '!')
        for word in GREETING_WORDS
    )


def is_expense_analysis_request(text: str) -> bool:
    return _contains_any(text, EXPENSE_ANALYSIS_KEYWORDS) or _contains_any(text, EXPENSE_ANALYSIS_PATTERNS)


def is_spending_summary_request(text: str) -> bool:
    return _contains_any(text, SUMMARY_KEYWORDS) and not _contains_any(text, SUMMARY_EXCLUSIONS)


def is_category_spending_request(text: str) -> bool:
    return any(keyword in text for keyword, _ in CATEGORY_KEYWORDS)


def is_savings_request(text: str) -> bool:
    return _contains_any(text, SAVINGS_KEYWORDS)


def is_trend_request(text: str) -> bool:
    return _contains_any(text, TREND_KEYWORDS)


def is_budget_request(text: str) -> bool:
    return _contains_any(text, BUDGET_KEYWORDS)


def is_time_period_request(text: str) -> bool:
    return _contains_any(text, TIME_PERIOD_KEYWORDS)


def is_comparison_request(text: str) -> bool:
    return _contains_any(text, COMPARISON_KEYWORDS)


def is_specific_request(text: str) -> bool:
    return any(
        predicate(text)
        for predicate in (
            is_spending_summary_request,
            is_category_spending_request,
            is_savings_request,
            is_trend_request,
            is_expense_analysis_request,
            is_budget_request,
            is_time_period_request,
            is_comparison_request,
        )
    )


def is_general_spending_question(text: str) -> bool:
    return _contains_any(text, GENERAL_KEYWORDS) and not is_specific_request(text)


# Responses

def greeting_response(text: str, ctx: ChatContext) -> str:
    return ctx.rng.choice(GREETING_RESPONSES)


def default_response(text: str, ctx: ChatContext) -> str:
    return ctx.rng.choice(DEFAULT_RESPONSES)


def spending_summary(text: str, ctx: ChatContext) -> str:
    if not ctx.has_data:
        return NO_DATA_MESSAGE
    expenses = ctx.total_expenses
    income = ctx.total_income
    avg_monthly = expenses / len(ctx.months) if ctx.months else 0.0
    breakdown = ctx.category_breakdown()

    lines = [
        "💰 **Your Spending Summary**",
        "",
        f"📊 **Total Expenses:** {format_currency(expenses)}",
        f"💵 **Total Income:** {format_currency(income)}",
        f"📈 **Net:** {format_currency(income - expenses)}",
        "",
        f"📅 **Average Monthly Spending:** {format_currency(avg_monthly)}",
    ]
    if breakdown:
        top_category, top_amount = breakdown[0]
        lines.append(f"🏆 **Top Category:** {top_category} ({format_currency(top_amount)})")
    lines += ["", "🔍 Want me to analyze a specific category or time period?"]
    return "\n".join(lines)


def category_spending(text: str, ctx: ChatContext) -> str:
    targets: Tuple[str, ...] = ()
    for keyword, categories in CATEGORY_KEYWORDS:
        if keyword in text:
            targets = categories
            break
    if not targets:
        return (
            "I couldn't identify the category you're asking about. Try asking about: "
            "food, entertainment, shopping, transport, groceries, or housing!"
        )

    if ctx.debits.empty:
        matching = ctx.debits
    else:
        matching = ctx.debits[ctx.debits[CATEGORY_COL].isin(targets)]
    total = float(matching[ABS_AMOUNT_COL].sum()) if not matching.empty else 0.0
    count = len(matching)
    average = total / count if count else 0.0

    return "\n".join([
        f"🏷️ **{' & '.join(targets)} Spending**",
        "",
        f"💸 **Total Spent:** {format_currency(total)}",
        f"📊 **Number of Transactions:** {count}",
        f"💰 **Average per Transaction:** {format_currency(average)}",
        "",
        "💡 Want some tips on how to save money in this category?",
    ])


def savings_advice(text: str, ctx: ChatContext) -> str:
    breakdown = ctx.category_breakdown()
    lines = ["💡 **Personalized Savings Tips**", ""]

    if breakdown:
        top_category, top_amount = breakdown[0]
        lines += [f"🎯 **Focus Area:** {top_category} ({format_currency(top_amount)})", ""]
        if top_category in SAVINGS_TIPS:
            lines += list(SAVINGS_TIPS[top_category]) + [""]
        lines += [
            f"📈 **Potential Monthly Savings:** {format_currency(top_amount * 0.2)} - "
            f"{format_currency(top_amount * 0.4)}",
            "",
        ]

    if ctx.monthly:
        capacity = calculate_savings_capacity(ctx.monthly)
        suggestion = suggest_savings_amount(capacity, ctx.goals)
        lines += [
            f"🏦 **Average Monthly Surplus:** {format_currency(capacity.avg_savings)}",
            f"✅ **Suggested Monthly Saving:** {format_currency(suggestion.conservative)} "
            f"(conservative) to {format_currency(suggestion.aggressive)} (aggressive)",
            "",
        ]

    lines += [
        "🔄 **General Tips:**",
        "• Set up automatic transfers to savings",
        "• Use the 50/30/20 budgeting rule",
        "• Review and cancel unused subscriptions",
        "• Track your spending daily",
        "",
        "Want specific advice for another category?",
    ]
    return "\n".join(lines)


def spending_trends(text: str, ctx: ChatContext) -> str:
    if len(ctx.months) < 2:
        return "I need at least 2 months of data to show you spending trends. Keep tracking your expenses!"

    spending = [(month, ctx.monthly[month].expenses) for month in ctx.months]
    lines = ["📈 **Your Spending Trends**", ""]
    for index, (month, amount) in enumerate(spending):
        line = f"📅 **{month}:** {format_currency(amount)}"
        if index > 0:
            previous = spending[index - 1][1]
            line += _change_note(amount, previous)
        lines.append(line)

    first, last = spending[0][1], spending[-1][1]
    change = last - first
    if change > 0:
        overall = f"Spending increased by {format_currency(change)}"
        if first > 0:
            overall += f" ({change / first * 100:.1f}%)"
    elif change < 0:
        overall = f"Spending decreased by {format_currency(abs(change))}"
        if first > 0:
            overall += f" ({abs(change) / first * 100:.1f}%)"
    else:
        overall = "Spending remained stable"
    lines += ["", f"🎯 **Overall Trend:** {overall}"]
    return "\n".join(lines)


def _change_note(current: float, previous: float) -> str:
    change = current - previous
    if change == 0:
        return " (➡️ No change)"
    percent = f", {change / previous * 100:+.1f}%" if previous > 0 else ""
    if change > 0:
        return f" (⬆️ +{format_currency(change)}{percent})"
    return f" (⬇️ -{format_currency(abs(change))}{percent})"


def expense_analysis(text: str, ctx: ChatContext) -> str:
    breakdown = ctx.category_breakdown()
    total = ctx.total_expenses
    if not breakdown or total <= 0:
        return (
            "I don't have enough transaction data to analyze your spending patterns. "
            "Please make sure your data is loaded!"
        )
    categories = dict(breakdown)

    lines = ["🔍 **Where You Might Be Spending Too Much**", "", "📊 **Your Top Spending Categories:**"]
    for marker, (category, amount) in zip(RANK_MARKERS, breakdown):
        lines.append(f"{marker} {category}: {format_currency(amount)} ({_share(amount, total):.1f}%)")

    lines += ["", "🚨 **Areas of Concern:**"]
    concerns = []
    for group, label, limit, issue, advice in CONCERN_RULES:
        amount = sum(categories.get(category, 0.0) for category in group)
        share = _share(amount, total)
        if share > limit:
            concerns.append((label, amount, share, issue, advice))
    if concerns:
        for label, amount, share, issue, advice in concerns:
            lines.append(f"• **{label}:** {format_currency(amount)} ({share:.1f}%) - {issue}")
            lines += [f"  💡 *Suggestion:* {advice}", ""]
    else:
        lines += ["• Your spending seems well-balanced across categories! 🎉", ""]

    largest = ctx.debits.loc[ctx.debits[ABS_AMOUNT_COL].idxmax()]
    lines += [
        f"💸 **Largest Single Expense:** {format_currency(largest[ABS_AMOUNT_COL])}",
        f"📝 **Description:** {largest[DESCRIPTION_COL]}",
        f"📅 **Date:** {largest[DATE_COL]:%Y-%m-%d}",
        "",
        "🎯 **Overall Assessment:**",
    ]
    if len(concerns) > 2:
        lines.append(
            "You have several areas where you could potentially reduce spending. "
            "Focus on the highest categories first!"
        )
    elif concerns:
        lines.append(
            "You're doing well overall, but there are a few areas where you could optimize your spending."
        )
    else:
        lines.append("Great job! Your spending appears to be well-distributed across categories.")
    return "\n".join(lines)


def budget_advice(text: str, ctx: ChatContext) -> str:
    months = ctx.month_count
    monthly_income = ctx.total_income / months
    monthly_expenses = ctx.total_expenses / months
    breakdown = ctx.category_breakdown()
    category_total = sum(amount for _, amount in breakdown)

    lines = [
        "💰 **Budget Recommendations**",
        "",
        f"📈 **Monthly Income:** {format_currency(monthly_income)}",
        f"📉 **Monthly Expenses:** {format_currency(monthly_expenses)}",
        f"💵 **Net Monthly:** {format_currency(monthly_income - monthly_expenses)}",
        "",
        "🎯 **50/30/20 Rule Breakdown:**",
        f"• **Needs (50%):** {format_currency(monthly_income * 0.5)}",
        f"• **Wants (30%):** {format_currency(monthly_income * 0.3)}",
        f"• **Savings (20%):** {format_currency(monthly_income * 0.2)}",
        "",
        "📊 **Suggested Monthly Category Budgets:**",
    ]
    for category, amount in breakdown:
        lines.append(
            f"• **{category}:** {format_currency(amount / months)} ({_share(amount, category_total):.1f}%)"
        )
    return "\n".join(lines)


def time_period_analysis(text: str, ctx: ChatContext) -> str:
    month = _requested_month(text, ctx.months)
    if month is None:
        return (
            "I can analyze your spending for different time periods! "
            "Try asking about 'last month' or 'this month'."
        )

    rows = ctx.debits
    if not rows.empty:
        rows = rows[rows[DATE_COL].map(month_key) == month]
    count = len(rows)
    spending = ctx.monthly[month].expenses
    average = spending / count if count else 0.0
    return "\n".join([
        f"📅 **{month} Analysis**",
        "",
        f"💸 **Total Spending:** {format_currency(spending)}",
        f"📊 **Number of Transactions:** {count}",
        f"💰 **Average Transaction:** {format_currency(average)}",
        "",
        "Want me to break this down by category?",
    ])


def _requested_month(text: str, months: List[str]) -> Optional[str]:
    if not months:
        return None
    if 'last month' in text or 'previous month' in text:
        return months[-2] if len(months) > 1 else None
    if 'this month' in text:
        return months[-1]
    for month in reversed(months):
        name = month.split(' ')[0].lower()
        if name in text:
            return month
    return None


def comparison_analysis(text: str, ctx: ChatContext) -> str:
    if len(ctx.months) < 2:
        return "I need at least 2 months of data to make comparisons. Keep tracking your expenses!"
    previous_month, latest_month = ctx.months[-2], ctx.months[-1]
    previous = ctx.monthly[previous_month].expenses
    latest = ctx.monthly[latest_month].expenses
    change = latest - previous
    percent = f" ({abs(change) / previous * 100:.1f}%)" if previous > 0 else ""

    lines = [
        "📊 **Month-to-Month Comparison**",
        "",
        f"📅 **{previous_month}:** {format_currency(previous)}",
        f"📅 **{latest_month}:** {format_currency(latest)}",
        "",
    ]
    if change > 0:
        lines += [
            f"📈 **Increase:** {format_currency(change)}{percent}",
            "💡 **Tip:** Your spending increased. Consider reviewing your recent purchases!",
        ]
    elif change < 0:
        lines += [
            f"📉 **Decrease:** {format_currency(abs(change))}{percent}",
            "🎉 **Great job:** You've reduced your spending! Keep it up!",
        ]
    else:
        lines.append("➡️ **No change:** Your spending remained consistent.")
    return "\n".join(lines)


def general_spending_analysis(text: str, ctx: ChatContext) -> str:
    if not ctx.has_data:
        return NO_DATA_MESSAGE
    expenses = ctx.total_expenses
    income = ctx.total_income
    avg_monthly = expenses / ctx.month_count
    breakdown = ctx.category_breakdown()
    balance = 'Positive' if income > expenses else 'Negative'

    lines = [
        "💰 **Your Spending Overview**",
        "",
        f"📊 **Total Spending:** {format_currency(expenses)}",
        f"📈 **Monthly Average:** {format_currency(avg_monthly)}",
        f"💵 **Income vs Expenses:** {balance} ({format_currency(income - expenses)})",
        "",
        "🏆 **Top 3 Spending Categories:**",
    ]
    for marker, (category, amount) in zip(RANK_MARKERS[:3], breakdown):
        lines.append(f"{marker} {category}: {format_currency(amount)} ({_share(amount, expenses):.1f}%)")

    lines += ["", "💡 **Quick Insights:**", f"• You spend about {format_currency(avg_monthly / 30)} per day on average"]
    if breakdown:
        lines.append(f"• Your biggest expense category is {breakdown[0][0]}")
    lines += [
        f"• You have {len(breakdown)} different spending categories",
        "",
        "🔍 Want me to dive deeper into any specific area? Just ask!",
    ]
    return "\n".join(lines)


INTENTS: Tuple[Intent, ...] = (
    Intent('greeting', is_greeting, greeting_response),
    Intent('expense_analysis', is_expense_analysis_request, expense_analysis),
    Intent('spending_summary', is_spending_summary_request, spending_summary),
    Intent('category_spending', is_category_spending_request, category_spending),
    Intent('savings', is_savings_request, savings_advice),
    Intent('trend', is_trend_request, spending_trends),
    Intent('budget', is_budget_request, budget_advice),
    Intent('time_period', is_time_period_request, time_period_analysis),
    Intent('comparison', is_comparison_request, comparison_analysis),
    Intent('general', is_general_spending_question, general_spending_analysis),
)
DEFAULT_INTENT = Intent('default', lambda text: True, default_response)


def normalize_question(text: Any) -> str:
    return str(text or '').lower().strip()


def classify_intent(text: Any) -> str:
    """Return the name of the intent that would answer ``text``.

    >>> classify_intent('where am I spending too much on food?')
    'expense_analysis'
    """
    return _match_intent(normalize_question(text)).name


def _match_intent(question: str) -> Intent:
    for intent in INTENTS:
        if intent.matches(question):
            return intent
    return DEFAULT_INTENT


def generate_response(
    text: Any,
    transactions: TransactionsLike,
    monthly_data: Optional[MonthlyDataLike] = None,
    *,
    goals: Optional[Iterable[Any]] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Answer a free-text question about the user's spending.

    Args:
        text: The user's question
        transactions: Transactions the answer is computed from
        monthly_data: Monthly aggregates of ``transactions``; computed when omitted
        goals: Existing savings goals, used by the savings advice
        rng: Random source for the greeting and fallback replies

    Returns:
        A Markdown-formatted answer
    """
    question = normalize_question(text)
    intent = _match_intent(question)
    logger.debug("Routing question %r to intent %s", question, intent.name)
    ctx = ChatContext(transactions, monthly_data, goals=goals, rng=rng)
    return intent.respond(question, ctx)
