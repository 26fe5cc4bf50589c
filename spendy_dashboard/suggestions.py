"""Cutback and pattern-based ("smart") savings suggestions.

Cutback suggestions propose flat percentage reductions in the categories
people can usually trim. Smart suggestions come from a pass over individual
transactions looking for repeated small purchases, a weekend spending premium
and late-night spending.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .categorizer import (
    ENTERTAINMENT,
    FOOD_AND_DINING,
    GROCERIES_AND_CAFE,
    SHOPPING,
    TRANSPORT,
    categorize,
)
from .data_processing import (
    ABS_AMOUNT_COL,
    DATE_COL,
    DESCRIPTION_COL,
    TransactionsLike,
    debit_rows,
    prepare_transactions,
    valid_transactions,
)
from .formatting import format_currency
from .monthly import to_float
from .savings import SavingsCapacity

logger = logging.getLogger(__name__)

EASY = 'Easy'
MEDIUM = 'Medium'

CUTBACK_MINIMUM_AVERAGE = 50.0
CUTBACK_STEPS: Tuple[float, ...] = (0.10, 0.15, 0.20)

SMALL_PURCHASE_MIN_COUNT = 3
SMALL_PURCHASE_MAX_AVERAGE = 25.0
SMALL_PURCHASE_SAVINGS_SHARE = 0.3
WEEKEND_PREMIUM_PERCENT = 20.0
WEEKEND_SAVINGS_SHARE = 0.4
LATE_NIGHT_START_HOUR = 21
LATE_NIGHT_END_HOUR = 2
LATE_NIGHT_SAVINGS_SHARE = 0.6


@dataclass(frozen=True)
class FlexibleCategory:
    max_reduction: float
    difficulty: str
    tips: Tuple[str, ...]


FLEXIBLE_CATEGORIES: Dict[str, FlexibleCategory] = {
    FOOD_AND_DINING: FlexibleCategory(
        0.25, EASY,
        ('Cook more meals at home', 'Reduce takeout frequency', 'Use meal planning'),
    ),
    ENTERTAINMENT: FlexibleCategory(
        0.30, EASY,
        ('Find free activities', 'Use streaming services instead of cinema', 'Look for discounts'),
    ),
    SHOPPING: FlexibleCategory(
        0.40, MEDIUM,
        ('Create a shopping list', 'Wait 24 hours before purchases', 'Compare prices online'),
    ),
    GROCERIES_AND_CAFE: FlexibleCategory(
        0.15, EASY,
        ('Buy generic brands', 'Use coupons', 'Avoid impulse buys'),
    ),
    TRANSPORT: FlexibleCategory(
        0.20, MEDIUM,
        ('Use public transport', 'Walk or bike when possible', 'Carpool'),
    ),
}


@dataclass
class CutbackSuggestion:
    category: str
    current_amount: float
    reduction_percentage: float
    potential_savings: float
    new_amount: float
    annual_savings: float
    difficulty: str
    tips: List[str] = field(default_factory=list)


@dataclass
class SmartSuggestion:
    type: str
    title: str
    description: str
    potential_savings: float
    difficulty: str
    category: str
    action_items: List[str] = field(default_factory=list)


@dataclass
class SmallPurchasePattern:
    description: str
    frequency: int
    avg_amount: float
    total: float
    category: str


@dataclass
class SpendingPatterns:
    """Result of :func:`analyze_spending_patterns`."""
    frequent_small_purchases: List[SmallPurchasePattern] = field(default_factory=list)
    weekend_premium: float = 0.0
    weekend_excess: float = 0.0
    late_night_spending: float = 0.0


def reduction_steps(max_reduction: float) -> List[float]:
    """Return the reduction fractions offered for a category.

    >>> reduction_steps(0.15)
    [0.1, 0.15]
    """
    steps = [step for step in CUTBACK_STEPS + (max_reduction,) if step <= max_reduction]
    return sorted(set(steps))


def generate_cutback_suggestions(
    category_averages: Mapping[str, Any],
    capacity: Optional[SavingsCapacity] = None,
) -> List[CutbackSuggestion]:
    """Propose percentage cutbacks in flexible categories.

    Only categories averaging more than 50 a month are considered. Each gets
    one suggestion per reduction step up to its maximum reduction. The result
    is sorted by ``potential_savings``, highest first.
    """
    suggestions: List[CutbackSuggestion] = []
    for category, raw_amount in (category_averages or {}).items():
        info = FLEXIBLE_CATEGORIES.get(category)
        amount = to_float(raw_amount)
        if info is None or amount is None or amount <= CUTBACK_MINIMUM_AVERAGE:
            continue
        for step in reduction_steps(info.max_reduction):
            potential_savings = amount * step
            suggestions.append(
                CutbackSuggestion(
                    category=category,
                    current_amount=amount,
                    reduction_percentage=round(step * 100, 6),
                    potential_savings=potential_savings,
                    new_amount=amount - potential_savings,
                    annual_savings=potential_savings * 12,
                    difficulty=info.difficulty,
                    tips=list(info.tips),
                )
            )
    suggestions.sort(key=lambda suggestion: suggestion.potential_savings, reverse=True)
    return suggestions


def analyze_spending_patterns(transactions: TransactionsLike) -> SpendingPatterns:
    """Scan debit transactions for frequency and timing patterns.

    * Frequent small purchases: debits grouped by case-folded description,
      with at least three purchases averaging under 25.
    * Weekend premium: relative difference between the mean weekend and the
      mean weekday transaction, and the excess it represents.
    * Late-night spending: total of debits time-stamped at 21:00 or later or
      at 02:59 or earlier. When no debit carries a time of day (a date-only
      export) the check is skipped; otherwise a 00:00 purchase counts.
    """
    patterns = SpendingPatterns()
    frame = debit_rows(valid_transactions(prepare_transactions(transactions)))
    if frame.empty:
        return patterns

    merchants = frame[DESCRIPTION_COL].str.lower()
    grouped = frame.groupby(merchants, sort=False)[ABS_AMOUNT_COL].agg(['count', 'sum'])
    for merchant, row in grouped.iterrows():
        count = int(row['count'])
        if count < SMALL_PURCHASE_MIN_COUNT:
            continue
        avg_amount = row['sum'] / count
        if avg_amount < SMALL_PURCHASE_MAX_AVERAGE:
            patterns.frequent_small_purchases.append(
                SmallPurchasePattern(
                    description=merchant,
                    frequency=count,
                    avg_amount=float(avg_amount),
                    total=float(row['sum']),
                    category=categorize(merchant),
                )
            )

    dates = frame[DATE_COL]
    is_weekend = dates.dt.dayofweek >= 5
    weekend = frame.loc[is_weekend, ABS_AMOUNT_COL]
    weekday = frame.loc[~is_weekend, ABS_AMOUNT_COL]
    avg_weekday = float(weekday.mean()) if not weekday.empty else 0.0
    avg_weekend = float(weekend.mean()) if not weekend.empty else 0.0
    if avg_weekday > 0:
        patterns.weekend_premium = (avg_weekend - avg_weekday) / avg_weekday * 100
        patterns.weekend_excess = max(0.0, avg_weekend - avg_weekday) * len(weekend)

    if (dates != dates.dt.normalize()).any():
        hours = dates.dt.hour
        late = (hours >= LATE_NIGHT_START_HOUR) | (hours <= LATE_NIGHT_END_HOUR)
        patterns.late_night_spending = float(frame.loc[late, ABS_AMOUNT_COL].sum())
    return patterns


def generate_smart_suggestions(
    category_averages: Optional[Mapping[str, Any]],
    transactions: TransactionsLike,
) -> List[SmartSuggestion]:
    """Turn spending patterns into suggestions, highest saving first.

    The transactions are used as given; pass a recent window (see
    :func:`monthly.filter_recent_months`) for the totals to read as monthly
    figures.
    """
    patterns = analyze_spending_patterns(transactions)
    suggestions: List[SmartSuggestion] = []

    for pattern in patterns.frequent_small_purchases:
        suggestions.append(
            SmartSuggestion(
                type='frequency',
                title=f"Reduce {pattern.description} purchases",
                description=(
                    f"You make {pattern.frequency} small purchases averaging "
                    f"{format_currency(pattern.avg_amount)}"
                ),
                potential_savings=pattern.total * SMALL_PURCHASE_SAVINGS_SHARE,
                difficulty=EASY,
                category=pattern.category,
                action_items=[
                    'Set a weekly budget for small purchases',
                    'Use a spending tracker app',
                    'Consider bulk buying',
                ],
            )
        )

    if patterns.weekend_premium > WEEKEND_PREMIUM_PERCENT:
        suggestions.append(
            SmartSuggestion(
                type='timing',
                title='Reduce weekend premium spending',
                description=f"You spend {patterns.weekend_premium:.0f}% more on weekends",
                potential_savings=patterns.weekend_excess * WEEKEND_SAVINGS_SHARE,
                difficulty=MEDIUM,
                category=ENTERTAINMENT,
                action_items=[
                    'Plan weekend activities in advance',
                    'Set a weekend spending limit',
                    'Find free weekend activities',
                ],
            )
        )

    if patterns.late_night_spending > 0:
        suggestions.append(
            SmartSuggestion(
                type='timing',
                title='Avoid late-night impulse purchases',
                description=(
                    f"Late-night purchases account for "
                    f"{format_currency(patterns.late_night_spending)} monthly"
                ),
                potential_savings=patterns.late_night_spending * LATE_NIGHT_SAVINGS_SHARE,
                difficulty=EASY,
                category=SHOPPING,
                action_items=[
                    'Use shopping cart delay features',
                    'Set phone spending limits after 9 PM',
                    'Create a wish list instead of buying immediately',
                ],
            )
        )

    suggestions.sort(key=lambda suggestion: suggestion.potential_savings, reverse=True)
    return suggestions


def total_potential_savings(suggestions: List[Any]) -> float:
    return float(sum(getattr(suggestion, 'potential_savings', 0.0) for suggestion in suggestions))
