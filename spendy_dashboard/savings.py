"""Savings capacity estimation and savings-amount suggestions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional

import numpy as np

from .monthly import MonthlyDataLike, coerce_monthly_data, to_float

logger = logging.getLogger(__name__)

CONSERVATIVE_SHARE = 0.30
AGGRESSIVE_SHARE = 0.70
CONSERVATIVE_INCOME_CAP = 0.10
AGGRESSIVE_INCOME_CAP = 0.20


@dataclass
class SavingsCapacity:
    """Average monthly income, spending and surplus over a set of months."""
    avg_income: float = 0.0
    avg_expenses: float = 0.0
    avg_savings: float = 0.0
    category_averages: Dict[str, float] = field(default_factory=dict)
    savings_rate: float = np.nan
    month_count: int = 0

    @property
    def has_savings_rate(self) -> bool:
        return bool(np.isfinite(self.savings_rate))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'avgIncome': self.avg_income,
            'avgExpenses': self.avg_expenses,
            'avgSavings': self.avg_savings,
            'categoryAverages': dict(self.category_averages),
            'savingsRate': self.savings_rate if self.has_savings_rate else None,
        }


@dataclass
class SavingsSuggestion:
    conservative: float
    aggressive: float
    available: float
    current_savings: float


def calculate_savings_capacity(monthly_data: MonthlyDataLike) -> SavingsCapacity:
    """Average the months in ``monthly_data`` into a :class:`SavingsCapacity`.

    Every month present counts, so callers wanting a recent window must
    filter before aggregating. Category averages divide by the total month
    count; a month without spending in a category counts as zero.

    ``savings_rate`` is NaN when average income is zero.
    """
    data = coerce_monthly_data(monthly_data)
    month_count = len(data)
    if month_count == 0:
        return SavingsCapacity()

    total_income = sum(summary.income for summary in data.values())
    total_expenses = sum(summary.expenses for summary in data.values())
    category_totals: Dict[str, float] = {}
    for summary in data.values():
        for category, amount in summary.categories.items():
            category_totals[category] = category_totals.get(category, 0.0) + amount

    avg_income = total_income / month_count
    avg_expenses = total_expenses / month_count
    avg_savings = avg_income - avg_expenses
    savings_rate = avg_savings / avg_income * 100 if avg_income else np.nan

    return SavingsCapacity(
        avg_income=avg_income,
        avg_expenses=avg_expenses,
        avg_savings=avg_savings,
        category_averages={
            category: total / month_count for category, total in category_totals.items()
        },
        savings_rate=savings_rate,
        month_count=month_count,
    )


def committed_goal_amount(goals: Optional[Iterable[Any]]) -> float:
    """Sum the monthly contributions already committed to ``goals``.

    Goals may be :class:`goals.SavingsGoal` objects or mappings with a
    ``monthly_amount``/``monthlyAmount`` entry; unusable amounts count as 0.
    """
    total = 0.0
    for goal in goals or ():
        if isinstance(goal, dict):
            raw = goal.get('monthly_amount', goal.get('monthlyAmount'))
        else:
            raw = getattr(goal, 'monthly_amount', None)
        amount = to_float(raw)
        if amount is None:
            logger.debug("Ignoring goal with unusable monthly amount %r", raw)
            continue
        total += amount
    return total


def suggest_savings_amount(
    capacity: SavingsCapacity,
    goals: Optional[Iterable[Any]] = None,
    *,
    conservative_share: float = CONSERVATIVE_SHARE,
    aggressive_share: float = AGGRESSIVE_SHARE,
    conservative_income_cap: float = CONSERVATIVE_INCOME_CAP,
    aggressive_income_cap: float = AGGRESSIVE_INCOME_CAP,
) -> SavingsSuggestion:
    """Suggest a monthly amount for a new savings goal.

    The surplus left after existing goal contributions is split into a
    conservative and an aggressive share, each capped at a fraction of
    average income.

    Args:
        capacity: Result of :func:`calculate_savings_capacity`
        goals: Goals whose monthly contributions are already committed
        conservative_share: Fraction of the available surplus for the
            conservative suggestion
        aggressive_share: Fraction of the available surplus for the
            aggressive suggestion
        conservative_income_cap: Conservative ceiling as a fraction of income
        aggressive_income_cap: Aggressive ceiling as a fraction of income

    Returns:
        SavingsSuggestion whose ``conservative``, ``aggressive`` and
        ``available`` values are never negative
    """
    avg_income = _finite_or_zero(capacity.avg_income)
    avg_savings = _finite_or_zero(capacity.avg_savings)

    available = max(0.0, avg_savings - committed_goal_amount(goals))
    conservative = min(available * conservative_share, avg_income * conservative_income_cap)
    aggressive = min(available * aggressive_share, avg_income * aggressive_income_cap)

    return SavingsSuggestion(
        conservative=max(0.0, conservative),
        aggressive=max(0.0, aggressive),
        available=available,
        current_savings=avg_savings,
    )


def adjust_capacity(capacity: SavingsCapacity, selected_cutbacks: Iterable[Any]) -> SavingsCapacity:
    """Return a capacity with the chosen cutbacks applied.

    Each cutback lowers the average expenses and its category average by its
    ``potential_savings``. When several cutbacks target the same category only
    the largest one counts, since they are alternative steps for that category.
    """
    best: Dict[str, float] = {}
    for cutback in selected_cutbacks or ():
        category = getattr(cutback, 'category', None)
        savings = to_float(getattr(cutback, 'potential_savings', None))
        if category is None or savings is None or savings <= 0:
            continue
        best[category] = max(best.get(category, 0.0), savings)

    if not best:
        return replace(capacity, category_averages=dict(capacity.category_averages))

    total_reduction = sum(best.values())
    category_averages = dict(capacity.category_averages)
    for category, savings in best.items():
        if category in category_averages:
            category_averages[category] = max(0.0, category_averages[category] - savings)

    avg_expenses = max(0.0, capacity.avg_expenses - total_reduction)
    avg_savings = capacity.avg_income - avg_expenses
    savings_rate = avg_savings / capacity.avg_income * 100 if capacity.avg_income else np.nan
    return replace(
        capacity,
        avg_expenses=avg_expenses,
        avg_savings=avg_savings,
        category_averages=category_averages,
        savings_rate=savings_rate,
    )


def _finite_or_zero(value: float) -> float:
    number = to_float(value)
    return number if number is not None and math.isfinite(number) else 0.0
