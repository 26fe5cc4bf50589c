"""Monthly aggregation of transactions.

Transactions are bucketed by calendar month into income, expense and
per-category totals. Buckets are keyed by a human readable month label
(``"June 2025"``); since those labels do not sort chronologically as strings,
every consumer goes through :func:`sorted_month_keys`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from .data_processing import (
    ABS_AMOUNT_COL,
    CATEGORY_COL,
    DATE_COL,
    IS_DEBIT_COL,
    TransactionsLike,
    prepare_transactions,
    valid_transactions,
)

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)


@dataclass
class MonthSummary:
    """Income, expense and per-category totals for one calendar month."""
    income: float = 0.0
    expenses: float = 0.0
    categories: Dict[str, float] = field(default_factory=dict)

    @property
    def net(self) -> float:
        return self.income - self.expenses

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'MonthSummary':
        """Build a summary from a plain mapping, dropping unusable values."""
        categories: Dict[str, float] = {}
        raw_categories = data.get('categories') or {}
        if isinstance(raw_categories, Mapping):
            for category, amount in raw_categories.items():
                value = to_float(amount)
                if value is None:
                    logger.debug("Ignoring non-numeric amount for category %r", category)
                    continue
                categories[str(category)] = value
        return cls(
            income=to_float(data.get('income')) or 0.0,
            expenses=to_float(data.get('expenses')) or 0.0,
            categories=categories,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'income': self.income,
            'expenses': self.expenses,
            'categories': dict(self.categories),
        }


MonthlyData = Dict[str, MonthSummary]
MonthlyDataLike = Mapping[str, Union[MonthSummary, Mapping[str, Any]]]


def to_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not one."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def month_key(value: Union[datetime, date, pd.Timestamp, pd.Period]) -> str:
    """Return the month label for a date, e.g. ``'June 2025'``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def parse_month_key(key: Any) -> Optional[pd.Timestamp]:
    """Parse a month label back into the first day of that month.

    Labels produced by :func:`month_key` are tried first; other date-like
    strings (``'2025-06'``) are accepted as a fallback. Returns None when the
    key cannot be interpreted as a date.
    """
    if not isinstance(key, str):
        return None
    parsed = pd.to_datetime(key, format='%B %Y', errors='coerce')
    if pd.isna(parsed):
        parsed = pd.to_datetime(key, errors='coerce')
    if pd.isna(parsed):
        return None
    return pd.Timestamp(year=parsed.year, month=parsed.month, day=1)


def sorted_month_keys(monthly_data: Mapping[str, Any]) -> List[str]:
    """Return month keys in chronological order.

    Keys that do not parse as dates are placed first, in insertion order, so
    they never displace a real month as "current".
    """
    indexed = []
    for position, key in enumerate(monthly_data.keys()):
        parsed = parse_month_key(key)
        indexed.append((parsed is not None, parsed or pd.Timestamp.min, position, key))
    indexed.sort(key=lambda item: (item[0], item[1], item[2]))
    return [item[3] for item in indexed]


def latest_months(monthly_data: Mapping[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(current, previous)`` month keys; missing ones are None."""
    months = sorted_month_keys(monthly_data)
    current = months[-1] if months else None
    previous = months[-2] if len(months) > 1 else None
    return current, previous


def coerce_monthly_data(monthly_data: Optional[MonthlyDataLike]) -> MonthlyData:
    """Accept summaries or plain mappings and return ``MonthSummary`` values."""
    result: MonthlyData = {}
    if not monthly_data:
        return result
    for key, value in monthly_data.items():
        if isinstance(value, MonthSummary):
            result[key] = value
        elif isinstance(value, Mapping):
            result[key] = MonthSummary.from_mapping(value)
        else:
            logger.debug("Ignoring month %r with unsupported value %r", key, type(value))
    return result


def aggregate(transactions: TransactionsLike) -> MonthlyData:
    """Group transactions by calendar month into income/expense/category totals.

    Credits add their absolute amount to ``income``. Everything else adds its
    absolute amount to ``expenses`` and to the category assigned by the
    categorizer. Transactions without a valid date are skipped.

    Args:
        transactions: DataFrame, list of ``Transaction`` or list of mappings

    Returns:
        Mapping of month label to :class:`MonthSummary`, inserted in
        chronological order
    """
    frame = valid_transactions(prepare_transactions(transactions))
    monthly: MonthlyData = {}
    if frame.empty:
        return monthly

    periods = frame[DATE_COL].dt.to_period('M')
    for period in sorted(periods.unique()):
        rows = frame[periods == period]
        debits = rows[rows[IS_DEBIT_COL]]
        credits = rows[~rows[IS_DEBIT_COL]]
        by_category = debits.groupby(CATEGORY_COL, sort=False)[ABS_AMOUNT_COL].sum()
        monthly[month_key(period)] = MonthSummary(
            income=float(credits[ABS_AMOUNT_COL].sum()),
            expenses=float(debits[ABS_AMOUNT_COL].sum()),
            categories={str(category): float(amount) for category, amount in by_category.items()},
        )
    return monthly


def filter_recent_months(
    transactions: TransactionsLike,
    months: int = 3,
    end: Optional[Union[str, datetime, pd.Timestamp]] = None,
) -> pd.DataFrame:
    """Keep the transactions of the last ``months`` calendar months.

    Args:
        transactions: Any supported transaction container
        months: Window length in calendar months, counting the latest one
        end: Last month of the window; defaults to the latest transaction

    Returns:
        Prepared transaction frame restricted to the window
    """
    frame = valid_transactions(prepare_transactions(transactions))
    if frame.empty or months <= 0:
        return frame.iloc[0:0]
    periods = frame[DATE_COL].dt.to_period('M')
    last = pd.Timestamp(end).to_period('M') if end is not None else periods.max()
    first = last - (months - 1)
    return frame[(periods >= first) & (periods <= last)].reset_index(drop=True)


def monthly_frame(monthly_data: Optional[MonthlyDataLike]) -> pd.DataFrame:
    """Return a chronological DataFrame with Month, Income, Expenses, Savings."""
    data = coerce_monthly_data(monthly_data)
    rows = [
        {
            'Month': month,
            'Income': data[month].income,
            'Expenses': data[month].expenses,
            'Savings': data[month].net,
        }
        for month in sorted_month_keys(data)
    ]
    return pd.DataFrame(rows, columns=['Month', 'Income', 'Expenses', 'Savings'])
