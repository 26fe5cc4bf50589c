"""Keyword-based transaction categorization.

Transactions are labelled by walking an ordered table of rules and returning
the category of the first rule with a keyword contained in the lower-cased
description. Rule order is significant: a description such as
``"Pizza night + Netflix"`` matches both the dining and the entertainment
rules and resolves to the earlier one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

FOOD_AND_DINING = 'Food & Dining'
ENTERTAINMENT = 'Entertainment'
SHOPPING = 'Shopping'
TRANSPORT = 'Transport'
GROCERIES_AND_CAFE = 'Groceries & Cafe'
HOUSING = 'Housing'
SERVICES = 'Services'
FEES = 'Fees'
TRANSFERS = 'Transfers'
REFUNDS = 'Refunds'
INCOME = 'Income'
OTHER = 'Other'

CATEGORY_LABELS: Tuple[str, ...] = (
    FOOD_AND_DINING,
    ENTERTAINMENT,
    SHOPPING,
    TRANSPORT,
    GROCERIES_AND_CAFE,
    HOUSING,
    SERVICES,
    FEES,
    TRANSFERS,
    REFUNDS,
    INCOME,
    OTHER,
)


@dataclass(frozen=True)
class CategoryRule:
    """A rule assigning ``category`` when any keyword occurs in a description."""
    category: str
    keywords: Tuple[str, ...]

    def matches(self, description: str) -> bool:
        return any(keyword in description for keyword in self.keywords)


# Authoritative rule table. Keywords are stored lower-case.
CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(FOOD_AND_DINING, ('mcdonald', 'dpz', 'domino', 'pizza')),
    CategoryRule(ENTERTAINMENT, ('netflix', 'spotify', 'concert', 'cinema')),
    CategoryRule(SHOPPING, ('bookstore', 'amazon', 'amzn', 'tech store', 'zara', 'google')),
    CategoryRule(TRANSPORT, ('parking', 'garage')),
    CategoryRule(GROCERIES_AND_CAFE, ('lidl', 'local deli', 'starbucks')),
    CategoryRule(INCOME, ('payroll', 'acme')),
    CategoryRule(REFUNDS, ('refund',)),
    CategoryRule(HOUSING, ('rent', 'monthlyren')),
    CategoryRule(TRANSFERS, ('revolut', 'p2p')),
    CategoryRule(SERVICES, ('malta post',)),
    CategoryRule(FEES, ('fx fee', 'conv to')),
)


def matching_rule(description: Any) -> Optional[CategoryRule]:
    """Return the first rule matching ``description``, or None."""
    if not isinstance(description, str) or not description:
        return None
    desc = description.lower()
    for rule in CATEGORY_RULES:
        if rule.matches(desc):
            return rule
    return None


def categorize(description: Any) -> str:
    """Map a free-text transaction description to a category label.

    Args:
        description: Raw description text. Non-string values are treated as
            an empty description.

    Returns:
        One of :data:`CATEGORY_LABELS`; ``'Other'`` when no rule matches.

    Example:
        >>> categorize('DOMINOS PIZZA 123')
        'Food & Dining'
        >>> categorize('Corner kiosk')
        'Other'
    """
    rule = matching_rule(description)
    return rule.category if rule else OTHER


def categorize_series(descriptions: pd.Series) -> pd.Series:
    """Vectorised :func:`categorize` over a Series of descriptions."""
    if descriptions.empty:
        return pd.Series(dtype=object, index=descriptions.index)
    return descriptions.map(categorize)


def rules_by_category() -> Dict[str, List[str]]:
    """Return the keyword lists grouped by category, in rule order."""
    grouped: Dict[str, List[str]] = {}
    for rule in CATEGORY_RULES:
        grouped.setdefault(rule.category, []).extend(rule.keywords)
    return grouped
