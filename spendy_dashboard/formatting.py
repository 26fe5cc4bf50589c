"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from typing import Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with thousands separators and two decimals.

    Args:
        amount: The amount to format
        include_sign: Whether to prefix the currency symbol

    Returns:
        Formatted currency string (e.g., "€1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '€1,234.56'
        >>> format_currency(-12.5)
        '-€12.50'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}{CURRENCY_SYMBOL}{formatted}" if include_sign else f"{prefix}{formatted}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Render a percentage value without the trailing percent sign.

    >>> format_percentage(120)
    '120.0'
    """
    return f"{value:.{decimals}f}"
