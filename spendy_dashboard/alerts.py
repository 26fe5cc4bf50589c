"""Rule-based financial alerts.

The engine compares the latest month of aggregated data with the previous
month and with the long-run average, and emits alerts for budget overruns,
category spikes, unusual total spending, low savings and income drops.

Each check is switched on or off by the user's :class:`AlertPreferences` and
guards its own preconditions, so a missing previous month or a category with
an unusable value only removes the alerts that depend on it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import preferences as prefs
from .formatting import format_currency, format_percentage
from .monthly import (
    MonthSummary,
    MonthlyData,
    MonthlyDataLike,
    coerce_monthly_data,
    latest_months,
)
from .preferences import AlertPreferences

logger = logging.getLogger(__name__)

CATEGORY_SPIKE_PERCENT = 50.0
UNUSUAL_SPENDING_PERCENT = 25.0
UNUSUAL_SPENDING_MINIMUM = 1000.0
LOW_SAVINGS_RATE_PERCENT = 10.0
INCOME_DROP_PERCENT = -20.0


class AlertType(str, Enum):
    BUDGET_WARNING = 'budget_warning'
    BUDGET_EXCEEDED = 'budget_exceeded'
    UNUSUAL_SPENDING = 'unusual_spending'
    CATEGORY_SPIKE = 'category_spike'
    INCOME_DROP = 'income_drop'
    SAVINGS_OPPORTUNITY = 'savings_opportunity'


class Severity(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self]


SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


@dataclass
class Alert:
    """A single alert produced by one engine run."""
    id: str
    timestamp: datetime
    type: AlertType
    severity: Severity
    title: str
    message: str
    month: str
    category: Optional[str] = None
    value: Optional[float] = None
    threshold: Optional[float] = None
    percentage: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'type': self.type.value,
            'severity': self.severity.value,
            'title': self.title,
            'message': self.message,
            'month': self.month,
            'category': self.category,
            'value': self.value,
            'threshold': self.threshold,
            'percentage': self.percentage,
        }
        payload.update(self.details)
        return payload


def alert_id(alert_type: AlertType, month: str, category: Optional[str] = None) -> str:
    """Return the stable identifier of an alert.

    The id depends only on what the alert is about, so a dismissal recorded
    against it survives regeneration of the alert list.

    >>> alert_id(AlertType.BUDGET_EXCEEDED, 'June 2025', 'Entertainment')
    'budget_exceeded:June 2025:Entertainment'
    """
    parts = [alert_type.value, month]
    if category:
        parts.append(category)
    return ':'.join(parts)


def rank_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Sort alerts by descending severity, keeping emission order for ties."""
    return sorted(alerts, key=lambda alert: -alert.severity.weight)


def filter_dismissed(alerts: Iterable[Alert], preferences: AlertPreferences) -> List[Alert]:
    """Drop alerts the user has dismissed."""
    return [alert for alert in alerts if not preferences.is_alert_dismissed(alert.id)]


class AlertEngine:
    """Evaluates one snapshot of monthly data against alert preferences."""

    def __init__(
        self,
        monthly_data: MonthlyDataLike,
        transactions: Any = None,
        preferences: Optional[AlertPreferences] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.monthly_data: MonthlyData = coerce_monthly_data(monthly_data)
        self.transactions = transactions
        self.preferences = preferences if preferences is not None else AlertPreferences()
        self.clock = clock or datetime.now
        self.alerts: List[Alert] = []

    def generate_alerts(self) -> List[Alert]:
        """Run every enabled check and return the ranked alerts."""
        self.alerts = []
        current_month, previous_month = latest_months(self.monthly_data)
        if current_month is None:
            return []
        current = self.monthly_data[current_month]
        previous = self.monthly_data.get(previous_month) if previous_month else None

        self.check_budget_alerts(current_month, current)
        self.check_category_spikes(current_month, current, previous)
        self.check_unusual_spending(current_month, current)
        self.check_savings_opportunities(current_month, current)
        self.check_income_changes(current_month, current, previous)

        return rank_alerts(self.alerts)

    def _setting(self, name: str) -> Any:
        return self.preferences.get_alert_setting(name)

    def check_budget_alerts(self, month: str, data: MonthSummary) -> None:
        if not self._setting(prefs.BUDGET_EXCEEDED_ENABLED):
            return
        warning_threshold = self._setting(prefs.BUDGET_WARNING_THRESHOLD)

        for category, spent in data.categories.items():
            budget = self.preferences.get_budget_threshold(category)
            percentage = _ratio_percent(spent, budget)
            if percentage is None:
                logger.debug("No usable budget for %s (%r), skipping", category, budget)
                continue

            if percentage >= 100:
                self._add_alert(
                    AlertType.BUDGET_EXCEEDED,
                    Severity.CRITICAL,
                    month,
                    title=f"{category} Budget Exceeded!",
                    message=(
                        f"You've spent {format_currency(spent)} on {category} this month, "
                        f"which is {percentage:.0f}% of your {format_currency(budget)} budget."
                    ),
                    category=category,
                    value=spent,
                    threshold=budget,
                    percentage=format_percentage(percentage),
                )
            elif percentage >= warning_threshold:
                self._add_alert(
                    AlertType.BUDGET_WARNING,
                    Severity.HIGH,
                    month,
                    title=f"{category} Budget Alert",
                    message=(
                        f"You've spent {percentage:.0f}% of your {category} budget this month "
                        f"({format_currency(spent)} of {format_currency(budget)})."
                    ),
                    category=category,
                    value=spent,
                    threshold=budget,
                    percentage=format_percentage(percentage),
                )

    def check_category_spikes(
        self,
        month: str,
        current: MonthSummary,
        previous: Optional[MonthSummary],
    ) -> None:
        if previous is None or not self._setting(prefs.CATEGORY_SPIKES_ENABLED):
            return
        minimum = self._setting(prefs.MINIMUM_SPENDING_FOR_ALERTS)

        for category, current_spent in current.categories.items():
            previous_spent = previous.categories.get(category, 0.0)
            if not (previous_spent > 0 and current_spent > minimum):
                continue
            increase = _change_percent(current_spent, previous_spent)
            if increase is None or increase <= CATEGORY_SPIKE_PERCENT:
                continue
            self._add_alert(
                AlertType.CATEGORY_SPIKE,
                Severity.MEDIUM,
                month,
                title=f"{category} Spending Spike",
                message=(
                    f"Your {category} spending increased by {increase:.0f}% compared to last month "
                    f"({format_currency(current_spent)} vs {format_currency(previous_spent)})."
                ),
                category=category,
                value=current_spent,
                percentage=format_percentage(increase),
                details={'previous_value': previous_spent, 'increase': format_percentage(increase)},
            )

    def check_unusual_spending(self, month: str, data: MonthSummary) -> None:
        if not self._setting(prefs.UNUSUAL_SPENDING_ENABLED):
            return
        average = self.average_monthly_spending()
        if average <= 0:
            return
        difference = _change_percent(data.expenses, average)
        if difference is None:
            return
        if difference > UNUSUAL_SPENDING_PERCENT and data.expenses > UNUSUAL_SPENDING_MINIMUM:
            self._add_alert(
                AlertType.UNUSUAL_SPENDING,
                Severity.MEDIUM,
                month,
                title='Unusual Spending Pattern',
                message=(
                    f"Your total spending this month ({format_currency(data.expenses)}) is "
                    f"{difference:.0f}% higher than your average ({format_currency(average)})."
                ),
                value=data.expenses,
                percentage=format_percentage(difference),
                details={'average': average, 'difference': format_percentage(difference)},
            )

    def check_savings_opportunities(self, month: str, data: MonthSummary) -> None:
        if not self._setting(prefs.SAVINGS_OPPORTUNITIES_ENABLED):
            return
        if data.income <= 0:
            return
        savings_rate = (data.income - data.expenses) / data.income * 100
        if savings_rate < LOW_SAVINGS_RATE_PERCENT:
            self._add_alert(
                AlertType.SAVINGS_OPPORTUNITY,
                Severity.LOW,
                month,
                title='Low Savings Rate',
                message=(
                    f"You're only saving {savings_rate:.1f}% of your income this month. "
                    "Consider reviewing your expenses to increase savings."
                ),
                value=savings_rate,
                percentage=format_percentage(savings_rate),
                details={
                    'savings_rate': format_percentage(savings_rate),
                    'income': data.income,
                    'expenses': data.expenses,
                },
            )

    def check_income_changes(
        self,
        month: str,
        current: MonthSummary,
        previous: Optional[MonthSummary],
    ) -> None:
        if previous is None or not self._setting(prefs.INCOME_CHANGES_ENABLED):
            return
        if not (previous.income > 0 and current.income > 0):
            return
        change = _change_percent(current.income, previous.income)
        if change is None or change >= INCOME_DROP_PERCENT:
            return
        self._add_alert(
            AlertType.INCOME_DROP,
            Severity.HIGH,
            month,
            title='Income Decrease Alert',
            message=(
                f"Your income decreased by {abs(change):.0f}% compared to last month "
                f"({format_currency(current.income)} vs {format_currency(previous.income)})."
            ),
            value=current.income,
            percentage=format_percentage(change),
            details={'previous_value': previous.income, 'change': format_percentage(change)},
        )

    def average_monthly_spending(self) -> float:
        if not self.monthly_data:
            return 0.0
        total = sum(summary.expenses for summary in self.monthly_data.values())
        return total / len(self.monthly_data)

    def _add_alert(self, alert_type: AlertType, severity: Severity, month: str, **fields: Any) -> None:
        self.alerts.append(
            Alert(
                id=alert_id(alert_type, month, fields.get('category')),
                timestamp=self.clock(),
                type=alert_type,
                severity=severity,
                month=month,
                **fields,
            )
        )


def generate_alerts(
    monthly_data: MonthlyDataLike,
    transactions: Any = None,
    preferences: Optional[AlertPreferences] = None,
    *,
    clock: Optional[Callable[[], datetime]] = None,
) -> List[Alert]:
    """Generate ranked alerts for the latest month in ``monthly_data``.

    Args:
        monthly_data: Output of :func:`monthly.aggregate` or equivalent mappings
        transactions: The transactions the data was built from (kept for
            checks that need row-level detail)
        preferences: Current alert preferences; defaults when omitted
        clock: Callable returning the timestamp stamped on each alert

    Returns:
        Alerts ordered CRITICAL, HIGH, MEDIUM, LOW; ties keep emission order
    """
    engine = AlertEngine(monthly_data, transactions, preferences, clock=clock)
    return engine.generate_alerts()


def _ratio_percent(value: float, base: float) -> Optional[float]:
    if base is None or base <= 0:
        return None
    result = value / base * 100
    return result if math.isfinite(result) else None


def _change_percent(current: float, previous: float) -> Optional[float]:
    if previous == 0:
        return None
    result = (current - previous) / previous * 100
    return result if math.isfinite(result) else None
