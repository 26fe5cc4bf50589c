"""Alert preferences: budget thresholds, alert toggles and dismissed alerts.

:class:`AlertPreferences` is a plain in-memory object that callers pass to
the alert engine on every run. Persisting it is the job of a separate
adapter, :class:`PreferencesStorage`, which the caller owns.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from . import config
from .categorizer import (
    ENTERTAINMENT,
    FOOD_AND_DINING,
    GROCERIES_AND_CAFE,
    HOUSING,
    OTHER,
    SERVICES,
    SHOPPING,
    TRANSPORT,
)
from .monthly import to_float
from .storage import load_json, save_json

logger = logging.getLogger(__name__)

BUDGET_WARNING_THRESHOLD = 'budgetWarningThreshold'
BUDGET_EXCEEDED_ENABLED = 'budgetExceededEnabled'
CATEGORY_SPIKES_ENABLED = 'categorySpikesEnabled'
UNUSUAL_SPENDING_ENABLED = 'unusualSpendingEnabled'
SAVINGS_OPPORTUNITIES_ENABLED = 'savingsOpportunitiesEnabled'
INCOME_CHANGES_ENABLED = 'incomeChangesEnabled'
MINIMUM_SPENDING_FOR_ALERTS = 'minimumSpendingForAlerts'

DEFAULT_BUDGET_THRESHOLDS: Dict[str, float] = {
    FOOD_AND_DINING: 300.0,
    ENTERTAINMENT: 150.0,
    SHOPPING: 200.0,
    GROCERIES_AND_CAFE: 250.0,
    TRANSPORT: 100.0,
    HOUSING: 800.0,
    SERVICES: 100.0,
    OTHER: 150.0,
}

DEFAULT_ALERT_SETTINGS: Dict[str, Any] = {
    BUDGET_WARNING_THRESHOLD: 80.0,  # percent of budget
    BUDGET_EXCEEDED_ENABLED: True,
    CATEGORY_SPIKES_ENABLED: True,
    UNUSUAL_SPENDING_ENABLED: True,
    SAVINGS_OPPORTUNITIES_ENABLED: True,
    INCOME_CHANGES_ENABLED: True,
    MINIMUM_SPENDING_FOR_ALERTS: 50.0,
}

BOOLEAN_SETTINGS = {
    BUDGET_EXCEEDED_ENABLED,
    CATEGORY_SPIKES_ENABLED,
    UNUSUAL_SPENDING_ENABLED,
    SAVINGS_OPPORTUNITIES_ENABLED,
    INCOME_CHANGES_ENABLED,
}
NUMERIC_SETTINGS = {BUDGET_WARNING_THRESHOLD, MINIMUM_SPENDING_FOR_ALERTS}


class AlertPreferences:
    """User-tunable alert configuration.

    Reads never fail: an unknown category falls back to the ``Other``
    threshold and a missing setting falls back to its default. Writes go
    through the explicit setters, which validate their input.
    """

    def __init__(
        self,
        budget_thresholds: Optional[Dict[str, float]] = None,
        alert_settings: Optional[Dict[str, Any]] = None,
        dismissed_alerts: Optional[Iterable[str]] = None,
    ):
        self.budget_thresholds: Dict[str, float] = dict(DEFAULT_BUDGET_THRESHOLDS)
        self.alert_settings: Dict[str, Any] = dict(DEFAULT_ALERT_SETTINGS)
        self.dismissed_alerts: set = set()
        for category, amount in (budget_thresholds or {}).items():
            value = to_float(amount)
            if value is not None and value >= 0:
                self.budget_thresholds[str(category)] = value
        for name, value in (alert_settings or {}).items():
            if name in DEFAULT_ALERT_SETTINGS:
                coerced = _coerce_setting(name, value)
                if coerced is not None:
                    self.alert_settings[name] = coerced
            else:
                logger.debug("Ignoring unknown alert setting %r", name)
        self.dismissed_alerts.update(str(alert_id) for alert_id in dismissed_alerts or ())

    # Budget thresholds

    def get_budget_threshold(self, category: str) -> float:
        """Return the monthly budget for ``category``.

        Categories without a budget of their own use the default ``Other``
        budget, not the user's current ``Other`` value.
        """
        threshold = self.budget_thresholds.get(category)
        if threshold is None:
            threshold = DEFAULT_BUDGET_THRESHOLDS[OTHER]
        return threshold

    def set_budget_threshold(self, category: str, amount: float) -> None:
        """Set the monthly budget for a category.

        Raises:
            ValueError: If the category is empty or the amount is not a
                non-negative number
        """
        if not category or not str(category).strip():
            raise ValueError("Category cannot be empty")
        value = to_float(amount)
        if value is None or value < 0:
            raise ValueError(f"Budget threshold must be a non-negative number, got {amount!r}")
        self.budget_thresholds[str(category)] = value

    # Alert settings

    def get_alert_setting(self, name: str) -> Any:
        """Return the current value of an alert setting, or its default."""
        value = self.alert_settings.get(name)
        if value is None:
            return DEFAULT_ALERT_SETTINGS.get(name)
        return value

    def set_alert_setting(self, name: str, value: Any) -> None:
        """Update an alert setting.

        Raises:
            ValueError: If the setting is unknown or the value is invalid
        """
        if name not in DEFAULT_ALERT_SETTINGS:
            raise ValueError(f"Unknown alert setting '{name}'")
        coerced = _coerce_setting(name, value)
        if coerced is None:
            raise ValueError(f"Invalid value {value!r} for alert setting '{name}'")
        self.alert_settings[name] = coerced

    # Dismissed alerts

    def is_alert_dismissed(self, alert_id: str) -> bool:
        return alert_id in self.dismissed_alerts

    def dismiss_alert(self, alert_id: str) -> None:
        self.dismissed_alerts.add(str(alert_id))

    def clear_dismissed_alerts(self) -> None:
        self.dismissed_alerts.clear()

    def reset_to_defaults(self) -> None:
        """Restore default thresholds and settings and forget dismissals."""
        self.budget_thresholds = dict(DEFAULT_BUDGET_THRESHOLDS)
        self.alert_settings = dict(DEFAULT_ALERT_SETTINGS)
        self.dismissed_alerts = set()

    # Serialisation

    def to_dict(self) -> Dict[str, Any]:
        return {
            'budgetThresholds': dict(self.budget_thresholds),
            'alertSettings': dict(self.alert_settings),
            'dismissedAlerts': sorted(self.dismissed_alerts),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AlertPreferences':
        """Build preferences from stored data, ignoring malformed sections."""
        if not isinstance(data, dict):
            return cls()
        thresholds = data.get('budgetThresholds')
        settings = data.get('alertSettings')
        dismissed = data.get('dismissedAlerts')
        return cls(
            budget_thresholds=thresholds if isinstance(thresholds, dict) else None,
            alert_settings=settings if isinstance(settings, dict) else None,
            dismissed_alerts=dismissed if isinstance(dismissed, list) else None,
        )

    def copy(self) -> 'AlertPreferences':
        return AlertPreferences.from_dict(copy.deepcopy(self.to_dict()))


def _coerce_setting(name: str, value: Any) -> Any:
    if name in BOOLEAN_SETTINGS:
        return value if isinstance(value, bool) else None
    number = to_float(value)
    if number is None:
        return None
    if name == BUDGET_WARNING_THRESHOLD and not 0 <= number <= 100:
        return None
    if name == MINIMUM_SPENDING_FOR_ALERTS and number < 0:
        return None
    return number


class PreferencesStorage:
    """JSON file adapter persisting :class:`AlertPreferences`."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.PREFERENCES_PATH

    def load(self) -> AlertPreferences:
        """Load stored preferences, falling back to defaults."""
        return AlertPreferences.from_dict(load_json(self.path, {}))

    def save(self, preferences: AlertPreferences) -> None:
        """Persist preferences.

        Raises:
            OSError: If the file cannot be written
        """
        save_json(self.path, preferences.to_dict())
