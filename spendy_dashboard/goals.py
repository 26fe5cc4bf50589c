"""Savings goals: progress calculation, an in-memory store and its JSON adapter."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import config
from .monthly import MonthlyDataLike, to_float
from .storage import load_json, save_json

logger = logging.getLogger(__name__)

ON_TRACK_RATIO = 0.9

GOAL_CATEGORIES: Dict[str, str] = {
    'emergency': 'Emergency Fund',
    'vacation': 'Vacation',
    'house': 'House/Property',
    'car': 'Car/Vehicle',
    'education': 'Education',
    'retirement': 'Retirement',
    'wedding': 'Wedding',
    'general': 'General',
}
DEFAULT_GOAL_CATEGORY = 'general'


@dataclass
class SavingsGoal:
    """A savings target funded by a fixed monthly contribution."""
    name: str
    target_amount: float
    monthly_amount: float
    current_amount: float = 0.0
    category: str = DEFAULT_GOAL_CATEGORY
    target_date: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def category_label(self) -> str:
        return GOAL_CATEGORIES.get(self.category, self.category)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavingsGoal':
        """Rebuild a stored goal.

        Raises:
            ValueError: If a required field is missing or not numeric
        """
        target = to_float(data.get('target_amount'))
        monthly = to_float(data.get('monthly_amount'))
        if not data.get('name') or target is None or monthly is None:
            raise ValueError(f"Incomplete goal record: {data!r}")
        kwargs: Dict[str, Any] = {
            'name': str(data['name']),
            'target_amount': target,
            'monthly_amount': monthly,
            'current_amount': max(0.0, to_float(data.get('current_amount')) or 0.0),
            'category': str(data.get('category') or DEFAULT_GOAL_CATEGORY),
            'target_date': data.get('target_date') or None,
        }
        if data.get('id'):
            kwargs['id'] = str(data['id'])
        if data.get('created_at'):
            kwargs['created_at'] = str(data['created_at'])
        return cls(**kwargs)


@dataclass
class GoalProgress:
    percentage: float
    months_to_goal: Optional[int]
    on_track: bool
    shortfall: float
    expected_progress: float


def calculate_goal_progress(goal: SavingsGoal, monthly_data: Optional[MonthlyDataLike]) -> GoalProgress:
    """Measure a goal against the contributions expected so far.

    The number of months in ``monthly_data`` (at least one) stands in for
    the months elapsed since the goal started.

    Args:
        goal: The goal to evaluate
        monthly_data: Monthly aggregates covering the analysed window

    Returns:
        GoalProgress. ``months_to_goal`` is None when the goal has no
        positive monthly contribution and 0 once the target is reached.

    Example:
        >>> goal = SavingsGoal('Trip', 1000, 100, current_amount=250)
        >>> progress = calculate_goal_progress(goal, {'a': {}, 'b': {}, 'c': {}})
        >>> progress.expected_progress, progress.on_track, progress.months_to_goal
        (300.0, False, 8)
    """
    months_elapsed = max(1, len(monthly_data or {}))
    expected = float(goal.monthly_amount * months_elapsed)
    actual = goal.current_amount or 0.0

    if goal.target_amount > 0:
        percentage = min(100.0, actual / goal.target_amount * 100)
    else:
        percentage = 100.0

    months_to_goal: Optional[int] = None
    if goal.monthly_amount > 0:
        months_to_goal = max(0, math.ceil((goal.target_amount - actual) / goal.monthly_amount))

    return GoalProgress(
        percentage=percentage,
        months_to_goal=months_to_goal,
        on_track=actual >= expected * ON_TRACK_RATIO,
        shortfall=max(0.0, expected - actual),
        expected_progress=expected,
    )


class GoalStore:
    """Ordered collection of savings goals.

    Mutations validate their input and raise ``ValueError`` for bad values
    and ``KeyError`` for unknown goal ids. The store performs no I/O; pair it
    with :class:`GoalStorage` to persist it.
    """

    def __init__(self, goals: Optional[List[SavingsGoal]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self._goals: List[SavingsGoal] = list(goals or [])
        self._clock = clock or datetime.now

    def __len__(self) -> int:
        return len(self._goals)

    def __iter__(self):
        return iter(list(self._goals))

    def list(self) -> List[SavingsGoal]:
        return list(self._goals)

    def get(self, goal_id: str) -> Optional[SavingsGoal]:
        for goal in self._goals:
            if goal.id == goal_id:
                return goal
        return None

    def create(
        self,
        name: str,
        target_amount: Any,
        monthly_amount: Any,
        category: str = DEFAULT_GOAL_CATEGORY,
        target_date: Optional[Any] = None,
    ) -> SavingsGoal:
        """Add a new goal with nothing saved yet."""
        name = (name or '').strip()
        if not name:
            raise ValueError("Goal name cannot be empty")
        goal = SavingsGoal(
            name=name,
            target_amount=_positive(target_amount, 'target_amount'),
            monthly_amount=_positive(monthly_amount, 'monthly_amount'),
            current_amount=0.0,
            category=category or DEFAULT_GOAL_CATEGORY,
            target_date=_date_string(target_date),
            created_at=self._clock().isoformat(),
        )
        self._goals.append(goal)
        logger.info("Created savings goal %s (%s)", goal.id, goal.name)
        return goal

    def update(self, goal_id: str, **changes: Any) -> SavingsGoal:
        """Update editable fields of a goal.

        Raises:
            KeyError: If no goal has ``goal_id``
            ValueError: If a field is unknown or its value is invalid
        """
        goal = self._require(goal_id)
        editable = {'name', 'target_amount', 'monthly_amount', 'category', 'target_date'}
        unknown = set(changes) - editable
        if unknown:
            raise ValueError(f"Cannot update goal fields: {', '.join(sorted(unknown))}")

        if 'name' in changes:
            name = (changes['name'] or '').strip()
            if not name:
                raise ValueError("Goal name cannot be empty")
            changes['name'] = name
        for amount_field in ('target_amount', 'monthly_amount'):
            if amount_field in changes:
                changes[amount_field] = _positive(changes[amount_field], amount_field)
        if 'target_date' in changes:
            changes['target_date'] = _date_string(changes['target_date'])
        if 'category' in changes:
            changes['category'] = changes['category'] or DEFAULT_GOAL_CATEGORY

        for key, value in changes.items():
            setattr(goal, key, value)
        return goal

    def delete(self, goal_id: str) -> None:
        goal = self._require(goal_id)
        self._goals.remove(goal)

    def add_amount(self, goal_id: str, amount: Any) -> SavingsGoal:
        """Record a deposit towards a goal."""
        goal = self._require(goal_id)
        goal.current_amount = (goal.current_amount or 0.0) + _positive(amount, 'amount')
        return goal

    def remove_amount(self, goal_id: str, amount: Any) -> SavingsGoal:
        """Record a withdrawal; the saved amount never drops below zero."""
        goal = self._require(goal_id)
        goal.current_amount = max(0.0, (goal.current_amount or 0.0) - _positive(amount, 'amount'))
        return goal

    def clear(self) -> None:
        self._goals.clear()

    def to_list(self) -> List[Dict[str, Any]]:
        return [goal.to_dict() for goal in self._goals]

    def _require(self, goal_id: str) -> SavingsGoal:
        goal = self.get(goal_id)
        if goal is None:
            raise KeyError(f"Unknown savings goal '{goal_id}'")
        return goal


class GoalStorage:
    """JSON file adapter for :class:`GoalStore`."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.GOALS_PATH

    def load(self) -> GoalStore:
        """Load stored goals; unreadable records are skipped."""
        payload = load_json(self.path, {'goals': []})
        records = payload.get('goals') if isinstance(payload, dict) else None
        goals: List[SavingsGoal] = []
        for record in records if isinstance(records, list) else []:
            if not isinstance(record, dict):
                continue
            try:
                goals.append(SavingsGoal.from_dict(record))
            except ValueError as exc:
                logger.warning("Skipping stored goal: %s", exc)
        return GoalStore(goals)

    def save(self, store: GoalStore) -> None:
        save_json(self.path, {'goals': store.to_list()})


def _positive(value: Any, name: str) -> float:
    number = to_float(value)
    if number is None or number <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return number


def _date_string(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
