"""Urgency scoring for goals."""

from datetime import datetime
from enum import Enum
from typing import Optional

from goalwidget.goals.models import Goal, GoalType, ProgressType

from . import constants as c


class UrgencyLevel(str, Enum):
    """Urgency bands used for messaging."""

    LOW = "low"  # on track
    MEDIUM = "medium"
    HIGH = "high"  # behind
    CRITICAL = "critical"  # overdue or very behind


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(value, high))


def calculate_urgency(goal: Goal, now: datetime) -> float:
    """
    Calculate how pressing a goal is right now.

    Args:
        goal: Goal to score
        now: Current instant

    Returns:
        Urgency between 0.0 and 1.0 (0.0 for completed goals)
    """
    if goal.is_completed(now):
        return 0.0

    if goal.goal_type == GoalType.DAILY:
        return _daily_urgency(goal, now)
    return _long_term_urgency(goal, now)


def day_window_elapsed(now: datetime) -> float:
    """
    Fraction of the active day window that has passed.

    Returns:
        0.0 before the window opens, 1.0 once it has closed
    """
    start = now.replace(hour=c.DAY_WINDOW_START_HOUR, minute=0, second=0, microsecond=0)
    end = now.replace(hour=c.DAY_WINDOW_END_HOUR, minute=0, second=0, microsecond=0)
    total = (end - start).total_seconds()
    if total <= 0:
        return 1.0
    return _clamp((now - start).total_seconds() / total)


def _daily_urgency(goal: Goal, now: datetime) -> float:
    """Weighted sum of progress, time-of-day and streak-at-risk factors."""
    if goal.progress_type == ProgressType.NUMERIC and (
        goal.target_value is None or goal.target_value <= 0
    ):
        # Unmeasurable target: progress adds nothing
        progress_factor = 0.0
    else:
        progress_factor = 1.0 - _clamp(goal.get_progress_today(now))

    time_factor = day_window_elapsed(now)

    streak_factor = _clamp(
        goal.current_streak / c.STREAK_NORMALIZER_DAYS, 0.0, c.STREAK_FACTOR_CAP
    )

    urgency = (
        progress_factor * c.PROGRESS_WEIGHT
        + time_factor * c.TIME_WEIGHT
        + streak_factor * c.STREAK_WEIGHT
    )
    return _clamp(urgency)


def _long_term_urgency(goal: Goal, now: datetime) -> float:
    """Deadline pressure plus how far progress lags behind the calendar."""
    progress = goal.get_progress(now)

    if goal.deadline is None:
        return _clamp((1.0 - progress) * c.UNDATED_URGENCY_CEILING)

    if goal.is_overdue(now):
        return 1.0

    total = (goal.deadline - goal.created_at).total_seconds()
    if total <= 0:
        return 1.0

    elapsed = (now - goal.created_at).total_seconds()
    deadline_factor = _clamp(elapsed / total)
    progress_deficit = _clamp(deadline_factor - progress)

    urgency = (
        deadline_factor * c.DEADLINE_WEIGHT
        + progress_deficit * c.LONG_TERM_PROGRESS_WEIGHT
    )
    return _clamp(urgency)


def find_most_urgent(goals: list[Goal], now: datetime) -> Optional[Goal]:
    """
    Find the incomplete goal with the highest urgency.

    Ties keep the goal that comes first in ``goals``.

    Returns:
        Most urgent goal, or None if every goal is completed
    """
    most_urgent = None
    highest = -1.0

    for goal in goals:
        if goal.is_completed(now):
            continue

        urgency = calculate_urgency(goal, now)
        if urgency > highest:
            highest = urgency
            most_urgent = goal

    return most_urgent


def get_urgency_level(urgency: float) -> UrgencyLevel:
    """Map an urgency score to its band."""
    if urgency < c.URGENCY_HAPPY:
        return UrgencyLevel.LOW
    elif urgency < c.URGENCY_NEUTRAL:
        return UrgencyLevel.MEDIUM
    elif urgency < c.URGENCY_WORRIED:
        return UrgencyLevel.HIGH
    else:
        return UrgencyLevel.CRITICAL
