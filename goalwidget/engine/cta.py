"""Call-to-action selection.

Selection is deterministic: the pool index advances every 5 minutes of wall
clock time, so the same inputs within one 5-minute block give the same line.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from goalwidget.widget.models import MascotEmotion, MascotState, TopGoal

from . import constants as c
from . import messages
from .urgency import get_urgency_level


class CTAContext(str, Enum):
    """Display context picked by the snapshot builder."""

    EMPTY = "empty"
    END_OF_DAY = "end_of_day"
    DAILY_COMPLETED = "daily_completed"
    DAILY_ALL_COMPLETE = "daily_all_complete"
    DAILY_IN_PROGRESS = "daily_in_progress"
    LONG_TERM_COMPLETED = "long_term_completed"
    LONG_TERM_IN_PROGRESS = "long_term_in_progress"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class ProgressBucket(str, Enum):
    EARLY = "early"
    MID = "mid"
    NEAR_COMPLETE = "nearComplete"


def time_of_day(hour: int) -> TimeOfDay:
    """Messaging bucket for an hour (0-23)."""
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    elif 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    elif 17 <= hour < 22:
        return TimeOfDay.EVENING
    else:
        return TimeOfDay.NIGHT


def progress_bucket(progress: float) -> ProgressBucket:
    if progress < 0.25:
        return ProgressBucket.EARLY
    elif progress < 0.75:
        return ProgressBucket.MID
    else:
        return ProgressBucket.NEAR_COMPLETE


def rotation_index(now: datetime, pool_size: int) -> int:
    """Index into a pool of ``pool_size`` for the current 5-minute block."""
    block = now.minute // c.CTA_ROTATION_MINUTES
    return (now.hour * (60 // c.CTA_ROTATION_MINUTES) + block) % pool_size


def select_message(pool: list[str], now: datetime) -> str:
    if not pool:
        return c.CTA_FALLBACK
    return pool[rotation_index(now, len(pool))]


def shorten_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return None
    if len(title) > c.CTA_TITLE_MAX_LENGTH:
        return title[: c.CTA_TITLE_MAX_LENGTH] + "..."
    return title


def _fill(templates: list[str], **values) -> list[str]:
    return [t.format(**values) for t in templates]


def empty_pool(now: datetime) -> list[str]:
    return list(messages.EMPTY[time_of_day(now.hour).value])


def contextual_pool(
    top_goal: TopGoal,
    mascot: MascotState,
    now: datetime,
) -> list[str]:
    """
    Combined candidate pool for a goal that is still in progress.

    A celebrating mascot swaps the whole pool for celebration lines.
    """
    title = shorten_title(top_goal.title)

    if mascot.emotion == MascotEmotion.CELEBRATE:
        pool = list(messages.CELEBRATION)
        if title:
            pool += _fill(messages.CELEBRATION_TITLE_TEMPLATES, title=title)
        return pool

    level = get_urgency_level(top_goal.urgency).value
    pool = list(messages.URGENCY[level])
    pool += messages.PROGRESS[progress_bucket(top_goal.progress).value]
    pool += messages.TIME_OF_DAY[time_of_day(now.hour).value]
    if title:
        pool += _fill(messages.TITLE_TEMPLATES[level], title=title)
    if top_goal.progress_label:
        pool += _fill(messages.PROGRESS_LABEL_TEMPLATES, label=top_goal.progress_label)
    return pool


def generate_cta(
    top_goal: Optional[TopGoal],
    mascot: MascotState,
    now: datetime,
    context: Optional[CTAContext] = None,
) -> str:
    """
    Pick the call-to-action line for the widget.

    Args:
        top_goal: Goal on display, None when there are no goals
        mascot: Current mascot state
        now: Current wall clock time (drives the rotation)
        context: Display context from the snapshot builder, if any

    Returns:
        Message text
    """
    if top_goal is None:
        return select_message(empty_pool(now), now)

    if context == CTAContext.END_OF_DAY:
        return select_message(messages.END_OF_DAY, now)

    if context == CTAContext.DAILY_ALL_COMPLETE:
        return select_message(messages.ALL_DAILY_COMPLETE, now)

    if top_goal.progress >= 1.0:
        pool = messages.COMPLETED.get(top_goal.goal_type, messages.COMPLETED["longTerm"])
        return select_message(pool, now)

    pool = contextual_pool(top_goal, mascot, now)
    if context == CTAContext.LONG_TERM_IN_PROGRESS:
        pool = messages.LONG_TERM_FOCUS + pool
    return select_message(pool, now)
