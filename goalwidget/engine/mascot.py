"""Mascot emotional state machine."""

from datetime import datetime
from typing import Optional, Union

from goalwidget.goals.models import Goal
from goalwidget.widget.models import (
    Celebrating,
    Derived,
    MascotEmotion,
    MascotMode,
    MascotState,
    to_epoch_ms,
)

from . import constants as c
from .urgency import calculate_urgency

EMOTION_MESSAGES = {
    MascotEmotion.HAPPY: "You're doing great!",
    MascotEmotion.NEUTRAL: "Let's keep going!",
    MascotEmotion.WORRIED: "Don't forget me...",
    MascotEmotion.SAD: "I miss you!",
    MascotEmotion.CELEBRATE: "Amazing work!",
}


def emotion_from_urgency(urgency: float) -> MascotEmotion:
    """Map an urgency score onto the four non-celebration emotions."""
    if urgency < c.URGENCY_HAPPY:
        return MascotEmotion.HAPPY
    elif urgency < c.URGENCY_NEUTRAL:
        return MascotEmotion.NEUTRAL
    elif urgency < c.URGENCY_WORRIED:
        return MascotEmotion.WORRIED
    else:
        return MascotEmotion.SAD


def _as_mode(previous: Union[MascotMode, MascotState, None]) -> MascotMode:
    if previous is None:
        return Derived()
    if isinstance(previous, MascotState):
        return previous.mode()
    return previous


def compute_state(
    goal: Goal,
    now: datetime,
    previous: Optional[Union[MascotMode, MascotState]] = None,
) -> MascotState:
    """
    Compute the mascot state for a goal.

    An unexpired celebration is returned untouched. Once it has expired the
    emotion is derived from urgency again. An expiry further away than one
    celebration can last is malformed and counts as expired.

    Args:
        goal: Goal the mascot reacts to
        now: Current instant
        previous: Last known state (persisted state or its tagged mode)

    Returns:
        New mascot state
    """
    mode = _as_mode(previous)

    if isinstance(mode, Celebrating):
        if to_epoch_ms(now) < mode.expires_at_ms <= to_epoch_ms(now + c.CELEBRATION_DURATION):
            return MascotState(
                emotion=MascotEmotion.CELEBRATE,
                frame_index=0,
                expires_at=mode.expires_at_ms,
            )
        frame_index = 1
    else:
        frame_index = 1 - (mode.frame_index % 2)

    urgency = calculate_urgency(goal, now)
    return MascotState(emotion=emotion_from_urgency(urgency), frame_index=frame_index)


def create_celebrate_state(now: datetime) -> MascotState:
    """Start a celebration that overrides urgency for a fixed duration."""
    return MascotState(
        emotion=MascotEmotion.CELEBRATE,
        frame_index=0,
        expires_at=to_epoch_ms(now + c.CELEBRATION_DURATION),
    )


def emotion_message(emotion: MascotEmotion) -> str:
    return EMOTION_MESSAGES.get(emotion, "Let's keep going!")
