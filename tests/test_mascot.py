"""Mascot state machine: emotion bands, frame toggling, celebration expiry."""

from datetime import timedelta

import pytest

from conftest import NOW
from goalwidget.engine.mascot import (
    compute_state,
    create_celebrate_state,
    emotion_from_urgency,
    emotion_message,
)
from goalwidget.goals.models import GoalType, ProgressType
from goalwidget.widget.models import (
    Celebrating,
    Derived,
    MascotEmotion,
    MascotState,
    to_epoch_ms,
)


@pytest.fixture
def calm_goal(make_goal):
    # Undated long-term goal, half done: urgency 0.2 -> neutral
    return make_goal(
        goal_type=GoalType.LONG_TERM,
        progress_type=ProgressType.PERCENTAGE,
        percent_complete=50,
    )


class TestEmotionBands:

    @pytest.mark.parametrize(
        "urgency,emotion",
        [
            (0.0, MascotEmotion.HAPPY),
            (0.19, MascotEmotion.HAPPY),
            (0.2, MascotEmotion.NEUTRAL),
            (0.49, MascotEmotion.NEUTRAL),
            (0.5, MascotEmotion.WORRIED),
            (0.8, MascotEmotion.SAD),
            (1.0, MascotEmotion.SAD),
        ],
    )
    def test_thresholds(self, urgency, emotion):
        assert emotion_from_urgency(urgency) == emotion

    def test_every_emotion_has_a_message(self):
        for emotion in MascotEmotion:
            assert emotion_message(emotion)


class TestDerivedState:

    def test_no_previous_state(self, calm_goal):
        state = compute_state(calm_goal, NOW)
        assert state.emotion == MascotEmotion.NEUTRAL
        assert state.frame_index == 1
        assert state.expires_at is None

    def test_frame_toggles_between_calls(self, calm_goal):
        first = compute_state(calm_goal, NOW)
        second = compute_state(calm_goal, NOW, first)
        third = compute_state(calm_goal, NOW, second)
        assert [first.frame_index, second.frame_index, third.frame_index] == [1, 0, 1]

    def test_accepts_tagged_mode(self, calm_goal):
        state = compute_state(calm_goal, NOW, Derived(frame_index=1))
        assert state.frame_index == 0

    def test_urgent_goal_is_sad(self, make_goal):
        goal = make_goal(current_streak=5)
        assert compute_state(goal, NOW).emotion == MascotEmotion.SAD


class TestCelebration:

    def test_celebrate_state_expires_in_five_minutes(self):
        state = create_celebrate_state(NOW)
        assert state.emotion == MascotEmotion.CELEBRATE
        assert state.frame_index == 0
        assert state.expires_at == to_epoch_ms(NOW) + 5 * 60 * 1000
        assert state.mode() == Celebrating(expires_at_ms=state.expires_at)

    def test_overrides_urgency_until_expiry(self, make_goal):
        goal = make_goal(current_streak=5)
        celebrating = create_celebrate_state(NOW)

        for seconds in (0, 60, 299):
            state = compute_state(goal, NOW + timedelta(seconds=seconds), celebrating)
            assert state.emotion == MascotEmotion.CELEBRATE
            assert state.expires_at == celebrating.expires_at

    def test_reverts_exactly_once(self, make_goal):
        goal = make_goal(current_streak=5)
        celebrating = create_celebrate_state(NOW)
        expiry = NOW + timedelta(minutes=5)

        reverted = compute_state(goal, expiry, celebrating)
        assert reverted.emotion == MascotEmotion.SAD
        assert reverted.frame_index == 1
        assert reverted.expires_at is None

        later = compute_state(goal, expiry + timedelta(minutes=1), reverted)
        assert later.emotion == MascotEmotion.SAD
        assert later.frame_index == 0

    def test_persisted_state_keeps_celebrating(self, calm_goal):
        stored = MascotState.model_validate_json(
            create_celebrate_state(NOW).model_dump_json(by_alias=True)
        )
        state = compute_state(calm_goal, NOW + timedelta(minutes=1), stored)
        assert state.emotion == MascotEmotion.CELEBRATE

    def test_far_future_expiry_is_not_a_celebration(self, calm_goal):
        # An expiry no celebration could have produced counts as expired
        runaway = MascotState(emotion=MascotEmotion.CELEBRATE, expires_at=10**18)
        state = compute_state(calm_goal, NOW, runaway)
        assert state.emotion == MascotEmotion.NEUTRAL
        assert state.expires_at is None

        bounded = Celebrating(expires_at_ms=to_epoch_ms(NOW + timedelta(minutes=5)))
        assert compute_state(calm_goal, NOW, bounded).emotion == MascotEmotion.CELEBRATE

    def test_is_celebrating(self):
        state = create_celebrate_state(NOW)
        assert state.is_celebrating(NOW + timedelta(minutes=4))
        assert not state.is_celebrating(NOW + timedelta(minutes=5))
