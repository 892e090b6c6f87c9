"""Snapshot builder: display-context priorities and persistence."""

import asyncio
import sqlite3
from datetime import timedelta

import pytest

from conftest import NOW, InMemoryGoalStore
from goalwidget.engine import messages
from goalwidget.engine.cta import CTAContext
from goalwidget.engine.mascot import create_celebrate_state
from goalwidget.goals.models import GoalType, ProgressType
from goalwidget.widget.builder import SnapshotBuilder, just_completed, most_recently_completed
from goalwidget.widget.models import SNAPSHOT_KEY, MascotEmotion, to_epoch_seconds

AFTERNOON = NOW.replace(hour=15)


def make_builder(goals, snapshot_store, settings, now):
    return SnapshotBuilder(InMemoryGoalStore(goals), snapshot_store, settings, clock=lambda: now)


@pytest.fixture
def long_term(make_goal):
    def _make(**overrides):
        values = {
            "goal_type": GoalType.LONG_TERM,
            "progress_type": ProgressType.PERCENTAGE,
            "percent_complete": 30,
        }
        values.update(overrides)
        return make_goal(**values)

    return _make


class TestEmptySnapshot:

    def test_no_goals(self, goal_store, snapshot_store, settings):
        builder = SnapshotBuilder(goal_store, snapshot_store, settings, clock=lambda: NOW)
        snapshot = asyncio.run(builder.generate_snapshot())

        assert snapshot.top_goal is None
        assert snapshot.mascot.emotion == MascotEmotion.NEUTRAL
        assert snapshot.cta in messages.EMPTY["evening"]
        assert snapshot.background_status == "empty"
        assert snapshot.background_time_band == "dusk"
        assert snapshot.generated_at == to_epoch_seconds(NOW)

    def test_snapshot_is_persisted(self, goal_store, snapshot_store, settings):
        builder = SnapshotBuilder(goal_store, snapshot_store, settings, clock=lambda: NOW)
        written = asyncio.run(builder.generate_snapshot())
        assert asyncio.run(builder.get_snapshot()) == written


class TestDisplayPriorities:

    def test_fresh_completion_wins(self, make_goal, long_term, snapshot_store, settings):
        done = make_goal(title="Meditate", last_completed_at=AFTERNOON - timedelta(minutes=2))
        overdue = long_term(deadline=AFTERNOON - timedelta(days=1))
        builder = make_builder([overdue, done], snapshot_store, settings, AFTERNOON)

        choice = builder.select_display([overdue, done], AFTERNOON)
        assert choice.context == CTAContext.DAILY_COMPLETED
        assert choice.goal is done
        assert choice.mascot.emotion == MascotEmotion.CELEBRATE

        snapshot = asyncio.run(builder.generate_snapshot())
        assert snapshot.background_status == "celebrate"
        assert snapshot.top_goal.id == done.id
        assert snapshot.top_goal.progress == 1.0
        assert snapshot.cta in messages.COMPLETED["daily"]

    def test_fresh_long_term_completion(self, long_term, snapshot_store, settings):
        finished = long_term(percent_complete=100, last_completed_at=AFTERNOON - timedelta(minutes=1))
        builder = make_builder([finished], snapshot_store, settings, AFTERNOON)
        choice = builder.select_display([finished], AFTERNOON)
        assert choice.context == CTAContext.LONG_TERM_COMPLETED

    def test_end_of_day(self, make_goal, snapshot_store, settings):
        late = NOW.replace(hour=23, minute=30)
        goal = make_goal(current_streak=4)
        builder = make_builder([goal], snapshot_store, settings, late)

        snapshot = asyncio.run(builder.generate_snapshot())
        assert snapshot.background_status == "end_of_day"
        assert snapshot.background_time_band == "night"
        assert snapshot.cta in messages.END_OF_DAY
        assert snapshot.top_goal.id == goal.id
        assert snapshot.mascot.emotion == MascotEmotion.SAD

    def test_end_of_day_with_everything_done(self, make_goal, snapshot_store, settings):
        late = NOW.replace(hour=23, minute=30)
        goal = make_goal(last_completed_at=late - timedelta(hours=3))
        builder = make_builder([goal], snapshot_store, settings, late)

        choice = builder.select_display([goal], late)
        assert choice.context == CTAContext.END_OF_DAY
        assert choice.goal is goal

    def test_all_dailies_done(self, make_goal, long_term, snapshot_store, settings):
        first = make_goal(last_completed_at=AFTERNOON - timedelta(hours=3))
        second = make_goal(last_completed_at=AFTERNOON - timedelta(hours=1))
        pending = long_term()
        goals = [first, second, pending]
        builder = make_builder(goals, snapshot_store, settings, AFTERNOON)

        choice = builder.select_display(goals, AFTERNOON)
        assert choice.context == CTAContext.DAILY_ALL_COMPLETE
        assert choice.goal is second
        assert choice.mascot.emotion == MascotEmotion.HAPPY

        snapshot = asyncio.run(builder.generate_snapshot())
        assert snapshot.background_status == "celebrate"
        assert snapshot.cta in messages.ALL_DAILY_COMPLETE

    def test_long_term_focus_hour(self, long_term, snapshot_store, settings):
        focus = NOW.replace(hour=14, minute=20)
        calm = long_term(percent_complete=80)
        pressing = long_term(deadline=focus + timedelta(days=1))
        goals = [calm, pressing]
        builder = make_builder(goals, snapshot_store, settings, focus)

        choice = builder.select_display(goals, focus)
        assert choice.context == CTAContext.LONG_TERM_IN_PROGRESS
        assert choice.goal is pressing

    def test_focus_hour_ignored_with_daily_goals(self, make_goal, long_term, snapshot_store, settings):
        focus = NOW.replace(hour=14, minute=20)
        daily = make_goal()
        goals = [long_term(deadline=focus - timedelta(days=1)), daily]
        builder = make_builder(goals, snapshot_store, settings, focus)

        choice = builder.select_display(goals, focus)
        assert choice.context == CTAContext.DAILY_IN_PROGRESS
        assert choice.goal is daily

    def test_dailies_before_long_term(self, make_goal, long_term, snapshot_store, settings):
        overdue = long_term(deadline=AFTERNOON - timedelta(days=2))
        relaxed = make_goal(title="Stretch")
        pressing = make_goal(title="Water", current_streak=20)
        goals = [overdue, relaxed, pressing]
        builder = make_builder(goals, snapshot_store, settings, AFTERNOON)

        choice = builder.select_display(goals, AFTERNOON)
        assert choice.context == CTAContext.DAILY_IN_PROGRESS
        assert choice.goal is pressing

    def test_most_urgent_long_term_outside_focus(self, long_term, snapshot_store, settings):
        goal = long_term(deadline=AFTERNOON + timedelta(days=3))
        builder = make_builder([goal], snapshot_store, settings, AFTERNOON)

        snapshot = asyncio.run(builder.generate_snapshot())
        assert snapshot.top_goal.goal_type == "longTerm"
        assert snapshot.top_goal.next_due_epoch == to_epoch_seconds(goal.deadline)
        assert snapshot.background_status in ("on_track", "behind", "urgent")

    def test_only_completed_long_term_goals(self, long_term, snapshot_store, settings):
        old = long_term(percent_complete=100, last_completed_at=AFTERNOON - timedelta(days=4))
        newer = long_term(percent_complete=100, last_completed_at=AFTERNOON - timedelta(days=1))
        builder = make_builder([old, newer], snapshot_store, settings, AFTERNOON)

        snapshot = asyncio.run(builder.generate_snapshot())
        assert snapshot.top_goal is not None
        assert snapshot.top_goal.id == newer.id
        assert snapshot.cta in messages.COMPLETED["longTerm"]


class TestMascotCarryOver:

    def test_celebration_flag_forces_celebrate(self, make_goal, snapshot_store, settings):
        goal = make_goal(current_streak=3)
        builder = make_builder([goal], snapshot_store, settings, AFTERNOON)

        snapshot = asyncio.run(builder.generate_snapshot(is_celebration=True))
        assert snapshot.mascot.emotion == MascotEmotion.CELEBRATE
        assert snapshot.mascot.is_celebrating(AFTERNOON)
        assert snapshot.background_status == "celebrate"

    def test_running_celebration_survives_rebuild(self, make_goal, snapshot_store, settings):
        goal = make_goal(current_streak=3)
        previous = create_celebrate_state(AFTERNOON - timedelta(minutes=2))
        builder = make_builder([goal], snapshot_store, settings, AFTERNOON)

        snapshot = asyncio.run(builder.generate_snapshot(current_mascot_state=previous))
        assert snapshot.mascot.emotion == MascotEmotion.CELEBRATE
        assert snapshot.mascot.expires_at == previous.expires_at

    def test_expired_celebration_reverts(self, make_goal, snapshot_store, settings):
        goal = make_goal(current_streak=3)
        previous = create_celebrate_state(AFTERNOON - timedelta(minutes=6))
        builder = make_builder([goal], snapshot_store, settings, AFTERNOON)

        snapshot = asyncio.run(builder.generate_snapshot(current_mascot_state=previous))
        assert snapshot.mascot.emotion != MascotEmotion.CELEBRATE
        assert snapshot.mascot.frame_index == 1


class TestStoreFailures:

    def test_malformed_stored_snapshot_reads_as_missing(self, goal_store, snapshot_store, settings):
        snapshot_store.save(SNAPSHOT_KEY, "{broken")
        builder = SnapshotBuilder(goal_store, snapshot_store, settings, clock=lambda: NOW)
        assert asyncio.run(builder.get_snapshot()) is None

    @pytest.mark.parametrize("raw", ['{"version": "2"}', '{"version": null}', "[1, 2]"])
    def test_unusable_stored_record_reads_as_missing(self, raw, goal_store, snapshot_store, settings):
        snapshot_store.save(SNAPSHOT_KEY, raw)
        builder = SnapshotBuilder(goal_store, snapshot_store, settings, clock=lambda: NOW)
        assert asyncio.run(builder.get_snapshot()) is None

    def test_write_failure_propagates(self, goal_store, snapshot_store, settings):
        def failing_save(key, value):
            raise sqlite3.OperationalError("disk I/O error")

        snapshot_store.save = failing_save
        builder = SnapshotBuilder(goal_store, snapshot_store, settings, clock=lambda: NOW)
        with pytest.raises(sqlite3.OperationalError):
            asyncio.run(builder.generate_snapshot())


class TestHelpers:

    def test_just_completed_window(self, make_goal):
        fresh = make_goal(last_completed_at=AFTERNOON - timedelta(minutes=4))
        stale = make_goal(last_completed_at=AFTERNOON - timedelta(minutes=5))
        assert just_completed([stale, fresh], AFTERNOON) is fresh
        assert just_completed([stale], AFTERNOON) is None

    def test_most_recently_completed(self, make_goal):
        earlier = make_goal(last_completed_at=AFTERNOON - timedelta(hours=2))
        later = make_goal(last_completed_at=AFTERNOON - timedelta(hours=1))
        pending = make_goal()
        assert most_recently_completed([earlier, later, pending], AFTERNOON) is later
        assert most_recently_completed([pending], AFTERNOON) is None
