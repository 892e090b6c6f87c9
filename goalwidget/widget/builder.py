"""Snapshot generation and persistence."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from goalwidget.config import Settings
from goalwidget.engine import mascot as mascot_engine
from goalwidget.engine import theme
from goalwidget.engine.constants import RECENT_COMPLETION_WINDOW
from goalwidget.engine.cta import CTAContext, generate_cta
from goalwidget.engine.progress import progress_label
from goalwidget.engine.urgency import calculate_urgency, find_most_urgent
from goalwidget.goals.database import GoalStore
from goalwidget.goals.models import Goal, GoalType

from .models import (
    SNAPSHOT_KEY,
    SNAPSHOT_VERSION,
    MascotEmotion,
    MascotState,
    TopGoal,
    WidgetSnapshot,
    to_epoch_seconds,
)
from .store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class DisplayChoice:
    """What the widget should show, before it is turned into a snapshot."""
    context: CTAContext
    goal: Goal
    mascot: MascotState
    status: theme.BackgroundStatus


def _completion_time(goal: Goal) -> datetime:
    return goal.last_completed_at or goal.created_at


def most_recently_completed(goals: list[Goal], now: datetime) -> Optional[Goal]:
    """Completed goal with the latest completion time (ties keep the first)."""
    recent = None
    for goal in goals:
        if not goal.is_completed(now):
            continue
        if recent is None or _completion_time(goal) > _completion_time(recent):
            recent = goal
    return recent


def just_completed(goals: list[Goal], now: datetime) -> Optional[Goal]:
    """Most recent goal completed inside the celebration window."""
    recent = None
    for goal in goals:
        completed_at = goal.last_completed_at
        if completed_at is None or not goal.is_completed(now):
            continue
        if now - completed_at >= RECENT_COMPLETION_WINDOW:
            continue
        if recent is None or completed_at > recent.last_completed_at:
            recent = goal
    return recent


class SnapshotBuilder:
    """
    Builds the widget snapshot from the goal store and writes it to the
    shared store.

    Not safe to run concurrently; the update scheduler is the only caller
    of ``generate_snapshot``.
    """

    def __init__(
        self,
        goal_store: GoalStore,
        store: SnapshotStore,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.goal_store = goal_store
        self.store = store
        self.settings = settings
        self.clock = clock

    async def generate_snapshot(
        self,
        current_mascot_state: Optional[MascotState] = None,
        is_celebration: bool = False,
    ) -> WidgetSnapshot:
        """
        Compute a fresh snapshot and overwrite the stored one.

        Args:
            current_mascot_state: Mascot state from the previous snapshot
            is_celebration: A completion was just logged

        Returns:
            The snapshot that was written
        """
        now = self.clock()
        goals = await self.goal_store.get_all_goals()

        if not goals:
            logger.info("No goals found, writing empty snapshot")
            snapshot = self._empty_snapshot(now)
        else:
            choice = self.select_display(goals, now, current_mascot_state, is_celebration)
            snapshot = self._assemble(now, choice)
            logger.info(
                f"Snapshot: context={choice.context.value} goal={choice.goal.id} "
                f"mascot={choice.mascot.emotion.value} status={snapshot.background_status}"
            )

        await self._save(snapshot)
        return snapshot

    def select_display(
        self,
        goals: list[Goal],
        now: datetime,
        current_mascot_state: Optional[MascotState] = None,
        is_celebration: bool = False,
    ) -> DisplayChoice:
        """
        Pick the display context, goal and mascot, in priority order:
        fresh completion, end of day, all dailies done, long-term focus hour,
        daily in progress, most urgent overall.
        """
        daily_goals = [g for g in goals if g.goal_type == GoalType.DAILY]
        long_term_goals = [g for g in goals if g.goal_type == GoalType.LONG_TERM]

        def derived_mascot(goal: Goal) -> MascotState:
            if is_celebration:
                return mascot_engine.create_celebrate_state(now)
            return mascot_engine.compute_state(goal, now, current_mascot_state)

        def status_for(goal: Goal, mascot: MascotState) -> theme.BackgroundStatus:
            if mascot.emotion == MascotEmotion.CELEBRATE:
                return theme.BackgroundStatus.CELEBRATE
            return theme.status_from_urgency(calculate_urgency(goal, now))

        # Fresh completion wins over everything, even past end of day
        recent = just_completed(goals, now)
        if recent is not None:
            context = (
                CTAContext.DAILY_COMPLETED
                if recent.goal_type == GoalType.DAILY
                else CTAContext.LONG_TERM_COMPLETED
            )
            return DisplayChoice(
                context=context,
                goal=recent,
                mascot=mascot_engine.create_celebrate_state(now),
                status=theme.BackgroundStatus.CELEBRATE,
            )

        if now.hour >= self.settings.end_of_day_start_hour:
            goal = find_most_urgent(goals, now) or most_recently_completed(goals, now)
            return DisplayChoice(
                context=CTAContext.END_OF_DAY,
                goal=goal,
                mascot=derived_mascot(goal),
                status=theme.BackgroundStatus.END_OF_DAY,
            )

        if daily_goals and all(g.is_completed(now) for g in daily_goals):
            goal = most_recently_completed(daily_goals, now)
            return DisplayChoice(
                context=CTAContext.DAILY_ALL_COMPLETE,
                goal=goal,
                mascot=derived_mascot(goal),
                status=theme.BackgroundStatus.CELEBRATE,
            )

        in_focus_hour = now.hour in self.settings.long_term_focus_hours
        if in_focus_hour and not daily_goals and long_term_goals:
            goal = find_most_urgent(long_term_goals, now) or most_recently_completed(
                long_term_goals, now
            )
            mascot = derived_mascot(goal)
            return DisplayChoice(
                context=CTAContext.LONG_TERM_IN_PROGRESS,
                goal=goal,
                mascot=mascot,
                status=status_for(goal, mascot),
            )

        incomplete_dailies = [g for g in daily_goals if not g.is_completed(now)]
        if incomplete_dailies:
            goal = find_most_urgent(incomplete_dailies, now)
            mascot = derived_mascot(goal)
            return DisplayChoice(
                context=CTAContext.DAILY_IN_PROGRESS,
                goal=goal,
                mascot=mascot,
                status=status_for(goal, mascot),
            )

        goal = find_most_urgent(goals, now)
        if goal is None:
            goal = most_recently_completed(goals, now)
            context = CTAContext.LONG_TERM_COMPLETED
        elif goal.goal_type == GoalType.DAILY:
            context = CTAContext.DAILY_IN_PROGRESS
        else:
            context = CTAContext.LONG_TERM_IN_PROGRESS
        mascot = derived_mascot(goal)
        return DisplayChoice(
            context=context,
            goal=goal,
            mascot=mascot,
            status=status_for(goal, mascot),
        )

    def _top_goal(self, goal: Goal, now: datetime) -> TopGoal:
        next_due = goal.get_next_due_time(now)
        return TopGoal(
            id=goal.id,
            title=goal.title,
            progress=goal.get_progress(now),
            goal_type=goal.goal_type.value,
            progress_type=goal.progress_type.value,
            next_due_epoch=to_epoch_seconds(next_due) if next_due is not None else None,
            urgency=calculate_urgency(goal, now),
            progress_label=progress_label(goal, now),
        )

    def _assemble(self, now: datetime, choice: DisplayChoice) -> WidgetSnapshot:
        top_goal = self._top_goal(choice.goal, now)
        cta = generate_cta(top_goal, choice.mascot, now, context=choice.context)
        status, band, variant = theme.resolve(choice.status, now)
        return WidgetSnapshot(
            version=SNAPSHOT_VERSION,
            generated_at=to_epoch_seconds(now),
            top_goal=top_goal,
            mascot=choice.mascot,
            cta=cta,
            background_status=status,
            background_time_band=band,
            background_variant=variant,
        )

    def _empty_snapshot(self, now: datetime) -> WidgetSnapshot:
        mascot = MascotState(emotion=MascotEmotion.NEUTRAL)
        status, band, variant = theme.resolve(theme.BackgroundStatus.EMPTY, now)
        return WidgetSnapshot(
            version=SNAPSHOT_VERSION,
            generated_at=to_epoch_seconds(now),
            top_goal=None,
            mascot=mascot,
            cta=generate_cta(None, mascot, now),
            background_status=status,
            background_time_band=band,
            background_variant=variant,
        )

    async def _save(self, snapshot: WidgetSnapshot):
        await asyncio.to_thread(self.store.save, SNAPSHOT_KEY, snapshot.to_json())

    async def get_snapshot(self) -> Optional[WidgetSnapshot]:
        """
        Read the stored snapshot.

        Returns:
            The snapshot, or None when it is missing, unreadable or malformed
        """
        try:
            raw = await asyncio.to_thread(self.store.load, SNAPSHOT_KEY)
        except Exception as e:
            logger.error(f"Failed to load widget snapshot: {e}")
            return None

        if raw is None:
            return None

        try:
            return WidgetSnapshot.from_json(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Stored widget snapshot is malformed, ignoring: {e}")
            return None
