"""Debounced, single-flight snapshot updates with wall-clock wake-ups."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Coroutine, Optional

from goalwidget.config import Settings
from goalwidget.engine.constants import CELEBRATION_DURATION
from goalwidget.goals.models import GoalChangeEvent

from .builder import SnapshotBuilder
from .models import MascotEmotion, MascotState, to_epoch_ms
from .notifier import WidgetNotifier

logger = logging.getLogger(__name__)


def compute_next_wake(
    now: datetime, mascot: Optional[MascotState], settings: Settings
) -> datetime:
    """
    Next instant the widget may change without any goal change.

    The earliest of: the next rotation boundary, the end of a running
    celebration, and the next occurrence of each daily transition hour.
    """
    interval = settings.rotation_interval_minutes
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    minutes_today = now.hour * 60 + now.minute
    next_block = (minutes_today // interval + 1) * interval
    candidates = [midnight + timedelta(minutes=next_block)]

    # Expiries further out than one celebration are malformed and ignored
    if (
        mascot is not None
        and mascot.emotion == MascotEmotion.CELEBRATE
        and mascot.expires_at is not None
        and to_epoch_ms(now) < mascot.expires_at <= to_epoch_ms(now + CELEBRATION_DURATION)
    ):
        candidates.append(datetime.fromtimestamp(mascot.expires_at / 1000, tz=now.tzinfo))

    for hour in settings.transition_hours():
        at = midnight.replace(hour=hour)
        if at <= now:
            at += timedelta(days=1)
        candidates.append(at)

    return min(candidates)


class UpdateScheduler:
    """
    Owns every trigger of a snapshot rebuild.

    Goal changes are debounced, at most one rebuild runs at a time (with at
    most one more queued behind it), and a single timer is kept armed for
    the next time-based transition.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        notifier: WidgetNotifier,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.builder = builder
        self.notifier = notifier
        self.settings = settings
        self.clock = clock

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._transition_handle: Optional[asyncio.TimerHandle] = None
        self._next_wake: Optional[datetime] = None

        self._in_flight = False
        self._rebuild_owed = False
        self._pending_celebration = False
        self._closed = False

        self._idle = asyncio.Event()
        self._idle.set()
        self._tasks: set[asyncio.Task] = set()

        self.last_snapshot = None
        self.rebuild_count = 0

    def start(self):
        """Bind to the running loop and kick off an initial rebuild."""
        self._loop = asyncio.get_running_loop()
        logger.info("Update scheduler started")
        self._spawn(self._request_rebuild("startup"))

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _spawn(self, coro: Coroutine):
        task = self._require_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def on_goal_change(self, event: GoalChangeEvent):
        """
        Goal store listener. Re-arms the debounce timer; the celebration
        flag is kept until a rebuild picks it up.

        Safe to call from any thread once the scheduler has started.
        """
        if self._closed:
            return
        self._require_loop().call_soon_threadsafe(self._schedule_debounce, event)

    def _schedule_debounce(self, event: GoalChangeEvent):
        if self._closed:
            return

        logger.debug(
            f"Goal change detected: {event.kind} "
            f"(goal: {event.goal_id or 'unknown'}, celebration: {event.is_celebration})"
        )
        self._pending_celebration = self._pending_celebration or event.is_celebration

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self._require_loop().call_later(
            self.settings.debounce_seconds, self._on_debounce_fired
        )

    def _on_debounce_fired(self):
        self._debounce_handle = None
        if self._closed:
            return
        self._spawn(self._request_rebuild("goal_change"))

    async def force_update(self, is_celebration: bool = False):
        """Rebuild now (or right after the running rebuild) and wait for it."""
        if self._closed:
            return
        self._pending_celebration = self._pending_celebration or is_celebration
        await self._request_rebuild("manual_refresh")
        await self.wait_idle()

    async def wait_idle(self):
        """Wait until no rebuild is running or owed."""
        await self._idle.wait()

    async def _request_rebuild(self, reason: str):
        if self._in_flight:
            logger.debug(f"Snapshot update already in progress, queueing {reason}")
            self._rebuild_owed = True
            return

        self._in_flight = True
        self._idle.clear()
        try:
            await self._rebuild(reason)
            while self._rebuild_owed and not self._closed:
                self._rebuild_owed = False
                await self._rebuild(f"{reason} (queued)")
        finally:
            self._in_flight = False
            self._rebuild_owed = False
            self._idle.set()

    async def _rebuild(self, reason: str):
        is_celebration = self._pending_celebration
        self._pending_celebration = False
        self.rebuild_count += 1

        try:
            previous = await self.builder.get_snapshot()
            previous_mascot = previous.mascot if previous is not None else None

            logger.info(f"Generating snapshot: {reason} (celebration: {is_celebration})")
            snapshot = await self.builder.generate_snapshot(
                current_mascot_state=previous_mascot,
                is_celebration=is_celebration,
            )

            await self.notifier.notify(snapshot.generated_at)
        except Exception:
            logger.exception(f"Failed to update widget snapshot ({reason})")
            # Keep time-based retries alive even when this rebuild failed
            self._schedule_next_transition(None)
            return

        self.last_snapshot = snapshot
        logger.info(f"Widget snapshot updated: {reason}")
        self._schedule_next_transition(snapshot.mascot)

    def _schedule_next_transition(self, mascot: Optional[MascotState]):
        if self._closed:
            return

        if self._transition_handle is not None:
            self._transition_handle.cancel()
            self._transition_handle = None

        try:
            now = self.clock()
            wake = compute_next_wake(now, mascot, self.settings)
            delay = max((wake - now).total_seconds(), 0.0)
            self._transition_handle = self._require_loop().call_later(
                delay, self._on_transition_fired
            )
        except Exception:
            logger.exception(
                "Could not arm transition timer, continuing with event-driven updates"
            )
            self._next_wake = None
            return

        self._next_wake = wake
        logger.debug(f"Next widget transition at {wake.isoformat()}")

    def _on_transition_fired(self):
        self._transition_handle = None
        if self._closed:
            return
        self._spawn(self._request_rebuild("transition"))

    def shutdown(self):
        """Cancel every timer; nothing fires after this returns."""
        self._closed = True
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._transition_handle is not None:
            self._transition_handle.cancel()
            self._transition_handle = None
        self._next_wake = None
        logger.info("Update scheduler stopped")

    def status(self) -> dict:
        return {
            "in_flight": self._in_flight,
            "rebuild_owed": self._rebuild_owed,
            "pending_celebration": self._pending_celebration,
            "debounce_pending": self._debounce_handle is not None,
            "next_wake": self._next_wake.isoformat() if self._next_wake else None,
            "rebuild_count": self.rebuild_count,
            "closed": self._closed,
        }
