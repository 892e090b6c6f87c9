"""SQLite goal store and the interface the widget service consumes."""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol

from .models import Goal, GoalChangeEvent

logger = logging.getLogger(__name__)

GoalChangeListener = Callable[[GoalChangeEvent], None]


class GoalStore(Protocol):
    """What the widget service needs from a goal store."""

    async def get_all_goals(self) -> list[Goal]:
        ...

    def subscribe(self, listener: GoalChangeListener) -> Callable[[], None]:
        ...


class GoalDatabase:
    """Simple SQLite goal store shared with the app that owns the goals."""

    def __init__(self, db_path: str = "data/goals.db"):
        """Initialize database."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: list[GoalChangeListener] = []
        self._init_db()

    def _init_db(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS goals (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.info(f"Goal database initialized at {self.db_path}")

    def subscribe(self, listener: GoalChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: GoalChangeEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Goal change listener failed for {event.kind}")

    def load_goals(self) -> list[Goal]:
        """
        Read every goal in insertion order.

        Rows that cannot be parsed are logged and skipped.
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT id, data FROM goals ORDER BY position, id"
            ).fetchall()

        goals = []
        for row in rows:
            try:
                goals.append(Goal.from_dict(json.loads(row["data"])))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed goal {row['id']}: {e}")
        return goals

    async def get_all_goals(self) -> list[Goal]:
        """Read every goal without blocking the event loop."""
        return await asyncio.to_thread(self.load_goals)

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        """Get goal by id."""
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT data FROM goals WHERE id = ?", (goal_id,)
            ).fetchone()

        if not row:
            return None
        return Goal.from_dict(json.loads(row[0]))

    def upsert_goal(self, goal: Goal, is_celebration: bool = False):
        """Insert or replace a goal, keeping its original position."""
        with sqlite3.connect(self.db_path) as conn:
            existing = conn.execute(
                "SELECT position FROM goals WHERE id = ?", (goal.id,)
            ).fetchone()
            if existing:
                conn.execute(
                    "UPDATE goals SET data = ? WHERE id = ?",
                    (json.dumps(goal.to_dict()), goal.id),
                )
                kind = "goal_updated"
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM goals"
                ).fetchone()[0]
                conn.execute(
                    "INSERT INTO goals (id, position, data) VALUES (?, ?, ?)",
                    (goal.id, position, json.dumps(goal.to_dict())),
                )
                kind = "goal_added"
            conn.commit()

        logger.info(f"Saved goal: {goal.title} ({goal.id})")
        self._emit(GoalChangeEvent(kind=kind, goal_id=goal.id, is_celebration=is_celebration))

    def delete_goal(self, goal_id: str):
        """Delete goal by id."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
            conn.commit()

        logger.info(f"Deleted goal: {goal_id}")
        self._emit(GoalChangeEvent(kind="goal_deleted", goal_id=goal_id))

    def record_completion(self, goal_id: str, at: Optional[datetime] = None) -> Goal:
        """
        Log a completion for a goal and announce it as a celebration.

        Args:
            goal_id: Goal to complete
            at: Completion instant (defaults to now)

        Returns:
            The updated goal

        Raises:
            KeyError: if the goal does not exist
        """
        goal = self.get_goal(goal_id)
        if goal is None:
            raise KeyError(f"Goal not found: {goal_id}")

        at = at or datetime.now()
        was_completed = goal.is_completed(at)
        goal.today_completions = [
            c for c in goal.today_completions if c.date() == at.date()
        ] + [at]
        goal.last_completed_at = at
        if not was_completed and goal.is_completed(at):
            goal.current_streak += 1
            goal.longest_streak = max(goal.longest_streak, goal.current_streak)

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "UPDATE goals SET data = ? WHERE id = ?",
                (json.dumps(goal.to_dict()), goal.id),
            )
            conn.commit()

        logger.info(f"Logged completion for {goal.title} at {at.isoformat()}")
        self._emit(
            GoalChangeEvent(kind="progress_logged", goal_id=goal.id, is_celebration=True)
        )
        return goal
