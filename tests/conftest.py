"""Shared fixtures: goal factories, an in-memory goal store, isolated settings."""

from datetime import datetime

import pytest

from goalwidget.config import Settings
from goalwidget.goals.models import Goal, GoalType, ProgressType
from goalwidget.widget.store import SnapshotStore

# Wednesday, 9pm: inside the active day window, before end of day
NOW = datetime(2025, 3, 12, 21, 0)


class InMemoryGoalStore:
    """Goal store backed by a plain list, for driving the builder directly."""

    def __init__(self, goals=None):
        self.goals = list(goals or [])
        self.listeners = []

    async def get_all_goals(self):
        return list(self.goals)

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)


@pytest.fixture
def make_goal():
    """Factory for goals with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> Goal:
        counter["n"] += 1
        values = {
            "id": f"goal-{counter['n']}",
            "title": f"Goal {counter['n']}",
            "goal_type": GoalType.DAILY,
            "progress_type": ProgressType.COMPLETION,
            "created_at": datetime(2025, 1, 1, 9, 0),
        }
        values.update(overrides)
        return Goal(**values)

    return _make


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every store into the test's temp directory."""
    return Settings(
        _env_file=None,
        goals_db_path=str(tmp_path / "goals.db"),
        snapshot_db_path=str(tmp_path / "widget.db"),
        debounce_seconds=0.05,
    )


@pytest.fixture
def snapshot_store(settings):
    return SnapshotStore(settings.snapshot_db_path)


@pytest.fixture
def goal_store():
    return InMemoryGoalStore()
