"""Data models for goals read from the goal store."""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Optional


class GoalType(str, Enum):
    """Recurring daily goal or one-off long-term goal."""

    DAILY = "daily"
    LONG_TERM = "longTerm"


class ProgressType(str, Enum):
    """How progress is measured for a goal."""

    COMPLETION = "completion"
    PERCENTAGE = "percentage"
    MILESTONES = "milestones"
    NUMERIC = "numeric"


def is_same_day(a: datetime, b: datetime) -> bool:
    """True when both instants fall on the same calendar day."""
    return a.date() == b.date()


def end_of_day(now: datetime) -> datetime:
    """Last instant of the day containing ``now``."""
    return datetime.combine(now.date(), time.max, tzinfo=now.tzinfo)


def _parse_instant(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _format_instant(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Milestone:
    """A checkpoint of a milestone-based goal."""
    id: str
    title: str
    completed: bool = False
    completed_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        return cls(
            id=data["id"],
            title=data["title"],
            completed=bool(data.get("completed", False)),
            completed_at=_parse_instant(data.get("completedAt")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "completedAt": _format_instant(self.completed_at),
        }


@dataclass
class Goal:
    """A goal as owned by the goal store. Read-only for this service."""
    id: str
    title: str
    goal_type: GoalType
    progress_type: ProgressType
    created_at: datetime

    # Numeric goals ("Read 12 books")
    target_value: Optional[float] = None
    current_value: float = 0.0
    unit: Optional[str] = None

    # Percentage goals (0-100)
    percent_complete: float = 0.0

    milestones: list[Milestone] = field(default_factory=list)
    deadline: Optional[datetime] = None

    # Daily streak tracking
    today_completions: list[datetime] = field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_at: Optional[datetime] = None

    @property
    def completed_milestones(self) -> int:
        return sum(1 for m in self.milestones if m.completed)

    def _has_valid_target(self) -> bool:
        return self.target_value is not None and self.target_value > 0

    def completions_on(self, now: datetime) -> int:
        """Number of completions logged on the same day as ``now``."""
        return sum(1 for c in self.today_completions if is_same_day(c, now))

    def is_completed(self, now: datetime) -> bool:
        """Check whether the goal counts as done at ``now``."""
        if self.progress_type == ProgressType.COMPLETION:
            if self.last_completed_at is None:
                return False
            if self.goal_type == GoalType.DAILY:
                return is_same_day(self.last_completed_at, now)
            return True

        if self.progress_type == ProgressType.PERCENTAGE:
            return self.percent_complete >= 100

        if self.progress_type == ProgressType.MILESTONES:
            return bool(self.milestones) and all(m.completed for m in self.milestones)

        # Numeric
        if not self._has_valid_target():
            return False
        if self.goal_type == GoalType.DAILY:
            return self.completions_on(now) >= self.target_value
        return self.current_value >= self.target_value

    def get_progress(self, now: datetime) -> float:
        """
        Overall progress between 0 and 1.

        Args:
            now: Reference instant (daily goals only count today's completions)

        Returns:
            Progress ratio, 0.0 for goals whose target cannot be measured
        """
        if self.progress_type == ProgressType.COMPLETION:
            return 1.0 if self.is_completed(now) else 0.0

        if self.progress_type == ProgressType.PERCENTAGE:
            return min(max(self.percent_complete / 100, 0.0), 1.0)

        if self.progress_type == ProgressType.MILESTONES:
            if not self.milestones:
                return 0.0
            return self.completed_milestones / len(self.milestones)

        if not self._has_valid_target():
            return 0.0
        if self.goal_type == GoalType.DAILY:
            ratio = self.completions_on(now) / self.target_value
        else:
            ratio = self.current_value / self.target_value
        return min(max(ratio, 0.0), 1.0)

    def get_progress_today(self, now: datetime) -> float:
        """Today's progress ratio for daily goals, overall progress otherwise."""
        if self.goal_type != GoalType.DAILY:
            return self.get_progress(now)

        if self.progress_type == ProgressType.COMPLETION:
            done = self.last_completed_at is not None and is_same_day(
                self.last_completed_at, now
            )
            return 1.0 if done else 0.0

        return self.get_progress(now)

    def is_overdue(self, now: datetime) -> bool:
        if self.deadline is None:
            return False
        return now > self.deadline and not self.is_completed(now)

    def get_next_due_time(self, now: datetime) -> Optional[datetime]:
        """Daily goals are due at the end of today, long-term goals at their deadline."""
        if self.goal_type == GoalType.LONG_TERM:
            return self.deadline
        return end_of_day(now)

    @classmethod
    def from_dict(cls, data: dict) -> "Goal":
        """
        Parse a goal from its stored JSON form.

        Args:
            data: Dictionary with camelCase keys and ISO-8601 instants

        Returns:
            Goal instance

        Raises:
            KeyError, ValueError: if required fields are missing or malformed
        """
        return cls(
            id=data["id"],
            title=data["title"],
            goal_type=GoalType(data.get("goalType", GoalType.DAILY.value)),
            progress_type=ProgressType(
                data.get("progressType", ProgressType.COMPLETION.value)
            ),
            created_at=datetime.fromisoformat(data["createdAt"]),
            target_value=(
                float(data["targetValue"])
                if data.get("targetValue") is not None
                else None
            ),
            current_value=float(data.get("currentValue") or 0),
            unit=data.get("unit"),
            percent_complete=float(data.get("percentComplete") or 0),
            milestones=[Milestone.from_dict(m) for m in data.get("milestones") or []],
            deadline=_parse_instant(data.get("deadline")),
            today_completions=[
                datetime.fromisoformat(c) for c in data.get("todayCompletions") or []
            ],
            current_streak=int(data.get("currentStreak") or 0),
            longest_streak=int(data.get("longestStreak") or 0),
            last_completed_at=_parse_instant(data.get("lastCompletedAt")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "goalType": self.goal_type.value,
            "progressType": self.progress_type.value,
            "targetValue": self.target_value,
            "currentValue": self.current_value,
            "unit": self.unit,
            "percentComplete": self.percent_complete,
            "milestones": [m.to_dict() for m in self.milestones],
            "deadline": _format_instant(self.deadline),
            "todayCompletions": [c.isoformat() for c in self.today_completions],
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastCompletedAt": _format_instant(self.last_completed_at),
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class GoalChangeEvent:
    """Change notification emitted by the goal store."""
    kind: str  # "goal_added", "goal_updated", "goal_deleted", "progress_logged"
    goal_id: Optional[str] = None
    is_celebration: bool = False
