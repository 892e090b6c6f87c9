"""Human-readable progress labels."""

from datetime import datetime

from goalwidget.goals.models import Goal, GoalType, ProgressType


def _format_number(value: float) -> str:
    return f"{value:.0f}"


def _numeric_label(goal: Goal, now: datetime) -> str:
    unit = goal.unit or ""
    target = _format_number(goal.target_value) if goal.target_value is not None else "?"

    if goal.goal_type == GoalType.DAILY:
        return f"{goal.completions_on(now)}/{target} {unit}".strip()

    return f"{_format_number(goal.current_value)}/{target} {unit}".strip()


def progress_label(goal: Goal, now: datetime) -> str:
    """Short label shown on the widget (e.g. "3/5", "40%", "Done")."""
    if goal.progress_type == ProgressType.COMPLETION:
        return "Done" if goal.is_completed(now) else "Not done"
    if goal.progress_type == ProgressType.PERCENTAGE:
        return f"{int(goal.percent_complete)}%"
    if goal.progress_type == ProgressType.MILESTONES:
        return f"{goal.completed_milestones}/{len(goal.milestones)}"
    return _numeric_label(goal, now)
