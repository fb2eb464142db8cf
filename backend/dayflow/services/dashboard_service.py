"""Aggregation helpers for progress and summary endpoints."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from dayflow.api.schemas.progress import FunBalance, GoalProgress
from dayflow.domain.models import FreeActivity, Task
from dayflow.services.progress_tracker import ProgressTracker

FUN_ACTIVITIES = frozenset({FreeActivity.RELAX, FreeActivity.SOCIAL, FreeActivity.COOKING})
PRODUCTIVE_ACTIVITIES = frozenset(
    {FreeActivity.STUDY, FreeActivity.SKILL, FreeActivity.EXERCISE, FreeActivity.CHORES}
)


def level_for_xp(xp: int) -> int:
    return max(1, xp // 100 + 1)


def completion_percent(completed: int, total: int) -> int:
    return int(completed / total * 100) if total else 0


def day_summary_message(completed: int, total: int) -> str:
    return f"You completed {completed} of {total} tasks ({completion_percent(completed, total)}%)."


def _goal_fraction(progress: float, goal: float) -> float:
    return min(progress / max(goal, 0.001), 1.0)


def weekly_goal_summary(tracker: ProgressTracker, custom_preferences: Sequence[str]) -> List[GoalProgress]:
    """Goals above zero: built-in activities in declaration order, then custom preferences."""
    entries: List[GoalProgress] = []
    for activity in FreeActivity:
        goal = tracker.weekly_goals.get(activity, 0.0)
        if goal <= 0:
            continue
        progress = tracker.weekly_progress.get(activity, 0.0)
        entries.append(
            GoalProgress(
                name=activity.value,
                activity=activity,
                progress_hours=progress,
                goal_hours=goal,
                fraction=_goal_fraction(progress, goal),
            )
        )
    for name in custom_preferences:
        goal = tracker.weekly_goals_custom.get(name, 0.0)
        if goal <= 0:
            continue
        progress = tracker.weekly_progress_custom.get(name, 0.0)
        entries.append(
            GoalProgress(
                name=name,
                activity=None,
                progress_hours=progress,
                goal_hours=goal,
                fraction=_goal_fraction(progress, goal),
            )
        )
    return entries


def _split_hours(tasks: Iterable[Task]) -> Tuple[float, float]:
    fun = productive = 0.0
    for task in tasks:
        if task.type in FUN_ACTIVITIES:
            fun += task.hours
        elif task.type in PRODUCTIVE_ACTIVITIES:
            productive += task.hours
    return fun, productive


def fun_balance(tasks: Iterable[Task]) -> FunBalance:
    """Rate a day's typed tasks as chill, balanced or heavy by the productive share."""
    fun, productive = _split_hours(tasks)
    total = fun + productive
    if total == 0:
        return FunBalance(
            mood="none",
            message="No tracked tasks yet. Plan something for today.",
            fun_hours=0.0,
            productive_hours=0.0,
        )

    ratio = productive / total
    if ratio < 0.4:
        mood, message = "chill", "Very chill day (more fun than work)"
    elif ratio <= 0.7:
        mood, message = "balanced", "Balanced day (nice mix of work and fun)"
    else:
        mood, message = "heavy", "Heavy day (lots of work), remember to rest too"
    return FunBalance(mood=mood, message=message, fun_hours=fun, productive_hours=productive)
