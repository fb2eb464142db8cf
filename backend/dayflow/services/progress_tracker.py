"""Experience, streak and weekly goal bookkeeping."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, NamedTuple, Optional, Sequence

from dayflow.core.clock import Clock
from dayflow.domain.models import ActivityHours, CustomHours, FreeActivity, Task
from dayflow.domain.timeutils import start_of_week
from dayflow.observability.metrics import log_metric

logger = logging.getLogger(__name__)

XP_PER_COMPLETION = 10
MAX_WEEKLY_GOAL_HOURS = 40.0


class DayResult(NamedTuple):
    completed: int
    total: int


def clamp_goal(hours: float) -> float:
    return max(0.0, min(MAX_WEEKLY_GOAL_HOURS, float(hours)))


class ProgressTracker:
    """
    Owns XP, streak and the weekly goal/progress maps.

    Progress is attributed in two tiers: a typed task counts toward its built-in
    activity; an untyped task counts toward a custom preference only when its
    title is one of the user's custom preferences. Anything else earns XP but no
    progress. ``custom_preferences`` is read at call time so edits to the
    preference list apply immediately.
    """

    def __init__(
        self,
        clock: Clock,
        *,
        custom_preferences: Callable[[], Sequence[str]] = tuple,
        xp: int = 0,
        streak: int = 0,
        last_completion_date: Optional[date] = None,
        last_week_start: Optional[date] = None,
        weekly_goals: Optional[ActivityHours] = None,
        weekly_progress: Optional[ActivityHours] = None,
        weekly_goals_custom: Optional[CustomHours] = None,
        weekly_progress_custom: Optional[CustomHours] = None,
    ):
        self.clock = clock
        self.custom_preferences = custom_preferences
        self.xp = max(0, xp)
        self.streak = max(0, streak)
        self.last_completion_date = last_completion_date
        self.last_week_start = last_week_start
        self.weekly_goals: ActivityHours = dict(weekly_goals or {})
        self.weekly_progress: ActivityHours = dict(weekly_progress or {})
        self.weekly_goals_custom: CustomHours = dict(weekly_goals_custom or {})
        self.weekly_progress_custom: CustomHours = dict(weekly_progress_custom or {})

    def ensure_current_week(self) -> bool:
        """Clear progress if the watermark is not this week's Sunday. Returns True on reset."""
        this_week = start_of_week(self.clock.today())
        if self.last_week_start == this_week:
            return False
        logger.info("Week rolled over (%s -> %s); clearing weekly progress", self.last_week_start, this_week)
        self.weekly_progress = {}
        self.weekly_progress_custom = {}
        self.last_week_start = this_week
        return True

    def set_completion(self, task: Task, completed: bool) -> bool:
        """Flip ``task`` to ``completed`` and settle XP/progress. Returns False when nothing changed."""
        if task.is_completed == completed:
            return False

        task.is_completed = completed
        if completed:
            self.xp += XP_PER_COMPLETION
            self._adjust_progress(task, +1.0)
        else:
            self.xp = max(0, self.xp - XP_PER_COMPLETION)
            self._adjust_progress(task, -1.0)

        log_metric("tracker.completion", 1 if completed else -1, metadata={"xp": self.xp})
        return True

    def end_day(self, day_tasks: Iterable[Task]) -> DayResult:
        """Settle today's streak from the day's tasks."""
        tasks = list(day_tasks)
        total = len(tasks)
        completed = sum(1 for task in tasks if task.is_completed)
        today = self.clock.today()

        self.ensure_current_week()

        if completed > 0:
            last = self.last_completion_date
            if last is None:
                self.streak = 1
            elif last == today - timedelta(days=1):
                self.streak += 1
            elif last != today:
                self.streak = 1
        else:
            self.streak = 0
        self.last_completion_date = today

        logger.info("Day ended %s: %d/%d completed, streak=%d", today, completed, total, self.streak)
        return DayResult(completed=completed, total=total)

    def set_weekly_goal(self, activity: FreeActivity, hours: float) -> float:
        self.weekly_goals[activity] = clamp_goal(hours)
        return self.weekly_goals[activity]

    def set_custom_goal(self, name: str, hours: float) -> float:
        self.weekly_goals_custom[name] = clamp_goal(hours)
        return self.weekly_goals_custom[name]

    def _adjust_progress(self, task: Task, sign: float) -> None:
        self.ensure_current_week()
        delta = sign * task.hours
        if task.type is not None:
            current = self.weekly_progress.get(task.type, 0.0)
            self.weekly_progress[task.type] = max(0.0, current + delta)
        elif task.title in self.custom_preferences():
            current = self.weekly_progress_custom.get(task.title, 0.0)
            self.weekly_progress_custom[task.title] = max(0.0, current + delta)
