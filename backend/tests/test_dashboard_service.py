from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from dayflow.core.clock import FixedClock
from dayflow.domain.models import FreeActivity, Task
from dayflow.services.dashboard_service import (
    completion_percent,
    day_summary_message,
    fun_balance,
    level_for_xp,
    weekly_goal_summary,
)
from dayflow.services.progress_tracker import ProgressTracker


def _task(activity: FreeActivity | None, hours: float) -> Task:
    start = datetime(2025, 3, 3, 9, 0)
    return Task(title=activity.value if activity else "Errand", start=start, end=start + timedelta(hours=hours), type=activity)


def test_completion_percent_and_message() -> None:
    assert completion_percent(0, 0) == 0
    assert completion_percent(2, 3) == 66
    assert day_summary_message(3, 4) == "You completed 3 of 4 tasks (75%)."


def test_level_from_xp() -> None:
    assert level_for_xp(0) == 1
    assert level_for_xp(99) == 1
    assert level_for_xp(100) == 2
    assert level_for_xp(250) == 3


@pytest.mark.parametrize(
    "tasks, mood",
    [
        ([], "none"),
        ([_task(None, 2)], "none"),
        ([_task(FreeActivity.RELAX, 3), _task(FreeActivity.STUDY, 1)], "chill"),
        ([_task(FreeActivity.SOCIAL, 1), _task(FreeActivity.EXERCISE, 1)], "balanced"),
        ([_task(FreeActivity.COOKING, 3), _task(FreeActivity.CHORES, 7)], "balanced"),
        ([_task(FreeActivity.RELAX, 1), _task(FreeActivity.SKILL, 4)], "heavy"),
    ],
)
def test_fun_balance_thresholds(tasks, mood) -> None:
    assert fun_balance(tasks).mood == mood


def test_fun_balance_hours() -> None:
    balance = fun_balance([_task(FreeActivity.RELAX, 1.5), _task(FreeActivity.STUDY, 0.5)])

    assert balance.fun_hours == pytest.approx(1.5)
    assert balance.productive_hours == pytest.approx(0.5)


def test_weekly_goal_summary_lists_only_positive_goals() -> None:
    tracker = ProgressTracker(FixedClock(datetime(2025, 3, 3, 9, 0)))
    tracker.ensure_current_week()
    tracker.set_weekly_goal(FreeActivity.EXERCISE, 2)
    tracker.set_weekly_goal(FreeActivity.STUDY, 4)
    tracker.set_weekly_goal(FreeActivity.CHORES, 0)
    tracker.set_custom_goal("Guitar", 1)
    tracker.set_custom_goal("Dropped", 5)
    tracker.weekly_progress[FreeActivity.STUDY] = 1.0
    tracker.weekly_progress_custom["Guitar"] = 3.0

    goals = weekly_goal_summary(tracker, ["Guitar"])

    assert [goal.name for goal in goals] == ["Study", "Exercise", "Guitar"]
    assert goals[0].fraction == pytest.approx(0.25)
    assert goals[2].fraction == 1.0


def test_weekly_goal_summary_leaves_stale_week_untouched() -> None:
    tracker = ProgressTracker(
        FixedClock(datetime(2025, 3, 10, 9, 0)),
        last_week_start=date(2025, 3, 2),
        weekly_goals={FreeActivity.STUDY: 4.0},
        weekly_progress={FreeActivity.STUDY: 2.0},
    )

    goals = weekly_goal_summary(tracker, [])

    assert goals[0].progress_hours == 2.0
    assert tracker.last_week_start == date(2025, 3, 2)
    assert tracker.weekly_progress == {FreeActivity.STUDY: 2.0}
