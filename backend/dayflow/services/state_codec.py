"""JSON encoding of planner state for the key-value store.

Decoders raise on malformed input; ``load_value`` turns any such failure into the
caller's default so a damaged entry never blocks startup.
"""
from __future__ import annotations

import logging
from datetime import date, time
from typing import Any, Callable, Dict, List, Mapping, TypeVar

from pydantic import TypeAdapter

from dayflow.domain.models import (
    ActivityHours,
    CustomHours,
    FixedActivity,
    FreeActivity,
    Task,
    TaskTemplate,
    WeekTasks,
)
from dayflow.domain.timeutils import DAYS_PER_WEEK
from dayflow.services.state_store import StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

HAS_ONBOARDED = "has_onboarded"
USER_NAME = "user_name"
WAKE_TIME = "wake_time"
SLEEP_TIME = "sleep_time"
FIXED_ACTIVITIES = "fixed_activities"
SELECTED_ACTIVITIES = "selected_activities"
CUSTOM_PREFERENCES = "custom_preferences"
AUTO_SCHEDULE = "auto_schedule"
TASK_TEMPLATES = "task_templates"
CURRENT_WEEK_START = "current_week_start"
WEEK_TASKS = "week_tasks"
XP = "xp"
STREAK = "streak"
LAST_COMPLETION_DATE = "last_completion_date"
LAST_WEEK_START = "last_week_start"
WEEKLY_GOALS = "weekly_goals"
WEEKLY_PROGRESS = "weekly_progress"
WEEKLY_GOALS_CUSTOM = "weekly_goals_custom"
WEEKLY_PROGRESS_CUSTOM = "weekly_progress_custom"

_week_adapter = TypeAdapter(Dict[int, List[Task]])
_fixed_adapter = TypeAdapter(List[FixedActivity])
_templates_adapter = TypeAdapter(List[TaskTemplate])


def load_value(store: StateStore, key: str, decoder: Callable[[Any], T], default: T) -> T:
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return decoder(raw)
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        logger.warning("Discarding unreadable %s entry: %s", key, exc)
        return default


# -- scalars ----------------------------------------------------------------

def decode_bool(raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise TypeError(f"expected bool, got {type(raw).__name__}")
    return raw


def decode_str(raw: Any) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"expected str, got {type(raw).__name__}")
    return raw


def decode_count(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TypeError(f"expected int, got {type(raw).__name__}")
    if raw < 0:
        raise ValueError("counter cannot be negative")
    return raw


def encode_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def decode_time(raw: Any) -> time:
    hour, minute = decode_str(raw).split(":")
    return time(hour=int(hour), minute=int(minute))


def encode_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def decode_date(raw: Any) -> date:
    return date.fromisoformat(decode_str(raw))


def decode_str_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        raise TypeError(f"expected list, got {type(raw).__name__}")
    return [decode_str(item) for item in raw]


# -- structures -------------------------------------------------------------

def encode_week_tasks(week: WeekTasks) -> Dict[str, Any]:
    return {
        str(idx): [task.model_dump(mode="json") for task in tasks]
        for idx, tasks in sorted(week.items())
    }


def decode_week_tasks(raw: Any) -> WeekTasks:
    decoded = _week_adapter.validate_python(raw)
    if any(not 0 <= idx < DAYS_PER_WEEK for idx in decoded):
        raise ValueError("week task map has a day index outside 0..6")
    return {idx: decoded.get(idx, []) for idx in range(DAYS_PER_WEEK)}


def encode_fixed_activities(activities: List[FixedActivity]) -> List[Dict[str, Any]]:
    return [activity.model_dump(mode="json") for activity in activities]


def decode_fixed_activities(raw: Any) -> List[FixedActivity]:
    return _fixed_adapter.validate_python(raw)


def encode_templates(templates: List[TaskTemplate]) -> List[Dict[str, Any]]:
    return [template.model_dump(mode="json") for template in templates]


def decode_templates(raw: Any) -> List[TaskTemplate]:
    return _templates_adapter.validate_python(raw)


def encode_selected(activities: List[FreeActivity]) -> List[str]:
    return [activity.value for activity in FreeActivity.ordered(activities)]


def decode_selected(raw: Any) -> List[FreeActivity]:
    """Unknown labels are dropped rather than invalidating the whole selection."""
    found = [FreeActivity.from_title(label) for label in decode_str_list(raw)]
    return FreeActivity.ordered(activity for activity in found if activity is not None)


def encode_activity_hours(hours: ActivityHours) -> Dict[str, float]:
    return {activity.value: float(hours[activity]) for activity in FreeActivity if activity in hours}


def decode_activity_hours(raw: Any) -> ActivityHours:
    result: ActivityHours = {}
    for label, value in _decode_hours(raw).items():
        activity = FreeActivity.from_title(label)
        if activity is None:
            logger.debug("Dropping hours for unknown activity %r", label)
            continue
        result[activity] = value
    return result


def encode_custom_hours(hours: CustomHours) -> Dict[str, float]:
    return {name: float(value) for name, value in hours.items()}


def decode_custom_hours(raw: Any) -> CustomHours:
    return _decode_hours(raw)


def _decode_hours(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, Mapping):
        raise TypeError(f"expected mapping, got {type(raw).__name__}")
    result: Dict[str, float] = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"hours for {key!r} must be numeric")
        result[decode_str(key)] = max(0.0, float(value))
    return result
