"""Calendar helpers shared by the generator, tracker and planner state.

Weeks are Sunday-aligned: day index 0 is Sunday and 6 is Saturday.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta

DAYS_PER_WEEK = 7


def time_on_date(stored: time | datetime, day: date) -> datetime:
    """Place the hour/minute of a stored time of day onto ``day`` (seconds dropped)."""
    return datetime.combine(day, time(hour=stored.hour, minute=stored.minute))


def weekday_index(day: date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


def start_of_week(day: date | datetime) -> date:
    """Return the Sunday that opens the week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=weekday_index(day))


def date_for_day_index(week_start: date, index: int) -> date:
    return week_start + timedelta(days=index)


def check_day_index(index: int) -> int:
    if not 0 <= index < DAYS_PER_WEEK:
        raise IndexError(f"day index {index} outside 0..{DAYS_PER_WEEK - 1}")
    return index


def hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600.0)


def to_local_naive(value: datetime) -> datetime:
    """Convert an offset-carrying instant to naive local wall-clock time; naive values pass through."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone().replace(tzinfo=None)
