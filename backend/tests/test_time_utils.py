from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from dayflow.core.clock import FixedClock
from dayflow.domain.timeutils import (
    check_day_index,
    date_for_day_index,
    hours_between,
    start_of_week,
    time_on_date,
    to_local_naive,
    weekday_index,
)


def test_weekday_index_is_sunday_based() -> None:
    assert weekday_index(date(2025, 3, 2)) == 0  # Sunday
    assert weekday_index(date(2025, 3, 3)) == 1
    assert weekday_index(date(2025, 3, 8)) == 6  # Saturday


def test_start_of_week_returns_preceding_sunday() -> None:
    assert start_of_week(date(2025, 3, 2)) == date(2025, 3, 2)
    assert start_of_week(date(2025, 3, 8)) == date(2025, 3, 2)
    assert start_of_week(datetime(2025, 3, 5, 23, 59)) == date(2025, 3, 2)
    assert start_of_week(date(2025, 3, 1)) == date(2025, 2, 23)


def test_date_for_day_index() -> None:
    assert date_for_day_index(date(2025, 3, 2), 0) == date(2025, 3, 2)
    assert date_for_day_index(date(2025, 3, 2), 6) == date(2025, 3, 8)


def test_time_on_date_drops_seconds_and_uses_hour_minute() -> None:
    assert time_on_date(time(7, 30, 45), date(2025, 3, 3)) == datetime(2025, 3, 3, 7, 30)
    assert time_on_date(datetime(2001, 1, 1, 22, 15), date(2025, 3, 3)) == datetime(2025, 3, 3, 22, 15)


def test_check_day_index_bounds() -> None:
    assert check_day_index(0) == 0
    assert check_day_index(6) == 6
    with pytest.raises(IndexError):
        check_day_index(7)
    with pytest.raises(IndexError):
        check_day_index(-1)


def test_hours_between_never_negative() -> None:
    start = datetime(2025, 3, 3, 9, 0)
    assert hours_between(start, start + timedelta(minutes=90)) == 1.5
    assert hours_between(start, start - timedelta(hours=1)) == 0.0


def test_fixed_clock_moves_only_when_told() -> None:
    clock = FixedClock(datetime(2025, 3, 3, 8, 0))

    assert clock.today() == date(2025, 3, 3)
    assert clock.advance(hours=20) == datetime(2025, 3, 4, 4, 0)
    clock.set(datetime(2025, 3, 9, 0, 0))
    assert clock.now() == datetime(2025, 3, 9, 0, 0)


def test_to_local_naive_drops_offset_keeping_the_instant() -> None:
    aware = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)

    local = to_local_naive(aware)

    assert local.tzinfo is None
    assert local == aware.astimezone().replace(tzinfo=None)
    assert to_local_naive(datetime(2025, 3, 3, 12, 0)) == datetime(2025, 3, 3, 12, 0)
