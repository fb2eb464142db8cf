"""Deterministic day schedule generation.

A day is built in two passes. Fixed commitments are clipped to the waking window
and swept in start order, which leaves a list of free ranges. Each free range is
then filled greedily: meal and routine anchors first (once per day), then the
preference rotation. Nothing backtracks; identical inputs give identical output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from dayflow.domain.models import FixedActivity, FreeActivity, Task
from dayflow.domain.timeutils import time_on_date, weekday_index

logger = logging.getLogger(__name__)

MIN_FILL_SPAN = timedelta(minutes=20)
CUSTOM_DURATION = timedelta(minutes=60)

DEFAULT_DURATIONS: Dict[FreeActivity, timedelta] = {
    FreeActivity.STUDY: timedelta(minutes=90),
    FreeActivity.SKILL: timedelta(minutes=75),
    FreeActivity.EXERCISE: timedelta(minutes=45),
    FreeActivity.CHORES: timedelta(minutes=40),
    FreeActivity.RELAX: timedelta(minutes=30),
    FreeActivity.COOKING: timedelta(minutes=45),
    FreeActivity.SOCIAL: timedelta(minutes=120),
}

# energy level -> share of a free span that auto-filled blocks may use
USAGE_FRACTIONS: Dict[int, float] = {1: 0.5, 2: 0.7, 3: 0.9}
DEFAULT_USAGE_FRACTION = 0.7

FreeRange = Tuple[datetime, datetime]


@dataclass(frozen=True)
class DailyAnchor:
    """A once-per-day block placed ahead of preferences when the hour matches."""

    key: str
    title: str
    max_duration: timedelta
    applies: Callable[[int], bool]


DAILY_ANCHORS: Tuple[DailyAnchor, ...] = (
    DailyAnchor("morning", "Morning routine (get ready, breakfast)", timedelta(minutes=45), lambda hour: hour < 10),
    DailyAnchor("lunch", "Lunch / Break", timedelta(minutes=40), lambda hour: 11 <= hour <= 14),
    DailyAnchor("dinner", "Dinner / Cook & eat", timedelta(minutes=45), lambda hour: 18 <= hour <= 20),
    DailyAnchor("wind_down", "Wind down & get ready for bed", timedelta(minutes=30), lambda hour: hour >= 21),
)


@dataclass
class ScheduleConstraints:
    """Everything about the user that shapes a generated day."""

    wake_time: time
    sleep_time: time
    fixed_activities: Sequence[FixedActivity] = ()
    auto_fill: bool = True
    selected_activities: Sequence[FreeActivity] = ()
    custom_preferences: Sequence[str] = ()

    def preference_titles(self) -> List[str]:
        """Built-in picks in declaration order, then custom strings as entered."""
        builtin = [activity.value for activity in FreeActivity.ordered(self.selected_activities)]
        return builtin + list(self.custom_preferences)


@dataclass
class _FillState:
    titles: List[str]
    usage: float
    now: datetime
    pref_index: int = 0
    placed_anchors: set = field(default_factory=set)

    def next_title(self) -> str:
        title = self.titles[self.pref_index % len(self.titles)]
        self.pref_index += 1
        return title


def usage_fraction(energy_level: Optional[int]) -> float:
    if energy_level is None:
        return DEFAULT_USAGE_FRACTION
    return USAGE_FRACTIONS.get(energy_level, DEFAULT_USAGE_FRACTION)


def default_duration(title: str, activity: Optional[FreeActivity] = None) -> timedelta:
    """Unscaled block length for a preference title."""
    kind = activity or FreeActivity.from_title(title)
    if kind is None:
        return CUSTOM_DURATION
    return DEFAULT_DURATIONS[kind]


def generate_schedule(
    day: date,
    constraints: ScheduleConstraints,
    *,
    now: datetime,
    day_index: Optional[int] = None,
    energy_level: Optional[int] = None,
    wake_override: Optional[datetime] = None,
    sleep_override: Optional[datetime] = None,
) -> List[Task]:
    """
    Build the ordered task list for ``day``.

    ``now`` is the real-world moment used to avoid auto-planning blocks that have
    already ended. Returns [] when the effective sleep time is not after wake time.
    """
    wake = wake_override or time_on_date(constraints.wake_time, day)
    sleep = sleep_override or time_on_date(constraints.sleep_time, day)
    if sleep <= wake:
        logger.info("Skipping %s: sleep %s is not after wake %s", day, sleep, wake)
        return []

    weekday = weekday_index(day) if day_index is None else day_index
    blocks = _fixed_blocks(constraints.fixed_activities, weekday, day)
    tasks, ranges = _sweep_fixed_blocks(blocks, wake, sleep)

    titles = constraints.preference_titles()
    if constraints.auto_fill and titles:
        state = _FillState(titles=titles, usage=usage_fraction(energy_level), now=now)
        for range_start, range_end in ranges:
            tasks.extend(_fill_range(range_start, range_end, state))

    tasks.sort(key=lambda task: task.start)
    logger.debug(
        "Generated %s: %d tasks (%d fixed blocks, %d free ranges)",
        day,
        len(tasks),
        len(blocks),
        len(ranges),
    )
    return tasks


def _fixed_blocks(
    activities: Sequence[FixedActivity],
    weekday: int,
    day: date,
) -> List[Tuple[str, datetime, datetime]]:
    blocks: List[Tuple[str, datetime, datetime]] = []
    for activity in activities:
        if not 0 <= weekday < len(activity.days):
            continue
        schedule = activity.days[weekday]
        if not schedule.enabled:
            continue
        start = time_on_date(schedule.start, day)
        end = time_on_date(schedule.end, day)
        if end > start:
            blocks.append((activity.name, start, end))
    blocks.sort(key=lambda block: block[1])
    return blocks


def _sweep_fixed_blocks(
    blocks: List[Tuple[str, datetime, datetime]],
    wake: datetime,
    sleep: datetime,
) -> Tuple[List[Task], List[FreeRange]]:
    """Turn sorted fixed blocks into fixed tasks plus the free ranges between them."""
    if not blocks:
        return [], [(wake, sleep)]

    tasks: List[Task] = []
    ranges: List[FreeRange] = []
    cursor = wake
    for name, block_start, block_end in blocks:
        # an overlapping commitment resumes where the previous one ended
        start = max(block_start, cursor)
        end = min(block_end, sleep)
        if end <= start:
            continue
        if start > cursor:
            ranges.append((cursor, start))
        tasks.append(Task(title=name, start=start, end=end))
        cursor = max(cursor, end)

    if cursor < sleep:
        ranges.append((cursor, sleep))
    return tasks, ranges


def _fill_range(range_start: datetime, range_end: datetime, state: _FillState) -> List[Task]:
    filled: List[Task] = []
    cursor = range_start
    while cursor < range_end:
        remaining = range_end - cursor
        if remaining < MIN_FILL_SPAN:
            break

        anchor = _due_anchor(cursor.hour, state.placed_anchors)
        if anchor is not None:
            end = cursor + min(anchor.max_duration, remaining * state.usage)
            filled.append(Task(title=anchor.title, start=cursor, end=end))
            state.placed_anchors.add(anchor.key)
            cursor = end
            continue

        title = state.next_title()
        activity = FreeActivity.from_title(title)
        duration = default_duration(title, activity) * state.usage
        if duration > remaining:
            duration = max(remaining / 2, MIN_FILL_SPAN)
        if duration > remaining:
            break

        end = cursor + duration
        if end <= state.now:
            # already over; leave the slot empty rather than plan into the past
            cursor = end
            continue

        filled.append(Task(title=title, start=cursor, end=end, type=activity))
        cursor = end
    return filled


def _due_anchor(hour: int, placed: set) -> Optional[DailyAnchor]:
    for anchor in DAILY_ANCHORS:
        if anchor.key not in placed and anchor.applies(hour):
            return anchor
    return None
