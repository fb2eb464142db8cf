"""Planner entities.

These are plain pydantic models so that the persistence codec and the HTTP layer
share one definition of every structure.
"""
from __future__ import annotations

from datetime import datetime, time, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from dayflow.domain.timeutils import DAYS_PER_WEEK, hours_between


class FreeActivity(str, Enum):
    """Built-in free-time activities. Values are the stable labels used in storage."""

    STUDY = "Study"
    SKILL = "Skill-building"
    EXERCISE = "Exercise"
    CHORES = "Chores"
    RELAX = "Relaxation"
    COOKING = "Cooking / Meal prep"
    SOCIAL = "Social / Going out"

    @classmethod
    def from_title(cls, title: str) -> Optional["FreeActivity"]:
        try:
            return cls(title)
        except ValueError:
            return None

    @classmethod
    def ordered(cls, activities: Iterable["FreeActivity"]) -> List["FreeActivity"]:
        """Return ``activities`` de-duplicated in declaration order."""
        chosen = set(activities)
        return [activity for activity in cls if activity in chosen]


class Task(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    start: datetime
    end: datetime
    type: Optional[FreeActivity] = None
    is_completed: bool = False

    @model_validator(mode="after")
    def _end_after_start(self) -> "Task":
        if self.end <= self.start:
            raise ValueError("task end must be after its start")
        return self

    @property
    def hours(self) -> float:
        return hours_between(self.start, self.end)


class DaySchedule(BaseModel):
    """One weekday's window for a fixed activity."""

    enabled: bool = False
    start: time = time(hour=9)
    end: time = time(hour=17)


class FixedActivity(BaseModel):
    """A recurring weekly commitment; ``days[0]`` is Sunday."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    days: List[DaySchedule] = Field(min_length=DAYS_PER_WEEK, max_length=DAYS_PER_WEEK)

    @classmethod
    def weekly(
        cls,
        name: str,
        start: time,
        end: time,
        enabled_days: Iterable[int] = (),
    ) -> "FixedActivity":
        enabled = set(enabled_days)
        return cls(
            name=name,
            days=[DaySchedule(enabled=idx in enabled, start=start, end=end) for idx in range(DAYS_PER_WEEK)],
        )


class TaskTemplate(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    default_duration: timedelta
    type: Optional[FreeActivity] = None

    @field_validator("default_duration")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("template duration must be positive")
        return value


WeekTasks = Dict[int, List[Task]]
ActivityHours = Dict[FreeActivity, float]
CustomHours = Dict[str, float]


def default_fixed_activities() -> List[FixedActivity]:
    """Work on weekdays 9-5, plus a disabled school template."""
    return [
        FixedActivity.weekly("Work / Job", time(hour=9), time(hour=17), enabled_days=range(1, 6)),
        FixedActivity.weekly("School / Classes", time(hour=9), time(hour=15)),
    ]
