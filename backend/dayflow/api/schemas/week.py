"""Schemas for week and day endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from dayflow.domain.models import FreeActivity, Task
from dayflow.domain.timeutils import to_local_naive


class DayPayload(BaseModel):
    day_index: int
    day: date
    tasks: List[Task]


class DayResponse(DayPayload):
    request_id: str


class WeekResponse(BaseModel):
    week_start: date
    days: List[DayPayload]
    request_id: str


class WeekRefreshResponse(BaseModel):
    week_start: date
    generated: bool
    request_id: str


class RegenerateDayRequest(BaseModel):
    energy_level: Optional[int] = Field(default=None, ge=1, le=3)
    wake_override: Optional[datetime] = None
    sleep_override: Optional[datetime] = None

    @field_validator("wake_override", "sleep_override")
    @classmethod
    def _local_wall_clock(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value) if value is not None else None


class ManualTaskRequest(BaseModel):
    title: str = ""
    start: datetime
    end: datetime
    type: Optional[FreeActivity] = None

    @field_validator("start", "end")
    @classmethod
    def _local_wall_clock(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> "ManualTaskRequest":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class TaskResponse(BaseModel):
    day_index: int
    task: Task
    request_id: str


class CompletionUpdateRequest(BaseModel):
    completed: bool


class CompletionUpdateResponse(BaseModel):
    id: UUID
    completed: bool
    changed: bool
    xp: int
    request_id: str
