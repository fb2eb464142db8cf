"""Schemas for progress, goals and end-of-day summaries."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from dayflow.domain.models import FreeActivity


class GoalProgress(BaseModel):
    name: str
    activity: Optional[FreeActivity]
    progress_hours: float
    goal_hours: float
    fraction: float


class FunBalance(BaseModel):
    mood: Literal["none", "chill", "balanced", "heavy"]
    message: str
    fun_hours: float
    productive_hours: float


class ProgressResponse(BaseModel):
    xp: int
    level: int
    streak: int
    last_completion_date: Optional[date]
    week_start: date
    goals: List[GoalProgress]
    fun_balance: FunBalance
    request_id: str


class DaySummaryResponse(BaseModel):
    day: date
    completed: int
    total: int
    percent: int
    streak: int
    xp: int
    message: str
    request_id: str


class GoalUpdateRequest(BaseModel):
    hours: float = Field(..., ge=0)


class GoalUpdateResponse(BaseModel):
    name: str
    goal_hours: float
    request_id: str
