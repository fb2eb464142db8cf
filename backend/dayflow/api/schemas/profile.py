"""Schemas for profile, preference and template endpoints."""
from __future__ import annotations

from datetime import time, timedelta
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dayflow.domain.models import FixedActivity, FreeActivity, TaskTemplate


class ProfileResponse(BaseModel):
    has_onboarded: bool
    user_name: str
    wake_time: time
    sleep_time: time
    auto_schedule: bool
    selected_activities: List[FreeActivity]
    custom_preferences: List[str]
    fixed_activities: List[FixedActivity]
    request_id: str


class OnboardingRequest(BaseModel):
    name: str = ""


class ScheduleUpdateRequest(BaseModel):
    wake_time: time
    sleep_time: time


class PreferencesUpdateRequest(BaseModel):
    selected_activities: List[FreeActivity] = Field(default_factory=list)
    custom_preferences: List[str] = Field(default_factory=list)
    auto_schedule: Optional[bool] = None


class FixedActivitiesUpdateRequest(BaseModel):
    fixed_activities: List[FixedActivity]


class TemplateCreateRequest(BaseModel):
    title: str
    duration_min: int = Field(..., gt=0, le=24 * 60)
    type: Optional[FreeActivity] = None

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_min)


class TemplateSummary(BaseModel):
    id: UUID
    title: str
    duration_min: int
    type: Optional[FreeActivity]

    @classmethod
    def from_template(cls, template: TaskTemplate) -> "TemplateSummary":
        return cls(
            id=template.id,
            title=template.title,
            duration_min=int(template.default_duration.total_seconds() // 60),
            type=template.type,
        )


class TemplatesResponse(BaseModel):
    templates: List[TemplateSummary]
    request_id: str
