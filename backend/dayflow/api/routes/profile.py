"""Profile, onboarding and preference routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from dayflow.api.deps import get_planner
from dayflow.api.schemas.profile import (
    FixedActivitiesUpdateRequest,
    OnboardingRequest,
    PreferencesUpdateRequest,
    ProfileResponse,
    ScheduleUpdateRequest,
)
from dayflow.observability.tracing import trace
from dayflow.services.planner_state import PlannerState

router = APIRouter()


def _profile_response(planner: PlannerState, request: Request) -> ProfileResponse:
    return ProfileResponse(
        has_onboarded=planner.has_onboarded,
        user_name=planner.user_name,
        wake_time=planner.wake_time,
        sleep_time=planner.sleep_time,
        auto_schedule=planner.auto_schedule,
        selected_activities=planner.selected_activities,
        custom_preferences=planner.custom_preferences,
        fixed_activities=planner.fixed_activities,
        request_id=getattr(request.state, "request_id", None) or "",
    )


@router.get("/profile", response_model=ProfileResponse, tags=["profile"])
def get_profile(request: Request, planner: PlannerState = Depends(get_planner)) -> ProfileResponse:
    return _profile_response(planner, request)


@router.post("/profile/onboarding", response_model=ProfileResponse, tags=["profile"])
def finish_onboarding(
    payload: OnboardingRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> ProfileResponse:
    """Record the user's name and build their first week."""
    with trace("http.profile.onboarding", request_id=getattr(request.state, "request_id", None)):
        planner.finish_onboarding(payload.name)
    return _profile_response(planner, request)


@router.put("/profile/schedule", response_model=ProfileResponse, tags=["profile"])
def update_schedule(
    payload: ScheduleUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> ProfileResponse:
    planner.set_wake_sleep(payload.wake_time, payload.sleep_time)
    return _profile_response(planner, request)


@router.put("/profile/preferences", response_model=ProfileResponse, tags=["profile"])
def update_preferences(
    payload: PreferencesUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> ProfileResponse:
    planner.set_selected_activities(payload.selected_activities)
    planner.set_custom_preferences(payload.custom_preferences)
    if payload.auto_schedule is not None:
        planner.set_auto_schedule(payload.auto_schedule)
    return _profile_response(planner, request)


@router.put("/profile/fixed-activities", response_model=ProfileResponse, tags=["profile"])
def update_fixed_activities(
    payload: FixedActivitiesUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> ProfileResponse:
    planner.set_fixed_activities(payload.fixed_activities)
    return _profile_response(planner, request)
