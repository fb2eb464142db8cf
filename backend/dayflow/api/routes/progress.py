"""Progress, XP and weekly goal routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from dayflow.api.deps import get_planner
from dayflow.api.schemas.progress import GoalUpdateRequest, GoalUpdateResponse, ProgressResponse
from dayflow.domain.models import FreeActivity
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import trace
from dayflow.services.dashboard_service import fun_balance, level_for_xp, weekly_goal_summary
from dayflow.services.planner_state import PlannerState

router = APIRouter()


@router.get("/progress", response_model=ProgressResponse, tags=["progress"])
def get_progress(request: Request, planner: PlannerState = Depends(get_planner)) -> ProgressResponse:
    """XP, level, streak, weekly goal progress and today's fun balance."""
    request_id = getattr(request.state, "request_id", None) or ""
    tracker = planner.tracker
    with trace("http.progress", metadata={"route": "/progress"}, request_id=request_id):
        goals = weekly_goal_summary(tracker, planner.custom_preferences)
        balance = fun_balance(planner.tasks_for(planner.today_index()))
    log_metric("progress.goals.count", len(goals))
    return ProgressResponse(
        xp=tracker.xp,
        level=level_for_xp(tracker.xp),
        streak=tracker.streak,
        last_completion_date=tracker.last_completion_date,
        week_start=tracker.last_week_start or planner.current_week_start,
        goals=goals,
        fun_balance=balance,
        request_id=request_id,
    )


@router.put("/goals/builtin/{activity}", response_model=GoalUpdateResponse, tags=["progress"])
def set_builtin_goal(
    activity: str,
    payload: GoalUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> GoalUpdateResponse:
    kind = FreeActivity.from_title(activity)
    if kind is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown activity")
    hours = planner.set_weekly_goal(kind, payload.hours)
    return GoalUpdateResponse(
        name=kind.value,
        goal_hours=hours,
        request_id=getattr(request.state, "request_id", None) or "",
    )


@router.put("/goals/custom/{name}", response_model=GoalUpdateResponse, tags=["progress"])
def set_custom_goal(
    name: str,
    payload: GoalUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> GoalUpdateResponse:
    if name not in planner.custom_preferences:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown custom preference")
    hours = planner.set_custom_goal(name, payload.hours)
    return GoalUpdateResponse(
        name=name,
        goal_hours=hours,
        request_id=getattr(request.state, "request_id", None) or "",
    )
