"""Week and day planning routes."""
from __future__ import annotations

from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from dayflow.api.deps import get_planner
from dayflow.api.schemas.progress import DaySummaryResponse
from dayflow.api.schemas.week import (
    CompletionUpdateRequest,
    CompletionUpdateResponse,
    DayPayload,
    DayResponse,
    ManualTaskRequest,
    RegenerateDayRequest,
    TaskResponse,
    WeekRefreshResponse,
    WeekResponse,
)
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import trace
from dayflow.services.dashboard_service import completion_percent, day_summary_message
from dayflow.services.planner_state import PlannerState

router = APIRouter()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or ""


def _check_day(day_index: int) -> int:
    if not 0 <= day_index <= 6:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Day index must be between 0 and 6")
    return day_index


def _day_payload(planner: PlannerState, day_index: int) -> DayPayload:
    return DayPayload(
        day_index=day_index,
        day=planner.date_for_day_index(day_index),
        tasks=planner.tasks_for(day_index),
    )


def _week_response(planner: PlannerState, request_id: str) -> WeekResponse:
    return WeekResponse(
        week_start=planner.current_week_start,
        days=[_day_payload(planner, idx) for idx in range(7)],
        request_id=request_id,
    )


@router.get("/week", response_model=WeekResponse, tags=["week"])
def get_week(request: Request, planner: PlannerState = Depends(get_planner)) -> WeekResponse:
    """Return all seven days of the active week."""
    return _week_response(planner, _request_id(request))


@router.post("/week/generate", response_model=WeekResponse, tags=["week"])
def generate_week(request: Request, planner: PlannerState = Depends(get_planner)) -> WeekResponse:
    """Throw away the week's tasks and generate every day again."""
    request_id = _request_id(request)
    start = perf_counter()
    with trace("http.week.generate", metadata={"route": "/week/generate"}, request_id=request_id):
        planner.generate_week()
    log_metric("week.generate.latency_ms", (perf_counter() - start) * 1000)
    return _week_response(planner, request_id)


@router.post("/week/refresh", response_model=WeekRefreshResponse, tags=["week"])
def refresh_week(request: Request, planner: PlannerState = Depends(get_planner)) -> WeekRefreshResponse:
    request_id = _request_id(request)
    with trace("http.week.refresh", metadata={"route": "/week/refresh"}, request_id=request_id):
        generated = planner.refresh_week()
    return WeekRefreshResponse(week_start=planner.current_week_start, generated=generated, request_id=request_id)


@router.get("/days/{day_index}", response_model=DayResponse, tags=["days"])
def get_day(day_index: int, request: Request, planner: PlannerState = Depends(get_planner)) -> DayResponse:
    payload = _day_payload(planner, _check_day(day_index))
    return DayResponse(**payload.model_dump(), request_id=_request_id(request))


@router.post("/days/{day_index}/regenerate", response_model=DayResponse, tags=["days"])
def regenerate_day(
    day_index: int,
    payload: RegenerateDayRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> DayResponse:
    """Rebuild one day, optionally with an energy level and wake/sleep overrides."""
    _check_day(day_index)
    request_id = _request_id(request)
    start = perf_counter()
    with trace(
        "http.day.regenerate",
        metadata={"route": f"/days/{day_index}/regenerate", "energy_level": payload.energy_level},
        request_id=request_id,
    ):
        try:
            planner.regenerate_day(
                day_index,
                energy_level=payload.energy_level,
                wake_override=payload.wake_override,
                sleep_override=payload.sleep_override,
            )
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    log_metric("day.regenerate.latency_ms", (perf_counter() - start) * 1000, metadata={"day_index": day_index})
    return DayResponse(**_day_payload(planner, day_index).model_dump(), request_id=request_id)


@router.post(
    "/days/{day_index}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["days"],
)
def add_task(
    day_index: int,
    payload: ManualTaskRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> TaskResponse:
    _check_day(day_index)
    request_id = _request_id(request)
    with trace("http.task.add", metadata={"day_index": day_index, "typed": payload.type is not None}, request_id=request_id):
        try:
            task = planner.add_manual_task(day_index, payload.title, payload.start, payload.end, payload.type)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    log_metric("task.add.success", 1, metadata={"day_index": day_index})
    return TaskResponse(day_index=day_index, task=task, request_id=request_id)


@router.patch("/days/{day_index}/tasks/{task_id}", response_model=CompletionUpdateResponse, tags=["days"])
def update_completion(
    day_index: int,
    task_id: UUID,
    payload: CompletionUpdateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> CompletionUpdateResponse:
    """Mark a task complete or incomplete; repeating the current state is a no-op."""
    _check_day(day_index)
    request_id = _request_id(request)
    with trace(
        "http.task.complete",
        metadata={"task_id": str(task_id), "completed": payload.completed},
        request_id=request_id,
    ):
        try:
            changed = planner.toggle_completion(day_index, task_id, payload.completed)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    log_metric("task.complete.changed", 1 if changed else 0, metadata={"task_id": str(task_id)})
    return CompletionUpdateResponse(
        id=task_id,
        completed=payload.completed,
        changed=changed,
        xp=planner.tracker.xp,
        request_id=request_id,
    )


@router.delete("/days/{day_index}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["days"])
def delete_task(
    day_index: int,
    task_id: UUID,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> Response:
    _check_day(day_index)
    with trace("http.task.delete", metadata={"task_id": str(task_id)}, request_id=_request_id(request)):
        try:
            planner.delete_task(day_index, task_id)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/days/{day_index}/end", response_model=DaySummaryResponse, tags=["days"])
def end_day(day_index: int, request: Request, planner: PlannerState = Depends(get_planner)) -> DaySummaryResponse:
    """Close out a day: update the streak and report how much got done."""
    _check_day(day_index)
    request_id = _request_id(request)
    with trace("http.day.end", metadata={"day_index": day_index}, request_id=request_id):
        result = planner.end_day(day_index)
    log_metric("day.end.completed", result.completed, metadata={"total": result.total})
    return DaySummaryResponse(
        day=planner.date_for_day_index(day_index),
        completed=result.completed,
        total=result.total,
        percent=completion_percent(result.completed, result.total),
        streak=planner.tracker.streak,
        xp=planner.tracker.xp,
        message=day_summary_message(result.completed, result.total),
        request_id=request_id,
    )
