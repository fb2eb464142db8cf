"""Task template library routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from dayflow.api.deps import get_planner
from dayflow.api.schemas.profile import TemplateCreateRequest, TemplateSummary, TemplatesResponse
from dayflow.services.planner_state import PlannerState

router = APIRouter()


def _templates_response(planner: PlannerState, request: Request) -> TemplatesResponse:
    return TemplatesResponse(
        templates=[TemplateSummary.from_template(template) for template in planner.task_templates],
        request_id=getattr(request.state, "request_id", None) or "",
    )


@router.get("/templates", response_model=TemplatesResponse, tags=["templates"])
def list_templates(request: Request, planner: PlannerState = Depends(get_planner)) -> TemplatesResponse:
    return _templates_response(planner, request)


@router.post("/templates", response_model=TemplatesResponse, status_code=status.HTTP_201_CREATED, tags=["templates"])
def create_template(
    payload: TemplateCreateRequest,
    request: Request,
    planner: PlannerState = Depends(get_planner),
) -> TemplatesResponse:
    if planner.save_template(payload.title, payload.duration, payload.type) is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Template title is required")
    return _templates_response(planner, request)


@router.delete("/templates/{index}", response_model=TemplatesResponse, tags=["templates"])
def delete_template(index: int, request: Request, planner: PlannerState = Depends(get_planner)) -> TemplatesResponse:
    if planner.delete_templates([index]) == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return _templates_response(planner, request)
