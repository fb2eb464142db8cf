"""Main FastAPI application for the Dayflow planner."""
from fastapi import FastAPI, Request

from dayflow.api.routes.profile import router as profile_router
from dayflow.api.routes.progress import router as progress_router
from dayflow.api.routes.templates import router as templates_router
from dayflow.api.routes.week import router as week_router
from dayflow.core.config import settings
from dayflow.core.logging import configure_logging
from dayflow.core.middleware import RequestIDMiddleware
from dayflow.observability.client import init_opik
from dayflow.observability.tracing import trace
from dayflow.worker.jobs import shutdown_scheduler, start_scheduler

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(week_router)
app.include_router(progress_router)
app.include_router(profile_router)
app.include_router(templates_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.on_event("startup")
def startup_scheduler() -> None:
    start_scheduler()


@app.on_event("shutdown")
def stop_scheduler() -> None:
    shutdown_scheduler()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
