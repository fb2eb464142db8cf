"""In-process APScheduler jobs that keep the shared planner on the current week."""
from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from dayflow.api.deps import locked_planner
from dayflow.core.config import settings
from dayflow.core.context import job_context
from dayflow.services.planner_state import PlannerState

logger = logging.getLogger(__name__)

DAILY_REFRESH_JOB_ID = "daily_refresh_job"

_scheduler: Optional[BackgroundScheduler] = None


def start_scheduler() -> Optional[BackgroundScheduler]:
    """Start the refresh scheduler alongside the API; returns None when disabled."""
    global _scheduler
    if not settings.scheduler_enabled:
        logger.info("Daily refresh scheduler disabled via config")
        return None
    if _scheduler is not None and _scheduler.running:
        return _scheduler

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)
    register_jobs(scheduler)
    scheduler.start()
    _scheduler = scheduler
    if settings.jobs_run_on_startup:
        logger.info("Running daily refresh once on startup")
        refresh_shared_planner()
    return scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        logger.info("Stopping daily refresh scheduler")
        _scheduler.shutdown(wait=False)
    _scheduler = None


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        refresh_shared_planner,
        trigger="cron",
        hour=settings.refresh_job_hour,
        minute=settings.refresh_job_minute,
        id=DAILY_REFRESH_JOB_ID,
        replace_existing=True,
    )
    logger.info(
        "Registered daily refresh job (time=%02d:%02d %s)",
        settings.refresh_job_hour,
        settings.refresh_job_minute,
        settings.scheduler_timezone,
    )


def refresh_shared_planner() -> bool:
    """Refresh the planner the API serves, holding the same lock as requests."""
    with job_context(DAILY_REFRESH_JOB_ID), locked_planner() as planner:
        return run_daily_refresh(planner)


def run_daily_refresh(planner: PlannerState) -> bool:
    """Roll the planner into a new week when needed and rebuild today's alerts."""
    try:
        generated = planner.refresh_week()
    except Exception:  # pragma: no cover - job failure
        logger.exception("Daily refresh failed")
        return False
    logger.info(
        "Daily refresh complete: week=%s new_week=%s alerts=%d",
        planner.current_week_start,
        generated,
        len(planner.last_alerts),
    )
    return generated
