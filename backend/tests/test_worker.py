from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from dayflow.core.clock import FixedClock
from dayflow.core.config import settings
from dayflow.services.notifications.noop import NoopNotificationService
from dayflow.services.planner_state import PlannerState
from dayflow.services.state_store import InMemoryStateStore
from dayflow.worker import jobs
from dayflow.worker.jobs import register_jobs, run_daily_refresh


def _planner(clock: FixedClock) -> PlannerState:
    return PlannerState(InMemoryStateStore(), NoopNotificationService(), clock)


@pytest.fixture()
def shared_planner(monkeypatch):
    clock = FixedClock(datetime(2025, 3, 8, 23, 0))
    planner = _planner(clock)
    borrowed = []

    @contextmanager
    def fake_locked_planner():
        borrowed.append(planner)
        yield planner

    monkeypatch.setattr(jobs, "locked_planner", fake_locked_planner)
    return planner, clock, borrowed


def test_daily_refresh_moves_to_new_week() -> None:
    clock = FixedClock(datetime(2025, 3, 8, 23, 0))
    planner = _planner(clock)

    assert run_daily_refresh(planner) is False

    clock.advance(timedelta(hours=2))
    assert run_daily_refresh(planner) is True
    assert planner.current_week_start.isoformat() == "2025-03-09"


def test_register_jobs_targets_shared_planner() -> None:
    scheduler = BackgroundScheduler(timezone="UTC")

    register_jobs(scheduler)

    jobs_list = scheduler.get_jobs()
    assert [job.id for job in jobs_list] == [jobs.DAILY_REFRESH_JOB_ID]
    assert jobs_list[0].func is jobs.refresh_shared_planner
    assert jobs_list[0].args == ()


def test_refresh_job_uses_the_api_planner(shared_planner) -> None:
    planner, clock, borrowed = shared_planner
    clock.advance(timedelta(hours=2))

    assert jobs.refresh_shared_planner() is True

    assert borrowed == [planner]
    assert planner.current_week_start.isoformat() == "2025-03-09"


def test_start_scheduler_disabled_returns_none(monkeypatch) -> None:
    monkeypatch.setattr(settings, "scheduler_enabled", False)

    assert jobs.start_scheduler() is None


def test_start_scheduler_runs_refresh_on_startup(monkeypatch, shared_planner) -> None:
    planner, clock, borrowed = shared_planner
    monkeypatch.setattr(settings, "scheduler_enabled", True)
    monkeypatch.setattr(settings, "jobs_run_on_startup", True)
    clock.advance(timedelta(hours=2))

    scheduler = jobs.start_scheduler()
    try:
        assert scheduler is not None and scheduler.running
        assert [job.id for job in scheduler.get_jobs()] == [jobs.DAILY_REFRESH_JOB_ID]
        assert borrowed == [planner]
        assert planner.current_week_start.isoformat() == "2025-03-09"
    finally:
        jobs.shutdown_scheduler()
