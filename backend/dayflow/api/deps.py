"""FastAPI dependencies for planner access."""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from threading import Lock
from typing import Iterator

from dayflow.core.clock import SystemClock
from dayflow.db.session import SessionLocal, init_db
from dayflow.services.notifications.factory import get_notification_service
from dayflow.services.planner_state import PlannerState
from dayflow.services.state_store import SqlStateStore

# requests and the refresh job share one planner; only one of them touches it at a time
_planner_lock = Lock()


@lru_cache
def build_planner() -> PlannerState:
    init_db()
    return PlannerState(
        store=SqlStateStore(SessionLocal),
        notifier=get_notification_service(),
        clock=SystemClock(),
    )


@contextmanager
def locked_planner() -> Iterator[PlannerState]:
    with _planner_lock:
        yield build_planner()


def get_planner() -> Iterator[PlannerState]:
    """Hand a request the shared planner, caught up with the calendar first."""
    with locked_planner() as planner:
        planner.ensure_current_week()
        yield planner
