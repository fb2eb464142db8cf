"""Task reminder computation and dispatch."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from time import perf_counter
from typing import Iterable, List

from dayflow.core.config import settings
from dayflow.domain.models import Task
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import trace
from dayflow.services.notifications.base import NotificationService, TaskAlert


logger = logging.getLogger(__name__)

LEAD_TIMES_MINUTES = (60, 15)


def alert_id(task: Task, lead_minutes: int) -> str:
    return f"{task.id}_-{lead_minutes}"


def alert_body(title: str, lead_minutes: int) -> str:
    if lead_minutes == 60:
        return f"In 1 hour: {title}"
    return f"Starting soon ({lead_minutes} mins): {title}"


def build_task_alerts(tasks: Iterable[Task], now: datetime) -> List[TaskAlert]:
    """Reminders 60 and 15 minutes before each task start, future triggers only."""
    alerts: List[TaskAlert] = []
    for task in tasks:
        for lead in LEAD_TIMES_MINUTES:
            trigger_at = task.start - timedelta(minutes=lead)
            if trigger_at <= now:
                continue
            alerts.append(
                TaskAlert(
                    id=alert_id(task, lead),
                    task_id=task.id,
                    title=task.title,
                    body=alert_body(task.title, lead),
                    trigger_at=trigger_at,
                    lead_minutes=lead,
                )
            )
    return alerts


def schedule_task_alerts(service: NotificationService, tasks: Iterable[Task], now: datetime) -> List[TaskAlert]:
    """Replace every pending alert with reminders for ``tasks``; returns what was scheduled."""
    start = perf_counter()
    service.clear_all()
    if not settings.notifications_enabled:
        log_metric("alerts.skipped", 1, metadata={"reason": "notifications disabled"})
        return []

    alerts = build_task_alerts(tasks, now)
    with trace("alerts.schedule", metadata={"alert_count": len(alerts)}):
        for alert in alerts:
            result = service.schedule(alert)
            logger.debug("Alert %s -> %s (%s)", alert.id, result.status, result.reason)

    log_metric("alerts.scheduled", len(alerts))
    log_metric("alerts.duration_ms", (perf_counter() - start) * 1000)
    return alerts
