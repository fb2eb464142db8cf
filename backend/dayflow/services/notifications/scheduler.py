"""APScheduler-backed alert provider.

Each alert becomes a one-shot ``date`` job whose id is the alert id, so scheduling
the same (task, lead time) twice replaces the earlier job instead of duplicating it.
"""
from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from dayflow.core.config import settings
from dayflow.core.context import job_context
from dayflow.services.notifications.base import NotificationResult, NotificationService, TaskAlert


logger = logging.getLogger(__name__)


def deliver_alert(title: str, body: str) -> None:
    with job_context("task_alert"):
        logger.info("ALERT %s | %s", title, body)


class SchedulerNotificationService(NotificationService):
    def __init__(self, scheduler: BackgroundScheduler | None = None, *, start: bool = True):
        self.scheduler = scheduler or BackgroundScheduler(timezone=settings.scheduler_timezone)
        if start and not self.scheduler.running:
            self.scheduler.start()

    def clear_all(self) -> None:
        self.scheduler.remove_all_jobs()

    def schedule(self, alert: TaskAlert) -> NotificationResult:
        self.scheduler.add_job(
            deliver_alert,
            trigger="date",
            run_date=alert.trigger_at,
            args=[alert.title, alert.body],
            id=alert.id,
            replace_existing=True,
        )
        return NotificationResult(status="scheduled", reason=f"fires at {alert.trigger_at.isoformat()}")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
