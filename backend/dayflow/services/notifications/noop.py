"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging

from dayflow.services.notifications.base import NotificationResult, NotificationService, TaskAlert


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    def clear_all(self) -> None:
        logger.debug("Alerts cleared (noop)")

    def schedule(self, alert: TaskAlert) -> NotificationResult:
        logger.info("Alert queued (noop) id=%s at=%s body=%s", alert.id, alert.trigger_at.isoformat(), alert.body)
        return NotificationResult(status="noop", reason="notification provider is noop")
