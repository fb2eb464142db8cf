"""Notification service factory."""
from __future__ import annotations

import logging
from functools import lru_cache

from dayflow.core.config import settings
from dayflow.services.notifications.base import NotificationService
from dayflow.services.notifications.noop import NoopNotificationService

logger = logging.getLogger(__name__)


@lru_cache
def get_notification_service() -> NotificationService:
    provider = settings.notifications_provider.lower()
    if provider == "scheduler":
        from dayflow.services.notifications.scheduler import SchedulerNotificationService

        return SchedulerNotificationService()
    if provider != "noop":
        logger.warning("Unknown notifications provider %r; falling back to noop", provider)
    return NoopNotificationService()
