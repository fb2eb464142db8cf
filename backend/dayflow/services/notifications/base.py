"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class NotificationResult:
    status: str
    reason: str


@dataclass(frozen=True)
class TaskAlert:
    """A single reminder ahead of a task; ``id`` is stable per (task, lead time)."""

    id: str
    task_id: UUID
    title: str
    body: str
    trigger_at: datetime
    lead_minutes: int


class NotificationService:
    """Base interface for alert providers."""

    def clear_all(self) -> None:
        raise NotImplementedError

    def schedule(self, alert: TaskAlert) -> NotificationResult:
        raise NotImplementedError
