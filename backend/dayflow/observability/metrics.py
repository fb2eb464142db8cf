"""Lightweight metrics helpers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from dayflow.observability import tracing


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived ``metric:<name>`` trace; no-op without Opik."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with tracing.trace(f"metric:{name}", metadata=payload):
        pass
