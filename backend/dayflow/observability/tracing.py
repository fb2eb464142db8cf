"""Opik traces around planner operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional
from uuid import UUID

from dayflow.core.context import get_job_name, get_request_id
from dayflow.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def _metadata_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, UUID):
        return str(value)
    return value


def trace_metadata(metadata: Optional[Dict[str, Any]], request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    JSON-ready trace metadata.

    Dates, enums and ids are stringified and None values dropped. The active
    request id (or background job name) is attached when the caller did not
    pass one.
    """
    cleaned = {key: _metadata_value(value) for key, value in (metadata or {}).items() if value is not None}
    request_id = request_id or get_request_id()
    if request_id:
        cleaned.setdefault("request_id", request_id)
    job_name = get_job_name()
    if job_name:
        cleaned.setdefault("job", job_name)
    return cleaned


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """Yield an Opik trace, or None when tracing is off; exceptions are recorded and re-raised."""
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None

    if client:
        try:
            opik_trace = client.trace(name=name, metadata=trace_metadata(metadata, request_id) or None)
        except Exception as exc:  # pragma: no cover - sdk failure
            logger.debug("Opik refused trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"message": str(exc), "type": type(exc).__name__})
            except Exception:  # pragma: no cover - sdk failure
                logger.debug("Could not record failure on trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover - sdk failure
                logger.debug("Could not end trace %s", name, exc_info=True)
