"""HTTP middleware for the planner API."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dayflow.core.context import request_id_ctx_var

logger = logging.getLogger(__name__)

MAX_REQUEST_ID_LENGTH = 128


def _accepted_request_id(raw: str | None) -> str | None:
    """Client ids are echoed into logs and headers, so only short printable ones are kept."""
    if not raw:
        return None
    candidate = raw.strip()
    if not candidate or len(candidate) > MAX_REQUEST_ID_LENGTH or not candidate.isprintable():
        return None
    return candidate


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each planner request with an id, shared by its logs, traces and response body."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = _accepted_request_id(request.headers.get("X-Request-Id")) or uuid4().hex
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = perf_counter()

        try:
            response = await call_next(request)
            logger.debug(
                "%s %s -> %d in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                (perf_counter() - started) * 1000,
            )
        finally:
            request_id_ctx_var.reset(token)

        response.headers["X-Request-Id"] = request_id
        return response
