"""Who is acting on the planner right now: an HTTP request or a scheduled job."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
job_name_ctx_var: ContextVar[str | None] = ContextVar("job_name", default=None)


def get_request_id() -> str | None:
    return request_id_ctx_var.get()


def get_job_name() -> str | None:
    return job_name_ctx_var.get()


@contextmanager
def job_context(name: str) -> Iterator[None]:
    """Label log lines and traces emitted while a background job runs."""
    token = job_name_ctx_var.set(name)
    try:
        yield
    finally:
        job_name_ctx_var.reset(token)


def log_context_label() -> str:
    """``<request id>``, ``job:<name>``, or ``-`` when neither is bound."""
    request_id = get_request_id()
    if request_id:
        return request_id
    job_name = get_job_name()
    return f"job:{job_name}" if job_name else "-"
