"""Process-wide logging setup for the API and its in-process jobs."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from dayflow.core.context import log_context_label

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(context)s | %(message)s"

# chatty third-party loggers kept at WARNING regardless of LOG_LEVEL
QUIET_LOGGERS = ("apscheduler", "sqlalchemy.engine")


class LogContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.context = log_context_label()
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Install the console handler once; later calls are ignored."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"planner": {"format": LOG_FORMAT}},
            "filters": {"context": {"()": "dayflow.core.logging.LogContextFilter"}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "planner",
                    "level": log_level,
                    "filters": ["context"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    logging.getLogger(__name__).debug("Planner logging ready (level=%s)", log_level)
    setattr(configure_logging, "_configured", True)
