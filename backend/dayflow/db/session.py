"""Engine and session factory bound to the configured database."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dayflow.core.config import settings
from dayflow.db.base import Base

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(bind=None) -> None:
    """Create planner tables if they do not exist yet."""
    from dayflow.db import models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
