"""Key-value row backing the planner state store."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Text, func

from dayflow.db.base import Base
from dayflow.db.types import JSONBCompat


class StateEntry(Base):
    __tablename__ = "planner_state"

    key = Column(Text, primary_key=True)
    value = Column(JSONBCompat, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
