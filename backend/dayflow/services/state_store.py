"""Key-value persistence for planner state."""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Mapping

from sqlalchemy.orm import Session

from dayflow.db.models.state_entry import StateEntry

logger = logging.getLogger(__name__)


class StateStore:
    """Base interface; values are JSON-compatible and ``None`` means "remove"."""

    def get(self, key: str) -> Any:
        raise NotImplementedError

    def set_many(self, values: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def delete(self, key: str) -> None:
        self.set_many({key: None})


class InMemoryStateStore(StateStore):
    def __init__(self, initial: Mapping[str, Any] | None = None):
        self.data: Dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self.writes: list[str] = []

    def get(self, key: str) -> Any:
        return copy.deepcopy(self.data.get(key))

    def set_many(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.writes.append(key)
            if value is None:
                self.data.pop(key, None)
            else:
                self.data[key] = copy.deepcopy(value)


class SqlStateStore(StateStore):
    """Stores each key as one ``planner_state`` row; every batch is one transaction."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Any:
        session = self.session_factory()
        try:
            entry = session.get(StateEntry, key)
            return entry.value if entry else None
        finally:
            session.close()

    def set_many(self, values: Mapping[str, Any]) -> None:
        if not values:
            return
        session = self.session_factory()
        try:
            for key, value in values.items():
                entry = session.get(StateEntry, key)
                if value is None:
                    if entry is not None:
                        session.delete(entry)
                elif entry is None:
                    session.add(StateEntry(key=key, value=value))
                else:
                    entry.value = value
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        logger.debug("Persisted planner keys: %s", ", ".join(sorted(values)))
