"""Time sources for the planner.

All planner code asks an injected clock for "now" so that schedule generation,
streak bookkeeping and week rollover can be replayed deterministically.
Instants are naive local wall-clock datetimes.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta


class Clock:
    """Base interface for time sources."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, delta: timedelta | None = None, **kwargs) -> datetime:
        self.current = self.current + (delta or timedelta(**kwargs))
        return self.current
