"""
Sources of "now" for the scheduling core.

Dates and times are local wall-clock values with no timezone attached;
callers establish the right locale before handing a clock in.
"""

from datetime import date, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Reads the host's local time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """A clock pinned to one instant. Used by tests and replay tooling."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()

    def set(self, instant: datetime) -> None:
        self.instant = instant


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock. Overridden in tests."""
    return system_clock
