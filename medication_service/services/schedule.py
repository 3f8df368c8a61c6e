"""
Expands a regimen's recurrence rule into concrete dose obligations.

Nothing here touches the database or the clock: the same regimen and range
always yield the same obligations, in ascending (date, time) order. Any
object exposing the regimen attributes (an ORM row, a schema) can be
expanded.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional


@dataclass(frozen=True, order=True)
class DoseObligation:
    """A single dose due on a calendar date at a wall-clock time label."""
    date: date
    time: str
    regimen_id: Optional[int] = field(default=None, compare=False)


def weekday_index(day: date) -> int:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7


def in_window(regimen, day: date) -> bool:
    return regimen.start_date <= day <= regimen.end_date


def is_scheduled_on(regimen, day: date) -> bool:
    """True when the regimen has doses due on the given day."""
    if not in_window(regimen, day):
        return False
    recurrence = regimen.recurrence_days
    return not recurrence or weekday_index(day) in recurrence


def expand(regimen, range_start: date, range_end: date) -> List[DoseObligation]:
    """
    Lists every dose obligation of a regimen within an inclusive date range.

    The range is clipped to the regimen's own window. Each eligible day
    yields one obligation per daily time; a regimen without daily times
    yields nothing.
    """
    times = sorted(regimen.daily_times or [])
    if not times:
        return []

    start = max(regimen.start_date, range_start)
    end = min(regimen.end_date, range_end)

    obligations = []
    day = start
    while day <= end:
        if is_scheduled_on(regimen, day):
            obligations.extend(
                DoseObligation(date=day, time=t, regimen_id=regimen.id) for t in times
            )
        day += timedelta(days=1)
    return obligations
