"""Minute-resolution time arithmetic used by every scheduling component.

Times are local ``HH:MM`` strings; internally they are handled as minutes
since midnight. Dates carry no timezone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time

BUFFER_MINUTES = 44
DAY_FLOOR = 360  # 06:00
DAY_CEIL = 1380  # 23:00

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_COMPACT_DATE_RE = re.compile(r"^\d{8}$")


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` into minutes since midnight."""
    m = _TIME_RE.match(value.strip())
    if not m:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Inverse of :func:`time_to_minutes`. ``1440`` is rendered as ``24:00``."""
    if not 0 <= minutes <= 1440:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def duration(start: int, end: int) -> int:
    return end - start


def buffered_window(
    start: int,
    end: int,
    buffer_minutes: int = BUFFER_MINUTES,
    day_floor: int = DAY_FLOOR,
    day_ceil: int = DAY_CEIL,
) -> tuple[int, int]:
    """Expand ``[start, end)`` by the buffer on both sides, clamped to the day.

    The result never reaches before *day_floor* or past *day_ceil*; it is
    clamped, never wrapped into the neighbouring day.
    """
    return max(day_floor, start - buffer_minutes), min(day_ceil, end + buffer_minutes)


def intervals_conflict(
    start: int,
    end: int,
    other_start: int,
    other_end: int,
    buffer_minutes: int = BUFFER_MINUTES,
) -> bool:
    """Return True when two intervals sit closer than *buffer_minutes* apart.

    Equivalent to testing the candidate ``[start, end)`` against the other
    interval's buffered window with a half-open overlap check. A gap exactly
    equal to the buffer is not a conflict. The predicate is symmetric.
    """
    return start < other_end + buffer_minutes and end > other_start - buffer_minutes


def parse_booking_date(value: str | date) -> date:
    """Accept a ``date``, an ISO ``YYYY-MM-DD`` string or a compact ``DDMMYYYY``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = value.strip()
    if _COMPACT_DATE_RE.match(raw):
        return datetime.strptime(raw, "%d%m%Y").date()
    return date.fromisoformat(raw)


def format_compact_date(value: date) -> str:
    return value.strftime("%d%m%Y")


def combine(day: date, hhmm: str) -> datetime:
    """Naive local datetime for *hhmm* on *day*."""
    minutes = time_to_minutes(hhmm)
    return datetime.combine(day, time(minutes // 60, minutes % 60))
