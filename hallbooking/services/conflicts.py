"""Buffer-aware conflict detection between reservations on one hall-day."""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from hallbooking.domain.models import ACTIVE_STATUSES, Reservation
from hallbooking.services.intervals import BUFFER_MINUTES, intervals_conflict


def relevant_reservations(
    resource_id: str,
    day: dt.date,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> list[Reservation]:
    """Reservations that can block a booking of *resource_id* on *day*.

    Only pending and approved reservations count. *exclude_id* drops the
    reservation being edited so it does not collide with its own footprint.
    """
    return [
        r
        for r in reservations
        if r.resource_id == resource_id
        and r.date == day
        and r.status in ACTIVE_STATUSES
        and r.id != exclude_id
    ]


def find_conflicts(
    start: int,
    end: int,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None,
    buffer_minutes: int = BUFFER_MINUTES,
) -> list[Reservation]:
    """Return reservations that sit within *buffer_minutes* of ``[start, end)``.

    Conflict rule: ``start < existing.end + buffer AND end > existing.start - buffer``.
    A gap of exactly *buffer_minutes* is NOT a conflict. Callers are expected
    to have filtered *reservations* to one hall and day.
    """
    return [
        r
        for r in reservations
        if r.id != exclude_id
        and intervals_conflict(start, end, r.start_minutes, r.end_minutes, buffer_minutes)
    ]
