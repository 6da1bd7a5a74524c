"""Alternative-slot generation for requests that collide with existing bookings."""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from hallbooking.config import Settings
from hallbooking.domain.models import Reservation, TimeSlot
from hallbooking.services.conflicts import find_conflicts, relevant_reservations
from hallbooking.services.intervals import (
    buffered_window,
    duration,
    minutes_to_time,
    time_to_minutes,
)

# Fixed two-hour grid offered when browsing a hall's day.
STANDARD_SLOTS = [
    ("06:00", "08:00"),
    ("08:00", "10:00"),
    ("10:00", "12:00"),
    ("12:00", "14:00"),
    ("14:00", "16:00"),
    ("16:00", "18:00"),
    ("18:00", "20:00"),
    ("20:00", "22:00"),
]


def make_slot(start: int, end: int, settings: Settings) -> TimeSlot:
    buffer_start, buffer_end = buffered_window(
        start, end, settings.buffer_minutes, settings.day_floor, settings.day_ceil
    )
    return TimeSlot(
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        buffer_start=minutes_to_time(buffer_start),
        buffer_end=minutes_to_time(buffer_end),
        duration_minutes=duration(start, end),
    )


def suggest(
    resource_id: str,
    day: dt.date,
    requested_start: str,
    requested_end: str,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None,
    settings: Settings | None = None,
) -> list[TimeSlot]:
    """Propose up to ``max_suggestions`` conflict-free slots of the requested length.

    Candidate starts run from the opening time to one hour before closing in
    ``slot_step_minutes`` steps; candidates that would end after closing are
    skipped. Every returned slot passes the same conflict rule as
    :func:`hallbooking.services.availability.check_availability` against the
    same reservation set.
    """
    settings = settings or Settings()
    blocking = relevant_reservations(resource_id, day, reservations, exclude_id)
    length = duration(time_to_minutes(requested_start), time_to_minutes(requested_end))

    slots: list[TimeSlot] = []
    if length <= 0:
        return slots

    last_start = settings.day_ceil - 60
    for start in range(settings.day_floor, last_start + 1, settings.slot_step_minutes):
        end = start + length
        if end > settings.day_ceil:
            continue
        if find_conflicts(start, end, blocking, buffer_minutes=settings.buffer_minutes):
            continue
        slots.append(make_slot(start, end, settings))
        if len(slots) >= settings.max_suggestions:
            break
    return slots


def standard_slots(
    resource_id: str,
    day: dt.date,
    reservations: Iterable[Reservation],
    settings: Settings | None = None,
) -> list[TimeSlot]:
    """Return the entries of :data:`STANDARD_SLOTS` that are free on *day*."""
    settings = settings or Settings()
    blocking = relevant_reservations(resource_id, day, reservations)

    free: list[TimeSlot] = []
    for start_time, end_time in STANDARD_SLOTS:
        start, end = time_to_minutes(start_time), time_to_minutes(end_time)
        if not find_conflicts(start, end, blocking, buffer_minutes=settings.buffer_minutes):
            free.append(make_slot(start, end, settings))
    return free
