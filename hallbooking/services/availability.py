"""Availability decisions for a candidate booking interval."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from hallbooking.config import Settings
from hallbooking.domain.models import AvailabilityResult, Reservation
from hallbooking.services.conflicts import find_conflicts, relevant_reservations
from hallbooking.services.intervals import time_to_minutes
from hallbooking.services.suggestions import suggest

logger = logging.getLogger(__name__)


def check_availability(
    resource_id: str,
    day: dt.date,
    start_time: str,
    end_time: str,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None,
    settings: Settings | None = None,
) -> AvailabilityResult:
    """Decide whether ``[start_time, end_time)`` can be booked on *resource_id*.

    When the interval is blocked the result carries the offending reservations
    and alternative slots; ``next_available_slot`` is the earliest of those.
    Pure: nothing is read or written outside the arguments.
    """
    settings = settings or Settings()
    reservations = list(reservations)
    blocking = relevant_reservations(resource_id, day, reservations, exclude_id)
    conflicts = find_conflicts(
        time_to_minutes(start_time),
        time_to_minutes(end_time),
        blocking,
        buffer_minutes=settings.buffer_minutes,
    )

    if not conflicts:
        logger.debug(
            "%s on %s %s-%s is available (%d active reservation(s))",
            resource_id, day, start_time, end_time, len(blocking),
        )
        return AvailabilityResult(is_available=True)

    suggestions = suggest(
        resource_id, day, start_time, end_time, reservations, exclude_id, settings
    )
    logger.info(
        "%s on %s %s-%s blocked by %d reservation(s); %d suggestion(s)",
        resource_id, day, start_time, end_time, len(conflicts), len(suggestions),
    )
    return AvailabilityResult(
        is_available=False,
        conflicting_reservations=conflicts,
        suggested_slots=suggestions,
        next_available_slot=suggestions[0] if suggestions else None,
    )
