"""Expiry sweeping: approved reservations whose end time has passed become completed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from hallbooking.clock import Clock
from hallbooking.domain.bus import EventBus
from hallbooking.domain.events import BookingCompleted
from hallbooking.domain.models import Reservation, ReservationStatus
from hallbooking.repos.memory import ReservationRepository
from hallbooking.services.intervals import combine

logger = logging.getLogger(__name__)


def is_completed(reservation: Reservation, now: datetime) -> bool:
    """True when *reservation* is approved and its end lies strictly before *now*."""
    if reservation.status != ReservationStatus.APPROVED:
        return False
    return now > combine(reservation.date, reservation.end_time)


def effective_status(reservation: Reservation, now: datetime) -> ReservationStatus:
    """Status to display, without writing anything back."""
    if is_completed(reservation, now):
        return ReservationStatus.COMPLETED
    return reservation.status


def sweep(reservations: Iterable[Reservation], now: datetime) -> int:
    """Move every expired approved reservation to completed.

    Returns the number of reservations that changed. Running it again with the same
    *now* changes nothing.
    """
    count = 0
    for reservation in reservations:
        if is_completed(reservation, now):
            reservation.status = ReservationStatus.COMPLETED
            reservation.updated_at = now
            count += 1
    return count


@dataclass(frozen=True)
class SweepOutcome:
    count: int
    swept_at: datetime | None
    skipped: bool = False


class ExpirySweeper:
    """Runs :func:`sweep` over the repository, throttled by the caller's timestamp."""

    def __init__(
        self,
        repository: ReservationRepository,
        bus: EventBus,
        clock: Clock,
        interval: timedelta = timedelta(minutes=2),
    ) -> None:
        self.repository = repository
        self.bus = bus
        self.clock = clock
        self.interval = interval

    def run(self, last_sweep_at: datetime | None = None) -> SweepOutcome:
        now = self.clock.now()
        if last_sweep_at is not None and now - last_sweep_at < self.interval:
            logger.debug("skipping expiry sweep, last run at %s", last_sweep_at)
            return SweepOutcome(count=0, swept_at=last_sweep_at, skipped=True)

        # Collect and write in one step so overlapping runs never publish twice.
        with self.repository.locked():
            approved = self.repository.list_by_status(ReservationStatus.APPROVED)
            swept = [r for r in approved if is_completed(r, now)]
            count = sweep(swept, now)
        for reservation in swept:
            self.bus.publish(
                BookingCompleted(
                    reservation_id=reservation.id, owner_id=reservation.owner_id
                )
            )
        if count:
            logger.info("marked %d reservation(s) completed", count)
        return SweepOutcome(count=count, swept_at=now)
