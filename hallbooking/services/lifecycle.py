"""Booking lifecycle: validation, conflict gating and status transitions.

Reservations start ``pending``. An admin approves or rejects them, the owner
may cancel while ``pending`` or ``approved``, and the expiry sweeper closes
approved ones as ``completed``. ``rejected``, ``cancelled`` and ``completed``
are terminal.
"""

from __future__ import annotations

import datetime as dt
import logging

from hallbooking.clock import Clock
from hallbooking.config import Settings
from hallbooking.domain.bus import EventBus
from hallbooking.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCreated,
    BookingRejected,
    BookingUpdated,
)
from hallbooking.domain.models import (
    LOCKED_STATUSES,
    TERMINAL_STATUSES,
    AvailabilityResult,
    BookingRequest,
    BookingStats,
    BookingUpdate,
    Reservation,
    ReservationStatus,
    TimeSlot,
)
from hallbooking.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    OutOfHoursError,
    PastDateError,
    ValidationError,
)
from hallbooking.repos.memory import ReservationRepository
from hallbooking.services.availability import check_availability
from hallbooking.services.intervals import (
    buffered_window,
    duration,
    minutes_to_time,
    time_to_minutes,
)
from hallbooking.services.stats import booking_stats
from hallbooking.services.suggestions import standard_slots, suggest
from hallbooking.services.sweeper import effective_status

logger = logging.getLogger(__name__)

_SCHEDULE_FIELDS = {"date", "start_time", "end_time"}


class BookingManager:
    """Coordinates the store, the availability engine and the event bus."""

    def __init__(
        self,
        repository: ReservationRepository,
        bus: EventBus,
        clock: Clock,
        settings: Settings | None = None,
    ) -> None:
        self.repository = repository
        self.bus = bus
        self.clock = clock
        self.settings = settings or Settings()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def check_availability(
        self,
        resource_id: str,
        day: dt.date,
        start_time: str,
        end_time: str,
        exclude_id: str | None = None,
    ) -> AvailabilityResult:
        existing = self.repository.fetch_reservations(resource_id, day)
        return check_availability(
            resource_id, day, start_time, end_time, existing, exclude_id, self.settings
        )

    def available_slots(self, resource_id: str, day: dt.date) -> list[TimeSlot]:
        existing = self.repository.fetch_reservations(resource_id, day)
        return standard_slots(resource_id, day, existing, self.settings)

    def get_booking(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Booking not found")
        return reservation

    def list_user_bookings(
        self,
        owner_id: str,
        status: ReservationStatus | None = None,
        limit: int = 50,
    ) -> list[Reservation]:
        """Owner's bookings, newest first, with expired approvals shown as completed.

        The displayed status is derived; nothing is written back.
        """
        now = self.clock.now()
        bookings = []
        for r in self.repository.list_for_owner(owner_id):
            shown = r.model_copy(update={"status": effective_status(r, now)})
            if status is None or shown.status == status:
                bookings.append(shown)
        bookings.sort(key=lambda r: (r.date, r.start_minutes), reverse=True)
        return bookings[:limit]

    def stats(self, owner_id: str | None = None) -> BookingStats:
        if owner_id is None:
            reservations = self.repository.list_all()
        else:
            reservations = self.repository.list_for_owner(owner_id)
        return booking_stats(reservations, self.clock.now().date())

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def create_booking(self, request: BookingRequest, owner_id: str) -> Reservation:
        if not (
            request.resource_id and request.date and request.start_time and request.end_time
        ):
            raise ValidationError("Missing required booking information")

        start, end = self._validate_schedule(
            request.date, request.start_time, request.end_time
        )

        availability = self.check_availability(
            request.resource_id, request.date, request.start_time, request.end_time
        )
        if not availability.is_available:
            raise self._conflict(availability)

        now = self.clock.now()
        buffer_start, buffer_end = self._buffer(start, end)
        reservation = Reservation(
            resource_id=request.resource_id,
            owner_id=owner_id,
            date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            status=ReservationStatus.PENDING,
            purpose=request.purpose,
            description=request.description,
            attendees_count=request.attendees_count,
            equipment_needed=list(request.equipment_needed),
            special_requirements=request.special_requirements,
            priority=request.priority,
            duration_minutes=duration(start, end),
            buffer_start=buffer_start,
            buffer_end=buffer_end,
            auto_approved=False,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repository.insert_checked(reservation, self.settings.buffer_minutes)
        except ConflictError as exc:
            raise self._lost_race(
                exc, request.resource_id, request.date, request.start_time, request.end_time
            ) from exc
        logger.info(
            "created booking %s for %s on %s %s-%s",
            reservation.id,
            reservation.resource_id,
            reservation.date,
            reservation.start_time,
            reservation.end_time,
        )

        self.bus.publish(
            BookingCreated(reservation_id=reservation.id, owner_id=owner_id)
        )
        return reservation

    def update_booking(
        self, reservation_id: str, patch: BookingUpdate, owner_id: str
    ) -> Reservation:
        reservation = self._owned(reservation_id, owner_id, "edit", LOCKED_STATUSES)

        changes = patch.model_dump(exclude_none=True)
        schedule_changed = patch.changes_schedule()
        if schedule_changed:
            new_date = patch.date or reservation.date
            new_start = patch.start_time or reservation.start_time
            new_end = patch.end_time or reservation.end_time
            start, end = self._validate_schedule(new_date, new_start, new_end)

            availability = self.check_availability(
                reservation.resource_id,
                new_date,
                new_start,
                new_end,
                exclude_id=reservation.id,
            )
            if not availability.is_available:
                raise self._conflict(availability)

            buffer_start, buffer_end = self._buffer(start, end)
            try:
                self.repository.reschedule_checked(
                    reservation.id,
                    new_date,
                    new_start,
                    new_end,
                    self.settings.buffer_minutes,
                    duration_minutes=duration(start, end),
                    buffer_start=buffer_start,
                    buffer_end=buffer_end,
                )
            except ConflictError as exc:
                raise self._lost_race(
                    exc,
                    reservation.resource_id,
                    new_date,
                    new_start,
                    new_end,
                    exclude_id=reservation.id,
                ) from exc

        for key, value in changes.items():
            if key not in _SCHEDULE_FIELDS:
                setattr(reservation, key, value)
        reservation.updated_at = self.clock.now()
        logger.info(
            "updated booking %s (schedule changed: %s)", reservation.id, schedule_changed
        )

        self.bus.publish(
            BookingUpdated(
                reservation_id=reservation.id,
                owner_id=owner_id,
                schedule_changed=schedule_changed,
            )
        )
        return reservation

    def cancel_booking(
        self, reservation_id: str, owner_id: str, reason: str | None = None
    ) -> Reservation:
        reservation = self._owned(reservation_id, owner_id, "cancel", TERMINAL_STATUSES)
        self.repository.update_status(
            reservation.id,
            ReservationStatus.CANCELLED,
            admin_notes=reason or "Cancelled by user",
            updated_at=self.clock.now(),
        )
        logger.info("cancelled booking %s", reservation.id)

        self.bus.publish(
            BookingCancelled(reservation_id=reservation.id, owner_id=owner_id, reason=reason)
        )
        return reservation

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def approve_booking(
        self, reservation_id: str, admin_id: str, notes: str | None = None
    ) -> Reservation:
        reservation = self._pending(reservation_id)
        now = self.clock.now()
        self.repository.update_status(
            reservation.id,
            ReservationStatus.APPROVED,
            approved_by=admin_id,
            approved_at=now,
            admin_notes=notes,
            updated_at=now,
        )
        logger.info("booking %s approved by %s", reservation.id, admin_id)

        self.bus.publish(
            BookingApproved(
                reservation_id=reservation.id,
                owner_id=reservation.owner_id,
                admin_id=admin_id,
            )
        )
        return reservation

    def reject_booking(
        self, reservation_id: str, admin_id: str, reason: str | None = None
    ) -> Reservation:
        reservation = self._pending(reservation_id)
        self.repository.update_status(
            reservation.id,
            ReservationStatus.REJECTED,
            rejected_reason=reason,
            admin_notes=reason,
            updated_at=self.clock.now(),
        )
        logger.info("booking %s rejected by %s", reservation.id, admin_id)

        self.bus.publish(
            BookingRejected(
                reservation_id=reservation.id,
                owner_id=reservation.owner_id,
                admin_id=admin_id,
                reason=reason,
            )
        )
        return reservation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_schedule(
        self, day: dt.date, start_time: str, end_time: str
    ) -> tuple[int, int]:
        if day < self.clock.now().date():
            raise PastDateError("Cannot book halls for past dates")

        start, end = time_to_minutes(start_time), time_to_minutes(end_time)
        if start >= end:
            raise ValidationError("end must follow start")
        if end - start < self.settings.min_duration_minutes:
            raise ValidationError(
                f"minimum duration {self.settings.min_duration_minutes} minutes"
            )
        if start < self.settings.day_floor or end > self.settings.day_ceil:
            raise OutOfHoursError(
                f"Bookings are only allowed between {self.settings.day_start}"
                f" and {self.settings.day_end}"
            )
        return start, end

    def _buffer(self, start: int, end: int) -> tuple[str, str]:
        buffer_start, buffer_end = buffered_window(
            start,
            end,
            self.settings.buffer_minutes,
            self.settings.day_floor,
            self.settings.day_ceil,
        )
        return minutes_to_time(buffer_start), minutes_to_time(buffer_end)

    def _conflict(self, availability: AvailabilityResult) -> ConflictError:
        conflicts = availability.conflicting_reservations
        details = ", ".join(
            f"{r.start_time}-{r.end_time} ({r.purpose or r.id})" for r in conflicts
        )
        return ConflictError(
            f"Time slot not available due to {len(conflicts)} conflicting"
            f" booking(s): {details}",
            conflicting=conflicts,
            suggestions=availability.suggested_slots,
        )

    def _lost_race(
        self,
        exc: ConflictError,
        resource_id: str,
        day: dt.date,
        start_time: str,
        end_time: str,
        exclude_id: str | None = None,
    ) -> ConflictError:
        """Rebuild the store's ConflictError with fresh suggestions."""
        logger.info(
            "write for %s on %s %s-%s lost to a concurrent booking",
            resource_id,
            day,
            start_time,
            end_time,
        )
        existing = self.repository.fetch_reservations(resource_id, day)
        suggestions = suggest(
            resource_id, day, start_time, end_time, existing, exclude_id, self.settings
        )
        # Report the clashes the store saw under its lock.
        return self._conflict(
            AvailabilityResult(
                is_available=False,
                conflicting_reservations=exc.conflicting,
                suggested_slots=suggestions,
                next_available_slot=suggestions[0] if suggestions else None,
            )
        )

    def _owned(
        self,
        reservation_id: str,
        owner_id: str,
        action: str,
        blocked: frozenset[ReservationStatus],
    ) -> Reservation:
        reservation = self.get_booking(reservation_id)
        if reservation.owner_id != owner_id:
            raise AuthorizationError(f"You can only {action} your own bookings")
        if reservation.status in blocked:
            raise InvalidStateError(
                f"Cannot {action} a {reservation.status.value} booking"
            )
        return reservation

    def _pending(self, reservation_id: str) -> Reservation:
        reservation = self.get_booking(reservation_id)
        if reservation.status != ReservationStatus.PENDING:
            raise InvalidStateError(
                f"Only pending bookings can be reviewed, this one is"
                f" {reservation.status.value}"
            )
        return reservation
