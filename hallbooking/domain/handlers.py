"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from hallbooking.domain.bus import EventBus
from hallbooking.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingEvent,
    BookingRejected,
    BookingUpdated,
)
from hallbooking.domain.models import Notification, NotificationType, Reservation
from hallbooking.repos.memory import NotificationRepository, ReservationRepository

logger = logging.getLogger(__name__)


def _describe(reservation: Reservation) -> str:
    return (
        f"{reservation.resource_id} on {reservation.date:%d %b %Y}"
        f" {reservation.start_time}-{reservation.end_time}"
    )


class NotificationHandlers:
    """Turns booking events into in-app notifications for the booking owner.

    Delivery (push, email) belongs to whoever reads the notification inbox.
    """

    def __init__(
        self,
        bus: EventBus,
        reservation_repo: ReservationRepository,
        notification_repo: NotificationRepository,
    ) -> None:
        self.bus = bus
        self.reservation_repo = reservation_repo
        self.notification_repo = notification_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingApproved, self.on_booking_approved)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)
        self.bus.subscribe(BookingCancelled, self.on_booking_cancelled)
        self.bus.subscribe(BookingCompleted, self.on_booking_completed)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        self._notify(
            event,
            "Booking submitted",
            "Your request for {what} is pending admin approval.",
        )

    def on_booking_updated(self, event: BookingUpdated) -> None:
        if not event.schedule_changed:
            return
        self._notify(event, "Booking rescheduled", "Your booking is now {what}.")

    def on_booking_approved(self, event: BookingApproved) -> None:
        self._notify(event, "Booking approved", "Your booking for {what} was approved.")

    def on_booking_rejected(self, event: BookingRejected) -> None:
        suffix = f" Reason: {event.reason}" if event.reason else ""
        self._notify(
            event, "Booking rejected", "Your booking for {what} was rejected.", suffix=suffix
        )

    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        self._notify(event, "Booking cancelled", "Your booking for {what} was cancelled.")

    def on_booking_completed(self, event: BookingCompleted) -> None:
        self._notify(
            event,
            "Booking completed",
            "Your booking for {what} has ended.",
            kind=NotificationType.SYSTEM,
        )

    def _notify(
        self,
        event: BookingEvent,
        title: str,
        template: str,
        kind: NotificationType = NotificationType.BOOKING,
        suffix: str = "",
    ) -> None:
        reservation = self.reservation_repo.get(event.reservation_id)
        if reservation is None:
            logger.warning(
                "%s for unknown reservation %s", type(event).__name__, event.reservation_id
            )
            return

        self.notification_repo.add(
            Notification(
                user_id=event.owner_id,
                title=title,
                message=template.format(what=_describe(reservation)) + suffix,
                type=kind,
                reservation_id=event.reservation_id,
            )
        )
