"""FastAPI application — entry point for the seminar-hall booking service."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hallbooking.clock import SystemClock
from hallbooking.config import configure_logging, get_settings
from hallbooking.domain.bus import EventBus
from hallbooking.domain.handlers import NotificationHandlers
from hallbooking.domain.models import (
    AvailabilityQuery,
    AvailabilityResult,
    BookingRequest,
    BookingStats,
    BookingUpdate,
    CancelRequest,
    Notification,
    Reservation,
    ReservationStatus,
    ReviewRequest,
    TimeSlot,
)
from hallbooking.errors import BookingError, NotFoundError, ValidationError
from hallbooking.repos.memory import NotificationRepository, ReservationRepository
from hallbooking.services.intervals import parse_booking_date
from hallbooking.services.lifecycle import BookingManager
from hallbooking.services.sweeper import ExpirySweeper

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Seminar Hall Booking Service")

# ── Singletons (created at import time for simplicity) ────────────────
clock = SystemClock()
event_bus = EventBus()
reservation_repo = ReservationRepository()
notification_repo = NotificationRepository()

notification_handlers = NotificationHandlers(
    bus=event_bus,
    reservation_repo=reservation_repo,
    notification_repo=notification_repo,
)
manager = BookingManager(
    repository=reservation_repo, bus=event_bus, clock=clock, settings=settings
)
sweeper = ExpirySweeper(
    repository=reservation_repo,
    bus=event_bus,
    clock=clock,
    interval=timedelta(seconds=settings.sweep_interval_seconds),
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/availability", response_model=AvailabilityResult)
def check_availability(query: AvailabilityQuery) -> AvailabilityResult:
    """Report whether an interval is free, with suggestions when it is not."""
    return manager.check_availability(
        query.resource_id,
        query.date,
        query.start_time,
        query.end_time,
        exclude_id=query.exclude_id,
    )


@app.get("/halls/{resource_id}/slots", response_model=list[TimeSlot])
def list_available_slots(resource_id: str, date: str) -> list[TimeSlot]:
    """Free entries of the standard two-hour grid for one hall and day.

    *date* may be ISO (``2025-07-20``) or compact (``20072025``).
    """
    return manager.available_slots(resource_id, _parse_date(date))


@app.post("/bookings", response_model=Reservation, status_code=201)
def create_booking(owner_id: str, payload: BookingRequest) -> Reservation:
    return manager.create_booking(payload, owner_id)


@app.get("/bookings/{booking_id}", response_model=Reservation)
def get_booking(booking_id: str) -> Reservation:
    return manager.get_booking(booking_id)


@app.patch("/bookings/{booking_id}", response_model=Reservation)
def update_booking(booking_id: str, owner_id: str, patch: BookingUpdate) -> Reservation:
    return manager.update_booking(booking_id, patch, owner_id)


@app.post("/bookings/{booking_id}/cancel", response_model=Reservation)
def cancel_booking(booking_id: str, body: CancelRequest) -> Reservation:
    return manager.cancel_booking(booking_id, body.owner_id, body.reason)


@app.post("/bookings/{booking_id}/approve", response_model=Reservation)
def approve_booking(booking_id: str, body: ReviewRequest) -> Reservation:
    return manager.approve_booking(booking_id, body.admin_id, body.notes)


@app.post("/bookings/{booking_id}/reject", response_model=Reservation)
def reject_booking(booking_id: str, body: ReviewRequest) -> Reservation:
    return manager.reject_booking(booking_id, body.admin_id, body.notes)


@app.get("/users/{owner_id}/bookings", response_model=list[Reservation])
def list_user_bookings(
    owner_id: str, status: ReservationStatus | None = None, limit: int = 50
) -> list[Reservation]:
    return manager.list_user_bookings(owner_id, status=status, limit=limit)


@app.get("/users/{owner_id}/notifications", response_model=list[Notification])
def list_notifications(owner_id: str, unread_only: bool = False) -> list[Notification]:
    return notification_repo.list_for_user(owner_id, unread_only=unread_only)


@app.post("/notifications/{notification_id}/read", status_code=200)
def mark_notification_read(notification_id: str) -> dict:
    if not notification_repo.mark_read(notification_id):
        raise NotFoundError("Notification not found")
    return {"status": "read"}


@app.get("/stats", response_model=BookingStats)
def booking_stats(owner_id: str | None = None) -> BookingStats:
    return manager.stats(owner_id)


@app.post("/sweep")
def sweep_expired(last_sweep_at: datetime | None = None) -> dict:
    """Mark expired approved bookings as completed.

    Callers pass the timestamp returned by their previous call; a run inside
    the configured interval is skipped.
    """
    outcome = sweeper.run(last_sweep_at)
    return {
        "completed": outcome.count,
        "skipped": outcome.skipped,
        "swept_at": outcome.swept_at.isoformat() if outcome.swept_at else None,
    }


def _parse_date(raw: str) -> date:
    try:
        return parse_booking_date(raw)
    except ValueError as exc:
        raise ValidationError(f"invalid date {raw!r}") from exc
