"""Domain models for the seminar-hall booking engine."""

from __future__ import annotations

import uuid
import datetime as dt
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from hallbooking.services.intervals import parse_booking_date, time_to_minutes


class ReservationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Only these statuses occupy a hall for conflict purposes.
ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.APPROVED})

# Owners may not edit from these.
LOCKED_STATUSES = frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED})

TERMINAL_STATUSES = frozenset(
    {
        ReservationStatus.REJECTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    }
)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationType(StrEnum):
    BOOKING = "booking"
    REMINDER = "reminder"
    SYSTEM = "system"


def _now() -> dt.datetime:
    return dt.datetime.now()


def _new_id() -> str:
    return str(uuid.uuid4())


class _ScheduleFields(BaseModel):
    """Normalizes HH:MM times and accepts ISO or DDMMYYYY dates."""

    @field_validator("start_time", "end_time", check_fields=False)
    @classmethod
    def _normalize_time(cls, value: str | None) -> str | None:
        if value is None:
            return value
        minutes = time_to_minutes(value)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def _parse_date(cls, value):
        if value is None or isinstance(value, dt.date):
            return value
        return parse_booking_date(value)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Reservation(_ScheduleFields):
    id: str = Field(default_factory=_new_id)
    resource_id: str
    owner_id: str
    date: dt.date
    start_time: str
    end_time: str
    status: ReservationStatus = ReservationStatus.PENDING
    purpose: str = ""
    description: str | None = None
    attendees_count: int = Field(default=0, ge=0)
    equipment_needed: list[str] = Field(default_factory=list)
    special_requirements: str | None = None
    priority: Priority = Priority.MEDIUM
    duration_minutes: int = 0
    buffer_start: str | None = None
    buffer_end: str | None = None
    auto_approved: bool = False
    created_at: dt.datetime = Field(default_factory=_now)
    updated_at: dt.datetime = Field(default_factory=_now)
    approved_by: str | None = None
    approved_at: dt.datetime | None = None
    rejected_reason: str | None = None
    admin_notes: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> Reservation:
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)


class TimeSlot(BaseModel):
    """A candidate interval together with its buffered footprint."""

    start_time: str
    end_time: str
    buffer_start: str
    buffer_end: str
    duration_minutes: int


class AvailabilityResult(BaseModel):
    is_available: bool
    conflicting_reservations: list[Reservation] = Field(default_factory=list)
    suggested_slots: list[TimeSlot] = Field(default_factory=list)
    next_available_slot: TimeSlot | None = None


class Notification(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.BOOKING
    reservation_id: str | None = None
    is_read: bool = False
    created_at: dt.datetime = Field(default_factory=_now)


class BookingStats(BaseModel):
    total: int = 0
    today: int = 0
    this_month: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    completed: int = 0
    auto_approved: int = 0


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class BookingRequest(_ScheduleFields):
    # Scheduling fields are optional here so the lifecycle manager can report
    # missing values with its own ValidationError.
    resource_id: str | None = None
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    purpose: str = ""
    description: str | None = None
    attendees_count: int = Field(default=0, ge=0)
    equipment_needed: list[str] = Field(default_factory=list)
    special_requirements: str | None = None
    priority: Priority = Priority.MEDIUM


class BookingUpdate(_ScheduleFields):
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    purpose: str | None = None
    description: str | None = None
    attendees_count: int | None = Field(default=None, ge=0)
    equipment_needed: list[str] | None = None
    special_requirements: str | None = None
    priority: Priority | None = None

    def changes_schedule(self) -> bool:
        return any(
            v is not None for v in (self.date, self.start_time, self.end_time)
        )


class AvailabilityQuery(_ScheduleFields):
    resource_id: str
    date: dt.date
    start_time: str
    end_time: str
    exclude_id: str | None = None


class CancelRequest(BaseModel):
    owner_id: str
    reason: str | None = None


class ReviewRequest(BaseModel):
    admin_id: str
    notes: str | None = None
