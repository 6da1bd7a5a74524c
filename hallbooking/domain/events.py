"""Domain events emitted during the reservation lifecycle.

Each event names the reservation and its owner; subscribers look up whatever
else they need from the repositories.
"""

from __future__ import annotations

from pydantic import BaseModel


class BookingEvent(BaseModel):
    reservation_id: str
    owner_id: str


class BookingCreated(BookingEvent):
    """Fired when a new reservation is persisted as pending."""


class BookingUpdated(BookingEvent):
    """Fired after an owner edits a reservation."""

    schedule_changed: bool = False


class BookingApproved(BookingEvent):
    admin_id: str


class BookingRejected(BookingEvent):
    admin_id: str
    reason: str | None = None


class BookingCancelled(BookingEvent):
    reason: str | None = None


class BookingCompleted(BookingEvent):
    """Fired by the expiry sweeper for each approved reservation it closes."""
