"""Error taxonomy raised by the booking engine.

Every error carries an HTTP ``status_code`` so the API layer can translate it
without inspecting the concrete type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hallbooking.domain.models import Reservation, TimeSlot


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": self.message}


class ValidationError(BookingError):
    """Malformed, missing or illogical booking input."""


class PastDateError(BookingError):
    """The requested date lies before today."""


class OutOfHoursError(BookingError):
    """The requested interval falls outside the operating window."""


class ConflictError(BookingError):
    """The requested interval collides with existing reservations."""

    status_code = 409

    def __init__(
        self,
        message: str,
        conflicting: list[Reservation] | None = None,
        suggestions: list[TimeSlot] | None = None,
    ) -> None:
        super().__init__(message)
        self.conflicting = list(conflicting or [])
        self.suggestions = list(suggestions or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["conflicting_reservations"] = [
            r.model_dump(mode="json") for r in self.conflicting
        ]
        body["suggested_slots"] = [s.model_dump(mode="json") for s in self.suggestions]
        return body


class NotFoundError(BookingError):
    status_code = 404


class AuthorizationError(BookingError):
    status_code = 403


class InvalidStateError(BookingError):
    """Attempted transition out of a terminal or otherwise ineligible state."""
