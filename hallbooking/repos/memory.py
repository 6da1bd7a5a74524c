"""In-memory repositories for reservations and in-app notifications."""

from __future__ import annotations

import datetime as dt
import threading

from hallbooking.domain.models import (
    ACTIVE_STATUSES,
    Notification,
    Reservation,
    ReservationStatus,
)
from hallbooking.errors import ConflictError
from hallbooking.services.conflicts import find_conflicts
from hallbooking.services.intervals import BUFFER_MINUTES, time_to_minutes


class ReservationRepository:
    """Dict-backed store for Reservation instances, keyed by id.

    Writes go through a lock so that the conflict check in
    :meth:`insert_checked` and :meth:`reschedule_checked` and the write itself
    are a single step from the callers' point of view.
    """

    def __init__(self) -> None:
        self._store: dict[str, Reservation] = {}
        self._lock = threading.RLock()

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            self._store[reservation.id] = reservation

    def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    def list_all(self) -> list[Reservation]:
        return list(self._store.values())

    def fetch_reservations(self, resource_id: str, day: dt.date) -> list[Reservation]:
        """Active reservations for one hall on one day, ordered by start time."""
        return sorted(
            (
                r
                for r in self._store.values()
                if r.resource_id == resource_id
                and r.date == day
                and r.status in ACTIVE_STATUSES
            ),
            key=lambda r: r.start_minutes,
        )

    def list_for_owner(self, owner_id: str) -> list[Reservation]:
        return [r for r in self._store.values() if r.owner_id == owner_id]

    def list_by_status(self, status: ReservationStatus) -> list[Reservation]:
        return [r for r in self._store.values() if r.status == status]

    def insert_checked(
        self, reservation: Reservation, buffer_minutes: int = BUFFER_MINUTES
    ) -> Reservation:
        """Insert *reservation* unless it conflicts with a stored active one.

        Raises ConflictError when another writer got there first.
        """
        with self._lock:
            existing = self.fetch_reservations(reservation.resource_id, reservation.date)
            clashes = find_conflicts(
                reservation.start_minutes,
                reservation.end_minutes,
                existing,
                exclude_id=reservation.id,
                buffer_minutes=buffer_minutes,
            )
            if clashes:
                raise ConflictError(
                    "Time slot was taken by a concurrent booking", conflicting=clashes
                )
            self._store[reservation.id] = reservation
            return reservation

    def reschedule_checked(
        self,
        reservation_id: str,
        day: dt.date,
        start_time: str,
        end_time: str,
        buffer_minutes: int = BUFFER_MINUTES,
        **fields,
    ) -> Reservation | None:
        """Move a stored reservation to a new slot unless the slot is taken.

        The conflict check ignores the reservation's own current footprint.
        Raises ConflictError when another writer got there first.
        """
        with self._lock:
            reservation = self._store.get(reservation_id)
            if reservation is None:
                return None
            clashes = find_conflicts(
                time_to_minutes(start_time),
                time_to_minutes(end_time),
                self.fetch_reservations(reservation.resource_id, day),
                exclude_id=reservation_id,
                buffer_minutes=buffer_minutes,
            )
            if clashes:
                raise ConflictError(
                    "Time slot was taken by a concurrent booking", conflicting=clashes
                )
            reservation.date = day
            reservation.start_time = start_time
            reservation.end_time = end_time
            for key, value in fields.items():
                setattr(reservation, key, value)
            return reservation

    def update_status(
        self, reservation_id: str, status: ReservationStatus, **fields
    ) -> Reservation | None:
        with self._lock:
            reservation = self._store.get(reservation_id)
            if reservation is None:
                return None
            reservation.status = status
            for key, value in fields.items():
                setattr(reservation, key, value)
            return reservation

    def locked(self) -> threading.RLock:
        """The write lock, for callers that read and then write in one step."""
        return self._lock


class NotificationRepository:
    """List-backed inbox of Notification instances."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def add(self, notification: Notification) -> None:
        self._items.append(notification)

    def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        items = [n for n in self._items if n.user_id == user_id]
        if unread_only:
            items = [n for n in items if not n.is_read]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def list_for_reservation(self, reservation_id: str) -> list[Notification]:
        return [n for n in self._items if n.reservation_id == reservation_id]

    def mark_read(self, notification_id: str) -> bool:
        for item in self._items:
            if item.id == notification_id:
                item.is_read = True
                return True
        return False
