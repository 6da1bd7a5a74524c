"""Tests for expiry sweeping of approved reservations."""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta

import pytest

from hallbooking.clock import FixedClock
from hallbooking.domain.bus import EventBus
from hallbooking.domain.handlers import NotificationHandlers
from hallbooking.domain.models import Reservation, ReservationStatus
from hallbooking.repos.memory import NotificationRepository, ReservationRepository
from hallbooking.services.sweeper import (
    ExpirySweeper,
    effective_status,
    is_completed,
    sweep,
)

_DAY = date(2025, 7, 20)


def _make_reservation(status=ReservationStatus.APPROVED, **overrides) -> Reservation:
    defaults = dict(
        resource_id="H1",
        owner_id="alice",
        date=_DAY,
        start_time="09:00",
        end_time="11:00",
        status=status,
    )
    defaults.update(overrides)
    return Reservation(**defaults)


def test_is_completed_strictly_after_end():
    r = _make_reservation()
    assert is_completed(r, datetime(2025, 7, 20, 11, 0)) is False
    assert is_completed(r, datetime(2025, 7, 20, 11, 0, 1)) is True
    assert is_completed(r, datetime(2025, 7, 21, 8, 0)) is True


@pytest.mark.parametrize(
    "status",
    [ReservationStatus.PENDING, ReservationStatus.REJECTED, ReservationStatus.CANCELLED],
)
def test_only_approved_can_complete(status):
    r = _make_reservation(status=status)
    assert is_completed(r, datetime(2030, 1, 1)) is False
    assert effective_status(r, datetime(2030, 1, 1)) == status


def test_effective_status_does_not_write():
    r = _make_reservation()
    assert effective_status(r, datetime(2025, 7, 20, 12, 0)) == ReservationStatus.COMPLETED
    assert r.status == ReservationStatus.APPROVED


def test_sweep_is_idempotent():
    now = datetime(2025, 7, 20, 12, 0)
    reservations = [
        _make_reservation(),
        _make_reservation(start_time="13:00", end_time="14:00"),
        _make_reservation(status=ReservationStatus.PENDING),
        _make_reservation(status=ReservationStatus.CANCELLED),
    ]

    assert sweep(reservations, now) == 1
    assert sweep(reservations, now) == 0

    assert [r.status for r in reservations] == [
        ReservationStatus.COMPLETED,
        ReservationStatus.APPROVED,
        ReservationStatus.PENDING,
        ReservationStatus.CANCELLED,
    ]
    assert reservations[0].updated_at == now


@pytest.fixture()
def sweeper_env():
    bus = EventBus()
    reservation_repo = ReservationRepository()
    notification_repo = NotificationRepository()
    NotificationHandlers(bus, reservation_repo, notification_repo)
    clock = FixedClock(datetime(2025, 7, 20, 12, 0))
    sweeper = ExpirySweeper(reservation_repo, bus, clock, interval=timedelta(minutes=2))
    return sweeper, reservation_repo, notification_repo, clock


def test_expiry_sweeper_run(sweeper_env):
    sweeper, repo, notifications, clock = sweeper_env
    done = _make_reservation()
    later = _make_reservation(start_time="15:00", end_time="16:00")
    repo.add(done)
    repo.add(later)

    outcome = sweeper.run()

    assert outcome.count == 1
    assert outcome.swept_at == clock.now()
    assert outcome.skipped is False
    assert done.status == ReservationStatus.COMPLETED
    assert later.status == ReservationStatus.APPROVED
    assert [n.title for n in notifications.list_for_reservation(done.id)] == [
        "Booking completed"
    ]


def test_expiry_sweeper_throttles_on_callers_timestamp(sweeper_env):
    sweeper, repo, _, clock = sweeper_env
    repo.add(_make_reservation())

    first = sweeper.run()
    assert first.count == 1

    clock.advance(minutes=1)
    repo.add(_make_reservation(start_time="10:00", end_time="11:30"))
    throttled = sweeper.run(first.swept_at)
    assert throttled.skipped is True
    assert throttled.count == 0
    assert throttled.swept_at == first.swept_at

    clock.advance(minutes=2)
    again = sweeper.run(throttled.swept_at)
    assert again.count == 1
    assert sweeper.run(again.swept_at - timedelta(minutes=5)).count == 0


class _LockCheckingRepository(ReservationRepository):
    """Records whether another thread could take the write lock mid-read."""

    def __init__(self) -> None:
        super().__init__()
        self.lock_free_during_read: list[bool] = []

    def list_by_status(self, status):
        seen = []

        def try_lock():
            acquired = self._lock.acquire(blocking=False)
            if acquired:
                self._lock.release()
            seen.append(acquired)

        worker = threading.Thread(target=try_lock)
        worker.start()
        worker.join()
        self.lock_free_during_read.append(seen[0])
        return super().list_by_status(status)


def test_expiry_sweeper_collects_under_store_lock():
    bus = EventBus()
    repo = _LockCheckingRepository()
    clock = FixedClock(datetime(2025, 7, 20, 12, 0))
    repo.add(_make_reservation())

    outcome = ExpirySweeper(repo, bus, clock).run()

    assert outcome.count == 1
    assert repo.lock_free_during_read == [False]


def test_overlapping_sweepers_notify_once(sweeper_env):
    sweeper, repo, notifications, clock = sweeper_env
    rival = ExpirySweeper(sweeper.repository, sweeper.bus, clock)
    done = _make_reservation()
    repo.add(done)

    counts = [sweeper.run().count, rival.run().count]

    assert sorted(counts) == [0, 1]
    assert [n.title for n in notifications.list_for_reservation(done.id)] == [
        "Booking completed"
    ]
