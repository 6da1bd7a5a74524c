"""Aggregate counts over a set of reservations."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from hallbooking.domain.models import BookingStats, Reservation


def booking_stats(reservations: Iterable[Reservation], today: date) -> BookingStats:
    stats = BookingStats()
    for r in reservations:
        stats.total += 1
        if r.date == today:
            stats.today += 1
        if (r.date.year, r.date.month) == (today.year, today.month):
            stats.this_month += 1
        if r.auto_approved:
            stats.auto_approved += 1
        # BookingStats has one counter per status value.
        setattr(stats, r.status.value, getattr(stats, r.status.value) + 1)
    return stats
