"""Tests for alternative-slot generation."""

from datetime import date

from hallbooking.config import Settings
from hallbooking.domain.models import Reservation, ReservationStatus
from hallbooking.services.availability import check_availability
from hallbooking.services.intervals import time_to_minutes
from hallbooking.services.suggestions import standard_slots, suggest

_DAY = date(2025, 7, 20)


def _make_reservation(start: str, end: str, **overrides) -> Reservation:
    defaults = dict(
        resource_id="H1",
        owner_id="owner-1",
        date=_DAY,
        start_time=start,
        end_time=end,
        status=ReservationStatus.APPROVED,
    )
    defaults.update(overrides)
    return Reservation(**defaults)


def test_suggestions_around_morning_booking():
    """90-minute request against 09:00-11:00 skips everything inside the buffer."""
    existing = [_make_reservation("09:00", "11:00")]
    slots = suggest("H1", _DAY, "11:30", "13:00", existing)

    assert [(s.start_time, s.end_time) for s in slots] == [
        ("06:00", "07:30"),
        ("06:30", "08:00"),
        ("12:00", "13:30"),
        ("12:30", "14:00"),
        ("13:00", "14:30"),
    ]
    assert all(s.duration_minutes == 90 for s in slots)


def test_suggestions_are_capped_and_ordered():
    slots = suggest("H1", _DAY, "10:00", "10:30", [])
    assert len(slots) == 5
    starts = [time_to_minutes(s.start_time) for s in slots]
    assert starts == sorted(starts)
    assert slots[0].start_time == "06:00"


def test_suggestions_are_conflict_free():
    """Every suggestion passes the same availability check."""
    existing = [
        _make_reservation("07:00", "08:00"),
        _make_reservation("10:00", "12:30"),
        _make_reservation("15:00", "16:00", status=ReservationStatus.PENDING),
        _make_reservation("18:30", "21:00"),
    ]
    for start, end in [("10:00", "11:00"), ("15:00", "17:30"), ("07:00", "07:30")]:
        for slot in suggest("H1", _DAY, start, end, existing):
            result = check_availability("H1", _DAY, slot.start_time, slot.end_time, existing)
            assert result.is_available, slot


def test_long_request_never_runs_past_closing():
    slots = suggest("H1", _DAY, "06:00", "14:00", [_make_reservation("06:00", "09:00")])
    assert slots
    assert all(time_to_minutes(s.end_time) <= time_to_minutes("23:00") for s in slots)


def test_latest_candidate_start_is_22_00():
    """A fully booked day leaves only the 22:00 start for a 30-minute slot."""
    existing = [_make_reservation("06:00", "21:16")]
    slots = suggest("H1", _DAY, "10:00", "10:30", existing)
    assert [(s.start_time, s.end_time) for s in slots] == [("22:00", "22:30")]


def test_no_room_left():
    existing = [_make_reservation("06:00", "22:30")]
    assert suggest("H1", _DAY, "10:00", "11:00", existing) == []


def test_suggested_slot_buffer_fields():
    slots = suggest("H1", _DAY, "10:00", "10:30", [])
    first = slots[0]
    assert first.buffer_start == "06:00"
    assert first.buffer_end == "07:14"


def test_custom_policy():
    settings = Settings(buffer_minutes=0, slot_step_minutes=60, max_suggestions=3)
    existing = [_make_reservation("06:00", "07:00")]
    slots = suggest("H1", _DAY, "06:00", "07:00", existing, settings=settings)
    assert [s.start_time for s in slots] == ["07:00", "08:00", "09:00"]


def test_standard_slots_filters_blocked_entries():
    existing = [_make_reservation("09:00", "11:00")]
    free = [(s.start_time, s.end_time) for s in standard_slots("H1", _DAY, existing)]
    # 08-10 and 10-12 overlap; 06-08 ends 08:00, inside the 08:16 cutoff;
    # 12-14 starts after 11:44.
    assert ("08:00", "10:00") not in free
    assert ("10:00", "12:00") not in free
    assert ("06:00", "08:00") in free
    assert ("12:00", "14:00") in free
    assert len(free) == 6
