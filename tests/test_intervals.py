"""Tests for minute-resolution time arithmetic."""

from datetime import date, datetime

import pytest

from hallbooking.services.intervals import (
    buffered_window,
    combine,
    duration,
    format_compact_date,
    intervals_conflict,
    minutes_to_time,
    parse_booking_date,
    time_to_minutes,
)


def test_time_round_trip():
    assert time_to_minutes("09:00") == 540
    assert time_to_minutes("23:00") == 1380
    assert minutes_to_time(704) == "11:44"
    assert minutes_to_time(time_to_minutes("06:05")) == "06:05"


@pytest.mark.parametrize("raw", ["9am", "24:00", "12:60", "", "12-30"])
def test_time_rejects_garbage(raw):
    with pytest.raises(ValueError):
        time_to_minutes(raw)


def test_duration():
    assert duration(540, 660) == 120


def test_buffered_window_plain():
    assert buffered_window(540, 660) == (496, 704)


def test_buffered_window_clamps_to_opening():
    """06:10-06:30 buffers back to exactly 06:00, not 05:26."""
    start, _ = buffered_window(time_to_minutes("06:10"), time_to_minutes("06:30"), 44)
    assert minutes_to_time(start) == "06:00"


def test_buffered_window_clamps_to_closing():
    """A booking ending at 22:58 does not spill past 23:00."""
    _, end = buffered_window(time_to_minutes("22:00"), time_to_minutes("22:58"), 44)
    assert minutes_to_time(end) == "23:00"


def test_exact_buffer_gap_is_not_a_conflict():
    assert not intervals_conflict(704, 780, 540, 660, 44)
    assert intervals_conflict(703, 780, 540, 660, 44)


def test_parse_booking_date_formats():
    assert parse_booking_date("2025-07-20") == date(2025, 7, 20)
    assert parse_booking_date("20072025") == date(2025, 7, 20)
    assert parse_booking_date(date(2025, 7, 20)) == date(2025, 7, 20)
    assert format_compact_date(date(2025, 7, 20)) == "20072025"


def test_combine():
    assert combine(date(2025, 7, 20), "11:00") == datetime(2025, 7, 20, 11, 0)
