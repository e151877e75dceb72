"""Tests for the conflict-detection service."""

from datetime import datetime

from fablab.domain.models import Booking, BookingStatus
from fablab.services.conflicts import find_conflicts, is_conflict, overlaps


def _booking(start_time: str, end_time: str, date: str = "2024-06-01") -> Booking:
    return Booking(
        equipment_id="laser",
        user_id="u1",
        date=date,
        start_time=start_time,
        end_time=end_time,
        status=BookingStatus.CONFIRMED,
    )


def test_no_existing_intervals_never_conflict():
    assert is_conflict(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), []) is False


def test_no_overlap():
    existing = [_booking("08:00", "09:00")]
    assert not is_conflict(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), existing)
    assert find_conflicts(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), existing) == []


def test_partial_overlap():
    """An interval that partially overlaps is returned as a conflict."""
    existing = [_booking("09:00", "10:30"), _booking("12:00", "13:00")]
    conflicts = find_conflicts(
        datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), existing
    )
    assert [c.start_time for c in conflicts] == ["09:00"]
    assert is_conflict(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), existing)


def test_contained_and_containing_intervals_conflict():
    existing = [_booking("10:00", "12:00")]
    assert is_conflict(datetime(2024, 6, 1, 10, 30), datetime(2024, 6, 1, 11), existing)
    assert is_conflict(datetime(2024, 6, 1, 9), datetime(2024, 6, 1, 13), existing)


def test_exact_boundary_no_conflict():
    """Back-to-back bookings are allowed on either side."""
    existing = [_booking("10:00", "11:00")]
    assert not is_conflict(datetime(2024, 6, 1, 11), datetime(2024, 6, 1, 12), existing)
    assert not is_conflict(datetime(2024, 6, 1, 9), datetime(2024, 6, 1, 10), existing)


def test_overlaps_is_half_open():
    a_start, a_end = datetime(2024, 6, 1, 9), datetime(2024, 6, 1, 10)
    assert overlaps(a_start, a_end, a_start, a_end)
    assert not overlaps(a_start, a_end, a_end, datetime(2024, 6, 1, 11))


def test_other_days_do_not_conflict():
    existing = [_booking("10:00", "11:00", date="2024-06-02")]
    assert not is_conflict(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11), existing)


def test_booking_ending_at_midnight_spans_to_next_day():
    booking = _booking("23:00", "00:00")
    assert booking.end == datetime(2024, 6, 2, 0, 0)
    assert is_conflict(datetime(2024, 6, 1, 23, 30), datetime(2024, 6, 1, 23, 45), [booking])
