"""Tests for the alternative-slot suggestion search."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest

from fablab.domain.models import Booking, BookingStatus
from fablab.repos.memory import BookingRepository
from fablab.services.conflicts import is_conflict
from fablab.services.suggestions import find_suggestions

EQUIPMENT = "laser-cutter"


@pytest.fixture()
def repo():
    return BookingRepository()


def _add(repo, date, start_time, end_time, status=BookingStatus.CONFIRMED, equipment_id=EQUIPMENT):
    booking = Booking(
        equipment_id=equipment_id,
        user_id="u1",
        date=date,
        start_time=start_time,
        end_time=end_time,
        status=status,
    )
    asyncio.run(repo.add(booking))
    return booking


def _suggest(repo, date, time, duration, **kwargs):
    return asyncio.run(find_suggestions(repo, EQUIPMENT, date, time, duration, **kwargs))


def _pairs(slots):
    return [(s.date, s.time) for s in slots]


def test_suggestions_after_confirmed_booking_same_day(repo):
    """Requested 10:30 collides with 10:00-11:00; suggestions step by 15 from 11:00."""
    _add(repo, "2024-06-01", "10:00", "11:00")

    slots = _suggest(repo, "2024-06-01", "10:30", 30)

    assert _pairs(slots) == [
        ("2024-06-01", "11:00"),
        ("2024-06-01", "11:15"),
        ("2024-06-01", "11:30"),
        ("2024-06-01", "11:45"),
        ("2024-06-01", "12:00"),
    ]


def test_first_cursor_skips_requested_start(repo):
    slots = _suggest(repo, "2024-06-01", "09:00", 30, min_suggestions=1)
    assert _pairs(slots) == [("2024-06-01", "09:15")]


def test_rolls_over_to_next_day_from_midnight(repo):
    _add(repo, "2024-06-01", "00:00", "23:59")

    slots = _suggest(repo, "2024-06-01", "10:00", 60, min_suggestions=3)

    assert _pairs(slots) == [
        ("2024-06-02", "00:00"),
        ("2024-06-02", "00:15"),
        ("2024-06-02", "00:30"),
    ]


def test_slots_never_spill_past_day_end(repo):
    slots = _suggest(repo, "2024-06-01", "22:00", 60, min_suggestions=10, max_days=0)
    assert _pairs(slots) == [
        ("2024-06-01", "22:15"),
        ("2024-06-01", "22:30"),
        ("2024-06-01", "22:45"),
    ]


def test_returns_fewer_when_search_space_exhausted(repo):
    for day in range(3):
        date = (datetime(2024, 6, 1) + timedelta(days=day)).strftime("%Y-%m-%d")
        _add(repo, date, "00:00", "23:59")

    slots = _suggest(repo, "2024-06-01", "10:00", 30, max_days=2)

    assert slots == []


def test_pending_bookings_and_other_equipment_are_ignored(repo):
    _add(repo, "2024-06-01", "11:00", "12:00", status=BookingStatus.PENDING)
    _add(repo, "2024-06-01", "11:00", "12:00", equipment_id="cnc-router")

    slots = _suggest(repo, "2024-06-01", "10:45", 15, min_suggestions=2)

    assert _pairs(slots) == [("2024-06-01", "11:00"), ("2024-06-01", "11:15")]


def test_custom_step(repo):
    _add(repo, "2024-06-01", "09:00", "10:00")
    slots = _suggest(repo, "2024-06-01", "09:00", 60, step_minutes=30, min_suggestions=2)
    assert _pairs(slots) == [("2024-06-01", "10:00"), ("2024-06-01", "10:30")]


def test_suggestions_are_conflict_free_and_ordered(repo):
    bookings = [
        _add(repo, "2024-06-01", "08:00", "12:00"),
        _add(repo, "2024-06-01", "12:30", "18:00"),
        _add(repo, "2024-06-02", "00:00", "09:00"),
    ]

    slots = _suggest(repo, "2024-06-01", "09:00", 45, min_suggestions=20)

    assert len(slots) == 20
    for slot in slots:
        start = datetime.strptime(f"{slot.date} {slot.time}", "%Y-%m-%d %H:%M")
        assert not is_conflict(start, start + timedelta(minutes=45), bookings)
    assert _pairs(slots) == sorted(_pairs(slots))
