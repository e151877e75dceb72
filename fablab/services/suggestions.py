"""Service for proposing alternative slots when a requested slot is taken."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.rrule import DAILY, MINUTELY, rrule

from fablab.domain.models import Slot
from fablab.repos.memory import BookingRepository
from fablab.services.conflicts import is_conflict
from fablab.services.slots import format_date, format_time, slot_bounds

DEFAULT_STEP_MINUTES = 15
DEFAULT_MIN_SUGGESTIONS = 5
DEFAULT_MAX_DAYS = 7


def _day_end(day: datetime) -> datetime:
    return day.replace(hour=23, minute=59, second=0, microsecond=0)


async def find_suggestions(
    booking_repo: BookingRepository,
    equipment_id: str,
    date: str,
    start_time: str,
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    min_suggestions: int = DEFAULT_MIN_SUGGESTIONS,
    max_days: int = DEFAULT_MAX_DAYS,
) -> list[Slot]:
    """Search forward from the requested start for free slots of the same length.

    Days are scanned from the requested day through ``max_days`` days later.
    On the requested day the cursor starts one step after the requested
    start; on later days it starts at midnight. A slot must end by 23:59 of
    its own day, and only confirmed bookings are treated as taken.

    Returns at most *min_suggestions* slots in chronological order; fewer if
    the search space runs out.
    """
    requested_start, _ = slot_bounds(date, start_time, duration_minutes)
    duration = timedelta(minutes=duration_minutes)
    suggestions: list[Slot] = []
    if min_suggestions <= 0:
        return suggestions

    first_day = requested_start.replace(hour=0, minute=0)
    for day in rrule(DAILY, dtstart=first_day, count=max_days + 1):
        day_str = format_date(day)
        bookings = await booking_repo.find_confirmed(equipment_id, day_str)

        if day == first_day:
            cursor_start = requested_start + timedelta(minutes=step_minutes)
        else:
            cursor_start = day
        day_end = _day_end(day)

        for cursor in rrule(
            MINUTELY, interval=step_minutes, dtstart=cursor_start, until=day_end
        ):
            cursor_end = cursor + duration
            if cursor_end > day_end:
                break
            if not is_conflict(cursor, cursor_end, bookings):
                suggestions.append(Slot(date=day_str, time=format_time(cursor)))
                if len(suggestions) >= min_suggestions:
                    return suggestions

    return suggestions
