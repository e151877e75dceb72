"""Parsing and arithmetic for ``YYYY-MM-DD`` dates and ``HH:mm`` times."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from fablab.errors import InvalidInputError

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def to_datetime(date: str, time: str) -> datetime:
    """Combine a calendar date and a time of day into a local datetime.

    Raises InvalidInputError when either part is malformed.
    """
    if not isinstance(date, str) or not _DATE_RE.match(date):
        raise InvalidInputError("date must be formatted as YYYY-MM-DD")
    if not isinstance(time, str) or not _TIME_RE.match(time):
        raise InvalidInputError("time must be formatted as HH:mm")
    try:
        return datetime.strptime(f"{date} {time}", f"{DATE_FORMAT} {TIME_FORMAT}")
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date or time: {date} {time}") from exc


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)


def slot_bounds(date: str, time: str, duration_minutes: int) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` interval of a slot.

    The duration must be a positive whole number of minutes.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidInputError("durationMinutes must be an integer")
    if duration_minutes <= 0:
        raise InvalidInputError("durationMinutes must be greater than zero")
    start = to_datetime(date, time)
    return start, start + timedelta(minutes=duration_minutes)
