"""Service for detecting overlaps between booked and proposed intervals."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, TypeVar


class Interval(Protocol):
    @property
    def start(self) -> datetime: ...

    @property
    def end(self) -> datetime: ...


T = TypeVar("T", bound=Interval)


def overlaps(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Half-open overlap test: ``[start, end)`` against ``[other_start, other_end)``.

    Exact boundary touches (end == other_start) are NOT considered conflicts.
    """
    return not (end <= other_start or start >= other_end)


def find_conflicts(
    proposed_start: datetime,
    proposed_end: datetime,
    existing: Iterable[T],
) -> list[T]:
    """Return existing intervals that overlap with the proposed range."""
    return [
        item
        for item in existing
        if overlaps(proposed_start, proposed_end, item.start, item.end)
    ]


def is_conflict(
    proposed_start: datetime,
    proposed_end: datetime,
    existing: Iterable[Interval],
) -> bool:
    """True when the proposed range overlaps any existing interval."""
    return any(
        overlaps(proposed_start, proposed_end, item.start, item.end)
        for item in existing
    )
