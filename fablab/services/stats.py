"""Dashboard metrics derived from confirmed bookings."""

from __future__ import annotations

from datetime import datetime, timedelta

from fablab.domain.models import Stats, StatsWindow
from fablab.repos.memory import BookingRepository, EquipmentRepository


async def compute_stats(
    now: datetime,
    equipment_repo: EquipmentRepository,
    booking_repo: BookingRepository,
    period_days: int = 7,
    daily_minutes: int = 12 * 60,
) -> Stats:
    """Summarize equipment count, active bookings and recent utilization.

    Utilization is the share of bookable minutes in ``[now - period_days, now]``
    covered by confirmed bookings, where each equipment contributes
    ``capacity * daily_minutes`` bookable minutes per day. Capped at 100.
    """
    equipment = await equipment_repo.list_all()
    bookings = await booking_repo.find_confirmed()
    period_start = now - timedelta(days=period_days)

    active = sum(1 for b in bookings if b.end > now)

    booked_minutes = 0
    for booking in bookings:
        start = max(booking.start, period_start)
        end = min(booking.end, now)
        if end > start:
            booked_minutes += round((end - start).total_seconds() / 60)

    capacity_minutes = sum(e.capacity for e in equipment) * daily_minutes * period_days
    utilization = 0
    if capacity_minutes > 0:
        utilization = min(100, round(booked_minutes / capacity_minutes * 100))

    return Stats(
        equipment_count=len(equipment),
        active_bookings=active,
        utilization_rate=utilization,
        window=StatsWindow(days=period_days, daily_minutes=daily_minutes),
    )
