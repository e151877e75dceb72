"""In-memory repositories for equipment, bookings and maintenance windows.

Every method is a coroutine so callers are written against the same awaitable
interface a database-backed store would expose.
"""

from __future__ import annotations

from datetime import datetime

from fablab.domain.models import (
    Booking,
    BookingStatus,
    Equipment,
    EquipmentStatus,
    MaintenanceStatus,
    MaintenanceWindow,
)


class EquipmentRepository:
    """Dict-backed store for Equipment instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Equipment] = {}

    async def add(self, equipment: Equipment) -> None:
        self._store[equipment.id] = equipment

    async def get(self, equipment_id: str) -> Equipment | None:
        return self._store.get(equipment_id)

    async def list_all(self) -> list[Equipment]:
        return list(self._store.values())

    async def set_status(self, equipment_id: str, status: EquipmentStatus) -> None:
        equipment = self._store.get(equipment_id)
        if equipment is not None:
            equipment.status = status


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    async def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    async def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    async def list_filtered(
        self, status: str | None = None, user_id: str | None = None
    ) -> list[Booking]:
        """Return bookings newest first, optionally filtered by status and owner."""
        items = [
            b
            for b in self._store.values()
            if (status is None or b.status == status)
            and (user_id is None or b.user_id == user_id)
        ]
        return sorted(items, key=lambda b: b.created_at, reverse=True)

    async def find_confirmed(
        self, equipment_id: str | None = None, date: str | None = None
    ) -> list[Booking]:
        """Return confirmed bookings ordered by date and start time.

        Omitting *equipment_id* or *date* widens the query to every equipment
        or every day respectively.
        """
        items = [
            b
            for b in self._store.values()
            if b.status == BookingStatus.CONFIRMED
            and (equipment_id is None or b.equipment_id == equipment_id)
            and (date is None or b.date == date)
        ]
        return sorted(items, key=lambda b: (b.date, b.start_time))

    async def update_status(
        self, booking_id: str, status: BookingStatus, reason: str = ""
    ) -> Booking | None:
        booking = self._store.get(booking_id)
        if booking is not None:
            booking.status = status
            booking.reason = reason
        return booking


class MaintenanceRepository:
    """Dict-backed store for MaintenanceWindow instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, MaintenanceWindow] = {}

    async def add(self, window: MaintenanceWindow) -> None:
        self._store[window.id] = window

    async def get(self, maintenance_id: str) -> MaintenanceWindow | None:
        return self._store.get(maintenance_id)

    async def list_for_equipment(self, equipment_id: str) -> list[MaintenanceWindow]:
        """Return the equipment's windows, latest start first (unstarted last)."""
        items = [w for w in self._store.values() if w.equipment_id == equipment_id]
        return sorted(
            items, key=lambda w: w.start or datetime.min, reverse=True
        )

    async def list_due(self, now: datetime) -> list[MaintenanceWindow]:
        """Scheduled windows whose ``[start, end)`` contains *now*."""
        return [
            w
            for w in self._store.values()
            if w.status == MaintenanceStatus.SCHEDULED
            and w.is_bounded
            and w.start <= now < w.end
        ]

    async def update_status(
        self,
        maintenance_id: str,
        status: MaintenanceStatus,
        expected: MaintenanceStatus | None = None,
    ) -> bool:
        """Set the window's status, only if it currently equals *expected* when given.

        Returns ``True`` when the window was modified.
        """
        window = self._store.get(maintenance_id)
        if window is None:
            return False
        if expected is not None and window.status != expected:
            return False
        window.status = status
        return True

    async def equipment_in_progress(self) -> set[str]:
        """Ids of equipment with at least one in-progress window."""
        return {
            w.equipment_id
            for w in self._store.values()
            if w.status == MaintenanceStatus.IN_PROGRESS
        }

    async def any_in_progress(self, equipment_id: str) -> bool:
        return any(
            w.equipment_id == equipment_id
            and w.status == MaintenanceStatus.IN_PROGRESS
            for w in self._store.values()
        )


# ---------------------------------------------------------------------------
# Seed data – a small lab inventory for local runs
# ---------------------------------------------------------------------------


_SEED_EQUIPMENT = [
    ("laser-cutter", "Laser Cutter", "Cutting", 1, 60),
    ("3d-printer", "3D Printer", "Additive", 2, 120),
    ("cnc-router", "CNC Router", "Subtractive", 1, 90),
]


async def seed_equipment(repo: EquipmentRepository) -> None:
    """Pre-load *repo* with the sample lab inventory."""
    for equipment_id, name, category, capacity, minutes in _SEED_EQUIPMENT:
        await repo.add(
            Equipment(
                id=equipment_id,
                name=name,
                category=category,
                capacity=capacity,
                booking_minutes=minutes,
            )
        )
