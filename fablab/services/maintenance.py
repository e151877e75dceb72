"""Maintenance window creation and admin-driven status transitions."""

from __future__ import annotations

import logging
from datetime import datetime

from fablab.domain.bus import EventBus
from fablab.domain.events import MaintenanceEnded, MaintenanceStarted
from fablab.domain.models import (
    EquipmentStatus,
    MaintenanceStatus,
    MaintenanceType,
    MaintenanceWindow,
)
from fablab.errors import ConflictError, InvalidInputError, NotFoundError
from fablab.repos.memory import (
    BookingRepository,
    EquipmentRepository,
    MaintenanceRepository,
)
from fablab.services.conflicts import is_conflict

logger = logging.getLogger(__name__)

# Admin transitions; the scheduler only ever performs scheduled -> in-progress.
ALLOWED_TRANSITIONS: dict[MaintenanceStatus, frozenset[MaintenanceStatus]] = {
    MaintenanceStatus.SCHEDULED: frozenset(
        {MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED}
    ),
    MaintenanceStatus.IN_PROGRESS: frozenset(
        {MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED}
    ),
    MaintenanceStatus.COMPLETED: frozenset(),
    MaintenanceStatus.CANCELLED: frozenset(),
}


class MaintenanceService:
    def __init__(
        self,
        bus: EventBus,
        equipment_repo: EquipmentRepository,
        booking_repo: BookingRepository,
        maintenance_repo: MaintenanceRepository,
    ) -> None:
        self.bus = bus
        self.equipment_repo = equipment_repo
        self.booking_repo = booking_repo
        self.maintenance_repo = maintenance_repo

    async def _require_equipment(self, equipment_id: str) -> None:
        if not equipment_id:
            raise InvalidInputError("equipmentId is required")
        if await self.equipment_repo.get(equipment_id) is None:
            raise NotFoundError("Equipment not found")

    async def _require_window(self, maintenance_id: str) -> MaintenanceWindow:
        window = await self.maintenance_repo.get(maintenance_id)
        if window is None:
            raise NotFoundError("Maintenance record not found")
        return window

    async def create(
        self,
        equipment_id: str,
        type: MaintenanceType | str = MaintenanceType.PREVENTIVE,
        start: datetime | None = None,
        end: datetime | None = None,
        assignee: str = "",
        notes: str = "",
        now: datetime | None = None,
    ) -> MaintenanceWindow:
        """Create a maintenance window.

        Corrective maintenance starts immediately with an open end and puts the
        equipment into maintenance at once. Every other type is scheduled for
        ``[start, end)`` and may not overlap another non-cancelled window or a
        confirmed booking of the same equipment.
        """
        try:
            kind = MaintenanceType(str(type).lower())
        except ValueError as exc:
            raise InvalidInputError(f"Unknown maintenance type: {type}") from exc
        await self._require_equipment(equipment_id)

        if kind == MaintenanceType.CORRECTIVE:
            window = MaintenanceWindow(
                equipment_id=equipment_id,
                type=kind,
                status=MaintenanceStatus.IN_PROGRESS,
                start=now or datetime.now(),
                assignee=assignee,
                notes=notes,
            )
            await self.maintenance_repo.add(window)
            logger.info("Corrective maintenance %s opened on %s", window.id, equipment_id)
            await self.bus.publish(
                MaintenanceStarted(maintenance_id=window.id, equipment_id=equipment_id)
            )
            return window

        if start is None or end is None:
            raise InvalidInputError("start and end are required for scheduled maintenance")
        if end <= start:
            raise InvalidInputError("Invalid start or end datetime")

        existing = [
            w
            for w in await self.maintenance_repo.list_for_equipment(equipment_id)
            if w.status != MaintenanceStatus.CANCELLED and w.is_bounded
        ]
        if is_conflict(start, end, existing):
            raise ConflictError("Overlaps with existing maintenance window")

        confirmed = await self.booking_repo.find_confirmed(equipment_id)
        if is_conflict(start, end, confirmed):
            raise ConflictError("Overlaps with confirmed bookings. Resolve bookings first.")

        window = MaintenanceWindow(
            equipment_id=equipment_id,
            type=kind,
            start=start,
            end=end,
            assignee=assignee,
            notes=notes,
        )
        await self.maintenance_repo.add(window)
        logger.info(
            "%s maintenance %s scheduled on %s for %s - %s",
            kind,
            window.id,
            equipment_id,
            start.isoformat(),
            end.isoformat(),
        )
        return window

    async def update_status(
        self, maintenance_id: str, status: str, now: datetime | None = None
    ) -> MaintenanceWindow:
        """Move a window along its lifecycle and resync the equipment status.

        Completing a window stamps the real end time and records the elapsed
        minutes.
        """
        try:
            new_status = MaintenanceStatus(status)
        except ValueError as exc:
            raise InvalidInputError("Invalid status") from exc

        window = await self._require_window(maintenance_id)
        current = window.status
        if new_status == current:
            return window
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidInputError(f"Cannot move maintenance from {current} to {new_status}")

        if not await self.maintenance_repo.update_status(
            maintenance_id, new_status, expected=current
        ):
            raise ConflictError("Maintenance record was modified concurrently")

        if new_status == MaintenanceStatus.COMPLETED:
            window.end = now or datetime.now()
            if window.start is not None:
                elapsed = (window.end - window.start).total_seconds() / 60
                window.duration_minutes = max(0, round(elapsed))
        logger.info("Maintenance %s: %s -> %s", maintenance_id, current, new_status)

        if new_status == MaintenanceStatus.IN_PROGRESS:
            await self.bus.publish(
                MaintenanceStarted(
                    maintenance_id=window.id, equipment_id=window.equipment_id
                )
            )
        else:
            await self.bus.publish(
                MaintenanceEnded(
                    maintenance_id=window.id,
                    equipment_id=window.equipment_id,
                    status=new_status,
                )
            )
        return window

    async def update_details(
        self,
        maintenance_id: str,
        duration_minutes: int | None = None,
        cost: float | None = None,
        notes: str | None = None,
        set_equipment_operational: bool = False,
    ) -> MaintenanceWindow:
        """Record bookkeeping details (real duration, cost, notes) on a window.

        *set_equipment_operational* is refused while any window of the same
        equipment is still in progress.
        """
        window = await self._require_window(maintenance_id)
        if set_equipment_operational and await self.maintenance_repo.any_in_progress(
            window.equipment_id
        ):
            raise InvalidInputError(
                "Equipment still has maintenance in progress; complete it first"
            )
        if duration_minutes is not None:
            window.duration_minutes = duration_minutes
        if cost is not None:
            window.cost = cost
        if notes is not None:
            window.notes = notes
        if set_equipment_operational:
            await self.equipment_repo.set_status(
                window.equipment_id, EquipmentStatus.OPERATIONAL
            )
        return window

    async def list_for_equipment(self, equipment_id: str) -> list[MaintenanceWindow]:
        return await self.maintenance_repo.list_for_equipment(equipment_id)
