"""Domain event handlers that keep equipment status in sync with maintenance."""

from __future__ import annotations

import logging

from fablab.domain.bus import EventBus
from fablab.domain.events import MaintenanceEnded, MaintenanceStarted
from fablab.domain.models import EquipmentStatus
from fablab.repos.memory import EquipmentRepository, MaintenanceRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires maintenance event handlers to the bus."""

    def __init__(
        self,
        bus: EventBus,
        equipment_repo: EquipmentRepository,
        maintenance_repo: MaintenanceRepository,
    ) -> None:
        self.bus = bus
        self.equipment_repo = equipment_repo
        self.maintenance_repo = maintenance_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(MaintenanceStarted, self.on_maintenance_started)
        self.bus.subscribe(MaintenanceEnded, self.on_maintenance_ended)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def on_maintenance_started(self, event: MaintenanceStarted) -> None:
        await self.equipment_repo.set_status(
            event.equipment_id, EquipmentStatus.MAINTENANCE
        )
        logger.info(
            "Equipment %s under maintenance (window %s)",
            event.equipment_id,
            event.maintenance_id,
        )

    async def on_maintenance_ended(self, event: MaintenanceEnded) -> None:
        # Other windows may still be running on the same equipment.
        if await self.maintenance_repo.any_in_progress(event.equipment_id):
            return
        await self.equipment_repo.set_status(
            event.equipment_id, EquipmentStatus.OPERATIONAL
        )
        logger.info(
            "Equipment %s back to operational after window %s was %s",
            event.equipment_id,
            event.maintenance_id,
            event.status,
        )
