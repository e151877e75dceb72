"""Periodic promotion of scheduled maintenance windows.

``run_maintenance_tick`` is the whole transition logic and takes the current
time as an argument; ``MaintenanceScheduler`` only drives it on an interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Awaitable, Callable

from fablab.domain.bus import EventBus
from fablab.domain.events import MaintenanceStarted
from fablab.domain.models import EquipmentStatus, MaintenanceStatus, TickResult
from fablab.repos.memory import EquipmentRepository, MaintenanceRepository

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


async def run_maintenance_tick(
    now: datetime,
    maintenance_repo: MaintenanceRepository,
    equipment_repo: EquipmentRepository,
    bus: EventBus,
) -> TickResult:
    """Promote due windows and reconcile equipment status.

    A scheduled window is due when ``start <= now < end``. Promotion is a
    conditional update on the ``scheduled`` status, so concurrent ticks or
    admin edits never promote a window twice. Windows are never completed
    here. Equipment left in ``maintenance`` without any in-progress window is
    reverted to ``operational``.
    """
    promoted: list[str] = []
    for window in await maintenance_repo.list_due(now):
        changed = await maintenance_repo.update_status(
            window.id, MaintenanceStatus.IN_PROGRESS, expected=MaintenanceStatus.SCHEDULED
        )
        if not changed:
            continue
        promoted.append(window.id)
        await bus.publish(
            MaintenanceStarted(maintenance_id=window.id, equipment_id=window.equipment_id)
        )

    busy = await maintenance_repo.equipment_in_progress()
    if promoted:
        for equipment_id in busy:
            await equipment_repo.set_status(equipment_id, EquipmentStatus.MAINTENANCE)

    reverted: list[str] = []
    for equipment in await equipment_repo.list_all():
        if equipment.status == EquipmentStatus.MAINTENANCE and equipment.id not in busy:
            await equipment_repo.set_status(equipment.id, EquipmentStatus.OPERATIONAL)
            reverted.append(equipment.id)

    if promoted or reverted:
        logger.info(
            "Maintenance tick at %s: promoted %s, reverted %s",
            now.isoformat(),
            promoted,
            reverted,
        )
    return TickResult(time=now, promoted=promoted, reverted=reverted)


class MaintenanceScheduler:
    """Runs a tick coroutine immediately and then every *interval_seconds*.

    Ticks run sequentially inside a single task. A failing tick is logged and
    the loop carries on with the next interval.
    """

    def __init__(
        self,
        tick: Callable[[datetime], Awaitable[TickResult]],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tick = tick
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop; a no-op when already started."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Maintenance scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Maintenance scheduler stopped")

    async def run_once(self) -> TickResult | None:
        try:
            return await self._tick(self._clock())
        except Exception:
            logger.exception("Maintenance status tick failed")
            return None

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
