"""Domain events emitted by maintenance transitions."""

from __future__ import annotations

from pydantic import BaseModel

from fablab.domain.models import MaintenanceStatus


class MaintenanceStarted(BaseModel):
    """Fired when a maintenance window enters ``in-progress``."""

    maintenance_id: str
    equipment_id: str


class MaintenanceEnded(BaseModel):
    """Fired when a maintenance window is completed or cancelled."""

    maintenance_id: str
    equipment_id: str
    status: MaintenanceStatus
