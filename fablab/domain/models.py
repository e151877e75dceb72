"""Domain models for the equipment booking engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    COMPLETE = "complete"


class MaintenanceType(StrEnum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    CALIBRATION = "calibration"
    UPGRADE = "upgrade"
    INSPECTION = "inspection"


class MaintenanceStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EquipmentStatus(StrEnum):
    OPERATIONAL = "operational"
    MAINTENANCE = "maintenance"


def _now() -> datetime:
    return datetime.now()


def _new_id() -> str:
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Equipment(CamelModel):
    id: str = Field(default_factory=_new_id)
    name: str
    category: str = ""
    capacity: int = Field(default=1, ge=1)
    booking_minutes: int = 30
    status: EquipmentStatus = EquipmentStatus.OPERATIONAL


class Booking(CamelModel):
    id: str = Field(default_factory=_new_id)
    equipment_id: str
    user_id: str
    date: str
    start_time: str
    end_time: str
    purpose: str = ""
    reason: str = ""
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=_now)

    @property
    def start(self) -> datetime:
        return datetime.strptime(f"{self.date} {self.start_time}", "%Y-%m-%d %H:%M")

    @property
    def end(self) -> datetime:
        """End of the booking; an end time of ``00:00`` means midnight of the next day."""
        end = datetime.strptime(f"{self.date} {self.end_time}", "%Y-%m-%d %H:%M")
        if end <= self.start:
            end += timedelta(days=1)
        return end


class MaintenanceWindow(CamelModel):
    id: str = Field(default_factory=_new_id)
    equipment_id: str
    type: MaintenanceType = MaintenanceType.PREVENTIVE
    start: datetime | None = None
    end: datetime | None = None
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    assignee: str = ""
    notes: str = ""
    duration_minutes: int = 0
    cost: float = 0
    created_at: datetime = Field(default_factory=_now)

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None


class Slot(CamelModel):
    date: str
    time: str


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class AvailabilityRequest(CamelModel):
    equipment_id: str
    date: str
    time: str
    duration_minutes: int


class AvailabilityResponse(CamelModel):
    available: bool
    suggested_slots: list[Slot] | None = None


class CreateBookingRequest(AvailabilityRequest):
    purpose: str = ""


class CreateBookingResponse(CamelModel):
    booking_id: str
    status: BookingStatus
    message: str = "Booking requested"


class BookingStatusUpdate(CamelModel):
    status: str
    reason: str = ""


class CreateMaintenanceRequest(CamelModel):
    equipment_id: str
    type: MaintenanceType = MaintenanceType.PREVENTIVE
    start: datetime | None = None
    end: datetime | None = None
    assignee: str = ""
    notes: str = ""

    @field_validator("start", "end")
    @classmethod
    def _to_server_local(cls, value: datetime | None) -> datetime | None:
        # Intervals are compared as naive server-local datetimes.
        if value is not None and value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value


class MaintenanceStatusUpdate(CamelModel):
    status: str


class MaintenanceDetailsUpdate(CamelModel):
    duration_minutes: int | None = Field(default=None, ge=0)
    cost: float | None = Field(default=None, ge=0)
    notes: str | None = None
    set_equipment_operational: bool = False


class TickResult(CamelModel):
    time: datetime
    promoted: list[str] = Field(default_factory=list)
    reverted: list[str] = Field(default_factory=list)


class StatsWindow(CamelModel):
    days: int
    daily_minutes: int


class Stats(CamelModel):
    equipment_count: int
    active_bookings: int
    utilization_rate: int
    window: StatsWindow
