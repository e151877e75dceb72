"""FastAPI application: entry point for the equipment booking engine."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI

from fablab.auth import current_user_id, require_admin
from fablab.config import Settings
from fablab.domain.bus import EventBus
from fablab.domain.handlers import HandlerRegistry
from fablab.domain.models import (
    AvailabilityRequest,
    AvailabilityResponse,
    Booking,
    BookingStatusUpdate,
    CreateBookingRequest,
    CreateBookingResponse,
    CreateMaintenanceRequest,
    Equipment,
    MaintenanceDetailsUpdate,
    MaintenanceStatusUpdate,
    MaintenanceWindow,
    Stats,
    TickResult,
)
from fablab.errors import NotFoundError, register_error_handlers
from fablab.repos.memory import (
    BookingRepository,
    EquipmentRepository,
    MaintenanceRepository,
    seed_equipment,
)
from fablab.services.bookings import BookingService
from fablab.services.maintenance import MaintenanceService
from fablab.services.scheduler import MaintenanceScheduler, run_maintenance_tick
from fablab.services.stats import compute_stats

settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
equipment_repo = EquipmentRepository()
booking_repo = BookingRepository()
maintenance_repo = MaintenanceRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    equipment_repo=equipment_repo,
    maintenance_repo=maintenance_repo,
)
booking_service = BookingService(
    equipment_repo=equipment_repo,
    booking_repo=booking_repo,
    maintenance_repo=maintenance_repo,
    settings=settings,
)
maintenance_service = MaintenanceService(
    bus=event_bus,
    equipment_repo=equipment_repo,
    booking_repo=booking_repo,
    maintenance_repo=maintenance_repo,
)


async def maintenance_tick(now: datetime) -> TickResult:
    return await run_maintenance_tick(now, maintenance_repo, equipment_repo, event_bus)


scheduler = MaintenanceScheduler(
    maintenance_tick, interval_seconds=settings.maintenance_tick_seconds
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await seed_equipment(equipment_repo)
    logger.info("Loaded %d equipment records", len(await equipment_repo.list_all()))
    if settings.maintenance_scheduler_enabled:
        scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(title="Fab Lab Booking Engine", lifespan=lifespan)
register_error_handlers(app)


# ── Bookings ──────────────────────────────────────────────────────────


@app.post(
    "/bookings/availability",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
)
async def check_availability(payload: AvailabilityRequest) -> AvailabilityResponse:
    """Report whether a slot is free; suggest alternatives when it is not."""
    return await booking_service.check_availability(
        payload.equipment_id, payload.date, payload.time, payload.duration_minutes
    )


@app.post("/bookings", response_model=CreateBookingResponse, status_code=201)
async def create_booking(
    payload: CreateBookingRequest, user_id: str = Depends(current_user_id)
) -> CreateBookingResponse:
    """Request a booking; it stays pending until an admin confirms it."""
    booking = await booking_service.create_booking(
        user_id,
        payload.equipment_id,
        payload.date,
        payload.time,
        payload.duration_minutes,
        payload.purpose,
    )
    return CreateBookingResponse(booking_id=booking.id, status=booking.status)


@app.get("/bookings", response_model=list[Booking])
async def list_bookings(
    status: str | None = None, _admin: str = Depends(require_admin)
) -> list[Booking]:
    return await booking_service.list_bookings(status)


@app.get("/bookings/confirmed", response_model=list[Booking])
async def list_confirmed_bookings() -> list[Booking]:
    return await booking_service.list_confirmed()


@app.get("/bookings/mine", response_model=list[Booking])
async def list_my_bookings(user_id: str = Depends(current_user_id)) -> list[Booking]:
    return await booking_service.list_for_user(user_id)


@app.patch("/bookings/{booking_id}/status")
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    _admin: str = Depends(require_admin),
) -> dict:
    await booking_service.update_status(booking_id, body.status, body.reason)
    return {"ok": True}


# ── Maintenance ───────────────────────────────────────────────────────


@app.post("/maintenance/tick", response_model=TickResult)
async def tick(now: datetime | None = None, _admin: str = Depends(require_admin)) -> TickResult:
    """Run one maintenance status tick immediately.

    Pass *now* as a query param to control the clock.
    Defaults to ``datetime.now()`` when omitted.
    """
    if now is None:
        now = datetime.now()
    elif now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    return await maintenance_tick(now)


@app.post("/maintenance", response_model=MaintenanceWindow, status_code=201)
async def create_maintenance(
    payload: CreateMaintenanceRequest, _admin: str = Depends(require_admin)
) -> MaintenanceWindow:
    return await maintenance_service.create(
        payload.equipment_id,
        type=payload.type,
        start=payload.start,
        end=payload.end,
        assignee=payload.assignee,
        notes=payload.notes,
    )


@app.get("/maintenance/{equipment_id}", response_model=list[MaintenanceWindow])
async def list_maintenance(equipment_id: str) -> list[MaintenanceWindow]:
    return await maintenance_service.list_for_equipment(equipment_id)


@app.patch("/maintenance/{maintenance_id}/status", response_model=MaintenanceWindow)
async def update_maintenance_status(
    maintenance_id: str,
    body: MaintenanceStatusUpdate,
    _admin: str = Depends(require_admin),
) -> MaintenanceWindow:
    return await maintenance_service.update_status(maintenance_id, body.status)


@app.patch("/maintenance/{maintenance_id}", response_model=MaintenanceWindow)
async def update_maintenance(
    maintenance_id: str,
    body: MaintenanceDetailsUpdate,
    _admin: str = Depends(require_admin),
) -> MaintenanceWindow:
    return await maintenance_service.update_details(
        maintenance_id,
        duration_minutes=body.duration_minutes,
        cost=body.cost,
        notes=body.notes,
        set_equipment_operational=body.set_equipment_operational,
    )


# ── Equipment & dashboard ─────────────────────────────────────────────


@app.get("/equipment/{equipment_id}", response_model=Equipment)
async def get_equipment(equipment_id: str) -> Equipment:
    equipment = await equipment_repo.get(equipment_id)
    if equipment is None:
        raise NotFoundError("Equipment not found")
    return equipment


@app.get("/admin/stats", response_model=Stats)
async def get_stats(_admin: str = Depends(require_admin)) -> Stats:
    return await compute_stats(
        datetime.now(),
        equipment_repo,
        booking_repo,
        period_days=settings.utilization_days,
        daily_minutes=settings.operational_minutes_per_day,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "scheduler": scheduler.running}
