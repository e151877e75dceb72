"""Availability checks and conflict-safe booking writes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from fablab.config import Settings
from fablab.domain.models import (
    AvailabilityResponse,
    Booking,
    BookingStatus,
    MaintenanceStatus,
    Slot,
)
from fablab.errors import ConflictError, InvalidInputError, NotFoundError
from fablab.repos.memory import (
    BookingRepository,
    EquipmentRepository,
    MaintenanceRepository,
)
from fablab.services.conflicts import find_conflicts, is_conflict
from fablab.services.slots import format_time, slot_bounds
from fablab.services.suggestions import find_suggestions

logger = logging.getLogger(__name__)


class BookingService:
    """Checks, creates and transitions bookings against the interval store.

    Every check re-reads confirmed bookings from the store; nothing is cached
    between calls, so availability answers are advisory and creation always
    re-validates.
    """

    def __init__(
        self,
        equipment_repo: EquipmentRepository,
        booking_repo: BookingRepository,
        maintenance_repo: MaintenanceRepository,
        settings: Settings | None = None,
    ) -> None:
        self.equipment_repo = equipment_repo
        self.booking_repo = booking_repo
        self.maintenance_repo = maintenance_repo
        self.settings = settings or Settings()

    async def _require_equipment(self, equipment_id: str) -> None:
        if not equipment_id or not isinstance(equipment_id, str):
            raise InvalidInputError("equipmentId is required")
        if await self.equipment_repo.get(equipment_id) is None:
            raise NotFoundError("Equipment not found")

    def _slot_bounds(
        self, date: str, time: str, duration_minutes: int
    ) -> tuple[datetime, datetime]:
        """Validate a requested slot; it must end by midnight of its own day.

        Confirmed bookings are read one day at a time, so a slot spilling into
        the next day could not be checked against that day's bookings.
        """
        start, end = slot_bounds(date, time, duration_minutes)
        if end > start.replace(hour=0, minute=0) + timedelta(days=1):
            raise InvalidInputError("Booking must end by midnight of the booked day")
        return start, end

    async def _suggest(
        self, equipment_id: str, date: str, time: str, duration_minutes: int
    ) -> list[Slot]:
        return await find_suggestions(
            self.booking_repo,
            equipment_id,
            date,
            time,
            duration_minutes,
            step_minutes=self.settings.suggestion_step_minutes,
            min_suggestions=self.settings.min_suggestions,
            max_days=self.settings.suggestion_max_days,
        )

    async def check_availability(
        self, equipment_id: str, date: str, time: str, duration_minutes: int
    ) -> AvailabilityResponse:
        """Report whether the slot is free of confirmed bookings.

        Suggestions are only computed when the slot is taken.
        """
        start, end = self._slot_bounds(date, time, duration_minutes)
        await self._require_equipment(equipment_id)

        bookings = await self.booking_repo.find_confirmed(equipment_id, date)
        if not is_conflict(start, end, bookings):
            return AvailabilityResponse(available=True)

        suggested = await self._suggest(equipment_id, date, time, duration_minutes)
        return AvailabilityResponse(available=False, suggested_slots=suggested)

    async def create_booking(
        self,
        user_id: str,
        equipment_id: str,
        date: str,
        time: str,
        duration_minutes: int,
        purpose: str = "",
    ) -> Booking:
        """Persist a pending booking, re-checking confirmed bookings first.

        Raises ConflictError with suggested slots when the slot is taken.
        """
        start, end = self._slot_bounds(date, time, duration_minutes)
        await self._require_equipment(equipment_id)

        bookings = await self.booking_repo.find_confirmed(equipment_id, date)
        if is_conflict(start, end, bookings):
            suggested = await self._suggest(equipment_id, date, time, duration_minutes)
            logger.info(
                "Booking request for %s on %s at %s conflicts; %d suggestions",
                equipment_id,
                date,
                time,
                len(suggested),
            )
            raise ConflictError(
                "Time slot conflicts with existing booking", suggested_slots=suggested
            )

        booking = Booking(
            equipment_id=equipment_id,
            user_id=user_id,
            date=date,
            start_time=time,
            end_time=format_time(end),
            purpose=purpose,
        )
        await self.booking_repo.add(booking)
        logger.info(
            "Booking %s requested by %s for %s on %s %s-%s",
            booking.id,
            user_id,
            equipment_id,
            date,
            booking.start_time,
            booking.end_time,
        )
        return booking

    async def update_status(
        self, booking_id: str, status: str, reason: str = ""
    ) -> Booking:
        """Apply an admin status change.

        Confirming a booking re-runs conflict detection against the other
        confirmed bookings and the bounded, non-cancelled maintenance windows
        of the same equipment.
        """
        try:
            new_status = BookingStatus(status)
        except ValueError as exc:
            raise InvalidInputError("Invalid status") from exc

        booking = await self.booking_repo.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        if new_status == BookingStatus.CONFIRMED and booking.status != BookingStatus.CONFIRMED:
            await self._ensure_confirmable(booking)

        updated = await self.booking_repo.update_status(booking_id, new_status, reason)
        logger.info("Booking %s -> %s", booking_id, new_status)
        return updated

    async def _ensure_confirmable(self, booking: Booking) -> None:
        others = [
            b
            for b in await self.booking_repo.find_confirmed(booking.equipment_id, booking.date)
            if b.id != booking.id
        ]
        clashing = find_conflicts(booking.start, booking.end, others)
        if clashing:
            logger.warning(
                "Refusing to confirm booking %s: overlaps %s",
                booking.id,
                [b.id for b in clashing],
            )
            raise ConflictError("Time slot overlaps an already confirmed booking")

        windows = [
            w
            for w in await self.maintenance_repo.list_for_equipment(booking.equipment_id)
            if w.status != MaintenanceStatus.CANCELLED and w.is_bounded
        ]
        if is_conflict(booking.start, booking.end, windows):
            raise ConflictError("Time slot overlaps a maintenance window")

    async def list_bookings(self, status: str | None = None) -> list[Booking]:
        if status is not None:
            try:
                status = BookingStatus(status)
            except ValueError as exc:
                raise InvalidInputError("Invalid status") from exc
        return await self.booking_repo.list_filtered(status=status)

    async def list_confirmed(self) -> list[Booking]:
        return await self.booking_repo.find_confirmed()

    async def list_for_user(self, user_id: str) -> list[Booking]:
        return await self.booking_repo.list_filtered(user_id=user_id)
