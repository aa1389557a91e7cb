"""Slot generation: recurring availability windows to free slot start times."""

from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime, time
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointments import appointments
from app.models.availability import doctor_availability
from app.schemas.appointments import AppointmentStatus

logger = structlog.get_logger(__name__)

MINUTES_PER_DAY = 24 * 60


def to_minutes(time_of_day: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight."""
    hours, minutes = time_of_day.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(minutes: int) -> str:
    """Convert minutes since midnight back to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(on_date: date) -> int:
    """Weekday number in storage convention (0=Sunday .. 6=Saturday)."""
    return on_date.isoweekday() % 7


def slot_start(on_date: date, time_of_day: str) -> datetime:
    """Combine a date and an ``HH:MM`` string into a naive local datetime."""
    minutes = to_minutes(time_of_day)
    return datetime.combine(on_date, time(minutes // 60, minutes % 60))


def iter_window_slots(start_time: str, end_time: str, slot_duration: int) -> Iterator[str]:
    """
    Yield every slot boundary of a window as ``HH:MM``.

    Stops strictly before ``end_time``: 09:00-17:00 with 30 minute slots
    yields 09:00 .. 16:30.
    """
    if slot_duration <= 0:
        raise ValueError("slot_duration must be positive")

    current = to_minutes(start_time)
    end = min(to_minutes(end_time), MINUTES_PER_DAY)
    while current < end:
        yield from_minutes(current)
        current += slot_duration


def compute_available_slots(
    windows: Iterable[Mapping[str, Any]],
    booked: set[datetime],
    on_date: date,
) -> list[datetime]:
    """
    Free slot start times for ``on_date``.

    Args:
        windows: Active windows for the date's weekday, each with
            ``start_time``, ``end_time`` and ``slot_duration``
        booked: Start datetimes of live appointments on that date
        on_date: Calendar date the slots are generated for

    Returns:
        Chronologically ordered, de-duplicated slot start datetimes
    """
    free: set[datetime] = set()
    for window in windows:
        for boundary in iter_window_slots(
            window["start_time"], window["end_time"], window["slot_duration"]
        ):
            candidate = slot_start(on_date, boundary)
            if candidate not in booked:
                free.add(candidate)

    return sorted(free)


class SlotService:
    """Service computing bookable slots for a doctor."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_active_windows(self, doctor_id: UUID, on_date: date) -> list[dict]:
        """Active windows whose weekday matches ``on_date``."""
        stmt = (
            select(doctor_availability)
            .where(
                and_(
                    doctor_availability.c.doctor_id == doctor_id,
                    doctor_availability.c.day_of_week == day_of_week(on_date),
                    doctor_availability.c.is_active.is_(True),
                )
            )
            .order_by(doctor_availability.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def get_booked_starts(self, doctor_id: UUID, on_date: date) -> set[datetime]:
        """Start datetimes of non-cancelled appointments on ``on_date``."""
        stmt = select(appointments.c.start_time).where(
            and_(
                appointments.c.doctor_id == doctor_id,
                appointments.c.appointment_date == on_date,
                appointments.c.status != AppointmentStatus.CANCELLED.value,
            )
        )
        result = await self.db.execute(stmt)
        return {slot_start(on_date, start_time) for start_time in result.scalars().all()}

    async def get_available_slots(self, doctor_id: UUID, on_date: date) -> list[datetime]:
        """
        Compute the free slots of a doctor on a date.

        An unknown doctor or a weekday without active windows yields an
        empty list. Past dates are not rejected here.
        """
        windows = await self.get_active_windows(doctor_id, on_date)
        if not windows:
            return []

        booked = await self.get_booked_starts(doctor_id, on_date)
        slots = compute_available_slots(windows, booked, on_date)

        logger.debug(
            "available_slots_computed",
            doctor_id=str(doctor_id),
            date=on_date.isoformat(),
            windows=len(windows),
            booked=len(booked),
            free=len(slots),
        )
        return slots
