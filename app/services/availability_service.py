"""Availability window management."""

from uuid import UUID

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.redis_client import CacheManager
from app.models.availability import doctor_availability
from app.schemas.availability import (
    AvailabilityWindowCreate,
    AvailabilityWindowListResponse,
    AvailabilityWindowResponse,
)
from app.services.doctor_service import DoctorService

logger = structlog.get_logger(__name__)


class AvailabilityService:
    """CRUD over a doctor's recurring weekly windows."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache."""
        self.db = db
        self.cache = cache_manager

    @staticmethod
    def _get_cache_key(doctor_id: UUID) -> str:
        return f"availability:{doctor_id}"

    def _invalidate(self, doctor_id: UUID) -> None:
        if self.cache:
            self.cache.delete(self._get_cache_key(doctor_id))

    async def _require_doctor(self, doctor_id: UUID) -> dict:
        doctor = await DoctorService().get_doctor_by_id(self.db, doctor_id)
        if not doctor:
            raise NotFoundException("Doctor not found")
        return doctor

    async def ensure_can_manage(self, doctor_id: UUID, current_user: dict) -> None:
        """
        Only the owning doctor or an admin may change a doctor's windows.

        Raises:
            NotFoundException: If the doctor does not exist
            ForbiddenException: If the caller is neither owner nor admin
        """
        doctor = await self._require_doctor(doctor_id)
        if current_user["role"] == "admin":
            return
        if current_user["role"] == "doctor" and doctor["user_id"] == current_user["id"]:
            return
        raise ForbiddenException("You can only manage your own availability")

    async def list_windows(self, doctor_id: UUID) -> AvailabilityWindowListResponse:
        """All windows of a doctor, ordered by weekday then start time."""
        if self.cache:
            cached = self.cache.get_json(self._get_cache_key(doctor_id))
            if cached is not None:
                return AvailabilityWindowListResponse.model_validate(cached)

        stmt = (
            select(doctor_availability)
            .where(doctor_availability.c.doctor_id == doctor_id)
            .order_by(doctor_availability.c.day_of_week, doctor_availability.c.start_time)
        )
        result = await self.db.execute(stmt)
        listing = AvailabilityWindowListResponse(
            doctor_id=doctor_id,
            items=[
                AvailabilityWindowResponse.model_validate(dict(row))
                for row in result.mappings().all()
            ],
        )

        if self.cache:
            self.cache.set_json(
                self._get_cache_key(doctor_id),
                listing.model_dump(mode="json"),
                ttl=settings.availability_cache_ttl,
            )
        return listing

    async def get_window(self, window_id: UUID, doctor_id: UUID) -> dict:
        """Get a window that belongs to ``doctor_id``."""
        stmt = select(doctor_availability).where(
            doctor_availability.c.id == window_id,
            doctor_availability.c.doctor_id == doctor_id,
        )
        row = (await self.db.execute(stmt)).mappings().first()
        if not row:
            raise NotFoundException("Availability window not found")
        return dict(row)

    async def create_window(
        self,
        doctor_id: UUID,
        data: AvailabilityWindowCreate,
    ) -> AvailabilityWindowResponse:
        """Create a window; the time range was validated by the schema."""
        await self._require_doctor(doctor_id)

        stmt = (
            insert(doctor_availability)
            .values(
                doctor_id=doctor_id,
                day_of_week=data.day_of_week,
                start_time=data.start_time,
                end_time=data.end_time,
                slot_duration=data.slot_duration,
                is_active=data.is_active,
            )
            .returning(doctor_availability)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one()
        await self.db.commit()
        self._invalidate(doctor_id)

        logger.info(
            "availability_window_created",
            doctor_id=str(doctor_id),
            window_id=str(row["id"]),
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
        )
        return AvailabilityWindowResponse.model_validate(dict(row))

    async def set_window_active(
        self,
        window_id: UUID,
        doctor_id: UUID,
        is_active: bool,
    ) -> AvailabilityWindowResponse:
        """Toggle a window; existing appointments are left untouched."""
        await self.get_window(window_id, doctor_id)

        stmt = (
            update(doctor_availability)
            .where(doctor_availability.c.id == window_id)
            .values(is_active=is_active)
            .returning(doctor_availability)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one()
        await self.db.commit()
        self._invalidate(doctor_id)

        logger.info(
            "availability_window_toggled",
            doctor_id=str(doctor_id),
            window_id=str(window_id),
            is_active=is_active,
        )
        return AvailabilityWindowResponse.model_validate(dict(row))

    async def delete_window(self, window_id: UUID, doctor_id: UUID) -> None:
        """Delete a window; existing appointments are left untouched."""
        await self.get_window(window_id, doctor_id)

        await self.db.execute(
            delete(doctor_availability).where(doctor_availability.c.id == window_id)
        )
        await self.db.commit()
        self._invalidate(doctor_id)

        logger.info("availability_window_deleted", doctor_id=str(doctor_id), window_id=str(window_id))
