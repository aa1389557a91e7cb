"""Doctor and patient profile lookups."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.doctors import doctors
from app.models.patients import patients


class DoctorService:
    """Read access to doctor profiles."""

    async def get_doctor_by_id(self, db: AsyncSession, doctor_id: UUID) -> dict | None:
        """Get doctor by ID."""
        result = await db.execute(select(doctors).where(doctors.c.id == doctor_id))
        doctor = result.mappings().first()
        return dict(doctor) if doctor else None

    async def get_doctor_by_user_id(self, db: AsyncSession, user_id: UUID) -> dict | None:
        """Get doctor by user ID."""
        result = await db.execute(select(doctors).where(doctors.c.user_id == user_id))
        doctor = result.mappings().first()
        return dict(doctor) if doctor else None


class PatientService:
    """Read access to patient profiles."""

    async def get_patient_by_id(self, db: AsyncSession, patient_id: UUID) -> dict | None:
        """Get patient by ID."""
        result = await db.execute(select(patients).where(patients.c.id == patient_id))
        patient = result.mappings().first()
        return dict(patient) if patient else None

    async def get_patient_by_user_id(self, db: AsyncSession, user_id: UUID) -> dict | None:
        """Get patient by user ID."""
        result = await db.execute(select(patients).where(patients.c.user_id == user_id))
        patient = result.mappings().first()
        return dict(patient) if patient else None
