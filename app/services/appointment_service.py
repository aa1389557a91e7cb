"""Appointment service for business logic."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, insert, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    SlotConflictException,
)
from app.models.appointments import SLOT_UNIQUE_INDEX, appointments
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from app.services.doctor_service import DoctorService, PatientService
from app.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

# Appointments only ever leave "scheduled".
TERMINAL_STATUSES = {
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
}


def is_slot_conflict(exc: IntegrityError) -> bool:
    """Whether an IntegrityError was raised by the double-booking index."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return SLOT_UNIQUE_INDEX in message or (
        # SQLite reports the indexed columns rather than the index name
        "UNIQUE constraint failed: appointments.doctor_id" in message
    )


class AppointmentService:
    """Service for booking and managing appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.doctors = DoctorService()
        self.patients = PatientService()

    async def resolve_patient_id(self, current_user: dict, requested: UUID | None) -> UUID:
        """
        Work out whose appointment is being booked.

        Patients always book for their own profile; admins must name a patient.
        """
        if current_user["role"] == "patient":
            patient = await self.patients.get_patient_by_user_id(self.db, current_user["id"])
            if not patient:
                raise NotFoundException("Patient profile not found")
            return patient["id"]

        if current_user["role"] == "admin":
            if requested is None:
                raise BadRequestException("patient_id is required when booking as admin")
            return requested

        raise ForbiddenException("Only patients or admins can book appointments")

    async def find_live_appointment(
        self,
        doctor_id: UUID,
        data: AppointmentCreate,
    ) -> dict | None:
        """Non-cancelled appointment holding exactly this slot, if any."""
        stmt = select(appointments).where(
            and_(
                appointments.c.doctor_id == doctor_id,
                appointments.c.appointment_date == data.appointment_date,
                appointments.c.start_time == data.start_time,
                appointments.c.status != AppointmentStatus.CANCELLED.value,
            )
        )
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def book_appointment(
        self,
        patient_id: UUID,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book a slot for a patient.

        The slot is re-checked here even if the caller just listed it as
        free, and the partial unique index settles any race that slips past
        the check.

        Args:
            patient_id: Patient the appointment is for
            data: Booking request

        Returns:
            Created appointment

        Raises:
            NotFoundException: If the doctor or patient does not exist
            SlotConflictException: If the slot is already held
        """
        doctor = await self.doctors.get_doctor_by_id(self.db, data.doctor_id)
        if not doctor:
            raise NotFoundException("Doctor not found")
        if not await self.patients.get_patient_by_id(self.db, patient_id):
            raise NotFoundException("Patient not found")

        if await self.find_live_appointment(data.doctor_id, data):
            logger.info(
                "slot_conflict",
                doctor_id=str(data.doctor_id),
                date=data.appointment_date.isoformat(),
                start_time=data.start_time,
                stage="precheck",
            )
            raise SlotConflictException()

        stmt = (
            insert(appointments)
            .values(
                doctor_id=data.doctor_id,
                patient_id=patient_id,
                appointment_date=data.appointment_date,
                start_time=data.start_time,
                end_time=data.end_time,
                reason=data.reason,
                notes=data.notes,
                status=AppointmentStatus.SCHEDULED.value,
            )
            .returning(appointments)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if is_slot_conflict(e):
                logger.info(
                    "slot_conflict",
                    doctor_id=str(data.doctor_id),
                    date=data.appointment_date.isoformat(),
                    start_time=data.start_time,
                    stage="insert",
                )
                raise SlotConflictException() from e
            raise

        appointment = AppointmentResponse.model_validate(dict(row))
        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            doctor_id=str(appointment.doctor_id),
            patient_id=str(patient_id),
            date=appointment.appointment_date.isoformat(),
            start_time=appointment.start_time,
        )

        # Fire-and-forget: the booking stands even if the doctor is not told
        try:
            await NotificationService(self.db).notify(
                user_id=doctor["user_id"],
                notification_type="appointment",
                title="New Appointment Booked",
                message=(
                    f"A patient booked an appointment on "
                    f"{appointment.appointment_date.isoformat()} at {appointment.start_time}"
                ),
                link=f"/doctor/appointments/{appointment.id}",
            )
        except Exception as e:
            logger.warning(
                "failed_to_send_appointment_notification",
                appointment_id=str(appointment.id),
                error=str(e),
            )

        return appointment

    async def _get_row(self, appointment_id: UUID) -> dict:
        row = (
            await self.db.execute(select(appointments).where(appointments.c.id == appointment_id))
        ).mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    async def _participant_role(self, row: dict, current_user: dict) -> str | None:
        """Return "doctor"/"patient" if the caller takes part in the appointment."""
        if current_user["role"] == "doctor":
            doctor = await self.doctors.get_doctor_by_user_id(self.db, current_user["id"])
            if doctor and doctor["id"] == row["doctor_id"]:
                return "doctor"
        elif current_user["role"] == "patient":
            patient = await self.patients.get_patient_by_user_id(self.db, current_user["id"])
            if patient and patient["id"] == row["patient_id"]:
                return "patient"
        return None

    async def get_appointment(
        self,
        appointment_id: UUID,
        current_user: dict,
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the caller is neither a participant nor an admin
        """
        row = await self._get_row(appointment_id)
        if current_user["role"] != "admin" and not await self._participant_role(row, current_user):
            raise ForbiddenException("Access denied to this appointment")
        return AppointmentResponse.model_validate(row)

    async def list_appointments(
        self,
        current_user: dict,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """List appointments visible to the caller, newest date first."""
        conditions = []

        if current_user["role"] == "doctor":
            doctor = await self.doctors.get_doctor_by_user_id(self.db, current_user["id"])
            if not doctor:
                raise NotFoundException("Doctor profile not found")
            conditions.append(appointments.c.doctor_id == doctor["id"])
        elif current_user["role"] == "patient":
            patient = await self.patients.get_patient_by_user_id(self.db, current_user["id"])
            if not patient:
                raise NotFoundException("Patient profile not found")
            conditions.append(appointments.c.patient_id == patient["id"])
        elif current_user["role"] != "admin":
            raise ForbiddenException("Access denied to appointments")

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)
        if filters.doctor_id:
            conditions.append(appointments.c.doctor_id == filters.doctor_id)
        if filters.from_date:
            conditions.append(appointments.c.appointment_date >= filters.from_date)
        if filters.to_date:
            conditions.append(appointments.c.appointment_date <= filters.to_date)

        where = and_(*conditions) if conditions else true()

        count_stmt = select(func.count()).select_from(appointments).where(where)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(appointments)
            .where(where)
            .order_by(appointments.c.appointment_date.desc(), appointments.c.start_time.desc())
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[AppointmentResponse.model_validate(dict(row)) for row in rows],
        )

    async def update_appointment_status(
        self,
        appointment_id: UUID,
        current_user: dict,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move a scheduled appointment to completed, cancelled or no-show.

        Patients may only cancel. Cancelling frees the slot for rebooking.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the caller may not make this change
            BadRequestException: If the transition is not allowed
        """
        row = await self._get_row(appointment_id)

        acting_as = "admin" if current_user["role"] == "admin" else await self._participant_role(
            row, current_user
        )
        if acting_as is None:
            raise ForbiddenException("Access denied to this appointment")
        if acting_as == "patient" and data.status != AppointmentStatus.CANCELLED:
            raise ForbiddenException("Patients can only cancel appointments")

        if row["status"] != AppointmentStatus.SCHEDULED.value:
            raise BadRequestException(f"Appointment is already {row['status']}")
        if data.status not in TERMINAL_STATUSES:
            raise BadRequestException(f"Cannot change status to {data.status.value}")

        now = datetime.now(UTC)
        update_values: dict = {"status": data.status.value, "updated_at": now}
        if data.notes:
            update_values["notes"] = data.notes
        if data.status == AppointmentStatus.CANCELLED:
            update_values["cancelled_at"] = now

        # Re-checked here: the row may have changed since it was read
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == AppointmentStatus.SCHEDULED.value,
                )
            )
            .values(**update_values)
            .returning(appointments)
        )
        try:
            result = await self.db.execute(stmt)
            updated = result.mappings().first()
        except IntegrityError as e:
            await self.db.rollback()
            if is_slot_conflict(e):
                raise SlotConflictException() from e
            raise

        if updated is None:
            await self.db.rollback()
            current = await self._get_row(appointment_id)
            logger.info(
                "appointment_status_change_lost",
                appointment_id=str(appointment_id),
                requested_status=data.status.value,
                current_status=current["status"],
            )
            raise BadRequestException(f"Appointment is already {current['status']}")
        await self.db.commit()

        appointment = AppointmentResponse.model_validate(dict(updated))
        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=row["status"],
            new_status=appointment.status.value,
            changed_by=acting_as,
        )

        await self._notify_status_change(appointment, acting_as)
        return appointment

    async def _notify_status_change(self, appointment: AppointmentResponse, acting_as: str) -> None:
        """Tell the other party about completion or cancellation."""
        if appointment.status == AppointmentStatus.COMPLETED:
            recipient = "patient"
            title = "Appointment Completed"
            message = f"Your appointment on {appointment.appointment_date.isoformat()} has been completed"
        elif appointment.status == AppointmentStatus.CANCELLED:
            recipient = "patient" if acting_as == "doctor" else "doctor"
            title = "Appointment Cancelled"
            message = (
                f"The appointment on {appointment.appointment_date.isoformat()} "
                f"at {appointment.start_time} was cancelled"
            )
        else:
            return

        try:
            if recipient == "patient":
                profile = await self.patients.get_patient_by_id(self.db, appointment.patient_id)
                link = f"/patient/appointments/{appointment.id}"
            else:
                profile = await self.doctors.get_doctor_by_id(self.db, appointment.doctor_id)
                link = f"/doctor/appointments/{appointment.id}"
            if not profile:
                return

            await NotificationService(self.db).notify(
                user_id=profile["user_id"],
                notification_type="appointment",
                title=title,
                message=message,
                link=link,
            )
        except Exception as e:
            logger.warning(
                "failed_to_send_status_notification",
                appointment_id=str(appointment.id),
                error=str(e),
            )

    async def delete_appointment(self, appointment_id: UUID) -> None:
        """
        Permanently delete an appointment (admin override).

        Raises:
            NotFoundException: If appointment not found
        """
        await self._get_row(appointment_id)

        await self.db.execute(delete(appointments).where(appointments.c.id == appointment_id))
        await self.db.commit()

        logger.info("appointment_deleted", appointment_id=str(appointment_id))
