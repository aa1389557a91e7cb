"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.exceptions import BadRequestException
from app.dependencies import CurrentUser, DatabaseSession, require_roles
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AvailableSlotsResponse,
)
from app.services.appointment_service import AppointmentService
from app.services.slot_service import SlotService

router = APIRouter()


def _parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequestException(f"Invalid {name} '{value}', expected YYYY-MM-DD")


@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    summary="List free slots for a doctor on a date",
)
async def get_available_slots(
    current_user: CurrentUser,
    db: DatabaseSession,
    doctor_id: UUID = Query(...),
    date_str: str = Query(..., alias="date", description="Calendar date, YYYY-MM-DD"),
) -> AvailableSlotsResponse:
    """
    Free slot start times for a doctor on one date.

    Slots come from the doctor's active weekly windows for that weekday,
    minus the start times of non-cancelled appointments. A doctor with no
    windows that day gets an empty list.
    """
    on_date = _parse_date(date_str, "date")
    slots = await SlotService(db).get_available_slots(doctor_id, on_date)
    return AvailableSlotsResponse(doctor_id=doctor_id, date=on_date, slots=slots)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    responses={409: {"description": "Slot already booked"}},
)
async def create_appointment(
    data: AppointmentCreate,
    db: DatabaseSession,
    current_user: dict = Depends(require_roles("patient", "admin")),
) -> AppointmentResponse:
    """
    Book a slot.

    Patients book for themselves; admins book on behalf of ``patient_id``.
    Returns 409 if the slot is already taken.
    """
    service = AppointmentService(db)
    patient_id = await service.resolve_patient_id(current_user, data.patient_id)
    return await service.book_appointment(patient_id, data)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    current_user: CurrentUser,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    doctor_id: UUID | None = Query(None),
    from_date: str | None = Query(None),
    to_date: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments visible to the caller.

    Doctors see their own schedule, patients their own bookings, admins everything.
    """
    filters = AppointmentFilters(
        status=status_filter,
        doctor_id=doctor_id,
        from_date=_parse_date(from_date, "from_date") if from_date else None,
        to_date=_parse_date(to_date, "to_date") if to_date else None,
        page=page,
        page_size=page_size,
    )
    return await AppointmentService(db).list_appointments(current_user, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    return await AppointmentService(db).get_appointment(appointment_id, current_user)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Complete, cancel or mark a scheduled appointment as no-show.

    Cancelling frees the slot for rebooking.
    """
    service = AppointmentService(db)
    return await service.update_appointment_status(appointment_id, current_user, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete appointment (admin)",
)
async def delete_appointment(
    appointment_id: UUID,
    db: DatabaseSession,
    current_user: dict = Depends(require_roles("admin")),
) -> None:
    """Permanently delete an appointment."""
    await AppointmentService(db).delete_appointment(appointment_id)
