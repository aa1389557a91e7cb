"""Doctor availability window endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundException
from app.dependencies import Cache, CurrentUser, DatabaseSession, require_roles
from app.schemas.availability import (
    AvailabilityWindowCreate,
    AvailabilityWindowListResponse,
    AvailabilityWindowResponse,
    AvailabilityWindowUpdate,
)
from app.services.availability_service import AvailabilityService
from app.services.doctor_service import DoctorService

router = APIRouter()


async def _own_doctor_id(db: DatabaseSession, user: dict) -> UUID:
    doctor = await DoctorService().get_doctor_by_user_id(db, user["id"])
    if not doctor:
        raise NotFoundException("Doctor profile not found")
    return doctor["id"]


# ============================================================================
# Signed-in doctor
# ============================================================================


@router.get(
    "/me/availability",
    response_model=AvailabilityWindowListResponse,
    summary="List my availability windows",
)
async def list_my_availability(
    db: DatabaseSession,
    cache: Cache,
    current_user: dict = Depends(require_roles("doctor")),
) -> AvailabilityWindowListResponse:
    """List the signed-in doctor's windows ordered by weekday and start time."""
    doctor_id = await _own_doctor_id(db, current_user)
    return await AvailabilityService(db, cache).list_windows(doctor_id)


@router.post(
    "/me/availability",
    response_model=AvailabilityWindowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an availability window",
)
async def create_my_availability(
    data: AvailabilityWindowCreate,
    db: DatabaseSession,
    cache: Cache,
    current_user: dict = Depends(require_roles("doctor")),
) -> AvailabilityWindowResponse:
    """
    Add a recurring weekly window for the signed-in doctor.

    - **day_of_week**: 0=Sunday .. 6=Saturday, or a weekday name
    - **start_time / end_time**: ``HH:MM``, start before end
    - **slot_duration**: minutes, 5 to 120
    """
    doctor_id = await _own_doctor_id(db, current_user)
    return await AvailabilityService(db, cache).create_window(doctor_id, data)


@router.patch(
    "/me/availability/{window_id}",
    response_model=AvailabilityWindowResponse,
    summary="Activate or deactivate one of my windows",
)
async def update_my_availability(
    window_id: UUID,
    data: AvailabilityWindowUpdate,
    db: DatabaseSession,
    cache: Cache,
    current_user: dict = Depends(require_roles("doctor")),
) -> AvailabilityWindowResponse:
    """Toggle one of the signed-in doctor's windows."""
    doctor_id = await _own_doctor_id(db, current_user)
    return await AvailabilityService(db, cache).set_window_active(window_id, doctor_id, data.is_active)


@router.delete(
    "/me/availability/{window_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one of my windows",
)
async def delete_my_availability(
    window_id: UUID,
    db: DatabaseSession,
    cache: Cache,
    current_user: dict = Depends(require_roles("doctor")),
) -> None:
    """Delete one of the signed-in doctor's windows."""
    doctor_id = await _own_doctor_id(db, current_user)
    await AvailabilityService(db, cache).delete_window(window_id, doctor_id)


# ============================================================================
# Any doctor (owner or admin for mutations)
# ============================================================================


@router.get(
    "/{doctor_id}/availability",
    response_model=AvailabilityWindowListResponse,
    summary="List a doctor's availability windows",
)
async def list_doctor_availability(
    doctor_id: UUID,
    db: DatabaseSession,
    cache: Cache,
) -> AvailabilityWindowListResponse:
    """List a doctor's windows ordered by weekday and start time."""
    return await AvailabilityService(db, cache).list_windows(doctor_id)


@router.post(
    "/{doctor_id}/availability",
    response_model=AvailabilityWindowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an availability window for a doctor",
)
async def create_doctor_availability(
    doctor_id: UUID,
    data: AvailabilityWindowCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
) -> AvailabilityWindowResponse:
    """Add a window for a doctor; owner doctor or admin only."""
    service = AvailabilityService(db, cache)
    await service.ensure_can_manage(doctor_id, current_user)
    return await service.create_window(doctor_id, data)


@router.patch(
    "/{doctor_id}/availability/{window_id}",
    response_model=AvailabilityWindowResponse,
    summary="Activate or deactivate a window",
)
async def update_doctor_availability(
    doctor_id: UUID,
    window_id: UUID,
    data: AvailabilityWindowUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
) -> AvailabilityWindowResponse:
    """Toggle a window. Inactive windows contribute no slots."""
    service = AvailabilityService(db, cache)
    await service.ensure_can_manage(doctor_id, current_user)
    return await service.set_window_active(window_id, doctor_id, data.is_active)


@router.delete(
    "/{doctor_id}/availability/{window_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an availability window",
)
async def delete_doctor_availability(
    doctor_id: UUID,
    window_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
) -> None:
    """Delete a window. Already booked appointments are kept."""
    service = AvailabilityService(db, cache)
    await service.ensure_can_manage(doctor_id, current_user)
    await service.delete_window(window_id, doctor_id)
