"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.schemas.availability import TIME_OF_DAY_PATTERN


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentCreate(BaseModel):
    """Schema for booking a slot."""

    doctor_id: UUID
    patient_id: UUID | None = Field(
        None,
        description="Required when an admin books on behalf of a patient",
    )
    appointment_date: date
    start_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["09:30"])
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_end_time(self) -> "AppointmentCreate":
        """Validate end time is after start time."""
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    doctor_id: UUID
    patient_id: UUID
    appointment_date: date
    start_time: str
    end_time: str
    status: AppointmentStatus
    reason: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    doctor_id: UUID | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class AvailableSlotsResponse(BaseModel):
    """Free slot start times for one doctor on one date."""

    doctor_id: UUID
    date: date
    slots: list[datetime]
