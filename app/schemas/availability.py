"""Availability window schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

MIN_SLOT_DURATION = 5
MAX_SLOT_DURATION = 120

# 0=Sunday .. 6=Saturday, the storage convention for day_of_week
WEEKDAYS = {
    "SUNDAY": 0,
    "MONDAY": 1,
    "TUESDAY": 2,
    "WEDNESDAY": 3,
    "THURSDAY": 4,
    "FRIDAY": 5,
    "SATURDAY": 6,
}


class AvailabilityWindowCreate(BaseModel):
    """Schema for creating a recurring weekly availability window."""

    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, examples=["17:00"])
    slot_duration: int = Field(
        default=30,
        ge=MIN_SLOT_DURATION,
        le=MAX_SLOT_DURATION,
        description="Slot length in minutes",
    )
    is_active: bool = True

    @field_validator("day_of_week", mode="before")
    @classmethod
    def parse_weekday_name(cls, v: object) -> object:
        """Accept weekday names ("MONDAY") as well as numbers."""
        if isinstance(v, str) and not v.strip().isdigit():
            day = WEEKDAYS.get(v.strip().upper())
            if day is None:
                raise ValueError(f"Unknown weekday '{v}'")
            return day
        return v

    @model_validator(mode="after")
    def validate_time_range(self) -> "AvailabilityWindowCreate":
        """Start must come strictly before end."""
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityWindowUpdate(BaseModel):
    """Schema for toggling a window on or off."""

    is_active: bool


class AvailabilityWindowResponse(BaseModel):
    """Schema for availability window response."""

    id: UUID
    doctor_id: UUID
    day_of_week: int
    start_time: str
    end_time: str
    slot_duration: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AvailabilityWindowListResponse(BaseModel):
    """A doctor's windows ordered by weekday then start time."""

    doctor_id: UUID
    items: list[AvailabilityWindowResponse]
