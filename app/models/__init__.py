"""Database models."""

from app.models.appointments import appointments
from app.models.availability import doctor_availability
from app.models.base import metadata
from app.models.doctors import doctors
from app.models.notifications import notifications, push_tokens
from app.models.patients import patients
from app.models.users import users

__all__ = [
    "appointments",
    "doctor_availability",
    "doctors",
    "metadata",
    "notifications",
    "patients",
    "push_tokens",
    "users",
]
