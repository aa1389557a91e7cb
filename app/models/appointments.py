"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from app.models.base import metadata

# Name of the partial unique index guarding against double-booking.
SLOT_UNIQUE_INDEX = "uq_appointments_doctor_slot"

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Slot (naive local wall-clock)
    Column("appointment_date", Date, nullable=False),
    Column("start_time", String(5), nullable=False),
    Column("end_time", String(5), nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default=text("'scheduled'")),
    Column("reason", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    # At most one live appointment per (doctor, date, start); cancelled rows
    # fall out of the index so the slot can be rebooked.
    Index(
        SLOT_UNIQUE_INDEX,
        "doctor_id",
        "appointment_date",
        "start_time",
        unique=True,
        postgresql_where=text("status <> 'cancelled'"),
        sqlite_where=text("status <> 'cancelled'"),
    ),
    Index("idx_appointments_doctor_date", "doctor_id", "appointment_date"),
)
