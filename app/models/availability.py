"""Doctor availability windows using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Uuid,
    func,
    text,
)

from app.models.base import metadata

# Recurring weekly windows; day_of_week 0=Sunday .. 6=Saturday,
# start/end stored as zero-padded 24h "HH:MM" strings.
doctor_availability = Table(
    "doctor_availability",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("day_of_week", Integer, nullable=False),
    Column("start_time", String(5), nullable=False),
    Column("end_time", String(5), nullable=False),
    Column("slot_duration", Integer, nullable=False, server_default=text("30")),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    CheckConstraint("day_of_week BETWEEN 0 AND 6", name="doctor_availability_day_check"),
    CheckConstraint("slot_duration BETWEEN 5 AND 120", name="doctor_availability_duration_check"),
    CheckConstraint("start_time < end_time", name="doctor_availability_range_check"),
    Index("idx_doctor_availability_doctor_day", "doctor_id", "day_of_week"),
)
