"""Patient profile table (owned by the profile service, read here)."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Table, Uuid, func

from app.models.base import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
