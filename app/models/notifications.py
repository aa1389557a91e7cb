"""In-app notifications and push token tables."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
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

notifications = Table(
    "notifications",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("notification_type", String(50), nullable=False),
    Column("title", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("link", Text, nullable=True),
    Column("is_read", Boolean, nullable=False, server_default=text("false")),
    Column("read_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "notification_type IN ('appointment', 'prescription', 'lab_report', 'system', 'other')",
        name="notifications_type_check",
    ),
    Index("idx_notifications_user_read", "user_id", "is_read"),
)

push_tokens = Table(
    "push_tokens",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("fcm_token", Text, nullable=False, unique=True),
    Column("platform", String(20), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("platform IN ('android', 'ios', 'web')", name="push_tokens_platform_check"),
    Index("idx_push_tokens_user_active", "user_id", "is_active"),
)
