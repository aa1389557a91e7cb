"""Notification schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

NotificationType = Literal["appointment", "prescription", "lab_report", "system", "other"]


class PushTokenRegister(BaseModel):
    """Schema for registering FCM token."""

    fcm_token: str = Field(..., min_length=1, description="Firebase Cloud Messaging token")
    platform: str = Field(
        ...,
        description="Platform type",
        pattern="^(android|ios|web)$",
    )


class PushTokenResponse(BaseModel):
    """Schema for push token response."""

    id: UUID
    user_id: UUID
    fcm_token: str
    platform: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    """Schema for a stored in-app notification."""

    id: UUID
    user_id: UUID
    notification_type: NotificationType
    title: str
    message: str
    link: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Schema for notification list."""

    total: int
    unread: int
    items: list[NotificationResponse]
