"""Notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.notifications import (
    NotificationListResponse,
    NotificationResponse,
    PushTokenRegister,
    PushTokenResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get(
    "/",
    response_model=NotificationListResponse,
    summary="List my notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    db: DatabaseSession,
    unread_only: bool = Query(False),
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    return await NotificationService(db).list_notifications(current_user["id"], unread_only)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
)
async def mark_notification_read(
    notification_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> NotificationResponse:
    """Mark one of the caller's notifications as read."""
    return await NotificationService(db).mark_read(notification_id, current_user["id"])


@router.post(
    "/register-token",
    response_model=PushTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a device for push notifications",
)
async def register_push_token(
    data: PushTokenRegister,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> PushTokenResponse:
    """Register (or re-assign) an FCM token for the caller."""
    return await NotificationService(db).register_token(current_user["id"], data)
