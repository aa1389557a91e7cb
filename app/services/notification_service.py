"""Notification service: in-app records plus best-effort FCM push."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from firebase_admin import messaging
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.firebase import is_firebase_initialized
from app.models.notifications import notifications, push_tokens
from app.schemas.notifications import (
    NotificationListResponse,
    NotificationResponse,
    PushTokenRegister,
    PushTokenResponse,
)

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for managing user notifications."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def notify(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        link: str | None = None,
    ) -> NotificationResponse:
        """
        Store a notification for a user and push it to their devices.

        Args:
            user_id: Recipient user ID
            notification_type: appointment, prescription, lab_report, system or other
            title: Notification title
            message: Notification body
            link: Optional in-app link to the related resource

        Returns:
            Stored notification
        """
        stmt = (
            insert(notifications)
            .values(
                user_id=user_id,
                notification_type=notification_type,
                title=title,
                message=message,
                link=link,
            )
            .returning(notifications)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type,
        )

        await self._push(user_id, title, message, link)
        return NotificationResponse.model_validate(dict(row))

    async def _push(self, user_id: UUID, title: str, body: str, link: str | None) -> None:
        """Send an FCM multicast to the user's active tokens, if Firebase is up."""
        if not is_firebase_initialized():
            return

        result = await self.db.execute(
            select(push_tokens.c.fcm_token).where(
                and_(
                    push_tokens.c.user_id == user_id,
                    push_tokens.c.is_active.is_(True),
                )
            )
        )
        tokens = list(result.scalars().all())
        if not tokens:
            logger.debug("no_active_tokens_for_user", user_id=str(user_id))
            return

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            data={"link": link} if link else {},
            tokens=tokens,
        )
        try:
            response = messaging.send_each_for_multicast(message)
        except Exception as e:
            logger.warning("push_notification_failed", user_id=str(user_id), error=str(e))
            return

        logger.info(
            "push_notification_sent",
            user_id=str(user_id),
            success_count=response.success_count,
            failure_count=response.failure_count,
        )

    async def list_notifications(self, user_id: UUID, unread_only: bool = False) -> NotificationListResponse:
        """List a user's notifications, newest first."""
        conditions = [notifications.c.user_id == user_id]
        if unread_only:
            conditions.append(notifications.c.is_read.is_(False))

        rows = (
            await self.db.execute(
                select(notifications)
                .where(and_(*conditions))
                .order_by(notifications.c.created_at.desc())
            )
        ).mappings().all()

        unread = (
            await self.db.execute(
                select(func.count())
                .select_from(notifications)
                .where(
                    and_(
                        notifications.c.user_id == user_id,
                        notifications.c.is_read.is_(False),
                    )
                )
            )
        ).scalar() or 0

        return NotificationListResponse(
            total=len(rows),
            unread=unread,
            items=[NotificationResponse.model_validate(dict(row)) for row in rows],
        )

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> NotificationResponse:
        """Mark one of the user's notifications as read."""
        stmt = (
            update(notifications)
            .where(
                and_(
                    notifications.c.id == notification_id,
                    notifications.c.user_id == user_id,
                )
            )
            .values(is_read=True, read_at=datetime.now(UTC))
            .returning(notifications)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if not row:
            await self.db.rollback()
            raise NotFoundException("Notification not found")

        await self.db.commit()
        return NotificationResponse.model_validate(dict(row))

    async def register_token(self, user_id: UUID, data: PushTokenRegister) -> PushTokenResponse:
        """Register a device token, re-assigning it if it already exists."""
        stmt = (
            insert(push_tokens)
            .values(user_id=user_id, fcm_token=data.fcm_token, platform=data.platform)
            .returning(push_tokens)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            result = await self.db.execute(
                update(push_tokens)
                .where(push_tokens.c.fcm_token == data.fcm_token)
                .values(user_id=user_id, platform=data.platform, is_active=True)
                .returning(push_tokens)
            )
            row = result.mappings().one()
            await self.db.commit()

        logger.info("push_token_registered", user_id=str(user_id), platform=data.platform)
        return PushTokenResponse.model_validate(dict(row))
