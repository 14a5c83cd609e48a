"""Notification service: advisory, best-effort messages to users."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundException
from src.models.enums import NotificationPriority, NotificationType
from src.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        recipient_id: uuid.UUID,
        type: NotificationType,
        title: str,
        message: str,
        related_id: uuid.UUID | None = None,
        related_model: str | None = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> Notification | None:
        """Write a notification inside its own savepoint.

        A failed write rolls back only the savepoint and returns None; the
        caller's mutation still commits.
        """
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            related_model=related_model,
            priority=priority,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(notification)
                await self.db.flush()
        except SQLAlchemyError:
            logger.warning(
                "Notification %s for user %s could not be written",
                type.value, recipient_id,
                exc_info=True,
            )
            return None
        return notification

    async def list_notifications(
        self,
        recipient_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Notification], int, int]:
        """Return (items, total, unread_count) for the recipient, newest first."""
        base = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            base = base.where(Notification.is_read.is_(False))

        total_result = await self.db.execute(
            select(func.count()).select_from(base.subquery())
        )
        total = total_result.scalar() or 0

        unread_result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        unread_count = unread_result.scalar() or 0

        result = await self.db.execute(
            base.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total, unread_count

    async def _get_owned(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundException(f"Notification {notification_id} not found")
        return notification

    async def mark_read(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> Notification:
        notification = await self._get_owned(notification_id, recipient_id)
        notification.is_read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, recipient_id: uuid.UUID) -> int:
        """Mark every unread notification of the recipient as read; returns the count."""
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount

    async def delete(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> None:
        notification = await self._get_owned(notification_id, recipient_id)
        await self.db.delete(notification)
        await self.db.flush()
