"""
Notification Service.

Handles creation and state management of in-app notifications.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc
from typing import Optional, List

from backend.app.models.notification import Notification, NotificationType


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        body: str,
        type: NotificationType = NotificationType.SYSTEM,
        reference_id: Optional[int] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            reference_id=reference_id
        )
        db.add(notif)
        await db.flush()  # Caller commits as part of its unit of work
        return notif

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)

        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712

        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id
        ).values(
            is_read=True
        )
        result = await db.execute(stmt)
        return result.rowcount > 0
