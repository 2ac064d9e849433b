"""
Notification API Endpoints.

Read side of the in-app inbox. Entries are written by the parcel and
wallet ledgers in the same commit as the change they describe.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from backend.app.core.config import settings
from backend.app.core.exceptions import NotFoundError
from backend.app.db.session import get_db
from backend.app.services.notification_service import NotificationService
from backend.app.schemas.notification import NotificationResponse, NotificationReadResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/{user_id}", response_model=List[NotificationResponse])
async def list_notifications(
    user_id: int = Path(..., description="User ID"),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=settings.notification_page_max),
    db: AsyncSession = Depends(get_db)
):
    """List a user's notifications, newest first."""
    notifications = await NotificationService.list_for_user(db, user_id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.patch("/{notification_id}/read", response_model=NotificationReadResponse)
async def mark_notification_read(
    notification_id: int = Path(..., description="Notification ID"),
    db: AsyncSession = Depends(get_db)
):
    """Mark a specific notification as read."""
    if not await NotificationService.mark_read(db, notification_id):
        raise NotFoundError("Notification", notification_id)

    await db.commit()
    return NotificationReadResponse(notification_id=notification_id)
