"""
Notification Schemas.

In-app inbox entries created by the parcel and wallet ledgers.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from backend.app.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for an inbox entry."""
    id: int
    user_id: int
    type: NotificationType
    title: str
    body: str
    reference_id: Optional[int]  # parcel_id or transaction_id, see type
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationReadResponse(BaseModel):
    success: bool = True
    notification_id: int
