"""
Notification Database Model.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    PARCEL = "parcel"
    ORDER = "order"
    PAYMENT = "payment"
    SYSTEM = "system"


class Notification(Base):
    """
    In-App Notification.
    Stores messages for users.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Content
    type = Column(
        Enum(NotificationType, name="notification_type", values_callable=lambda obj: [e.value for e in obj]),
        default=NotificationType.SYSTEM,
        nullable=False
    )
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    reference_id = Column(Integer, nullable=True)  # parcel_id or transaction_id

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user={self.user_id}, title='{self.title}')>"
