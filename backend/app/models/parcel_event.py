"""
Parcel Event database model.

Append-only audit trail of parcel status changes.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text
from backend.app.db.session import Base
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.enums import UserRole


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParcelEvent(Base):
    """
    Parcel Event model.

    Immutable record of one status transition: who made it, in which role
    and with what context. NO updates or deletions allowed.
    """
    __tablename__ = "parcel_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Linkage
    parcel_id = Column(Integer, ForeignKey('parcels.id'), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    actor_role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )

    # Recorded state
    status = Column(
        Enum(ParcelStatus, name="parcel_status", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )

    # Context
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    photo = Column(String(500), nullable=True)

    # Timestamps (Immutable - no updated_at). Application-side for sub-second ordering.
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ParcelEvent(id={self.id}, parcel_id={self.parcel_id}, status='{self.status.value}')>"
