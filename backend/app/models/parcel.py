"""
Parcel database model.

Parcels are created by senders and advanced through the delivery
lifecycle by drivers, partners and hub personnel.
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, Boolean, Text, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.enums import PaymentMethod


class Parcel(Base):
    """
    Parcel model.

    ``tracking_id`` and ``qr_hash`` are minted once at creation and never change.
    ``status`` is only written by the parcel ledger, together with an event row.
    ``version`` is bumped on every status write (optimistic concurrency).
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    tracking_id = Column(String(64), unique=True, nullable=False, index=True)
    qr_hash = Column(String(64), unique=True, nullable=False, index=True)

    # Parties
    sender_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    recipient_name = Column(String(255), nullable=False)
    recipient_phone = Column(String(20), nullable=False)
    pickup_partner_id = Column(Integer, nullable=True, index=True)
    dropoff_partner_id = Column(Integer, nullable=True, index=True)
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Lifecycle
    status = Column(
        Enum(ParcelStatus, name="parcel_status", values_callable=lambda obj: [e.value for e in obj]),
        default=ParcelStatus.PENDING,
        nullable=False,
        index=True
    )
    version = Column(Integer, nullable=False)

    # Physical properties
    weight = Column(Numeric(5, 2), nullable=False)  # kg
    distance = Column(Numeric(6, 2), nullable=True)  # km, supplied by caller

    # Payment
    price = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )
    is_paid = Column(Boolean, default=False, nullable=False)

    # Content and proof
    description = Column(String(500), nullable=True)
    photos = Column(JSON, nullable=False, default=list)
    delivery_proof = Column(String(500), nullable=True)

    # Post-delivery feedback
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking_id='{self.tracking_id}', status='{self.status.value}')>"
