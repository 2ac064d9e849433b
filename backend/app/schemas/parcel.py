"""
Parcel Pydantic schemas.

Defines request and response models for the parcel ledger and event log.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.enums import PaymentMethod, UserRole

PHONE_PATTERN = r"^\+?[0-9]{7,19}$"


class ParcelCreate(BaseModel):
    """Schema for creating a new parcel."""
    sender_id: int = Field(..., ge=1, description="User sending the parcel")
    recipient_name: str = Field(..., min_length=1, max_length=255, description="Recipient full name")
    recipient_phone: str = Field(..., pattern=PHONE_PATTERN, description="Recipient phone, digits with optional leading +")
    weight: Decimal = Field(..., gt=0, max_digits=5, decimal_places=2, description="Weight in kilograms")
    payment_method: PaymentMethod = Field(..., description="How the parcel will be paid for")
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2, description="Defaults to the flat rate")
    distance: Optional[Decimal] = Field(None, ge=0, max_digits=6, decimal_places=2, description="Distance in kilometers")
    description: Optional[str] = Field(None, max_length=500, description="Parcel description")
    photos: List[str] = Field(default_factory=list, description="Uploaded photo references")
    pickup_partner_id: Optional[int] = Field(None, ge=1)
    dropoff_partner_id: Optional[int] = Field(None, ge=1)

    @field_validator("recipient_name", mode="before")
    @classmethod
    def strip_recipient_name(cls, value):
        # Whitespace-only names must fail min_length
        return value.strip() if isinstance(value, str) else value


class ParcelStatusUpdate(BaseModel):
    """Schema for a status transition request."""
    status: ParcelStatus
    actor_id: int = Field(..., ge=1)
    actor_role: UserRole
    notes: Optional[str] = Field(None, max_length=2000)
    driver_id: Optional[int] = Field(None, ge=1)
    location: Optional[str] = Field(None, max_length=255)
    photo: Optional[str] = Field(None, max_length=500, description="Proof photo reference")
    expected_version: Optional[int] = Field(None, ge=1, description="Reject if the parcel changed since this version")


class ParcelStatusUpdateResponse(BaseModel):
    """Schema for a successful status transition."""
    success: bool = True
    parcel_id: int
    status: ParcelStatus
    version: int


class ParcelReviewRequest(BaseModel):
    """Schema for post-delivery feedback."""
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=2000)


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    tracking_id: str
    qr_hash: str
    sender_id: int
    recipient_name: str
    recipient_phone: str
    pickup_partner_id: Optional[int]
    dropoff_partner_id: Optional[int]
    driver_id: Optional[int]
    status: ParcelStatus
    version: int
    weight: Decimal
    distance: Optional[Decimal]
    price: Decimal
    payment_method: PaymentMethod
    is_paid: bool
    description: Optional[str]
    photos: List[str]
    delivery_proof: Optional[str]
    rating: Optional[int]
    review: Optional[str]
    created_at: datetime
    delivered_at: Optional[datetime]

    class Config:
        from_attributes = True


class ParcelEventResponse(BaseModel):
    """Schema for an audit trail entry."""
    id: int
    parcel_id: int
    actor_id: int
    actor_role: UserRole
    status: ParcelStatus
    location: Optional[str]
    notes: Optional[str]
    photo: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ParcelTrackingResponse(BaseModel):
    """Schema for a tracking lookup: parcel plus events, newest first."""
    parcel: ParcelResponse
    events: List[ParcelEventResponse]
