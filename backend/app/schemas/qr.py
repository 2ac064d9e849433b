"""
QR payload schemas.
"""

from pydantic import BaseModel, Field


class QRPayloadResponse(BaseModel):
    """String the client renders into a QR image."""
    tracking_id: str
    payload: str


class QRVerifyRequest(BaseModel):
    """Payload read back from a scanned QR code."""
    payload: str = Field(..., min_length=1, max_length=512)
