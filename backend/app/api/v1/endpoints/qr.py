"""
QR Code API Endpoints.

Serves the payload a client renders into a parcel's QR code and verifies
payloads read back by a scanner.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.domain.parcels.identifiers import build_qr_payload, verify_qr_payload
from backend.app.schemas.qr import QRPayloadResponse, QRVerifyRequest
from backend.app.schemas.parcel import ParcelResponse, ParcelEventResponse, ParcelTrackingResponse
from backend.app.services.parcel_ledger import ParcelLedger

router = APIRouter(prefix="/qr", tags=["QR Codes"])


@router.get("/{tracking_id}", response_model=QRPayloadResponse)
async def get_qr_payload(
    tracking_id: str = Path(..., min_length=1, max_length=64, description="Tracking ID")
):
    """Return the QR payload for a tracking ID."""
    return QRPayloadResponse(tracking_id=tracking_id, payload=build_qr_payload(tracking_id))


@router.post("/verify", response_model=ParcelTrackingResponse)
async def verify_qr(
    request: QRVerifyRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Verify a scanned QR payload and return the parcel it belongs to.

    Returns 422 for malformed or tampered payloads, 404 for unknown parcels.
    """
    tracking_id = verify_qr_payload(request.payload)
    parcel, events = await ParcelLedger.lookup_by_tracking_id(db, tracking_id)
    return ParcelTrackingResponse(
        parcel=ParcelResponse.model_validate(parcel),
        events=[ParcelEventResponse.model_validate(e) for e in events]
    )
