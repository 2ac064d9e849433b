"""
Parcel Lifecycle API Endpoints.

Create parcels, advance their status and read them back by tracking ID,
sender or driver.
"""

from typing import List
from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.schemas.parcel import (
    ParcelCreate, ParcelStatusUpdate, ParcelStatusUpdateResponse,
    ParcelReviewRequest, ParcelResponse, ParcelEventResponse, ParcelTrackingResponse
)
from backend.app.services.parcel_ledger import ParcelLedger

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new parcel.

    Mints the tracking ID and QR hash, stores the parcel as pending and
    records the "Parcel created" event.
    """
    parcel = await ParcelLedger.create_parcel(db, parcel_data)
    return ParcelResponse.model_validate(parcel)


@router.get("/tracking/{tracking_id}", response_model=ParcelTrackingResponse)
async def track_parcel(
    tracking_id: str = Path(..., min_length=1, max_length=64, description="Tracking ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get a parcel and its event history (newest first) by tracking ID."""
    parcel, events = await ParcelLedger.lookup_by_tracking_id(db, tracking_id)
    return ParcelTrackingResponse(
        parcel=ParcelResponse.model_validate(parcel),
        events=[ParcelEventResponse.model_validate(e) for e in events]
    )


@router.get("/sender/{sender_id}", response_model=List[ParcelResponse])
async def list_sender_parcels(
    sender_id: int = Path(..., description="Sender user ID"),
    db: AsyncSession = Depends(get_db)
):
    """List parcels sent by a user, newest first."""
    parcels = await ParcelLedger.list_by_sender(db, sender_id)
    return [ParcelResponse.model_validate(p) for p in parcels]


@router.get("/driver/{driver_id}", response_model=List[ParcelResponse])
async def list_driver_parcels(
    driver_id: int = Path(..., description="Driver user ID"),
    db: AsyncSession = Depends(get_db)
):
    """List parcels assigned to a driver, newest first."""
    parcels = await ParcelLedger.list_by_driver(db, driver_id)
    return [ParcelResponse.model_validate(p) for p in parcels]


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get details of a specific parcel."""
    parcel = await ParcelLedger.get_parcel(db, parcel_id)
    return ParcelResponse.model_validate(parcel)


@router.patch("/{parcel_id}/status", response_model=ParcelStatusUpdateResponse)
async def update_parcel_status(
    parcel_id: int = Path(..., description="Parcel ID"),
    update_data: ParcelStatusUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """
    Advance a parcel's status.

    Returns 409 if the transition is not allowed or the parcel changed
    concurrently (send ``expected_version`` to guard against stale reads).
    """
    parcel = await ParcelLedger.update_status(
        db,
        parcel_id=parcel_id,
        new_status=update_data.status,
        actor_id=update_data.actor_id,
        actor_role=update_data.actor_role,
        notes=update_data.notes,
        driver_id=update_data.driver_id,
        location=update_data.location,
        photo=update_data.photo,
        expected_version=update_data.expected_version
    )
    return ParcelStatusUpdateResponse(
        parcel_id=parcel.id,
        status=parcel.status,
        version=parcel.version
    )


@router.post("/{parcel_id}/review", response_model=ParcelResponse)
async def review_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    review_data: ParcelReviewRequest = ...,
    db: AsyncSession = Depends(get_db)
):
    """Rate a delivered parcel (once)."""
    parcel = await ParcelLedger.submit_review(db, parcel_id, review_data.rating, review_data.review)
    return ParcelResponse.model_validate(parcel)
