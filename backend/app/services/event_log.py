"""
Parcel event log service.

Append-only audit trail of parcel status changes. Appends are flushed
but never committed here: the parcel ledger owns the unit of work so a
status write and its event land together.
"""

import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.models.parcel_event import ParcelEvent
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.enums import UserRole

logger = logging.getLogger(__name__)

PARCEL_CREATED_NOTE = "Parcel created"


async def append(
    db: AsyncSession,
    parcel_id: int,
    actor_id: int,
    actor_role: UserRole,
    status: ParcelStatus,
    notes: Optional[str] = None,
    location: Optional[str] = None,
    photo: Optional[str] = None
) -> ParcelEvent:
    """
    Append an event to a parcel's audit trail.

    Args:
        db: Database session (transaction managed by caller)
        parcel_id: Owning parcel
        actor_id: User who made the change
        actor_role: Role the actor acted in
        status: Status being recorded
        notes: Free-form context
        location: Where the change happened
        photo: Photo reference (e.g. proof of delivery)

    Returns:
        Created ParcelEvent (flushed, not committed)
    """
    event = ParcelEvent(
        parcel_id=parcel_id,
        actor_id=actor_id,
        actor_role=actor_role,
        status=status,
        notes=notes,
        location=location,
        photo=photo
    )

    db.add(event)
    await db.flush()

    logger.debug(
        "Parcel event appended",
        extra={"parcel_id": parcel_id, "status": status.value, "actor_id": actor_id}
    )
    return event


async def list_by_parcel(
    db: AsyncSession,
    parcel_id: int,
    newest_first: bool = True
) -> List[ParcelEvent]:
    """
    Retrieve a parcel's audit trail.

    Args:
        db: Database session
        parcel_id: Parcel to read events for
        newest_first: Display order when True, replay (creation) order when False

    Returns:
        List of ParcelEvent instances
    """
    query = select(ParcelEvent).where(ParcelEvent.parcel_id == parcel_id)

    if newest_first:
        query = query.order_by(ParcelEvent.created_at.desc(), ParcelEvent.id.desc())
    else:
        query = query.order_by(ParcelEvent.created_at.asc(), ParcelEvent.id.asc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def replay_status(db: AsyncSession, parcel_id: int) -> Optional[ParcelStatus]:
    """Status of the last event in creation order, or None for an empty trail."""
    events = await list_by_parcel(db, parcel_id, newest_first=False)
    if not events:
        return None
    return events[-1].status
