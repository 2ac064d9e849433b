"""
Parcel Ledger Service (Domain Logic).

Owns parcel records and their status lifecycle. Every status write and
its audit event are flushed in one session and committed once, so a
reader never sees one without the other.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

import pydantic
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    ConcurrencyConflictError,
    StorageError,
    jsonable_errors,
)
from backend.app.domain.parcels import identifiers
from backend.app.domain.parcels.state_machine import INITIAL_STATUS, ensure_transition
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_event import ParcelEvent
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.notification import NotificationType
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.schemas.parcel import ParcelCreate
from backend.app.services import event_log
from backend.app.services.notification_service import NotificationService
from backend.app.services.notification_dispatcher import notification_dispatcher

logger = logging.getLogger(__name__)


def _coerce(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={"field": field, "allowed": [e.value for e in enum_cls]}
        )


class ParcelLedger:

    @staticmethod
    def validate_request(request: Union[ParcelCreate, Mapping[str, Any]]) -> ParcelCreate:
        """
        Normalize a create request into a ParcelCreate.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        if isinstance(request, ParcelCreate):
            return request
        try:
            return ParcelCreate.model_validate(dict(request))
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid parcel request",
                details={"errors": jsonable_errors(exc.errors())}
            )

    @staticmethod
    async def create_parcel(
        db: AsyncSession,
        request: Union[ParcelCreate, Mapping[str, Any]]
    ) -> Parcel:
        """
        Create a parcel in the initial state.

        Flow:
        1. Validate request
        2. Verify sender exists
        3. Mint tracking ID + verification hash
        4. Insert parcel (pending, unpaid) and the "created" event
        5. Commit once

        Returns:
            Created Parcel

        Raises:
            ValidationError: Missing or malformed fields
            NotFoundError: Sender does not exist
            StorageError: Persistence failure (nothing is written)
        """
        data = ParcelLedger.validate_request(request)

        sender = await db.get(User, data.sender_id)
        if not sender:
            raise NotFoundError("User", data.sender_id)

        tracking_id = identifiers.generate_tracking_id()

        parcel = Parcel(
            tracking_id=tracking_id,
            qr_hash=identifiers.derive_verification_hash(tracking_id),
            sender_id=data.sender_id,
            recipient_name=data.recipient_name,
            recipient_phone=data.recipient_phone,
            pickup_partner_id=data.pickup_partner_id,
            dropoff_partner_id=data.dropoff_partner_id,
            status=INITIAL_STATUS,
            weight=data.weight,
            distance=data.distance,
            price=data.price if data.price is not None else settings.default_parcel_price,
            payment_method=data.payment_method,
            is_paid=False,
            description=data.description,
            photos=list(data.photos),
        )

        try:
            db.add(parcel)
            await db.flush()  # To get parcel.id

            await event_log.append(
                db,
                parcel_id=parcel.id,
                actor_id=data.sender_id,
                actor_role=UserRole.CUSTOMER,
                status=INITIAL_STATUS,
                notes=event_log.PARCEL_CREATED_NOTE
            )

            await db.commit()
            await db.refresh(parcel)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError("create_parcel", exc)

        logger.info(
            "Parcel created",
            extra={"parcel_id": parcel.id, "tracking_id": parcel.tracking_id, "sender_id": parcel.sender_id}
        )
        return parcel

    @staticmethod
    async def get_parcel(db: AsyncSession, parcel_id: int) -> Parcel:
        """Fetch a parcel by id, re-reading it from the database."""
        result = await db.execute(
            select(Parcel)
            .where(Parcel.id == parcel_id)
            .execution_options(populate_existing=True)
        )
        parcel = result.scalar_one_or_none()
        if not parcel:
            raise NotFoundError("Parcel", parcel_id)
        return parcel

    @staticmethod
    async def update_status(
        db: AsyncSession,
        parcel_id: int,
        new_status: Union[ParcelStatus, str],
        actor_id: int,
        actor_role: Union[UserRole, str],
        notes: Optional[str] = None,
        driver_id: Optional[int] = None,
        location: Optional[str] = None,
        photo: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Parcel:
        """
        Move a parcel to ``new_status`` and record the event.

        The parcel row is written with a version check; if another writer
        committed first the flush finds no matching row and nothing is kept.

        Returns:
            Updated Parcel

        Raises:
            NotFoundError: Parcel, actor or driver does not exist
            InvalidTransitionError: Parcel is terminal or target not reachable
            ConcurrencyConflictError: Parcel changed since it was read
            StorageError: Persistence failure (nothing is written)
        """
        target = _coerce(ParcelStatus, new_status, "status")
        role = _coerce(UserRole, actor_role, "actor_role")

        parcel = await ParcelLedger.get_parcel(db, parcel_id)

        if expected_version is not None and parcel.version != expected_version:
            raise ConcurrencyConflictError("Parcel", parcel_id, expected_version)

        previous = parcel.status
        try:
            ensure_transition(previous, target)
        except InvalidTransitionError:
            logger.warning(
                "Rejected parcel transition",
                extra={"parcel_id": parcel_id, "from": previous.value, "to": target.value, "actor_id": actor_id}
            )
            raise

        if not await db.get(User, actor_id):
            raise NotFoundError("User", actor_id)
        if driver_id is not None and not await db.get(User, driver_id):
            raise NotFoundError("User", driver_id)

        parcel.status = target
        if driver_id is not None:
            parcel.driver_id = driver_id
        if target == ParcelStatus.DELIVERED:
            parcel.delivered_at = datetime.now(timezone.utc)
            if photo:
                parcel.delivery_proof = photo

        try:
            # Flushes the versioned parcel UPDATE before the event INSERT
            await event_log.append(
                db,
                parcel_id=parcel.id,
                actor_id=actor_id,
                actor_role=role,
                status=target,
                notes=notes,
                location=location,
                photo=photo
            )

            await NotificationService.create_notification(
                db,
                user_id=parcel.sender_id,
                title="Parcel update",
                body=f"Parcel {parcel.tracking_id} is now {target.value.replace('_', ' ')}",
                type=NotificationType.PARCEL,
                reference_id=parcel.id
            )

            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.warning("Concurrent parcel update lost", extra={"parcel_id": parcel_id})
            raise ConcurrencyConflictError("Parcel", parcel_id, expected_version)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError("update_status", exc)

        logger.info(
            "Parcel status changed",
            extra={"parcel_id": parcel.id, "from": previous.value, "to": target.value, "actor_id": actor_id}
        )

        event = {
            "type": "parcel_status",
            "parcel_id": parcel.id,
            "tracking_id": parcel.tracking_id,
            "status": target.value,
            "previous_status": previous.value,
        }
        await notification_dispatcher.notify(parcel.sender_id, event)
        if parcel.driver_id and parcel.driver_id != parcel.sender_id:
            await notification_dispatcher.notify(parcel.driver_id, event)

        return parcel

    @staticmethod
    async def lookup_by_tracking_id(db: AsyncSession, tracking_id: str) -> tuple[Parcel, List[ParcelEvent]]:
        """
        Get a parcel and its full event history (newest first).

        Raises:
            NotFoundError: No parcel with this tracking ID
        """
        result = await db.execute(
            select(Parcel)
            .where(Parcel.tracking_id == tracking_id)
            .execution_options(populate_existing=True)
        )
        parcel = result.scalar_one_or_none()
        if not parcel:
            raise NotFoundError("Parcel", tracking_id)

        events = await event_log.list_by_parcel(db, parcel.id, newest_first=True)
        return parcel, events

    @staticmethod
    async def list_by_sender(db: AsyncSession, sender_id: int) -> List[Parcel]:
        """Parcels sent by a user, newest first."""
        result = await db.execute(
            select(Parcel)
            .where(Parcel.sender_id == sender_id)
            .order_by(Parcel.created_at.desc(), Parcel.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_by_driver(db: AsyncSession, driver_id: int) -> List[Parcel]:
        """Parcels assigned to a driver, newest first."""
        result = await db.execute(
            select(Parcel)
            .where(Parcel.driver_id == driver_id)
            .order_by(Parcel.created_at.desc(), Parcel.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def submit_review(
        db: AsyncSession,
        parcel_id: int,
        rating: int,
        review: Optional[str] = None
    ) -> Parcel:
        """
        Attach post-delivery feedback to a parcel (once).

        Raises:
            NotFoundError: Parcel does not exist
            InvalidTransitionError: Parcel is not delivered
            ValidationError: Rating outside 1..5 or already reviewed
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5", details={"rating": rating})

        parcel = await ParcelLedger.get_parcel(db, parcel_id)

        if parcel.status != ParcelStatus.DELIVERED:
            raise InvalidTransitionError(
                parcel.status.value,
                ParcelStatus.DELIVERED.value,
                reason="Only delivered parcels can be reviewed"
            )
        if parcel.rating is not None:
            raise ValidationError("Parcel has already been reviewed", details={"parcel_id": parcel_id})

        parcel.rating = rating
        parcel.review = review

        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            raise ConcurrencyConflictError("Parcel", parcel_id)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError("submit_review", exc)

        return parcel

    @staticmethod
    async def verify_consistency(db: AsyncSession, parcel_id: int) -> bool:
        """True when replaying the event log ends at the parcel's current status."""
        parcel = await ParcelLedger.get_parcel(db, parcel_id)
        return await event_log.replay_status(db, parcel_id) == parcel.status
