"""
Chat message persistence for the WebSocket boundary.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.exceptions import NotFoundError, StorageError, ValidationError
from backend.app.models.message import Message
from backend.app.models.parcel import Parcel
from backend.app.models.user import User


async def save_message(
    db: AsyncSession,
    sender_id: int,
    receiver_id: int,
    text: str,
    parcel_id: Optional[int] = None
) -> Message:
    """
    Persist a direct message.

    Raises:
        ValidationError: Empty text
        NotFoundError: Receiver or parcel does not exist
        StorageError: Persistence failure
    """
    if not text or not text.strip():
        raise ValidationError("Message text is required")

    if not await db.get(User, receiver_id):
        raise NotFoundError("User", receiver_id)
    if parcel_id is not None and not await db.get(Parcel, parcel_id):
        raise NotFoundError("Parcel", parcel_id)

    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        parcel_id=parcel_id,
        text=text
    )

    try:
        db.add(message)
        await db.commit()
        await db.refresh(message)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("save_message", exc)

    return message


def message_to_dict(message: Message) -> dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "parcel_id": message.parcel_id,
        "text": message.text,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
