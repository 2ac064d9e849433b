"""
Real-time WebSocket Endpoint.

Registers user connections with the notification dispatcher and relays
chat messages. Frames are JSON objects with a ``type`` field:

    {"type": "auth", "userId": 1}
    {"type": "message", "receiverId": 2, "parcelId": 5, "text": "At the gate"}
"""

import json
import logging
from typing import Optional, Tuple
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import AppException
from backend.app.db.session import get_db
from backend.app.services.chat_service import save_message, message_to_dict
from backend.app.services.notification_dispatcher import connection_registry, notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def parse_message_ids(data: dict) -> Tuple[int, Optional[int]]:
    """
    Pull receiver and optional parcel ids out of a message frame.

    Raises:
        ValueError: receiverId missing or not an integer, parcelId not an integer
    """
    try:
        receiver_id = int(data.get("receiverId"))
    except (TypeError, ValueError):
        raise ValueError("receiverId must be an integer")

    parcel_id = data.get("parcelId")
    if parcel_id is not None:
        try:
            parcel_id = int(parcel_id)
        except (TypeError, ValueError):
            raise ValueError("parcelId must be an integer")
    return receiver_id, parcel_id


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    db: AsyncSession = Depends(get_db)
):
    await websocket.accept()
    user_id: Optional[int] = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "message": "Frame must be a JSON object"})
                continue

            frame_type = data.get("type")

            if frame_type == "auth":
                try:
                    new_user_id = int(data.get("userId"))
                except (TypeError, ValueError):
                    await websocket.send_json({"type": "error", "message": "userId is required"})
                    continue
                if user_id is not None:
                    connection_registry.unregister(user_id, websocket)
                user_id = new_user_id
                connection_registry.register(user_id, websocket)
                await websocket.send_json({"type": "auth", "success": True})

            elif frame_type == "message":
                if user_id is None:
                    await websocket.send_json({"type": "error", "message": "Authenticate first"})
                    continue
                try:
                    receiver_id, parcel_id = parse_message_ids(data)
                except ValueError as exc:
                    await websocket.send_json({"type": "error", "message": str(exc)})
                    continue
                try:
                    message = await save_message(
                        db,
                        sender_id=user_id,
                        receiver_id=receiver_id,
                        parcel_id=parcel_id,
                        text=data.get("text") or ""
                    )
                except AppException as exc:
                    await websocket.send_json({"type": "error", "message": exc.message})
                    continue

                payload = message_to_dict(message)
                await notification_dispatcher.notify(message.receiver_id, {"type": "message", "message": payload})
                await websocket.send_json({"type": "message_sent", "message": payload})

            else:
                await websocket.send_json({"type": "error", "message": f"Unknown frame type: {frame_type}"})

    except WebSocketDisconnect:
        logger.info("Socket disconnected", extra={"user_id": user_id})
    finally:
        if user_id is not None:
            connection_registry.unregister(user_id, websocket)
