"""
Live notification dispatch.

Keeps the registry of open WebSocket connections per user and pushes
JSON events to them. Delivery is fire-and-forget: ledger operations have
already committed by the time they call ``notify``, so a failed push is
logged and the dead socket dropped.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Set

from starlette.websockets import WebSocket

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """In-process map of user id → open WebSocket connections."""

    def __init__(self):
        self._connections: Dict[int, Set[WebSocket]] = defaultdict(set)

    def register(self, user_id: int, websocket: WebSocket) -> None:
        self._connections[user_id].add(websocket)
        logger.info("Socket registered", extra={"user_id": user_id})

    def unregister(self, user_id: int, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._connections[user_id]

    def connections_for(self, user_id: int) -> List[WebSocket]:
        return list(self._connections.get(user_id, ()))

    def is_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def clear(self) -> None:
        self._connections.clear()


class NotificationDispatcher:
    """Pushes events to a user's live connections."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def notify(self, user_id: int, event: Dict[str, Any]) -> int:
        """
        Send ``event`` to every open connection of ``user_id``.

        Returns:
            Number of connections the event was delivered to
        """
        delivered = 0
        for websocket in self.registry.connections_for(user_id):
            try:
                await websocket.send_json(event)
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "Dropping unreachable socket",
                    extra={"user_id": user_id, "error": type(exc).__name__}
                )
                self.registry.unregister(user_id, websocket)
        return delivered


connection_registry = ConnectionRegistry()
notification_dispatcher = NotificationDispatcher(connection_registry)
