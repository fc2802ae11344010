"""Private sends and room-wide fanout over registered connections."""

from __future__ import annotations

import logging
from typing import Any

from .connections import ConnectionRegistry
from .protocol import ws_send_event

logger = logging.getLogger(__name__)


class BroadcastFanout:
    """Deliver events to one connection or to every connection in a room."""

    def __init__(self, connections: ConnectionRegistry) -> None:
        self._connections = connections

    async def send(self, websocket: Any, event_type: str, payload: dict[str, Any]) -> bool:
        """Send one event; False when the socket is already gone."""
        try:
            await ws_send_event(websocket, event_type, payload)
        except Exception:
            # The receive loop notices the close and runs disconnect handling.
            logger.debug("dropping %s for a closed connection", event_type, exc_info=True)
            return False
        return True

    async def send_error(self, websocket: Any, *, message: str, code: str) -> bool:
        return await self.send(websocket, "ERROR", {"message": message, "code": code})

    async def broadcast(self, room_code: str, event_type: str, payload: dict[str, Any]) -> int:
        """Send to every connection registered to room_code; returns delivered count."""
        delivered = 0
        for websocket in self._connections.connections_in_room(room_code):
            if await self.send(websocket, event_type, payload):
                delivered += 1
        return delivered
