"""
WebSocket connection manager.
Keeps every open notification socket per user and pushes JSON messages to
the sockets of one user.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Active WebSocket connections keyed by user_id (string).
    A user may hold several connections, one per open tab.
    """

    def __init__(self) -> None:
        self._connections: dict[str, list[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        self._connections.setdefault(user_id, []).append(websocket)
        logger.info("WebSocket connected: user_id=%s", user_id)

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        connections = self._connections.get(user_id)
        if connections and websocket in connections:
            connections.remove(websocket)
        if not connections:
            self._connections.pop(user_id, None)
        logger.info("WebSocket disconnected: user_id=%s", user_id)

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    async def _send(self, user_id: str, websocket: WebSocket, message: str) -> bool:
        try:
            await websocket.send_text(message)
        except (RuntimeError, ConnectionError) as exc:
            logger.warning("Dropping WebSocket for user_id=%s: %s", user_id, exc)
            return False
        return True

    async def send_personal_message(
        self, user_id: str, data: dict[str, Any]
    ) -> None:
        """Send a JSON message to all connections of one user."""
        message = json.dumps(data)
        for ws in list(self._connections.get(user_id, [])):
            if not await self._send(user_id, ws, message):
                self.disconnect(ws, user_id)

    @property
    def connected_user_count(self) -> int:
        return len(self._connections)


# Singleton instance shared across the application
ws_manager = ConnectionManager()
