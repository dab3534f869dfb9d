"""
Notification WebSocket endpoint.
Clients connect to /ws/{user_id}?token=<access token>; the server pings
every 30 seconds and pushes {"type": "notification"} messages.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from jose import JWTError

from app.core.security import decode_access_token
from app.crud.user import crud_user
from app.db.session import AsyncSessionLocal
from app.services.websocket_service import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])

HEARTBEAT_INTERVAL = 30  # seconds

# Application close codes
CLOSE_UNAUTHENTICATED = 4001
CLOSE_FORBIDDEN = 4003


async def _authenticate(token: str | None, user_id: str) -> int | None:
    """Return a close code when the socket must be refused, otherwise None."""
    if not token:
        return CLOSE_UNAUTHENTICATED
    try:
        payload = decode_access_token(token)
    except JWTError:
        return CLOSE_UNAUTHENTICATED
    if payload.get("sub") != user_id:
        return CLOSE_FORBIDDEN

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        return CLOSE_FORBIDDEN
    async with AsyncSessionLocal() as db:
        user = await crud_user.get(db, user_uuid)
    if user is None or not user.is_active:
        return CLOSE_FORBIDDEN
    return None


@router.websocket("/ws/{user_id}")
async def websocket_endpoint(websocket: WebSocket, user_id: str) -> None:
    close_code = await _authenticate(websocket.query_params.get("token"), user_id)
    if close_code is not None:
        await websocket.close(code=close_code)
        return

    await ws_manager.connect(websocket, user_id)
    heartbeat_task = asyncio.create_task(_heartbeat(websocket))
    try:
        await websocket.send_json({"type": "connected", "user_id": user_id})
        while True:
            data = await websocket.receive_json()
            if data.get("type") == "pong":
                logger.debug("Received pong from user_id=%s", user_id)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: user_id=%s", user_id)
    finally:
        heartbeat_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await heartbeat_task
        ws_manager.disconnect(websocket, user_id)


async def _heartbeat(websocket: WebSocket) -> None:
    while True:
        await asyncio.sleep(HEARTBEAT_INTERVAL)
        try:
            await websocket.send_json({"type": "ping"})
        except (RuntimeError, ConnectionError):
            return
