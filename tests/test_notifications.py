"""
Notification endpoint and WebSocket push tests.
"""
from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient
from starlette.websockets import WebSocketDisconnect

from app.main import app
from app.services.websocket_service import ConnectionManager, ws_manager


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.sent: list[str] = []
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


async def _assign_two_tasks(task_factory: Any, owner_user: Any) -> None:
    await task_factory("First", assignee_id=str(owner_user.id))
    await task_factory("Second", assignee_id=str(owner_user.id))


class TestNotificationEndpoints:
    async def test_unread_count_and_mark_read(
        self, client: AsyncClient, owner_user: Any, owner_headers: dict, task_factory: Any
    ) -> None:
        await _assign_two_tasks(task_factory, owner_user)

        response = await client.get("/api/v1/notifications/unread-count", headers=owner_headers)
        assert response.json() == {"unread": 2}

        response = await client.get("/api/v1/notifications/", headers=owner_headers)
        first = response.json()["items"][0]
        response = await client.put(
            f"/api/v1/notifications/{first['id']}/read", headers=owner_headers
        )
        assert response.json()["is_read"] is True

        response = await client.get(
            "/api/v1/notifications/?unread_only=true", headers=owner_headers
        )
        assert response.json()["total"] == 1

        response = await client.put("/api/v1/notifications/read-all", headers=owner_headers)
        assert response.status_code == 204
        response = await client.get("/api/v1/notifications/unread-count", headers=owner_headers)
        assert response.json() == {"unread": 0}

    async def test_other_users_notifications_are_404(
        self,
        client: AsyncClient,
        owner_user: Any,
        owner_headers: dict,
        pm_headers: dict,
        task_factory: Any,
    ) -> None:
        await _assign_two_tasks(task_factory, owner_user)
        response = await client.get("/api/v1/notifications/", headers=owner_headers)
        notification_id = response.json()["items"][0]["id"]

        response = await client.put(
            f"/api/v1/notifications/{notification_id}/read", headers=pm_headers
        )
        assert response.status_code == 404
        response = await client.delete(
            f"/api/v1/notifications/{notification_id}", headers=pm_headers
        )
        assert response.status_code == 404

        response = await client.delete(
            f"/api/v1/notifications/{notification_id}", headers=owner_headers
        )
        assert response.status_code == 204
        response = await client.get("/api/v1/notifications/", headers=owner_headers)
        assert response.json()["total"] == 1


class TestWebSocketPush:
    async def test_connected_user_receives_notification(
        self, owner_user: Any, task_factory: Any
    ) -> None:
        socket = FakeWebSocket()
        user_id = str(owner_user.id)
        await ws_manager.connect(socket, user_id)  # type: ignore[arg-type]
        try:
            await task_factory("Pushed", assignee_id=user_id)
        finally:
            ws_manager.disconnect(socket, user_id)  # type: ignore[arg-type]

        assert socket.accepted
        message = json.loads(socket.sent[0])
        assert message["type"] == "notification"
        assert message["data"]["notification_type"] == "task_assigned"
        assert message["data"]["is_read"] is False

    async def test_failed_socket_is_dropped(self) -> None:
        manager = ConnectionManager()
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        await manager.connect(healthy, "u1")  # type: ignore[arg-type]
        await manager.connect(broken, "u1")  # type: ignore[arg-type]

        await manager.send_personal_message("u1", {"type": "ping"})

        assert healthy.sent == ['{"type": "ping"}']
        assert manager.is_connected("u1")
        manager.disconnect(healthy, "u1")  # type: ignore[arg-type]
        assert manager.connected_user_count == 0

    @pytest.mark.parametrize("token", [None, "not-a-jwt"])
    def test_socket_without_valid_token_is_refused(self, token: str | None) -> None:
        url = "/api/v1/ws/00000000-0000-0000-0000-000000000000"
        if token:
            url += f"?token={token}"
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with TestClient(app).websocket_connect(url) as websocket:
                websocket.receive_json()
        assert exc_info.value.code == 4001
