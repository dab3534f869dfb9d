"""
Authentication endpoint tests.
Covers: register, login, refresh, logout, invitations and the first-admin rule.
"""
from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

from app.models.user import User

pytestmark = pytest.mark.asyncio

PASSWORD = "StridePass1"


async def _register(client: AsyncClient, email: str, name: str = "Some One") -> dict[str, Any]:
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": name, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestRegister:
    async def test_first_account_becomes_admin(self, client: AsyncClient) -> None:
        first = await _register(client, "first@example.com")
        second = await _register(client, "second@example.com")
        assert first["role"] == "admin"
        assert second["role"] == "task_owner"
        assert "hashed_password" not in first

    async def test_register_duplicate_email(self, client: AsyncClient) -> None:
        await _register(client, "dupe@example.com")
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "dupe@example.com", "name": "Again", "password": PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    async def test_register_weak_password_lists_every_rule(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "weak@example.com", "name": "Weak", "password": "short"},
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        message = body["errors"][0]["message"]
        assert "at least 8 characters" in message
        assert "one uppercase letter" in message
        assert "one number" in message

    async def test_register_invalid_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "name": "X", "password": PASSWORD},
        )
        assert response.status_code == 422


class TestLogin:
    async def test_login_success(self, client: AsyncClient) -> None:
        await _register(client, "login@example.com")
        data = await _login(client, "login@example.com")
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60

    async def test_login_wrong_password(self, client: AsyncClient) -> None:
        await _register(client, "wrong@example.com")
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "wrong@example.com", "password": "WrongPass1"},
        )
        assert response.status_code == 401
        body = response.json()
        assert body["detail"] == "Invalid email or password"
        assert body["user_message"].startswith("Invalid email or password.")

    async def test_login_nonexistent_user(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )
        assert response.status_code == 401


class TestRefresh:
    async def test_refresh_rotates_token(self, client: AsyncClient) -> None:
        await _register(client, "rotate@example.com")
        tokens = await _login(client, "rotate@example.com")

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200
        rotated = response.json()
        assert rotated["refresh_token"] != tokens["refresh_token"]

        # The previous refresh token is no longer accepted
        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    async def test_refresh_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": "this.is.invalid"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"


class TestLogout:
    async def test_logout_revokes_refresh_token(self, client: AsyncClient) -> None:
        await _register(client, "bye@example.com")
        tokens = await _login(client, "bye@example.com")
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        response = await client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 204

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    async def test_logout_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/auth/logout")
        assert response.status_code == 401


class TestInvitation:
    async def test_invited_user_sets_password_and_signs_in(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/users/invite",
            json={"email": "invitee@example.com", "name": "Ivy Invitee", "role": "pm"},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        invitation = response.json()
        assert invitation["user"]["status"] == "invited"

        # Invited accounts cannot log in yet
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "invitee@example.com", "password": PASSWORD},
        )
        assert response.status_code == 401

        response = await client.post(
            "/api/v1/auth/accept-invite",
            json={"token": invitation["invite_token"], "password": PASSWORD},
        )
        assert response.status_code == 200, response.text
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        me = await client.get("/api/v1/users/me", headers=headers)
        assert me.json()["status"] == "active"
        assert me.json()["role"] == "pm"

        # The token works once
        response = await client.post(
            "/api/v1/auth/accept-invite",
            json={"token": invitation["invite_token"], "password": PASSWORD},
        )
        assert response.status_code == 401

    async def test_only_admins_invite(
        self, client: AsyncClient, pm_headers: dict
    ) -> None:
        response = await client.post(
            "/api/v1/users/invite",
            json={"email": "nope@example.com", "name": "Nope"},
            headers=pm_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Access Denied"


class TestGetMe:
    async def test_get_me_success(
        self, client: AsyncClient, admin_headers: dict, admin_user: User
    ) -> None:
        response = await client.get("/api/v1/users/me", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["email"] == admin_user.email

    async def test_get_me_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401
