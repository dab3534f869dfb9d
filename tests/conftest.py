"""
Test configuration and shared fixtures.
Uses an in-memory SQLite database for fast, isolated tests.
"""
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.auth import limiter
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app import models  # noqa: F401
from app.models.user import User, UserRole, UserStatus

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "StridePass1"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test; StaticPool keeps a single connection."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session that rolls back after each test."""
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        try:
            yield session
            await session.rollback()
        finally:
            await session.close()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client with the test DB injected."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    # Login is rate limited per client address; every test starts with a clean window
    limiter.reset()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Users ─────────────────────────────────────────────────────────────────────

async def make_user(
    db: AsyncSession,
    *,
    email: str,
    role: str,
    name: str | None = None,
    **fields: Any,
) -> User:
    """Insert a user (active unless ``status`` is given); tests mint tokens instead of logging in."""
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        **{"status": UserStatus.ACTIVE, **fields},
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    """Authorization headers signed for ``user`` without a login round trip."""
    token = create_access_token(str(user.id), user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await make_user(db, email="admin@example.com", role=UserRole.ADMIN, name="Ada Admin")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)


@pytest_asyncio.fixture
async def pm_user(db: AsyncSession) -> User:
    return await make_user(db, email="pm@example.com", role=UserRole.PM, name="Pat Manager")


@pytest_asyncio.fixture
async def pm_headers(pm_user: User) -> dict[str, str]:
    return headers_for(pm_user)


# ── Workspace ─────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def acme(client: AsyncClient, admin_headers: dict[str, str]) -> dict[str, Any]:
    """Client "Acme" with the Default department created alongside it."""
    response = await client.post(
        "/api/v1/clients/",
        json={"name": "Acme", "project_key": "ACME"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    acme = response.json()

    response = await client.get(f"/api/v1/clients/{acme['id']}", headers=admin_headers)
    assert response.status_code == 200, response.text
    acme["department"] = response.json()["departments"][0]
    return acme


@pytest_asyncio.fixture
async def owner_user(db: AsyncSession, acme: dict[str, Any]) -> User:
    """Task owner who belongs to Acme's Default department."""
    return await make_user(
        db,
        email="owner@example.com",
        role=UserRole.TASK_OWNER,
        name="Olive Owner",
        department_ids=[acme["department"]["id"]],
    )


@pytest_asyncio.fixture
async def owner_headers(owner_user: User) -> dict[str, str]:
    return headers_for(owner_user)


@pytest_asyncio.fixture
async def client_user(db: AsyncSession, acme: dict[str, Any]) -> User:
    """Client user attached to Acme."""
    return await make_user(
        db,
        email="acme.contact@example.com",
        role=UserRole.CLIENT,
        name="Cora Client",
        client_id=uuid.UUID(acme["id"]),
    )


@pytest_asyncio.fixture
async def client_headers(client_user: User) -> dict[str, str]:
    return headers_for(client_user)


async def create_task(
    client: AsyncClient,
    headers: dict[str, str],
    acme: dict[str, Any],
    title: str = "Test Task",
    **kwargs: Any,
) -> dict[str, Any]:
    payload = {
        "title": title,
        "client_id": acme["id"],
        "department_id": acme["department"]["id"],
        **kwargs,
    }
    response = await client.post("/api/v1/tasks/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def factory(*, email: str, role: str, **fields: Any) -> User:
        return await make_user(db, email=email, role=role, **fields)

    return factory


@pytest_asyncio.fixture
async def task_factory(
    client: AsyncClient, admin_headers: dict[str, str], acme: dict[str, Any]
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Create tasks in Acme's Default department as the admin."""

    async def factory(title: str = "Test Task", **kwargs: Any) -> dict[str, Any]:
        return await create_task(client, admin_headers, acme, title, **kwargs)

    return factory


@pytest_asyncio.fixture
async def token_for() -> Callable[[User], dict[str, str]]:
    return headers_for
