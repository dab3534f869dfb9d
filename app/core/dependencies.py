"""
FastAPI dependency injection functions.
Provides get_db, get_current_user and the role gates used by routes.
"""
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, InvalidTokenException, UnauthorizedException
from app.core.security import decode_access_token
from app.crud.user import crud_user
from app.db.session import get_db
from app.models.user import User, UserRole

# Re-export get_db so routes can import from one place
__all__ = [
    "get_db",
    "get_current_user",
    "require_roles",
    "DBSession",
    "CurrentUser",
    "AdminUser",
    "ManagerUser",
]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User:
    """
    Extract and validate the JWT access token from the Authorization header.
    Returns the authenticated User model.
    """
    if credentials is None:
        raise UnauthorizedException("Missing authentication token")

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise InvalidTokenException("Invalid or expired access token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenException("Malformed token: missing subject")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise InvalidTokenException("Malformed token: invalid subject format")

    user = await crud_user.get(db, user_id)
    if user is None:
        raise UnauthorizedException("User not found")
    if not user.is_active:
        raise UnauthorizedException("User account is not active")

    return user


def require_roles(
    *roles: str, detail: str | None = None
) -> Callable[[User], Awaitable[User]]:
    """Build a dependency that only lets users with one of ``roles`` through."""

    async def dependency(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise ForbiddenException(
                detail or f"This action requires one of the roles: {', '.join(roles)}"
            )
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN, detail="Access Denied")
require_manager = require_roles(
    UserRole.ADMIN,
    UserRole.PM,
    detail="Insufficient permissions: only admins and PMs can perform this action",
)


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
ManagerUser = Annotated[User, Depends(require_manager)]
