"""
Authentication service.
Handles registration, login, token refresh, logout and invitation acceptance.
Business logic lives here; routes only call these methods.
"""
from __future__ import annotations

import logging
import uuid

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    InvalidTokenException,
    UnauthorizedException,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_invite_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    verify_password,
)
from app.crud.user import crud_user
from app.models.user import User, UserRole, UserStatus
from app.schemas.user import InviteAccept, Token, UserCreate
from app.services.activity_service import activity_service

logger = logging.getLogger(__name__)


class AuthService:

    async def register_user(
        self, db: AsyncSession, *, user_in: UserCreate
    ) -> User:
        """
        Register a new user.
        The very first account becomes an admin; everyone after that starts
        as a task owner until an admin changes the role.
        """
        if await crud_user.get_by_email(db, user_in.email) is not None:
            raise ConflictException("A user with this email already exists")

        role = UserRole.ADMIN if await crud_user.count(db) == 0 else UserRole.TASK_OWNER
        user = await crud_user.create_user(
            db,
            email=user_in.email,
            name=user_in.name,
            hashed_password=hash_password(user_in.password),
            role=role,
        )
        logger.info("Registered user_id=%s role=%s", user.id, role)

        await activity_service.log(
            db,
            user_id=user.id,
            action="user_registered",
            entity_type="user",
            entity_id=user.id,
            details={"email": user.email, "role": role},
        )

        return user

    async def authenticate_user(
        self, db: AsyncSession, *, email: str, password: str
    ) -> Token:
        """
        Verify credentials and issue an access + refresh token pair.
        Stores the refresh token hash in the DB for rotation/revocation.
        """
        user = await crud_user.get_active_by_email(db, email)
        if (
            user is None
            or user.hashed_password is None
            or not verify_password(password, user.hashed_password)
        ):
            raise UnauthorizedException("Invalid email or password")

        token = await self._issue_tokens(db, user)

        await activity_service.log(
            db,
            user_id=user.id,
            action="user_login",
            entity_type="user",
            entity_id=user.id,
        )
        return token

    async def refresh_access_token(
        self, db: AsyncSession, *, refresh_token: str
    ) -> Token:
        """
        Validate the refresh token, issue a new access token,
        and rotate the refresh token.
        """
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            raise InvalidTokenException("Invalid or expired refresh token")

        user = await self._user_from_subject(db, payload.get("sub"))
        if user is None or not user.is_active:
            raise UnauthorizedException("User not found or inactive")

        if user.refresh_token_hash != hash_token(refresh_token):
            raise InvalidTokenException("Refresh token has been revoked")

        return await self._issue_tokens(db, user)

    async def logout(
        self, db: AsyncSession, *, user: User
    ) -> None:
        """Invalidate the stored refresh token hash."""
        await crud_user.set_refresh_token_hash(db, user=user, token_hash=None)
        await activity_service.log(
            db,
            user_id=user.id,
            action="user_logout",
            entity_type="user",
            entity_id=user.id,
        )

    async def accept_invitation(
        self, db: AsyncSession, *, body: InviteAccept
    ) -> Token:
        """
        Activate an invited account: set its password and sign the user in.
        The token must be the latest one issued for the user.
        """
        try:
            payload = decode_invite_token(body.token)
        except JWTError:
            raise InvalidTokenException("Invitation link is invalid or has expired")

        user = await self._user_from_subject(db, payload.get("sub"))
        if user is None or user.invite_token_hash != hash_token(body.token):
            raise InvalidTokenException("Invitation link is invalid or has expired")
        if user.status != UserStatus.INVITED:
            raise BadRequestException("This invitation has already been accepted")

        changes: dict[str, object] = {
            "hashed_password": hash_password(body.password),
            "status": UserStatus.ACTIVE,
            "invite_token_hash": None,
        }
        if body.name:
            changes["name"] = body.name
        user = await crud_user.update(db, db_obj=user, obj_in=changes)
        logger.info("Invitation accepted: user_id=%s", user.id)

        await activity_service.log(
            db,
            user_id=user.id,
            action="invitation_accepted",
            entity_type="user",
            entity_id=user.id,
        )
        return await self._issue_tokens(db, user)

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _issue_tokens(self, db: AsyncSession, user: User) -> Token:
        access_token = create_access_token(str(user.id), user.role)
        refresh_token = create_refresh_token(str(user.id))
        await crud_user.set_refresh_token_hash(
            db, user=user, token_hash=hash_token(refresh_token)
        )
        return Token(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_seconds,
        )

    async def _user_from_subject(
        self, db: AsyncSession, subject: str | None
    ) -> User | None:
        if not subject:
            raise InvalidTokenException("Malformed token: missing subject")
        try:
            user_id = uuid.UUID(subject)
        except ValueError:
            raise InvalidTokenException("Malformed token: invalid subject format")
        return await crud_user.get(db, user_id)


auth_service = AuthService()
