"""
User routes.
Self service on /users/me; invitations and account administration are admin only.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import AdminUser, CurrentUser, DBSession, ManagerUser
from app.schemas.pagination import PaginatedResponse
from app.schemas.user import (
    PasswordChange,
    UserAdminUpdate,
    UserInvitation,
    UserInvite,
    UserRead,
    UserReadPublic,
    UserStats,
    UserUpdate,
)
from app.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserRead, summary="Get current user profile")
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)


@router.put("/me", response_model=UserRead, summary="Update current user profile")
async def update_me(
    user_in: UserUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> UserRead:
    user = await user_service.update_profile(db, user_in=user_in, current_user=current_user)
    return UserRead.model_validate(user)


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change current user password",
)
async def change_password(
    body: PasswordChange,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await user_service.change_password(db, body=body, current_user=current_user)


@router.get(
    "/directory",
    response_model=PaginatedResponse[UserReadPublic],
    summary="Active people to assign work to",
)
async def user_directory(
    _manager: ManagerUser,
    db: DBSession,
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=50, ge=1, le=200),
) -> PaginatedResponse[UserReadPublic]:
    users, total = await user_service.list_users(
        db, page=page, size=size, status="active", search=search
    )
    return PaginatedResponse.build(
        users, total, page=page, size=size, convert=UserReadPublic.model_validate
    )


@router.get(
    "/",
    response_model=PaginatedResponse[UserRead],
    summary="List users (admin only)",
)
async def list_users(
    _admin: AdminUser,
    db: DBSession,
    role: str | None = Query(default=None),
    status: str | None = Query(default=None),
    client_id: uuid.UUID | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[UserRead]:
    users, total = await user_service.list_users(
        db,
        page=page,
        size=size,
        role=role,
        status=status,
        client_id=client_id,
        search=search,
    )
    return PaginatedResponse.build(
        users, total, page=page, size=size, convert=UserRead.model_validate
    )


@router.get("/stats", response_model=UserStats, summary="User counts by role and status")
async def user_stats(_admin: AdminUser, db: DBSession) -> UserStats:
    return await user_service.stats(db)


@router.post(
    "/invite",
    response_model=UserInvitation,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a new user (admin only)",
)
async def invite_user(
    user_in: UserInvite,
    admin: AdminUser,
    db: DBSession,
) -> UserInvitation:
    return await user_service.invite_user(db, user_in=user_in, current_user=admin)


@router.post(
    "/{user_id}/resend-invite",
    response_model=UserInvitation,
    summary="Issue a fresh invitation token (admin only)",
)
async def resend_invite(
    user_id: uuid.UUID,
    admin: AdminUser,
    db: DBSession,
) -> UserInvitation:
    return await user_service.resend_invitation(db, user_id=user_id, current_user=admin)


@router.get("/{user_id}", response_model=UserRead, summary="Get a user by ID (admin only)")
async def get_user(
    user_id: uuid.UUID,
    _admin: AdminUser,
    db: DBSession,
) -> UserRead:
    user = await user_service.get_user(db, user_id=user_id)
    return UserRead.model_validate(user)


@router.put("/{user_id}", response_model=UserRead, summary="Update a user (admin only)")
async def admin_update_user(
    user_id: uuid.UUID,
    user_in: UserAdminUpdate,
    admin: AdminUser,
    db: DBSession,
) -> UserRead:
    user = await user_service.admin_update_user(
        db, user_id=user_id, user_in=user_in, current_user=admin
    )
    return UserRead.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user (admin only)",
)
async def delete_user(
    user_id: uuid.UUID,
    admin: AdminUser,
    db: DBSession,
) -> None:
    await user_service.delete_user(db, user_id=user_id, current_user=admin)
