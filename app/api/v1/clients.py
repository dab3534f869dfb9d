"""
Client routes.
Admins and PMs manage clients; client users only see their own.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import AdminUser, CurrentUser, DBSession, ManagerUser
from app.schemas.client import (
    ClientCreate,
    ClientRead,
    ClientReadWithDepartments,
    ClientSummary,
    ClientUpdate,
)
from app.schemas.pagination import PaginatedResponse
from app.services.client_service import client_service

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get(
    "/",
    response_model=PaginatedResponse[ClientSummary],
    summary="List clients with department and project counts",
)
async def list_clients(
    current_user: CurrentUser,
    db: DBSession,
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ClientSummary]:
    summaries, total = await client_service.list_clients(
        db, status=status, page=page, size=size, current_user=current_user
    )
    return PaginatedResponse(items=summaries, total=total, page=page, size=size)


@router.post(
    "/",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client and its Default department",
)
async def create_client(
    client_in: ClientCreate,
    manager: ManagerUser,
    db: DBSession,
) -> ClientRead:
    client = await client_service.create_client(db, client_in=client_in, current_user=manager)
    return ClientRead.model_validate(client)


@router.get(
    "/{client_id}",
    response_model=ClientReadWithDepartments,
    summary="Get a client with its departments",
)
async def get_client(
    client_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ClientReadWithDepartments:
    client = await client_service.get_client_with_departments(
        db, client_id=client_id, current_user=current_user
    )
    return ClientReadWithDepartments.model_validate(client)


@router.put("/{client_id}", response_model=ClientRead, summary="Update a client")
async def update_client(
    client_id: uuid.UUID,
    client_in: ClientUpdate,
    manager: ManagerUser,
    db: DBSession,
) -> ClientRead:
    client = await client_service.update_client(
        db, client_id=client_id, client_in=client_in, current_user=manager
    )
    return ClientRead.model_validate(client)


@router.delete(
    "/{client_id}",
    response_model=ClientRead,
    summary="Archive a client",
)
async def delete_client(
    client_id: uuid.UUID,
    admin: AdminUser,
    db: DBSession,
) -> ClientRead:
    client = await client_service.delete_client(db, client_id=client_id, current_user=admin)
    return ClientRead.model_validate(client)
