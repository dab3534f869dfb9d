"""
Document and page routes, plus the collaboration endpoints nested under
/documents/{document_id}.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.document import (
    CollaborationAuthRequest,
    CollaborationSession,
    DocumentCreate,
    DocumentRead,
    DocumentReadWithPages,
    DocumentStatusUpdate,
    DocumentUpdate,
    PageCreate,
    PageRead,
    PageUpdate,
    PresenceHeartbeat,
    PresenceJoin,
    PresenceRead,
)
from app.schemas.pagination import PaginatedResponse
from app.services.collaboration_service import collaboration_service
from app.services.document_service import document_service

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get(
    "/",
    response_model=PaginatedResponse[DocumentRead],
    summary="List documents visible to the current user",
)
async def list_documents(
    current_user: CurrentUser,
    db: DBSession,
    client_id: uuid.UUID | None = Query(default=None),
    department_id: uuid.UUID | None = Query(default=None),
    document_type: str | None = Query(default=None),
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[DocumentRead]:
    documents, total = await document_service.list_documents(
        db,
        current_user=current_user,
        page=page,
        size=size,
        client_id=client_id,
        department_id=department_id,
        document_type=document_type,
        status=status,
    )
    return PaginatedResponse.build(
        documents, total, page=page, size=size, convert=DocumentRead.model_validate
    )


@router.post(
    "/",
    response_model=DocumentReadWithPages,
    status_code=status.HTTP_201_CREATED,
    summary="Create a document",
)
async def create_document(
    document_in: DocumentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> DocumentReadWithPages:
    document = await document_service.create_document(
        db, document_in=document_in, current_user=current_user
    )
    return DocumentReadWithPages.model_validate(document)


@router.get(
    "/shared/{share_id}",
    response_model=DocumentReadWithPages,
    summary="Open a document from its share link",
)
async def get_shared_document(
    share_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> DocumentReadWithPages:
    document = await document_service.get_by_share_id(
        db, share_id=share_id, current_user=current_user
    )
    return DocumentReadWithPages.model_validate(document)


@router.get(
    "/{document_id}",
    response_model=DocumentReadWithPages,
    summary="Get a document with its pages",
)
async def get_document(
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> DocumentReadWithPages:
    document = await document_service.get_document(
        db, document_id=document_id, current_user=current_user
    )
    return DocumentReadWithPages.model_validate(document)


@router.put(
    "/{document_id}",
    response_model=DocumentReadWithPages,
    summary="Rename a document or change its client visibility",
)
async def update_document(
    document_id: uuid.UUID,
    document_in: DocumentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> DocumentReadWithPages:
    document = await document_service.update_document(
        db, document_id=document_id, document_in=document_in, current_user=current_user
    )
    return DocumentReadWithPages.model_validate(document)


@router.put(
    "/{document_id}/status",
    response_model=DocumentReadWithPages,
    summary="Publish, archive or return a document to draft",
)
async def update_document_status(
    document_id: uuid.UUID,
    status_in: DocumentStatusUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> DocumentReadWithPages:
    document = await document_service.update_status(
        db, document_id=document_id, status_in=status_in, current_user=current_user
    )
    return DocumentReadWithPages.model_validate(document)


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a document",
)
async def delete_document(
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await document_service.delete_document(
        db, document_id=document_id, current_user=current_user
    )


# ── Pages ─────────────────────────────────────────────────────────────────────

@router.get(
    "/{document_id}/pages",
    response_model=list[PageRead],
    summary="List the pages of a document",
)
async def list_pages(
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[PageRead]:
    pages = await document_service.list_pages(
        db, document_id=document_id, current_user=current_user
    )
    return [PageRead.model_validate(p) for p in pages]


@router.post(
    "/{document_id}/pages",
    response_model=PageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a page",
)
async def add_page(
    document_id: uuid.UUID,
    page_in: PageCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> PageRead:
    page = await document_service.add_page(
        db, document_id=document_id, page_in=page_in, current_user=current_user
    )
    return PageRead.model_validate(page)


@router.put(
    "/{document_id}/pages/{page_id}",
    response_model=PageRead,
    summary="Rename a page",
)
async def rename_page(
    document_id: uuid.UUID,
    page_id: uuid.UUID,
    page_in: PageUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> PageRead:
    page = await document_service.rename_page(
        db,
        document_id=document_id,
        page_id=page_id,
        page_in=page_in,
        current_user=current_user,
    )
    return PageRead.model_validate(page)


@router.delete(
    "/{document_id}/pages/{page_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a page (a document keeps at least one)",
)
async def delete_page(
    document_id: uuid.UUID,
    page_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await document_service.delete_page(
        db, document_id=document_id, page_id=page_id, current_user=current_user
    )


# ── Collaboration ─────────────────────────────────────────────────────────────

@router.post(
    "/{document_id}/collaboration/auth",
    response_model=CollaborationSession,
    summary="Get a token for the document sync service",
)
async def collaboration_auth(
    document_id: uuid.UUID,
    body: CollaborationAuthRequest,
    current_user: CurrentUser,
    db: DBSession,
) -> CollaborationSession:
    return await collaboration_service.authorize(
        db, document_id=document_id, request=body, current_user=current_user
    )


@router.get(
    "/{document_id}/presence",
    response_model=list[PresenceRead],
    summary="Collaborators currently in the document",
)
async def list_presence(
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[PresenceRead]:
    sessions = await collaboration_service.list_present(
        db, document_id=document_id, current_user=current_user
    )
    return [PresenceRead.model_validate(s) for s in sessions]


@router.post(
    "/{document_id}/presence",
    response_model=list[PresenceRead],
    summary="Join a document",
)
async def join_presence(
    document_id: uuid.UUID,
    join_in: PresenceJoin,
    current_user: CurrentUser,
    db: DBSession,
) -> list[PresenceRead]:
    sessions = await collaboration_service.join(
        db, document_id=document_id, join_in=join_in, current_user=current_user
    )
    return [PresenceRead.model_validate(s) for s in sessions]


@router.put(
    "/{document_id}/presence",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Presence heartbeat with status and cursor",
)
async def presence_heartbeat(
    document_id: uuid.UUID,
    heartbeat_in: PresenceHeartbeat,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await collaboration_service.heartbeat(
        db, document_id=document_id, heartbeat_in=heartbeat_in, current_user=current_user
    )


@router.delete(
    "/{document_id}/presence",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a document",
)
async def leave_presence(
    document_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await collaboration_service.leave(db, document_id=document_id, current_user=current_user)
