"""
Document, DocumentPage and DocumentSession CRUD operations.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.document import Document, DocumentPage, DocumentSession
from app.schemas.document import (
    DocumentCreate,
    DocumentUpdate,
    PageCreate,
    PageUpdate,
    PresenceHeartbeat,
    PresenceJoin,
)


class CRUDDocument(CRUDBase[Document, DocumentCreate, DocumentUpdate]):

    async def get_with_pages(
        self, db: AsyncSession, document_id: uuid.UUID
    ) -> Document | None:
        result = await db.execute(
            select(Document)
            .options(selectinload(Document.pages))
            .where(Document.id == document_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_share_id(self, db: AsyncSession, share_id: str) -> Document | None:
        result = await db.execute(
            select(Document)
            .options(selectinload(Document.pages))
            .where(Document.share_id == share_id)
        )
        return result.scalar_one_or_none()

    async def get_by_project(
        self, db: AsyncSession, project_id: uuid.UUID
    ) -> Document | None:
        result = await db.execute(select(Document).where(Document.project_id == project_id))
        return result.scalar_one_or_none()

    async def list_documents(
        self,
        db: AsyncSession,
        *,
        client_id: uuid.UUID | None = None,
        department_id: uuid.UUID | None = None,
        document_type: str | None = None,
        status: str | None = None,
        restrict_client_id: uuid.UUID | None = None,
        restrict_department_ids: list[uuid.UUID] | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Document], int]:
        query = select(Document)
        if restrict_client_id is not None:
            query = query.where(
                Document.client_id == restrict_client_id,
                Document.client_visible.is_(True),
            )
        if restrict_department_ids is not None:
            # Documents outside any department are shared with the whole team
            query = query.where(
                or_(
                    Document.department_id.is_(None),
                    Document.department_id.in_(restrict_department_ids),
                )
            )
        if client_id is not None:
            query = query.where(Document.client_id == client_id)
        if department_id is not None:
            query = query.where(Document.department_id == department_id)
        if document_type is not None:
            query = query.where(Document.document_type == document_type)
        if status is not None:
            query = query.where(Document.status == status)
        return await self.paginate(
            db, query.order_by(Document.updated_at.desc()), skip=skip, limit=limit
        )


class CRUDDocumentPage(CRUDBase[DocumentPage, PageCreate, PageUpdate]):

    async def list_by_document(
        self, db: AsyncSession, document_id: uuid.UUID
    ) -> list[DocumentPage]:
        result = await db.execute(
            select(DocumentPage)
            .where(DocumentPage.document_id == document_id)
            .order_by(DocumentPage.order)
        )
        return list(result.scalars().all())

    async def next_order(self, db: AsyncSession, document_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.max(DocumentPage.order)).where(DocumentPage.document_id == document_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1


class CRUDDocumentSession(CRUDBase[DocumentSession, PresenceJoin, PresenceHeartbeat]):

    async def get_for_user(
        self, db: AsyncSession, *, document_id: uuid.UUID, user_id: uuid.UUID
    ) -> DocumentSession | None:
        result = await db.execute(
            select(DocumentSession).where(
                DocumentSession.document_id == document_id,
                DocumentSession.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_active(
        self, db: AsyncSession, *, document_id: uuid.UUID, seen_after: datetime
    ) -> list[DocumentSession]:
        result = await db.execute(
            select(DocumentSession)
            .options(selectinload(DocumentSession.user))
            .where(
                DocumentSession.document_id == document_id,
                DocumentSession.last_seen >= seen_after,
            )
            .order_by(DocumentSession.joined_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def prune_stale(
        self, db: AsyncSession, *, document_id: uuid.UUID, seen_before: datetime
    ) -> int:
        """Delete sessions of ``document_id`` not seen since ``seen_before``."""
        result = await db.execute(
            delete(DocumentSession).where(
                DocumentSession.document_id == document_id,
                DocumentSession.last_seen < seen_before,
            )
            # Stored timestamps may load naive; the database does the comparison
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount  # type: ignore[return-value]

    async def remove_for_user(
        self, db: AsyncSession, *, document_id: uuid.UUID, user_id: uuid.UUID
    ) -> int:
        result = await db.execute(
            delete(DocumentSession).where(
                DocumentSession.document_id == document_id,
                DocumentSession.user_id == user_id,
            )
        )
        return result.rowcount  # type: ignore[return-value]


crud_document = CRUDDocument(Document)
crud_document_page = CRUDDocumentPage(DocumentPage)
crud_document_session = CRUDDocumentSession(DocumentSession)
