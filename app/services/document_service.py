"""
Document service.
Documents hold ordered pages; each page is one room on the sync service.
Status moves between draft, published and archived and every change is
written to the activity log.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud.client import crud_client
from app.crud.department import crud_department
from app.crud.document import crud_document, crud_document_page
from app.models.document import Document, DocumentPage
from app.models.user import User, UserRole
from app.schemas.document import (
    DocumentCreate,
    DocumentStatusUpdate,
    DocumentUpdate,
    PageCreate,
    PageUpdate,
)
from app.services.activity_service import activity_service
from app.services.scope import scope_for

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TITLE = "Untitled"


class DocumentService:

    async def create_document(
        self, db: AsyncSession, *, document_in: DocumentCreate, current_user: User
    ) -> Document:
        """Create a standalone document with one empty page."""
        if current_user.role == UserRole.CLIENT:
            raise ForbiddenException("Client users cannot create documents")
        if document_in.client_id is not None and await crud_client.get(db, document_in.client_id) is None:
            raise NotFoundException("Client", str(document_in.client_id))
        if document_in.department_id is not None:
            department = await crud_department.get(db, document_in.department_id)
            if department is None:
                raise NotFoundException("Department", str(document_in.department_id))
            if document_in.client_id is not None and department.client_id != document_in.client_id:
                raise BadRequestException("Department does not belong to the selected client")

        document = await crud_document.create_from_dict(
            db, obj_in={**document_in.model_dump(), "owner_id": current_user.id}
        )
        db.add(DocumentPage(document_id=document.id, title=DEFAULT_PAGE_TITLE, order=0))
        await db.flush()

        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_created",
            entity_type="document",
            entity_id=document.id,
            details={"title": document.title, "document_type": document.document_type},
        )
        return await self._get_or_404(db, document.id)

    async def get_document(
        self, db: AsyncSession, *, document_id: uuid.UUID, current_user: User
    ) -> Document:
        document = await self._get_or_404(db, document_id)
        self._assert_can_view(document, current_user)
        return document

    async def get_by_share_id(
        self, db: AsyncSession, *, share_id: str, current_user: User
    ) -> Document:
        """Resolve a share link. The reader still needs access to the document."""
        document = await crud_document.get_by_share_id(db, share_id)
        if document is None:
            raise NotFoundException("Document")
        self._assert_can_view(document, current_user)
        return document

    async def list_documents(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        page: int,
        size: int,
        client_id: uuid.UUID | None = None,
        department_id: uuid.UUID | None = None,
        document_type: str | None = None,
        status: str | None = None,
    ) -> tuple[list[Document], int]:
        return await crud_document.list_documents(
            db,
            client_id=client_id,
            department_id=department_id,
            document_type=document_type,
            status=status,
            skip=(page - 1) * size,
            limit=size,
            **scope_for(current_user).as_filters(),
        )

    async def update_document(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        document_in: DocumentUpdate,
        current_user: User,
    ) -> Document:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_manage(document, current_user)
        changes = document_in.model_dump(exclude_unset=True)
        await crud_document.update(db, db_obj=document, obj_in=changes)
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_updated",
            entity_type="document",
            entity_id=document.id,
            details=changes,
        )
        return await self._get_or_404(db, document.id)

    async def update_status(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        status_in: DocumentStatusUpdate,
        current_user: User,
    ) -> Document:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_manage(document, current_user)
        previous = document.status
        if status_in.status == previous:
            return document

        await crud_document.update(db, db_obj=document, obj_in={"status": status_in.status})
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_status_changed",
            entity_type="document",
            entity_id=document.id,
            details={"from": previous, "to": status_in.status},
        )
        logger.info("Document %s status %s -> %s", document.id, previous, status_in.status)
        return await self._get_or_404(db, document.id)

    async def delete_document(
        self, db: AsyncSession, *, document_id: uuid.UUID, current_user: User
    ) -> None:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_manage(document, current_user)
        if document.project_id is not None:
            raise BadRequestException(
                "A project brief is deleted together with its project"
            )
        await db.delete(document)
        await db.flush()
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_deleted",
            entity_type="document",
            entity_id=document_id,
            details={"title": document.title},
        )

    # ── Pages ─────────────────────────────────────────────────────────────────

    async def list_pages(
        self, db: AsyncSession, *, document_id: uuid.UUID, current_user: User
    ) -> list[DocumentPage]:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        return list(document.pages)

    async def add_page(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        page_in: PageCreate,
        current_user: User,
    ) -> DocumentPage:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_edit(current_user)
        if page_in.parent_page_id is not None and page_in.parent_page_id not in {
            p.id for p in document.pages
        }:
            raise BadRequestException("Parent page belongs to another document")

        page = await crud_document_page.create_from_dict(
            db,
            obj_in={
                "document_id": document.id,
                "title": page_in.title,
                "parent_page_id": page_in.parent_page_id,
                "order": await crud_document_page.next_order(db, document.id),
            },
        )
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_page_added",
            entity_type="document",
            entity_id=document.id,
            details={"page_id": page.id, "title": page.title},
        )
        return page

    async def rename_page(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        page_id: uuid.UUID,
        page_in: PageUpdate,
        current_user: User,
    ) -> DocumentPage:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_edit(current_user)
        page = self._page_of(document, page_id)
        return await crud_document_page.update(db, db_obj=page, obj_in={"title": page_in.title})

    async def delete_page(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        page_id: uuid.UUID,
        current_user: User,
    ) -> None:
        document = await self.get_document(db, document_id=document_id, current_user=current_user)
        self._assert_can_edit(current_user)
        page = self._page_of(document, page_id)
        if len(document.pages) <= 1:
            raise BadRequestException("A document must keep at least one page")

        # Subpages move up one level rather than cascading with their parent
        for child in document.pages:
            if child.parent_page_id == page.id:
                child.parent_page_id = page.parent_page_id
        await db.flush()

        document.pages.remove(page)
        await db.flush()
        await activity_service.log(
            db,
            user_id=current_user.id,
            action="document_page_deleted",
            entity_type="document",
            entity_id=document.id,
            details={"page_id": page_id, "title": page.title},
        )

    # ── Access ────────────────────────────────────────────────────────────────

    def can_view(self, document: Document, user: User) -> bool:
        if user.role in UserRole.MANAGERS or document.owner_id == user.id:
            return True
        if user.role == UserRole.CLIENT:
            return document.client_visible and document.client_id == user.client_id
        # Documents outside any department are shared with the whole team
        return document.department_id is None or document.department_id in user.department_uuids

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, document_id: uuid.UUID) -> Document:
        document = await crud_document.get_with_pages(db, document_id)
        if document is None:
            raise NotFoundException("Document", str(document_id))
        return document

    def _assert_can_view(self, document: Document, user: User) -> None:
        if not self.can_view(document, user):
            raise NotFoundException("Document", str(document.id))

    def _assert_can_manage(self, document: Document, user: User) -> None:
        if user.role in UserRole.MANAGERS or document.owner_id == user.id:
            return
        raise ForbiddenException("Only admins, PMs or the document owner can do this")

    def _assert_can_edit(self, user: User) -> None:
        if user.role == UserRole.CLIENT:
            raise ForbiddenException("Client users have read-only access to documents")

    @staticmethod
    def _page_of(document: Document, page_id: uuid.UUID) -> DocumentPage:
        for page in document.pages:
            if page.id == page_id:
                return page
        raise NotFoundException("Page", str(page_id))


document_service = DocumentService()
