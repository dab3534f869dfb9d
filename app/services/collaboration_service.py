"""
Real-time collaboration service.
Document content is synced by a hosted service; this module only issues
the signed tokens that service accepts and tracks who is present in a
document.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundException
from app.core.security import create_collaboration_token
from app.crud.document import crud_document_session
from app.models.document import DocumentSession
from app.models.user import User, UserRole
from app.schemas.document import (
    CollaborationAuthRequest,
    CollaborationSession,
    PresenceHeartbeat,
    PresenceJoin,
)
from app.services.document_service import document_service

logger = logging.getLogger(__name__)


class CollaborationService:

    async def authorize(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        request: CollaborationAuthRequest,
        current_user: User,
    ) -> CollaborationSession:
        """
        Issue a sync-service token for one page of a document.
        Client users get a read-only role in the room.
        """
        document = await document_service.get_document(
            db, document_id=document_id, current_user=current_user
        )
        page = None
        if request.page_id is None:
            page = document.pages[0] if document.pages else None
        else:
            page = next((p for p in document.pages if p.id == request.page_id), None)
        if page is None:
            raise NotFoundException("Page", str(request.page_id) if request.page_id else None)

        role = "viewer" if current_user.role == UserRole.CLIENT else "editor"
        token, expires_at = create_collaboration_token(
            str(current_user.id),
            document_id=str(document.id),
            doc_key=page.doc_key,
            name=current_user.display_name,
            role=role,
        )
        logger.info(
            "Collaboration token issued: user_id=%s document_id=%s page_id=%s",
            current_user.id,
            document.id,
            page.id,
        )
        return CollaborationSession(
            url=settings.COLLAB_SYNC_URL,
            token=token,
            doc_key=page.doc_key,
            expires_at=expires_at,
        )

    # ── Presence ──────────────────────────────────────────────────────────────

    async def join(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        join_in: PresenceJoin,
        current_user: User,
    ) -> list[DocumentSession]:
        """Register the caller in a document and return everyone present."""
        await document_service.get_document(db, document_id=document_id, current_user=current_user)
        now = datetime.now(timezone.utc)

        pruned = await crud_document_session.prune_stale(
            db, document_id=document_id, seen_before=self._cutoff(now)
        )
        if pruned:
            logger.debug("Pruned %d stale presence session(s) from %s", pruned, document_id)

        session = await crud_document_session.get_for_user(
            db, document_id=document_id, user_id=current_user.id
        )
        if session is None:
            await crud_document_session.create_from_dict(
                db,
                obj_in={
                    "document_id": document_id,
                    "user_id": current_user.id,
                    "user_agent": join_in.user_agent,
                    "last_seen": now,
                },
            )
        else:
            await crud_document_session.update(
                db,
                db_obj=session,
                obj_in={"status": "active", "user_agent": join_in.user_agent, "last_seen": now},
            )
        return await self.list_present(db, document_id=document_id, current_user=current_user)

    async def heartbeat(
        self,
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        heartbeat_in: PresenceHeartbeat,
        current_user: User,
    ) -> DocumentSession:
        session = await crud_document_session.get_for_user(
            db, document_id=document_id, user_id=current_user.id
        )
        if session is None:
            raise NotFoundException("Presence session")
        return await crud_document_session.update(
            db,
            db_obj=session,
            obj_in={
                "status": heartbeat_in.status,
                "cursor_position": heartbeat_in.cursor_position,
                "last_seen": datetime.now(timezone.utc),
            },
        )

    async def leave(
        self, db: AsyncSession, *, document_id: uuid.UUID, current_user: User
    ) -> None:
        await crud_document_session.remove_for_user(
            db, document_id=document_id, user_id=current_user.id
        )

    async def list_present(
        self, db: AsyncSession, *, document_id: uuid.UUID, current_user: User
    ) -> list[DocumentSession]:
        await document_service.get_document(db, document_id=document_id, current_user=current_user)
        return await crud_document_session.list_active(
            db,
            document_id=document_id,
            seen_after=self._cutoff(datetime.now(timezone.utc)),
        )

    @staticmethod
    def _cutoff(now: datetime) -> datetime:
        return now - timedelta(minutes=settings.PRESENCE_TIMEOUT_MINUTES)


collaboration_service = CollaborationService()
