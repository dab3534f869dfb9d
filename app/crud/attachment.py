"""
Attachment CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.attachment import Attachment
from app.schemas.attachment import AttachmentRead


class CRUDAttachment(CRUDBase[Attachment, AttachmentRead, AttachmentRead]):

    async def create_attachment(
        self,
        db: AsyncSession,
        *,
        filename: str,
        storage_path: str,
        size: int,
        mime_type: str,
        entity_type: str,
        entity_id: uuid.UUID,
        uploaded_by: uuid.UUID,
    ) -> Attachment:
        return await self.create_from_dict(
            db,
            obj_in={
                "filename": filename,
                "storage_path": storage_path,
                "size": size,
                "mime_type": mime_type,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "uploaded_by": uploaded_by,
            },
        )

    async def list_by_entity(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: uuid.UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Attachment], int]:
        query = (
            select(Attachment)
            .where(Attachment.entity_type == entity_type, Attachment.entity_id == entity_id)
            .order_by(Attachment.uploaded_at.desc())
        )
        return await self.paginate(db, query, skip=skip, limit=limit)


crud_attachment = CRUDAttachment(Attachment)
