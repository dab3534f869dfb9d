"""
Attachment routes.
/api/v1/attachments/{entity_type}/{entity_id} for tasks, comments, projects
and documents. Supports multipart/form-data file upload.
"""
from __future__ import annotations

import os
import uuid

from fastapi import APIRouter, Query, UploadFile, status
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.dependencies import CurrentUser, DBSession
from app.core.exceptions import FileTooLargeException, ForbiddenException, NotFoundException
from app.crud.attachment import crud_attachment
from app.models.user import UserRole
from app.schemas.attachment import AttachmentEntityType, AttachmentRead
from app.schemas.pagination import PaginatedResponse
from app.services.activity_service import activity_service
from app.services.entities import resolve_entity

router = APIRouter(prefix="/attachments", tags=["Attachments"])


@router.get(
    "/{attachment_id}/download",
    response_class=FileResponse,
    summary="Download an attachment",
)
async def download_attachment(
    attachment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> FileResponse:
    attachment = await crud_attachment.get(db, attachment_id)
    if attachment is None:
        raise NotFoundException("Attachment", str(attachment_id))
    await resolve_entity(
        db,
        entity_type=attachment.entity_type,
        entity_id=attachment.entity_id,
        current_user=current_user,
    )
    if not os.path.exists(attachment.storage_path):
        raise NotFoundException("Attachment file")
    return FileResponse(
        attachment.storage_path,
        media_type=attachment.mime_type,
        filename=attachment.filename,
    )


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=PaginatedResponse[AttachmentRead],
    summary="List attachments of a record",
)
async def list_attachments(
    entity_type: AttachmentEntityType,
    entity_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[AttachmentRead]:
    await resolve_entity(db, entity_type=entity_type, entity_id=entity_id, current_user=current_user)
    attachments, total = await crud_attachment.list_by_entity(
        db, entity_type=entity_type, entity_id=entity_id, skip=(page - 1) * size, limit=size
    )
    return PaginatedResponse.build(
        attachments, total, page=page, size=size, convert=AttachmentRead.model_validate
    )


@router.post(
    "/{entity_type}/{entity_id}",
    response_model=AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file to a record",
)
async def upload_attachment(
    entity_type: AttachmentEntityType,
    entity_id: uuid.UUID,
    file: UploadFile,
    current_user: CurrentUser,
    db: DBSession,
) -> AttachmentRead:
    if current_user.role == UserRole.CLIENT:
        raise ForbiddenException("Client users cannot upload files")
    await resolve_entity(db, entity_type=entity_type, entity_id=entity_id, current_user=current_user)

    content = await file.read()
    if len(content) > settings.max_file_size_bytes:
        raise FileTooLargeException(settings.MAX_FILE_SIZE_MB)

    # Stored name never reuses the client path
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    original_name = os.path.basename(file.filename or "") or "unnamed"
    storage_path = os.path.join(settings.UPLOAD_DIR, f"{uuid.uuid4()}_{original_name}")
    with open(storage_path, "wb") as f:
        f.write(content)

    attachment = await crud_attachment.create_attachment(
        db,
        filename=original_name,
        storage_path=storage_path,
        size=len(content),
        mime_type=file.content_type or "application/octet-stream",
        entity_type=entity_type,
        entity_id=entity_id,
        uploaded_by=current_user.id,
    )
    await activity_service.log(
        db,
        user_id=current_user.id,
        action="attachment_uploaded",
        entity_type=entity_type,
        entity_id=entity_id,
        details={"attachment_id": attachment.id, "filename": original_name},
    )
    return AttachmentRead.model_validate(attachment)


@router.delete(
    "/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an attachment",
)
async def delete_attachment(
    attachment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    attachment = await crud_attachment.get(db, attachment_id)
    if attachment is None:
        raise NotFoundException("Attachment", str(attachment_id))
    if attachment.uploaded_by != current_user.id and current_user.role != UserRole.ADMIN:
        raise ForbiddenException("Only the uploader can delete this attachment")

    if os.path.exists(attachment.storage_path):
        os.remove(attachment.storage_path)
    await crud_attachment.remove(db, id=attachment_id)
    await activity_service.log(
        db,
        user_id=current_user.id,
        action="attachment_deleted",
        entity_type=attachment.entity_type,
        entity_id=attachment.entity_id,
        details={"attachment_id": attachment_id, "filename": attachment.filename},
    )
