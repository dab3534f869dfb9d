"""
Attachment Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

AttachmentEntityType = Literal["task", "comment", "project", "document"]


class AttachmentRead(BaseModel):
    id: uuid.UUID
    filename: str
    size: int
    mime_type: str
    entity_type: str
    entity_id: uuid.UUID
    uploaded_by: uuid.UUID
    uploaded_at: datetime

    model_config = {"from_attributes": True}
