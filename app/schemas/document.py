from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    name: str
    original_name: str
    file_size: int
    mime_type: str
    is_public: bool
    created_at: datetime
    updated_at: datetime


class DocumentVisibilityUpdate(BaseModel):
    is_public: bool
