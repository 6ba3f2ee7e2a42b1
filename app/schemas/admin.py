from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.schemas.auth import UserRead, UserSummary


class AdminUserDetail(BaseModel):
    id: UUID
    name: str
    nickname: str | None = None
    email: str
    is_admin: bool
    is_approved: bool
    approved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    people_count: int
    documents_count: int
    notifications_count: int
    messages_count: int


class AdminUserActionResponse(BaseModel):
    message: str
    user: UserRead


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    description: str
    subject_type: str | None = None
    subject_id: str | None = None
    properties: dict[str, Any] | None = None
    ip_address: str | None = None
    user: UserSummary | None = None
    occurred_at: datetime
