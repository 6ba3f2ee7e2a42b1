from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.notification import DevicePlatform


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    title: str
    message: str
    person_id: UUID | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationList(BaseModel):
    items: list[NotificationRead]
    count: int
    unread_count: int
    limit: int
    offset: int


class MarkAllReadResponse(BaseModel):
    updated: int


class DeviceTokenCreate(BaseModel):
    token: str = Field(min_length=1, max_length=512)
    platform: Literal["ios", "android", "web"] | None = None


class DeviceTokenRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    platform: DevicePlatform | None = None
    created_at: datetime
