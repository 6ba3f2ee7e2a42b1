from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.schemas.community import EventRead
from app.schemas.person import PersonRead


class UpcomingBirthday(BaseModel):
    id: UUID
    name: str
    date_of_birth: date
    next_birthday: date
    days_until_birthday: int
    turning: int


class DashboardCounts(BaseModel):
    my_people: int
    shared_people: int
    favorites: int
    unread_notifications: int


class DashboardResponse(BaseModel):
    upcoming_birthdays: list[UpcomingBirthday]
    my_people: list[PersonRead]
    shared_people: list[PersonRead]
    counts: DashboardCounts
    upcoming_events: list[EventRead]


class StatisticsResponse(BaseModel):
    overview: dict[str, int]
    gender_distribution: dict[str, int]
    document_types: dict[str, int]
    document_visibility: dict[str, int]
    top_users: list[dict[str, Any]]
    age_groups: dict[str, int]
    additional_metrics: dict[str, float | int]
