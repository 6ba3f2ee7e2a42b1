from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.auth import UserSummary

MAX_PHONE_NUMBERS = 4


# ---------------------------------------------------------------------------
# Person
# ---------------------------------------------------------------------------


class PersonBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    nric: str = Field(min_length=1, max_length=255)
    date_of_birth: date | None = None
    gender: Literal["Male", "Female"] | None = None
    blood_type: str | None = Field(default=None, max_length=10)
    occupation: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=500)
    phone: list[str] | None = None
    email: EmailStr | None = None

    @field_validator(
        "date_of_birth",
        "gender",
        "blood_type",
        "occupation",
        "address",
        "email",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name", "nric", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone", mode="before")
    @classmethod
    def _clean_phone(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        numbers = [str(v).strip() for v in value if v is not None and str(v).strip()]
        if len(numbers) > MAX_PHONE_NUMBERS:
            raise ValueError(f"At most {MAX_PHONE_NUMBERS} phone numbers are allowed.")
        return numbers or None

    @field_validator("phone")
    @classmethod
    def _phone_length(cls, value):
        if value and any(len(number) > 50 for number in value):
            raise ValueError("Phone numbers may not be longer than 50 characters.")
        return value


class PersonCreate(PersonBase):
    pass


class PersonUpdate(PersonBase):
    pass


class PersonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    nric: str
    date_of_birth: date | None = None
    gender: str | None = None
    blood_type: str | None = None
    occupation: str | None = None
    address: str | None = None
    phone: list[str] | None = None
    email: str | None = None
    created_at: datetime
    updated_at: datetime


class AgeBreakdown(BaseModel):
    years: int
    months: int


class PersonDetail(PersonRead):
    owner: UserSummary | None = None
    age: AgeBreakdown | None = None
    next_birthday: date | None = None
    days_until_birthday: int | None = None
    is_favorite: bool = False
    can_manage: bool = False


class NricPrefill(BaseModel):
    date_of_birth: date | None = None
    gender: str | None = None


# ---------------------------------------------------------------------------
# Sharing & favorites
# ---------------------------------------------------------------------------


class ShareCreate(BaseModel):
    user_id: UUID


class ShareRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    shared_with: UserSummary
    shared_by: UserSummary | None = None
    created_at: datetime


class FavoriteState(BaseModel):
    person_id: UUID
    is_favorite: bool
