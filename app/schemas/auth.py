from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    nickname: str | None = Field(default=None, max_length=255)
    email: EmailStr


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1)
    password: str = Field(min_length=8)
    password_confirmation: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    nickname: str | None = None
    email: str
    is_admin: bool
    is_approved: bool
    approved_at: datetime | None = None
    created_at: datetime


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str


class RegisterResponse(BaseModel):
    message: str
    user: UserRead


class LoginResponse(BaseModel):
    token: str
    user: UserRead
