"""Pydantic schemas for authorized users and sessions."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafeteria_survey.models.authorized_user import UserRole
from cafeteria_survey.schemas.validators import validate_email


class AuthorizedUserCreate(BaseModel):
    email: str = Field(..., max_length=320)
    role: UserRole = Field(default=UserRole.READONLY)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value).lower()


class AuthorizedUserRoleUpdate(BaseModel):
    role: UserRole


class AuthorizedUserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole
    created_at: datetime


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    email: str
    username: str
    role: UserRole


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: SessionUser


__all__ = [
    "AuthorizedUserCreate",
    "AuthorizedUserRead",
    "AuthorizedUserRoleUpdate",
    "LoginRequest",
    "LoginResponse",
    "SessionUser",
]
