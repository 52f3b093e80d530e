"""Pydantic schemas for cafeteria resources."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafeteria_survey.schemas.validators import validate_cafeteria_code, validate_ipv4


class CafeteriaBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    authorized_ip: str | None = Field(default=None, max_length=15)

    @field_validator("authorized_ip")
    @classmethod
    def _check_ip(cls, value: str | None) -> str | None:
        return validate_ipv4(value)


class CafeteriaCreate(CafeteriaBase):
    code: str = Field(..., min_length=1, max_length=64)

    @field_validator("code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        return validate_cafeteria_code(value)


class CafeteriaUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    active: bool | None = None
    authorized_ip: str | None = Field(default=None, max_length=15)

    @field_validator("authorized_ip")
    @classmethod
    def _check_ip(cls, value: str | None) -> str | None:
        return validate_ipv4(value)


class CafeteriaRead(CafeteriaBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    active: bool
    created_at: datetime


class CafeteriaPublic(BaseModel):
    """Subset exposed to the unauthenticated survey page."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    description: str | None


class CafeteriaDeleteResult(BaseModel):
    removed: bool
    deactivated: bool
    message: str


__all__ = [
    "CafeteriaBase",
    "CafeteriaCreate",
    "CafeteriaDeleteResult",
    "CafeteriaPublic",
    "CafeteriaRead",
    "CafeteriaUpdate",
]
