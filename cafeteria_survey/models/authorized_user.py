"""Authorized dashboard user ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cafeteria_survey.models.base import Base, CreatedAtMixin


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    READONLY = "readonly"


class AuthorizedUser(CreatedAtMixin, Base):
    """Identity allowed to sign in to the dashboard, with its local role."""

    __tablename__ = "authorized_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda enum_cls: [item.value for item in enum_cls]),
        nullable=False,
        default=UserRole.READONLY,
    )


__all__ = ["AuthorizedUser", "UserRole"]
