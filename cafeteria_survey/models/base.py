"""Declarative base and mixins for ORM models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class CreatedAtMixin:
    """Mixin adding a server-populated creation timestamp."""

    created_at: Mapped[datetime] = mapped_column(DateTime(), server_default=func.now(), nullable=False)


__all__ = ["Base", "CreatedAtMixin"]
