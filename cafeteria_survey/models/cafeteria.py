"""Cafeteria ORM model."""
from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cafeteria_survey.models.base import Base, CreatedAtMixin


class Cafeteria(CreatedAtMixin, Base):
    """A survey location, optionally restricted to a single source address."""

    __tablename__ = "cafeterias"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    authorized_ip: Mapped[str | None] = mapped_column(String(15))

    votes = relationship("Vote", back_populates="cafeteria", passive_deletes="all")


__all__ = ["Cafeteria"]
