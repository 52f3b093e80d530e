"""Vote ORM model."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cafeteria_survey.models.base import Base


class Rating(str, enum.Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    BAD = "bad"


class BadReason(str, enum.Enum):
    FOOD = "food"
    SERVICE = "service"
    OTHER = "other"


RATING_WEIGHTS: dict[Rating, int] = {Rating.GOOD: 100, Rating.NEUTRAL: 50, Rating.BAD: 0}


class Vote(Base):
    """A single, immutable rating submitted for a cafeteria.

    ``created_at`` holds naive wall-clock time in the configured civil timezone.
    """

    __tablename__ = "votes"
    __table_args__ = (
        Index("ix_votes_location_created_at", "location", "created_at"),
        Index("ix_votes_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rating: Mapped[Rating] = mapped_column(
        Enum(Rating, name="vote_rating", values_callable=lambda enum_cls: [item.value for item in enum_cls]),
        nullable=False,
    )
    reason: Mapped[BadReason | None] = mapped_column(
        Enum(BadReason, name="vote_reason", values_callable=lambda enum_cls: [item.value for item in enum_cls])
    )
    comment: Mapped[str | None] = mapped_column(String(100))
    location: Mapped[str] = mapped_column(String(64), ForeignKey("cafeterias.code"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)

    cafeteria = relationship("Cafeteria", back_populates="votes")


__all__ = ["BadReason", "RATING_WEIGHTS", "Rating", "Vote"]
