"""Schemas for vote submission and listing."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cafeteria_survey.models.vote import BadReason, Rating


class VoteCreate(BaseModel):
    """Payload submitted by the public survey page."""

    model_config = ConfigDict(extra="forbid")

    rating: Rating
    location: str = Field(..., min_length=1, max_length=64)
    reason: BadReason | None = None
    comment: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def _check_reason(self) -> "VoteCreate":
        if self.comment is not None and not self.comment.strip():
            self.comment = None
        if self.rating is Rating.BAD:
            if self.reason is None:
                raise ValueError("a reason is required for bad ratings")
            if self.reason is BadReason.OTHER and not self.comment:
                raise ValueError("a comment is required when the reason is 'other'")
        elif self.reason is not None:
            raise ValueError("a reason may only be given for bad ratings")
        return self


class VoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rating: Rating
    reason: BadReason | None
    comment: str | None
    location: str
    location_name: str | None = None
    created_at: datetime


class VoteAccepted(BaseModel):
    success: bool = True
    vote: VoteRead


__all__ = ["VoteAccepted", "VoteCreate", "VoteRead"]
