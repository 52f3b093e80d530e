"""Vote store: recording and listing survey votes."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria_survey.core.timezone import civil_now, to_civil
from cafeteria_survey.models import Cafeteria, Vote
from cafeteria_survey.obs import record_vote_metric
from cafeteria_survey.schemas.stats import VoteFilters
from cafeteria_survey.schemas.vote import VoteCreate, VoteRead
from cafeteria_survey.services.statistics import apply_vote_filters

logger = logging.getLogger(__name__)


class VoteError(RuntimeError):
    """Base exception for vote submission errors."""


class UnknownLocationError(VoteError):
    """Raised when the vote targets a cafeteria code that does not exist."""


class InactiveLocationError(VoteError):
    """Raised when the target cafeteria is deactivated."""


class SourceNotAllowedError(VoteError):
    """Raised when the submitting address differs from the cafeteria's authorized IP."""


def resolve_client_ip(headers: Mapping[str, str], peer: str | None) -> str | None:
    """Originating address: first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the peer."""

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return peer


def record_vote(
    session: Session,
    payload: VoteCreate,
    *,
    client_ip: str | None,
    now: datetime | None = None,
) -> Vote:
    """Persist a validated vote after checking the cafeteria accepts it."""

    cafeteria = session.scalar(select(Cafeteria).where(Cafeteria.code == payload.location))
    if cafeteria is None:
        raise UnknownLocationError(f"Cafeteria '{payload.location}' was not found")
    if not cafeteria.active:
        raise InactiveLocationError(f"Cafeteria '{payload.location}' is inactive")
    if cafeteria.authorized_ip and client_ip != cafeteria.authorized_ip:
        logger.warning(
            "rejected vote from unauthorized address",
            extra={"location": cafeteria.code, "client_ip": client_ip},
        )
        raise SourceNotAllowedError("This device is not authorized to submit ratings for this cafeteria")

    vote = Vote(
        rating=payload.rating,
        reason=payload.reason,
        comment=payload.comment,
        location=cafeteria.code,
        created_at=to_civil(now) if now is not None else civil_now(),
    )
    session.add(vote)
    session.commit()
    session.refresh(vote)

    record_vote_metric(vote.rating.value)
    logger.info("vote recorded", extra={"location": vote.location, "rating": vote.rating.value})
    return vote


def list_votes(
    session: Session,
    filters: VoteFilters,
    *,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[VoteRead]:
    now = to_civil(now) if now is not None else civil_now()
    statement = apply_vote_filters(
        select(Vote, Cafeteria.name).outerjoin(Cafeteria, Cafeteria.code == Vote.location),
        filters,
        now,
    ).order_by(Vote.created_at.desc(), Vote.id.desc())
    if limit is not None:
        statement = statement.limit(limit)

    votes: list[VoteRead] = []
    for vote, location_name in session.execute(statement):
        item = VoteRead.model_validate(vote)
        item.location_name = location_name
        votes.append(item)
    return votes


__all__ = [
    "InactiveLocationError",
    "SourceNotAllowedError",
    "UnknownLocationError",
    "VoteError",
    "list_votes",
    "record_vote",
    "resolve_client_ip",
]
