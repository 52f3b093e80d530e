"""Cafeteria registry operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafeteria_survey.models import Cafeteria, Vote
from cafeteria_survey.schemas.cafeteria import CafeteriaCreate, CafeteriaUpdate

logger = logging.getLogger(__name__)


class CafeteriaError(RuntimeError):
    """Base exception for cafeteria registry errors."""


class CafeteriaNotFoundError(CafeteriaError):
    """Raised when a cafeteria id or code does not exist."""


class CafeteriaInactiveError(CafeteriaError):
    """Raised when a public lookup targets a deactivated cafeteria."""


class DuplicateCafeteriaError(CafeteriaError):
    """Raised when the requested code is already taken."""


@dataclass(slots=True, frozen=True)
class DeleteOutcome:
    removed: bool
    deactivated: bool
    message: str


def list_cafeterias(session: Session, *, include_inactive: bool = False) -> list[Cafeteria]:
    statement = select(Cafeteria).order_by(Cafeteria.name)
    if not include_inactive:
        statement = statement.where(Cafeteria.active.is_(True))
    return list(session.scalars(statement))


def get_cafeteria(session: Session, cafeteria_id: int) -> Cafeteria:
    cafeteria = session.get(Cafeteria, cafeteria_id)
    if cafeteria is None:
        raise CafeteriaNotFoundError(f"Cafeteria {cafeteria_id} was not found")
    return cafeteria


def get_active_cafeteria_by_code(session: Session, code: str) -> Cafeteria:
    """Lookup used by the public survey page."""
    cafeteria = session.scalar(select(Cafeteria).where(Cafeteria.code == code))
    if cafeteria is None:
        raise CafeteriaNotFoundError(f"Cafeteria '{code}' was not found")
    if not cafeteria.active:
        raise CafeteriaInactiveError(f"Cafeteria '{code}' is inactive")
    return cafeteria


def create_cafeteria(session: Session, payload: CafeteriaCreate) -> Cafeteria:
    cafeteria = Cafeteria(
        code=payload.code,
        name=payload.name,
        description=payload.description,
        authorized_ip=payload.authorized_ip,
        active=True,
    )
    session.add(cafeteria)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateCafeteriaError(f"Code '{payload.code}' is already in use") from exc
    session.refresh(cafeteria)
    logger.info("cafeteria created", extra={"code": cafeteria.code})
    return cafeteria


def update_cafeteria(session: Session, cafeteria_id: int, payload: CafeteriaUpdate) -> Cafeteria:
    cafeteria = get_cafeteria(session, cafeteria_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in {"name", "active"} and value is None:
            continue
        setattr(cafeteria, field, value)
    session.commit()
    session.refresh(cafeteria)
    return cafeteria


def delete_cafeteria(session: Session, cafeteria_id: int) -> DeleteOutcome:
    """Remove a cafeteria, or deactivate it when votes still reference it."""

    cafeteria = get_cafeteria(session, cafeteria_id)
    vote_count = session.scalar(select(func.count(Vote.id)).where(Vote.location == cafeteria.code)) or 0
    if vote_count:
        cafeteria.active = False
        session.commit()
        logger.info(
            "cafeteria deactivated instead of removed",
            extra={"code": cafeteria.code, "votes": vote_count},
        )
        return DeleteOutcome(
            removed=False,
            deactivated=True,
            message="Cafeteria has recorded votes and cannot be removed; it was deactivated instead",
        )

    session.delete(cafeteria)
    session.commit()
    logger.info("cafeteria removed", extra={"code": cafeteria.code})
    return DeleteOutcome(removed=True, deactivated=False, message="Cafeteria removed")


__all__ = [
    "CafeteriaError",
    "CafeteriaInactiveError",
    "CafeteriaNotFoundError",
    "DeleteOutcome",
    "DuplicateCafeteriaError",
    "create_cafeteria",
    "delete_cafeteria",
    "get_active_cafeteria_by_code",
    "get_cafeteria",
    "list_cafeterias",
    "update_cafeteria",
]
