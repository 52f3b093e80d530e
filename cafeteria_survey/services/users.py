"""Authorized-user registry operations."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafeteria_survey.models import AuthorizedUser, UserRole
from cafeteria_survey.schemas.user import AuthorizedUserCreate


class UserError(RuntimeError):
    """Base exception for authorized-user errors."""


class UserNotFoundError(UserError):
    pass


class DuplicateUserError(UserError):
    pass


def list_users(session: Session) -> list[AuthorizedUser]:
    return list(session.scalars(select(AuthorizedUser).order_by(AuthorizedUser.email)))


def find_user_by_email(session: Session, email: str) -> AuthorizedUser | None:
    return session.scalar(select(AuthorizedUser).where(AuthorizedUser.email == email.strip().lower()))


def create_user(session: Session, payload: AuthorizedUserCreate) -> AuthorizedUser:
    user = AuthorizedUser(email=payload.email, role=payload.role)
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateUserError(f"Email '{payload.email}' is already in use") from exc
    session.refresh(user)
    return user


def _get_user(session: Session, user_id: int) -> AuthorizedUser:
    user = session.get(AuthorizedUser, user_id)
    if user is None:
        raise UserNotFoundError(f"User {user_id} was not found")
    return user


def update_user_role(session: Session, user_id: int, role: UserRole) -> AuthorizedUser:
    user = _get_user(session, user_id)
    user.role = role
    session.commit()
    session.refresh(user)
    return user


def delete_user(session: Session, user_id: int) -> None:
    session.delete(_get_user(session, user_id))
    session.commit()


__all__ = [
    "DuplicateUserError",
    "UserError",
    "UserNotFoundError",
    "create_user",
    "delete_user",
    "find_user_by_email",
    "list_users",
    "update_user_role",
]
