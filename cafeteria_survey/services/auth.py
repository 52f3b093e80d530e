"""Dashboard sign-in: local authorization check followed by a directory bind."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.schemas.user import SessionUser
from cafeteria_survey.services.directory import DirectoryAuthenticator
from cafeteria_survey.services.users import find_user_by_email

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Base exception for sign-in failures."""


class UserNotAuthorizedError(AuthError):
    """Raised when the identity is not listed as an authorized user."""


class InvalidCredentialsError(AuthError):
    """Raised when the directory rejects the supplied password."""


def normalize_username(username: str, settings: Settings | None = None) -> tuple[str, str]:
    """Return ``(username, email)`` for a bare login name or a full address."""

    settings = settings or get_settings()
    value = username.strip()
    if "@" in value:
        local, _, _ = value.partition("@")
        return local.lower(), value.lower()
    value = value.lower()
    return value, f"{value}@{settings.ldap_user_domain}".lower()


def authenticate_user(
    session: Session,
    directory: DirectoryAuthenticator,
    username: str,
    password: str,
    settings: Settings | None = None,
) -> SessionUser:
    """Authorize locally, then verify the password against the directory.

    ``DirectoryUnavailableError`` from the directory propagates unchanged.
    """

    settings = settings or get_settings()
    login, email = normalize_username(username, settings)
    user = find_user_by_email(session, email)
    if user is None:
        logger.info("sign-in refused for unlisted user", extra={"username": login})
        raise UserNotAuthorizedError("User is not authorized to access the dashboard")

    if not directory.authenticate(login, password):
        raise InvalidCredentialsError("Invalid username or password")

    logger.info("user signed in", extra={"username": login, "role": user.role.value})
    return SessionUser(email=user.email, username=login, role=user.role)


__all__ = [
    "AuthError",
    "InvalidCredentialsError",
    "UserNotAuthorizedError",
    "authenticate_user",
    "normalize_username",
]
