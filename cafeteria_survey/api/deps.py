"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date

from fastapi import HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cafeteria_survey.core.config import get_settings
from cafeteria_survey.db.session import SessionLocal
from cafeteria_survey.models import Rating
from cafeteria_survey.schemas.stats import ALL_LOCATIONS, StatsPeriod, VoteFilters
from cafeteria_survey.services.directory import DirectoryAuthenticator, LdapDirectoryAuthenticator
from cafeteria_survey.services.email_service import MailTransport, SmtpMailTransport

FILTER_QUERY_KEYS = {"period", "from", "to", "location", "ratings", "min_votes"}


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_directory_authenticator() -> DirectoryAuthenticator:
    settings = get_settings()
    return LdapDirectoryAuthenticator(
        server_url=settings.ldap_server_url,
        user_domain=settings.ldap_user_domain,
        timeout=settings.ldap_timeout_seconds,
    )


def get_mail_transport() -> MailTransport:
    return SmtpMailTransport(timeout=get_settings().smtp_timeout_seconds)


def validation_http_error(exc: ValidationError) -> HTTPException:
    errors = [{"loc": list(item["loc"]), "msg": item["msg"], "type": item["type"]} for item in exc.errors()]
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)


def vote_filter_dependency(*extra_keys: str) -> Callable[..., VoteFilters]:
    """Dependency building :class:`VoteFilters` from query parameters.

    Keys outside the filter set and ``extra_keys`` are rejected, so route-specific
    parameters such as ``limit`` are only accepted where the route declares them.
    """

    allowed = FILTER_QUERY_KEYS | set(extra_keys)

    def dependency(
        request: Request,
        period: StatsPeriod | None = Query(default=None),
        date_from: date | None = Query(default=None, alias="from"),
        date_to: date | None = Query(default=None, alias="to"),
        location: str = Query(default=ALL_LOCATIONS),
        ratings: list[Rating] = Query(default=[]),
        min_votes: int = Query(default=0, ge=0),
    ) -> VoteFilters:
        unknown = sorted(set(request.query_params.keys()) - allowed)
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown filter parameter(s): {', '.join(unknown)}",
            )
        try:
            return VoteFilters(
                period=period,
                date_from=date_from,
                date_to=date_to,
                location=location,
                ratings=ratings,
                min_votes=min_votes,
            )
        except ValidationError as exc:
            raise validation_http_error(exc) from exc

    return dependency


get_vote_filters = vote_filter_dependency()
get_listing_filters = vote_filter_dependency("limit")


__all__ = [
    "get_db_session",
    "get_directory_authenticator",
    "get_listing_filters",
    "get_mail_transport",
    "get_vote_filters",
    "validation_http_error",
    "vote_filter_dependency",
]
