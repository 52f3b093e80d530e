"""Seed script for demo cafeterias and the first administrator."""
from __future__ import annotations

import logging
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria_survey.core.config import get_settings
from cafeteria_survey.db.session import engine, get_session
from cafeteria_survey.models import AuthorizedUser, Base, Cafeteria, UserRole
from cafeteria_survey.services.email_settings import get_email_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_CAFETERIAS = [
    ("main", "Main Cafeteria", "Ground floor, building A"),
    ("annex", "Annex Cafeteria", "Second floor, building B"),
]


def seed(session: Session, admin_username: str = "admin") -> None:
    """Seed demo cafeterias, an admin user and the default email settings."""

    settings = get_settings()
    existing_codes = set(session.scalars(select(Cafeteria.code)))
    for code, name, description in DEMO_CAFETERIAS:
        if code in existing_codes:
            logger.info("Cafeteria %s already exists", code)
            continue
        session.add(Cafeteria(code=code, name=name, description=description, active=True))
        logger.info("Added cafeteria %s", code)

    admin_email = f"{admin_username}@{settings.ldap_user_domain}".lower()
    if session.scalar(select(AuthorizedUser).where(AuthorizedUser.email == admin_email)) is None:
        session.add(AuthorizedUser(email=admin_email, role=UserRole.ADMIN))
        logger.info("Added admin user %s", admin_email)
    else:
        logger.info("User %s already exists", admin_email)

    session.flush()
    get_email_settings(session)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session, *sys.argv[1:2])


if __name__ == "__main__":
    main()
