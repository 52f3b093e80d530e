from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENABLE_TRACING", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LDAP_USER_DOMAIN", "example.com")
os.environ.setdefault("CRON_SECRET", "cron-token")
os.environ.setdefault("DEFAULT_FROM_NAME", "Cafeteria Survey Reports")

from cafeteria_survey.api.deps import get_db_session, get_directory_authenticator, get_mail_transport
from cafeteria_survey.api.routes.auth import create_session_token
from cafeteria_survey.core.config import get_settings
from cafeteria_survey.main import app
from cafeteria_survey.models import AuthorizedUser, Base, Cafeteria, UserRole
from cafeteria_survey.schemas.user import SessionUser
from cafeteria_survey.services.directory import DirectoryUnavailableError
from cafeteria_survey.services.email_service import MailDeliveryError, MailMessage, SmtpConfig

engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class StubDirectory:
    """Directory double keyed by bare username."""

    def __init__(self) -> None:
        self.passwords: dict[str, str] = {}
        self.unavailable = False
        self.calls: list[str] = []

    def authenticate(self, username: str, password: str) -> bool:
        self.calls.append(username)
        if self.unavailable:
            raise DirectoryUnavailableError("Directory server is unavailable, try again later")
        return bool(password) and self.passwords.get(username) == password


class RecordingTransport:
    """Mail transport double that records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[SmtpConfig, MailMessage]] = []
        self.verified: list[SmtpConfig] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    def send(self, config: SmtpConfig, message: MailMessage) -> None:
        if self.fail_all or any(recipient in self.fail_for for recipient in message.recipients):
            raise MailDeliveryError("550 mailbox unavailable")
        self.sent.append((config, message))

    def verify(self, config: SmtpConfig) -> None:
        if self.fail_all:
            raise MailDeliveryError(f"Could not connect to {config.host}:{config.port}")
        self.verified.append(config)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def cafeteria(db_session: Session) -> Cafeteria:
    item = Cafeteria(code="main", name="Main Cafeteria", description="Building A", active=True)
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture()
def directory() -> StubDirectory:
    return StubDirectory()


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def client(db_session: Session, directory: StubDirectory, transport: RecordingTransport) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_directory_authenticator] = lambda: directory
    app.dependency_overrides[get_mail_transport] = lambda: transport

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _headers(email: str, role: UserRole) -> dict[str, str]:
    user = SessionUser(email=email, username=email.split("@")[0], role=role)
    return {"Authorization": f"Bearer {create_session_token(user, get_settings())}"}


@pytest.fixture()
def admin_headers(db_session: Session) -> dict[str, str]:
    db_session.add(AuthorizedUser(email="admin@example.com", role=UserRole.ADMIN))
    db_session.commit()
    return _headers("admin@example.com", UserRole.ADMIN)


@pytest.fixture()
def readonly_headers(db_session: Session) -> dict[str, str]:
    db_session.add(AuthorizedUser(email="viewer@example.com", role=UserRole.READONLY))
    db_session.commit()
    return _headers("viewer@example.com", UserRole.READONLY)


@pytest.fixture()
def session_factory(db_session: Session) -> sessionmaker[Session]:
    return TestingSessionLocal
