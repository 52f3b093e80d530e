"""Singleton SMTP settings persistence."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria_survey.core.config import get_settings
from cafeteria_survey.models import EmailSettings
from cafeteria_survey.schemas.report import EmailSettingsBase
from cafeteria_survey.services.email_service import SmtpConfig

DEFAULT_SMTP_HOST = "smtp.example.com"
DEFAULT_SMTP_PORT = 25
DEFAULT_FROM_EMAIL = "noreply@example.com"


def get_email_settings(session: Session) -> EmailSettings:
    """Return the settings row, creating it with placeholders on first access."""

    settings = session.scalar(select(EmailSettings).order_by(EmailSettings.id).limit(1))
    if settings is None:
        settings = EmailSettings(
            smtp_host=DEFAULT_SMTP_HOST,
            smtp_port=DEFAULT_SMTP_PORT,
            smtp_secure=False,
            from_email=DEFAULT_FROM_EMAIL,
            from_name=get_settings().default_from_name,
        )
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings


def update_email_settings(session: Session, payload: EmailSettingsBase) -> EmailSettings:
    settings = get_email_settings(session)
    settings.smtp_host = payload.smtp_host
    settings.smtp_port = payload.smtp_port
    settings.smtp_secure = payload.smtp_secure
    settings.from_email = payload.from_email
    settings.from_name = payload.from_name
    session.commit()
    session.refresh(settings)
    return settings


def to_smtp_config(settings: EmailSettings | EmailSettingsBase) -> SmtpConfig:
    return SmtpConfig(
        host=settings.smtp_host,
        port=settings.smtp_port,
        secure=settings.smtp_secure,
        from_email=settings.from_email,
        from_name=settings.from_name,
    )


__all__ = [
    "DEFAULT_FROM_EMAIL",
    "DEFAULT_SMTP_HOST",
    "DEFAULT_SMTP_PORT",
    "get_email_settings",
    "to_smtp_config",
    "update_email_settings",
]
