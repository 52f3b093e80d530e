"""Outbound mail transport over SMTP."""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when the mail server rejects or cannot be reached for a message."""


@dataclass(slots=True, frozen=True)
class SmtpConfig:
    host: str
    port: int
    secure: bool
    from_email: str
    from_name: str | None = None

    @property
    def sender(self) -> str:
        return formataddr((self.from_name, self.from_email)) if self.from_name else self.from_email


@dataclass(slots=True, frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str

    @property
    def maintype(self) -> str:
        return self.mime_type.split("/", 1)[0]

    @property
    def subtype(self) -> str:
        return self.mime_type.split("/", 1)[1]


@dataclass(slots=True)
class MailMessage:
    subject: str
    recipients: list[str]
    html_body: str
    text_body: str | None = None
    attachments: list[Attachment] = field(default_factory=list)


class MailTransport(Protocol):
    def send(self, config: SmtpConfig, message: MailMessage) -> None:
        ...

    def verify(self, config: SmtpConfig) -> None:
        ...


def build_email_message(config: SmtpConfig, message: MailMessage) -> EmailMessage:
    email = EmailMessage()
    email["Subject"] = message.subject
    email["From"] = config.sender
    email["To"] = ", ".join(message.recipients)
    email.set_content(message.text_body or "This message requires an HTML-capable mail client.")
    email.add_alternative(message.html_body, subtype="html")
    for attachment in message.attachments:
        email.add_attachment(
            attachment.content,
            maintype=attachment.maintype,
            subtype=attachment.subtype,
            filename=attachment.filename,
        )
    return email


class SmtpMailTransport:
    """Unauthenticated SMTP delivery; implicit TLS when ``secure`` is set."""

    def __init__(self, *, timeout: float = 10.0) -> None:
        self._timeout = timeout

    def _connect(self, config: SmtpConfig) -> smtplib.SMTP:
        if config.secure:
            return smtplib.SMTP_SSL(config.host, config.port, timeout=self._timeout)
        return smtplib.SMTP(config.host, config.port, timeout=self._timeout)

    def send(self, config: SmtpConfig, message: MailMessage) -> None:
        if not message.recipients:
            raise MailDeliveryError("No recipients")
        email = build_email_message(config, message)
        try:
            with self._connect(config) as server:
                server.send_message(email, from_addr=config.from_email, to_addrs=message.recipients)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "smtp delivery failed",
                extra={"host": config.host, "port": config.port, "error": str(exc)},
            )
            raise MailDeliveryError(f"Failed to send email via {config.host}:{config.port}: {exc}") from exc
        logger.info(
            "email sent",
            extra={"subject": message.subject, "recipients": len(message.recipients)},
        )

    def verify(self, config: SmtpConfig) -> None:
        try:
            with self._connect(config) as server:
                code, reply = server.noop()
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"Could not connect to {config.host}:{config.port}: {exc}") from exc
        if code != 250:
            raise MailDeliveryError(f"Mail server responded {code}: {reply.decode(errors='replace')}")


def send_test_email(
    transport: MailTransport,
    config: SmtpConfig,
    recipient: str,
    *,
    sent_at: str,
    timezone_name: str,
) -> None:
    message = MailMessage(
        subject=f"Email configuration test - {sent_at}",
        recipients=[recipient],
        html_body=(
            "<h2>Email configuration test</h2>"
            "<p>This is a test message to check the SMTP server configuration.</p>"
            f"<p>Sent at: {sent_at}</p>"
            f"<p>Configured timezone: {timezone_name}</p>"
            "<hr><p>If you received this message, the configuration works.</p>"
        ),
    )
    transport.send(config, message)


__all__ = [
    "Attachment",
    "MailDeliveryError",
    "MailMessage",
    "MailTransport",
    "SmtpConfig",
    "SmtpMailTransport",
    "build_email_message",
    "send_test_email",
]
