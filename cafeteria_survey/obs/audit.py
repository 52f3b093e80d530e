"""Request audit trail for the survey API.

One JSON line per request is written to the ``audit`` logger. Credentials are
blanked, email addresses keep only their first character and domain, and vote
comments are reduced to their length.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Message

REDACTED = "***"
_CREDENTIAL_FIELDS = frozenset({"password", "token"})
_FREE_TEXT_FIELDS = frozenset({"comment"})


def mask_email(value: str) -> str:
    local, _, domain = value.strip().partition("@")
    if not domain:
        return f"{REDACTED}@{REDACTED}"
    return f"{local[:1]}{REDACTED}@{domain}"


def scrub(value: Any, key: str | None = None) -> Any:
    """Redact ``value`` for the audit log, recursing into containers."""

    if key is not None:
        name = key.lower()
        if name in _CREDENTIAL_FIELDS:
            return REDACTED
        if name in _FREE_TEXT_FIELDS and isinstance(value, str):
            return f"<{len(value)} chars>"
    if isinstance(value, dict):
        return {item_key: scrub(item, item_key) for item_key, item in value.items()}
    if isinstance(value, list):
        return [scrub(item) for item in value]
    if isinstance(value, str) and "@" in value:
        # schedule recipients arrive as one comma separated string
        return ", ".join(mask_email(part) for part in value.split(",") if part.strip())
    return value


@dataclass(slots=True)
class AuditLogRecord:
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None = None
    client_ip: str | None = None
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str, sort_keys=True)


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


def _replay_body(request: Request, body: bytes) -> None:
    delivered = False

    async def receive() -> Message:
        nonlocal delivered
        chunk = b"" if delivered else body
        delivered = True
        return {"type": "http.request", "body": chunk, "more_body": False}

    request._receive = receive  # type: ignore[attr-defined]


class AuditMiddleware(BaseHTTPMiddleware):
    """Writes one scrubbed audit record per request and echoes ``X-Request-ID``."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        logger: logging.Logger | None = None,
        max_body_bytes: int = 16_384,
    ) -> None:
        super().__init__(app)
        self._logger = logger or logging.getLogger("audit")
        self._max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        body = await self._read_body(request)

        response = await call_next(request)

        record = AuditLogRecord(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            actor=scrub(getattr(request.state, "actor_email", None)),
            client_ip=_client_ip(request),
            query={key: scrub(value, key) for key, value in request.query_params.multi_items()},
            body=body,
        )
        self._logger.info(record.to_json())

        response.headers["X-Request-ID"] = request_id
        return response

    async def _read_body(self, request: Request) -> Any:
        raw = await request.body()
        _replay_body(request, raw)
        if not raw:
            return None
        if len(raw) > self._max_body_bytes:
            return f"<{len(raw)} bytes>"
        try:
            return scrub(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "<non-json>"


__all__ = ["AuditLogRecord", "AuditMiddleware", "mask_email", "scrub"]
