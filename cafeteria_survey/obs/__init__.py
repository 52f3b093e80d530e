"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, mask_email, scrub
from .metrics import (
    HTTP_REQUEST_DURATION,
    HTTP_RESPONSES,
    REPORTS_DISPATCHED_COUNTER,
    VOTES_RECORDED_COUNTER,
    PrometheusMiddleware,
    metrics_router,
    record_dispatch_metric,
    record_vote_metric,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    start_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "HTTP_REQUEST_DURATION",
    "HTTP_RESPONSES",
    "PrometheusMiddleware",
    "REPORTS_DISPATCHED_COUNTER",
    "VOTES_RECORDED_COUNTER",
    "mask_email",
    "metrics_router",
    "record_dispatch_metric",
    "record_vote_metric",
    "scrub",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "start_span",
]
