"""Prometheus instrumentation for the survey API and the report worker."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

UNMATCHED_ROUTE = "<unmatched>"

HTTP_REQUEST_DURATION = Histogram(
    "survey_http_request_duration_seconds",
    "Time spent serving survey API requests.",
    labelnames=("method", "route"),
)
HTTP_RESPONSES = Counter(
    "survey_http_responses_total",
    "Survey API responses, by route template and status class.",
    labelnames=("method", "route", "status_class"),
)
VOTES_RECORDED_COUNTER = Counter(
    "survey_votes_recorded_total",
    "Count of survey votes accepted, by rating.",
    labelnames=("rating",),
)
REPORTS_DISPATCHED_COUNTER = Counter(
    "survey_reports_dispatched_total",
    "Count of scheduled report deliveries, by outcome.",
    labelnames=("outcome",),
)


def route_template(request: Request) -> str:
    """Label requests by route template so ids in the path do not explode cardinality."""

    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", UNMATCHED_ROUTE)
    return UNMATCHED_ROUTE


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        route = route_template(request)
        started = time.perf_counter()
        status_class = "5xx"
        try:
            response = await call_next(request)
            status_class = f"{response.status_code // 100}xx"
            return response
        finally:
            HTTP_REQUEST_DURATION.labels(method=request.method, route=route).observe(time.perf_counter() - started)
            HTTP_RESPONSES.labels(method=request.method, route=route, status_class=status_class).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_vote_metric(rating: str) -> None:
    VOTES_RECORDED_COUNTER.labels(rating=rating).inc()


def record_dispatch_metric(outcome: str) -> None:
    """Count one report delivery attempt (``success`` or ``failure``)."""
    REPORTS_DISPATCHED_COUNTER.labels(outcome=outcome).inc()


__all__ = [
    "HTTP_REQUEST_DURATION",
    "HTTP_RESPONSES",
    "PrometheusMiddleware",
    "REPORTS_DISPATCHED_COUNTER",
    "VOTES_RECORDED_COUNTER",
    "metrics_endpoint",
    "metrics_router",
    "record_dispatch_metric",
    "record_vote_metric",
    "route_template",
]
