"""Tracing helpers for background workers."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from opentelemetry.trace import Span

from cafeteria_survey.core.config import get_settings
from cafeteria_survey.obs import initialise_tracing, start_span
from cafeteria_survey.schemas.report import DispatchSummary


def configure_worker(service_name: str) -> None:
    settings = get_settings()
    if settings.enable_tracing:
        initialise_tracing(
            service_name=service_name,
            endpoint=settings.otel_exporter_endpoint,
            instrument_logging=False,
        )


@contextmanager
def cycle_span(worker: str, minute: datetime) -> Iterator[Span]:
    """Span covering one worker cycle, tagged with the civil minute it evaluated."""

    with start_span(f"{worker}.cycle", worker=worker, minute=minute.strftime("%Y-%m-%d %H:%M")) as span:
        yield span


def record_cycle(span: Span, summary: DispatchSummary) -> None:
    span.set_attribute("reports.processed", summary.processed)
    span.set_attribute("reports.successful", summary.successful)
    span.set_attribute("reports.failed", summary.failed)


__all__ = ["configure_worker", "cycle_span", "record_cycle"]
