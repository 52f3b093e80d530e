"""OpenTelemetry wiring shared by the API process and the report worker."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanProcessor,
)
from opentelemetry.trace import Span

TRACER_NAME = "cafeteria_survey"
UNTRACED_URLS = "api/healthz,api/readyz,metrics"


def _span_processor(endpoint: str | None) -> SpanProcessor:
    if endpoint:
        return BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
    return SimpleSpanProcessor(ConsoleSpanExporter())


def initialise_tracing(
    *,
    service_name: str,
    endpoint: str | None = None,
    instrument_logging: bool = True,
) -> TracerProvider:
    """Install the global tracer provider for ``service_name``.

    Spans go to the OTLP collector at ``endpoint`` or, without one, to stdout.
    Calling again for the same service is a no-op.
    """

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider) and current.resource.attributes.get(SERVICE_NAME) == service_name:
        return current

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(_span_processor(endpoint))
    trace.set_tracer_provider(provider)
    if instrument_logging:
        # keep the formats from configs/logging.yaml, only inject trace ids
        LoggingInstrumentor().instrument(set_logging_format=False)
    return provider


def instrument_fastapi_app(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)


def instrument_sqlalchemy_engine(engine: Any) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine)


@contextmanager
def start_span(name: str, **attributes: Any) -> Iterator[Span]:
    """Open a span on the current trace, tagging it with ``attributes``.

    ``None`` values are skipped since span attributes must be primitives.
    """

    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


__all__ = [
    "TRACER_NAME",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "start_span",
]
