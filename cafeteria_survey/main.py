"""ASGI entrypoint for the cafeteria survey API."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cafeteria_survey.api.routes import register_routes
from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.core.logging import configure_logging
from cafeteria_survey.db.session import engine
from cafeteria_survey.models import Base
from cafeteria_survey.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)

logger = logging.getLogger(__name__)


def _lifespan(settings: Settings, create_tables: bool):
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if create_tables:
            Base.metadata.create_all(bind=engine)
        logger.info(
            "survey api started",
            extra={"timezone": settings.timezone, "database": engine.url.render_as_string(hide_password=True)},
        )
        yield
        engine.dispose()

    return lifespan


def create_application(settings: Settings | None = None, *, create_tables: bool = True) -> FastAPI:
    """Build the API: survey routers under ``/api``, audit and metrics middleware, optional tracing."""
    configure_logging()
    settings = settings or get_settings()

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        lifespan=_lifespan(settings, create_tables),
    )

    application.add_middleware(AuditMiddleware)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()
