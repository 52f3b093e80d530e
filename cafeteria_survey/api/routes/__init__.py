"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from cafeteria_survey.api.routes import auth, cafeterias, health, reports, stats, users, votes


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(votes.router, tags=["votes"])
    api_router.include_router(stats.router, tags=["stats"])
    api_router.include_router(cafeterias.router, tags=["cafeterias"])
    api_router.include_router(users.router, tags=["users"])
    api_router.include_router(reports.router, tags=["reports"])

    application.include_router(api_router)


__all__ = ["register_routes"]
