"""Configuration management for the cafeteria survey service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Cafeteria Survey")
    version: str = Field(default="0.1.0")
    logging_config: str | None = Field(default=None, description="Path to a YAML logging dictConfig.")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="sqlite+pysqlite:///./cafeteria_survey.db")
    timezone: str = Field(default="America/Sao_Paulo", description="Civil timezone used to store vote timestamps.")

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_secret: str = Field(default="cafeteria-survey-secret-key")
    jwt_algorithm: str = Field(default="HS256")
    session_expire_hours: int = Field(default=8)
    session_cookie_name: str = Field(default="auth-token")
    session_cookie_secure: bool = Field(default=False)

    ldap_server_url: str = Field(default="ldap://localhost:389")
    ldap_user_domain: str = Field(default="example.com")
    ldap_timeout_seconds: int = Field(default=5)

    smtp_timeout_seconds: float = Field(default=10.0)
    default_from_name: str = Field(default="Cafeteria Survey")

    cron_secret: str | None = Field(default=None)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
