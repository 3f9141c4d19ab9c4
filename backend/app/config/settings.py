"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Dashboard backend settings.

    All settings can be overridden via environment variables.
    Example: RESILIO_API_BASE_URL=https://resilio.example.com:8443
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream Resilio API
    resilio_api_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the upstream Resilio management API",
    )
    resilio_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token attached to upstream calls",
    )
    upstream_verify_tls: bool = Field(
        default=True,
        description="Verify the upstream TLS certificate. Only disable for self-signed lab setups.",
    )
    upstream_timeout_seconds: float = Field(
        default=20.0,
        description="Timeout for a single upstream request",
    )

    # Data modes
    mock_mode: bool = Field(
        default=False,
        description="Answer every request from local fixtures (demo mode)",
    )
    fallback_to_mock: bool = Field(
        default=True,
        description="Serve fixtures on read endpoints when the upstream call fails",
    )

    # Presentation
    dashboard_title: str = Field(
        default="Resilio Sync Dashboard",
        description="Title shown in the dashboard header",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Bind host for the CLI")
    port: int = Field(default=8000, description="Bind port for the CLI")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:8080",
        ],
        description="Browser origins allowed to call the backend",
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON (True for production)",
    )
    service_name: str = Field(
        default="resilio-dashboard",
        description="Service name for logs",
    )

    @field_validator("resilio_api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def upstream_configured(self) -> bool:
        return bool(self.resilio_api_base_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
