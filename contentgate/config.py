"""Configuration management for Content-Gate.

This module provides configuration settings for the Content-Gate service.
All configuration values can be overridden via environment variables or .env file.

Environment Variables:
    SANITY_PROJECT_ID: Default project ID for repository calls
    SANITY_DATASET: Default dataset name (default: production)
    SANITY_API_TOKEN: API token sent as a bearer token on every request
    SANITY_API_HOST: API host (default: https://api.sanity.io)
    SANITY_API_VERSION: Dated API version (default: 2024-05-23)
    HTTP_TIMEOUT: Request timeout in seconds (default: 30)
    RELEASE_DOCUMENT_LIMIT: Maximum documents in a release at publish time (default: 50)
    STRICT_FIELD_OPERATIONS: Reject unknown portable text operations instead of
                             skipping them (default: true)
    SUBSCRIPTION_IDLE_TIMEOUT: Seconds after which idle change subscriptions are
                               evicted (default: unset, never evict)
    LOG_LEVEL: Logging level (default: INFO)
    LOG_FORMAT: Logging format, "json" or "text" (default: text)
    HTTP_HOST / HTTP_PORT: Bind address of the HTTP transport (default: 0.0.0.0:8005)
    ENVIRONMENT: Environment name (default: development)
    DEBUG: Enable debug mode (default: false)
"""

import json
import logging
import sys
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for Content-Gate.

    All configuration values can be set via environment variables or .env file.
    Defaults are provided for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Repository connection
    sanity_project_id: Optional[str] = None
    sanity_dataset: str = "production"
    sanity_api_token: Optional[str] = None
    sanity_api_host: str = "https://api.sanity.io"
    sanity_api_version: str = "2024-05-23"
    http_timeout: float = 30.0

    # Domain rules
    release_document_limit: int = 50
    strict_field_operations: bool = True
    subscription_idle_timeout: Optional[float] = None

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "text"

    # HTTP transport
    http_host: str = "0.0.0.0"
    http_port: int = 8005

    # Environment configuration
    environment: str = "development"
    debug: bool = False

    def get_api_version(self) -> str:
        """Get the API version without a leading 'v'."""
        return self.sanity_api_version.lstrip("v")

    def project_url(self, project_id: str, api_version: Optional[str] = None) -> str:
        """Build the versioned base URL for a project's API."""
        version = (api_version or self.get_api_version()).lstrip("v")
        scheme, _, host = self.sanity_api_host.rstrip("/").partition("://")
        return f"{scheme}://{project_id}.{host}/v{version}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()


class JsonLogFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging on stderr from settings.

    stdout is reserved for the stdio MCP transport, so handlers always write
    to stderr.
    """
    settings = settings or get_settings()
    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format.lower() == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    logging.basicConfig(
        level=settings.log_level.upper(),
        handlers=[handler],
        force=True,
    )
