"""Application configuration and settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "Index Discovery API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    api_v1_prefix: str = "/api/v1"

    # Logging
    log_level: str = "INFO"

    # Catalog & report files
    catalog_path: str = "firestore.indexes.json"
    report_path: str = "missing-indexes.json"

    # Discovery
    result_limit: int = 1  # Each probe only needs to know whether the query runs
    cross_check_links: bool = True

    # Backend REST API used by the HTTP query executor
    backend_base_url: str = "http://localhost:3000"
    backend_auth_token: str | None = None
    request_timeout: int = 30  # Timeout in seconds


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
