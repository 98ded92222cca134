"""Configuration management for Inventory Sync."""

from __future__ import annotations

import logging
from functools import lru_cache

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class RemoteSettings(BaseSettings):
    """Connection settings for the remote inventory service."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8080/api"
    token: str = ""
    # None means no timeout: a hung request only delays the next tick
    timeout_seconds: float | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Default request headers, including the bearer token when set."""
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


class SyncSettings(BaseSettings):
    """Refresh loop and view behaviour settings."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    refresh_interval_seconds: float = 5.0
    search_debounce_seconds: float = 0.3
    notification_history: int = 100


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    @property
    def remote(self) -> RemoteSettings:
        """Get remote inventory service settings."""
        return RemoteSettings()

    @property
    def sync(self) -> SyncSettings:
        """Get refresh loop settings."""
        return SyncSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(log_level: str | None = None) -> None:
    """Configure structlog to drop events below the given level.

    Args:
        log_level: Level name such as "DEBUG" or "INFO". Defaults to
            the configured ``LOG_LEVEL``.
    """
    level_name = (log_level or get_settings().log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        logger.warning("unknown_log_level", log_level=level_name)
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
