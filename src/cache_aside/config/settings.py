# src/cache_aside/config/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Cache-Aside Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated process configuration for the cache-aside layer: how to
    reach the remote store and process-wide caching defaults. Per-callable
    caching attributes are declared on the decorator, not here.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown fields.
    - Explicit `validation_alias` per field so env names are greppable.
    - Singleton accessor `get_settings()` with LRU cache.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed configuration for the cache-aside layer."""

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )

    # ---------------------------
    # Remote store
    # ---------------------------
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL of the remote cache tier.",
        validation_alias="REDIS_URL",
    )
    redis_health_check_interval_s: int = Field(
        default=15,
        ge=1,
        le=3600,
        description="Health check interval for the Redis client in seconds.",
        validation_alias="REDIS_HEALTH_CHECK_INTERVAL_S",
    )
    redis_socket_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket timeout in seconds for Redis commands.",
        validation_alias="REDIS_SOCKET_TIMEOUT_S",
    )
    redis_socket_connect_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket connect timeout in seconds for Redis.",
        validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT_S",
    )

    # ---------------------------
    # Caching defaults
    # ---------------------------
    cache_ttl_jitter_range_s: int = Field(
        default=30,
        ge=1,
        le=24 * 60 * 60,
        description=(
            "Upper bound (exclusive) of the random TTL jitter drawn when a directive "
            "declares remote_random <= 0."
        ),
        validation_alias="CACHE_TTL_JITTER_RANGE_S",
    )
    cache_single_flight: bool = Field(
        default=False,
        description=(
            "Collapse concurrent in-process misses for the same key into one "
            "underlying call. Off by default; concurrent misses then race and the "
            "last write wins."
        ),
        validation_alias="CACHE_SINGLE_FLIGHT",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level applied by configure_root_logging().",
        validation_alias="LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.error("Invalid cache-aside configuration", extra={"errors": exc.errors()})
        raise RuntimeError("Invalid cache-aside configuration") from exc

    logger.info(
        "Settings initialized",
        extra={
            "environment": settings.environment.value,
            "redis_url_set": bool(settings.redis_url),
            "jitter_range_s": settings.cache_ttl_jitter_range_s,
            "single_flight": settings.cache_single_flight,
        },
    )
    return settings
