# src/cache_aside/infrastructure/caching/redis_client.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Async Redis client factory for the remote cache tier.

The client is a process-wide singleton created lazily from settings. It owns
the connection pool; the cache-aside core never holds locks over keys.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from typing import Any, Protocol, cast, runtime_checkable

import redis.asyncio as aioredis

from cache_aside.config.settings import Settings, get_settings
from cache_aside.infrastructure.logging.logger import get_json_logger

__all__ = [
    "RedisClient",
    "init_redis",
    "close_redis",
    "get_redis_client",
    "redis_dependency",
]

logger = get_json_logger(__name__)


@runtime_checkable
class RedisClient(Protocol):
    """Minimal async Redis protocol used by the cache tier."""

    async def ping(self) -> Any: ...
    async def aclose(self) -> None: ...

    async def get(self, key: str) -> Any: ...
    async def set(
        self,
        key: str,
        value: Any,
        *,
        ex: int | None = None,
        px: int | None = None,
        nx: bool | None = None,
        xx: bool | None = None,
    ) -> Any: ...
    async def exists(self, *keys: str) -> Any: ...


_client: RedisClient | None = None


def _create_aioredis_client(settings: Settings) -> RedisClient:
    """Build the concrete asyncio Redis client from settings."""
    _from_url: Any = aioredis.from_url
    client = _from_url(
        url=settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=settings.redis_health_check_interval_s,
        socket_timeout=settings.redis_socket_timeout_s,
        socket_connect_timeout=settings.redis_socket_connect_timeout_s,
    )
    return cast(RedisClient, client)


def init_redis(settings: Settings) -> None:
    """Initialize the global async Redis client (idempotent)."""
    global _client
    if _client is not None:
        return
    _client = _create_aioredis_client(settings)
    logger.info(
        "Redis client initialized",
        extra={"health_check_s": settings.redis_health_check_interval_s},
    )


async def close_redis() -> None:
    """Close the global Redis client at shutdown."""
    global _client
    if _client is not None:
        with suppress(RuntimeError):
            await _client.aclose()
        _client = None


def get_redis_client() -> RedisClient:
    """Return the initialized Redis client (lazy-inits from settings)."""
    if _client is None:
        init_redis(get_settings())
    if _client is None:
        raise RuntimeError("Redis client not initialized (init_redis failed)")
    return _client


@asynccontextmanager
async def redis_dependency() -> AsyncGenerator[RedisClient, None]:
    """Yield the shared Redis client for DI."""
    yield get_redis_client()
