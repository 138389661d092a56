# src/cache_aside/infrastructure/caching/redis_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Redis Key-Value Store.

Synopsis:
    Thin adapter implementing the ``KeyValueStore`` port on top of the shared
    Redis client from ``infrastructure/caching/redis_client.py``.

Design:
    * Uses an injected client, or the global one via ``get_redis_client()``
      resolved per operation so tests can swap it.
    * Every ``redis.exceptions.RedisError`` surfaces as
      ``StoreCommunicationError``; nothing is retried and a failed existence
      check is never reported as a miss.
    * Entries are always written with ``SET key value EX ttl``.

Layer:
    infrastructure/caching
"""

from __future__ import annotations

from redis.exceptions import RedisError

from cache_aside.application.interfaces.key_value_store import KeyValueStore
from cache_aside.domain.exceptions.caching import StoreCommunicationError
from cache_aside.infrastructure.caching.redis_client import RedisClient, get_redis_client

__all__ = ["RedisKeyValueStore"]


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed implementation of the KeyValueStore Protocol."""

    def __init__(self, client: RedisClient | None = None) -> None:
        """Initialize the store adapter.

        Args:
            client: Optional explicit client. Defaults to the global client.
        """
        self._client = client

    def _redis(self) -> RedisClient:
        return self._client if self._client is not None else get_redis_client()

    async def exists(self, key: str) -> bool:
        try:
            count = await self._redis().exists(key)
        except RedisError as exc:
            raise StoreCommunicationError(
                "Cache store existence check failed",
                details={"operation": "exists", "key": key},
            ) from exc
        return bool(count)

    async def get(self, key: str) -> str | bytes | None:
        try:
            return await self._redis().get(key)
        except RedisError as exc:
            raise StoreCommunicationError(
                "Cache store read failed",
                details={"operation": "get", "key": key},
            ) from exc

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError(
                f"refusing to write cache entry without expiration (ttl={ttl_seconds})"
            )
        try:
            await self._redis().set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise StoreCommunicationError(
                "Cache store write failed",
                details={"operation": "set", "key": key, "ttl_seconds": ttl_seconds},
            ) from exc
