# src/cache_aside/application/services/cache_aside.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Cache-Aside Orchestrator

Purpose:
    Run the read/write protocol against the remote store for one call:

        exists(key)?
          yes -> get(key) -> deserialize(return_type) -> return cached
          no  -> invoke() -> serialize -> set(key, ttl + jitter) -> return fresh

Failure semantics:
    - Store errors propagate; a failed existence check is not a miss.
    - A malformed cached payload raises ``SerializationError``; the wrapped
      callable is not invoked as a fallback.
    - If the wrapped callable raises, nothing is written and the error
      propagates unchanged.
    - An entry that expires between ``exists`` and ``get`` is a miss.

Concurrency:
    By default concurrent misses for the same key race: each invokes the
    wrapped callable and the last write wins. With ``single_flight=True``,
    misses within this process share one in-flight invocation per key. Calls
    that joined another caller's load are recorded as ``coalesced``; if that
    load is cancelled they load independently rather than fail.

Layer: application/services
"""
from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from cache_aside.application.interfaces.key_value_store import KeyValueStore
from cache_aside.application.interfaces.structured_data_codec import StructuredDataCodec
from cache_aside.domain.entities.resolved_policy import ResolvedPolicy
from cache_aside.infrastructure.logging.logger import get_json_logger
from cache_aside.infrastructure.observability.metrics import record_cache_operation

__all__ = ["CacheAsideOrchestrator"]

logger = get_json_logger(__name__)


class CacheAsideOrchestrator:
    """Cache-aside read/write protocol over a key-value store.

    Args:
        store: Remote key-value store.
        codec: Codec used for stored payloads.
        single_flight: Collapse concurrent in-process misses per key.
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: StructuredDataCodec,
        *,
        single_flight: bool = False,
    ) -> None:
        self._store = store
        self._codec = codec
        self._single_flight = single_flight
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    @property
    def single_flight(self) -> bool:
        return self._single_flight

    async def intercept(
        self,
        policy: ResolvedPolicy,
        key: str,
        invoke_underlying: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached result for ``key`` or compute and store it.

        Args:
            policy: Resolved policy of the call.
            key: Fully-qualified cache key.
            invoke_underlying: Zero-argument coroutine factory for the body.

        Returns:
            The cached or freshly computed result.
        """
        start = time.perf_counter()
        outcome = "error"
        try:
            if not policy.found:
                result = await invoke_underlying()
                outcome = "bypass"
                return result

            if await self._store.exists(key):
                raw = await self._store.get(key)
                if raw is not None:
                    value = self._codec.deserialize(raw, policy.return_type)
                    outcome = "hit"
                    logger.debug("cache hit", extra={"namespace": policy.namespace, "key": key})
                    return value
                logger.debug(
                    "cache entry expired before read",
                    extra={"namespace": policy.namespace, "key": key},
                )

            logger.debug("cache miss", extra={"namespace": policy.namespace, "key": key})
            if self._single_flight:
                result, joined = await self._load_single_flight(policy, key, invoke_underlying)
                outcome = "coalesced" if joined else "miss"
            else:
                result = await self._load(policy, key, invoke_underlying)
                outcome = "miss"
            return result
        finally:
            record_cache_operation(policy.namespace, outcome, time.perf_counter() - start)

    async def _load(
        self,
        policy: ResolvedPolicy,
        key: str,
        invoke_underlying: Callable[[], Awaitable[Any]],
    ) -> Any:
        result = await invoke_underlying()
        payload = self._codec.serialize(result, policy.return_type)
        await self._store.set(key, payload, policy.effective_ttl_seconds)
        return result

    async def _load_single_flight(
        self,
        policy: ResolvedPolicy,
        key: str,
        invoke_underlying: Callable[[], Awaitable[Any]],
    ) -> tuple[Any, bool]:
        """Load ``key`` once per process; returns ``(result, joined)``.

        ``joined`` is true when the result came from another caller's load.
        """
        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(
                "joining in-flight load",
                extra={"namespace": policy.namespace, "key": key},
            )
            try:
                return await asyncio.shield(pending), True
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if not pending.cancelled() or (task is not None and task.cancelling()):
                    raise
            # The leader was cancelled, not this caller: load independently.
            logger.debug(
                "in-flight load cancelled; retrying",
                extra={"namespace": policy.namespace, "key": key},
            )
            return await self._load_single_flight(policy, key, invoke_underlying)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await self._load(policy, key, invoke_underlying)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            future.exception()  # mark retrieved; followers re-raise it
            raise
        else:
            future.set_result(result)
            return result, False
        finally:
            self._inflight.pop(key, None)
