# src/cache_aside/application/services/interceptor.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Cache Interceptor

Purpose:
    Entry point invoked once per intercepted call. Drives the straight
    pipeline: resolve policy -> build key -> cache-aside read/write.

Layer: application/services
"""
from __future__ import annotations

from typing import Any

from cache_aside.application.services.cache_aside import CacheAsideOrchestrator
from cache_aside.application.services.configuration_resolver import ConfigurationResolver
from cache_aside.application.services.key_builder import KeyBuilder
from cache_aside.domain.entities.intercepted_call import InterceptedCall
from cache_aside.infrastructure.logging.logger import get_json_logger

__all__ = ["CacheInterceptor"]

logger = get_json_logger(__name__)


class CacheInterceptor:
    """Compose resolver, key builder and orchestrator for each call.

    Args:
        resolver: Maps call sites to validated policies.
        key_builder: Derives the cache key.
        orchestrator: Runs the cache-aside protocol.
    """

    def __init__(
        self,
        resolver: ConfigurationResolver,
        key_builder: KeyBuilder,
        orchestrator: CacheAsideOrchestrator,
    ) -> None:
        self._resolver = resolver
        self._key_builder = key_builder
        self._orchestrator = orchestrator

    @property
    def resolver(self) -> ConfigurationResolver:
        return self._resolver

    @property
    def orchestrator(self) -> CacheAsideOrchestrator:
        return self._orchestrator

    async def handle(self, call: InterceptedCall) -> Any:
        """Execute ``call`` through the cache.

        Raises:
            ConfigurationError: Invalid directive; the body is not invoked.
            KeyResolutionError: Key derivation failed; the store is not touched.
            StoreCommunicationError: The store failed.
            SerializationError: A payload could not be encoded or decoded.
        """
        policy = self._resolver.resolve(call.declaring_type, call.method_name)
        if not policy.found:
            logger.debug(
                "no caching directive; bypassing cache",
                extra={"call_site": f"{call.declaring_type}.{call.method_name}"},
            )
            return await self._orchestrator.intercept(policy, "", call.invoke)

        key = self._key_builder.build_key(policy, call.argument_names, call.argument_values)
        return await self._orchestrator.intercept(policy, key, call.invoke)
