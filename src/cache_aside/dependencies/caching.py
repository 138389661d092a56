# src/cache_aside/dependencies/caching.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Dependency wiring for the cache-aside pipeline.

Overview:
    Builds the process-default :class:`CacheInterceptor` used by ``@cached``
    when no interceptor is passed explicitly.

Layer:
    dependencies

Design:
    * Lazy: the interceptor (and therefore the Redis client) is created on the
      first decorated call, not at import.
    * Defaults come from :class:`Settings`: jitter range and single-flight.
    * Store, codec and registry can be overridden for tests or embedding;
      ``reset_cache_interceptor()`` drops the singleton.
"""

from __future__ import annotations

import threading

from cache_aside.application.interfaces.key_value_store import KeyValueStore
from cache_aside.application.interfaces.structured_data_codec import StructuredDataCodec
from cache_aside.application.services.cache_aside import CacheAsideOrchestrator
from cache_aside.application.services.configuration_resolver import (
    ConfigurationResolver,
    DirectiveRegistry,
    default_registry,
)
from cache_aside.application.services.interceptor import CacheInterceptor
from cache_aside.application.services.key_builder import KeyBuilder
from cache_aside.config.settings import Settings, get_settings
from cache_aside.infrastructure.caching.redis_store import RedisKeyValueStore
from cache_aside.infrastructure.logging.logger import get_json_logger
from cache_aside.infrastructure.serialization.pydantic_codec import PydanticJsonCodec

__all__ = [
    "build_cache_interceptor",
    "get_cache_interceptor",
    "init_cache_interceptor",
    "reset_cache_interceptor",
]

logger = get_json_logger(__name__)

_interceptor: CacheInterceptor | None = None
_lock = threading.Lock()


def build_cache_interceptor(
    settings: Settings,
    *,
    store: KeyValueStore | None = None,
    codec: StructuredDataCodec | None = None,
    registry: DirectiveRegistry | None = None,
) -> CacheInterceptor:
    """Assemble a fresh interceptor.

    Args:
        settings: Source of caching defaults.
        store: Remote store; defaults to the shared Redis client.
        codec: Payload codec; defaults to pydantic JSON.
        registry: Directive registry; defaults to the process-wide one.

    Returns:
        CacheInterceptor: Ready to handle intercepted calls.
    """
    resolver = ConfigurationResolver(
        registry if registry is not None else default_registry(),
        jitter_range_seconds=settings.cache_ttl_jitter_range_s,
    )
    orchestrator = CacheAsideOrchestrator(
        store if store is not None else RedisKeyValueStore(),
        codec if codec is not None else PydanticJsonCodec(),
        single_flight=settings.cache_single_flight,
    )
    return CacheInterceptor(resolver, KeyBuilder(), orchestrator)


def init_cache_interceptor(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    codec: StructuredDataCodec | None = None,
    registry: DirectiveRegistry | None = None,
) -> CacheInterceptor:
    """Build and install the process-default interceptor, replacing any prior one."""
    global _interceptor
    interceptor = build_cache_interceptor(
        settings or get_settings(),
        store=store,
        codec=codec,
        registry=registry,
    )
    with _lock:
        _interceptor = interceptor
    logger.info(
        "Cache interceptor initialized",
        extra={"single_flight": interceptor.orchestrator.single_flight},
    )
    return interceptor


def get_cache_interceptor() -> CacheInterceptor:
    """Return the process-default interceptor, initializing it on first use."""
    global _interceptor
    with _lock:
        if _interceptor is None:
            _interceptor = build_cache_interceptor(get_settings())
        return _interceptor


def reset_cache_interceptor() -> None:
    """Drop the process-default interceptor (tests, shutdown)."""
    global _interceptor
    with _lock:
        _interceptor = None
