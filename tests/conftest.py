# tests/conftest.py
from __future__ import annotations

import random
from collections.abc import Iterator
from typing import Any

import fakeredis
import fakeredis.aioredis
import pytest

from cache_aside.application.services.cache_aside import CacheAsideOrchestrator
from cache_aside.application.services.configuration_resolver import (
    ConfigurationResolver,
    DirectiveRegistry,
)
from cache_aside.application.services.interceptor import CacheInterceptor
from cache_aside.application.services.key_builder import KeyBuilder
from cache_aside.dependencies.caching import reset_cache_interceptor
from cache_aside.domain.exceptions.caching import StoreCommunicationError
from cache_aside.infrastructure.caching import redis_client as redis_client_module
from cache_aside.infrastructure.serialization.pydantic_codec import PydanticJsonCodec


class RecordingStore:
    """In-memory KeyValueStore that records every call.

    ``fail_on`` names operations that raise ``StoreCommunicationError``.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()

    def _record(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        if op in self.fail_on:
            raise StoreCommunicationError(f"{op} failed", details={"key": key})

    def ops(self, op: str) -> list[str]:
        return [key for name, key in self.calls if name == op]

    async def exists(self, key: str) -> bool:
        self._record("exists", key)
        return key in self.data

    async def get(self, key: str) -> str | None:
        self._record("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._record("set", key)
        self.data[key] = value
        self.ttls[key] = ttl_seconds


class CountingCall:
    """Async zero-arg callable returning a fixed value and counting invocations."""

    def __init__(self, value: Any = None, error: BaseException | None = None) -> None:
        self.value = value
        self.error = error
        self.count = 0

    async def __call__(self) -> Any:
        self.count += 1
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def codec() -> PydanticJsonCodec:
    return PydanticJsonCodec()


@pytest.fixture
def registry() -> DirectiveRegistry:
    return DirectiveRegistry()


@pytest.fixture
def counting_call() -> type[CountingCall]:
    return CountingCall


@pytest.fixture
def interceptor(
    store: RecordingStore, codec: PydanticJsonCodec, registry: DirectiveRegistry
) -> CacheInterceptor:
    """Interceptor over a fresh registry, a recording store and a seeded RNG."""
    resolver = ConfigurationResolver(registry, rng=random.Random(7))
    return CacheInterceptor(resolver, KeyBuilder(), CacheAsideOrchestrator(store, codec))


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> fakeredis.aioredis.FakeRedis:
    """Wire a FakeRedis into the global Redis client used by the store adapter."""
    fake = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    monkeypatch.setattr(redis_client_module, "_client", fake)
    return fake


@pytest.fixture(autouse=True)
def _reset_default_interceptor() -> Iterator[None]:
    reset_cache_interceptor()
    yield
    reset_cache_interceptor()
