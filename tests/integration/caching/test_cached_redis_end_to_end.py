# tests/integration/caching/test_cached_redis_end_to_end.py
from __future__ import annotations

import json
from dataclasses import dataclass

import pytest

from cache_aside import (
    CachingDirective,
    ConfigurationError,
    SerializationError,
    cached,
    init_cache_interceptor,
)
from cache_aside.application.services.configuration_resolver import DirectiveRegistry
from cache_aside.config.settings import Settings


@dataclass
class Profile:
    user_id: int
    status: str
    tags: list[str]


class ProfileService:
    """Module-level service so its return annotations resolve."""

    registry = DirectiveRegistry()

    def __init__(self) -> None:
        self.loads = 0

    @cached(key="#userId + ':' + #status", remote_ttl=120, remote_random=10, registry=registry)
    async def profile(self, userId: int, status: str) -> Profile:  # noqa: N803
        self.loads += 1
        return Profile(user_id=userId, status=status, tags=["a", "b"])

    @cached(default_key=True, registry=registry)
    async def greet(self, name: str) -> str:
        self.loads += 1
        return f"hello {name}"

    @cached(key="", registry=registry)
    async def misconfigured(self, name: str) -> str:
        self.loads += 1
        return name


@pytest.fixture
def service(fake_redis) -> ProfileService:
    init_cache_interceptor(Settings(), registry=ProfileService.registry)
    return ProfileService()


@pytest.mark.asyncio
async def test_expression_key_round_trips_through_redis(service, fake_redis) -> None:
    first = await service.profile(42, "active")
    second = await service.profile(42, "active")

    assert first == second == Profile(user_id=42, status="active", tags=["a", "b"])
    assert isinstance(second, Profile)
    assert service.loads == 1

    key = f"{__name__}.ProfileService.profile:42:active"
    assert json.loads(await fake_redis.get(key)) == {"user_id": 42, "status": "active", "tags": ["a", "b"]}
    assert 0 < await fake_redis.ttl(key) <= 130


@pytest.mark.asyncio
async def test_default_key_and_namespace(service, fake_redis) -> None:
    assert await service.greet("Ann") == "hello Ann"

    key = f"{__name__}.ProfileService.greet:[Ann]"
    assert await fake_redis.get(key) == '"hello Ann"'
    ttl = await fake_redis.ttl(key)
    assert 0 < ttl < 90


@pytest.mark.asyncio
async def test_blank_key_is_rejected_when_default_key_not_requested(service, fake_redis) -> None:
    with pytest.raises(ConfigurationError):
        await service.misconfigured("Ann")
    assert service.loads == 0
    assert await fake_redis.dbsize() == 0


@pytest.mark.asyncio
async def test_corrupt_entry_is_surfaced_not_recomputed(service, fake_redis) -> None:
    await fake_redis.set(f"{__name__}.ProfileService.profile:1:x", "{oops", ex=60)

    with pytest.raises(SerializationError):
        await service.profile(1, "x")
    assert service.loads == 0


def test_public_surface_exports_directive() -> None:
    assert CachingDirective().remote_ttl == 60
