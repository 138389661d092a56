# tests/unit/adapters/test_cached_decorator.py
from __future__ import annotations

import random

import pytest
from pydantic import BaseModel

from cache_aside.adapters.decorators.cached import cached
from cache_aside.application.services.cache_aside import CacheAsideOrchestrator
from cache_aside.application.services.configuration_resolver import (
    ConfigurationResolver,
    DirectiveRegistry,
)
from cache_aside.application.services.interceptor import CacheInterceptor
from cache_aside.application.services.key_builder import KeyBuilder
from cache_aside.domain.exceptions.caching import (
    ConfigurationError,
    KeyResolutionError,
    SerializationError,
)


class Order(BaseModel):
    id: int
    status: str


def _build(registry: DirectiveRegistry, store, codec, seed: int = 3) -> CacheInterceptor:
    return CacheInterceptor(
        ConfigurationResolver(registry, rng=random.Random(seed)),
        KeyBuilder(),
        CacheAsideOrchestrator(store, codec),
    )


@pytest.mark.asyncio
async def test_default_key_on_method_excludes_self(interceptor, registry, store) -> None:
    calls: list[str] = []

    class Greeter:
        @cached(default_key=True, registry=registry, interceptor=interceptor)
        async def greet(self, name: str) -> str:
            calls.append(name)
            return f"hello {name}"

    g = Greeter()
    assert await g.greet("Ann") == "hello Ann"
    assert await g.greet("Ann") == "hello Ann"

    namespace = f"{__name__}.test_default_key_on_method_excludes_self.<locals>.Greeter.greet"
    assert Greeter.greet.call_site.qualified_name == namespace
    assert f"{namespace}:[Ann]" in store.data
    assert calls == ["Ann"]


@pytest.mark.asyncio
async def test_default_ttl_is_sixty_plus_drawn_jitter(interceptor, registry, store) -> None:
    @cached(name="quotes", key="#symbol", registry=registry, interceptor=interceptor)
    async def quote(symbol: str) -> int:
        return 100

    for symbol in ("AAPL", "MSFT", "NVDA", "AMZN"):
        await quote(symbol)

    for symbol in ("AAPL", "MSFT", "NVDA", "AMZN"):
        assert 60 <= store.ttls[f"quotes:{symbol}"] < 90


@pytest.mark.asyncio
async def test_explicit_jitter_is_used_verbatim(interceptor, registry, store) -> None:
    @cached(name="quotes", key="#symbol", remote_ttl=300, remote_random=15, registry=registry, interceptor=interceptor)
    async def quote(symbol: str) -> int:
        return 100

    await quote("AAPL")
    assert store.ttls["quotes:AAPL"] == 315


@pytest.mark.asyncio
async def test_expression_key_uses_named_and_keyword_arguments(interceptor, registry, store) -> None:
    @cached(name="orders", key="#user_id + ':' + #status", registry=registry, interceptor=interceptor)
    async def list_orders(user_id: int, status: str = "open") -> list[Order]:
        return [Order(id=user_id, status=status)]

    assert await list_orders(42, status="active") == [Order(id=42, status="active")]
    assert await list_orders(user_id=7) == [Order(id=7, status="open")]
    assert set(store.data) == {"orders:42:active", "orders:7:open"}

    cached_orders = await list_orders(42, "active")
    assert cached_orders == [Order(id=42, status="active")]
    assert isinstance(cached_orders[0], Order)


@pytest.mark.asyncio
async def test_blank_key_without_default_flag_fails_every_call(interceptor, registry, store) -> None:
    calls = 0

    @cached(registry=registry, interceptor=interceptor)
    async def greet(name: str) -> str:
        nonlocal calls
        calls += 1
        return name

    with pytest.raises(ConfigurationError, match="Cache key can not be null or empty"):
        await greet("Ann")
    assert calls == 0
    assert store.calls == []


@pytest.mark.asyncio
async def test_malformed_cached_payload_surfaces(interceptor, registry, store) -> None:
    calls = 0

    @cached(name="counters", key="#name", registry=registry, interceptor=interceptor)
    async def counter(name: str) -> int:
        nonlocal calls
        calls += 1
        return 1

    store.data["counters:hits"] = "{broken"
    with pytest.raises(SerializationError):
        await counter("hits")
    assert calls == 0


@pytest.mark.asyncio
async def test_bad_arguments_are_key_resolution_errors(interceptor, registry) -> None:
    @cached(name="n", key="#a", registry=registry, interceptor=interceptor)
    async def f(a: int) -> int:
        return a

    with pytest.raises(KeyResolutionError):
        await f(1, 2)  # type: ignore[call-arg]


@pytest.mark.asyncio
async def test_unannotated_return_decodes_plain_json(interceptor, registry) -> None:
    @cached(name="raw", key="#k", registry=registry, interceptor=interceptor)
    async def raw(k):  # noqa: ANN001, ANN202
        return {"k": k, "items": [1, 2]}

    assert await raw("x") == {"k": "x", "items": [1, 2]}
    assert await raw("x") == {"k": "x", "items": [1, 2]}


def test_sync_functions_are_rejected(registry) -> None:
    with pytest.raises(TypeError, match="async function"):

        @cached(key="#a", registry=registry)
        def f(a: int) -> int:
            return a


def test_decoration_registers_directive(registry) -> None:
    @cached(name="n", key="#a", remote_ttl=5, registry=registry)
    async def f(a: int) -> int:
        return a

    registration = registry.lookup(f.call_site)
    assert registration is not None
    assert registration.directive is f.directive
    assert registration.directive.remote_ttl == 5
    assert registration.return_type is int
    assert f.__wrapped__ is registration.target
    assert f.__name__ == "f"


@pytest.mark.asyncio
async def test_custom_interceptor_is_isolated(store, codec) -> None:
    registry = DirectiveRegistry()
    local = _build(registry, store, codec)

    @cached(name="iso", key="#a", registry=registry, interceptor=local)
    async def f(a: int) -> int:
        return a * 2

    assert await f(4) == 8
    assert store.data["iso:4"] == "8"


@pytest.mark.asyncio
async def test_factory_built_functions_keep_their_own_policy(interceptor, registry, store) -> None:
    def make(ttl: int):  # noqa: ANN202
        @cached(key="#x", remote_ttl=ttl, remote_random=1, registry=registry, interceptor=interceptor)
        async def fetch(x: int) -> int:
            return x * ttl

        return fetch

    short = make(10)
    long = make(5000)

    assert await short(2) == 20
    assert await long(2) == 10000
    assert short.call_site != long.call_site
    assert long.call_site.method_name == "fetch~2"
    assert store.ttls[f"{short.call_site.qualified_name}:2"] == 11
    assert store.ttls[f"{long.call_site.qualified_name}:2"] == 5001

    again = make(10)
    assert again.call_site == short.call_site
    assert await again(2) == 20
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_result_off_return_annotation_is_not_cached(interceptor, registry, store) -> None:
    calls = 0

    @cached(name="lookups", key="#x", registry=registry, interceptor=interceptor)
    async def lookup(x: int) -> int:
        nonlocal calls
        calls += 1
        return None  # type: ignore[return-value]

    with pytest.raises(SerializationError):
        await lookup(1)
    with pytest.raises(SerializationError):
        await lookup(1)

    assert calls == 2
    assert store.ops("set") == []
