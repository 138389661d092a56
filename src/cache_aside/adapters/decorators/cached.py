# src/cache_aside/adapters/decorators/cached.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""``@cached`` decorator (Adapters Layer).

Purpose:
    Attach a caching directive to a coroutine function or method by explicit
    decoration. The decorator registers the directive once, at decoration
    time, and on every call captures an :class:`InterceptedCall` and hands it
    to a :class:`CacheInterceptor`.

Example:
    class UserService:
        @cached(key="#user_id + ':' + #status", remote_ttl=300)
        async def list_orders(self, user_id: int, status: str) -> list[Order]:
            ...

        @cached(default_key=True)
        async def greet(self, name: str) -> str:
            ...

Notes:
    - The leading ``self``/``cls`` parameter of methods is not part of the key.
    - Return types are read from annotations; an absent or unresolvable
      annotation decodes cached payloads as plain JSON values.
    - Functions sharing a qualified name but declaring different directives
      (factory-built closures) are registered under ``name~2``, ``name~3``...
      so each resolves its own policy and namespace.
    - A custom ``registry`` only takes effect together with an ``interceptor``
      whose resolver reads that registry.

Layer:
    adapters/decorators
"""

from __future__ import annotations

import functools
import inspect
import typing
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from cache_aside.application.services.configuration_resolver import (
    DirectiveRegistry,
    default_registry,
)
from cache_aside.application.services.interceptor import CacheInterceptor
from cache_aside.dependencies.caching import get_cache_interceptor
from cache_aside.domain.entities.caching_directive import (
    DEFAULT_REMOTE_TTL_S,
    CachingDirective,
    CallSite,
)
from cache_aside.domain.entities.intercepted_call import InterceptedCall
from cache_aside.domain.enums.cache_kind import CacheKind
from cache_aside.domain.exceptions.caching import KeyResolutionError
from cache_aside.infrastructure.logging.logger import get_json_logger

__all__ = ["cached"]

logger = get_json_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_BOUND_FIRST_PARAMS = frozenset({"self", "cls"})


def _is_method(signature: inspect.Signature) -> bool:
    first = next(iter(signature.parameters.values()), None)
    if first is None or first.name not in _BOUND_FIRST_PARAMS:
        return False
    return first.kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )


def _return_type(func: Callable[..., Any], call_site: CallSite) -> Any:
    try:
        return typing.get_type_hints(func).get("return", Any)
    except (NameError, TypeError) as exc:
        logger.debug(
            "return annotation unresolvable; cached payloads decode as plain JSON",
            extra={"call_site": call_site.qualified_name, "error": str(exc)},
        )
        return Any


def _bind_arguments(
    signature: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    *,
    skip_first: bool,
    call_site: CallSite,
) -> tuple[list[str], list[Any]]:
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError as exc:
        raise KeyResolutionError(
            f"Arguments do not match the signature of {call_site.qualified_name}: {exc}",
            details={"call_site": call_site.qualified_name},
        ) from exc
    bound.apply_defaults()
    items = list(bound.arguments.items())
    if skip_first:
        items = items[1:]
    return [name for name, _ in items], [value for _, value in items]


def cached(
    name: str = "",
    key: str = "",
    cache_type: CacheKind = CacheKind.REMOTE,
    remote_ttl: int = DEFAULT_REMOTE_TTL_S,
    remote_random: int = 0,
    *,
    default_key: bool = False,
    registry: DirectiveRegistry | None = None,
    interceptor: CacheInterceptor | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Cache the results of a coroutine function in the remote store.

    Args:
        name: Cache namespace. Defaults to ``<declaring type>.<function>``.
        key: Key template over the parameter names (``#name``). Required unless
            ``default_key`` is set.
        cache_type: Backend tier.
        remote_ttl: TTL in seconds (>= 1).
        remote_random: TTL jitter in seconds; <= 0 draws a random jitter per call.
        default_key: Key on the ``str()`` of every argument instead of a template.
        registry: Registry to record the directive in.
        interceptor: Interceptor to route calls through. Defaults to the
            process-wide one from :func:`get_cache_interceptor`, looked up per call.

    Returns:
        A decorator for ``async def`` callables.

    Raises:
        TypeError: If the decorated callable is not a coroutine function.
    """
    directive = CachingDirective(
        name=name,
        key=key,
        cache_type=cache_type,
        remote_ttl=remote_ttl,
        remote_random=remote_random,
        default_key=default_key,
    )

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@cached requires an async function, got {func!r}")

        declared_site = CallSite.of(func)
        signature = inspect.signature(func)
        skip_first = _is_method(signature)
        return_type = _return_type(func, declared_site)
        # Same-qualname functions with other directives get a suffixed site.
        call_site = (registry if registry is not None else default_registry()).claim(
            declared_site, directive, func, return_type
        )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            names, values = _bind_arguments(
                signature, args, kwargs, skip_first=skip_first, call_site=call_site
            )
            call = InterceptedCall(
                declaring_type=call_site.declaring_type,
                method_name=call_site.method_name,
                argument_names=names,
                argument_values=values,
                return_type=return_type,
                invoke=lambda: func(*args, **kwargs),
            )
            active = interceptor if interceptor is not None else get_cache_interceptor()
            result: R = await active.handle(call)
            return result

        wrapper.call_site = call_site  # type: ignore[attr-defined]
        wrapper.directive = directive  # type: ignore[attr-defined]
        return wrapper

    return decorator
