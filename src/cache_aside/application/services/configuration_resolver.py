# src/cache_aside/application/services/configuration_resolver.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Configuration Resolver

Purpose:
    Map an intercepted call to its validated caching policy.

Design:
    - Directives are registered once, at decoration time, in an explicit
      ``DirectiveRegistry`` keyed by ``CallSite``. Resolution is a dictionary
      lookup by exact call site; nothing scans class members by name.
    - Validation runs on every resolution so that an invalid directive aborts
      the call with ``ConfigurationError`` before the wrapped body runs.
    - Non-positive jitter is replaced by a fresh draw from
      ``[0, jitter_range_seconds)`` on every resolution.

Layer: application/services
"""
from __future__ import annotations

import random
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from cache_aside.domain.entities.caching_directive import CachingDirective, CallSite
from cache_aside.domain.entities.resolved_policy import ResolvedPolicy
from cache_aside.domain.enums.cache_kind import CacheKind
from cache_aside.domain.exceptions.caching import ConfigurationError
from cache_aside.infrastructure.logging.logger import get_json_logger

__all__ = [
    "TTL_RANDOM_SECONDS_RANGE",
    "ConfigurationResolver",
    "DirectiveRegistry",
    "Registration",
    "default_registry",
]

logger = get_json_logger(__name__)

#: Default upper bound (exclusive) of the substituted TTL jitter.
TTL_RANDOM_SECONDS_RANGE = 30


@dataclass(frozen=True, slots=True)
class Registration:
    """A directive bound to the callable it decorates."""

    directive: CachingDirective
    target: Callable[..., Any]
    return_type: Any = Any


class DirectiveRegistry:
    """Registration table from call site to caching directive.

    Thread-safe for concurrent registration (imports on worker threads).
    """

    def __init__(self) -> None:
        self._entries: dict[CallSite, Registration] = {}
        self._lock = threading.Lock()

    def register(
        self,
        call_site: CallSite,
        directive: CachingDirective,
        target: Callable[..., Any],
        return_type: Any = Any,
    ) -> Registration:
        """Register ``directive`` for ``call_site``.

        A second registration for the same call site replaces the first (a
        redefined function supersedes the old one) and logs a warning.
        """
        registration = Registration(directive=directive, target=target, return_type=return_type)
        with self._lock:
            replaced = call_site in self._entries
            self._entries[call_site] = registration
        if replaced:
            logger.warning(
                "Caching directive re-registered; previous registration replaced",
                extra={"call_site": call_site.qualified_name},
            )
        return registration

    def claim(
        self,
        call_site: CallSite,
        directive: CachingDirective,
        target: Callable[..., Any],
        return_type: Any = Any,
    ) -> CallSite:
        """Register ``directive`` under ``call_site`` or a disambiguated sibling.

        Functions sharing a ``__qualname__`` (factory-built closures, loop
        redefinitions) must not resolve each other's policy. A slot holding the
        same directive and return type is reused; otherwise the method name is
        suffixed with ``~2``, ``~3``... until a free or matching slot is found.

        Returns:
            CallSite: The call site the directive is registered under.
        """
        registration = Registration(directive=directive, target=target, return_type=return_type)
        candidate = call_site
        ordinal = 1
        with self._lock:
            while (existing := self._entries.get(candidate)) is not None:
                if existing.directive == directive and existing.return_type == return_type:
                    break
                ordinal += 1
                candidate = CallSite(
                    declaring_type=call_site.declaring_type,
                    method_name=f"{call_site.method_name}~{ordinal}",
                )
            self._entries[candidate] = registration
        if candidate != call_site:
            logger.info(
                "Caching directive registered under a disambiguated call site",
                extra={
                    "call_site": call_site.qualified_name,
                    "registered_as": candidate.qualified_name,
                },
            )
        return candidate

    def unregister(self, call_site: CallSite) -> None:
        with self._lock:
            self._entries.pop(call_site, None)

    def lookup(self, call_site: CallSite) -> Registration | None:
        return self._entries.get(call_site)

    def __contains__(self, call_site: object) -> bool:
        return call_site in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CallSite]:
        return iter(list(self._entries))


_default_registry = DirectiveRegistry()


def default_registry() -> DirectiveRegistry:
    """Return the process-wide registry used by ``@cached`` by default."""
    return _default_registry


class ConfigurationResolver:
    """Resolve and validate the caching policy of a call site.

    Args:
        registry: Registration table to resolve against.
        jitter_range_seconds: Exclusive upper bound of substituted jitter.
        rng: Random source for jitter draws (injectable for tests).
    """

    def __init__(
        self,
        registry: DirectiveRegistry | None = None,
        *,
        jitter_range_seconds: int = TTL_RANDOM_SECONDS_RANGE,
        rng: random.Random | None = None,
    ) -> None:
        if jitter_range_seconds < 1:
            raise ValueError("jitter_range_seconds must be >= 1")
        self._registry = registry if registry is not None else default_registry()
        self._jitter_range = jitter_range_seconds
        self._rng = rng or random.Random()

    @property
    def registry(self) -> DirectiveRegistry:
        return self._registry

    def resolve(self, declaring_type: str, method_name: str) -> ResolvedPolicy:
        """Return the normalized policy for ``declaring_type.method_name``.

        Args:
            declaring_type: Dotted path of the declaring class or module.
            method_name: Bare function name.

        Returns:
            ResolvedPolicy: ``found=False`` when no directive is registered.

        Raises:
            ConfigurationError: If the registered directive is invalid.
        """
        call_site = CallSite(declaring_type=declaring_type, method_name=method_name)
        registration = self._registry.lookup(call_site)
        if registration is None:
            return ResolvedPolicy.not_found()

        directive = registration.directive
        self._check(directive, call_site)

        jitter = directive.remote_random
        if jitter <= 0:
            jitter = self._rng.randrange(self._jitter_range)

        return ResolvedPolicy(
            found=True,
            namespace=directive.name or call_site.qualified_name,
            key_expression=directive.key,
            default_key=directive.default_key,
            ttl_seconds=directive.remote_ttl,
            effective_jitter_seconds=jitter,
            return_type=registration.return_type,
            target=registration.target,
        )

    @staticmethod
    def _check(directive: CachingDirective, call_site: CallSite) -> None:
        details = {"call_site": call_site.qualified_name}
        if directive.default_key:
            if directive.key.strip():
                raise ConfigurationError(
                    "Cache key expression must be empty when the default key is requested",
                    details=details,
                )
        elif not directive.key.strip():
            raise ConfigurationError("Cache key can not be null or empty", details=details)
        if directive.remote_ttl <= 0:
            raise ConfigurationError("Cache can't have no expiration time", details=details)
        if directive.cache_type != CacheKind.REMOTE:
            raise ConfigurationError(
                f"Unsupported cache type {directive.cache_type!r}", details=details
            )
