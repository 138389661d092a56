# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Caching Directive Entities

Purpose:
    Immutable, declaration-time description of how a single callable is cached
    and the stable identifier of the call site it is attached to.

Layer: domain/entities

Notes:
    - ``CachingDirective`` does not validate itself. Validation is owned by the
      configuration resolver so that an invalid directive fails the call with
      a ``ConfigurationError`` instead of failing at import.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cache_aside.domain.enums.cache_kind import CacheKind

DEFAULT_REMOTE_TTL_S = 60


@dataclass(frozen=True, slots=True)
class CachingDirective:
    """Per-callable caching attributes.

    Args:
        name: Cache namespace. Empty means ``<declaring type>.<method>``.
        key: Key template evaluated against the call's named arguments.
        cache_type: Backend tier; only ``CacheKind.REMOTE`` exists.
        remote_ttl: Base time-to-live in seconds. Must be >= 1.
        remote_random: Jitter added to the TTL in seconds. Values <= 0 are
            replaced by a random draw at resolution time.
        default_key: Derive the key from all positional argument values instead
            of a template. ``key`` must then be left blank.
    """

    name: str = ""
    key: str = ""
    cache_type: CacheKind = CacheKind.REMOTE
    remote_ttl: int = DEFAULT_REMOTE_TTL_S
    remote_random: int = 0
    default_key: bool = False


@dataclass(frozen=True, slots=True)
class CallSite:
    """Stable identifier of a cacheable callable.

    Args:
        declaring_type: Dotted path of the enclosing class, or of the module for
            plain functions (e.g. ``billing.service.InvoiceService``).
        method_name: Bare function name.
    """

    declaring_type: str
    method_name: str

    @property
    def qualified_name(self) -> str:
        """Return ``<declaring_type>.<method_name>``."""
        return f"{self.declaring_type}.{self.method_name}"

    @classmethod
    def of(cls, func: Callable[..., Any]) -> CallSite:
        """Derive the call site of a function from its module and qualname."""
        owner, _, name = func.__qualname__.rpartition(".")
        declaring_type = f"{func.__module__}.{owner}" if owner else func.__module__
        return cls(declaring_type=declaring_type, method_name=name)
