# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Resolved Policy Entity

Purpose:
    Validated, normalized caching configuration for one intercepted call.
    Created fresh per invocation (the TTL jitter may be a new random draw each
    time) and discarded when the call completes.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ResolvedPolicy:
    """Normalized caching policy.

    Args:
        found: Whether a directive is registered for the call site. When false
            every other field is empty and the call must bypass the cache.
        namespace: Key prefix; the stored key is ``namespace + ":" + suffix``.
        key_expression: Key template (empty when ``default_key`` is set).
        default_key: Use the positional default key strategy.
        ttl_seconds: Base TTL in seconds (>= 1).
        effective_jitter_seconds: Jitter added to the TTL on write.
        return_type: Static type cached payloads are deserialized into.
        target: The undecorated callable the directive is attached to.
    """

    found: bool
    namespace: str = ""
    key_expression: str = ""
    default_key: bool = False
    ttl_seconds: int = 0
    effective_jitter_seconds: int = 0
    return_type: Any = Any
    target: Callable[..., Any] | None = None

    @property
    def effective_ttl_seconds(self) -> int:
        """TTL written to the store: base TTL plus jitter."""
        return self.ttl_seconds + self.effective_jitter_seconds

    @classmethod
    def not_found(cls) -> ResolvedPolicy:
        """Return the bypass policy for calls without a directive."""
        return cls(found=False)
