# src/cache_aside/application/interfaces/key_value_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Key-Value Store Port.

Synopsis:
    Minimal remote key-value behavior used by the cache-aside orchestrator.
    Enables swapping Redis for any store offering exists/get/set with TTL.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Remote store with per-entry expiry.

    Implementations must raise ``StoreCommunicationError`` on transport or
    server failure and must enforce expiry themselves: an entry reported by
    :meth:`exists` is within its TTL window.
    """

    async def exists(self, key: str) -> bool:
        """Return whether ``key`` is present.

        Args:
            key: Fully-qualified cache key.

        Returns:
            ``True`` if the entry is present.
        """

    async def get(self, key: str) -> str | bytes | None:
        """Return the raw stored payload.

        Args:
            key: Fully-qualified cache key.

        Returns:
            Stored payload, or ``None`` if the entry vanished.
        """

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` with an expiry.

        Args:
            key: Fully-qualified cache key.
            value: Serialized payload.
            ttl_seconds: Time-to-live in seconds (>= 1).
        """
