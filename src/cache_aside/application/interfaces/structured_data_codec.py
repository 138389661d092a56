# src/cache_aside/application/interfaces/structured_data_codec.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Structured Data Codec Port.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StructuredDataCodec(Protocol):
    """Text codec for cached results.

    Implementations must round-trip every value a cached callable can return
    and raise ``SerializationError`` on failure in either direction.
    """

    def serialize(self, value: Any, source_type: Any = Any) -> str:
        """Encode ``value`` as text, guided by its declared type."""

    def deserialize(self, raw: str | bytes, target_type: Any) -> Any:
        """Decode ``raw`` into an instance of ``target_type``."""
