# src/cache_aside/infrastructure/serialization/pydantic_codec.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""JSON codec backed by pydantic ``TypeAdapter``.

Synopsis:
    Implements the ``StructuredDataCodec`` port. Values are encoded as UTF-8
    JSON text and decoded strictly into the declared return type of the cached
    callable, so a cached ``list[Invoice]`` comes back as ``Invoice`` objects
    rather than raw dicts.

Design:
    * One ``TypeAdapter`` per type, LRU-cached (adapter construction builds a
      core schema and is comparatively expensive).
    * ``Any`` (no return annotation) decodes to plain JSON values.
    * Any pydantic validation/serialization failure, or malformed JSON, raises
      ``SerializationError``; callers never see pydantic exceptions.

Layer:
    infrastructure/serialization
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from cache_aside.application.interfaces.structured_data_codec import StructuredDataCodec
from cache_aside.domain.exceptions.caching import SerializationError

__all__ = ["PydanticJsonCodec"]


@lru_cache(maxsize=512)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def _adapter_for(tp: Any) -> TypeAdapter[Any]:
    try:
        return _adapter(tp)
    except PydanticSchemaGenerationError as exc:
        raise SerializationError(
            f"Type {tp!r} is not supported by the cache codec",
            details={"type": repr(tp)},
        ) from exc
    except TypeError:
        # Unhashable type expressions cannot be memoized.
        return TypeAdapter(tp)


class PydanticJsonCodec(StructuredDataCodec):
    """JSON text codec with typed decoding."""

    def serialize(self, value: Any, source_type: Any = Any) -> str:
        """Encode ``value`` as JSON text.

        Args:
            value: Result of the wrapped callable.
            source_type: Declared return type guiding serialization.

        Returns:
            str: UTF-8 JSON document.

        Raises:
            SerializationError: If the value cannot be encoded.
        """
        try:
            # A value off its declared type would be written but never decode.
            return _adapter_for(source_type).dump_json(value, warnings="error").decode("utf-8")
        except PydanticSerializationError as exc:
            raise SerializationError(
                "Result could not be serialized for caching",
                details={"type": type(value).__name__, "declared": repr(source_type)},
            ) from exc

    def deserialize(self, raw: str | bytes, target_type: Any) -> Any:
        """Decode JSON text into ``target_type``.

        Args:
            raw: Stored payload.
            target_type: Declared return type of the cached callable.

        Returns:
            The decoded value.

        Raises:
            SerializationError: If the payload is malformed or does not match
                ``target_type``.
        """
        try:
            return _adapter_for(target_type).validate_json(raw)
        except ValidationError as exc:
            raise SerializationError(
                "Cached payload could not be decoded",
                details={"type": repr(target_type), "errors": exc.error_count()},
            ) from exc
