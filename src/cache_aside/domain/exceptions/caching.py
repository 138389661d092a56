# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Caching Exceptions

Purpose:
    Error conditions of the cache-aside pipeline. None of them are retried and
    none are swallowed inside the core; every one reaches the immediate caller.

Layer: domain/exceptions
"""
from __future__ import annotations

from .base import CacheAsideError


class ConfigurationError(CacheAsideError):
    """Caching directive is invalid (blank key expression, non-positive TTL).

    Raised before the wrapped callable runs.
    """

    code = "CACHE_CONFIGURATION_ERROR"


class KeyResolutionError(CacheAsideError):
    """Key template could not be parsed, bound, or evaluated.

    Raised before any store access.
    """

    code = "CACHE_KEY_RESOLUTION_ERROR"


class StoreCommunicationError(CacheAsideError):
    """Remote store failed on exists/get/set. Never treated as a cache miss."""

    code = "CACHE_STORE_UNAVAILABLE"


class SerializationError(CacheAsideError):
    """Cached payload is malformed or a result could not be serialized."""

    code = "CACHE_SERIALIZATION_ERROR"
