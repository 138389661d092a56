# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Base Cache-Aside Exceptions.

Summary:
    Canonical base class for every error raised by the cache-aside core so
    callers can catch one type and still branch on a stable ``code``.

Layer:
    domain/exceptions
"""
from __future__ import annotations

from typing import Any


class CacheAsideError(Exception):
    """Base class for all cache-aside exceptions."""

    code: str = "CACHE_ASIDE_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}
