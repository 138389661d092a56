"""Cache-aside result caching for async callables.

Public surface:
    cached                  Decorator attaching a caching directive.
    CachingDirective        Declared per-callable caching attributes.
    CacheKind               Backend tier enumeration.
    CacheInterceptor        Per-call pipeline (resolve -> key -> cache-aside).
    init_cache_interceptor  Install the process-default interceptor.
    Errors                  ConfigurationError, KeyResolutionError,
                            StoreCommunicationError, SerializationError.
"""

from __future__ import annotations

from .adapters.decorators.cached import cached
from .application.services.interceptor import CacheInterceptor
from .dependencies.caching import (
    get_cache_interceptor,
    init_cache_interceptor,
    reset_cache_interceptor,
)
from .domain.entities.caching_directive import CachingDirective, CallSite
from .domain.enums.cache_kind import CacheKind
from .domain.exceptions.base import CacheAsideError
from .domain.exceptions.caching import (
    ConfigurationError,
    KeyResolutionError,
    SerializationError,
    StoreCommunicationError,
)

__all__ = [
    "CacheAsideError",
    "CacheInterceptor",
    "CacheKind",
    "CachingDirective",
    "CallSite",
    "ConfigurationError",
    "KeyResolutionError",
    "SerializationError",
    "StoreCommunicationError",
    "cached",
    "get_cache_interceptor",
    "init_cache_interceptor",
    "reset_cache_interceptor",
]
