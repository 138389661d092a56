# src/cache_aside/infrastructure/observability/metrics.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Prometheus metrics for the cache-aside pipeline (registry-aware).

Accessors return a singleton collector bound to the **current**
``prometheus_client.REGISTRY``. The module cache resets automatically when the
active registry changes, so tests that swap the default registry never hit
duplicate-registration errors.

Labels:
    namespace: Cache namespace of the intercepted call.
    outcome: One of ``hit|miss|coalesced|bypass|error``. ``coalesced`` marks a
        single-flight miss served by another caller's in-flight load.

Example:
    get_cache_operations_total().labels(namespace="users", outcome="hit").inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final, TypeVar

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "get_cache_operation_duration_seconds",
    "get_cache_operations_total",
    "record_cache_operation",
]

_log = logging.getLogger(__name__)

_BUCKETS: Final[tuple[float, ...]] = (
    0.001,
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
)
_LABELS: Final[tuple[str, ...]] = ("namespace", "outcome")

_registry_id: int | None = None
_collectors: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()

_C = TypeVar("_C", Counter, Histogram)


def _ensure_registry() -> None:
    """Drop cached collectors if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _collectors.clear()
            _registry_id = rid


def _lookup_existing(name: str, kind: type[_C]) -> _C | None:
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(name: str, help_text: str, kind: type[_C], **kwargs: object) -> _C:
    """Get or create a labelled collector on the active registry.

    Args:
        name: Metric name (snake_case).
        help_text: Human-readable description.
        kind: ``Counter`` or ``Histogram``.
        **kwargs: Extra constructor arguments (e.g. ``buckets``).

    Returns:
        The collector bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _collectors.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _collectors[name] = existing
            return existing

        try:
            col = kind(name, help_text, _LABELS, registry=prom.REGISTRY, **kwargs)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _collectors[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _collectors[name] = col
        return col


def get_cache_operations_total() -> Counter:
    """Return the counter of intercepted calls by namespace and outcome."""
    return _get_or_create(
        "cache_aside_operations_total",
        "Intercepted calls by cache outcome",
        Counter,
    )


def get_cache_operation_duration_seconds() -> Histogram:
    """Return the histogram of end-to-end intercept latency (seconds)."""
    return _get_or_create(
        "cache_aside_operation_duration_seconds",
        "Latency (seconds) of intercepted calls, including the wrapped call on a miss",
        Histogram,
        buckets=_BUCKETS,
    )


def record_cache_operation(namespace: str, outcome: str, duration_s: float) -> None:
    """Record one intercepted call. Never raises into the call path."""
    with suppress(Exception):
        get_cache_operations_total().labels(namespace=namespace, outcome=outcome).inc()
        get_cache_operation_duration_seconds().labels(
            namespace=namespace, outcome=outcome
        ).observe(duration_s)
