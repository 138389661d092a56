# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Intercepted Call Entity

Purpose:
    Everything the cache-aside pipeline needs to know about one invocation of
    a decorated callable, captured by the decorator at call time.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class InterceptedCall:
    """Inbound interception record.

    Args:
        declaring_type: Dotted path of the declaring class or module.
        method_name: Bare function name.
        argument_names: Declared parameter names in order, without ``self``/``cls``.
        argument_values: Runtime values aligned with ``argument_names``.
        return_type: Declared return type of the callable (``Any`` if absent).
        invoke: Zero-argument coroutine factory running the wrapped body.
    """

    declaring_type: str
    method_name: str
    argument_names: Sequence[str]
    argument_values: Sequence[Any]
    return_type: Any
    invoke: Callable[[], Awaitable[Any]]
