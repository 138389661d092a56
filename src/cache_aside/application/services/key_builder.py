# src/cache_aside/application/services/key_builder.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Key Builder

Purpose:
    Derive the fully-qualified cache key ``<namespace>:<suffix>`` for one call.

Strategies:
    - Default: the ``str()`` of every argument in declaration order, rendered
      list-style: ``greet("Ann")`` -> ``[Ann]``.
    - Template: the directive's key template evaluated against the named
      arguments (see :mod:`cache_aside.application.services.key_template`).

Layer: application/services
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from cache_aside.application.services.key_template import compile_key_template
from cache_aside.domain.entities.resolved_policy import ResolvedPolicy
from cache_aside.domain.exceptions.caching import KeyResolutionError

__all__ = ["KeyBuilder", "default_key_suffix"]


def default_key_suffix(argument_values: Sequence[Any]) -> str:
    """Render argument values list-style, e.g. ``[42, active]``."""
    return "[" + ", ".join(str(value) for value in argument_values) + "]"


class KeyBuilder:
    """Builds cache keys from a resolved policy and the call's arguments."""

    def build_key(
        self,
        policy: ResolvedPolicy,
        argument_names: Sequence[str],
        argument_values: Sequence[Any],
    ) -> str:
        """Return ``policy.namespace + ":" + suffix``.

        Args:
            policy: Resolved policy of the call (must be ``found``).
            argument_names: Declared parameter names in order.
            argument_values: Runtime values aligned with ``argument_names``.

        Returns:
            str: Fully-qualified cache key.

        Raises:
            ValueError: If ``policy`` is the bypass policy.
            KeyResolutionError: On arity mismatch or template failure.
        """
        if not policy.found:
            raise ValueError("cannot build a cache key without a caching policy")
        if len(argument_names) != len(argument_values):
            raise KeyResolutionError(
                "Argument names and values differ in length",
                details={
                    "namespace": policy.namespace,
                    "names": len(argument_names),
                    "values": len(argument_values),
                },
            )

        if policy.default_key:
            suffix = default_key_suffix(argument_values)
        else:
            template = compile_key_template(policy.key_expression, tuple(argument_names))
            suffix = template(argument_values)
        return f"{policy.namespace}:{suffix}"
