# src/cache_aside/domain/enums/cache_kind.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Cache backend enumeration.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class CacheKind(str, Enum):
    """Backend tier a caching directive targets.

    Only the single remote key-value tier is supported; the enum exists so the
    directive surface stays stable if another tier is introduced.
    """

    REMOTE = "remote"
