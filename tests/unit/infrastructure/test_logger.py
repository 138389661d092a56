# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import json
import logging

import pytest

from cache_aside.infrastructure.logging.logger import (
    _JsonFormatter,  # internal but importable
    configure_root_logging,
    get_json_logger,
)


def _render(msg: str, level: int = logging.INFO, exc_info=None, **extra) -> dict:
    """Build a record with ``extra`` attributes and return the parsed JSON payload."""
    logger = logging.getLogger("test.logger")
    record = logger.makeRecord(
        name=logger.name,
        level=level,
        fn="test_logger",
        lno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
        extra=extra or None,
    )
    return json.loads(_JsonFormatter().format(record))


def test_configure_root_logging_installs_json_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = logging.getLogger()
    saved = root.handlers[:]
    root.handlers.clear()
    try:
        configure_root_logging()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, _JsonFormatter)

        # Idempotent: no duplicate handlers.
        configure_root_logging("warning")
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved


def test_formatter_emits_stable_keys() -> None:
    payload = _render("cache hit")
    assert payload["message"] == "cache hit"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert "ts" in payload


def test_formatter_merges_extra_fields() -> None:
    payload = _render("cache miss", namespace="orders", key="orders:42")
    assert payload["namespace"] == "orders"
    assert payload["key"] == "orders:42"
    assert "lineno" not in payload


def test_formatter_flattens_exceptions() -> None:
    try:
        raise ValueError("bad payload")
    except ValueError:
        import sys

        payload = _render("failed", level=logging.ERROR, exc_info=sys.exc_info())
    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "bad payload"


def test_formatter_stringifies_non_json_extras() -> None:
    payload = _render("obj", thing=object())
    assert payload["thing"].startswith("<object object")


def test_get_json_logger_propagates() -> None:
    log = get_json_logger("cache_aside.test")
    assert log.name == "cache_aside.test"
    assert log.propagate is True
