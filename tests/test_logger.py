"""Tests for the JSON log formatter and the shared logger."""

import sys
import os
import json
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.logger import LOGGER_NAME, HookbotLogger, _JsonFormatter


def _record(msg: str = "Handler failed", exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name=LOGGER_NAME, level=logging.ERROR, pathname=__file__, lineno=1,
        msg=msg, args=(), exc_info=exc_info, func="route",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ── _JsonFormatter ───────────────────────────────────────────────────────────


class TestJsonFormatter:
    def test_standard_fields(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record()))
        assert entry["level"] == "ERROR"
        assert entry["logger"] == "hookbot"
        assert entry["message"] == "Handler failed"
        assert entry["func_name"] == "route"
        assert "traceback" not in entry

    def test_extra_keys_are_flattened(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record(update_id=7, stage="message:greet")))
        assert entry["update_id"] == 7
        assert entry["stage"] == "message:greet"

    def test_extra_cannot_override_standard_fields(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record(level="spoofed")))
        assert entry["level"] == "ERROR"

    def test_unserialisable_values_fall_back_to_str(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record(kinds=frozenset({"message"}))))
        assert entry["kinds"] == "frozenset({'message'})"

    def test_traceback_included(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()
        entry = json.loads(_JsonFormatter().format(_record(exc_info=exc_info)))
        assert "ValueError: boom" in entry["traceback"]


# ── HookbotLogger ────────────────────────────────────────────────────────────


class TestHookbotLogger:
    def test_single_shared_logger(self) -> None:
        assert HookbotLogger.get_logger() is HookbotLogger.get_logger(logging.DEBUG)
        assert HookbotLogger.get_logger().name == LOGGER_NAME

    def test_set_level_applies_to_handlers(self) -> None:
        logger = HookbotLogger.get_logger()
        previous = logger.level
        try:
            HookbotLogger.set_level("DEBUG")
            assert logger.level == logging.DEBUG
            assert all(handler.level == logging.DEBUG for handler in logger.handlers)
        finally:
            HookbotLogger.set_level(previous)
