# tests/unit/logging/test_logger.py — v3
"""Tests for logging/logger.py — formatters and setup_logging."""

from __future__ import annotations

import json
import logging

import pytest

from vanish.logging.context import clear_context, set_batch_context, set_item_context
from vanish.logging.logger import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "Hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


@pytest.fixture(autouse=True)
def _reset_vanish_logger():
    yield
    root = logging.getLogger("vanish")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_batch_context("delete", "b1")
        parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"]["operation"] == "delete"
        assert parsed["context"]["batch_id"] == "b1"


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "[INFO]" in output

    def test_includes_operation_and_item(self):
        set_batch_context("restore", "b1")
        set_item_context("/tmp/a")
        output = TextFormatter().format(_record())
        assert "[restore]" in output
        assert "(/tmp/a)" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("vanish")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("vanish")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("vanish").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "diag" / "vanish-debug.log"
        setup_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("vanish.test").info("to file")
        for handler in logging.getLogger("vanish").handlers:
            handler.flush()
        assert "to file" in log_file.read_text()
