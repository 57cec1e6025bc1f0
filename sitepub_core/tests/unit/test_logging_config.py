"""Unit tests for sitepub_core.logging_config."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from sitepub_core.logging_config import JSONFormatter, configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "Deploy complete. %s", args: tuple = ("(old:a) (new:b)",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("sitepub_core.deploy", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "sitepub_core.deploy"
        assert payload["message"] == "Deploy complete. (old:a) (new:b)"
        assert "timestamp" in payload
        assert "exc_info" not in payload

    def test_deploy_extra_included(self):
        payload = json.loads(JSONFormatter().format(_record(deploy={"revision": "abc"})))
        assert payload["deploy"] == {"revision": "abc"}

    def test_exception_rendered(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        payload = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]


@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    def test_levels(self):
        configure_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG
        configure_logging(debug=False)
        assert logging.getLogger().level == logging.INFO

    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging()
        configure_logging()
        configure_logging(structured=True)
        ours = [h for h in logging.getLogger().handlers if getattr(h, "_sitepub_handler", False)]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, JSONFormatter)
