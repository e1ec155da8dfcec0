"""Unit tests for manifest_engine.logging_setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest
from manifest_engine.config import Settings
from manifest_engine.logging_setup import ROOT_LOGGER_NAME, JSONFormatter, configure_logging


def _record(msg: str, *args: object, exc_info=None, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="manifest_engine.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _restore_package_logger():
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)


# ---------------------------------------------------------------------------
# JSONFormatter
# ---------------------------------------------------------------------------


class TestJSONFormatter:
    def test_basic_fields(self):
        line = JSONFormatter().format(_record("Created snapshot %s", "snap_1"))
        payload = json.loads(line)
        assert payload["level"] == "INFO"
        assert payload["logger"] == "manifest_engine.test"
        assert payload["message"] == "Created snapshot snap_1"
        assert "timestamp" in payload
        assert "context" not in payload
        assert "\n" not in line

    def test_context_extra(self):
        record = _record("Saved", context={"asset_id": "a", "label": "v1"})
        payload = json.loads(JSONFormatter().format(record))
        assert payload["context"] == {"asset_id": "a", "label": "v1"}

    def test_exception_info(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record("failed", exc_info=sys.exc_info())
        payload = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


def _installed(package_logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in package_logger.handlers if getattr(h, "_manifest_engine_handler", False)]


class TestConfigureLogging:
    def test_text_format_by_default(self):
        package_logger = configure_logging(Settings())
        assert package_logger.name == ROOT_LOGGER_NAME
        handlers = _installed(package_logger)
        assert len(handlers) == 1
        assert not isinstance(handlers[0].formatter, JSONFormatter)
        assert package_logger.level == logging.INFO

    def test_structured(self):
        package_logger = configure_logging(Settings(structured_logging=True))
        assert isinstance(_installed(package_logger)[0].formatter, JSONFormatter)

    def test_idempotent(self):
        configure_logging(Settings())
        package_logger = configure_logging(Settings(structured_logging=True))
        assert len(_installed(package_logger)) == 1

    def test_debug_overrides_level(self):
        package_logger = configure_logging(Settings(debug=True, log_level="ERROR"))
        assert package_logger.level == logging.DEBUG

    def test_log_level(self):
        package_logger = configure_logging(Settings(log_level="warning"))
        assert package_logger.level == logging.WARNING
