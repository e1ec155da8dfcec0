"""Logging configuration for the manifest engine.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how records under the ``manifest_engine`` logger are rendered.  With
``MANIFEST_STRUCTURED_LOGGING=true`` each record is emitted as one JSON line
that log aggregators can index without regex parsing::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "manifest_engine.versioning.snapshot_store",
        "message": "Created snapshot snap_1715776496789_k3j9qa",
        "context": {"snapshot_id": "...", "total_assets": 12},
        "exc_info": "Traceback ..."
    }
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any

from manifest_engine.config import Settings

ROOT_LOGGER_NAME = "manifest_engine"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured fields passed via ``extra={"context": {...}}``.
        context = getattr(record, "context", None)
        if context is not None:
            payload["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Idempotent: handlers installed by a previous call are replaced.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_manifest_engine_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._manifest_engine_handler = True  # type: ignore[attr-defined]
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if settings.debug else settings.log_level)
    return package_logger
