"""
Structured Logging

Emits one JSON object per log line in production, or a readable
text format during development (DEESCALATOR_LOG_FORMAT=text).

Usage:
    from deescalator.logging import get_logger
    logger = get_logger("api")
    logger.info("Classified", extra={"score": 4.5, "escalation_type": "both"})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("DEESCALATOR_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("DEESCALATOR_LOG_FORMAT", "json")  # "json" or "text"

# Extra fields copied from the record into the JSON line
_EXTRA_FIELDS = (
    "score", "escalation_type", "is_escalatory", "catalog_version",
    "source", "client_id", "error", "error_type", "duration_ms",
    "status_code", "method", "path", "interaction_id",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> logging.Logger:
    """Configure the package logger. Call once at app startup."""
    root = logging.getLogger("deescalator")
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the deescalator namespace."""
    return logging.getLogger(f"deescalator.{name}")
