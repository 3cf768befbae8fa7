"""
Structured Logging — One Context Vocabulary

Every module attaches context to its records through ``log_fields``,
which only accepts names from CONTEXT_FIELDS. The JSON formatter nests
that context under a "context" key; the text formatter appends it as
key=value pairs after the message.

Level and format come from settings (COMPOUNDING_LOG_LEVEL,
COMPOUNDING_LOG_FORMAT).

Usage:
    from compounding.logging import get_logger, log_fields
    logger = get_logger("learning")
    logger.info("Learned rule", extra=log_fields(word="flaky", group="medium"))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from compounding.config import settings

NAMESPACE = "compounding"

# Context names shared by the scorer, learning step, reviewer,
# architecture capturer and HTTP host.
CONTEXT_FIELDS = frozenset({
    # scorer / learning
    "score", "level", "group", "word", "rule", "expected_score", "actual_score",
    # reviewer / architecture
    "review_id", "issue_type", "severity", "analysis_id", "file_path",
    # host
    "method", "path", "status_code", "duration_ms",
    # failures
    "error",
})


def log_fields(**fields) -> dict:
    """
    Build the ``extra`` mapping for a log call.

    None values are dropped. Unknown names raise ValueError, so a typo
    in a call site fails its tests instead of vanishing from the logs.
    """
    unknown = set(fields) - CONTEXT_FIELDS
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    return {"context": {k: v for k, v in fields.items() if v is not None}}


def record_context(record: logging.LogRecord) -> dict:
    return getattr(record, "context", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = record_context(record)
        if context:
            entry["context"] = context
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

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Configure the package logger. Call once at app startup."""
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    root = logging.getLogger(NAMESPACE)
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the compounding namespace."""
    return logging.getLogger(f"{NAMESPACE}.{name}")
