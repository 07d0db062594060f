# src/logging/logger.py — v3
"""Diagnostic logging setup with JSON and text formatters.

The audit trail of file operations lives in logging/audit.py; this module
only configures the developer-facing ``vanish`` logger. Modules log through
``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from vanish.logging.context import get_context
from vanish.logging.handlers import create_rotating_handler

DEBUG_LOG_NAME = "vanish-debug.log"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with the current operation context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] name [operation] (item): message``"""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
            f"[{record.levelname}]",
            record.name,
        ]
        if ctx.operation:
            parts.append(f"[{ctx.operation}]")
        if ctx.item:
            parts.append(f"({ctx.item})")
        line = " ".join(parts) + f": {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "WARNING",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> None:
    """Configure the ``vanish`` logger.

    Console output goes to stderr so that command output on stdout stays clean.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Optional rotating file receiving the same records.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root_logger = logging.getLogger("vanish")
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Re-init replaces handlers instead of stacking them.
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(
            create_rotating_handler(
                log_file, rotation=rotation, retention=retention, formatter=formatter
            )
        )
