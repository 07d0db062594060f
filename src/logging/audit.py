# src/logging/audit.py — v1
"""Append-only audit trail of cache operations.

Text log (always, when enabled), one line per operation:

    2026-01-31 14:02:11 DELETE /home/u/a.txt -> /home/u/.cache/vanish/17...-a.txt (Size: 10 bytes)

At level "debug" a JSON ledger (vanish.json) additionally keeps the last
1000 records; stats() summarises it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from vanish.core.models import CacheEntry, now_local
from vanish.logging.handlers import create_rotating_handler

if TYPE_CHECKING:
    from vanish.config.settings import Settings

logger = logging.getLogger(__name__)

TEXT_LOG_NAME = "vanish.log"
JSON_LOG_NAME = "vanish.json"
JSON_LOG_LIMIT = 1000
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AuditRecord(BaseModel):
    """One audited operation."""

    timestamp: datetime
    operation: str
    path: str
    cache_path: str | None = None
    size: int = 0
    error: str | None = None

    def to_line(self) -> str:
        stamp = self.timestamp.strftime(TIMESTAMP_FORMAT)
        if self.error:
            return f"{stamp} {self.operation} {self.path} (Error: {self.error})"
        if self.cache_path:
            return (
                f"{stamp} {self.operation} {self.path} -> {self.cache_path} "
                f"(Size: {self.size} bytes)"
            )
        return f"{stamp} {self.operation} {self.path}"

    def to_json_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        for key in ("cache_path", "size", "error"):
            if not data[key]:
                del data[key]
        return data


class _AuditLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        audit: AuditRecord = record.audit  # type: ignore[attr-defined]
        return audit.to_line()


class AuditLog:
    """Audit sink consumed by the cache engine.

    A disabled log accepts every call and writes nothing.
    """

    def __init__(
        self,
        log_dir: Path,
        enabled: bool = True,
        level: str = "info",
        rotation: str = "10MB",
        retention: int = 5,
    ) -> None:
        self._log_dir = Path(log_dir)
        self.enabled = enabled
        self.level = level
        self._rotation = rotation
        self._retention = retention
        self._logger: logging.Logger | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> AuditLog:
        return cls(
            log_dir=settings.log_dir,
            enabled=settings.logging.enabled,
            level=settings.logging.level,
            rotation=settings.logging.rotation,
            retention=settings.logging.retention,
        )

    @property
    def text_log_path(self) -> Path:
        return self._log_dir / TEXT_LOG_NAME

    @property
    def json_log_path(self) -> Path:
        return self._log_dir / JSON_LOG_NAME

    # --- Writing ---

    def log_entry(self, operation: str, entry: CacheEntry) -> None:
        """Record an operation on a cached entry."""
        self._write(
            AuditRecord(
                timestamp=now_local(),
                operation=operation,
                path=entry.original_path,
                cache_path=entry.cache_path,
                size=entry.size_bytes,
            )
        )

    def log_error(self, operation: str, path: str | Path, error: BaseException | str) -> None:
        self._write(
            AuditRecord(
                timestamp=now_local(),
                operation=operation,
                path=str(path),
                error=str(error),
            )
        )

    def log_info(self, operation: str, message: str) -> None:
        """Informational line; dropped at level "error"."""
        if self.level == "error":
            return
        self._write(AuditRecord(timestamp=now_local(), operation=operation, path=message))

    def _write(self, record: AuditRecord) -> None:
        if not self.enabled:
            return
        audit_logger = self._get_logger()
        if audit_logger is not None:
            audit_logger.info(record.operation, extra={"audit": record})
        if self.level == "debug":
            self._append_json(record)

    def _get_logger(self) -> logging.Logger | None:
        if self._logger is not None:
            return self._logger
        try:
            handler = create_rotating_handler(
                self.text_log_path,
                rotation=self._rotation,
                retention=self._retention,
                formatter=_AuditLineFormatter(),
            )
        except OSError as e:
            logger.warning("Audit log unavailable at %s: %s", self.text_log_path, e)
            return None
        # Private, unregistered logger so instances never share handlers.
        audit_logger = logging.Logger("vanish.audit", level=logging.INFO)
        audit_logger.propagate = False
        audit_logger.addHandler(handler)
        self._logger = audit_logger
        return audit_logger

    def _append_json(self, record: AuditRecord) -> None:
        entries = self._read_json_raw()
        entries.append(record.to_json_dict())
        entries = entries[-JSON_LOG_LIMIT:]
        try:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{JSON_LOG_NAME}.", dir=self._log_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle, indent=2)
            os.replace(tmp_name, self.json_log_path)
        except OSError as e:
            logger.warning("Could not update %s: %s", self.json_log_path, e)

    def close(self) -> None:
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)
        self._logger = None

    # --- Reading ---

    def _read_json_raw(self) -> list[dict[str, Any]]:
        try:
            data = json.loads(self.json_log_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", self.json_log_path, e)
            return []
        return data if isinstance(data, list) else []

    def read_records(self) -> list[AuditRecord]:
        records: list[AuditRecord] = []
        for raw in self._read_json_raw():
            try:
                records.append(AuditRecord(**raw))
            except (TypeError, ValidationError):
                continue
        return records

    def stats(self) -> dict[str, Any]:
        """Summarise the JSON ledger.

        Raises:
            RuntimeError: If audit logging is disabled.
        """
        if not self.enabled:
            raise RuntimeError("logging is disabled")
        records = self.read_records()
        stats: dict[str, Any] = {
            "total_operations": len(records),
            "operations_by_type": dict(Counter(r.operation for r in records)),
            "total_size_processed": sum(r.size for r in records),
        }
        if records:
            stats["first_entry"] = records[0].timestamp
            stats["last_entry"] = records[-1].timestamp
        return stats
