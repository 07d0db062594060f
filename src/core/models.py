# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

CacheEntry and Index mirror the on-disk index.json layout; the remaining
models are ephemeral per-invocation results.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

INDEX_VERSION = "1.0"

# Go writes RFC 3339 timestamps with nanoseconds; Python stops at micro.
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def now_local() -> datetime:
    """Current time as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


def _trim_fraction(value: Any) -> Any:
    if isinstance(value, str):
        return _EXTRA_FRACTION.sub(r"\1", value, count=1)
    return value


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


# === INDEX (persisted) ===


class CacheEntry(BaseModel):
    """One cached item: what was moved, from where, and when."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    original_path: str
    delete_time: datetime = Field(alias="delete_date")
    cache_path: str
    is_directory: bool = False
    file_count: int = 0
    size_bytes: int = Field(default=0, alias="size")
    protected: bool = Field(default=False, alias="is_protected")
    backup_path: str | None = None

    @field_validator("delete_time", mode="before")
    @classmethod
    def _accept_nanoseconds(cls, v: Any) -> Any:
        return _trim_fraction(v)

    @field_validator("delete_time")
    @classmethod
    def _localize(cls, v: datetime) -> datetime:
        return _ensure_aware(v)

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        # Matches the omitempty fields of existing index files.
        for key in ("file_count", "is_protected", "protected", "backup_path"):
            if key in data and not data[key]:
                del data[key]
        return data

    def expires_at(self, retention_days: int) -> datetime:
        return self.delete_time + timedelta(days=retention_days)

    def is_expired(self, retention_days: int, now: datetime) -> bool:
        """True once the deletion time is strictly before the retention cutoff."""
        return self.delete_time < now - timedelta(days=retention_days)

    def days_left(self, retention_days: int, now: datetime) -> int:
        """Whole days until expiry, truncated toward zero (23.9h -> 0)."""
        remaining = self.expires_at(retention_days) - now
        return int(remaining.total_seconds() / 3600 / 24)

    def matches(self, pattern: str) -> bool:
        """Case-insensitive containment of ``pattern`` in the original path."""
        return pattern.lower() in self.original_path.lower()


class Index(BaseModel):
    """The full ledger, loaded and rewritten as a whole."""

    items: list[CacheEntry] = Field(default_factory=list)
    version: str = INDEX_VERSION
    created: datetime = Field(default_factory=now_local)
    updated: datetime = Field(default_factory=now_local)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("version", mode="before")
    @classmethod
    def _default_version(cls, v: Any) -> Any:
        return v or INDEX_VERSION

    @field_validator("created", "updated", mode="before")
    @classmethod
    def _accept_nanoseconds(cls, v: Any) -> Any:
        return _trim_fraction(v)

    @field_validator("created", "updated")
    @classmethod
    def _localize(cls, v: datetime) -> datetime:
        # Go's zero time means "never set".
        if v.year == 1:
            return now_local()
        return _ensure_aware(v)

    def find(self, entry_id: str) -> CacheEntry | None:
        for item in self.items:
            if item.id == entry_id:
                return item
        return None

    def sorted_recent_first(self) -> list[CacheEntry]:
        return sorted(self.items, key=lambda e: e.delete_time, reverse=True)


# === TARGET INSPECTION (ephemeral) ===


class TreeStats(BaseModel):
    """Result of one recursive walk: total bytes and descendant count."""

    size: int = 0
    count: int = 0


class SafetyFlags(BaseModel):
    protected: bool = False
    large: bool = False
    needs_confirm: bool = False


class FileTarget(BaseModel):
    """A candidate delete target annotated after stat and classification."""

    path: str
    absolute_path: str
    exists: bool = False
    is_directory: bool = False
    is_symlink: bool = False
    size: int = 0
    file_count: int = 0
    protected: bool = False
    large: bool = False
    needs_confirm: bool = False
    error: str | None = None
    error_status: Literal["not_found", "refused", "failed"] | None = None

    @property
    def valid(self) -> bool:
        return self.exists and self.error is None


# === OPERATION RESULTS ===

ItemStatus = Literal[
    "moved", "restored", "purged", "not_found", "collision", "refused", "failed"
]


class ItemResult(BaseModel):
    """Outcome of one item in a batch."""

    status: ItemStatus
    path: str
    entry: CacheEntry | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in ("moved", "restored", "purged")


class BatchReport(BaseModel):
    """Accumulated per-item results of one operation."""

    operation: Literal["delete", "restore", "clear", "purge"]
    results: list[ItemResult] = Field(default_factory=list)
    cancelled: bool = False
    cleaned_count: int = 0
    purged_count: int = 0
    error: str | None = None

    def add(self, result: ItemResult) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> list[ItemResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[ItemResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


class EntryStatus(BaseModel):
    """A cached entry with its retention status at query time."""

    entry: CacheEntry
    expires_at: datetime
    days_left: int
    status: Literal["OK", "EXPIRING", "EXPIRED"]


class CacheStats(BaseModel):
    cache_directory: str
    total_items: int = 0
    file_count: int = 0
    directory_count: int = 0
    total_size: int = 0
    retention_days: int = 0
    expired_count: int = 0
