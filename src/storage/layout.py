# src/storage/layout.py — v2
"""Cache directory structure definition.

Everything lives flat under the cache directory:

    <cache_dir>/index.json
    <cache_dir>/index.json.lock
    <cache_dir>/<id>-<YYYY-MM-DD-HH-MM-SS>-<basename>
    <cache_dir>/<id>-<YYYY-MM-DD-HH-MM-SS>-<basename>.backup
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

INDEX_FILENAME = "index.json"
LOCK_SUFFIX = ".lock"
BACKUP_SUFFIX = ".backup"
CACHE_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def index_path(cache_dir: Path) -> Path:
    """Return the index file path for a cache directory."""
    return cache_dir / INDEX_FILENAME


def lock_path(index_file: Path) -> Path:
    """Return the advisory lock file guarding an index file."""
    return index_file.with_name(index_file.name + LOCK_SUFFIX)


def cache_filename(entry_id: str, deleted_at: datetime, original: Path | str) -> str:
    """Return ``<id>-<timestamp>-<basename>``; the id prefix keeps names unique."""
    basename = Path(original).name or "root"
    return f"{entry_id}-{deleted_at.strftime(CACHE_TIMESTAMP_FORMAT)}-{basename}"


def cache_path(cache_dir: Path, entry_id: str, deleted_at: datetime, original: Path | str) -> Path:
    return cache_dir / cache_filename(entry_id, deleted_at, original)


def backup_path(cached: Path | str) -> Path:
    """Return the secondary copy location for a cached item."""
    return Path(f"{cached}{BACKUP_SUFFIX}")
