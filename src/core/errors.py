# src/core/errors.py — v2
"""Exception hierarchy for cache operations.

Per-item errors (NotFound, Collision, Relocation, RefusedTarget) are caught
by the engine and recorded in the batch report. Index errors abort the
whole operation.
"""

from __future__ import annotations

from pathlib import Path


class VanishError(Exception):
    """Base class for all vanish errors."""


class ItemError(VanishError):
    """An error confined to a single target; siblings keep going."""

    status = "failed"

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


class NotFoundError(ItemError):
    """Target missing on disk, pattern unmatched, or cached content gone."""

    status = "not_found"


class CollisionError(ItemError):
    """Restore destination already exists."""

    status = "collision"


class RefusedTargetError(ItemError):
    """Target overlaps the cache directory."""

    status = "refused"


class RelocationError(ItemError):
    """Moving or copying content failed."""

    def __init__(self, src: Path | str, dst: Path | str, cause: OSError) -> None:
        reason = cause.strerror or str(cause)
        super().__init__(f"failed to move {src} -> {dst}: {reason}", path=src)
        self.src = str(src)
        self.dst = str(dst)
        self.cause = cause


class IndexCorruptError(VanishError):
    """Index file exists but cannot be decoded."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"index file {path} is unreadable: {detail}")
        self.path = path


class IndexWriteError(VanishError):
    """Index file could not be written."""

    def __init__(self, path: Path, cause: OSError) -> None:
        reason = cause.strerror or str(cause)
        super().__init__(f"failed to write index file {path}: {reason}")
        self.path = path
        self.cause = cause


class IndexReadError(IndexCorruptError):
    """Index file exists but could not be read (permissions, not a file, I/O)."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(path, cause.strerror or str(cause))
        self.cause = cause
