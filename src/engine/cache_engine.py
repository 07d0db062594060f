# src/engine/cache_engine.py — v2
"""Cache engine: move targets into the cache, restore them, and expire them.

Per-item methods (``delete_item``, ``restore_item``) never raise for a
problem confined to one target; the failure comes back as an ItemResult.
Index load/save errors always propagate, since nothing else is safe once
the ledger is unreliable.

Usage:
    engine = CacheEngine(load_settings())
    for target in engine.inspect_targets(["notes.txt"]):
        if target.valid:
            result = engine.delete_item(target)
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from vanish.config.settings import Settings
from vanish.core.errors import (
    CollisionError,
    IndexCorruptError,
    IndexWriteError,
    ItemError,
    NotFoundError,
    RefusedTargetError,
    RelocationError,
)
from vanish.core.models import (
    CacheEntry,
    CacheStats,
    EntryStatus,
    FileTarget,
    Index,
    ItemResult,
    now_local,
)
from vanish.core.paths import is_within
from vanish.logging.audit import AuditLog
from vanish.safety.classifier import SafetyPolicy, inspect_target
from vanish.storage import layout
from vanish.storage.ids import generate_entry_id
from vanish.storage.index_store import IndexStore
from vanish.storage.relocation import (
    SourceRemovalError,
    copy_entry,
    move,
    remove_entry,
)

logger = logging.getLogger(__name__)

EXPIRING_DAYS = 2

_TARGET_ERRORS: dict[str, type[ItemError]] = {
    "not_found": NotFoundError,
    "refused": RefusedTargetError,
    "failed": ItemError,
}


class CacheEngine:
    """Owns the cache directory, its index, and the audit trail."""

    def __init__(
        self,
        settings: Settings,
        index_store: IndexStore | None = None,
        audit: AuditLog | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.cache_dir: Path = settings.cache_dir
        self.store = index_store or IndexStore.for_cache_dir(self.cache_dir)
        self.audit = audit or AuditLog.from_settings(settings)
        self.policy = SafetyPolicy.from_settings(settings)
        self._clock = clock or now_local

    @property
    def retention_days(self) -> int:
        return self.settings.cache.days

    def now(self) -> datetime:
        return self._clock()

    def close(self) -> None:
        self.audit.close()

    # --- Checking ---

    def inspect_targets(self, paths: Iterable[str | Path]) -> list[FileTarget]:
        """Stat and classify each delete target, preserving input order."""
        targets = [inspect_target(p, self.policy, cache_dir=self.cache_dir) for p in paths]
        for target in targets:
            if not target.valid:
                logger.debug("Invalid target %s: %s", target.path, target.error)
        return targets

    def find_restore_matches(
        self, patterns: Iterable[str], dedupe: bool | None = None
    ) -> tuple[list[CacheEntry], list[str]]:
        """Entries matching any pattern, plus the patterns that matched nothing.

        A pattern matches an entry whose original path contains it
        (case-insensitive) or whose id equals it. Within each pattern the
        most recently deleted entry comes first.
        """
        if dedupe is None:
            dedupe = self.settings.behavior.dedupe_matches
        ordered = self.store.load().sorted_recent_first()

        matches: list[CacheEntry] = []
        unmatched: list[str] = []
        seen: set[str] = set()
        for pattern in patterns:
            hits = [e for e in ordered if e.id == pattern or e.matches(pattern)]
            if not hits:
                unmatched.append(pattern)
                continue
            for entry in hits:
                if dedupe and entry.id in seen:
                    continue
                seen.add(entry.id)
                matches.append(entry)
        return matches, unmatched

    # --- Delete ---

    def move_to_cache(self, target: FileTarget) -> CacheEntry:
        """Relocate one inspected target into the cache and index it.

        Raises:
            ItemError: The target is invalid or could not be moved.
            IndexCorruptError, IndexWriteError: The ledger could not be
                updated; the content has been moved back.
        """
        if not target.valid:
            error_cls = _TARGET_ERRORS[target.error_status or "failed"]
            raise error_cls(target.error or f"{target.path}: invalid target", target.path)

        source = Path(target.absolute_path)
        if not os.path.lexists(source):
            raise NotFoundError(f"{target.path}: no such file or directory", target.path)

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RelocationError(source, self.cache_dir, e) from e

        deleted_at = self.now()
        entry_id = generate_entry_id()
        cached = layout.cache_path(self.cache_dir, entry_id, deleted_at, source)

        source_left_behind = False
        try:
            move(source, cached)
        except SourceRemovalError as e:
            # The cache copy is complete; keep it and index it.
            logger.warning("%s copied to cache but not fully removed: %s", source, e)
            source_left_behind = True

        entry = CacheEntry(
            id=entry_id,
            original_path=str(source),
            delete_time=deleted_at,
            cache_path=str(cached),
            is_directory=target.is_directory,
            file_count=target.file_count if target.is_directory else 0,
            size_bytes=target.size,
            protected=target.protected,
        )
        if self.settings.safety.backup_important and target.protected:
            entry.backup_path = self._make_backup(cached)

        try:
            self.store.append(entry)
        except (IndexCorruptError, IndexWriteError, OSError) as e:
            self.audit.log_error("INDEX_ERROR", source, e)
            self._undo_move(entry, source_left_behind)
            raise

        self.audit.log_entry("DELETE", entry)
        logger.debug("Cached %s as %s", source, cached)
        return entry

    def delete_item(self, target: FileTarget) -> ItemResult:
        """``move_to_cache`` with per-item failures folded into the result."""
        try:
            entry = self.move_to_cache(target)
        except ItemError as e:
            self.audit.log_error("DELETE_FAIL", target.absolute_path, e)
            return ItemResult(status=e.status, path=target.path, error=str(e))
        return ItemResult(status="moved", path=target.path, entry=entry)

    def _make_backup(self, cached: Path) -> str | None:
        backup = layout.backup_path(cached)
        try:
            copy_entry(cached, backup)
        except OSError as e:
            logger.warning("Backup of %s failed: %s", cached, e)
            self._discard(backup)
            return None
        return str(backup)

    def _undo_move(self, entry: CacheEntry, source_left_behind: bool) -> None:
        if entry.backup_path:
            self._discard(Path(entry.backup_path))
        if source_left_behind:
            # Part of the source is still in place; moving back would merge trees.
            logger.error("Cached copy of %s left at %s", entry.original_path, entry.cache_path)
            return
        try:
            move(entry.cache_path, entry.original_path)
        except RelocationError as e:
            logger.error(
                "Could not return %s to %s: %s", entry.cache_path, entry.original_path, e
            )

    # --- Restore ---

    def restore_entry(self, entry: CacheEntry) -> CacheEntry:
        """Move one cached entry back to its original path and unindex it.

        Raises:
            NotFoundError: Cached content is missing.
            CollisionError: Something already exists at the original path.
            RelocationError: The move failed.
            IndexCorruptError, IndexWriteError: The ledger could not be
                updated; the content has been moved back into the cache.
        """
        cached = Path(entry.cache_path)
        destination = Path(entry.original_path)

        if not os.path.lexists(cached):
            raise NotFoundError(f"cached content missing: {cached}", entry.original_path)
        if os.path.lexists(destination):
            raise CollisionError(
                f"destination already exists: {destination}", entry.original_path
            )

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RelocationError(cached, destination, e) from e

        cache_left_behind = False
        try:
            move(cached, destination)
        except SourceRemovalError as e:
            logger.warning("%s restored but cache copy not fully removed: %s", destination, e)
            cache_left_behind = True

        try:
            self.store.remove(entry.id)
        except (IndexCorruptError, IndexWriteError, OSError) as e:
            self.audit.log_error("INDEX_ERROR", destination, e)
            if not cache_left_behind:
                try:
                    move(destination, cached)
                except RelocationError as undo_error:
                    logger.error("Could not return %s to cache: %s", destination, undo_error)
            raise

        if cache_left_behind:
            self._discard(cached)
        if entry.backup_path:
            self._discard(Path(entry.backup_path))
        self.audit.log_entry("RESTORE", entry)
        return entry

    def restore_item(self, entry: CacheEntry) -> ItemResult:
        try:
            restored = self.restore_entry(entry)
        except ItemError as e:
            self.audit.log_error("RESTORE_FAIL", entry.original_path, e)
            return ItemResult(
                status=e.status, path=entry.original_path, entry=entry, error=str(e)
            )
        return ItemResult(status="restored", path=entry.original_path, entry=restored)

    # --- Expiry ---

    def cleanup_expired(self) -> int:
        """Drop entries older than the configured retention window."""
        return len(self._expire(self.retention_days, "CLEANUP"))

    def purge(self, days: int) -> int:
        """Drop entries deleted more than ``days`` days ago.

        Raises:
            ValueError: If ``days`` is negative.
        """
        if days < 0:
            raise ValueError(f"days must be >= 0, got {days}")
        return len(self._expire(days, "PURGE"))

    def _expire(self, days: int, operation: str) -> list[CacheEntry]:
        # The ledger is saved before any content goes; a failed save leaves
        # everything indexed and on disk.
        with self.store.transaction() as index:
            now = self.now()
            expired = [e for e in index.items if e.is_expired(days, now)]
            index.items = [e for e in index.items if not e.is_expired(days, now)]

        for entry in expired:
            try:
                remove_entry(Path(entry.cache_path), missing_ok=True)
            except OSError as e:
                logger.warning("Unindexed %s but could not remove it: %s", entry.cache_path, e)
                self.audit.log_error(operation, entry.original_path, e)
            else:
                self.audit.log_entry(operation, entry)
            if entry.backup_path:
                self._discard(Path(entry.backup_path))
        if expired:
            logger.info("%s removed %d expired item(s)", operation.lower(), len(expired))
        return expired

    def clear_all(self) -> None:
        """Reset the index, then delete everything else under the cache directory.

        The lock file and a log directory living inside the cache survive.

        Raises:
            OSError: Some content could not be removed; the index is
                already empty.
        """
        keep = {self.store.path, layout.lock_path(self.store.path)}
        log_dir = self.settings.log_dir
        failures: list[OSError] = []
        with self.store.locked():
            self.store.save(Index())
            for child in self.cache_dir.iterdir():
                if child in keep or is_within(log_dir, child):
                    continue
                try:
                    remove_entry(child)
                except OSError as e:
                    logger.warning("Could not remove %s: %s", child, e)
                    failures.append(e)
        if failures:
            raise failures[0]
        self.audit.log_info("CLEAR_ALL", "Cache cleared")
        logger.info("Cleared cache %s", self.cache_dir)

    def _discard(self, path: Path) -> None:
        try:
            remove_entry(path, missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)

    # --- Queries ---

    def entry_status(self, entry: CacheEntry, now: datetime | None = None) -> EntryStatus:
        now = now or self.now()
        days_left = entry.days_left(self.retention_days, now)
        if days_left <= 0:
            status = "EXPIRED"
        elif days_left <= EXPIRING_DAYS:
            status = "EXPIRING"
        else:
            status = "OK"
        return EntryStatus(
            entry=entry,
            expires_at=entry.expires_at(self.retention_days),
            days_left=days_left,
            status=status,
        )

    def list_entries(self) -> list[EntryStatus]:
        """Every cached entry, most recently deleted first."""
        now = self.now()
        return [self.entry_status(e, now) for e in self.store.load().sorted_recent_first()]

    def info(self, pattern: str) -> list[EntryStatus]:
        """Entries whose original path contains ``pattern`` or whose id equals it."""
        now = self.now()
        return [
            self.entry_status(e, now)
            for e in self.store.load().sorted_recent_first()
            if e.id == pattern or e.matches(pattern)
        ]

    def stats(self) -> CacheStats:
        index = self.store.load()
        now = self.now()
        directories = sum(1 for e in index.items if e.is_directory)
        return CacheStats(
            cache_directory=str(self.cache_dir),
            total_items=len(index.items),
            file_count=len(index.items) - directories,
            directory_count=directories,
            total_size=sum(e.size_bytes for e in index.items),
            retention_days=self.retention_days,
            expired_count=sum(1 for e in index.items if e.is_expired(self.retention_days, now)),
        )
