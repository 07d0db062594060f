# src/storage/index_store.py — v2
"""JSON ledger of cached items, stored at <cache_dir>/index.json.

The whole file is rewritten on every change. Writes go to a temporary file
in the same directory which is then renamed over the original, so a failed
write never truncates the ledger. Load-mutate-save sequences hold an
advisory lock (index.json.lock) so concurrent invocations do not drop each
other's changes.
"""

from __future__ import annotations

import errno
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from filelock import FileLock, Timeout
from pydantic import ValidationError

from vanish.core.errors import IndexCorruptError, IndexReadError, IndexWriteError
from vanish.core.models import CacheEntry, Index, now_local
from vanish.storage import layout

logger = logging.getLogger(__name__)


class IndexStore:
    """Sole owner of the on-disk index file."""

    def __init__(self, path: Path | str, lock_timeout: float = 10.0) -> None:
        self.path = Path(path)
        self._lock_timeout = lock_timeout
        self._lock = FileLock(str(layout.lock_path(self.path)), timeout=lock_timeout)

    @classmethod
    def for_cache_dir(cls, cache_dir: Path, lock_timeout: float = 10.0) -> IndexStore:
        return cls(layout.index_path(cache_dir), lock_timeout=lock_timeout)

    # --- Whole-file I/O ---

    def load(self) -> Index:
        """Read the index; a missing file yields a fresh empty index.

        Raises:
            IndexCorruptError: File present but not a valid index.
            IndexReadError: File present but could not be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Index()
        except UnicodeDecodeError as e:
            raise IndexCorruptError(self.path, str(e)) from e
        except OSError as e:
            raise IndexReadError(self.path, e) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise IndexCorruptError(self.path, str(e)) from e
        if not isinstance(data, dict):
            raise IndexCorruptError(self.path, "top-level value is not an object")
        try:
            return Index.model_validate(data)
        except ValidationError as e:
            raise IndexCorruptError(self.path, str(e)) from e

    def save(self, index: Index) -> None:
        """Stamp ``updated`` and atomically replace the index file.

        Raises:
            IndexWriteError: Directory creation, write, or rename failed.
        """
        index.updated = now_local()
        payload = json.dumps(index.model_dump(mode="json", by_alias=True), indent=2)

        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise IndexWriteError(self.path, e) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Temporary index file %s already gone", tmp_name)

    # --- Locked mutation ---

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the advisory lock. Re-entrant within one store."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IndexWriteError(self.path, e) from e
        try:
            self._lock.acquire()
        except Timeout as e:
            raise IndexWriteError(
                self.path,
                OSError(errno.EBUSY, f"timed out after {self._lock_timeout}s waiting for lock"),
            ) from e
        except OSError as e:
            raise IndexWriteError(self.path, e) from e
        try:
            yield
        finally:
            self._lock.release()

    @contextmanager
    def transaction(self) -> Iterator[Index]:
        """Load under lock, let the caller mutate, then save.

        Nothing is saved if the block raises.
        """
        with self.locked():
            index = self.load()
            yield index
            self.save(index)

    def append(self, entry: CacheEntry) -> None:
        with self.transaction() as index:
            index.items.append(entry)
        logger.debug("Indexed %s (%s)", entry.id, entry.original_path)

    def remove(self, entry_id: str) -> bool:
        """Drop the entry with ``entry_id``; return whether it was present."""
        return self.remove_many([entry_id]) > 0

    def remove_many(self, entry_ids: Iterable[str]) -> int:
        wanted = set(entry_ids)
        with self.transaction() as index:
            before = len(index.items)
            index.items = [item for item in index.items if item.id not in wanted]
            removed = before - len(index.items)
        return removed

    def reset(self) -> Index:
        """Replace the ledger with a fresh empty index."""
        with self.locked():
            index = Index()
            self.save(index)
        return index
