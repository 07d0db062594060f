# src/safety/tree_stats.py — v1
"""Single recursive walk returning total size and descendant count."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from vanish.core.models import TreeStats

logger = logging.getLogger(__name__)


def walk_tree(root: Path | str) -> TreeStats:
    """Total bytes of non-directory entries and number of descendants.

    Symlinks are counted by their own size and never followed. Unreadable
    subtrees are skipped, matching what a best-effort size estimate needs.
    """
    size = 0
    count = 0
    stack = [os.fspath(root)]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            continue
        for entry in entries:
            count += 1
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(entry.path)
                else:
                    size += entry.stat(follow_symlinks=False).st_size
            except OSError as e:
                logger.debug("Skipping unreadable entry %s: %s", entry.path, e)
    return TreeStats(size=size, count=count)


def path_stats(path: Path | str) -> TreeStats:
    """Stats for any entry: a file's own size, or a walk for directories."""
    st = os.lstat(path)
    if os.path.isdir(path) and not os.path.islink(path):
        return walk_tree(path)
    return TreeStats(size=st.st_size, count=0)
