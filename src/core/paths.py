# src/core/paths.py — v1
"""Path resolution rules.

Two rules coexist and must not be mixed up:

* ``expand_path`` is for paths read from configuration (cache directory,
  log directory, protected paths). ``~/x`` and bare relative paths are both
  joined to the home directory, never to the working directory.
* ``resolve_target`` is for paths typed on the command line as delete
  targets. Relative paths are made absolute against the current working
  directory, like any other shell tool.
"""

from __future__ import annotations

import os
from pathlib import Path


def home_directory() -> Path | None:
    """Return the user's home directory, or None if it cannot be determined."""
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def expand_path(path: str | Path) -> Path:
    """Expand a configuration path to an absolute path.

    Falls back to the literal input when the home directory is unknown.
    """
    raw = str(path)
    if os.path.isabs(raw):
        return Path(raw)

    home = home_directory()
    if home is None:
        return Path(raw)

    if raw == "~":
        return home
    if raw.startswith("~/") or raw.startswith("~" + os.sep):
        return home / raw[2:]
    return home / raw


def resolve_target(path: str | Path) -> Path:
    """Return the absolute form of a delete target, relative to the cwd.

    Symlinks are not resolved: the link itself is the target.
    """
    return Path(os.path.abspath(os.path.expanduser(str(path))))


def is_within(path: Path, ancestor: Path) -> bool:
    """True if ``path`` equals ``ancestor`` or is nested under it.

    Compares path components, so ``/home2`` is not within ``/home``.
    """
    path_parts = Path(os.path.normpath(path)).parts
    ancestor_parts = Path(os.path.normpath(ancestor)).parts
    if len(ancestor_parts) > len(path_parts):
        return False
    return path_parts[: len(ancestor_parts)] == ancestor_parts
