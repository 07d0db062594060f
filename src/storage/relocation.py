# src/storage/relocation.py — v1
"""Move files and directory trees between arbitrary locations.

An atomic rename is tried first. When that fails (usually EXDEV across
filesystems) the content is copied and only then is the source removed,
so a failed copy never costs the original.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from vanish.core.errors import RelocationError

logger = logging.getLogger(__name__)


class SourceRemovalError(RelocationError):
    """The copy at the destination is complete but the source could not be removed."""


def _exists(path: Path) -> bool:
    return os.path.lexists(path)


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def copy_entry(src: Path, dst: Path) -> None:
    """Copy a file, symlink or directory tree, preserving mode bits.

    Symlinks are recreated, not followed. Copying a directory onto an
    existing one overwrites file by file.
    """
    if src.is_symlink():
        if _exists(dst) and not _is_real_dir(dst):
            dst.unlink()
        os.symlink(os.readlink(src), dst)
    elif src.is_dir():
        shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(src, dst, follow_symlinks=False)


def remove_entry(path: Path, missing_ok: bool = False) -> None:
    """Remove a file, symlink or directory tree."""
    if not _exists(path):
        if missing_ok:
            return
        raise FileNotFoundError(2, "No such file or directory", str(path))
    if _is_real_dir(path):
        shutil.rmtree(path)
    else:
        path.unlink()


def move(src: Path | str, dst: Path | str, atomic: bool = True) -> None:
    """Move ``src`` to ``dst``.

    Args:
        src: Existing file, symlink or directory.
        dst: Destination path (its parent must exist).
        atomic: Try ``os.rename`` first. False forces copy + remove.

    Raises:
        RelocationError: The copy failed; ``src`` is untouched and any
            partial destination created by this call is removed.
        SourceRemovalError: The copy succeeded but ``src`` could not be
            removed (fully or partly).
    """
    src = Path(src)
    dst = Path(dst)

    if atomic:
        try:
            os.rename(src, dst)
            return
        except OSError as e:
            logger.debug("rename %s -> %s failed (%s), copying instead", src, dst, e)

    dst_existed = _exists(dst)
    try:
        copy_entry(src, dst)
    except (OSError, shutil.Error) as e:
        if not dst_existed:
            _discard_partial(dst)
        raise RelocationError(src, dst, _as_oserror(e)) from e

    try:
        remove_entry(src)
    except OSError as e:
        raise SourceRemovalError(src, dst, e) from e


def _discard_partial(dst: Path) -> None:
    try:
        remove_entry(dst, missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial copy %s: %s", dst, e)


def _as_oserror(error: Exception) -> OSError:
    if isinstance(error, OSError):
        return error
    # shutil.Error carries a list of (src, dst, reason) tuples.
    detail = error.args[0] if error.args else error
    if isinstance(detail, list) and detail:
        detail = detail[0][2]
    return OSError(None, str(detail))
