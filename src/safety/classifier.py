# src/safety/classifier.py — v1
"""Safety classification of delete targets.

"Protected" is a confirmation gate, not a prohibition: a protected target
is deleted once the user confirms.
"""

from __future__ import annotations

import errno
import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from vanish.core.models import FileTarget, SafetyFlags, TreeStats
from vanish.core.paths import is_within, resolve_target
from vanish.safety.tree_stats import path_stats

if TYPE_CHECKING:
    from vanish.config.settings import Settings


@dataclass(slots=True, frozen=True)
class SafetyPolicy:
    """Thresholds and path rules used to classify targets."""

    protected_paths: tuple[Path, ...] = ()
    require_confirm: tuple[str, ...] = ()
    large_size_limit: int = 100 * 1024 * 1024
    large_count_limit: int = 1000
    confirm_on_large: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> SafetyPolicy:
        return cls(
            protected_paths=tuple(settings.protected_paths),
            require_confirm=tuple(settings.safety.require_confirm),
            large_size_limit=settings.behavior.large_size_limit,
            large_count_limit=settings.behavior.large_count_limit,
            confirm_on_large=settings.behavior.confirm_on_large,
        )


def is_protected(path: Path, protected_paths: Iterable[Path]) -> bool:
    """True if ``path`` equals or is nested under any protected path."""
    return any(is_within(path, protected) for protected in protected_paths)


def matches_confirm_patterns(path: Path | str, patterns: Iterable[str]) -> bool:
    """True if the base name matches any glob pattern (case-sensitive)."""
    base = os.path.basename(os.path.normpath(str(path)))
    return any(fnmatch.fnmatchcase(base, pattern) for pattern in patterns)


def classify(
    absolute_path: Path,
    policy: SafetyPolicy,
    stats: TreeStats | None = None,
    is_directory: bool | None = None,
) -> SafetyFlags:
    """Decide whether a target is protected, large, or needs confirmation.

    Pass ``stats`` from an earlier walk to avoid walking the tree again.
    """
    if is_directory is None:
        is_directory = absolute_path.is_dir() and not absolute_path.is_symlink()
    if stats is None:
        stats = path_stats(absolute_path)

    protected = is_protected(absolute_path, policy.protected_paths)
    large = stats.size > policy.large_size_limit or (
        is_directory and stats.count > policy.large_count_limit
    )
    needs_confirm = (
        protected
        or (policy.confirm_on_large and large)
        or matches_confirm_patterns(absolute_path, policy.require_confirm)
    )
    return SafetyFlags(protected=protected, large=large, needs_confirm=needs_confirm)


def inspect_target(
    path: str | Path, policy: SafetyPolicy, cache_dir: Path | None = None
) -> FileTarget:
    """Stat, walk once, and classify a candidate delete target.

    Never raises for a bad target: problems land in ``error``.
    """
    absolute = resolve_target(path)
    target = FileTarget(path=str(path), absolute_path=str(absolute))

    try:
        st = absolute.lstat()
    except OSError as e:
        target.error = f"{path}: {e.strerror or e}"
        target.error_status = "not_found" if e.errno == errno.ENOENT else "failed"
        return target

    target.exists = True
    target.is_symlink = absolute.is_symlink()
    target.is_directory = not target.is_symlink and absolute.is_dir()

    if cache_dir is not None and (
        is_within(absolute, cache_dir) or is_within(cache_dir, absolute)
    ):
        target.error = f"{path}: refusing to delete the cache directory or its contents"
        target.error_status = "refused"
        return target

    if target.is_directory:
        stats = path_stats(absolute)
    else:
        stats = TreeStats(size=st.st_size, count=0)
    target.size = stats.size
    target.file_count = stats.count

    flags = classify(absolute, policy, stats=stats, is_directory=target.is_directory)
    target.protected = flags.protected
    target.large = flags.large
    target.needs_confirm = flags.needs_confirm
    return target
