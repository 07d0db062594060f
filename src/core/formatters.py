# src/core/formatters.py — v1
"""Plain-text rendering of query results and batch reports for the CLI."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from vanish.core.models import BatchReport, CacheStats, EntryStatus

_UNITS = "KMGTPE"

_STATUS_LABELS = {
    "moved": "moved",
    "restored": "restored",
    "purged": "purged",
    "not_found": "not found",
    "collision": "collision",
    "refused": "refused",
    "failed": "failed",
}


def format_bytes(size: int) -> str:
    """Binary units with one decimal: 512 -> "512 B", 1536 -> "1.5 KB"."""
    if size < 1024:
        return f"{size} B"
    div, exp = 1024, 0
    n = size // 1024
    while n >= 1024:
        div *= 1024
        exp += 1
        n //= 1024
    return f"{size / div:.1f} {_UNITS[exp]}B"


def render_list(statuses: list[EntryStatus]) -> str:
    if not statuses:
        return "No cached files found."
    lines = [f"Cached Files ({len(statuses)} items):", "=" * 80]
    for s in statuses:
        kind = "DIR " if s.entry.is_directory else "FILE"
        lines.append(
            f"{kind} | {s.entry.delete_time:%Y-%m-%d %H:%M} | "
            f"{format_bytes(s.entry.size_bytes):>8} | {s.status} | "
            f"{s.days_left} days left | {s.entry.original_path}"
        )
    return "\n".join(lines)


def render_info(pattern: str, statuses: list[EntryStatus]) -> str:
    if not statuses:
        return f"No cached item matches '{pattern}'. Run 'vanish list' to see everything."

    lines = [f"Found {len(statuses)} cached item(s):", "=" * 60]
    for s in statuses:
        entry = s.entry
        lines.append("")
        lines.append(f"ID: {entry.id}")
        lines.append(f"Original Path: {entry.original_path}")
        lines.append(f"Cache Path: {entry.cache_path}")
        lines.append(f"Deleted: {entry.delete_time:%Y-%m-%d %H:%M:%S}")
        lines.append(f"Type: {'Directory' if entry.is_directory else 'File'}")
        lines.append(f"Size: {format_bytes(entry.size_bytes)}")
        if entry.file_count > 0:
            lines.append(f"Files Inside: {entry.file_count}")
        if entry.protected:
            lines.append("Protected: yes")
        if entry.backup_path:
            lines.append(f"Backup: {entry.backup_path}")
        if s.days_left > 0:
            lines.append(f"Expires: {s.expires_at:%Y-%m-%d %H:%M:%S} ({s.days_left} days left)")
        else:
            lines.append("Status: EXPIRED (can be purged)")
        lines.append(f"Restore with: vanish restore {entry.id}")
    return "\n".join(lines)


def render_stats(stats: CacheStats) -> str:
    if stats.total_items == 0:
        return "Cache is empty."
    lines = [
        "Vanish Cache Statistics",
        "=======================",
        f"Cache Directory: {stats.cache_directory}",
        f"Total Items: {stats.total_items}",
        f"  Files: {stats.file_count}",
        f"  Directories: {stats.directory_count}",
        f"Total Size: {format_bytes(stats.total_size)}",
        f"Retention Period: {stats.retention_days} days",
        f"Expired Items: {stats.expired_count}",
    ]
    if stats.expired_count:
        lines.append("")
        lines.append(f"Run 'vanish purge {stats.retention_days}' to clean up expired items.")
    return "\n".join(lines)


def render_log_stats(stats: dict[str, Any]) -> str:
    lines = [
        "Vanish Log Statistics",
        "=====================",
        f"Total Operations: {stats.get('total_operations', 0)}",
        f"Total Size Processed: {format_bytes(stats.get('total_size_processed', 0))}",
    ]
    by_type: dict[str, int] = stats.get("operations_by_type", {})
    if by_type:
        lines.append("Operations:")
        for name in sorted(by_type):
            lines.append(f"  {name}: {by_type[name]}")
    for key, label in (("first_entry", "First Entry"), ("last_entry", "Last Entry")):
        value = stats.get(key)
        if isinstance(value, datetime):
            lines.append(f"{label}: {value:%Y-%m-%d %H:%M:%S}")
    return "\n".join(lines)


def render_report(report: BatchReport) -> str:
    """Per-item outcome lines followed by a one-line summary."""
    lines: list[str] = []
    for result in report.results:
        label = _STATUS_LABELS[result.status]
        if result.ok and result.entry is not None and result.status == "moved":
            lines.append(f"{label}: {result.path} -> {result.entry.cache_path}")
        elif result.ok:
            lines.append(f"{label}: {result.path}")
        else:
            lines.append(f"{label}: {result.error or result.path}")

    if report.operation == "purge":
        lines.append(f"Purged {report.purged_count} item(s).")
    elif report.operation == "clear":
        if report.error is None:
            lines.append("Cache cleared.")
    elif report.cancelled and not report.succeeded:
        lines.append("Operation cancelled.")
    else:
        verb = "Deleted" if report.operation == "delete" else "Restored"
        summary = f"{verb} {len(report.succeeded)} item(s)"
        if report.failed:
            summary += f", {len(report.failed)} failed"
        if report.cancelled:
            summary += " (cancelled)"
        lines.append(summary + ".")
        if report.cleaned_count:
            lines.append(f"Cleaned up {report.cleaned_count} expired item(s).")

    if report.error:
        lines.append(f"Error: {report.error}")
    return "\n".join(lines)
