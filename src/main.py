# src/main.py — v3
"""CLI entry point — delete, restore, and inspect the vanish cache.

Usage:
    vanish delete <path>... [--noconfirm]
    vanish restore <pattern>... [--noconfirm]
    vanish list | stats | path | config-path | log-stats
    vanish info <pattern>
    vanish purge <days> [--noconfirm]
    vanish clear [--noconfirm]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from vanish.config.settings import (
    ConfigurationError,
    Settings,
    default_config_path,
    ensure_default_config,
    load_settings,
)
from vanish.core.errors import VanishError
from vanish.core.formatters import (
    format_bytes,
    render_info,
    render_list,
    render_log_stats,
    render_report,
    render_stats,
)
from vanish.core.models import BatchReport
from vanish.engine.cache_engine import CacheEngine
from vanish.engine.session import ConfirmationRequest, WorkflowSession
from vanish.logging.logger import DEBUG_LOG_NAME, setup_logging
from vanish.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    debug_file = None
    if args.verbose and settings.logging.enabled:
        debug_file = settings.log_dir / DEBUG_LOG_NAME
    level = "DEBUG" if args.verbose else "WARNING"
    try:
        setup_logging(
            level=level,
            log_format=settings.logging.format,
            log_file=debug_file,
            rotation=settings.logging.rotation,
            retention=settings.logging.retention,
        )
    except OSError as exc:
        setup_logging(level=level, log_format=settings.logging.format)
        logger.warning("Debug log file unavailable: %s", exc)

    engine = CacheEngine(settings)
    try:
        return args.func(args, engine)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except (VanishError, OSError) as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.close()


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="vanish",
        description=f"vanish v{__version__} — Safe file deletion with a restorable cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None,
        help="Config file (default: ~/.config/vanish/vanish.toml)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Move files or directories to the cache")
    p_delete.add_argument("paths", nargs="+", help="Files or directories to delete")
    _add_noconfirm(p_delete)
    p_delete.set_defaults(func=_cmd_delete)

    # --- restore ---
    p_restore = subparsers.add_parser("restore", help="Restore cached items")
    p_restore.add_argument(
        "patterns", nargs="+",
        help="Entry ids or case-insensitive substrings of original paths",
    )
    _add_noconfirm(p_restore)
    p_restore.set_defaults(func=_cmd_restore)

    # --- queries ---
    p_list = subparsers.add_parser("list", help="List cached items, newest first")
    p_list.set_defaults(func=_cmd_list)

    p_info = subparsers.add_parser("info", help="Show details of matching cached items")
    p_info.add_argument("pattern", help="Entry id or substring of the original path")
    p_info.set_defaults(func=_cmd_info)

    p_stats = subparsers.add_parser("stats", help="Show cache statistics")
    p_stats.set_defaults(func=_cmd_stats)

    p_path = subparsers.add_parser("path", help="Print the cache directory")
    p_path.set_defaults(func=_cmd_path)

    p_config_path = subparsers.add_parser("config-path", help="Print the config file path")
    p_config_path.set_defaults(func=_cmd_config_path)

    p_log_stats = subparsers.add_parser("log-stats", help="Show audit log statistics")
    p_log_stats.set_defaults(func=_cmd_log_stats)

    # --- bulk ---
    p_purge = subparsers.add_parser("purge", help="Remove items deleted more than DAYS ago")
    p_purge.add_argument("days", type=int, help="Age threshold in days (0 = everything)")
    _add_noconfirm(p_purge)
    p_purge.set_defaults(func=_cmd_purge)

    p_clear = subparsers.add_parser("clear", help="Permanently empty the whole cache")
    _add_noconfirm(p_clear)
    p_clear.set_defaults(func=_cmd_clear)

    return parser


def _add_noconfirm(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--noconfirm", action="store_true",
        help="Skip the confirmation prompt (protected or large targets still ask)",
    )


def _load_settings(config_path: Path | None) -> Settings:
    if config_path is None:
        config_path = ensure_default_config()
    return load_settings(config_path)


def _config_path(args: argparse.Namespace) -> Path:
    return args.config if args.config is not None else default_config_path()


# === COMMANDS ===


def _cmd_delete(args: argparse.Namespace, engine: CacheEngine) -> int:
    session = _session(args, engine)
    return _finish(session.delete(args.paths))


def _cmd_restore(args: argparse.Namespace, engine: CacheEngine) -> int:
    session = _session(args, engine)
    return _finish(session.restore(args.patterns))


def _cmd_purge(args: argparse.Namespace, engine: CacheEngine) -> int:
    if not _auto_confirm(args, engine):
        question = f"Permanently remove cached items deleted more than {args.days} day(s) ago?"
        if not _ask(question):
            print("Operation cancelled.")
            return 0
    return _finish(_session(args, engine).purge(args.days))


def _cmd_clear(args: argparse.Namespace, engine: CacheEngine) -> int:
    if not _auto_confirm(args, engine):
        question = f"Permanently delete everything in {engine.cache_dir}?"
        if not _ask(question):
            print("Operation cancelled.")
            return 0
    return _finish(_session(args, engine).clear())


def _cmd_list(args: argparse.Namespace, engine: CacheEngine) -> int:
    print(render_list(engine.list_entries()))
    return 0


def _cmd_info(args: argparse.Namespace, engine: CacheEngine) -> int:
    print(render_info(args.pattern, engine.info(args.pattern)))
    return 0


def _cmd_stats(args: argparse.Namespace, engine: CacheEngine) -> int:
    print(render_stats(engine.stats()))
    return 0


def _cmd_path(args: argparse.Namespace, engine: CacheEngine) -> int:
    print(engine.cache_dir)
    return 0


def _cmd_config_path(args: argparse.Namespace, engine: CacheEngine) -> int:
    print(_config_path(args))
    return 0


def _cmd_log_stats(args: argparse.Namespace, engine: CacheEngine) -> int:
    try:
        stats = engine.audit.stats()
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(render_log_stats(stats))
    return 0


# === HELPERS ===


def _auto_confirm(args: argparse.Namespace, engine: CacheEngine) -> bool:
    return args.noconfirm or engine.settings.behavior.auto_confirm


def _session(args: argparse.Namespace, engine: CacheEngine) -> WorkflowSession:
    return WorkflowSession(
        engine,
        confirm=_prompt_confirmation,
        auto_confirm=_auto_confirm(args, engine),
    )


def _finish(report: BatchReport) -> int:
    print(render_report(report))
    return 0 if report.ok else 1


def _prompt_confirmation(request: ConfirmationRequest) -> bool:
    """Show what is about to happen and ask y/n on stdin."""
    verb = "Delete" if request.operation == "delete" else "Restore"
    print(f"{verb} {len(request.paths)} item(s) ({format_bytes(request.total_size)}):")
    flagged = set(request.flagged)
    for path in request.paths:
        marker = "  ! " if path in flagged else "    "
        print(f"{marker}{path}")
    if flagged:
        print("Items marked '!' are protected, large, or match a sensitive pattern.")
    return _ask("Proceed?")


def _ask(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


if __name__ == "__main__":
    sys.exit(main())
