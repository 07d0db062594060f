# src/logging/context.py — v2
"""Contextual logging support: attach operation, batch_id and item to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per batch and per item.
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_item: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    operation: str | None = None
    batch_id: str | None = None
    item: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        operation=_operation.get(),
        batch_id=_batch_id.get(),
        item=_item.get(),
    )


def set_batch_context(operation: str, batch_id: str) -> None:
    """Set batch-level context (called once per operation)."""
    _operation.set(operation)
    _batch_id.set(batch_id)


def set_item_context(item: str | None) -> None:
    """Set the path currently being processed."""
    _item.set(item)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _batch_id.set(None)
    _item.set(None)
