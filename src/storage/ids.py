# src/storage/ids.py — v1
"""Entry id generation: nanosecond timestamps, strictly increasing per process."""

from __future__ import annotations

import threading
import time

_lock = threading.Lock()
_last_id = 0


def generate_entry_id(now_ns: int | None = None) -> str:
    """Return a decimal nanosecond timestamp id.

    Two calls in the same process never return the same id: when the clock
    has not advanced past the previous id, the previous id plus one is used.
    """
    global _last_id
    candidate = time.time_ns() if now_ns is None else now_ns
    with _lock:
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)
