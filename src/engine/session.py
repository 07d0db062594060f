# src/engine/session.py — v1
"""Drive the workflow state machine against a CacheEngine.

The session executes each effect the state machine asks for, turns the
outcome into an event, and feeds it back until no effects remain. The
caller supplies the confirmation prompt and, optionally, a cancellation
check that runs before every item.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from pathlib import Path
from typing import Callable, Iterable

from pydantic import BaseModel, Field

from vanish.core.errors import IndexCorruptError, IndexWriteError
from vanish.core.models import BatchReport, CacheEntry, FileTarget, ItemResult
from vanish.engine.cache_engine import CacheEngine
from vanish.engine.workflow import (
    Cancelled,
    CheckTargets,
    CleanupFinished,
    ClearFinished,
    Confirmed,
    Declined,
    Effect,
    Event,
    Failed,
    ItemProcessed,
    Operation,
    ProcessItem,
    PurgeFinished,
    Quit,
    RequestConfirmation,
    RunCleanup,
    RunClear,
    RunPurge,
    TargetsChecked,
    WorkflowState,
    start,
    transition,
)
from vanish.logging.context import clear_context, set_batch_context, set_item_context

logger = logging.getLogger(__name__)

_ABORTING_ERRORS = (IndexCorruptError, IndexWriteError)


class ConfirmationRequest(BaseModel):
    """What the user is asked to approve."""

    operation: Operation
    paths: list[str] = Field(default_factory=list)
    flagged: list[str] = Field(default_factory=list)
    total_size: int = 0


ConfirmCallback = Callable[[ConfirmationRequest], bool]
CancelProbe = Callable[[], bool]
ItemCallback = Callable[[ItemResult], None]


class WorkflowSession:
    """One interactive operation from checking to done."""

    def __init__(
        self,
        engine: CacheEngine,
        confirm: ConfirmCallback | None = None,
        should_cancel: CancelProbe | None = None,
        on_item: ItemCallback | None = None,
        auto_confirm: bool | None = None,
    ) -> None:
        self.engine = engine
        self._confirm = confirm
        self._should_cancel = should_cancel or (lambda: False)
        self._on_item = on_item
        if auto_confirm is None:
            auto_confirm = engine.settings.behavior.auto_confirm
        self.auto_confirm = auto_confirm
        self.state: WorkflowState | None = None

        self._report: BatchReport | None = None
        self._targets: list[FileTarget] = []
        self._entries: list[CacheEntry] = []
        self._paths: list[str] = []
        self._patterns: list[str] = []
        self._purge_days = 0

    # --- Entry points ---

    def delete(self, paths: Iterable[str | Path]) -> BatchReport:
        self._paths = [str(p) for p in paths]
        return self._run("delete")

    def restore(self, patterns: Iterable[str]) -> BatchReport:
        self._patterns = list(patterns)
        return self._run("restore")

    def clear(self) -> BatchReport:
        return self._run("clear")

    def purge(self, days: int) -> BatchReport:
        self._purge_days = days
        return self._run("purge")

    # --- Loop ---

    def _run(self, operation: Operation) -> BatchReport:
        self._report = BatchReport(operation=operation)
        self._targets = []
        self._entries = []
        set_batch_context(operation, uuid.uuid4().hex[:12])
        try:
            state, effects = start(operation, self.auto_confirm)
            pending: deque[Effect] = deque(effects)
            while pending:
                effect = pending.popleft()
                if isinstance(effect, Quit):
                    break
                event = self._execute(effect)
                state, effects = transition(state, event)
                pending.extend(effects)
        finally:
            clear_context()

        self.state = state
        report = self._report
        report.cancelled = state.cancelled
        report.cleaned_count = state.cleaned_count
        report.purged_count = state.purged_count
        if state.error_message and report.error is None:
            report.error = state.error_message
        logger.debug(
            "%s finished in phase %s (%d ok, %d failed)",
            operation,
            state.phase.value,
            len(report.succeeded),
            len(report.failed),
        )
        return report

    def _execute(self, effect: Effect) -> Event:
        try:
            if isinstance(effect, CheckTargets):
                return self._check_targets()
            if isinstance(effect, RequestConfirmation):
                return self._request_confirmation()
            if isinstance(effect, ProcessItem):
                return self._process_item(effect.index)
            if isinstance(effect, RunCleanup):
                return CleanupFinished(self.engine.cleanup_expired())
            if isinstance(effect, RunClear):
                self.engine.clear_all()
                return ClearFinished()
            if isinstance(effect, RunPurge):
                return PurgeFinished(self.engine.purge(self._purge_days))
        except _ABORTING_ERRORS as e:
            logger.error("%s", e)
            return self._fail(str(e))
        except (OSError, ValueError) as e:
            logger.error("%s failed: %s", type(effect).__name__, e)
            return self._fail(str(e))
        raise TypeError(f"unknown effect {effect!r}")

    def _fail(self, message: str) -> Failed:
        assert self._report is not None
        self._report.error = message
        return Failed(message)

    # --- Effects ---

    def _check_targets(self) -> TargetsChecked:
        report = self._report
        assert report is not None
        if report.operation == "restore":
            self._entries, unmatched = self.engine.find_restore_matches(self._patterns)
            for pattern in unmatched:
                report.add(
                    ItemResult(
                        status="not_found",
                        path=pattern,
                        error=f"no cached item matches '{pattern}'",
                    )
                )
            return TargetsChecked(valid=len(self._entries), needs_confirm=False)

        inspected = self.engine.inspect_targets(self._paths)
        for target in inspected:
            if not target.valid:
                self.engine.audit.log_error("DELETE_FAIL", target.absolute_path, target.error or "")
                report.add(
                    ItemResult(
                        status=target.error_status or "failed",
                        path=target.path,
                        error=target.error,
                    )
                )
        self._targets = [t for t in inspected if t.valid]
        return TargetsChecked(
            valid=len(self._targets),
            needs_confirm=any(t.needs_confirm for t in self._targets),
        )

    def _request_confirmation(self) -> Event:
        assert self._report is not None
        if self._report.operation == "restore":
            request = ConfirmationRequest(
                operation="restore",
                paths=[e.original_path for e in self._entries],
                total_size=sum(e.size_bytes for e in self._entries),
            )
        else:
            request = ConfirmationRequest(
                operation="delete",
                paths=[t.absolute_path for t in self._targets],
                flagged=[t.absolute_path for t in self._targets if t.needs_confirm],
                total_size=sum(t.size for t in self._targets),
            )
        if self._confirm is None:
            logger.info("No confirmation prompt available; declining %s", request.operation)
            return Declined()
        return Confirmed() if self._confirm(request) else Declined()

    def _process_item(self, index: int) -> Event:
        report = self._report
        assert report is not None
        if self._should_cancel():
            logger.info("Cancelled before item %d", index + 1)
            return Cancelled()

        if report.operation == "restore":
            entry = self._entries[index]
            set_item_context(entry.original_path)
            result = self.engine.restore_item(entry)
        else:
            target = self._targets[index]
            set_item_context(target.absolute_path)
            result = self.engine.delete_item(target)
        set_item_context(None)

        report.add(result)
        if self._on_item is not None:
            self._on_item(result)
        return ItemProcessed(ok=result.ok)


def delete(
    engine: CacheEngine,
    paths: Iterable[str | Path],
    confirm: ConfirmCallback | None = None,
    auto_confirm: bool | None = None,
) -> BatchReport:
    """One-shot delete batch."""
    return WorkflowSession(engine, confirm=confirm, auto_confirm=auto_confirm).delete(paths)


def restore(
    engine: CacheEngine,
    patterns: Iterable[str],
    confirm: ConfirmCallback | None = None,
    auto_confirm: bool | None = None,
) -> BatchReport:
    """One-shot restore batch."""
    return WorkflowSession(engine, confirm=confirm, auto_confirm=auto_confirm).restore(patterns)
