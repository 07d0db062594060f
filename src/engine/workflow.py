# src/engine/workflow.py — v1
"""Finite-state machine for one interactive cache operation.

    checking -> confirming -> moving|restoring -> cleanup -> done
    clearing -> done
    purging  -> done
    (any non-terminal) -> error

``transition`` is pure: it maps (state, event) to a new state plus the
effects the driver must execute next. Nothing here touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

Operation = Literal["delete", "restore", "clear", "purge"]


class Phase(str, Enum):
    CHECKING = "checking"
    CONFIRMING = "confirming"
    MOVING = "moving"
    RESTORING = "restoring"
    CLEANUP = "cleanup"
    CLEARING = "clearing"
    PURGING = "purging"
    DONE = "done"
    ERROR = "error"


TERMINAL_PHASES = frozenset({Phase.DONE, Phase.ERROR})

NO_TARGETS_MESSAGES = {
    "delete": "No valid files or directories found",
    "restore": "No matching items found in cache for restoration",
}


class WorkflowState(BaseModel):
    """Snapshot of one workflow; replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    operation: Operation
    phase: Phase
    auto_confirm: bool = False
    confirmed: bool = False
    cancelled: bool = False
    total: int = 0
    cursor: int = 0
    processed: int = 0
    purged_count: int = 0
    cleaned_count: int = 0
    error_message: str | None = None

    @property
    def terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def processing_phase(self) -> Phase:
        return Phase.RESTORING if self.operation == "restore" else Phase.MOVING


# === EVENTS ===


@dataclass(frozen=True)
class TargetsChecked:
    valid: int
    needs_confirm: bool = False


@dataclass(frozen=True)
class Confirmed:
    pass


@dataclass(frozen=True)
class Declined:
    pass


@dataclass(frozen=True)
class ItemProcessed:
    ok: bool


@dataclass(frozen=True)
class CleanupFinished:
    cleaned: int = 0


@dataclass(frozen=True)
class ClearFinished:
    pass


@dataclass(frozen=True)
class PurgeFinished:
    count: int


@dataclass(frozen=True)
class Failed:
    message: str


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class Acknowledged:
    pass


Event = Union[
    TargetsChecked,
    Confirmed,
    Declined,
    ItemProcessed,
    CleanupFinished,
    ClearFinished,
    PurgeFinished,
    Failed,
    Cancelled,
    Acknowledged,
]


# === EFFECTS ===


@dataclass(frozen=True)
class CheckTargets:
    pass


@dataclass(frozen=True)
class RequestConfirmation:
    pass


@dataclass(frozen=True)
class ProcessItem:
    index: int


@dataclass(frozen=True)
class RunCleanup:
    pass


@dataclass(frozen=True)
class RunClear:
    pass


@dataclass(frozen=True)
class RunPurge:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[CheckTargets, RequestConfirmation, ProcessItem, RunCleanup, RunClear, RunPurge, Quit]

Step = tuple[WorkflowState, list[Effect]]


def start(operation: Operation, auto_confirm: bool = False) -> Step:
    """Initial state and first effect for an operation."""
    if operation == "clear":
        return WorkflowState(operation=operation, phase=Phase.CLEARING), [RunClear()]
    if operation == "purge":
        return WorkflowState(operation=operation, phase=Phase.PURGING), [RunPurge()]
    state = WorkflowState(operation=operation, phase=Phase.CHECKING, auto_confirm=auto_confirm)
    return state, [CheckTargets()]


def _update(state: WorkflowState, **changes: object) -> WorkflowState:
    return state.model_copy(update=changes)


def _begin_processing(state: WorkflowState) -> Step:
    new = _update(state, phase=state.processing_phase, confirmed=True, cursor=0)
    return new, [ProcessItem(0)]


def transition(state: WorkflowState, event: Event) -> Step:
    """Apply ``event`` to ``state``. Events that do not apply are ignored."""
    if state.terminal:
        if isinstance(event, Acknowledged):
            return state, [Quit()]
        return state, []

    if isinstance(event, Failed):
        return _update(state, phase=Phase.ERROR, error_message=event.message), []

    phase = state.phase

    if phase is Phase.CHECKING and isinstance(event, TargetsChecked):
        if event.valid == 0:
            message = NO_TARGETS_MESSAGES[state.operation]
            return _update(state, phase=Phase.ERROR, error_message=message), []
        state = _update(state, total=event.valid)
        if state.auto_confirm and not event.needs_confirm:
            return _begin_processing(state)
        return _update(state, phase=Phase.CONFIRMING), [RequestConfirmation()]

    if phase is Phase.CONFIRMING:
        if isinstance(event, Confirmed):
            return _begin_processing(state)
        if isinstance(event, (Declined, Cancelled)):
            return _update(state, phase=Phase.DONE, cancelled=True), [Quit()]
        return state, []

    if phase in (Phase.MOVING, Phase.RESTORING):
        if isinstance(event, Cancelled):
            return _update(state, phase=Phase.DONE, cancelled=True), []
        if isinstance(event, ItemProcessed):
            state = _update(
                state,
                cursor=state.cursor + 1,
                processed=state.processed + (1 if event.ok else 0),
            )
            if state.cursor < state.total:
                return state, [ProcessItem(state.cursor)]
            if state.operation == "delete":
                return _update(state, phase=Phase.CLEANUP), [RunCleanup()]
            return _update(state, phase=Phase.DONE), []
        return state, []

    if phase is Phase.CLEANUP and isinstance(event, CleanupFinished):
        return _update(state, phase=Phase.DONE, cleaned_count=event.cleaned), []

    if phase is Phase.CLEARING and isinstance(event, ClearFinished):
        return _update(state, phase=Phase.DONE), []

    if phase is Phase.PURGING and isinstance(event, PurgeFinished):
        return _update(state, phase=Phase.DONE, purged_count=event.count), []

    return state, []
