"""Move transaction: validate, commit, apply.

A move runs as three sequential phases inside one ``task.move`` span:

1. **validate** (own child span): wait the validation latency, then check the
   destination column exists.  An unknown column aborts the move with
   :class:`InvalidTargetColumnError`; nothing after this point runs.
2. **commit** (own child span, op ``db.update``): wait the commit latency that
   stands in for the remote persistence call.  It cannot fail.
3. **apply**: move the task in the :class:`BoardStore`.  If the task has left
   the source column in the meantime the apply is ignored and the move still
   counts as completed.

State machine::

    IDLE -> VALIDATING -> ABORTED
                       -> COMMITTING -> APPLIED | IGNORED

Moves are not serialized against each other.  Two moves of the same task
started together both pass validate/commit; whichever applies last decides
where the task ends up, and an apply whose source column no longer holds the
task is ignored.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..constants import (
    DEFAULT_COMMIT_LATENCY_MS,
    DEFAULT_VALIDATE_LATENCY_MS,
    SPAN_OP_COMMIT,
    SPAN_OP_MOVE,
    SPAN_OP_VALIDATE,
)
from ..errors import InvalidTargetColumnError
from ..observability import SpanRecord, Telemetry
from .store import BoardStore


class MoveState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTING = "committing"
    ABORTED = "aborted"
    APPLIED = "applied"
    IGNORED = "ignored"


_VALID_TRANSITIONS: dict[MoveState, set[MoveState]] = {
    MoveState.IDLE: {MoveState.VALIDATING},
    MoveState.VALIDATING: {MoveState.COMMITTING, MoveState.ABORTED},
    MoveState.COMMITTING: {MoveState.APPLIED, MoveState.IGNORED},
    MoveState.ABORTED: set(),
    MoveState.APPLIED: set(),
    MoveState.IGNORED: set(),
}

TERMINAL_STATES = frozenset({MoveState.ABORTED, MoveState.APPLIED, MoveState.IGNORED})


@dataclass
class MoveResult:
    """Outcome of one move transaction."""
    task_id: str
    from_column: str
    to_column: str
    state: MoveState
    history: list[MoveState] = field(default_factory=list)
    phase_seconds: dict[str, float] = field(default_factory=dict)

    @property
    def applied(self) -> bool:
        return self.state == MoveState.APPLIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "from_column": self.from_column,
            "to_column": self.to_column,
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "phase_seconds": {k: round(v, 4) for k, v in self.phase_seconds.items()},
        }


class MoveTransaction:
    """One relocation of a task between columns.

    A transaction runs once; create a new one for every move command.
    Latencies are in seconds.
    """

    def __init__(
        self,
        store: BoardStore,
        telemetry: Telemetry,
        task_id: str,
        from_column: str,
        to_column: str,
        validate_latency: float = DEFAULT_VALIDATE_LATENCY_MS / 1000,
        commit_latency: float = DEFAULT_COMMIT_LATENCY_MS / 1000,
    ) -> None:
        self.store = store
        self.telemetry = telemetry
        self.task_id = task_id
        self.from_column = from_column
        self.to_column = to_column
        self.validate_latency = validate_latency
        self.commit_latency = commit_latency
        self._state = MoveState.IDLE
        self._history: list[MoveState] = [MoveState.IDLE]
        self._phase_seconds: dict[str, float] = {}

    @property
    def state(self) -> MoveState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state in TERMINAL_STATES

    def _advance(self, new_state: MoveState) -> None:
        if new_state not in _VALID_TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid move transition {self._state.value} -> {new_state.value}")
        self._state = new_state
        self._history.append(new_state)

    def result(self) -> MoveResult:
        return MoveResult(
            task_id=self.task_id,
            from_column=self.from_column,
            to_column=self.to_column,
            state=self._state,
            history=list(self._history),
            phase_seconds=dict(self._phase_seconds),
        )

    async def _validate(self) -> None:
        await asyncio.sleep(self.validate_latency)
        if not self.store.has_column(self.to_column):
            raise InvalidTargetColumnError(self.to_column)

    async def _commit(self) -> None:
        await asyncio.sleep(self.commit_latency)

    async def run(self) -> MoveResult:
        """Drive the transaction to a terminal state.

        Raises :class:`InvalidTargetColumnError` when validation fails; the
        board is untouched in that case.
        """
        if self._state != MoveState.IDLE:
            raise RuntimeError(f"Move transaction for {self.task_id} already ran")

        attributes = {
            "task.id": self.task_id,
            "from_column": self.from_column,
            "to_column": self.to_column,
        }
        name = f"Move task {self.task_id}: {self.from_column} → {self.to_column}"
        with self.telemetry.span(SPAN_OP_MOVE, name, attributes) as parent:
            self._advance(MoveState.VALIDATING)
            try:
                with self.telemetry.span(SPAN_OP_VALIDATE, "Validate Task Move", parent=parent) as span:
                    try:
                        await self._validate()
                    finally:
                        self._record_phase("validate", span)
            except InvalidTargetColumnError:
                self._advance(MoveState.ABORTED)
                parent.attributes["move.outcome"] = self._state.value
                raise

            self._advance(MoveState.COMMITTING)
            with self.telemetry.span(SPAN_OP_COMMIT, "Database Update", parent=parent) as span:
                try:
                    await self._commit()
                finally:
                    self._record_phase("commit", span)

            changed = self.store.move_task(self.task_id, self.from_column, self.to_column)
            self._advance(MoveState.APPLIED if changed else MoveState.IGNORED)
            parent.attributes["move.outcome"] = self._state.value
        return self.result()

    def _record_phase(self, phase: str, span: SpanRecord) -> None:
        self._phase_seconds[phase] = time.time() - span.started_at


async def run_move(
    store: BoardStore,
    telemetry: Telemetry,
    task_id: str,
    from_column: str,
    to_column: str,
    validate_latency: Optional[float] = None,
    commit_latency: Optional[float] = None,
) -> MoveResult:
    """Convenience: build and run a single :class:`MoveTransaction`."""
    kwargs: dict[str, float] = {}
    if validate_latency is not None:
        kwargs["validate_latency"] = validate_latency
    if commit_latency is not None:
        kwargs["commit_latency"] = commit_latency
    tx = MoveTransaction(store, telemetry, task_id, from_column, to_column, **kwargs)
    return await tx.run()
