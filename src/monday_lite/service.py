"""Board service: the command interface the board view drives.

Every command goes through here so telemetry, the protected-name delete policy
and the activity log stay in one place.  ``move_task`` is a coroutine; the
rest return synchronously.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .activity import ActivityLog
from .board.metrics import MetricsSnapshot, compute_metrics
from .board.model import Task, TaskStatus
from .board.store import BoardStore
from .board.transaction import MoveResult, MoveTransaction
from .config import BoardConfig
from .constants import (
    BREADCRUMB_DELETE,
    BREADCRUMB_INTERACTION,
    BREADCRUMB_MODAL,
    PROTECTED_TASK_NAME,
    SPAN_OP_METRICS,
)
from .errors import ProtectedEntityDeleteError
from .observability import Telemetry


class BoardService:
    """Command front-end over a :class:`BoardStore`.

    Parameters
    ----------
    store:
        Board to operate on. Defaults to a freshly seeded board.
    telemetry:
        Where spans, breadcrumbs and exception records go. Defaults to one
        built from *config*'s workspace context with the loguru hook.
    config:
        Latencies and metrics workload size.
    """

    def __init__(
        self,
        store: Optional[BoardStore] = None,
        telemetry: Optional[Telemetry] = None,
        config: Optional[BoardConfig] = None,
        activity: Optional[ActivityLog] = None,
    ) -> None:
        self.config = config or BoardConfig()
        self.store = store or BoardStore()
        self.telemetry = telemetry or Telemetry(context=self.config.observability_context())
        self.activity = activity or ActivityLog()
        self.last_metrics: Optional[MetricsSnapshot] = None
        self._moving: dict[str, int] = {}

    @property
    def moving_task_ids(self) -> set[str]:
        """Ids of tasks with a move transaction still in flight."""
        return set(self._moving)

    # ------------------------------------------------------------------
    # Move
    # ------------------------------------------------------------------

    async def move_task(self, task_id: str, from_column: str, to_column: str) -> MoveResult:
        """Run a move transaction to completion.

        Raises:
            InvalidTargetColumnError: *to_column* is not on the board.
        """
        tx = MoveTransaction(
            self.store,
            self.telemetry,
            task_id,
            from_column,
            to_column,
            validate_latency=self.config.validate_latency,
            commit_latency=self.config.commit_latency,
        )
        self._moving[task_id] = self._moving.get(task_id, 0) + 1
        try:
            result = await tx.run()
        finally:
            remaining = self._moving[task_id] - 1
            if remaining:
                self._moving[task_id] = remaining
            else:
                del self._moving[task_id]
        if result.applied:
            self.activity.push(f'Moved task "{task_id}" → {to_column}')
        else:
            logger.debug("Move of {} ignored: not in {}", task_id, from_column)
        return result

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_task(self, task_id: str, column_id: str, name: Optional[str] = None) -> bool:
        """Delete a task unless it is protected by name.

        *name* is the name the caller displayed. The task's name on the board
        takes precedence; *name* is only used when the task is not in
        *column_id*. Either one being protected rejects the delete.
        Returns True when a task was removed.

        Raises:
            ProtectedEntityDeleteError: the task is the protected sentinel.
        """
        col = self.store.snapshot().column(column_id)
        task = col.find(task_id) if col is not None else None
        if task is not None and (task.name == PROTECTED_TASK_NAME or name == PROTECTED_TASK_NAME):
            name = PROTECTED_TASK_NAME
        elif task is not None:
            name = task.name
        elif name is None:
            name = ""

        if name == PROTECTED_TASK_NAME:
            err = ProtectedEntityDeleteError(task_id, name, column_id)
            self.telemetry.capture_exception(
                err,
                tags={"action": "delete_task", "task.name": name},
                contexts={"task_info": dict(err.context)},
                level="error",
            )
            self.activity.push(f'ERROR captured → "{name}"')
            raise err

        removed = self.store.delete_task(task_id, column_id)
        self.telemetry.breadcrumb(
            BREADCRUMB_DELETE,
            f'Deleted task "{name}"',
            data={"taskId": task_id, "column": column_id, "removed": removed},
        )
        if removed:
            self.activity.push(f'Deleted task "{name}"')
        return removed

    # ------------------------------------------------------------------
    # Status / open
    # ------------------------------------------------------------------

    def set_status(self, task_id: str, column_id: str, status: TaskStatus | str) -> bool:
        """Change a task's status in place. Unknown statuses raise ``ValueError``."""
        new_status = TaskStatus.coerce(status)
        self.telemetry.breadcrumb(
            BREADCRUMB_INTERACTION,
            f'Status changed → "{new_status.value}"',
            data={"taskId": task_id, "column": column_id, "newStatus": new_status.value},
        )
        changed = self.store.set_status(task_id, column_id, new_status)
        self.activity.push(f'Task {task_id} status → "{new_status.value}"')
        return changed

    def open_task(self, task_id: str, column_id: str) -> Optional[Task]:
        """Look up a task for a detail view and leave a breadcrumb."""
        col = self.store.snapshot().column(column_id)
        task = col.find(task_id) if col is not None else None
        if task is None:
            return None
        self.telemetry.breadcrumb(
            BREADCRUMB_MODAL,
            f'Opened item modal: "{task.name}"',
            data={"itemId": task.id, "column": column_id, "priority": task.priority.value},
        )
        self.activity.push(f'Opened modal: "{task.name}"')
        return task

    def insert_task(self, task: Task, column_id: str) -> bool:
        """Add a new task to the end of a column."""
        inserted = self.store.insert_task(task, column_id)
        self.activity.push(f'Created task "{task.name}" in {column_id}')
        return inserted

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def compute_metrics(self) -> MetricsSnapshot:
        board = self.store.snapshot()
        attributes = {"board.columns": len(board.columns), "board.total_items": board.total_items}
        with self.telemetry.span(SPAN_OP_METRICS, "Calculate Board Metrics", attributes):
            snapshot = compute_metrics(board, iterations=self.config.metrics_iterations)
        self.last_metrics = snapshot
        self.activity.push("Metrics computed")
        return snapshot
