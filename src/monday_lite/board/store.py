"""Board store: the only place board contents change.

The module-level functions are pure: each takes a board and a command and
returns the resulting board, handing back the very same object when the command
has nothing to act on (task not in the named column, unknown source column).
Callers race against earlier deletes, so those cases are ignored rather than
raised.

:class:`BoardStore` owns the single current board and is what the service and
the move transaction mutate through.
"""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from ..errors import DuplicateTaskError, UnknownColumnError
from .model import Board, Column, ColumnDef, Task, TaskStatus
from .seed import COLUMN_DEFS, seed_board

Subscriber = Callable[[Board], None]


# ---------------------------------------------------------------------------
# Pure mutations
# ---------------------------------------------------------------------------

def move_task(board: Board, task_id: str, from_column: str, to_column: str) -> Board:
    """Remove *task_id* from *from_column* and append it to *to_column*."""
    src = board.column(from_column)
    dst = board.column(to_column)
    if src is None or dst is None:
        return board
    task = src.find(task_id)
    if task is None:
        return board
    remaining = tuple(t for t in src.tasks if t.id != task_id)
    if from_column == to_column:
        return board.replace_column(Column(src.id, src.title, remaining + (task,), src.color))
    board = board.replace_column(Column(src.id, src.title, remaining, src.color))
    return board.replace_column(Column(dst.id, dst.title, dst.tasks + (task,), dst.color))


def delete_task(board: Board, task_id: str, column_id: str) -> Board:
    col = board.column(column_id)
    if col is None or col.find(task_id) is None:
        return board
    remaining = tuple(t for t in col.tasks if t.id != task_id)
    return board.replace_column(Column(col.id, col.title, remaining, col.color))


def set_status(board: Board, task_id: str, column_id: str, status: TaskStatus) -> Board:
    col = board.column(column_id)
    if col is None:
        return board
    task = col.find(task_id)
    if task is None:
        return board
    if task.status == status:
        return board
    updated = tuple(t.with_status(status) if t.id == task_id else t for t in col.tasks)
    return board.replace_column(Column(col.id, col.title, updated, col.color))


def insert_task(board: Board, task: Task, column_id: str) -> Board:
    col = board.column(column_id)
    if col is None:
        raise UnknownColumnError(column_id)
    if board.locate(task.id) is not None:
        raise DuplicateTaskError(task.id)
    return board.replace_column(Column(col.id, col.title, col.tasks + (task,), col.color))


# ---------------------------------------------------------------------------
# Owned store
# ---------------------------------------------------------------------------

class BoardStore:
    """Holds the authoritative board and applies commands to it.

    Parameters
    ----------
    board:
        Starting board. Defaults to a freshly seeded board over *column_defs*.
    column_defs:
        Fixed column layout, used only when *board* is not given.
    """

    def __init__(
        self,
        board: Optional[Board] = None,
        column_defs: tuple[ColumnDef, ...] = COLUMN_DEFS,
    ) -> None:
        self._board = board if board is not None else seed_board(column_defs)
        self._subscribers: list[Subscriber] = []

    # -- reads --------------------------------------------------------------

    def snapshot(self) -> Board:
        """Return the current board. Boards are immutable, so this is safe to keep."""
        return self._board

    @property
    def column_ids(self) -> tuple[str, ...]:
        return self._board.column_ids

    def has_column(self, column_id: str) -> bool:
        return self._board.has_column(column_id)

    # -- subscriptions ------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a render callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _commit(self, board: Board) -> bool:
        if board is self._board:
            return False
        self._board = board
        for callback in list(self._subscribers):
            try:
                callback(board)
            except Exception:
                logger.exception("Board subscriber {} failed", getattr(callback, "__name__", callback))
        return True

    # -- mutations ----------------------------------------------------------
    # Each returns True when the board actually changed.

    def move_task(self, task_id: str, from_column: str, to_column: str) -> bool:
        return self._commit(move_task(self._board, task_id, from_column, to_column))

    def delete_task(self, task_id: str, column_id: str) -> bool:
        return self._commit(delete_task(self._board, task_id, column_id))

    def set_status(self, task_id: str, column_id: str, status: TaskStatus) -> bool:
        return self._commit(set_status(self._board, task_id, column_id, status))

    def insert_task(self, task: Task, column_id: str) -> bool:
        return self._commit(insert_task(self._board, task, column_id))
