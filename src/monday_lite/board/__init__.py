"""Task board core: model, store, move transaction and metrics.

The store owns the board, the move transaction is the only multi-step
mutation, and metrics are derived on demand from a board snapshot.
"""

from .metrics import MetricsSnapshot, compute_metrics
from .model import Board, Column, ColumnDef, Priority, Task, TaskStatus
from .seed import COLUMN_DEFS, COLUMN_ORDER, seed_board
from .store import BoardStore
from .transaction import MoveResult, MoveState, MoveTransaction

__all__ = [
    "Board",
    "BoardStore",
    "COLUMN_DEFS",
    "COLUMN_ORDER",
    "Column",
    "ColumnDef",
    "MetricsSnapshot",
    "MoveResult",
    "MoveState",
    "MoveTransaction",
    "Priority",
    "Task",
    "TaskStatus",
    "compute_metrics",
    "seed_board",
]
