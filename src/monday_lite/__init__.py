"""Provide the public `monday_lite` package exports."""

from __future__ import annotations

from .board import Board, BoardStore, MoveResult, MoveState, Task, TaskStatus
from .config import BoardConfig, load_config
from .errors import BoardError, InvalidTargetColumnError, ProtectedEntityDeleteError
from .observability import ObservabilityContext, ObservabilityHook, RecordingHook, Telemetry
from .service import BoardService

__all__ = [
    "Board",
    "BoardConfig",
    "BoardError",
    "BoardService",
    "BoardStore",
    "InvalidTargetColumnError",
    "MoveResult",
    "MoveState",
    "ObservabilityContext",
    "ObservabilityHook",
    "ProtectedEntityDeleteError",
    "RecordingHook",
    "Task",
    "TaskStatus",
    "Telemetry",
    "load_config",
]
