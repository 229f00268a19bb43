"""Exception types raised by the board engine."""

from __future__ import annotations

from typing import Any


class BoardError(Exception):
    """Base class for board engine errors."""


class InvalidTargetColumnError(BoardError):
    """A move named a destination column that is not on the board."""

    def __init__(self, column_id: str) -> None:
        super().__init__(f'Invalid target column: "{column_id}"')
        self.column_id = column_id


class ProtectedEntityDeleteError(BoardError):
    """A delete was rejected because the task is protected by name."""

    kind = "ProtectedEntityDeleteError"

    def __init__(self, task_id: str, name: str, column_id: str) -> None:
        super().__init__(f'Attempted to delete a protected task: "{name}"')
        self.context: dict[str, Any] = {"id": task_id, "name": name, "column": column_id}


class DuplicateTaskError(BoardError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} already exists")
        self.task_id = task_id


class UnknownColumnError(BoardError, KeyError):
    def __init__(self, column_id: str) -> None:
        super().__init__(f"Unknown column: {column_id}")
        self.column_id = column_id

    def __str__(self) -> str:
        return str(self.args[0])


class ConfigError(Exception):
    """The configuration file could not be loaded."""
