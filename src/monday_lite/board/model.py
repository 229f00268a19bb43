"""Value objects for the task board.

Tasks and columns are immutable.  A :class:`Board` is an ordered tuple of
columns; every mutation in :mod:`monday_lite.board.store` builds a new board
instead of editing one in place, so a board handed to a renderer never changes
underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatus(str, Enum):
    """Per-task workflow status, independent of the column a task sits in."""

    NOT_STARTED = "Not started"
    WORKING_ON_IT = "Working on it"
    STUCK = "Stuck"
    IN_REVIEW = "In review"
    DONE = "Done"
    WAITING_FOR_REVIEW = "Waiting for review"

    @classmethod
    def coerce(cls, value: "TaskStatus | str") -> "TaskStatus":
        """Accept an enum member, its value, or its name (``"in_review"``)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f"Unknown task status: {value!r}") from None


# ---------------------------------------------------------------------------
# Task / Column / Board
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Task:
    id: str
    name: str
    assignee: str = ""
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.NOT_STARTED

    @property
    def initial(self) -> str:
        return self.assignee[:1]

    def with_status(self, status: TaskStatus) -> "Task":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "assignee": self.assignee,
            "priority": self.priority.value,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            assignee=str(data.get("assignee") or ""),
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            status=TaskStatus.coerce(data.get("status") or TaskStatus.NOT_STARTED),
        )


@dataclass(frozen=True)
class ColumnDef:
    """Static column configuration: id, display title and color token."""

    id: str
    title: str
    color: str = ""


@dataclass(frozen=True)
class Column:
    id: str
    title: str
    tasks: tuple[Task, ...] = ()
    color: str = ""

    def find(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def __len__(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "color": self.color,
            "items": [t.to_dict() for t in self.tasks],
        }


@dataclass(frozen=True)
class Board:
    """The full set of columns, in their fixed display order."""

    columns: tuple[Column, ...] = field(default_factory=tuple)

    @property
    def column_ids(self) -> tuple[str, ...]:
        return tuple(c.id for c in self.columns)

    def has_column(self, column_id: str) -> bool:
        return any(c.id == column_id for c in self.columns)

    def column(self, column_id: str) -> Optional[Column]:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def locate(self, task_id: str) -> Optional[str]:
        """Return the id of the column holding *task_id*, or None."""
        for col in self.columns:
            if col.find(task_id) is not None:
                return col.id
        return None

    def find_task(self, task_id: str) -> Optional[Task]:
        for col in self.columns:
            task = col.find(task_id)
            if task is not None:
                return task
        return None

    def task_ids(self) -> list[str]:
        return [t.id for col in self.columns for t in col.tasks]

    @property
    def total_items(self) -> int:
        return sum(len(col) for col in self.columns)

    def replace_column(self, column: Column) -> "Board":
        return Board(columns=tuple(column if c.id == column.id else c for c in self.columns))

    def to_dict(self) -> dict[str, Any]:
        return {col.id: col.to_dict() for col in self.columns}

    @classmethod
    def empty(cls, column_defs: tuple[ColumnDef, ...] | list[ColumnDef]) -> "Board":
        return cls(columns=tuple(Column(id=d.id, title=d.title, color=d.color) for d in column_defs))
