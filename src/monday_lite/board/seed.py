"""Fixed column layout and the seed data the board starts from."""

from __future__ import annotations

from .model import Board, Column, ColumnDef, Priority, Task, TaskStatus

COLUMN_DEFS: tuple[ColumnDef, ...] = (
    ColumnDef(id="backlog", title="Backlog", color="slate"),
    ColumnDef(id="in_progress", title="In Progress", color="blue"),
    ColumnDef(id="review", title="In Review", color="yellow"),
    ColumnDef(id="done", title="Done", color="green"),
)

COLUMN_ORDER: tuple[str, ...] = tuple(d.id for d in COLUMN_DEFS)

_SEED_TASKS: dict[str, tuple[tuple[str, str, str, Priority, TaskStatus], ...]] = {
    "backlog": (
        ("t1", "Design new dashboard UI", "AK", Priority.HIGH, TaskStatus.NOT_STARTED),
        ("t2", "Error Task", "BL", Priority.CRITICAL, TaskStatus.NOT_STARTED),
        ("t3", "Write integration tests", "CM", Priority.MEDIUM, TaskStatus.NOT_STARTED),
    ),
    "in_progress": (
        ("t4", "Implement OAuth 2.0 flow", "DN", Priority.HIGH, TaskStatus.WORKING_ON_IT),
        ("t5", "Refactor API gateway", "EO", Priority.MEDIUM, TaskStatus.WORKING_ON_IT),
    ),
    "review": (
        ("t6", "Mobile responsiveness fixes", "FP", Priority.HIGH, TaskStatus.IN_REVIEW),
    ),
    "done": (
        ("t7", "Setup CI/CD pipeline", "GQ", Priority.LOW, TaskStatus.DONE),
        ("t8", "Security audit Q4", "HR", Priority.CRITICAL, TaskStatus.DONE),
    ),
}


def seed_board(column_defs: tuple[ColumnDef, ...] = COLUMN_DEFS) -> Board:
    """Build a fresh board from the seed data.

    Columns without seed tasks start empty; seed tasks for columns missing from
    *column_defs* are dropped.
    """
    columns = []
    for d in column_defs:
        tasks = tuple(
            Task(id=tid, name=name, assignee=who, priority=prio, status=status)
            for tid, name, who, prio, status in _SEED_TASKS.get(d.id, ())
        )
        columns.append(Column(id=d.id, title=d.title, tasks=tasks, color=d.color))
    return Board(columns=tuple(columns))
