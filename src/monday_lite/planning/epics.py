"""Epics: long-running bodies of work tracked by owner, due date and progress."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from ..board.model import Priority
from ..constants import BREADCRUMB_EPIC_CREATE
from ..observability import Telemetry


class EpicStatus(str, Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BLOCKED = "Blocked"
    ON_HOLD = "On Hold"


def _id() -> str:
    return f"e-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Epic:
    name: str
    owner: str
    due_date: date
    description: str = ""
    status: EpicStatus = EpicStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    progress: int = 0
    linked_items: int = 0
    id: str = field(default_factory=_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "owner": self.owner,
            "due_date": self.due_date.isoformat(),
            "progress": self.progress,
            "progress_band": progress_band(self.progress),
            "linked_items": self.linked_items,
        }


class EpicForm(BaseModel):
    """Input for creating an epic. Name, owner and due date are required."""

    name: str = Field(min_length=1)
    owner: str = Field(min_length=1)
    due_date: date
    description: str = ""
    status: EpicStatus = EpicStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    progress: int = Field(default=0, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def _strip_text(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("name", "owner", "description"):
                if isinstance(data.get(key), str):
                    data[key] = data[key].strip()
        return data


def progress_band(value: int) -> str:
    if value >= 100:
        return "complete"
    if value >= 70:
        return "high"
    if value >= 30:
        return "medium"
    return "low"


def seed_epics() -> list[Epic]:
    return [
        Epic(id="e1", name="Q1 Platform Redesign",
             description="Overhaul the dashboard, navigation, and core board views",
             status=EpicStatus.IN_PROGRESS, priority=Priority.HIGH, owner="AK",
             due_date=date(2024, 3, 31), progress=45, linked_items=12),
        Epic(id="e2", name="Mobile App Launch",
             description="Native iOS and Android apps with full feature parity to web",
             status=EpicStatus.PLANNING, priority=Priority.CRITICAL, owner="DN",
             due_date=date(2024, 6, 30), progress=10, linked_items=8),
        Epic(id="e3", name="API v3 Migration",
             description="Migrate all internal and external clients to the new REST API",
             status=EpicStatus.IN_PROGRESS, priority=Priority.HIGH, owner="EO",
             due_date=date(2024, 4, 15), progress=70, linked_items=24),
        Epic(id="e4", name="SOC 2 Compliance",
             description="Complete SOC 2 Type II certification for enterprise customers",
             status=EpicStatus.DONE, priority=Priority.CRITICAL, owner="HR",
             due_date=date(2024, 1, 31), progress=100, linked_items=6),
        Epic(id="e5", name="Automation Engine v2",
             description="Rebuild the workflow automation engine with new triggers and improved throughput",
             status=EpicStatus.BLOCKED, priority=Priority.MEDIUM, owner="CM",
             due_date=date(2024, 5, 15), progress=30, linked_items=15),
    ]


class EpicBoard:
    def __init__(self, telemetry: Telemetry, epics: Optional[list[Epic]] = None) -> None:
        self.telemetry = telemetry
        self._epics = list(epics) if epics is not None else seed_epics()

    def list(self) -> list[Epic]:
        return list(self._epics)

    def get(self, epic_id: str) -> Optional[Epic]:
        for e in self._epics:
            if e.id == epic_id:
                return e
        return None

    def create(self, form: EpicForm | dict[str, Any]) -> Epic:
        """Validate *form* and append the new epic with no linked items.

        Raises:
            pydantic.ValidationError: a required field is blank or progress is out of range.
        """
        if not isinstance(form, EpicForm):
            form = EpicForm.model_validate(form)
        epic = Epic(
            name=form.name,
            description=form.description,
            status=form.status,
            priority=form.priority,
            owner=form.owner,
            due_date=form.due_date,
            progress=form.progress,
        )
        self.telemetry.breadcrumb(
            BREADCRUMB_EPIC_CREATE,
            f'Created epic: "{epic.name}"',
            data={"epicId": epic.id, "status": epic.status.value, "priority": epic.priority.value},
        )
        self._epics.append(epic)
        return epic

    def summary(self) -> dict[str, int]:
        count = len(self._epics)
        avg = math.floor(sum(e.progress for e in self._epics) / count + 0.5) if count else 0
        return {
            "epics": count,
            "done": sum(1 for e in self._epics if e.status == EpicStatus.DONE),
            "avg_progress": int(avg),
        }
