"""Sprints: time-boxed planning units with goals and a completion flag."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from ..constants import BREADCRUMB_SPRINT_CREATE
from ..observability import Telemetry


def _id() -> str:
    return f"s-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Sprint:
    name: str
    goals: str
    start: date
    end: date
    completed: bool = False
    id: str = field(default_factory=_id)

    @property
    def timeline(self) -> str:
        return sprint_timeline(self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "goals": self.goals,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "completed": self.completed,
            "timeline": self.timeline,
        }


class SprintForm(BaseModel):
    """Input for creating a sprint; blank text fields are rejected."""

    name: str = Field(min_length=1)
    goals: str = Field(min_length=1)
    start: date
    end: date

    @model_validator(mode="before")
    @classmethod
    def _strip_text(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("name", "goals"):
                if isinstance(data.get(key), str):
                    data[key] = data[key].strip()
        return data

    @model_validator(mode="after")
    def _end_after_start(self) -> "SprintForm":
        if self.end <= self.start:
            raise ValueError("end must be after start date")
        return self


def sprint_timeline(start: date, end: date) -> str:
    """Length of a sprint as ``"1w 4d"``, ``"2w"`` or ``"5d"``."""
    days = (end - start).days
    weeks, rem = divmod(days, 7)
    if weeks > 0:
        return f"{weeks}w {rem}d" if rem > 0 else f"{weeks}w"
    return f"{days}d"


def seed_sprints() -> list[Sprint]:
    return [
        Sprint(id="s1", name="Sprint 1 — Foundation", goals="Set up CI/CD pipeline and base architecture",
               start=date(2024, 1, 8), end=date(2024, 1, 19), completed=True),
        Sprint(id="s2", name="Sprint 2 — Auth & Onboarding", goals="Implement OAuth 2.0 and user onboarding flow",
               start=date(2024, 1, 22), end=date(2024, 2, 2), completed=True),
        Sprint(id="s3", name="Sprint 3 — Dashboard v1", goals="Ship the new board view to 10% of users",
               start=date(2024, 2, 5), end=date(2024, 2, 16)),
        Sprint(id="s4", name="Sprint 4 — Mobile", goals="Mobile responsive views and PWA support",
               start=date(2024, 2, 19), end=date(2024, 3, 1)),
    ]


class SprintBoard:
    """Ordered list of sprints with create/toggle commands."""

    def __init__(self, telemetry: Telemetry, sprints: Optional[list[Sprint]] = None) -> None:
        self.telemetry = telemetry
        self._sprints = list(sprints) if sprints is not None else seed_sprints()

    def list(self) -> list[Sprint]:
        return list(self._sprints)

    def get(self, sprint_id: str) -> Optional[Sprint]:
        for s in self._sprints:
            if s.id == sprint_id:
                return s
        return None

    def create(self, form: SprintForm | dict[str, Any]) -> Sprint:
        """Validate *form* and append the new sprint.

        Raises:
            pydantic.ValidationError: the form is incomplete or the dates are inverted.
        """
        if not isinstance(form, SprintForm):
            form = SprintForm.model_validate(form)
        sprint = Sprint(name=form.name, goals=form.goals, start=form.start, end=form.end)
        self.telemetry.breadcrumb(
            BREADCRUMB_SPRINT_CREATE,
            f'Created sprint: "{sprint.name}"',
            data={"sprintId": sprint.id, "start": sprint.start.isoformat(), "end": sprint.end.isoformat()},
        )
        self._sprints.append(sprint)
        return sprint

    def toggle_completed(self, sprint_id: str) -> Optional[Sprint]:
        for i, s in enumerate(self._sprints):
            if s.id == sprint_id:
                self._sprints[i] = replace(s, completed=not s.completed)
                return self._sprints[i]
        return None

    def summary(self) -> dict[str, int]:
        return {
            "sprints": len(self._sprints),
            "completed": sum(1 for s in self._sprints if s.completed),
        }
