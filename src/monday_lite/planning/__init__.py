"""Sprint and epic planning alongside the task board."""

from .epics import Epic, EpicBoard, EpicForm, EpicStatus, progress_band
from .sprints import Sprint, SprintBoard, SprintForm, sprint_timeline

__all__ = [
    "Epic",
    "EpicBoard",
    "EpicForm",
    "EpicStatus",
    "Sprint",
    "SprintBoard",
    "SprintForm",
    "progress_band",
    "sprint_timeline",
]
