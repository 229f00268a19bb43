from __future__ import annotations

import argparse
import asyncio
import io
import json
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from .board.model import Board, Priority, TaskStatus
from .config import BoardConfig, load_config
from .errors import BoardError, ConfigError
from .logging_utils import configure_logging, summarize_trace
from .observability import FanoutHook, LoguruHook, RecordingHook, Telemetry
from .planning import EpicBoard, EpicStatus, SprintBoard
from .service import BoardService

_COLUMN_STYLES = {"slate": "white", "blue": "blue", "yellow": "yellow", "green": "green"}


@dataclass
class _Ctx:
    config: BoardConfig
    telemetry: Telemetry
    recorder: Optional[RecordingHook]
    service: BoardService
    sprints: SprintBoard
    epics: EpicBoard


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _ctx(args: argparse.Namespace) -> _Ctx:
    config_path = Path(args.config) if args.config else None
    config = load_config(_resolve_project_dir(args.project_dir), path=config_path)
    configure_logging(args.log_level or config.log_level)

    recorder = RecordingHook() if args.trace else None
    hook = FanoutHook(LoguruHook(), recorder) if recorder is not None else LoguruHook()
    telemetry = Telemetry(hook=hook, context=config.observability_context())
    return _Ctx(
        config=config,
        telemetry=telemetry,
        recorder=recorder,
        service=BoardService(telemetry=telemetry, config=config),
        sprints=SprintBoard(telemetry),
        epics=EpicBoard(telemetry),
    )


def _emit(ctx: _Ctx, payload: dict[str, Any]) -> None:
    if ctx.recorder is not None:
        payload = {**payload, "trace": summarize_trace(ctx.recorder)}
    sys.stdout.write(json.dumps(payload, indent=2, default=str, ensure_ascii=False) + "\n")


def render_board(board: Board, width: int = 100) -> str:
    """Render the board as a rich table, one column per board column."""
    console = Console(record=True, width=width, file=io.StringIO())
    table = Table(title="Board", show_lines=False)
    for col in board.columns:
        table.add_column(f"{col.title} ({len(col)})", style=_COLUMN_STYLES.get(col.color, ""))
    depth = max((len(col) for col in board.columns), default=0)
    for row in range(depth):
        cells = []
        for col in board.columns:
            if row < len(col):
                task = col.tasks[row]
                cells.append(f"{task.id} {task.name}\n[dim]{task.priority.value} · {task.status.value} · {task.initial}[/dim]")
            else:
                cells.append("")
        table.add_row(*cells)
    console.print(table)
    return console.export_text()


def _board_show(args: argparse.Namespace, ctx: _Ctx) -> int:
    sys.stdout.write(render_board(ctx.service.store.snapshot()))
    if ctx.recorder is not None:
        sys.stdout.write(json.dumps({"trace": summarize_trace(ctx.recorder)}, indent=2) + "\n")
    return 0


def _board_move(args: argparse.Namespace, ctx: _Ctx) -> int:
    result = asyncio.run(ctx.service.move_task(args.task_id, args.from_column, args.to_column))
    _emit(ctx, {"move": result.to_dict(), "board": ctx.service.store.snapshot().to_dict()})
    return 0


def _board_delete(args: argparse.Namespace, ctx: _Ctx) -> int:
    removed = ctx.service.delete_task(args.task_id, args.column, name=args.name)
    _emit(ctx, {"removed": removed, "task_id": args.task_id, "column": args.column})
    return 0


def _board_status(args: argparse.Namespace, ctx: _Ctx) -> int:
    changed = ctx.service.set_status(args.task_id, args.column, args.status)
    task = ctx.service.store.snapshot().find_task(args.task_id)
    _emit(ctx, {"changed": changed, "task": task.to_dict() if task is not None else None})
    return 0


def _board_metrics(args: argparse.Namespace, ctx: _Ctx) -> int:
    if args.iterations is not None:
        ctx.service.config.metrics_iterations = args.iterations
    snapshot = ctx.service.compute_metrics()
    _emit(ctx, {"metrics": snapshot.to_dict()})
    return 0


def _sprint_list(args: argparse.Namespace, ctx: _Ctx) -> int:
    _emit(ctx, {"sprints": [s.to_dict() for s in ctx.sprints.list()], "summary": ctx.sprints.summary()})
    return 0


def _sprint_create(args: argparse.Namespace, ctx: _Ctx) -> int:
    sprint = ctx.sprints.create({"name": args.name, "goals": args.goals, "start": args.start, "end": args.end})
    _emit(ctx, {"sprint": sprint.to_dict()})
    return 0


def _epic_list(args: argparse.Namespace, ctx: _Ctx) -> int:
    _emit(ctx, {"epics": [e.to_dict() for e in ctx.epics.list()], "summary": ctx.epics.summary()})
    return 0


def _epic_create(args: argparse.Namespace, ctx: _Ctx) -> int:
    epic = ctx.epics.create(
        {
            "name": args.name,
            "owner": args.owner,
            "due_date": args.due_date,
            "description": args.description,
            "status": args.status,
            "priority": args.priority,
            "progress": args.progress,
        }
    )
    _emit(ctx, {"epic": epic.to_dict()})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Monday Lite task board CLI")
    parser.add_argument("--project-dir", default=None, help="Project directory holding .monday_lite/ (default: current working directory)")
    parser.add_argument("--config", default=None, help="Config file path (overrides MONDAY_LITE_CONFIG)")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config, else INFO)")
    parser.add_argument("--trace", action="store_true", help="Include recorded spans, breadcrumbs and exceptions in the output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    board = subparsers.add_parser("board", help="Inspect and mutate the task board")
    board_sub = board.add_subparsers(dest="board_cmd", required=True)
    bshow = board_sub.add_parser("show", help="Render the board")
    bshow.set_defaults(func=_board_show)
    bmove = board_sub.add_parser("move", help="Move a task between columns")
    bmove.add_argument("task_id")
    bmove.add_argument("from_column")
    bmove.add_argument("to_column")
    bmove.set_defaults(func=_board_move)
    bdelete = board_sub.add_parser("delete", help="Delete a task")
    bdelete.add_argument("task_id")
    bdelete.add_argument("column")
    bdelete.add_argument("--name", default=None, help="Displayed task name (default: looked up on the board)")
    bdelete.set_defaults(func=_board_delete)
    bstatus = board_sub.add_parser("status", help="Change a task's status")
    bstatus.add_argument("task_id")
    bstatus.add_argument("column")
    bstatus.add_argument("status", help=f"One of: {', '.join(s.value for s in TaskStatus)}")
    bstatus.set_defaults(func=_board_status)
    bmetrics = board_sub.add_parser("metrics", help="Compute board metrics")
    bmetrics.add_argument("--iterations", type=int, default=None)
    bmetrics.set_defaults(func=_board_metrics)

    sprint = subparsers.add_parser("sprint", help="Sprint planning")
    sprint_sub = sprint.add_subparsers(dest="sprint_cmd", required=True)
    slist = sprint_sub.add_parser("list", help="List sprints")
    slist.set_defaults(func=_sprint_list)
    screate = sprint_sub.add_parser("create", help="Create a sprint")
    screate.add_argument("name")
    screate.add_argument("--goals", required=True)
    screate.add_argument("--start", required=True, type=date.fromisoformat)
    screate.add_argument("--end", required=True, type=date.fromisoformat)
    screate.set_defaults(func=_sprint_create)

    epic = subparsers.add_parser("epic", help="Epic planning")
    epic_sub = epic.add_subparsers(dest="epic_cmd", required=True)
    elist = epic_sub.add_parser("list", help="List epics")
    elist.set_defaults(func=_epic_list)
    ecreate = epic_sub.add_parser("create", help="Create an epic")
    ecreate.add_argument("name")
    ecreate.add_argument("--owner", required=True)
    ecreate.add_argument("--due-date", required=True, type=date.fromisoformat)
    ecreate.add_argument("--description", default="")
    ecreate.add_argument("--status", default=EpicStatus.PLANNING.value, choices=[s.value for s in EpicStatus])
    ecreate.add_argument("--priority", default=Priority.MEDIUM.value, choices=[p.value for p in Priority])
    ecreate.add_argument("--progress", default=0, type=int)
    ecreate.set_defaults(func=_epic_create)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        ctx = _ctx(args)
    except ConfigError as exc:
        sys.stderr.write(f"Config error: {exc}\n")
        return 1
    try:
        return int(handler(args, ctx) or 0)
    except (BoardError, ValueError) as exc:
        # pydantic.ValidationError is a ValueError
        sys.stderr.write(str(exc) + "\n")
        if ctx.recorder is not None:
            _emit(ctx, {"error": str(exc)})
        return 1
