"""Tests for the board command interface (service.py) and the activity log."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from monday_lite.activity import ActivityLog
from monday_lite.board.model import Task, TaskStatus
from monday_lite.board.transaction import MoveState
from monday_lite.config import BoardConfig
from monday_lite.errors import InvalidTargetColumnError, ProtectedEntityDeleteError
from monday_lite.observability import (
    Breadcrumb,
    ExceptionRecord,
    ObservabilityHook,
    RecordingHook,
    SpanRecord,
    Telemetry,
)
from monday_lite.service import BoardService


@pytest.fixture
def config() -> BoardConfig:
    return BoardConfig(validate_latency_ms=0, commit_latency_ms=0, metrics_iterations=10)


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def service(config: BoardConfig, hook: RecordingHook) -> BoardService:
    telemetry = Telemetry(hook=hook, context=config.observability_context())
    return BoardService(telemetry=telemetry, config=config)


class _ExplodingHook(ObservabilityHook):
    def record_span(self, span: SpanRecord) -> None:
        raise RuntimeError("span sink down")

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        raise RuntimeError("breadcrumb sink down")

    def capture_exception(self, record: ExceptionRecord) -> None:
        raise RuntimeError("exception sink down")


# ---------------------------------------------------------------------------
# Move
# ---------------------------------------------------------------------------

class TestServiceMove:
    def test_move_applies_and_logs(self, service: BoardService) -> None:
        result = asyncio.run(service.move_task("t1", "backlog", "review"))
        assert result.applied
        assert service.store.snapshot().locate("t1") == "review"
        assert service.activity.entries()[0].endswith('Moved task "t1" → review')

    def test_invalid_target_propagates(self, service: BoardService, hook: RecordingHook) -> None:
        before = service.store.snapshot()
        with pytest.raises(InvalidTargetColumnError):
            asyncio.run(service.move_task("t1", "backlog", "archive"))
        assert service.store.snapshot() is before
        assert service.moving_task_ids == set()
        assert len(hook.spans_by_op("task.move")) == 1

    def test_ignored_move_not_logged(self, service: BoardService) -> None:
        result = asyncio.run(service.move_task("t4", "backlog", "done"))
        assert result.state == MoveState.IGNORED
        assert len(service.activity) == 0

    def test_moving_ids_tracked_while_in_flight(self, hook: RecordingHook) -> None:
        config = BoardConfig(validate_latency_ms=0, commit_latency_ms=20, metrics_iterations=10)
        service = BoardService(telemetry=Telemetry(hook=hook), config=config)

        async def scenario() -> tuple[set[str], set[str]]:
            task = asyncio.ensure_future(service.move_task("t1", "backlog", "done"))
            await asyncio.sleep(0.005)
            during = service.moving_task_ids
            await task
            return during, service.moving_task_ids

        during, after = asyncio.run(scenario())
        assert during == {"t1"}
        assert after == set()

    def test_spans_carry_workspace_context(self, service: BoardService, hook: RecordingHook) -> None:
        asyncio.run(service.move_task("t1", "backlog", "done"))
        for span in hook.spans:
            assert span.tags == {"workspace_type": "enterprise"}
            assert span.contexts["sprint_data"]["velocity"] == 42


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

class TestServiceDelete:
    def test_protected_delete_raises_and_captures(self, service: BoardService, hook: RecordingHook) -> None:
        before = service.store.snapshot()
        with pytest.raises(ProtectedEntityDeleteError) as excinfo:
            service.delete_task("t2", "backlog")

        assert excinfo.value.context == {"id": "t2", "name": "Error Task", "column": "backlog"}
        assert service.store.snapshot() is before
        assert service.store.snapshot().find_task("t2") is not None

        [record] = hook.exceptions
        assert record.kind == "ProtectedEntityDeleteError"
        assert record.tags["action"] == "delete_task"
        assert record.tags["task.name"] == "Error Task"
        assert record.tags["workspace_type"] == "enterprise"
        assert record.contexts["task_info"] == {"id": "t2", "name": "Error Task", "column": "backlog"}
        assert "sprint_data" in record.contexts
        assert hook.breadcrumbs == []

    def test_protected_by_name_not_id(self, service: BoardService, hook: RecordingHook) -> None:
        service.insert_task(Task(id="t42", name="Error Task"), "done")
        with pytest.raises(ProtectedEntityDeleteError):
            service.delete_task("t42", "done")
        assert len(hook.exceptions) == 1

    def test_protected_caller_name_rejects(self, service: BoardService, hook: RecordingHook) -> None:
        with pytest.raises(ProtectedEntityDeleteError):
            service.delete_task("t1", "backlog", name="Error Task")
        assert service.store.snapshot().find_task("t1") is not None

    def test_stale_caller_name_cannot_bypass_protection(self, service: BoardService, hook: RecordingHook) -> None:
        before = service.store.snapshot()
        with pytest.raises(ProtectedEntityDeleteError) as excinfo:
            service.delete_task("t2", "backlog", name="Renamed in view")

        assert service.store.snapshot() is before
        assert service.store.snapshot().find_task("t2") is not None
        assert excinfo.value.context["name"] == "Error Task"
        [record] = hook.exceptions
        assert record.tags["task.name"] == "Error Task"

    def test_protected_after_move_to_other_column(self, service: BoardService, hook: RecordingHook) -> None:
        result = asyncio.run(service.move_task("t2", "backlog", "done"))
        assert result.applied

        with pytest.raises(ProtectedEntityDeleteError) as excinfo:
            service.delete_task("t2", "done")

        assert excinfo.value.context == {"id": "t2", "name": "Error Task", "column": "done"}
        assert service.store.snapshot().locate("t2") == "done"
        assert len(hook.exceptions) == 1

    def test_board_name_used_for_ordinary_delete(self, service: BoardService, hook: RecordingHook) -> None:
        assert service.delete_task("t3", "backlog", name="Old label")
        [crumb] = hook.breadcrumbs
        assert crumb.message == 'Deleted task "Write integration tests"'

    def test_delete_emits_breadcrumb(self, service: BoardService, hook: RecordingHook) -> None:
        assert service.delete_task("t3", "backlog") is True
        [crumb] = hook.breadcrumbs
        assert crumb.category == "task.delete"
        assert crumb.data == {"taskId": "t3", "column": "backlog", "removed": True}
        assert service.activity.entries()[0].endswith('Deleted task "Write integration tests"')

    def test_delete_twice_is_idempotent(self, service: BoardService, hook: RecordingHook) -> None:
        assert service.delete_task("t3", "backlog") is True
        snapshot = service.store.snapshot()
        assert service.delete_task("t3", "backlog") is False
        assert service.store.snapshot() is snapshot
        assert hook.exceptions == []


# ---------------------------------------------------------------------------
# Status / open / insert
# ---------------------------------------------------------------------------

class TestServiceStatus:
    @pytest.mark.parametrize("status", list(TaskStatus))
    def test_status_round_trip(self, service: BoardService, status: TaskStatus) -> None:
        service.set_status("t6", "review", status)
        assert service.store.snapshot().find_task("t6").status == status

    def test_status_by_value_string(self, service: BoardService, hook: RecordingHook) -> None:
        assert service.set_status("t1", "backlog", "Stuck") is True
        [crumb] = hook.breadcrumbs
        assert crumb.category == "ui.interaction"
        assert crumb.data["newStatus"] == "Stuck"

    def test_unknown_status_rejected_before_any_record(self, service: BoardService, hook: RecordingHook) -> None:
        before = service.store.snapshot()
        with pytest.raises(ValueError):
            service.set_status("t1", "backlog", "Sleeping")
        assert service.store.snapshot() is before
        assert hook.breadcrumbs == []
        assert len(service.activity) == 0

    def test_same_status_is_noop(self, service: BoardService) -> None:
        before = service.store.snapshot()
        assert service.set_status("t1", "backlog", TaskStatus.NOT_STARTED) is False
        assert service.store.snapshot() is before


class TestServiceOpenAndInsert:
    def test_open_task(self, service: BoardService, hook: RecordingHook) -> None:
        task = service.open_task("t4", "in_progress")
        assert task is not None and task.name == "Implement OAuth 2.0 flow"
        [crumb] = hook.breadcrumbs
        assert crumb.category == "ui.modal"
        assert crumb.data == {"itemId": "t4", "column": "in_progress", "priority": "High"}

    def test_open_missing_task(self, service: BoardService, hook: RecordingHook) -> None:
        assert service.open_task("t4", "done") is None
        assert hook.breadcrumbs == []

    def test_insert_task(self, service: BoardService) -> None:
        assert service.insert_task(Task(id="t9", name="Ship it"), "backlog")
        assert service.store.snapshot().locate("t9") == "backlog"


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestServiceMetrics:
    def test_compute_metrics_span(self, service: BoardService, hook: RecordingHook) -> None:
        snap = service.compute_metrics()
        assert service.last_metrics is snap
        assert snap.total_items == 8
        [span] = hook.spans_by_op("ui.action.compute")
        assert span.attributes == {"board.columns": 4, "board.total_items": 8}
        assert span.ok

    def test_last_metrics_not_refreshed_by_mutations(self, service: BoardService) -> None:
        snap = service.compute_metrics()
        service.delete_task("t3", "backlog")
        assert service.last_metrics is snap
        assert service.last_metrics.total_items == 8


# ---------------------------------------------------------------------------
# Hook failures
# ---------------------------------------------------------------------------

class TestHookFailures:
    def test_failing_hook_never_changes_outcome(self, config: BoardConfig) -> None:
        service = BoardService(telemetry=Telemetry(hook=_ExplodingHook()), config=config)

        result = asyncio.run(service.move_task("t1", "backlog", "done"))
        assert result.applied
        assert service.delete_task("t3", "backlog")
        assert service.set_status("t4", "in_progress", TaskStatus.DONE)
        assert service.compute_metrics().total_items == 7
        with pytest.raises(ProtectedEntityDeleteError):
            service.delete_task("t2", "backlog")
        assert service.store.snapshot().find_task("t2") is not None


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------

class TestActivityLog:
    def test_newest_first_and_bounded(self) -> None:
        log = ActivityLog(clock=lambda: datetime(2024, 1, 1, 9, 30, 5))
        for i in range(12):
            log.push(f"event {i}")
        entries = log.entries()
        assert len(entries) == 10
        assert entries[0] == "09:30:05 — event 11"
        assert entries[-1] == "09:30:05 — event 2"

    def test_protected_delete_logged(self, service: BoardService) -> None:
        with pytest.raises(ProtectedEntityDeleteError):
            service.delete_task("t2", "backlog")
        assert service.activity.entries()[0].endswith('ERROR captured → "Error Task"')
