"""Tests for telemetry records, hooks and trace summaries."""

from __future__ import annotations

import pytest
from loguru import logger

from monday_lite.logging_utils import pretty, summarize_span, summarize_trace
from monday_lite.observability import (
    FanoutHook,
    LoguruHook,
    ObservabilityContext,
    RecordingHook,
    SpanRecord,
    Telemetry,
)


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def context() -> ObservabilityContext:
    return ObservabilityContext(
        tags={"workspace_type": "enterprise"},
        contexts={"sprint_data": {"id": "sprint-2024", "velocity": 42}},
    )


class TestTelemetrySpans:
    def test_span_emitted_on_exit(self, hook: RecordingHook, context: ObservabilityContext) -> None:
        telemetry = Telemetry(hook=hook, context=context)
        with telemetry.span("task.move", "Move", {"task.id": "t1"}) as span:
            assert hook.spans == []
            span.attributes["extra"] = True

        [record] = hook.spans
        assert record.ok
        assert record.attributes == {"task.id": "t1", "extra": True}
        assert record.tags == {"workspace_type": "enterprise"}
        assert record.contexts["sprint_data"]["id"] == "sprint-2024"
        assert record.finished_at is not None
        assert record.duration_seconds >= 0

    def test_nested_spans_link_parent(self, hook: RecordingHook) -> None:
        telemetry = Telemetry(hook=hook)
        with telemetry.span("task.move", "Parent") as parent:
            with telemetry.span("validate", "Child", parent=parent):
                pass

        child, root = hook.spans
        assert child.parent_id == root.span_id
        assert root.parent_id is None
        assert hook.children_of(root) == [child]

    def test_span_error_propagates(self, hook: RecordingHook) -> None:
        telemetry = Telemetry(hook=hook)
        with pytest.raises(KeyError):
            with telemetry.span("validate", "Boom"):
                raise KeyError("missing")

        [record] = hook.spans
        assert record.status == "error"
        assert record.error is not None and record.error.startswith("KeyError")

    def test_to_dict(self) -> None:
        span = SpanRecord(op="validate", name="V", started_at=1.0, finished_at=1.5)
        data = span.to_dict()
        assert data["op"] == "validate"
        assert data["duration_seconds"] == 0.5


class TestTelemetryRecords:
    def test_breadcrumb_stamped(self, hook: RecordingHook, context: ObservabilityContext) -> None:
        telemetry = Telemetry(hook=hook, context=context)
        crumb = telemetry.breadcrumb("ui.modal", "Opened", {"itemId": "t1"})
        assert hook.breadcrumbs == [crumb]
        assert crumb.tags["workspace_type"] == "enterprise"
        assert crumb.level == "info"

    def test_capture_exception_merges_scope(self, hook: RecordingHook, context: ObservabilityContext) -> None:
        telemetry = Telemetry(hook=hook, context=context)
        record = telemetry.capture_exception(
            RuntimeError("bad"),
            tags={"action": "delete_task"},
            contexts={"task_info": {"id": "t2"}},
        )
        assert record.kind == "RuntimeError"
        assert record.message == "bad"
        assert record.tags == {"workspace_type": "enterprise", "action": "delete_task"}
        assert set(record.contexts) == {"sprint_data", "task_info"}
        # scope does not leak back into the telemetry context
        assert context.tags == {"workspace_type": "enterprise"}

    def test_records_do_not_share_context_blocks(self, hook: RecordingHook, context: ObservabilityContext) -> None:
        telemetry = Telemetry(hook=hook, context=context)
        first = telemetry.breadcrumb("x", "one")
        first.contexts["sprint_data"]["velocity"] = 0
        second = telemetry.breadcrumb("x", "two")
        with telemetry.span("op", "name") as span:
            pass
        record = telemetry.capture_exception(ValueError("v"))

        assert context.contexts["sprint_data"]["velocity"] == 42
        assert second.contexts["sprint_data"]["velocity"] == 42
        assert span.contexts["sprint_data"] is not context.contexts["sprint_data"]
        assert record.contexts["sprint_data"] is not context.contexts["sprint_data"]

    def test_context_not_global(self, hook: RecordingHook) -> None:
        a = Telemetry(hook=hook, context=ObservabilityContext(tags={"workspace_type": "a"}))
        b = Telemetry(hook=hook, context=ObservabilityContext(tags={"workspace_type": "b"}))
        a.breadcrumb("x", "one")
        b.breadcrumb("x", "two")
        assert [c.tags["workspace_type"] for c in hook.breadcrumbs] == ["a", "b"]

    def test_clear(self, hook: RecordingHook) -> None:
        telemetry = Telemetry(hook=hook)
        telemetry.breadcrumb("x", "y")
        telemetry.capture_exception(ValueError("z"))
        hook.clear()
        assert hook.to_dict() == {"spans": [], "breadcrumbs": [], "exceptions": []}


class TestHooks:
    def test_fanout_delivers_to_all(self) -> None:
        first, second = RecordingHook(), RecordingHook()
        telemetry = Telemetry(hook=FanoutHook(first, second))
        with telemetry.span("op", "name"):
            pass
        telemetry.breadcrumb("c", "m")
        telemetry.capture_exception(ValueError("v"))
        for h in (first, second):
            assert len(h.spans) == len(h.breadcrumbs) == len(h.exceptions) == 1

    def test_loguru_hook_writes_log(self) -> None:
        messages: list[str] = []
        sink_id = logger.add(messages.append, level="DEBUG", format="{message}")
        try:
            telemetry = Telemetry(hook=LoguruHook())
            telemetry.breadcrumb("task.delete", "Deleted task")
            telemetry.capture_exception(ValueError("nope"))
        finally:
            logger.remove(sink_id)
        assert any("Deleted task" in m for m in messages)
        assert any("ValueError: nope" in m for m in messages)

    def test_default_hook_is_loguru(self) -> None:
        assert isinstance(Telemetry().hook, LoguruHook)


class TestTraceSummary:
    def test_summarize_trace(self, hook: RecordingHook) -> None:
        telemetry = Telemetry(hook=hook)
        with telemetry.span("task.move", "Move") as parent:
            with telemetry.span("validate", "Validate", parent=parent):
                pass
        telemetry.breadcrumb("ui.modal", "Opened", {"itemId": "t1"})

        summary = summarize_trace(hook)
        assert [s["op"] for s in summary["spans"]] == ["validate", "task.move"]
        assert summary["spans"][0]["parent"] == parent.span_id
        assert summary["breadcrumbs"] == [{"category": "ui.modal", "message": "Opened", "data": {"itemId": "t1"}}]
        assert summary["exceptions"] == []

    def test_summarize_span_truncates_error(self) -> None:
        span = SpanRecord(op="x", name="y", status="error", error="e" * 500)
        assert summarize_span(span)["error"].endswith("…")

    def test_pretty(self) -> None:
        assert pretty({"a": 1}) == '{\n  "a": 1\n}'
