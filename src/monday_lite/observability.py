"""Observability hook: spans, breadcrumbs and exception records.

The board engine reports what it does through a :class:`Telemetry` object.
Telemetry stamps every record with the workspace :class:`ObservabilityContext`
it was built with (tags such as ``workspace_type`` and named context blocks
such as ``sprint_data``) and hands the record to an :class:`ObservabilityHook`.
Nothing here is global: whoever builds the service decides which context and
which hook are used.

Hooks are collaborators, not part of the engine.  A hook that raises is logged
and otherwise ignored so telemetry can never change the outcome of a board
operation.
"""

from __future__ import annotations

import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, Iterator, Optional

from loguru import logger


def _span_id() -> str:
    return uuid.uuid4().hex[:16]


def _copy_contexts(contexts: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {k: dict(v) for k, v in contexts.items()}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class ObservabilityContext:
    """Workspace-level attributes attached to every record."""

    tags: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)

    def merged(
        self,
        tags: Optional[dict[str, str]] = None,
        contexts: Optional[dict[str, dict[str, Any]]] = None,
    ) -> "ObservabilityContext":
        return ObservabilityContext(
            tags={**self.tags, **(tags or {})},
            contexts=_copy_contexts({**self.contexts, **(contexts or {})}),
        )


@dataclass
class SpanRecord:
    op: str
    name: str
    span_id: str = field(default_factory=_span_id)
    parent_id: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)
    started_at: float = 0.0
    finished_at: Optional[float] = None
    status: str = "ok"    # ok | error
    error: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["duration_seconds"] = round(self.duration_seconds, 4)
        return data


@dataclass
class Breadcrumb:
    category: str
    message: str
    level: str = "info"
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    tags: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ExceptionRecord:
    kind: str
    message: str
    level: str = "error"
    tags: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------

class ObservabilityHook(ABC):
    """Sink for telemetry records."""

    @abstractmethod
    def record_span(self, span: SpanRecord) -> None:
        ...

    @abstractmethod
    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        ...

    @abstractmethod
    def capture_exception(self, record: ExceptionRecord) -> None:
        ...


class RecordingHook(ObservabilityHook):
    """Keeps every record in memory, in arrival order."""

    def __init__(self) -> None:
        self.spans: list[SpanRecord] = []
        self.breadcrumbs: list[Breadcrumb] = []
        self.exceptions: list[ExceptionRecord] = []

    def record_span(self, span: SpanRecord) -> None:
        self.spans.append(span)

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        self.breadcrumbs.append(crumb)

    def capture_exception(self, record: ExceptionRecord) -> None:
        self.exceptions.append(record)

    def spans_by_op(self, op: str) -> list[SpanRecord]:
        return [s for s in self.spans if s.op == op]

    def children_of(self, span: SpanRecord) -> list[SpanRecord]:
        return [s for s in self.spans if s.parent_id == span.span_id]

    def clear(self) -> None:
        self.spans.clear()
        self.breadcrumbs.clear()
        self.exceptions.clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "spans": [s.to_dict() for s in self.spans],
            "breadcrumbs": [b.to_dict() for b in self.breadcrumbs],
            "exceptions": [e.to_dict() for e in self.exceptions],
        }


class LoguruHook(ObservabilityHook):
    """Writes records to the loguru logger, with tags bound as extra fields."""

    def record_span(self, span: SpanRecord) -> None:
        log = logger.bind(op=span.op, span_id=span.span_id, **span.tags)
        if span.ok:
            log.debug("span {} ({:.3f}s) {}", span.name, span.duration_seconds, span.attributes)
        else:
            log.warning("span {} failed after {:.3f}s: {}", span.name, span.duration_seconds, span.error)

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        logger.bind(category=crumb.category, **crumb.tags).info("{} {}", crumb.message, crumb.data or "")

    def capture_exception(self, record: ExceptionRecord) -> None:
        logger.bind(kind=record.kind, **record.tags).error("{}: {} {}", record.kind, record.message, record.contexts)


class FanoutHook(ObservabilityHook):
    """Forwards every record to each wrapped hook."""

    def __init__(self, *hooks: ObservabilityHook) -> None:
        self.hooks = list(hooks)

    def record_span(self, span: SpanRecord) -> None:
        for hook in self.hooks:
            hook.record_span(span)

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        for hook in self.hooks:
            hook.add_breadcrumb(crumb)

    def capture_exception(self, record: ExceptionRecord) -> None:
        for hook in self.hooks:
            hook.capture_exception(record)


# ---------------------------------------------------------------------------
# Telemetry front-end
# ---------------------------------------------------------------------------

class Telemetry:
    """Builds records, stamps them with the workspace context and emits them.

    Parameters
    ----------
    hook:
        Destination for records. Defaults to :class:`LoguruHook`.
    context:
        Workspace tags and context blocks copied onto every record.
    """

    def __init__(
        self,
        hook: Optional[ObservabilityHook] = None,
        context: Optional[ObservabilityContext] = None,
    ) -> None:
        self.hook = hook or LoguruHook()
        self.context = context or ObservabilityContext()

    def _deliver(self, method: str, record: Any) -> None:
        try:
            getattr(self.hook, method)(record)
        except Exception:
            logger.exception("Observability hook failed in {}", method)

    @contextmanager
    def span(
        self,
        op: str,
        name: str,
        attributes: Optional[dict[str, Any]] = None,
        parent: Optional[SpanRecord] = None,
    ) -> Iterator[SpanRecord]:
        """Time the enclosed block as one span.

        The span is emitted when the block exits.  If the block raises, the
        span is marked ``error`` and the exception propagates unchanged.
        """
        record = SpanRecord(
            op=op,
            name=name,
            parent_id=parent.span_id if parent is not None else None,
            attributes=dict(attributes or {}),
            started_at=time.time(),
            tags=dict(self.context.tags),
            contexts=_copy_contexts(self.context.contexts),
        )
        try:
            yield record
        except BaseException as exc:
            record.status = "error"
            record.error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            record.finished_at = time.time()
            self._deliver("record_span", record)

    def breadcrumb(
        self,
        category: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
        level: str = "info",
    ) -> Breadcrumb:
        crumb = Breadcrumb(
            category=category,
            message=message,
            level=level,
            data=dict(data or {}),
            tags=dict(self.context.tags),
            contexts=_copy_contexts(self.context.contexts),
        )
        self._deliver("add_breadcrumb", crumb)
        return crumb

    def capture_exception(
        self,
        exc: BaseException,
        tags: Optional[dict[str, str]] = None,
        contexts: Optional[dict[str, dict[str, Any]]] = None,
        level: str = "error",
    ) -> ExceptionRecord:
        scoped = self.context.merged(tags=tags, contexts=contexts)
        record = ExceptionRecord(
            kind=getattr(exc, "kind", type(exc).__name__),
            message=str(exc),
            level=level,
            tags=scoped.tags,
            contexts=scoped.contexts,
        )
        self._deliver("capture_exception", record)
        return record
