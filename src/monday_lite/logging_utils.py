"""Loguru setup and compact summaries of telemetry records."""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger

from .observability import RecordingHook, SpanRecord


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def summarize_span(span: SpanRecord) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of a span."""
    d: dict[str, Any] = {
        "op": span.op,
        "name": span.name,
        "status": span.status,
        "ms": round(span.duration_seconds * 1000, 1),
    }
    if span.parent_id:
        d["parent"] = span.parent_id
    if span.attributes:
        d["attributes"] = dict(span.attributes)
    if span.error:
        d["error"] = (span.error[:240] + "…") if len(span.error) > 240 else span.error
    return d


def summarize_trace(hook: RecordingHook) -> dict[str, Any]:
    """Summarize everything a :class:`RecordingHook` collected."""
    return {
        "spans": [summarize_span(s) for s in hook.spans],
        "breadcrumbs": [
            {"category": b.category, "message": b.message, "data": b.data} for b in hook.breadcrumbs
        ],
        "exceptions": [
            {"kind": e.kind, "message": e.message, "tags": e.tags, "contexts": e.contexts}
            for e in hook.exceptions
        ],
    }


def pretty(obj: Any, *, indent: int = 2) -> str:
    """Serialize an object as JSON for readable logs.

    Returns:
        A JSON string when possible; otherwise `str(obj)`.
    """
    try:
        return json.dumps(obj, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(obj)
