"""Board metrics: per-column counts plus a fixed-cost performance score."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ..constants import DEFAULT_METRICS_ITERATIONS, METRICS_SCORE_KEY, METRICS_TOTAL_KEY
from .model import Board


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregate view of a board at one point in time.

    Not refreshed when the board changes; compute a new one instead.
    """
    per_column_count: Mapping[str, int] = field(default_factory=dict)
    total_items: int = 0
    performance_score: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_column_count", MappingProxyType(dict(self.per_column_count)))

    def to_dict(self) -> dict[str, Any]:
        """Flat display mapping: one entry per column title, then totals."""
        out: dict[str, Any] = dict(self.per_column_count)
        out[METRICS_TOTAL_KEY] = self.total_items
        out[METRICS_SCORE_KEY] = self.performance_score
        return out


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def workload_score(iterations: int = DEFAULT_METRICS_ITERATIONS) -> int:
    """Run the fixed CPU-bound workload and reduce it to a 0..100 score.

    Depends only on *iterations*, never on board contents.
    """
    if iterations <= 1:
        return 0
    acc = math.fsum(math.sqrt(i) * math.log(i) for i in range(1, iterations))
    return _round_half_up(acc % 100)


def compute_metrics(board: Board, iterations: int = DEFAULT_METRICS_ITERATIONS) -> MetricsSnapshot:
    """Count tasks per column and attach the workload score.

    Synchronous and deliberately slow at the default workload size.
    """
    counts = {col.title: len(col) for col in board.columns}
    score = workload_score(iterations)
    return MetricsSnapshot(
        per_column_count=counts,
        total_items=sum(counts.values()),
        performance_score=score,
    )
