"""Activity log: the last few human-readable board actions, newest first.

Local to the session and separate from telemetry.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Callable, Optional

from .constants import ACTIVITY_LOG_LIMIT


class ActivityLog:
    def __init__(
        self,
        limit: int = ACTIVITY_LOG_LIMIT,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._entries: deque[str] = deque(maxlen=limit)
        self._clock = clock or datetime.now

    def push(self, message: str) -> str:
        entry = f"{self._clock().strftime('%H:%M:%S')} — {message}"
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
