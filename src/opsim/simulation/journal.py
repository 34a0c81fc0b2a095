"""Ops log and traffic history: the bounded side channels of the engine.

Neither is part of the snapshot: they are append-only streams the
dashboard reads next to it.  Both drop their oldest entries once full.
"""

from __future__ import annotations

import time
import uuid
from collections import deque
from datetime import datetime
from typing import Callable, Iterable

from .balance import MAX_CHART_POINTS, MAX_LOG_ENTRIES
from .models import ChartPoint, LogEntry, LogLevel, Message, TrafficMetrics


def _new_entry_id() -> str:
    return uuid.uuid4().hex[:12]


class OpsLog:
    """Timestamped operator messages, most recent MAX_LOG_ENTRIES kept."""

    def __init__(self, maxlen: int = MAX_LOG_ENTRIES,
                 id_factory: Callable[[], str] = _new_entry_id) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=maxlen)
        self._id_factory = id_factory

    def add(self, message: str, level: LogLevel = LogLevel.INFO,
            timestamp: float | None = None) -> LogEntry:
        entry = LogEntry(
            entry_id=self._id_factory(),
            timestamp=timestamp if timestamp is not None else time.time() * 1000,
            message=message,
            level=level,
        )
        self._entries.append(entry)
        return entry

    def extend(self, messages: Iterable[Message], timestamp: float | None = None) -> list[LogEntry]:
        return [self.add(m.text, m.level, timestamp) for m in messages]

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class TrafficHistory:
    """One (legitimate, malicious, processed) point per tick, rolling window."""

    def __init__(self, maxlen: int = MAX_CHART_POINTS) -> None:
        self._points: deque[ChartPoint] = deque(maxlen=maxlen)

    def record(self, metrics: TrafficMetrics, now: float) -> ChartPoint:
        point = ChartPoint(
            time=datetime.fromtimestamp(now / 1000).strftime("%H:%M:%S"),
            legitimate=round(metrics.current_traffic - metrics.malicious_traffic),
            malicious=round(metrics.malicious_traffic),
            processed=round(metrics.processed_traffic),
        )
        self._points.append(point)
        return point

    def points(self) -> list[ChartPoint]:
        return list(self._points)

    def clear(self) -> None:
        self._points.clear()

    def __len__(self) -> int:
        return len(self._points)
