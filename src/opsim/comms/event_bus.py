"""EventBus: thread-safe pub/sub between the engine and its consumers.

The engine publishes a snapshot after every committed tick or command,
each new ops log line, and the game-over notice.  The web layer and any
dashboard subscribe here instead of polling the engine.
"""

from __future__ import annotations

import queue
import threading

DEFAULT_QUEUE_SIZE = 100


class EventBus:
    """Simple thread-safe pub/sub for pushing events to subscribers."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, str | None]] = []

    def subscribe(self, event_type: str | None = None) -> queue.Queue:
        """Subscribe to events.  Returns a Queue of ``{"type", "data"}`` dicts.

        With ``event_type`` set, only events of that type are delivered.
        """
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append((q, event_type))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, f) for s, f in self._subscribers if s is not q]

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            for q, wanted in self._subscribers:
                if wanted is not None and wanted != event_type:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    # Drop oldest
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(msg)
                    except queue.Full:
                        pass
