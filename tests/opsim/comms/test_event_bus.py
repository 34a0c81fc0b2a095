"""Unit tests for EventBus: thread-safe pub/sub messaging.

Tests subscribe/unsubscribe, publish/receive, type filtering, queue
overflow (drop oldest) and concurrent publishers.
"""
from __future__ import annotations

import queue
import threading

import pytest

from opsim.comms.event_bus import EventBus


@pytest.mark.unit
class TestEventBusBasics:
    """Core subscribe/publish/unsubscribe functionality."""

    def test_subscribe_returns_queue(self):
        bus = EventBus()
        assert isinstance(bus.subscribe(), queue.Queue)

    def test_publish_delivers_to_subscriber(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ops_state", {"tick_count": 3})
        msg = q.get_nowait()
        assert msg["type"] == "ops_state"
        assert msg["data"]["tick_count"] == 3

    def test_publish_without_data(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ping")
        msg = q.get_nowait()
        assert msg == {"type": "ping"}

    def test_multiple_subscribers(self):
        bus = EventBus()
        q1 = bus.subscribe()
        q2 = bus.subscribe()
        bus.publish("game_over", {"reason": "bankruptcy"})
        assert q1.get_nowait()["type"] == "game_over"
        assert q2.get_nowait()["type"] == "game_over"

    def test_unsubscribe_stops_delivery(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.unsubscribe(q)
        bus.publish("after_unsub")
        assert q.empty()

    def test_unsubscribe_nonexistent_is_safe(self):
        bus = EventBus()
        bus.unsubscribe(queue.Queue())


@pytest.mark.unit
class TestEventBusFiltering:
    def test_filtered_subscriber_only_sees_its_type(self):
        bus = EventBus()
        logs = bus.subscribe("ops_log")
        bus.publish("ops_state", {"tick_count": 1})
        bus.publish("ops_log", {"message": "hi"})
        assert logs.get_nowait()["type"] == "ops_log"
        assert logs.empty()

    def test_unfiltered_subscriber_sees_everything(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ops_state")
        bus.publish("ops_log")
        assert q.qsize() == 2


@pytest.mark.unit
class TestEventBusOverflow:
    def test_full_queue_drops_oldest(self):
        bus = EventBus(maxsize=3)
        q = bus.subscribe()
        for i in range(5):
            bus.publish("ops_state", {"i": i})
        seen = [q.get_nowait()["data"]["i"] for _ in range(q.qsize())]
        assert seen == [2, 3, 4]

    def test_default_queue_bound(self):
        bus = EventBus()
        q = bus.subscribe()
        for i in range(150):
            bus.publish("ops_state", {"i": i})
        assert q.qsize() == 100
        assert q.get_nowait()["data"]["i"] == 50


@pytest.mark.unit
class TestEventBusThreadSafety:
    def test_concurrent_publishers(self):
        bus = EventBus(maxsize=1000)
        q = bus.subscribe()

        def worker(n):
            for i in range(100):
                bus.publish("ops_log", {"worker": n, "i": i})

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert q.qsize() == 400
