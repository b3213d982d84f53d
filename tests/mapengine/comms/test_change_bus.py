"""Unit tests for EventBus — pub/sub of engine change notifications.

Tests subscribe/unsubscribe, publish/receive, event-type filtering and queue
overflow (drop oldest).
"""
from __future__ import annotations

import queue

import pytest

from mapengine.comms import EventBus
from mapengine.config import settings


@pytest.mark.unit
class TestEventBusBasics:
    """Core subscribe/publish/unsubscribe functionality."""

    def test_subscribe_returns_queue(self):
        bus = EventBus()
        q = bus.subscribe()
        assert isinstance(q, queue.Queue)
        assert bus.subscriber_count == 1

    def test_publish_delivers_to_subscriber(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("layer_added", {"layer_id": "pins"})
        msg = q.get_nowait()
        assert msg["type"] == "layer_added"
        assert msg["data"]["layer_id"] == "pins"

    def test_publish_without_data(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ping")
        msg = q.get_nowait()
        assert msg["type"] == "ping"
        assert "data" not in msg

    def test_multiple_subscribers(self):
        bus = EventBus()
        q1 = bus.subscribe()
        q2 = bus.subscribe()
        bus.publish("map_state", {"state": "zooming"})
        assert q1.get_nowait()["type"] == "map_state"
        assert q2.get_nowait()["type"] == "map_state"

    def test_unsubscribe_stops_delivery(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.unsubscribe(q)
        bus.publish("after_unsub")
        assert q.empty()
        assert bus.subscriber_count == 0

    def test_unsubscribe_nonexistent_is_safe(self):
        bus = EventBus()
        bus.unsubscribe(queue.Queue())  # Should not raise


@pytest.mark.unit
class TestEventBusFilter:
    """Delivery limited to the subscribed event types."""

    def test_single_type_filter(self):
        bus = EventBus()
        q = bus.subscribe("map_state")
        bus.publish("map_state", {"state": "idle"})
        bus.publish("layer_added", {"layer_id": "x"})
        assert q.qsize() == 1
        assert q.get_nowait()["type"] == "map_state"

    def test_type_list_filter(self):
        bus = EventBus()
        q = bus.subscribe(["feature_added", "feature_deleted"])
        bus.publish("feature_added")
        bus.publish("feature_visibility")
        bus.publish("feature_deleted")
        assert [q.get_nowait()["type"] for _ in range(q.qsize())] == [
            "feature_added",
            "feature_deleted",
        ]

    def test_unfiltered_subscriber_gets_everything(self):
        bus = EventBus()
        everything = bus.subscribe()
        bus.subscribe("map_state")
        bus.publish("layer_added")
        bus.publish("map_state")
        assert everything.qsize() == 2


@pytest.mark.unit
class TestEventBusOverflow:
    """Queue overflow behavior — drop oldest message when full."""

    def test_queue_maxsize_from_settings(self):
        bus = EventBus()
        q = bus.subscribe()
        assert q.maxsize == settings.event_queue_size

    def test_overflow_drops_oldest(self):
        bus = EventBus(maxsize=10)
        q = bus.subscribe()
        for i in range(10):
            bus.publish("fill", {"seq": i})
        assert q.full()

        bus.publish("overflow", {"seq": 10})

        # seq=0 was dropped
        first = q.get_nowait()
        assert first["data"]["seq"] == 1

    def test_overflow_does_not_lose_new_event(self):
        bus = EventBus(maxsize=5)
        q = bus.subscribe()
        for i in range(20):
            bus.publish("fill", {"seq": i})

        bus.publish("important", {"critical": True})

        msgs = []
        while not q.empty():
            msgs.append(q.get_nowait())
        assert len(msgs) == 5
        assert msgs[-1]["type"] == "important"
        assert msgs[-1]["data"]["critical"] is True
