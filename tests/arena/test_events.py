"""Unit tests for the arena EventBus."""

from __future__ import annotations

import pytest

from arena.events import EventBus, drain

pytestmark = pytest.mark.unit


class TestEventBus:
    def test_unfiltered_subscriber_gets_everything(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("agent_spawned", {"agent_id": "tank-1"})
        bus.publish("agents_cleared")
        msgs = drain(q)
        assert [m["type"] for m in msgs] == ["agent_spawned", "agents_cleared"]
        assert msgs[0]["data"] == {"agent_id": "tank-1"}
        assert "data" not in msgs[1]

    def test_topic_filter(self):
        bus = EventBus()
        q = bus.subscribe("spawn_skipped")
        bus.publish("agent_spawned", {})
        bus.publish("spawn_skipped", {"reason": "no_valid_position"})
        assert [m["type"] for m in drain(q)] == ["spawn_skipped"]

    def test_full_queue_drops_oldest(self):
        bus = EventBus(maxsize=2)
        q = bus.subscribe()
        for i in range(3):
            bus.publish("agent_fired", {"n": i})
        assert [m["data"]["n"] for m in drain(q)] == [1, 2]

    def test_unsubscribe(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.unsubscribe(q)
        bus.publish("agent_spawned", {})
        assert drain(q) == []
