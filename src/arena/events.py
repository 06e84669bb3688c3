"""EventBus -- in-process pub/sub for arena events.

The director and controllers publish what happened (spawns, skipped
cycles, shots, state changes); hosts subscribe to drive HUDs, stats or
replay without the core knowing about them.  Subscribing and publishing
are thread-safe so a host may drain queues from another thread.

Topics:
    agent_spawned         -- {agent_id, position, yaw, params}
    spawn_skipped         -- {reason, attempts?, rejections?, what?}
    agents_cleared        -- {count}
    agent_fired           -- {agent_id, position, yaw}
    agent_state_changed   -- {agent_id, old, new}
"""

from __future__ import annotations

import queue
import threading


class EventBus:
    """Pub/sub with bounded queue subscribers and optional topic filters."""

    def __init__(self, maxsize: int = 100) -> None:
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    def subscribe(self, *topics: str) -> queue.Queue:
        """Return a queue receiving events; all topics when none are named."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append((q, frozenset(topics) if topics else None))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, f) for s, f in self._subscribers if s is not q]

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg: dict = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            for q, topics in self._subscribers:
                if topics is not None and event_type not in topics:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    # Drop oldest so the newest event always lands
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(msg)
                    except queue.Full:
                        pass


def drain(q: queue.Queue) -> list[dict]:
    """Pop every pending message from a subscriber queue."""
    out: list[dict] = []
    while True:
        try:
            out.append(q.get_nowait())
        except queue.Empty:
            return out
