"""SimClock -- logical time and deferred callbacks.

The driving loop owns the clock and calls ``advance(dt)`` once per tick.
Anything that would have been a coroutine wait (patrol pause, spawn
interval) is a ``call_later`` continuation that fires when simulated time
passes its due time.  Nothing here sleeps or spawns threads.

Callbacks fire in due-time order (ties in scheduling order).  While a
callback runs, ``now`` reads the callback's due time, so a periodic timer
that re-arms itself from inside its callback keeps an exact cadence even
when one ``advance`` spans several periods.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable


@dataclass(order=True)
class ScheduledCall:
    """A pending continuation on the logical clock."""

    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class SimClock:
    """Monotonic simulated clock with a callback heap."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[ScheduledCall] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for c in self._queue if not c.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Run *callback* once *delay* seconds of simulated time have passed."""
        call = ScheduledCall(self._now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._queue, call)
        return call

    def advance(self, dt: float) -> int:
        """Move time forward by *dt*, firing every callback that comes due.

        Returns the number of callbacks fired.
        """
        if dt < 0:
            raise ValueError(f"cannot advance clock by negative dt {dt}")
        end = self._now + dt
        fired = 0
        while self._queue and self._queue[0].due <= end:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = call.due
            call.callback()
            fired += 1
        self._now = end
        return fired
