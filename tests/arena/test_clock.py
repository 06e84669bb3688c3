"""Unit tests for SimClock deferred callbacks."""

from __future__ import annotations

import pytest

from arena.clock import SimClock

pytestmark = pytest.mark.unit


class TestSimClock:
    def test_starts_at_zero(self):
        assert SimClock().now == 0.0

    def test_callback_waits_for_due_time(self):
        clock = SimClock()
        fired: list[float] = []
        clock.call_later(2.0, lambda: fired.append(clock.now))
        clock.advance(1.5)
        assert fired == []
        clock.advance(0.5)
        assert fired == [2.0]

    def test_now_reads_due_time_inside_callback(self):
        clock = SimClock()
        seen: list[float] = []
        clock.call_later(1.0, lambda: seen.append(clock.now))
        clock.advance(5.0)
        assert seen == [1.0]
        assert clock.now == 5.0

    def test_fires_in_due_order_then_schedule_order(self):
        clock = SimClock()
        order: list[str] = []
        clock.call_later(2.0, lambda: order.append("late"))
        clock.call_later(1.0, lambda: order.append("a"))
        clock.call_later(1.0, lambda: order.append("b"))
        clock.advance(3.0)
        assert order == ["a", "b", "late"]

    def test_cancelled_call_never_fires(self):
        clock = SimClock()
        fired: list[int] = []
        call = clock.call_later(1.0, lambda: fired.append(1))
        call.cancel()
        assert clock.advance(2.0) == 0
        assert fired == []
        assert clock.pending == 0

    def test_self_rearming_timer_keeps_cadence(self):
        clock = SimClock()
        ticks: list[float] = []

        def periodic():
            ticks.append(clock.now)
            clock.call_later(2.0, periodic)

        clock.call_later(2.0, periodic)
        clock.advance(7.0)
        assert ticks == [2.0, 4.0, 6.0]
        assert clock.pending == 1

    def test_negative_advance_rejected(self):
        with pytest.raises(ValueError):
            SimClock().advance(-0.1)

    def test_negative_delay_fires_on_next_advance(self):
        clock = SimClock()
        fired: list[int] = []
        clock.call_later(-3.0, lambda: fired.append(1))
        clock.advance(0.0)
        assert fired == [1]
