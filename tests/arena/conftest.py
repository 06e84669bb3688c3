"""Shared fixtures for arena tests."""

from __future__ import annotations

import random

import pytest
from loguru import logger

from arena.clock import SimClock
from arena.geometry import ArenaBounds
from arena.sandbox import SandboxWorld


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> SimClock:
    return SimClock()


@pytest.fixture
def bounds() -> ArenaBounds:
    """The default 50x50 arena centered at the origin."""
    return ArenaBounds.from_size((0.0, 0.0, 0.0), 50.0, 50.0)


@pytest.fixture
def world(clock: SimClock, bounds: ArenaBounds) -> SandboxWorld:
    """Flat ground at y=0 covering the arena, nothing else."""
    w = SandboxWorld(clock)
    w.add_ground(bounds, height=0.0)
    return w


@pytest.fixture
def log_messages():
    """Capture loguru output (message text) for the duration of a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
