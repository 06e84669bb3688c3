#!/usr/bin/env python3
"""Headless arena run: spawn director + AI tanks in the sandbox world.

Reads defaults from ARENA_* environment variables (see arena.config),
then runs the simulation at a fixed step and prints a JSON summary.

Usage:
    python3 scripts/arena_sim.py --seconds 120 --seed 7
    python3 scripts/arena_sim.py --players 2 --obstacles 6 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import json
import random
import sys
from pathlib import Path

from loguru import logger

# Add project src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from arena import ArenaSettings, EventBus, SandboxWorld, SpawnDirector
from arena.events import drain


def build_world(settings: ArenaSettings, players: int, obstacles: int,
                rng: random.Random) -> tuple[SandboxWorld, SpawnDirector, EventBus]:
    config = settings.to_director_config()
    bounds = config.bounds
    world = SandboxWorld()
    world.add_ground(bounds, height=bounds.center[1])

    for i in range(players):
        x = rng.uniform(bounds.min_x, bounds.max_x) * 0.3
        z = rng.uniform(bounds.min_z, bounds.max_z) * 0.3
        world.add_player(f"player-{i + 1}", (x, bounds.center[1], z))

    for i in range(obstacles):
        center = bounds.sample(rng, bounds.center[1] + 1.0)
        world.add_obstacle(center, rng.uniform(1.0, 3.0), name=f"rock-{i + 1}")

    bus = EventBus(maxsize=100_000)
    director = SpawnDirector(
        config,
        world=world,
        targets=world,
        factory=world.spawner,
        clock=world.clock,
        rng=random.Random(rng.getrandbits(64)),
        projectiles=world.armory,
        audio=world,
        event_bus=bus,
    )
    return world, director, bus


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a headless arena simulation")
    parser.add_argument("--seconds", type=float, default=60.0)
    parser.add_argument("--dt", type=float, default=0.1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--players", type=int, default=1)
    parser.add_argument("--obstacles", type=int, default=4)
    parser.add_argument("--max-agents", type=int, default=None)
    parser.add_argument("--spawn-interval", type=float, default=None)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    settings = ArenaSettings()
    overrides = {}
    if args.max_agents is not None:
        overrides["max_agents"] = args.max_agents
    if args.spawn_interval is not None:
        overrides["spawn_interval"] = args.spawn_interval
    if overrides:
        settings = settings.model_copy(update=overrides)

    seed = args.seed if args.seed is not None else settings.seed
    rng = random.Random(seed)
    world, director, bus = build_world(settings, args.players, args.obstacles, rng)
    events = bus.subscribe()

    director.force_spawn_now()
    director.start()
    ticks = world.run(args.seconds, args.dt)
    director.stop()

    counts: dict[str, int] = {}
    for msg in drain(events):
        counts[msg["type"]] = counts.get(msg["type"], 0) + 1

    summary = {
        "seed": seed,
        "ticks": ticks,
        "sim_time": round(world.clock.now, 3),
        "events": counts,
        "shells_in_flight": len(world.projectiles),
        "director": director.snapshot(),
    }
    print(json.dumps(summary, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
