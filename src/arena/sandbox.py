"""SandboxWorld -- in-memory arena implementing every collaborator protocol.

Used by the demo driver and the integration tests.  Geometry is kept
deliberately simple:

  - ground is a set of horizontal rectangular patches at fixed heights;
  - obstacles are spheres;
  - players are points that may be marked dead;
  - agents and projectiles move kinematically (no collision response).

``step(dt)`` is the host loop: advance the clock (firing director timers
and patrol waits), tick every live agent's controller, fly projectiles.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .clock import SimClock
from .geometry import ZERO, ArenaBounds, Vec3, add, distance, forward, scale

if TYPE_CHECKING:
    from .controller import AgentController


@dataclass
class GroundPatch:
    min_x: float
    max_x: float
    min_z: float
    max_z: float
    height: float = 0.0
    category: str = "ground"

    def covers(self, x: float, z: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_z <= z <= self.max_z


@dataclass(eq=False)
class Obstacle:
    center: Vec3
    radius: float
    category: str = "obstacle"
    name: str = "obstacle"


@dataclass(eq=False)
class Player:
    name: str
    position: Vec3
    alive: bool = True


@dataclass(eq=False)
class SandboxAgent:
    """A spawned tank body."""

    agent_id: str
    kind: str
    position: Vec3
    yaw: float = 0.0
    shell_kind: str | None = "shell"
    muzzle_offset: float = 1.5
    muzzle_height: float = 1.0
    movement_enabled: bool = True
    shooting_enabled: bool = True
    controller: AgentController | None = None
    alive: bool = True
    _world: SandboxWorld | None = field(default=None, repr=False)

    @property
    def muzzle(self) -> Vec3:
        tip = add(self.position, scale(forward(self.yaw), self.muzzle_offset))
        return (tip[0], tip[1] + self.muzzle_height, tip[2])

    def destroy(self) -> None:
        if not self.alive:
            return
        self.alive = False
        if self._world is not None:
            self._world.agents.pop(self.agent_id, None)


@dataclass(eq=False)
class Projectile:
    kind: str
    position: Vec3
    yaw: float
    velocity: Vec3 = ZERO
    age: float = 0.0


@dataclass
class AudioEvent:
    agent_id: str
    cue: str
    time: float


class SandboxSpawner:
    """SpawnFactory over a SandboxWorld."""

    def __init__(self, world: SandboxWorld, kinds: set[str] | None = None) -> None:
        self._world = world
        self.kinds = kinds if kinds is not None else {"tank"}
        self._ids = itertools.count(1)

    def instantiate(self, kind: str, position: Vec3, yaw: float) -> SandboxAgent | None:
        if kind not in self.kinds:
            return None
        agent = SandboxAgent(
            agent_id=f"{kind}-{next(self._ids)}",
            kind=kind,
            position=position,
            yaw=yaw,
            _world=self._world,
        )
        self._world.agents[agent.agent_id] = agent
        return agent

    def disable_movement(self, agent: SandboxAgent) -> None:
        agent.movement_enabled = False

    def disable_shooting(self, agent: SandboxAgent) -> None:
        agent.shooting_enabled = False

    def attach_controller(self, agent: SandboxAgent, controller: AgentController) -> None:
        agent.controller = controller


class SandboxArmory:
    """ProjectileFactory over a SandboxWorld."""

    def __init__(self, world: SandboxWorld) -> None:
        self._world = world

    def instantiate(self, kind: str, position: Vec3, yaw: float) -> Projectile:
        shell = Projectile(kind=kind, position=position, yaw=yaw)
        self._world.projectiles.append(shell)
        return shell

    def set_velocity(self, projectile: Projectile, velocity: Vec3) -> None:
        projectile.velocity = velocity


class SandboxWorld:
    """World queries, target roster and audio sink in one object."""

    PROJECTILE_LIFETIME = 5.0

    def __init__(self, clock: SimClock | None = None) -> None:
        self.clock = clock or SimClock()
        self.ground: list[GroundPatch] = []
        self.obstacles: list[Obstacle] = []
        self.players: list[Player] = []
        self.agents: dict[str, SandboxAgent] = {}
        self.projectiles: list[Projectile] = []
        self.audio_events: list[AudioEvent] = []
        self.spawner = SandboxSpawner(self)
        self.armory = SandboxArmory(self)

    # -- Scene building -----------------------------------------------------

    def add_ground(self, bounds: ArenaBounds, height: float = 0.0,
                   category: str = "ground") -> GroundPatch:
        patch = GroundPatch(bounds.min_x, bounds.max_x, bounds.min_z, bounds.max_z,
                            height, category)
        self.ground.append(patch)
        return patch

    def add_obstacle(self, center: Vec3, radius: float,
                     category: str = "obstacle", name: str = "obstacle") -> Obstacle:
        obstacle = Obstacle(center, radius, category, name)
        self.obstacles.append(obstacle)
        return obstacle

    def add_player(self, name: str, position: Vec3) -> Player:
        player = Player(name, position)
        self.players.append(player)
        return player

    # -- WorldQuery ---------------------------------------------------------

    def probe_ground(self, origin: Vec3, max_distance: float,
                     category: str) -> Vec3 | None:
        x, y, z = origin
        best: float | None = None
        for patch in self.ground:
            if patch.category != category or not patch.covers(x, z):
                continue
            drop = y - patch.height
            if 0.0 <= drop <= max_distance and (best is None or patch.height > best):
                best = patch.height
        if best is None:
            return None
        return (x, best, z)

    def overlap_obstacles(self, center: Vec3, radius: float,
                          category: str) -> list[Obstacle]:
        return [
            o for o in self.obstacles
            if o.category == category and distance(center, o.center) <= radius + o.radius
        ]

    # -- TargetProvider -----------------------------------------------------

    def targets(self) -> list[Player]:
        return [p for p in self.players if p.alive]

    # -- AudioSink ----------------------------------------------------------

    def play(self, agent: SandboxAgent, cue: str) -> None:
        self.audio_events.append(AudioEvent(agent.agent_id, cue, self.clock.now))

    # -- Loop ---------------------------------------------------------------

    def live_agents(self) -> list[SandboxAgent]:
        return [a for a in self.agents.values() if a.alive]

    def step(self, dt: float) -> None:
        self.clock.advance(dt)
        for agent in list(self.agents.values()):
            if agent.alive and agent.controller is not None:
                agent.controller.on_tick(dt)
        for shell in self.projectiles:
            shell.position = add(shell.position, scale(shell.velocity, dt))
            shell.age += dt
        self.projectiles = [s for s in self.projectiles if s.age < self.PROJECTILE_LIFETIME]

    def run(self, seconds: float, dt: float = 0.1) -> int:
        """Step for *seconds* of simulated time. Returns ticks run."""
        ticks = max(0, round(seconds / dt))
        for _ in range(ticks):
            self.step(dt)
        return ticks
