"""SpawnDirector -- keeps a population of AI agents alive in the arena.

Architecture
------------
The director owns the roster (weak references to agents it spawned) and a
periodic timer on the logical clock.  Each timer tick:

  1. prunes roster entries whose agent is gone (collected or not alive);
  2. if the roster is below ``max_agents``, attempts exactly one spawn.

An attempt samples up to ``max_spawn_attempts`` candidates uniformly over
the arena's horizontal bounds, starting each one ``ground_check_distance``
above the arena center so the ground probe looks down.  A candidate must
pass four checks, in order, stopping at the first failure:

  1. ground  -- a downward probe hits the ground category;
  2. clear   -- nothing in the obstacle category overlaps a sphere of
                ``obstacle_check_radius`` just above that ground;
  3. players -- horizontally at least ``min_player_distance`` from every
                live target;
  4. agents  -- horizontally at least ``min_agent_distance`` from every
                live roster agent.

The first passing candidate is materialized: dropped onto the ground,
given a random heading, instantiated through the spawn factory, stripped
of player-input behavior, and handed a CombatController whose parameters
are jittered around the director's base values.

Running out of candidates is routine.  It is logged, published as
``spawn_skipped`` and the director simply waits for the next cycle.
"""

from __future__ import annotations

import random
import weakref
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable

from loguru import logger

from .config import AIParameters, DirectorConfig, replace
from .controller import AgentController, CombatController
from .errors import MissingCollaborator, NoValidPositionFound
from .geometry import Pose, Vec3, horizontal_distance, with_height

if TYPE_CHECKING:
    from .clock import ScheduledCall, SimClock
    from .events import EventBus
    from .world import Agent, AudioSink, ProjectileFactory, SpawnFactory, TargetProvider, WorldQuery

ControllerFactory = Callable[["Agent", AIParameters], AgentController]


class SpawnOutcome(str, Enum):
    SPAWNED = "spawned"
    AT_CAPACITY = "at_capacity"
    NO_VALID_POSITION = "no_valid_position"
    MISSING_COLLABORATOR = "missing_collaborator"


class Rejection(str, Enum):
    NO_GROUND = "no_ground"
    OBSTACLE = "obstacle"
    NEAR_TARGET = "near_target"
    NEAR_AGENT = "near_agent"


def _weak(obj):
    try:
        return weakref.ref(obj)
    except TypeError:
        return lambda: obj


class RosterEntry:
    """Non-owning handle to a spawned agent and its controller."""

    def __init__(self, agent: Agent, controller: AgentController) -> None:
        self.agent_id = agent.agent_id
        self._agent = _weak(agent)
        self._controller = _weak(controller)

    @property
    def agent(self) -> Agent | None:
        """The live agent, or None once it is collected or destroyed."""
        a = self._agent()
        if a is None or not a.alive:
            return None
        return a

    @property
    def controller(self) -> AgentController | None:
        if self.agent is None:
            return None
        return self._controller()

    @property
    def alive(self) -> bool:
        return self.agent is not None


@dataclass
class PlacementStats:
    """Running counters for spawn cycles."""

    cycles: int = 0
    spawned: int = 0
    skipped: int = 0
    samples: int = 0
    rejections: Counter = field(default_factory=Counter)

    def to_dict(self) -> dict:
        return {
            "cycles": self.cycles,
            "spawned": self.spawned,
            "skipped": self.skipped,
            "samples": self.samples,
            "rejections": {k.value: v for k, v in self.rejections.items()},
        }


class SpawnDirector:
    """Periodically introduces AI agents at constraint-satisfying positions."""

    def __init__(
        self,
        config: DirectorConfig,
        *,
        world: WorldQuery,
        targets: TargetProvider,
        factory: SpawnFactory | None,
        clock: SimClock,
        rng: random.Random | None = None,
        projectiles: ProjectileFactory | None = None,
        audio: AudioSink | None = None,
        event_bus: EventBus | None = None,
        controller_factory: ControllerFactory | None = None,
    ) -> None:
        self._config = config
        self._world = world
        self._targets = targets
        self._factory = factory
        self._clock = clock
        self._rng = rng or random.Random()
        self._projectiles = projectiles
        self._audio = audio
        self._event_bus = event_bus
        self._controller_factory = controller_factory or self._default_controller

        self._roster: list[RosterEntry] = []
        self._timer: ScheduledCall | None = None
        self._running = False
        self.stats = PlacementStats()

    # -- Configuration ------------------------------------------------------

    @property
    def config(self) -> DirectorConfig:
        return self._config

    def set_max_agents(self, max_agents: int) -> None:
        self._config = replace(self._config, max_agents=max_agents)

    def set_spawn_interval(self, interval: float) -> None:
        """Takes effect when the timer next re-arms."""
        self._config = replace(self._config, spawn_interval=interval)

    def set_ai_parameters(
        self,
        detection_range: float,
        attack_range: float,
        fire_rate: float,
        patrol_radius: float,
        move_speed: float,
    ) -> None:
        """Replace the base AI values used for agents spawned from now on."""
        ai = AIParameters(
            detection_range=detection_range,
            attack_range=attack_range,
            fire_rate=fire_rate,
            patrol_radius=patrol_radius,
            move_speed=move_speed,
        )
        self._config = self._config.model_copy(update={"ai": ai})

    # -- Timer --------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Arm the periodic spawn timer (first cycle after one interval)."""
        if self._running:
            return
        self._running = True
        self._arm()

    def stop(self) -> None:
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm(self) -> None:
        self._timer = self._clock.call_later(self._config.spawn_interval, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        try:
            self.tick()
        finally:
            if self._running:
                self._arm()

    # -- Roster -------------------------------------------------------------

    def prune(self) -> int:
        """Drop entries whose agent no longer exists. Returns count removed."""
        before = len(self._roster)
        self._roster = [e for e in self._roster if e.alive]
        return before - len(self._roster)

    def agent_count(self) -> int:
        self.prune()
        return len(self._roster)

    def agents(self) -> list[Agent]:
        return [a for a in (e.agent for e in self._roster) if a is not None]

    def controllers(self) -> list[AgentController]:
        return [c for c in (e.controller for e in self._roster) if c is not None]

    # -- Commands -----------------------------------------------------------

    def tick(self) -> SpawnOutcome:
        """One spawn cycle: prune, then spawn one agent if below the cap."""
        self.prune()
        if len(self._roster) >= self._config.max_agents:
            return SpawnOutcome.AT_CAPACITY
        return self.attempt_spawn()

    def force_spawn_now(self) -> SpawnOutcome:
        """Run a spawn cycle immediately; the population cap still applies."""
        return self.tick()

    def clear_all(self) -> int:
        """Destroy every agent on the roster and empty it. Safe to repeat."""
        count = 0
        for entry in self._roster:
            agent = entry.agent
            if agent is not None:
                agent.destroy()
                count += 1
        self._roster.clear()
        if count:
            logger.info(f"Cleared {count} agents")
        if self._event_bus is not None:
            self._event_bus.publish("agents_cleared", {"count": count})
        return count

    # -- Spawning -----------------------------------------------------------

    def attempt_spawn(self) -> SpawnOutcome:
        """Sample, validate and materialize one agent; never raises."""
        self.stats.cycles += 1
        try:
            self._require_factory()
            position = self.find_valid_position()
            self._materialize(position)
        except NoValidPositionFound as e:
            self.stats.skipped += 1
            logger.warning(f"Spawn cycle skipped: {e}")
            if self._event_bus is not None:
                self._event_bus.publish("spawn_skipped", {
                    "reason": SpawnOutcome.NO_VALID_POSITION.value,
                    "attempts": e.attempts,
                    "rejections": e.rejections,
                })
            return SpawnOutcome.NO_VALID_POSITION
        except MissingCollaborator as e:
            self.stats.skipped += 1
            logger.warning(f"Spawn cycle skipped: {e}")
            if self._event_bus is not None:
                self._event_bus.publish("spawn_skipped", {
                    "reason": SpawnOutcome.MISSING_COLLABORATOR.value,
                    "what": e.what,
                })
            return SpawnOutcome.MISSING_COLLABORATOR
        return SpawnOutcome.SPAWNED

    def _require_factory(self) -> None:
        if self._factory is None:
            raise MissingCollaborator("spawn factory")
        if not self._config.agent_kind:
            raise MissingCollaborator("agent kind")

    def find_valid_position(self) -> Vec3:
        """Return the first acceptable candidate, or raise NoValidPositionFound."""
        placement = self._config.placement
        bounds = self._config.bounds
        start_height = bounds.center[1] + placement.ground_check_distance
        rejections: Counter = Counter()

        for attempt in range(placement.max_spawn_attempts):
            candidate = bounds.sample(self._rng, start_height)
            self.stats.samples += 1
            reason = self.check_position(candidate)
            if reason is None:
                return candidate
            rejections[reason] += 1
            self.stats.rejections[reason] += 1
            logger.debug(f"Spawn candidate {attempt + 1} rejected: {reason.value}")

        raise NoValidPositionFound(
            placement.max_spawn_attempts,
            {k.value: v for k, v in rejections.items()},
        )

    def check_position(self, candidate: Vec3) -> Rejection | None:
        """Evaluate the placement checks in order; None means acceptable."""
        p = self._config.placement

        ground = self._world.probe_ground(candidate, p.ground_check_distance, p.ground_category)
        if ground is None:
            return Rejection.NO_GROUND

        probe_center = with_height(candidate, ground[1] + p.obstacle_probe_offset)
        if self._world.overlap_obstacles(probe_center, p.obstacle_check_radius,
                                         p.obstacle_category):
            return Rejection.OBSTACLE

        for target in self._targets.targets():
            if target is None or not target.alive:
                continue
            if horizontal_distance(candidate, target.position) < p.min_player_distance:
                return Rejection.NEAR_TARGET

        for agent in self.agents():
            if horizontal_distance(candidate, agent.position) < p.min_agent_distance:
                return Rejection.NEAR_AGENT

        return None

    def is_valid_position(self, candidate: Vec3) -> bool:
        return self.check_position(candidate) is None

    def _materialize(self, candidate: Vec3) -> Agent:
        p = self._config.placement
        ground = self._world.probe_ground(candidate, p.ground_check_distance, p.ground_category)
        position = with_height(candidate, ground[1]) if ground is not None else candidate
        yaw = self._rng.uniform(0.0, 360.0)

        agent = self._factory.instantiate(self._config.agent_kind, position, yaw)
        if agent is None:
            raise MissingCollaborator(f"prefab for {self._config.agent_kind!r}")

        self._factory.disable_movement(agent)
        self._factory.disable_shooting(agent)

        params = self.jittered_parameters()
        controller = self._controller_factory(agent, params)
        self._factory.attach_controller(agent, controller)
        controller.on_spawn(Pose(position, yaw))

        self._roster.append(RosterEntry(agent, controller))
        self.stats.spawned += 1
        logger.info(
            f"Agent {agent.agent_id} spawned at "
            f"({position[0]:.1f}, {position[1]:.1f}, {position[2]:.1f}) yaw {yaw:.0f}"
        )
        if self._event_bus is not None:
            self._event_bus.publish("agent_spawned", {
                "agent_id": agent.agent_id,
                "position": position,
                "yaw": yaw,
                "params": params.model_dump(),
            })
        return agent

    def jittered_parameters(self) -> AIParameters:
        """Sample per-agent values uniformly inside each jitter band."""
        base = self._config.ai
        bands = self._config.jitter

        def jitter(value: float, band: float) -> float:
            return self._rng.uniform(value * (1.0 - band), value * (1.0 + band))

        return AIParameters(
            detection_range=jitter(base.detection_range, bands.detection_range),
            attack_range=jitter(base.attack_range, bands.attack_range),
            fire_rate=jitter(base.fire_rate, bands.fire_rate),
            patrol_radius=jitter(base.patrol_radius, bands.patrol_radius),
            move_speed=jitter(base.move_speed, bands.move_speed),
        )

    def _default_controller(self, agent: Agent, params: AIParameters) -> AgentController:
        return CombatController(
            agent,
            params,
            world=self._world,
            targets=self._targets,
            clock=self._clock,
            rng=random.Random(self._rng.getrandbits(64)),
            projectiles=self._projectiles,
            audio=self._audio,
            tuning=self._config.tuning,
            ground_category=self._config.placement.ground_category,
            event_bus=self._event_bus,
        )

    # -- Telemetry ----------------------------------------------------------

    def snapshot(self) -> dict:
        return {
            "agent_count": self.agent_count(),
            "max_agents": self._config.max_agents,
            "spawn_interval": self._config.spawn_interval,
            "running": self._running,
            "bounds": self._config.bounds.to_dict(),
            "stats": self.stats.to_dict(),
            "agents": [
                c.to_dict() if hasattr(c, "to_dict") else {"state": c.state.value}
                for c in self.controllers()
            ],
        }
