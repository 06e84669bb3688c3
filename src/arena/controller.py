"""Agent controllers -- per-agent patrol / chase / attack behavior.

Architecture
------------
``AgentController`` is the seam the host simulation loop talks to: it calls
``on_spawn(pose)`` once when the body exists and ``on_tick(dt)`` every
frame afterwards.  The controller never owns its agent's lifetime; once
the agent reports ``alive == False`` every entry point is a no-op.

``CombatController`` runs a three-state loop:

  PATROLLING -- wander between waypoints sampled around the spawn anchor,
                pausing ``patrol_wait_time`` at each arrival.
  CHASING    -- drive straight at the nearest target.
  ATTACKING  -- turn to face the target, fire on cooldown, keep closing
                while farther than ``keep_closing_fraction`` of attack range.

State selection happens first on every tick and is a pure function of the
nearest target's distance.  There is no hysteresis: an agent sitting on
the attack-range boundary may alternate between CHASING and ATTACKING on
consecutive ticks.

Movement is tank-like.  The agent slerps its yaw toward the goal and then
drives along its *current* forward vector, so approaches curve instead of
sliding sideways.

Stuck recovery runs every ``stuck_check_interval`` seconds: an agent that
moved less than ``min_move_distance`` while not attacking gets a random
yaw kick (and a fresh waypoint when patrolling).
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from .config import AIParameters, ControllerTuning, replace
from .errors import MissingCollaborator
from .geometry import (
    Pose,
    Vec3,
    add,
    distance,
    forward,
    horizontal_distance,
    normalize_yaw,
    random_point_in_disc,
    rotate_towards,
    scale,
    with_height,
    yaw_towards,
)

if TYPE_CHECKING:
    from .clock import SimClock
    from .events import EventBus
    from .world import Agent, AudioSink, ProjectileFactory, Target, TargetProvider, WorldQuery


class AgentState(str, Enum):
    PATROLLING = "patrolling"
    CHASING = "chasing"
    ATTACKING = "attacking"


class AgentController(ABC):
    """Lifecycle interface driven by the host loop."""

    def __init__(self, agent: Agent) -> None:
        self.agent = agent

    @property
    def active(self) -> bool:
        return bool(self.agent.alive)

    @property
    @abstractmethod
    def state(self) -> AgentState: ...

    @abstractmethod
    def on_spawn(self, pose: Pose) -> None:
        """Called once after the body is placed at *pose*."""

    @abstractmethod
    def on_tick(self, dt: float) -> None:
        """Advance behavior by *dt* seconds of simulated time."""


class CombatController(AgentController):
    """Patrol / chase / attack AI for a single spawned agent."""

    def __init__(
        self,
        agent: Agent,
        params: AIParameters,
        *,
        world: WorldQuery,
        targets: TargetProvider,
        clock: SimClock,
        rng: random.Random,
        projectiles: ProjectileFactory | None = None,
        audio: AudioSink | None = None,
        tuning: ControllerTuning | None = None,
        ground_category: str = "ground",
        event_bus: EventBus | None = None,
    ) -> None:
        super().__init__(agent)
        self._params = params
        self._tuning = tuning or ControllerTuning()
        self._world = world
        self._targets = targets
        self._clock = clock
        self._rng = rng
        self._projectiles = projectiles
        self._audio = audio
        self._ground_category = ground_category
        self._event_bus = event_bus

        self._state = AgentState.PATROLLING
        self._target: Target | None = None
        self._target_distance: float | None = None

        self._patrol_anchor: Vec3 = agent.position
        self._patrol_waypoint: Vec3 = agent.position
        self._waypoint_pending = False

        self._last_fired: float | None = None
        self._last_stuck_check = clock.now
        self._last_position: Vec3 = agent.position

        self.shots_fired = 0
        self.stuck_recoveries = 0

    # -- Read access --------------------------------------------------------

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def params(self) -> AIParameters:
        return self._params

    @property
    def tuning(self) -> ControllerTuning:
        return self._tuning

    @property
    def target(self) -> Target | None:
        return self._target

    @property
    def patrol_anchor(self) -> Vec3:
        return self._patrol_anchor

    @property
    def patrol_waypoint(self) -> Vec3:
        return self._patrol_waypoint

    @property
    def last_fired(self) -> float | None:
        return self._last_fired

    # -- Parameter setters (take effect on the next tick) -------------------

    def set_detection_range(self, value: float) -> None:
        self._params = replace(self._params, detection_range=value)

    def set_attack_range(self, value: float) -> None:
        self._params = replace(self._params, attack_range=value)

    def set_fire_rate(self, value: float) -> None:
        self._params = replace(self._params, fire_rate=value)

    def set_patrol_radius(self, value: float) -> None:
        self._params = replace(self._params, patrol_radius=value)

    def set_move_speed(self, value: float) -> None:
        self._params = replace(self._params, move_speed=value)

    # -- Lifecycle ----------------------------------------------------------

    def on_spawn(self, pose: Pose) -> None:
        self._patrol_anchor = pose.position
        self._last_position = pose.position
        self._last_stuck_check = self._clock.now
        self.set_new_patrol_target()

    def on_tick(self, dt: float) -> None:
        if not self.active:
            return
        self._select_state()

        if self._state is AgentState.PATROLLING:
            self._patrol(dt)
        elif self._state is AgentState.CHASING:
            self._chase(dt)
        else:
            self._attack(dt)

        self._check_stuck()

    # -- State selection ----------------------------------------------------

    def _nearest_target(self) -> tuple[Target | None, float]:
        pos = self.agent.position
        best: Target | None = None
        best_dist = float("inf")
        for t in self._targets.targets():
            if t is None or not t.alive:
                continue
            d = distance(pos, t.position)
            if d < best_dist:
                best, best_dist = t, d
        return best, best_dist

    def _select_state(self) -> None:
        target, dist = self._nearest_target()
        if target is None:
            new_state = AgentState.PATROLLING
        elif dist <= self._params.attack_range:
            new_state = AgentState.ATTACKING
        elif dist <= self._params.detection_range:
            new_state = AgentState.CHASING
        else:
            new_state = AgentState.PATROLLING

        if new_state is AgentState.PATROLLING:
            self._target = None
            self._target_distance = None
        else:
            self._target = target
            self._target_distance = dist

        if new_state is not self._state:
            logger.debug(
                f"{self.agent.agent_id}: {self._state.value} -> {new_state.value}"
            )
            if self._event_bus is not None:
                self._event_bus.publish("agent_state_changed", {
                    "agent_id": self.agent.agent_id,
                    "old": self._state.value,
                    "new": new_state.value,
                })
            self._state = new_state

    # -- Behaviors ----------------------------------------------------------

    def _patrol(self, dt: float) -> None:
        self.move_towards(self._patrol_waypoint, dt)
        arrived = (
            horizontal_distance(self.agent.position, self._patrol_waypoint)
            < self._tuning.arrival_threshold
        )
        if arrived and not self._waypoint_pending:
            self._waypoint_pending = True
            self._clock.call_later(self._tuning.patrol_wait_time, self._patrol_wait_done)

    def _patrol_wait_done(self) -> None:
        self._waypoint_pending = False
        if self.active:
            self.set_new_patrol_target()

    def _chase(self, dt: float) -> None:
        if self._target is not None:
            self.move_towards(self._target.position, dt)

    def _attack(self, dt: float) -> None:
        target = self._target
        if target is None:
            return
        self._face(target.position, dt)

        if self._fire_ready():
            try:
                self.fire()
            except MissingCollaborator as e:
                logger.debug(f"{self.agent.agent_id}: fire skipped ({e.what})")
            self._last_fired = self._clock.now

        dist = distance(self.agent.position, target.position)
        if dist > self._params.attack_range * self._tuning.keep_closing_fraction:
            self.move_towards(target.position, dt)

    # -- Movement -----------------------------------------------------------

    def _face(self, point: Vec3, dt: float) -> None:
        desired = yaw_towards(self.agent.position, point)
        if desired is not None:
            self.agent.yaw = rotate_towards(
                self.agent.yaw, desired, self._tuning.rotation_speed * dt
            )

    def move_towards(self, point: Vec3, dt: float) -> None:
        """Turn toward *point*, then drive along the current heading."""
        self._face(point, dt)
        step = scale(forward(self.agent.yaw), self._params.move_speed * dt)
        self.agent.position = add(self.agent.position, step)

    # -- Firing -------------------------------------------------------------

    def _fire_ready(self) -> bool:
        interval = self._params.fire_interval
        if interval is None:
            return False
        if self._last_fired is None:
            return True
        return self._clock.now - self._last_fired >= interval

    def fire(self) -> None:
        """Launch one projectile from the muzzle along the agent's heading.

        Raises MissingCollaborator when the agent is unarmed or no projectile
        factory is wired in.
        """
        shell = self.agent.shell_kind
        if shell is None:
            raise MissingCollaborator("projectile definition")
        if self._projectiles is None:
            raise MissingCollaborator("projectile factory")

        origin = self.agent.muzzle or self.agent.position
        yaw = self.agent.yaw
        projectile = self._projectiles.instantiate(shell, origin, yaw)
        if projectile is None:
            raise MissingCollaborator(f"projectile instance for {shell!r}")
        self._projectiles.set_velocity(
            projectile, scale(forward(yaw), self._tuning.launch_speed)
        )
        if self._audio is not None and self._tuning.fire_cue:
            self._audio.play(self.agent, self._tuning.fire_cue)

        self.shots_fired += 1
        if self._event_bus is not None:
            self._event_bus.publish("agent_fired", {
                "agent_id": self.agent.agent_id,
                "position": origin,
                "yaw": yaw,
            })

    # -- Patrol waypoints ---------------------------------------------------

    def set_new_patrol_target(self) -> Vec3:
        """Pick a waypoint inside the patrol radius and drop it onto the ground."""
        dx, dz = random_point_in_disc(self._rng, self._params.patrol_radius)
        ax, ay, az = self._patrol_anchor
        waypoint: Vec3 = (ax + dx, ay, az + dz)

        probe_from = with_height(waypoint, ay + self._tuning.waypoint_probe_height)
        hit = self._world.probe_ground(
            probe_from, self._tuning.waypoint_probe_distance, self._ground_category
        )
        if hit is not None:
            waypoint = with_height(waypoint, hit[1])

        self._patrol_waypoint = waypoint
        return waypoint

    # -- Stuck detection ----------------------------------------------------

    def _check_stuck(self) -> None:
        now = self._clock.now
        if now < self._last_stuck_check + self._tuning.stuck_check_interval:
            return

        pos = self.agent.position
        moved = distance(pos, self._last_position)
        if moved < self._tuning.min_move_distance and self._state is not AgentState.ATTACKING:
            if self._state is AgentState.PATROLLING:
                self.set_new_patrol_target()
            bound = self._tuning.stuck_yaw_bound
            kick = self._rng.uniform(-bound, bound)
            self.agent.yaw = normalize_yaw(self.agent.yaw + kick)
            self.stuck_recoveries += 1
            logger.debug(
                f"{self.agent.agent_id}: stuck (moved {moved:.2f}), yaw kick {kick:+.1f}"
            )

        self._last_position = self.agent.position
        self._last_stuck_check = now

    # -- Telemetry ----------------------------------------------------------

    def to_dict(self) -> dict:
        p = self._params
        return {
            "agent_id": self.agent.agent_id,
            "state": self._state.value,
            "target_distance": self._target_distance,
            "patrol_anchor": self._patrol_anchor,
            "patrol_waypoint": self._patrol_waypoint,
            "last_fired": self._last_fired,
            "shots_fired": self.shots_fired,
            "stuck_recoveries": self.stuck_recoveries,
            "params": {
                "detection_range": p.detection_range,
                "attack_range": p.attack_range,
                "fire_rate": p.fire_rate,
                "patrol_radius": p.patrol_radius,
                "move_speed": p.move_speed,
            },
        }
