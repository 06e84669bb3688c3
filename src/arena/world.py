"""Capability interfaces the arena core consumes.

The core never touches a scene graph, physics engine or asset system
directly.  It calls out through these protocols; any object with the
right attributes satisfies them (``arena.sandbox`` ships an in-memory
implementation of all of them).

Handles returned by the factories are owned by the host.  The core keeps
only weak references and treats ``alive == False`` the same as a handle
that has been garbage collected.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .geometry import Vec3

if TYPE_CHECKING:
    from .controller import AgentController


@runtime_checkable
class Target(Protocol):
    """Something agents hunt and spawns keep clear of (a player)."""

    @property
    def position(self) -> Vec3: ...

    @property
    def alive(self) -> bool: ...


@runtime_checkable
class Agent(Protocol):
    """A spawned, controllable body.

    ``shell_kind`` names the projectile the agent fires (None = unarmed).
    ``muzzle`` is the fire point in world space (None = agent position).
    """

    agent_id: str
    position: Vec3
    yaw: float

    @property
    def alive(self) -> bool: ...

    @property
    def shell_kind(self) -> str | None: ...

    @property
    def muzzle(self) -> Vec3 | None: ...

    def destroy(self) -> None: ...


class WorldQuery(Protocol):
    """Synchronous, bounded-cost spatial queries."""

    def probe_ground(self, origin: Vec3, max_distance: float,
                     category: str) -> Vec3 | None:
        """Cast straight down from *origin*; return the hit point or None."""
        ...

    def overlap_obstacles(self, center: Vec3, radius: float,
                          category: str) -> Collection[Any]:
        """Colliders of *category* intersecting the sphere (possibly empty)."""
        ...


class TargetProvider(Protocol):
    """Snapshot of current targets, queried fresh every time."""

    def targets(self) -> Sequence[Target]: ...


class SpawnFactory(Protocol):
    def instantiate(self, kind: str, position: Vec3, yaw: float) -> Agent | None: ...

    def disable_movement(self, agent: Agent) -> None:
        """Turn off any player-input driven movement on the body."""
        ...

    def disable_shooting(self, agent: Agent) -> None:
        """Turn off any player-input driven firing on the body."""
        ...

    def attach_controller(self, agent: Agent, controller: AgentController) -> None: ...


class ProjectileFactory(Protocol):
    def instantiate(self, kind: str, position: Vec3, yaw: float) -> Any: ...

    def set_velocity(self, projectile: Any, velocity: Vec3) -> None: ...


class AudioSink(Protocol):
    def play(self, agent: Agent, cue: str) -> None: ...
