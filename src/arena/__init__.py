"""Arena AI -- spawn director and per-agent patrol/chase/attack controllers."""
from .clock import ScheduledCall, SimClock
from .config import (
    AIParameters,
    ArenaSettings,
    ControllerTuning,
    DirectorConfig,
    JitterBands,
    PlacementConfig,
)
from .controller import AgentController, AgentState, CombatController
from .director import PlacementStats, Rejection, RosterEntry, SpawnDirector, SpawnOutcome
from .errors import ArenaError, MissingCollaborator, NoValidPositionFound
from .events import EventBus
from .geometry import ArenaBounds, Pose
from .sandbox import SandboxWorld

__all__ = [
    "AIParameters",
    "AgentController",
    "AgentState",
    "ArenaBounds",
    "ArenaError",
    "ArenaSettings",
    "CombatController",
    "ControllerTuning",
    "DirectorConfig",
    "EventBus",
    "JitterBands",
    "MissingCollaborator",
    "NoValidPositionFound",
    "PlacementConfig",
    "PlacementStats",
    "Pose",
    "Rejection",
    "RosterEntry",
    "SandboxWorld",
    "ScheduledCall",
    "SimClock",
    "SpawnDirector",
    "SpawnOutcome",
]
