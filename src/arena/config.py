"""Configuration models for the spawn director and agent controllers.

Runtime configuration is a set of frozen pydantic models handed to the
director at construction.  The director swaps in validated copies
(``replace(model, **changes)``) when one of its narrow setters is called,
so already-spawned agents never observe a change.

``ArenaSettings`` reads the same knobs from the environment (``ARENA_``
prefix or a ``.env`` file) for the demo driver and any host application.
"""

from __future__ import annotations

import math
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .geometry import ArenaBounds, Vec3

ModelT = TypeVar("ModelT", bound=BaseModel)


def replace(model: ModelT, **changes) -> ModelT:
    """Return a re-validated copy of a frozen model with *changes* applied."""
    return type(model).model_validate({**model.model_dump(), **changes})


class AIParameters(BaseModel):
    """Per-agent tunables, jittered once at spawn time."""

    model_config = ConfigDict(frozen=True)

    detection_range: float = Field(15.0, ge=0.0)
    attack_range: float = Field(10.0, ge=0.0)
    fire_rate: float = 1.0  # shots per second; <= 0 means never fires
    patrol_radius: float = Field(10.0, ge=0.0)
    move_speed: float = Field(5.0, ge=0.0)

    @field_validator("fire_rate")
    @classmethod
    def _finite_fire_rate(cls, v: float) -> float:
        # NaN / inf collapse to "never fires"
        if not math.isfinite(v):
            return 0.0
        return v

    @property
    def fire_interval(self) -> float | None:
        """Seconds between shots, or None when the agent never fires."""
        if self.fire_rate <= 0.0:
            return None
        return 1.0 / self.fire_rate


class JitterBands(BaseModel):
    """Fractional +/- spread applied to each base AI parameter at spawn."""

    model_config = ConfigDict(frozen=True)

    detection_range: float = Field(0.2, ge=0.0, le=1.0)
    attack_range: float = Field(0.2, ge=0.0, le=1.0)
    fire_rate: float = Field(0.3, ge=0.0, le=1.0)
    patrol_radius: float = Field(0.3, ge=0.0, le=1.0)
    move_speed: float = Field(0.2, ge=0.0, le=1.0)


class ControllerTuning(BaseModel):
    """Fixed behavior constants shared by every controller a director spawns."""

    model_config = ConfigDict(frozen=True)

    rotation_speed: float = Field(5.0, ge=0.0)        # slerp fraction per second
    patrol_wait_time: float = Field(2.0, ge=0.0)
    stuck_check_interval: float = Field(3.0, gt=0.0)
    min_move_distance: float = Field(1.0, ge=0.0)
    arrival_threshold: float = Field(2.0, gt=0.0)
    stuck_yaw_bound: float = Field(90.0, ge=0.0, le=180.0)
    keep_closing_fraction: float = Field(0.7, ge=0.0, le=1.0)
    launch_speed: float = Field(15.0, ge=0.0)
    waypoint_probe_height: float = Field(10.0, ge=0.0)
    waypoint_probe_distance: float = Field(20.0, gt=0.0)
    fire_cue: str = "fire"


class PlacementConfig(BaseModel):
    """Spatial exclusion constraints for spawn candidates."""

    model_config = ConfigDict(frozen=True)

    min_player_distance: float = Field(15.0, ge=0.0)
    min_agent_distance: float = Field(8.0, ge=0.0)
    obstacle_check_radius: float = Field(3.0, ge=0.0)
    obstacle_probe_offset: float = 1.0
    max_spawn_attempts: int = Field(50, ge=1)
    ground_check_distance: float = Field(10.0, gt=0.0)
    ground_category: str = "ground"
    obstacle_category: str = "obstacle"


class DirectorConfig(BaseModel):
    """Everything a SpawnDirector needs besides its collaborators."""

    model_config = ConfigDict(frozen=True)

    map_center: Vec3 = (0.0, 0.0, 0.0)
    map_size_x: float = Field(50.0, gt=0.0)
    map_size_z: float = Field(50.0, gt=0.0)
    max_agents: int = Field(5, ge=0)
    spawn_interval: float = Field(10.0, gt=0.0)
    agent_kind: str | None = "tank"
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    ai: AIParameters = Field(default_factory=AIParameters)
    jitter: JitterBands = Field(default_factory=JitterBands)
    tuning: ControllerTuning = Field(default_factory=ControllerTuning)

    @property
    def bounds(self) -> ArenaBounds:
        return ArenaBounds.from_size(self.map_center, self.map_size_x, self.map_size_z)


class ArenaSettings(BaseSettings):
    """Director defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ARENA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Population
    max_agents: int = 5
    spawn_interval: float = 10.0
    agent_kind: str = "tank"

    # Map
    map_center_x: float = 0.0
    map_center_y: float = 0.0
    map_center_z: float = 0.0
    map_size_x: float = 50.0
    map_size_z: float = 50.0

    # Placement
    min_player_distance: float = 15.0
    max_spawn_attempts: int = 50
    ground_check_distance: float = 10.0
    obstacle_check_radius: float = 3.0

    # AI base values
    ai_detection_range: float = 15.0
    ai_attack_range: float = 10.0
    ai_fire_rate: float = 1.0
    ai_patrol_radius: float = 10.0
    ai_move_speed: float = 5.0

    # Seed for the director's random source (None = nondeterministic)
    seed: int | None = None

    def to_director_config(self) -> DirectorConfig:
        return DirectorConfig(
            map_center=(self.map_center_x, self.map_center_y, self.map_center_z),
            map_size_x=self.map_size_x,
            map_size_z=self.map_size_z,
            max_agents=self.max_agents,
            spawn_interval=self.spawn_interval,
            agent_kind=self.agent_kind,
            placement=PlacementConfig(
                min_player_distance=self.min_player_distance,
                max_spawn_attempts=self.max_spawn_attempts,
                ground_check_distance=self.ground_check_distance,
                obstacle_check_radius=self.obstacle_check_radius,
            ),
            ai=AIParameters(
                detection_range=self.ai_detection_range,
                attack_range=self.ai_attack_range,
                fire_rate=self.ai_fire_rate,
                patrol_radius=self.ai_patrol_radius,
                move_speed=self.ai_move_speed,
            ),
        )
