"""Geometry helpers -- tuple vectors, arena bounds, yaw math.

Coordinate convention:
    +X = east, +Y = up, +Z = forward/north.  Positions are plain
    ``(x, y, z)`` tuples.  Yaw is a heading in degrees about the vertical
    axis: 0 faces +Z, 90 faces +X (same sense as the engine heading
    ``degrees(atan2(dx, dz))``).

Horizontal distance ignores Y; straight-line distance does not.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import NamedTuple

Vec3 = tuple[float, float, float]

ZERO: Vec3 = (0.0, 0.0, 0.0)


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(v: Vec3, k: float) -> Vec3:
    return (v[0] * k, v[1] * k, v[2] * k)


def distance(a: Vec3, b: Vec3) -> float:
    """Straight-line (3D) distance."""
    return math.sqrt(
        (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2
    )


def horizontal_distance(a: Vec3, b: Vec3) -> float:
    """Distance on the X/Z plane, ignoring height."""
    return math.hypot(a[0] - b[0], a[2] - b[2])


def with_height(p: Vec3, y: float) -> Vec3:
    return (p[0], y, p[2])


# ---------------------------------------------------------------------------
# Yaw
# ---------------------------------------------------------------------------

def normalize_yaw(yaw: float) -> float:
    """Wrap a heading into [0, 360)."""
    return yaw % 360.0


def yaw_towards(origin: Vec3, target: Vec3) -> float | None:
    """Heading from *origin* to *target* on the X/Z plane.

    Returns None when the two points share a horizontal position (no
    defined facing).
    """
    dx = target[0] - origin[0]
    dz = target[2] - origin[2]
    if dx == 0.0 and dz == 0.0:
        return None
    return normalize_yaw(math.degrees(math.atan2(dx, dz)))


def forward(yaw: float) -> Vec3:
    """Unit forward vector for a heading."""
    rad = math.radians(yaw)
    return (math.sin(rad), 0.0, math.cos(rad))


def angle_delta(current: float, target: float) -> float:
    """Signed shortest rotation from *current* to *target*, in (-180, 180]."""
    delta = (target - current) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return delta


def rotate_towards(current: float, target: float, fraction: float) -> float:
    """Interpolate a heading toward *target* along the short arc.

    *fraction* is clamped to [0, 1]; 1 snaps to the target, 0 holds.
    """
    t = min(1.0, max(0.0, fraction))
    return normalize_yaw(current + angle_delta(current, target) * t)


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

def random_point_in_disc(rng: random.Random, radius: float) -> tuple[float, float]:
    """Uniform sample inside a disc of *radius*, returned as (dx, dz)."""
    r = radius * math.sqrt(rng.random())
    theta = rng.uniform(0.0, 2.0 * math.pi)
    return (r * math.cos(theta), r * math.sin(theta))


@dataclass(frozen=True)
class ArenaBounds:
    """Axis-aligned arena box: center plus horizontal half-extents.

    Vertical extent is not stored; ground probes resolve height.
    """

    center: Vec3 = ZERO
    half_x: float = 25.0
    half_z: float = 25.0

    @classmethod
    def from_size(cls, center: Vec3, size_x: float, size_z: float) -> ArenaBounds:
        return cls(center=center, half_x=abs(size_x) / 2.0, half_z=abs(size_z) / 2.0)

    @property
    def min_x(self) -> float:
        return self.center[0] - self.half_x

    @property
    def max_x(self) -> float:
        return self.center[0] + self.half_x

    @property
    def min_z(self) -> float:
        return self.center[2] - self.half_z

    @property
    def max_z(self) -> float:
        return self.center[2] + self.half_z

    def contains_horizontal(self, point: Vec3) -> bool:
        return (self.min_x <= point[0] <= self.max_x
                and self.min_z <= point[2] <= self.max_z)

    def sample(self, rng: random.Random, height: float) -> Vec3:
        """Uniform horizontal sample at a fixed *height*."""
        return (
            rng.uniform(self.min_x, self.max_x),
            height,
            rng.uniform(self.min_z, self.max_z),
        )

    def to_dict(self) -> dict:
        return {
            "center": {"x": self.center[0], "y": self.center[1], "z": self.center[2]},
            "half_x": self.half_x,
            "half_z": self.half_z,
        }


class Pose(NamedTuple):
    """Position plus heading."""

    position: Vec3
    yaw: float
