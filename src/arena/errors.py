"""Arena error taxonomy.

Every error here is local and recoverable.  The director and controllers
raise them internally and catch them at the tick boundary: a failed spawn
or a failed shot skips that cycle and the loop keeps running.  Stale
references (destroyed agents or targets) are filtered, never raised.
"""

from __future__ import annotations


class ArenaError(Exception):
    """Base class for arena errors."""


class NoValidPositionFound(ArenaError):
    """Sampling budget exhausted without an acceptable spawn candidate."""

    def __init__(self, attempts: int, rejections: dict[str, int] | None = None) -> None:
        self.attempts = attempts
        self.rejections = dict(rejections or {})
        detail = ", ".join(f"{k}={v}" for k, v in sorted(self.rejections.items()))
        super().__init__(
            f"no valid spawn position after {attempts} attempts"
            + (f" ({detail})" if detail else "")
        )


class MissingCollaborator(ArenaError):
    """A factory, prefab kind or projectile definition is not configured."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"missing collaborator: {what}")
