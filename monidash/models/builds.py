"""Build status models — what the dashboard displays.

``Build`` and ``BuildUpdate`` are produced by the fetcher and consumed by
the dashboard.  ``WireBuild`` and ``BuildCollection`` mirror the JSON frame
sent by the build server and exist only to be flattened into ``Build``\\ s.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Colour(IntEnum):
    """Terminal colour numbers (the eight ANSI colours plus xterm-256 extras)."""

    BLACK = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    WHITE = 7
    ORANGE = 167


class BuildState(str, Enum):
    """The four states a build can be in."""

    FAILED = "failed"
    ACKNOWLEDGED = "acknowledged"
    PASSED = "passed"
    UNKNOWN = "unknown"

    @property
    def background(self) -> Colour:
        """Swatch colour drawn for a build in this state."""
        return _STATE_BACKGROUNDS[self]

    @property
    def foreground(self) -> Colour:
        return Colour.WHITE


_STATE_BACKGROUNDS: dict[BuildState, Colour] = {
    BuildState.FAILED: Colour.RED,
    BuildState.ACKNOWLEDGED: Colour.ORANGE,
    BuildState.PASSED: Colour.GREEN,
    BuildState.UNKNOWN: Colour.MAGENTA,
}


class Build(BaseModel):
    """A single named CI build and its current state."""

    model_config = ConfigDict(frozen=True)

    name: str
    state: BuildState = BuildState.UNKNOWN
    building: bool = False
    acknowledger: str = ""


class BuildUpdate(BaseModel):
    """One message from the fetcher: either a full build list or an error.

    A successful update has ``error=None``; a failed one always carries an
    empty ``builds`` tuple.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    builds: tuple[Build, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: Exception) -> BuildUpdate:
        return cls(builds=(), error=error)


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------


class WireBuild(BaseModel):
    """One entry of a ``failing`` / ``acknowledged`` / ``healthy`` array.

    Missing fields take their zero value.  Values must have their JSON type:
    ``"building": 1`` or ``"building": "true"`` is rejected.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    name: str = ""
    building: bool = False
    user: str = ""


class BuildCollection(BaseModel):
    """A full frame as sent by the build server.

    Missing (or ``null``) arrays are treated as empty; unknown keys such as
    ``type`` or ``url`` are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    failing: list[WireBuild] = Field(default_factory=list)
    acknowledged: list[WireBuild] = Field(default_factory=list)
    healthy: list[WireBuild] = Field(default_factory=list)

    @field_validator("failing", "acknowledged", "healthy", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    def tagged(self) -> list[tuple[WireBuild, BuildState]]:
        """Entries paired with the state implied by their source array.

        Order is failing, then acknowledged, then healthy.
        """
        return (
            [(b, BuildState.FAILED) for b in self.failing]
            + [(b, BuildState.ACKNOWLEDGED) for b in self.acknowledged]
            + [(b, BuildState.PASSED) for b in self.healthy]
        )
