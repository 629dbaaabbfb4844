"""Monidash data models — all Pydantic v2, all frozen (immutable)."""

from monidash.models.builds import (
    Build,
    BuildCollection,
    BuildState,
    BuildUpdate,
    Colour,
    WireBuild,
)
from monidash.models.geometry import Point, Rect, Size

__all__ = [
    # builds
    "Build",
    "BuildState",
    "BuildUpdate",
    "Colour",
    # wire format
    "BuildCollection",
    "WireBuild",
    # geometry
    "Point",
    "Rect",
    "Size",
]
