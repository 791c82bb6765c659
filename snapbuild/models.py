"""
Pydantic models for building-piece data.

These models define the structure for prefabs (catalog rows with their local
snap points) and for replay scripts that drive a build session from a file.
Used by the catalog loader and the CLI for validation.
"""

from typing import Literal

from pydantic import BaseModel, Field


class Vector3(BaseModel):
    """A 3D coordinate. Y is up."""
    x: float
    y: float
    z: float


class Prefab(BaseModel):
    """
    A building prefab from the piece catalog.

    Contains the piece's identifier, display name, category, dimensions and
    snap points. Snap points are local offsets from the piece origin (the
    centre of its base) where other pieces can connect.
    """
    name: str
    englishName: str
    description: str = ""
    category: str
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    depth: float = Field(gt=0)
    snapPoints: list[Vector3] | None = None


# ============================================================================
# Replay Scripts
# ============================================================================

class AimStep(BaseModel):
    """Point the camera ray. Triggers one resolution pass."""
    origin: tuple[float, float, float]
    direction: tuple[float, float, float]


class ScriptStep(BaseModel):
    """
    A single replay step. Exactly one of the fields is expected to be set.

    select: piece-type identifier to make active
    aim: camera ray for the next frame
    input: discrete input event name
    """
    select: str | None = None
    aim: AimStep | None = None
    input: Literal["rotate_left", "rotate_right", "place", "remove", "cancel"] | None = None


class ReplayScript(BaseModel):
    """A complete replay script: a named, ordered list of steps."""
    name: str = "Replay"
    steps: list[ScriptStep] = Field(default_factory=list)
