"""
World queries used by placement: a ray cast and an overlap test.

WorldQuery is the contract the build session needs. SimpleWorld is a small
reference implementation: an optional infinite ground plane plus an oriented
box for every committed piece in the registry. Preview pieces are never in the
registry, so they never block a ray.
"""

import math
from dataclasses import dataclass
from typing import Protocol

from snapbuild.config import ALL_LAYERS, LAYER_GROUND, LAYER_PIECES
from snapbuild.tools.pieces import Piece
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.vector_math import UP, Transform, Vec3

# Boxes are shrunk by this much before overlap tests so that snapped
# neighbours sharing a face do not count as overlapping.
OVERLAP_TOLERANCE = 0.05

GROUND = "ground"


@dataclass(frozen=True)
class RayHit:
    """Nearest surface hit by a ray."""
    position: Vec3
    normal: Vec3
    hit_entity: object
    distance: float


class WorldQuery(Protocol):
    def cast_ray(
        self,
        origin: Vec3,
        direction: Vec3,
        max_distance: float,
        mask: int = ALL_LAYERS,
    ) -> RayHit | None:
        ...


class CollisionQuery(Protocol):
    def overlaps(self, piece: Piece, transform: Transform) -> bool:
        ...


@dataclass(frozen=True)
class _Box:
    center: Vec3
    axes: tuple[Vec3, Vec3, Vec3]
    half: tuple[float, float, float]


def _piece_box(piece: Piece, transform: Transform, shrink: float = 0.0) -> _Box:
    """Oriented bounds of a piece whose origin sits at the centre of its base."""
    prefab = piece.prefab
    basis = transform.basis
    center = transform.xform(Vec3(0.0, prefab.height / 2, 0.0))
    half = (
        max(prefab.width / 2 - shrink, 0.0),
        max(prefab.height / 2 - shrink, 0.0),
        max(prefab.depth / 2 - shrink, 0.0),
    )
    return _Box(center, (basis.x, basis.y, basis.z), half)


def _ray_box(origin: Vec3, direction: Vec3, box: _Box) -> tuple[float, Vec3] | None:
    """
    Slab test in the box's local frame.

    Returns (distance, world normal) for the entry point, or None on a miss or
    when the ray starts inside the box.
    """
    rel = origin - box.center
    t_near = -math.inf
    t_far = math.inf
    normal = None

    for axis, half in zip(box.axes, box.half):
        o = rel.dot(axis)
        d = direction.dot(axis)
        if abs(d) < 1e-12:
            if abs(o) > half:
                return None
            continue
        t1 = (-half - o) / d
        t2 = (half - o) / d
        # Entering through the face whose normal opposes the ray.
        face = -axis if d > 0 else axis
        if t1 > t2:
            t1, t2 = t2, t1
        if t1 > t_near:
            t_near = t1
            normal = face
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None

    if t_near < 0 or normal is None:
        return None
    return t_near, normal


def _boxes_overlap(a: _Box, b: _Box) -> bool:
    """Separating axis test for two oriented boxes."""
    axes = list(a.axes) + list(b.axes)
    for u in a.axes:
        for v in b.axes:
            c = u.cross(v)
            if c.length() > 1e-6:
                axes.append(c.normalized())

    offset = b.center - a.center
    for axis in axes:
        ra = sum(abs(ax.dot(axis)) * h for ax, h in zip(a.axes, a.half))
        rb = sum(abs(bx.dot(axis)) * h for bx, h in zip(b.axes, b.half))
        if abs(offset.dot(axis)) >= ra + rb:
            return False
    return True


class SimpleWorld:
    """Ground plane plus registry-backed piece boxes."""

    def __init__(self, registry: PieceRegistry, ground: bool = True, ground_height: float = 0.0):
        self.registry = registry
        self.ground = ground
        self.ground_height = ground_height

    def cast_ray(
        self,
        origin: Vec3,
        direction: Vec3,
        max_distance: float,
        mask: int = ALL_LAYERS,
    ) -> RayHit | None:
        # A zero-length aim has no direction to follow: treat it as a miss.
        if direction.length() == 0.0:
            return None
        direction = direction.normalized()
        best: RayHit | None = None

        if self.ground and mask & LAYER_GROUND and abs(direction.y) > 1e-12:
            t = (self.ground_height - origin.y) / direction.y
            if 0 <= t <= max_distance:
                best = RayHit(origin + direction * t, UP, GROUND, t)

        if mask & LAYER_PIECES:
            for piece in self.registry:
                hit = _ray_box(origin, direction, _piece_box(piece, piece.transform))
                if hit is None:
                    continue
                t, normal = hit
                if t <= max_distance and (best is None or t < best.distance):
                    best = RayHit(origin + direction * t, normal, piece.body, t)

        return best

    def overlaps(self, piece: Piece, transform: Transform) -> bool:
        """True when `piece` placed at `transform` would intersect a committed piece."""
        candidate = _piece_box(piece, transform, OVERLAP_TOLERANCE)
        for other in self.registry:
            if other is piece:
                continue
            if _boxes_overlap(candidate, _piece_box(other, other.transform, OVERLAP_TOLERANCE)):
                return True
        return False
