"""
Snap candidate discovery and frame-to-frame stabilization.

Discovery scans committed pieces for connectors near the cursor's hit point
and returns the closest few, nearest first. Stabilization wraps discovery with
hysteresis: while the hit point stays close to the connector that was nearest
when the list was built, the list (and the user's selection within it) is
kept as-is instead of being rebuilt every frame.
"""

from dataclasses import dataclass

from snapbuild.tools.pieces import Connector, Piece
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.vector_math import Vec3

SNAP_RADIUS = 1.5
MAX_CANDIDATES = 4
STABILITY_THRESHOLD = 0.3


@dataclass(frozen=True, eq=False)
class Candidate:
    """A connector on a committed piece that is within snap range."""
    connector: Connector
    piece: Piece
    distance: float
    position: Vec3
    up: Vec3


def find_candidates(
    point: Vec3,
    registry: PieceRegistry,
    radius: float = SNAP_RADIUS,
    limit: int = MAX_CANDIDATES,
) -> list[Candidate]:
    """
    Find up to `limit` connectors within `radius` of `point`, nearest first.

    Ties keep registry order, then connector order within a piece.
    """
    found = []
    for piece in registry:
        if not piece.committed:
            continue
        for connector in piece.get_connectors():
            position = piece.connector_world_position(connector)
            dist = position.distance(point)
            if dist <= radius:
                found.append(Candidate(
                    connector,
                    piece,
                    dist,
                    position,
                    piece.connector_world_up(connector),
                ))

    # sort() is stable, which gives the tie-break for free.
    found.sort(key=lambda c: c.distance)
    return found[:limit]


@dataclass(frozen=True)
class StabilizedCandidates:
    """Result of one stabilization pass."""
    candidates: list[Candidate]
    selected_index: int
    recomputed: bool


def stabilize_candidates(
    point: Vec3,
    previous: list[Candidate],
    selected_index: int,
    registry: PieceRegistry,
    radius: float = SNAP_RADIUS,
    limit: int = MAX_CANDIDATES,
    threshold: float = STABILITY_THRESHOLD,
) -> StabilizedCandidates:
    """
    Keep `previous` while `point` is within `threshold` of its first entry.

    A held list is dropped if any of its pieces has left the registry since it
    was built. Recomputing always resets the selection to 0.
    """
    if previous and all(c.piece in registry for c in previous):
        if point.distance(previous[0].position) < threshold:
            return StabilizedCandidates(previous, selected_index, False)

    candidates = find_candidates(point, registry, radius, limit)
    return StabilizedCandidates(candidates, 0, True)
