"""
Placement resolution for the preview piece.

Each frame the resolver takes the ray hit under the cursor, refreshes the snap
candidates through the stability filter, and works out where the moving piece
should go:

- No candidates (or a piece with no connectors): stand the piece on the hit
  point with its up axis along the surface normal.
- With candidates: take the selected target connector, orient the piece to the
  target's up direction, then pick whichever of the piece's own connectors is
  closest to the target once the current yaw is applied, and shift the piece
  so that connector lands exactly on the target.

The stored yaw is applied around the up axis in both cases. Validity is a
hook: an optional collision collaborator plus per-category placement rules.
"""

from dataclasses import dataclass, field, replace
from typing import Callable

from snapbuild.config import BuildSettings
from snapbuild.tools.pieces import Connector, Piece
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.snap_discovery import Candidate, stabilize_candidates
from snapbuild.tools.vector_math import Transform, Vec3, basis_from_up
from snapbuild.tools.world import CollisionQuery, RayHit


@dataclass(frozen=True)
class Placement:
    """A resolved transform for the moving piece."""
    transform: Transform
    target: Candidate | None = None
    moving_connector: Connector | None = None
    valid: bool = True

    @property
    def snapped(self) -> bool:
        return self.target is not None


@dataclass
class ResolutionState:
    """
    Everything derived per frame for the current preview piece.

    Owned by one PlacementResolver. `yaw` is kept in [0, 360) and
    `selected_index` stays inside `candidates` when the list is non-empty.
    """
    hit_position: Vec3 | None = None
    hit_normal: Vec3 | None = None
    candidates: list[Candidate] = field(default_factory=list)
    selected_index: int = 0
    yaw: float = 0.0
    placement: Placement | None = None
    valid: bool = False

    @property
    def selected(self) -> Candidate | None:
        if not self.candidates:
            return None
        return self.candidates[self.selected_index]


# ============================================================================
# Core Algorithm
# ============================================================================

def resolve_placement(
    connectors: tuple[Connector, ...] | list[Connector],
    hit_position: Vec3,
    hit_normal: Vec3,
    candidates: list[Candidate],
    selected_index: int = 0,
    yaw: float = 0.0,
) -> Placement:
    """
    Compute the transform that places a piece at the hit point or on a candidate.

    Returns a Placement with valid=True; validity checks happen separately.
    """
    if not candidates or not connectors:
        basis = basis_from_up(hit_normal)
        basis = basis.rotated(basis.up, yaw)
        return Placement(Transform(basis, hit_position))

    target = candidates[selected_index]

    # The target connector defines orientation, not the raw surface.
    basis = basis_from_up(target.up)
    basis = basis.rotated(basis.up, yaw)

    # Nearest moving connector to the target, with the piece tentatively at
    # the hit point in its yawed orientation.
    best = None
    best_offset = None
    best_dist = float("inf")
    for connector in connectors:
        offset = basis.xform(connector.local_position)
        dist = (hit_position + offset).distance(target.position)
        if dist < best_dist:
            best_dist = dist
            best = connector
            best_offset = offset

    origin = target.position - best_offset
    return Placement(Transform(basis, origin), target, best)


# ============================================================================
# Validity Rules
# ============================================================================

PlacementRule = Callable[[Piece, Placement], bool]

SUPPORT_CATEGORIES = ("foundation", "floor", "wall")
SUPPORT_TOLERANCE = 1e-4


def requires_support(supports: tuple[str, ...] = SUPPORT_CATEGORIES) -> PlacementRule:
    """
    Rule: the piece must be snapped to a connector of a supporting piece, and
    that connector must sit at or below the piece's base along its up axis.
    """
    def rule(piece: Piece, placement: Placement) -> bool:
        target = placement.target
        if target is None or target.piece.category not in supports:
            return False
        transform = placement.transform
        height = (target.position - transform.origin).dot(transform.basis.up)
        return height <= SUPPORT_TOLERANCE
    return rule


def default_rules(settings: BuildSettings) -> dict[str, list[PlacementRule]]:
    if settings.enforce_support_rules:
        return {"wall": [requires_support()]}
    return {}


# ============================================================================
# Resolver
# ============================================================================

class PlacementResolver:
    """Owns the ResolutionState for one preview piece and updates it each frame."""

    def __init__(
        self,
        registry: PieceRegistry,
        settings: BuildSettings | None = None,
        collision: CollisionQuery | None = None,
        rules: dict[str, list[PlacementRule]] | None = None,
    ):
        self.registry = registry
        self.settings = settings or BuildSettings()
        self.collision = collision
        self.rules = default_rules(self.settings) if rules is None else rules
        self.state = ResolutionState()

    def reset(self) -> None:
        self.state = ResolutionState()

    def invalidate_candidates(self) -> None:
        """Force the next update to rebuild the candidate list."""
        self.state.candidates = []
        self.state.selected_index = 0

    def invalidate_placement(self) -> None:
        """Drop the resolved placement and candidates; commits wait for the next update."""
        self.invalidate_candidates()
        self.state.placement = None
        self.state.valid = False

    def add_rule(self, category: str, rule: PlacementRule) -> None:
        self.rules.setdefault(category, []).append(rule)

    def update(self, piece: Piece, hit: RayHit | None) -> Placement | None:
        """Run one resolution pass. Returns None when the ray hit nothing."""
        state = self.state
        if hit is None:
            state.hit_position = None
            state.hit_normal = None
            self.invalidate_placement()
            return None

        state.hit_position = hit.position
        state.hit_normal = hit.normal

        connectors = piece.get_connectors()
        if connectors:
            settings = self.settings
            stable = stabilize_candidates(
                hit.position,
                state.candidates,
                state.selected_index,
                self.registry,
                radius=settings.snap_radius,
                limit=settings.max_candidates,
                threshold=settings.stability_threshold,
            )
            state.candidates = stable.candidates
            state.selected_index = stable.selected_index
        else:
            # Nothing to snap with, so no snap targets to offer for cycling.
            self.invalidate_candidates()

        placement = resolve_placement(
            connectors,
            hit.position,
            hit.normal,
            state.candidates,
            state.selected_index,
            state.yaw,
        )
        placement = replace(placement, valid=self.is_valid(piece, placement))
        state.placement = placement
        state.valid = placement.valid
        return placement

    def is_valid(self, piece: Piece, placement: Placement) -> bool:
        """Collision and per-category rules. Override to add piece-specific checks."""
        if self.collision is not None and self.collision.overlaps(piece, placement.transform):
            return False
        return all(rule(piece, placement) for rule in self.rules.get(piece.category, ()))
