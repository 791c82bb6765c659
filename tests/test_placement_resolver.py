import math

import pytest

from snapbuild.config import BuildSettings
from snapbuild.tools.pieces import build_piece
from snapbuild.tools.placement_resolver import (
    PlacementResolver,
    requires_support,
    resolve_placement,
)
from snapbuild.tools.snap_discovery import find_candidates
from snapbuild.tools.vector_math import UP, Vec3, basis_from_up
from snapbuild.tools.world import RayHit

TOLERANCE = 1e-4


def _hit(position, normal=UP):
    return RayHit(Vec3.of(position), normal, "ground", 1.0)


def _assert_snapped(placement):
    """The chosen moving connector must land on the target connector."""
    assert placement.snapped
    landed = placement.transform.xform(placement.moving_connector.local_position)
    assert landed.distance(placement.target.position) <= TOLERANCE


class _AlwaysOverlaps:
    def overlaps(self, piece, transform):
        return True


# ============================================================================
# Free placement
# ============================================================================

def test_free_placement_on_flat_floor():
    placement = resolve_placement((), Vec3(0, 0, 0), UP, [])
    assert placement.transform.origin == Vec3(0, 0, 0)
    assert placement.transform.basis.up.is_close(UP)
    assert not placement.snapped


def test_free_placement_applies_yaw_around_normal():
    placement = resolve_placement((), Vec3(1, 0, 1), UP, [], yaw=90)
    basis = placement.transform.basis
    assert basis.up.is_close(UP)
    assert basis.x.is_close(Vec3(0, 0, -1))


@pytest.mark.parametrize("normal", [Vec3(0, 0, -1), Vec3(0, 0, 1), Vec3(1, 0, 0)])
def test_free_placement_on_walls_never_produces_nan(normal):
    placement = resolve_placement((), Vec3(0, 1, 0), normal, [], yaw=45)
    basis = placement.transform.basis
    for axis in (basis.x, basis.y, basis.z):
        assert all(math.isfinite(c) for c in axis.as_tuple())
    assert basis.up.is_close(normal)


# ============================================================================
# Snapping
# ============================================================================

def test_snap_alignment_scenario(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0)]), origin=(2, 0, 0))
    moving = build_piece(make_prefab("beam", snap_points=[(-1, 0, 0), (1, 0, 0)]))

    hit = Vec3(2.05, 0, 0.02)
    candidates = find_candidates(hit, registry)
    assert len(candidates) == 1

    placement = resolve_placement(moving.get_connectors(), hit, UP, candidates)
    _assert_snapped(placement)
    assert placement.target.position.is_close(Vec3(2, 0, 0))
    assert placement.transform.xform(placement.moving_connector.local_position).is_close(
        Vec3(2, 0, 0), TOLERANCE
    )


def test_target_up_overrides_surface_normal(make_prefab, place, registry):
    tilted = basis_from_up(Vec3(1, 1, 0))
    place(make_prefab("ramp", snap_points=[(0, 0, 0)]), origin=(0, 0, 0), basis=tilted)
    moving = build_piece(make_prefab("tile", snap_points=[(1, 0, 1), (-1, 0, -1)]))

    candidates = find_candidates(Vec3(0.1, 0, 0), registry)
    placement = resolve_placement(moving.get_connectors(), Vec3(0.1, 0, 0), UP, candidates, yaw=45)
    assert placement.transform.basis.up.is_close(tilted.up)
    _assert_snapped(placement)


def test_yaw_changes_which_connector_faces_the_target(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0)]), origin=(2, 0, 0))
    moving = build_piece(make_prefab("beam", snap_points=[(-1, 0, 0), (1, 0, 0)]))
    hit = Vec3(2.5, 0, 0)
    candidates = find_candidates(hit, registry)

    straight = resolve_placement(moving.get_connectors(), hit, UP, candidates, yaw=0)
    turned = resolve_placement(moving.get_connectors(), hit, UP, candidates, yaw=180)
    assert straight.moving_connector.local_position.x == -1.0
    assert turned.moving_connector.local_position.x == 1.0
    _assert_snapped(straight)
    _assert_snapped(turned)
    assert straight.transform.origin.is_close(Vec3(3, 0, 0), TOLERANCE)
    assert turned.transform.origin.is_close(Vec3(3, 0, 0), TOLERANCE)


def test_selected_index_picks_the_target(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0), (0, 1, 0)]), origin=(0, 0, 0))
    moving = build_piece(make_prefab("cap", snap_points=[(0, 0, 0)]))
    hit = Vec3(0.1, 0, 0)
    candidates = find_candidates(hit, registry)
    assert len(candidates) == 2

    placement = resolve_placement(moving.get_connectors(), hit, UP, candidates, selected_index=1)
    assert placement.target is candidates[1]
    assert placement.transform.origin.is_close(Vec3(0, 1, 0))


def test_piece_without_connectors_places_freely_even_with_candidates(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0)]))
    hit = Vec3(0.2, 0, 0)
    candidates = find_candidates(hit, registry)
    assert candidates

    placement = resolve_placement((), hit, UP, candidates)
    assert not placement.snapped
    assert placement.transform.origin == hit


# ============================================================================
# Resolver
# ============================================================================

def test_query_miss_is_invalid(make_prefab, registry):
    resolver = PlacementResolver(registry)
    piece = build_piece(make_prefab())
    assert resolver.update(piece, None) is None
    assert resolver.state.valid is False
    assert resolver.state.placement is None


def test_update_records_state(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0)]), origin=(2, 0, 0))
    resolver = PlacementResolver(registry)
    moving = build_piece(make_prefab("beam", snap_points=[(-1, 0, 0), (1, 0, 0)]))

    placement = resolver.update(moving, _hit((2.05, 0, 0.02)))
    state = resolver.state
    assert state.valid
    assert state.hit_position == Vec3(2.05, 0, 0.02)
    assert state.selected is placement.target
    _assert_snapped(placement)


def test_update_holds_selection_for_small_moves(make_prefab, place, registry):
    place(make_prefab("post", snap_points=[(0, 0, 0), (0, 1, 0)]))
    resolver = PlacementResolver(registry)
    moving = build_piece(make_prefab("cap", snap_points=[(0, 0, 0)]))

    resolver.update(moving, _hit((0.1, 0, 0)))
    candidates = resolver.state.candidates
    resolver.state.selected_index = 1

    placement = resolver.update(moving, _hit((0.15, 0, 0.05)))
    assert resolver.state.candidates is candidates
    assert resolver.state.selected_index == 1
    assert placement.transform.origin.is_close(Vec3(0, 1, 0))


def test_collision_makes_placement_invalid(make_prefab, registry):
    resolver = PlacementResolver(registry, collision=_AlwaysOverlaps())
    placement = resolver.update(build_piece(make_prefab()), _hit((0, 0, 0)))
    assert placement.valid is False
    assert resolver.state.valid is False


def test_support_rule_for_walls(make_prefab, place, registry):
    settings = BuildSettings(enforce_support_rules=True)
    resolver = PlacementResolver(registry, settings)
    wall = build_piece(make_prefab("wall", snap_points=[(-1, 0, 0), (1, 0, 0)], category="wall"))

    free = resolver.update(wall, _hit((10, 0, 10)))
    assert free.valid is False

    place(make_prefab("base", snap_points=[(1, 0.5, 1)], category="foundation"))
    resolver.reset()
    snapped = resolver.update(wall, _hit((1.2, 0.5, 1.1)))
    assert snapped.snapped
    assert snapped.valid is True


def test_custom_rule_hook(make_prefab, registry):
    resolver = PlacementResolver(registry)
    resolver.add_rule("foundation", requires_support(("foundation",)))
    placement = resolver.update(build_piece(make_prefab()), _hit((0, 0, 0)))
    assert placement.valid is False


def test_support_rule_refuses_connector_above_base(make_prefab, place, registry):
    settings = BuildSettings(enforce_support_rules=True)
    resolver = PlacementResolver(registry, settings)
    place(make_prefab("base", snap_points=[(1, 0.5, 1)], category="foundation"))

    # Only a top connector, so the wall would hang from the foundation.
    wall = build_piece(make_prefab("wall", snap_points=[(0, 2, 0)], category="wall"))
    placement = resolver.update(wall, _hit((1.2, 0.5, 1.1)))
    assert placement.snapped
    assert placement.transform.origin.is_close(Vec3(1, -1.5, 1), TOLERANCE)
    assert placement.valid is False
