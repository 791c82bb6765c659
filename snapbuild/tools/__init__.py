# Placement tools: catalog, pieces, registry, world queries and resolution.

from snapbuild.tools.prefab_lookup import (
    CatalogEntry,
    PieceCatalog,
    default_catalog,
    get_prefab_details,
    get_prefabs,
    list_categories,
)

from snapbuild.tools.pieces import Connector, Piece, SceneNode, build_piece, collect_connectors
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.world import RayHit, SimpleWorld, WorldQuery

from snapbuild.tools.snap_discovery import (
    Candidate,
    find_candidates,
    stabilize_candidates,
)

from snapbuild.tools.placement_resolver import (
    Placement,
    PlacementResolver,
    ResolutionState,
    requires_support,
    resolve_placement,
)

from snapbuild.tools.interaction import cycle, rotate, rotate_or_cycle

__all__ = [
    # Catalog
    "CatalogEntry",
    "PieceCatalog",
    "default_catalog",
    "get_prefab_details",
    "get_prefabs",
    "list_categories",
    # Pieces and registry
    "Connector",
    "Piece",
    "SceneNode",
    "build_piece",
    "collect_connectors",
    "PieceRegistry",
    # World queries
    "RayHit",
    "SimpleWorld",
    "WorldQuery",
    # Discovery
    "Candidate",
    "find_candidates",
    "stabilize_candidates",
    # Resolution
    "Placement",
    "PlacementResolver",
    "ResolutionState",
    "requires_support",
    "resolve_placement",
    # Interaction
    "cycle",
    "rotate",
    "rotate_or_cycle",
]
