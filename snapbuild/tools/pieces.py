"""
Building pieces and their connectors.

A piece is built as a small tree of scene nodes: a root, a collision body, and
one child per snap point tagged "snappoint". The connector set is collected
once from that tree when the piece is created and never changes afterwards;
placement code only ever sees the flat connector tuple.
"""

from dataclasses import dataclass, field

from snapbuild.errors import PieceInstantiationError
from snapbuild.models import Prefab
from snapbuild.tools.vector_math import UP, Transform, Vec3

SNAPPOINT_TAG = "snappoint"
BODY_TAG = "body"


@dataclass(frozen=True)
class Connector:
    """A named attachment point in a piece's local space."""
    name: str
    local_position: Vec3
    local_up: Vec3 = UP


# ============================================================================
# Scene Tree
# ============================================================================

@dataclass(eq=False)
class SceneNode:
    """
    A node in a piece's hierarchy.

    `offset` is relative to the parent node. Only the root carries a `piece`
    back-reference; sub-parts resolve their owner by walking up `parent`.
    """
    name: str
    offset: Vec3 = Vec3(0.0, 0.0, 0.0)
    tags: frozenset[str] = frozenset()
    children: list["SceneNode"] = field(default_factory=list)
    parent: "SceneNode | None" = None
    piece: "Piece | None" = None

    def add_child(self, child: "SceneNode") -> "SceneNode":
        child.parent = self
        self.children.append(child)
        return child


def collect_tagged(root: SceneNode, tag: str) -> list[tuple[SceneNode, Vec3]]:
    """
    Depth-first, pre-order search for nodes carrying `tag`.

    Returns (node, offset relative to root) pairs in discovery order.
    """
    found = []

    def visit(node: SceneNode, offset: Vec3):
        if tag in node.tags:
            found.append((node, offset))
        for child in node.children:
            visit(child, offset + child.offset)

    for child in root.children:
        visit(child, child.offset)
    return found


def collect_connectors(root: SceneNode) -> tuple[Connector, ...]:
    """Turn every snap point node under `root` into a Connector."""
    return tuple(
        Connector(node.name, offset)
        for node, offset in collect_tagged(root, SNAPPOINT_TAG)
    )


# ============================================================================
# Piece
# ============================================================================

class Piece:
    """
    A building piece instance.

    Starts in preview state: not committed, no collision, not in any registry.
    `commit()` promotes it; the registry is what makes it visible to discovery
    and ray casts.
    """

    def __init__(self, prefab: Prefab, root: SceneNode, transform: Transform | None = None):
        self.prefab = prefab
        self.root = root
        self.root.piece = self
        self.transform = transform or Transform()
        self.connectors = collect_connectors(root)
        self.committed = False
        self.collision_enabled = False
        self.preview = True
        self.visible = True
        self.placement_valid = True
        self.destroyed = False

    def __repr__(self) -> str:
        state = "committed" if self.committed else "preview"
        return f"Piece({self.prefab.name!r}, {state}, origin={self.transform.origin.as_tuple()})"

    @property
    def type_id(self) -> str:
        return self.prefab.name

    @property
    def category(self) -> str:
        return self.prefab.category

    @property
    def body(self) -> SceneNode:
        """The collision sub-part returned as the hit entity by ray casts."""
        for child in self.root.children:
            if BODY_TAG in child.tags:
                return child
        return self.root

    def get_connectors(self) -> tuple[Connector, ...]:
        return self.connectors

    def connector_world_position(self, connector: Connector) -> Vec3:
        return self.transform.xform(connector.local_position)

    def connector_world_up(self, connector: Connector) -> Vec3:
        return self.transform.basis.xform(connector.local_up).normalized()

    def set_preview(self, preview: bool) -> None:
        self.preview = preview
        self.collision_enabled = not preview

    def set_placement_feedback(self, valid: bool) -> None:
        """Rendering collaborators read `placement_valid` to pick a material."""
        self.placement_valid = valid

    def commit(self, transform: Transform) -> None:
        self.transform = transform
        self.set_preview(False)
        self.committed = True
        self.visible = True

    def destroy(self) -> None:
        self.committed = False
        self.collision_enabled = False
        self.visible = False
        self.destroyed = True


def build_piece(prefab: Prefab, transform: Transform | None = None) -> Piece:
    """
    Default catalog factory: build a preview piece from prefab data.

    Each snap point becomes a tagged child node of the root.
    """
    root = SceneNode(prefab.name)
    root.add_child(SceneNode(
        "body",
        Vec3(0.0, prefab.height / 2, 0.0),
        tags=frozenset({BODY_TAG}),
    ))
    for i, sp in enumerate(prefab.snapPoints or []):
        try:
            offset = Vec3.of(sp)
        except (TypeError, ValueError) as e:
            raise PieceInstantiationError(prefab.name, f"bad snap point {i}: {e}") from e
        root.add_child(SceneNode(f"snappoint_{i}", offset, tags=frozenset({SNAPPOINT_TAG})))

    piece = Piece(prefab, root, transform)
    piece.set_preview(True)
    return piece
