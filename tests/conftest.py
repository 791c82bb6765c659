import pytest

from snapbuild.models import Prefab, Vector3
from snapbuild.tools.pieces import build_piece
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.vector_math import IDENTITY, Transform, Vec3


@pytest.fixture
def registry():
    return PieceRegistry()


@pytest.fixture
def make_prefab():
    def _make(name="block", snap_points=(), category="foundation", width=2.0, height=1.0, depth=2.0):
        points = [Vector3(x=x, y=y, z=z) for x, y, z in snap_points]
        return Prefab(
            name=name,
            englishName=name.replace("_", " ").title(),
            category=category,
            width=width,
            height=height,
            depth=depth,
            snapPoints=points or None,
        )
    return _make


@pytest.fixture
def place(registry):
    """Commit a piece of `prefab` at `origin` and register it."""
    def _place(prefab, origin=(0.0, 0.0, 0.0), basis=IDENTITY):
        piece = build_piece(prefab)
        piece.commit(Transform(basis, Vec3.of(origin)))
        registry.add(piece)
        return piece
    return _place
