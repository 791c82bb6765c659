"""
Piece catalog lookup.

Maps piece-type identifiers to display metadata and a factory for creating
piece instances. The default catalog is read from data/prefabs.json; callers
can build their own PieceCatalog and register extra prefabs or factories.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable

from snapbuild.errors import PieceInstantiationError, PieceLookupError
from snapbuild.models import Prefab
from snapbuild.tools.pieces import Piece, build_piece


# ============================================================================
# Data Loading
# ============================================================================

DATA_PATH = Path(__file__).parent.parent / "data" / "prefabs.json"


def load_prefabs(path: Path) -> list[Prefab]:
    """Load and validate prefabs from a JSON file."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [Prefab.model_validate(item) for item in raw]


@lru_cache(maxsize=1)
def _load_prefabs() -> tuple[Prefab, ...]:
    """Load the bundled prefabs. Cached so we only read once."""
    return tuple(load_prefabs(DATA_PATH))


@lru_cache(maxsize=1)
def _prefab_by_name() -> dict[str, Prefab]:
    """Build a lookup dict for quick access by prefab name."""
    return {p.name: p for p in _load_prefabs()}


def list_categories() -> list[str]:
    """Return all piece categories in catalog order."""
    return list(dict.fromkeys(p.category for p in _load_prefabs()))


def get_prefabs(category: str | None = None) -> list[dict]:
    """
    Get bundled prefabs, optionally filtered by category.

    Returns a simplified list with name, englishName, category and dimensions.
    Use get_prefab_details() to get full info including snap points.
    """
    results = []
    for p in _load_prefabs():
        if category and p.category != category.lower():
            continue
        results.append({
            "name": p.name,
            "englishName": p.englishName,
            "category": p.category,
            "width": p.width,
            "height": p.height,
            "depth": p.depth,
        })
    return results


def get_prefab_details(name: str) -> dict | None:
    """
    Get full details for a bundled prefab by its exact name.

    Returns all info including snap points, or None if not found.
    """
    prefab = _prefab_by_name().get(name)
    if not prefab:
        return None
    return prefab.model_dump()


# ============================================================================
# Catalog
# ============================================================================

PieceFactory = Callable[[Prefab], Piece]


@dataclass(frozen=True)
class CatalogEntry:
    """What the build session needs for one piece type."""
    factory: PieceFactory
    metadata: Prefab

    @property
    def name(self) -> str:
        return self.metadata.englishName

    @property
    def category(self) -> str:
        return self.metadata.category

    def create(self) -> Piece:
        """Run the factory. Any failure is reported as PieceInstantiationError."""
        try:
            piece = self.factory(self.metadata)
        except PieceInstantiationError:
            raise
        except Exception as e:
            raise PieceInstantiationError(self.metadata.name, str(e)) from e
        if not isinstance(piece, Piece):
            raise PieceInstantiationError(self.metadata.name, f"factory returned {type(piece).__name__}")
        return piece


class PieceCatalog:
    """A registered-identifier table of piece types."""

    def __init__(self, prefabs: list[Prefab] | tuple[Prefab, ...] = ()):
        self._entries: dict[str, CatalogEntry] = {}
        for prefab in prefabs:
            self.register(prefab)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, piece_id: str) -> bool:
        return piece_id in self._entries

    def ids(self) -> list[str]:
        return list(self._entries)

    def register(self, prefab: Prefab, factory: PieceFactory | None = None) -> CatalogEntry:
        """Add or replace a piece type. Uses build_piece when no factory is given."""
        entry = CatalogEntry(factory or build_piece, prefab)
        self._entries[prefab.name] = entry
        return entry

    def lookup(self, piece_id: str) -> CatalogEntry:
        """Return the entry for `piece_id` or raise PieceLookupError."""
        try:
            return self._entries[piece_id]
        except KeyError:
            raise PieceLookupError(piece_id) from None

    def by_category(self) -> dict[str, list[dict]]:
        """Group piece types by category, keeping registration order."""
        groups: dict[str, list[dict]] = {}
        for piece_id, entry in self._entries.items():
            groups.setdefault(entry.category, []).append({"id": piece_id, "name": entry.name})
        return groups


def default_catalog() -> PieceCatalog:
    """A fresh catalog holding the bundled prefabs."""
    return PieceCatalog(_load_prefabs())
