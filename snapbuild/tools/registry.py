"""
Registry of committed pieces.

The registry is the only source of pieces for snap discovery and for ray casts
against placed geometry. It is mutated only by commit and retract.
"""

from snapbuild.tools.pieces import Piece, SceneNode


class PieceRegistry:
    """Ordered set of committed pieces. Iteration follows insertion order."""

    def __init__(self):
        self._pieces: list[Piece] = []

    def __len__(self) -> int:
        return len(self._pieces)

    def __iter__(self):
        return iter(list(self._pieces))

    def __contains__(self, piece: object) -> bool:
        return any(p is piece for p in self._pieces)

    def add(self, piece: Piece) -> None:
        if not piece.committed:
            raise ValueError(f"Only committed pieces can be registered: {piece!r}")
        if piece in self:
            raise ValueError(f"Piece already registered: {piece!r}")
        self._pieces.append(piece)

    def remove(self, piece: Piece) -> None:
        for i, p in enumerate(self._pieces):
            if p is piece:
                del self._pieces[i]
                return
        raise ValueError(f"Piece not registered: {piece!r}")

    def clear(self) -> None:
        self._pieces.clear()

    def owner_of(self, entity: object) -> Piece | None:
        """
        Resolve a ray-cast hit entity to the registered piece that owns it.

        Accepts a Piece or any SceneNode in a piece's tree. Returns None for
        anything else, or for pieces that are not registered.
        """
        piece = None
        if isinstance(entity, Piece):
            piece = entity
        elif isinstance(entity, SceneNode):
            node = entity
            while node is not None and node.piece is None:
                node = node.parent
            piece = node.piece if node is not None else None

        if piece is not None and piece in self:
            return piece
        return None
