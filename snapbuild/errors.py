"""Exceptions raised by the catalog and piece factories."""


class PieceLookupError(LookupError):
    """Requested piece-type identifier is not in the catalog."""

    def __init__(self, piece_id: str):
        super().__init__(f"Unknown piece type: {piece_id}")
        self.piece_id = piece_id


class PieceInstantiationError(RuntimeError):
    """A catalog factory failed to produce a piece."""

    def __init__(self, piece_id: str, reason: str):
        super().__init__(f"Could not create piece {piece_id}: {reason}")
        self.piece_id = piece_id
        self.reason = reason
