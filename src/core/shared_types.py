"""
Type definitions used across layers
"""

from enum import StrEnum


class Phase(StrEnum):
    """Occupancy/turn status of a single match."""

    EMPTY = "empty"
    ONE_SEATED = "one seated"
    READY = "ready"
    IN_PROGRESS = "in progress"
    CONCLUDED = "concluded"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"
