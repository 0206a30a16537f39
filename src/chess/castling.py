"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Self

from src.chess.square import Square
from src.core.shared_types import Color


class CastlingSide(Enum):
    KING_SIDE = "h"
    QUEEN_SIDE = "a"


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: If none of the two pieces ever left its origin, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def on_row(cls, row: int, king_to: int, rook_from: int, rook_to: int) -> Self:
        """Convenience method: to make mapping shown below more readable. King always starts on column 4."""
        return cls(
            Square(row, 4), Square(row, king_to), Square(row, rook_from), Square(row, rook_to)
        )

    def king_path(self) -> list[Square]:
        """Squares the king stands on / passes / lands on. None of them may be attacked."""
        step = 1 if self.king_to.col > self.king_from.col else -1
        return [
            Square(self.king_from.row, col)
            for col in range(self.king_from.col, self.king_to.col + step, step)
        ]

    def squares_between(self) -> list[Square]:
        """Squares in between king and rook. All of them must be empty."""
        low, high = sorted([self.king_from.col, self.rook_from.col])
        return [Square(self.king_from.row, col) for col in range(low + 1, high)]


# The moves (in classical chess) made when castling. White sits on row 7, Black on row 0.
CASTLING_RULES: dict[tuple[Color, CastlingSide], CastlingSquares] = {
    (Color.WHITE, CastlingSide.KING_SIDE): CastlingSquares.on_row(7, 6, 7, 5),
    (Color.WHITE, CastlingSide.QUEEN_SIDE): CastlingSquares.on_row(7, 2, 0, 3),
    (Color.BLACK, CastlingSide.KING_SIDE): CastlingSquares.on_row(0, 6, 7, 5),
    (Color.BLACK, CastlingSide.QUEEN_SIDE): CastlingSquares.on_row(0, 2, 0, 3),
}


def castling_rule_for_king_move(from_square: Square, to_square: Square) -> CastlingSquares | None:
    """Which castling (if any) has the king going from `from_square` to `to_square`"""
    for rule in CASTLING_RULES.values():
        if rule.king_from == from_square and rule.king_to == to_square:
            return rule
    return None


@dataclass(frozen=True)
class CastlingRights:
    """
    Has the king / rook ever left its origin square?

    Carried explicitly (not derived from the board): a rook that goes away and comes back home
    must not be able to castle again. Flags only ever flip from False to True.
    """

    white_king_moved: bool = False
    white_rook_a_moved: bool = False
    white_rook_h_moved: bool = False
    black_king_moved: bool = False
    black_rook_a_moved: bool = False
    black_rook_h_moved: bool = False

    def king_moved(self, color: Color) -> bool:
        return getattr(self, f"{color.value}_king_moved")

    def rook_moved(self, color: Color, side: CastlingSide) -> bool:
        return getattr(self, f"{color.value}_rook_{side.value}_moved")

    def may_castle(self, color: Color, side: CastlingSide) -> bool:
        return not (self.king_moved(color) or self.rook_moved(color, side))

    def record_move(self, from_square: Square, to_square: Square) -> Self:
        """
        Return the rights after a move from/to the given squares.

        Leaving an origin square sets its flag. Landing on a rook's origin square sets that rook's flag as well:
        the rook standing there just got captured.
        """
        touched = {from_square, to_square}
        updates: dict[str, bool] = {}
        for (color, side), rule in CASTLING_RULES.items():
            if rule.king_from == from_square:
                updates[f"{color.value}_king_moved"] = True
            if rule.rook_from in touched:
                updates[f"{color.value}_rook_{side.value}_moved"] = True
        return replace(self, **updates) if updates else self
