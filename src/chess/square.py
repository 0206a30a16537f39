"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.exceptions import InvalidRequestError

# Chess board is always 8x8. Rows are counted top-to-bottom: row 0 is Black's back rank.
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_wire(cls, value: str) -> Square:
        """Wire notation: '0,0' - '7,7' (zero-based row, col)"""
        parts = value.split(",")
        if len(parts) != 2:
            raise InvalidRequestError(f"Cannot interpret {value!r} as a square.")
        try:
            row, col = (int(part.strip()) for part in parts)
        except ValueError:
            raise InvalidRequestError(f"Cannot interpret {value!r} as a square.") from None

        square = cls(row, col)
        if not square.is_within_bounds():
            raise InvalidRequestError(f"Square {value!r} is off the board.")
        return square

    def to_wire(self) -> str:
        return f"{self.row},{self.col}"

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )
