"""
The Board: an 8x8 grid of optional pieces.

Pure data. Every 'mutation' returns a new Board, so the rules engine can try out hypothetical moves on scratch copies.
No legality checks in here: the caller (the rules engine) is trusted to have done those.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Self

from src.chess.pieces import Piece
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

Grid = tuple[tuple[Optional[Piece], ...], ...]


@dataclass(frozen=True)
class Board:
    grid: Grid

    @classmethod
    def empty(cls) -> Self:
        rows, cols = BOARD_DIMENSIONS
        return cls(tuple(tuple(None for _ in range(cols)) for _ in range(rows)))

    @classmethod
    def starting(cls) -> Self:
        return cls.from_fen(STARTING_POSITION_FEN)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board from the placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR

        FEN lists the 8th rank first, which is exactly row 0 in our top-to-bottom orientation.
        Letters are pieces (upper case: White), digits are runs of empty squares.
        """
        fen_rows = fen_str.split("/")
        if len(fen_rows) != BOARD_DIMENSIONS[0]:
            raise InvalidRequestError(f"FEN placement must have 8 ranks: {fen_str!r}")

        grid: list[tuple[Optional[Piece], ...]] = []
        for fen_row in fen_rows:
            row: list[Optional[Piece]] = []
            for character in fen_row:
                if character.isdigit():
                    row.extend([None] * int(character))
                else:
                    row.append(Piece.from_fen(character))
            if len(row) != BOARD_DIMENSIONS[1]:
                raise InvalidRequestError(f"FEN rank must have 8 squares: {fen_row!r}")
            grid.append(tuple(row))
        return cls(tuple(grid))

    def to_fen(self) -> str:
        return "/".join(self._row_to_fen(row) for row in self.grid)

    @staticmethod
    def _row_to_fen(row: tuple[Optional[Piece], ...]) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for piece in row:
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def to_symbols(self) -> list[list[str]]:
        """Grid of unicode glyphs ('' for an empty square), the way clients draw the board."""
        return [
            [piece.to_symbol() if piece else "" for piece in row] for row in self.grid
        ]

    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.grid[square.row][square.col]

    def is_empty(self, square: Square) -> bool:
        return self.piece_at(square) is None

    def squares(self) -> Iterator[tuple[Square, Piece]]:
        """All occupied squares"""
        for row_idx, row in enumerate(self.grid):
            for col_idx, piece in enumerate(row):
                if piece is not None:
                    yield Square(row_idx, col_idx), piece

    def locate_color(self, color: Color) -> list[Square]:
        return [square for square, piece in self.squares() if piece.color == color]

    def find_king(self, color: Color) -> Optional[Square]:
        king = Piece(PieceType.KING, color)
        return next(
            (square for square, piece in self.squares() if piece == king), None
        )

    # --- pure updates ---
    def with_piece(self, square: Square, piece: Optional[Piece]) -> Self:
        rows = [list(row) for row in self.grid]
        rows[square.row][square.col] = piece
        return type(self)(tuple(tuple(row) for row in rows))

    def with_cleared(self, square: Square) -> Self:
        return self.with_piece(square, None)

    def with_move(self, from_square: Square, to_square: Square) -> Self:
        """Relocate the piece. Whatever stood on the destination is gone."""
        moving_piece = self.piece_at(from_square)
        return self.with_cleared(from_square).with_piece(to_square, moving_piece)
