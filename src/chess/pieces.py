"""Defines the chess pieces"""

from dataclasses import dataclass
from typing import Self

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

# Unicode glyphs, as the browser clients render (and historically exchanged) the board.
PIECE_SYMBOLS: dict[tuple[PieceType, Color], str] = {
    (PieceType.KING, Color.WHITE): "♔",
    (PieceType.QUEEN, Color.WHITE): "♕",
    (PieceType.ROOK, Color.WHITE): "♖",
    (PieceType.BISHOP, Color.WHITE): "♗",
    (PieceType.KNIGHT, Color.WHITE): "♘",
    (PieceType.PAWN, Color.WHITE): "♙",
    (PieceType.KING, Color.BLACK): "♚",
    (PieceType.QUEEN, Color.BLACK): "♛",
    (PieceType.ROOK, Color.BLACK): "♜",
    (PieceType.BISHOP, Color.BLACK): "♝",
    (PieceType.KNIGHT, Color.BLACK): "♞",
    (PieceType.PAWN, Color.BLACK): "♟",
}

SYMBOL_TO_PIECE: dict[str, tuple[PieceType, Color]] = {
    value: key for key, value in PIECE_SYMBOLS.items()
}

# A pawn may only turn into one of these
PROMOTION_OPTIONS: tuple[PieceType, ...] = (
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
)


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        if character.lower() not in FEN_TO_PIECE:
            raise InvalidRequestError(f"Unknown piece character: {character!r}")
        color = Color.WHITE if character.isupper() else Color.BLACK
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_type, color)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type].lower()
        )

    @classmethod
    def from_symbol(cls, symbol: str) -> Self:
        if symbol not in SYMBOL_TO_PIECE:
            raise InvalidRequestError(f"Unknown piece symbol: {symbol!r}")
        piece_type, color = SYMBOL_TO_PIECE[symbol]
        return cls(piece_type, color)

    def to_symbol(self) -> str:
        return PIECE_SYMBOLS[(self.type, self.color)]

    def promoted_to(self, new_type: PieceType) -> Self:
        """Pieces are immutable: promotion hands back a new piece of the same color."""
        return type(self)(new_type, self.color)
