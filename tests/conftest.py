"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/helpers required for testing multiple layers.
"""

from typing import Callable

import pytest

from src.chess.board import Board
from src.chess.pieces import Piece
from src.chess.square import Square
from src.core.shared_types import Color
from src.services.match_session import MatchSession

WHITE_PLAYER = "white-socket"
BLACK_PLAYER = "black-socket"

BoardFactory = Callable[[dict[tuple[int, int], str]], Board]


def place_pieces(pieces: dict[tuple[int, int], str]) -> Board:
    """Empty board + pieces given as {(row, col): FEN character} (upper case: White)"""
    board = Board.empty()
    for (row, col), character in pieces.items():
        board = board.with_piece(Square(row, col), Piece.from_fen(character))
    return board


@pytest.fixture
def board_with() -> BoardFactory:
    """Call the returned function with a dict of {(row, col): 'K'} to build a board"""
    return place_pieces


@pytest.fixture
def seated_session() -> MatchSession:
    """A session in the standard opening position, both seats taken: ready for White to move."""
    session = MatchSession("test-match")
    session.connect(WHITE_PLAYER)
    session.connect(BLACK_PLAYER)
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    session.claim_seat(BLACK_PLAYER, Color.BLACK)
    return session
