"""unit tests for src/chess/castling.py"""

from dataclasses import astuple

import pytest

from src.chess.castling import (
    CASTLING_RULES,
    CastlingRights,
    CastlingSide,
    castling_rule_for_king_move,
)
from src.chess.square import Square
from src.core.shared_types import Color


def test_castling_squares_white_king_side() -> None:
    rule = CASTLING_RULES[(Color.WHITE, CastlingSide.KING_SIDE)]
    assert rule.king_from == Square(7, 4)
    assert rule.king_to == Square(7, 6)
    assert rule.rook_from == Square(7, 7)
    assert rule.rook_to == Square(7, 5)


def test_castling_squares_black_queen_side() -> None:
    rule = CASTLING_RULES[(Color.BLACK, CastlingSide.QUEEN_SIDE)]
    assert rule.king_from == Square(0, 4)
    assert rule.king_to == Square(0, 2)
    assert rule.rook_from == Square(0, 0)
    assert rule.rook_to == Square(0, 3)
    assert rule.squares_between() == [Square(0, 1), Square(0, 2), Square(0, 3)]
    assert rule.king_path() == [Square(0, 4), Square(0, 3), Square(0, 2)]


def test_rule_lookup_by_king_move() -> None:
    rule = castling_rule_for_king_move(Square(7, 4), Square(7, 6))
    assert rule == CASTLING_RULES[(Color.WHITE, CastlingSide.KING_SIDE)]
    assert castling_rule_for_king_move(Square(7, 4), Square(7, 5)) is None


def test_fresh_rights_allow_everything() -> None:
    rights = CastlingRights()
    for color in Color:
        for side in CastlingSide:
            assert rights.may_castle(color, side)


@pytest.mark.parametrize(
    "from_square, flag",
    [
        (Square(7, 4), "white_king_moved"),
        (Square(7, 0), "white_rook_a_moved"),
        (Square(7, 7), "white_rook_h_moved"),
        (Square(0, 4), "black_king_moved"),
        (Square(0, 0), "black_rook_a_moved"),
        (Square(0, 7), "black_rook_h_moved"),
    ],
)
def test_leaving_origin_sets_flag(from_square: Square, flag: str) -> None:
    rights = CastlingRights().record_move(from_square, Square(4, 4))
    assert getattr(rights, flag)
    assert sum(astuple(rights)) == 1


def test_king_move_revokes_both_sides() -> None:
    rights = CastlingRights().record_move(Square(7, 4), Square(6, 4))
    assert not rights.may_castle(Color.WHITE, CastlingSide.KING_SIDE)
    assert not rights.may_castle(Color.WHITE, CastlingSide.QUEEN_SIDE)
    assert rights.may_castle(Color.BLACK, CastlingSide.KING_SIDE)


def test_capture_on_rook_origin_sets_flag() -> None:
    """The rook on h8 got taken: no castling with whatever stands there later"""
    rights = CastlingRights().record_move(Square(2, 2), Square(0, 7))
    assert rights.black_rook_h_moved
    assert not rights.may_castle(Color.BLACK, CastlingSide.KING_SIDE)


def test_flags_are_monotonic() -> None:
    """Rook leaves and comes back home: the flag stays set"""
    rights = CastlingRights().record_move(Square(7, 0), Square(5, 0))
    rights = rights.record_move(Square(5, 0), Square(7, 0))
    assert rights.white_rook_a_moved


def test_unrelated_move_returns_same_rights() -> None:
    rights = CastlingRights()
    assert rights.record_move(Square(6, 3), Square(4, 3)) is rights
