"""
The rules engine.
----

Consumes a Board plus the auxiliary state (last move, castling rights) and

* enumerates the squares a piece may go to,
* tells whether a square is attacked,
* validates and applies a proposed move, handing back a brand new GameState,
* recognises checkmate.

Everything here is a pure function: nothing gets mutated, a failed attempt leaves no trace.
"""

from dataclasses import replace
from typing import Optional

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    CastlingRights,
    CastlingSide,
    CastlingSquares,
    castling_rule_for_king_move,
)
from src.chess.game_state import GameState, LastMove
from src.chess.moves import (
    MOVEMENT_RULES,
    CastlingIntent,
    Move,
    attacks_square,
    pawn_direction,
    promotion_row,
)
from src.chess.pieces import PROMOTION_OPTIONS, Piece
from src.chess.square import Square
from src.core.exceptions import IllegalDestinationError, OutOfTurnError
from src.core.shared_types import Color, PieceType


def is_in_check(board: Board, color: Color) -> bool:
    """No separate traversal: it is `attacks_square` applied to the king's square. No king, no check."""
    king_square = board.find_king(color)
    if king_square is None:
        return False
    return attacks_square(board, king_square, color.opponent)


# --- EN PASSANT ---
def en_passant_target(
    board: Board, square: Square, last_move: Optional[LastMove]
) -> Optional[Square]:
    """
    Square the pawn on `square` could capture en passant onto, if any.

    Only right after an enemy pawn advanced two squares and landed next to ours (same row, adjacent column).
    The target is the square that pawn passed over.
    """
    pawn = board.piece_at(square)
    if pawn is None or pawn.type != PieceType.PAWN or last_move is None:
        return None

    landed_on = last_move.to_square
    if board.piece_at(landed_on) != Piece(PieceType.PAWN, pawn.color.opponent):
        return None

    advanced_two = (
        abs(last_move.from_square.row - landed_on.row) == 2
        and last_move.from_square.col == landed_on.col
    )
    is_adjacent = landed_on.row == square.row and abs(landed_on.col - square.col) == 1
    if not (advanced_two and is_adjacent):
        return None
    return Square(square.row + pawn_direction(pawn.color), landed_on.col)


def en_passant_victim(from_square: Square, to_square: Square) -> Square:
    """The captured pawn sits right behind the destination: on the capturing pawn's original row."""
    return Square(from_square.row, to_square.col)


# --- CASTLING ---
def _can_castle(
    board: Board,
    color: Color,
    side: CastlingSide,
    rule: CastlingSquares,
    rights: CastlingRights,
) -> bool:
    """
    **you are allowed to castle if**

    * Neither the king nor the rook ever left their origin squares (and the rook is still there).
    * All squares in between king and rook are empty.
    * None of the squares the king stands on, passes through or lands on is attacked.
    """
    if not rights.may_castle(color, side):
        return False
    if board.piece_at(rule.king_from) != Piece(PieceType.KING, color):
        return False
    if board.piece_at(rule.rook_from) != Piece(PieceType.ROOK, color):
        return False
    if any(not board.is_empty(square) for square in rule.squares_between()):
        return False
    return not any(
        attacks_square(board, square, color.opponent) for square in rule.king_path()
    )


def castling_destinations(
    board: Board, square: Square, castling_rights: CastlingRights
) -> list[Square]:
    king = board.piece_at(square)
    if king is None or king.type != PieceType.KING:
        return []
    return [
        rule.king_to
        for (color, side), rule in CASTLING_RULES.items()
        if color == king.color
        and rule.king_from == square
        and _can_castle(board, color, side, rule, castling_rights)
    ]


# --- LEGAL DESTINATIONS ---
def _king_step_is_safe(board: Board, from_square: Square, to_square: Square) -> bool:
    """Relocate the king on a scratch board and look whether the destination is attacked"""
    king = board.piece_at(from_square)
    scratch = board.with_move(from_square, to_square)
    return not attacks_square(scratch, to_square, king.color.opponent)


def pseudo_legal_destinations(
    board: Board,
    from_square: Square,
    last_move: Optional[LastMove],
    castling_rights: CastlingRights,
) -> set[Square]:
    """
    Destinations under the movement rules, with the single-ply look-ahead applied to king moves only.

    Moves by other pieces that expose their own king are NOT filtered out here, see `legal_destinations()`.
    """
    piece = board.piece_at(from_square)
    if piece is None:
        return set()

    destinations = set(MOVEMENT_RULES[piece.type](from_square, board))

    if piece.type == PieceType.PAWN:
        target = en_passant_target(board, from_square, last_move)
        if target is not None:
            destinations.add(target)

    if piece.type == PieceType.KING:
        destinations = {
            square
            for square in destinations
            if _king_step_is_safe(board, from_square, square)
        }
        destinations.update(castling_destinations(board, from_square, castling_rights))

    return destinations


def board_after(board: Board, move: Move) -> Board:
    """
    Apply a move (already known to be legal) to the board.

    1. relocate the moving piece
    2. castling? relocate the rook too
    3. en passant? clear the square of the captured pawn
    4. promotion? swap the pawn for the chosen piece
    """
    new_board = board.with_move(move.from_square, move.to_square)
    if move.castling is not None:
        new_board = new_board.with_move(move.castling.rook_from, move.castling.rook_to)
    if move.is_en_passant:
        new_board = new_board.with_cleared(
            en_passant_victim(move.from_square, move.to_square)
        )
    if move.promote_to is not None:
        pawn = board.piece_at(move.from_square)
        new_board = new_board.with_piece(move.to_square, pawn.promoted_to(move.promote_to))
    return new_board


def _infer_move(
    board: Board, from_square: Square, to_square: Square, last_move: Optional[LastMove]
) -> Move:
    """Fill in the side effects a move has on the board (used for the 'does it expose my king' check)"""
    piece = board.piece_at(from_square)
    castling: Optional[CastlingIntent] = None
    is_en_passant = False
    if piece.type == PieceType.KING:
        rule = castling_rule_for_king_move(from_square, to_square)
        if rule is not None:
            castling = CastlingIntent(rule.rook_from, rule.rook_to)
    if piece.type == PieceType.PAWN:
        is_en_passant = to_square == en_passant_target(board, from_square, last_move)
    return Move(from_square, to_square, castling=castling, is_en_passant=is_en_passant)


def legal_destinations(
    board: Board,
    from_square: Square,
    last_move: Optional[LastMove],
    castling_rights: CastlingRights,
) -> set[Square]:
    """
    Legal destinations of the piece on `from_square`.
    ----

    On top of `pseudo_legal_destinations()`, every move that would leave the mover's own king attacked
    is discarded, whatever piece makes it (pins, en passant along a rank, ignoring a check, ...).
    """
    piece = board.piece_at(from_square)
    if piece is None:
        return set()

    return {
        square
        for square in pseudo_legal_destinations(board, from_square, last_move, castling_rights)
        if not is_in_check(
            board_after(board, _infer_move(board, from_square, square, last_move)),
            piece.color,
        )
    }


# --- MOVE VALIDATION ---
def _assert_consistent_flags(board: Board, move: Move, last_move: Optional[LastMove]) -> None:
    """The declared en passant / promotion / castling flags must match what the move does on this board."""
    piece = board.piece_at(move.from_square)

    is_en_passant = piece.type == PieceType.PAWN and move.to_square == en_passant_target(
        board, move.from_square, last_move
    )
    if move.is_en_passant != is_en_passant:
        raise IllegalDestinationError(
            f"En passant flag does not match the move {move.from_square.to_wire()} -> {move.to_square.to_wire()}."
        )

    reaches_last_row = piece.type == PieceType.PAWN and move.to_square.row == promotion_row(
        piece.color
    )
    if reaches_last_row and move.promote_to not in PROMOTION_OPTIONS:
        raise IllegalDestinationError(
            f"A pawn reaching the last rank must promote to one of {', '.join(PROMOTION_OPTIONS)}."
        )
    if not reaches_last_row and move.promote_to is not None:
        raise IllegalDestinationError("Only a pawn reaching the last rank can promote.")

    rule = (
        castling_rule_for_king_move(move.from_square, move.to_square)
        if piece.type == PieceType.KING
        else None
    )
    expected = CastlingIntent(rule.rook_from, rule.rook_to) if rule else None
    if move.castling != expected:
        raise IllegalDestinationError("Castling rook squares do not match the king move.")


def validate_and_apply(state: GameState, move: Move) -> GameState:
    """
    The authoritative move commit.
    ----

    1. The piece on the starting square must belong to the color whose turn it is (OutOfTurnError)
    2. The destination must be legal and the declared flags consistent (IllegalDestinationError)
    3. Build the new board, update castling rights monotonically, remember the last move, flip the turn.

    Returns a new GameState. The input is never touched.
    """
    if state.concluded:
        raise OutOfTurnError("The match has concluded.")
    if state.turn is None:
        raise OutOfTurnError("No active turn: waiting for both seats to be filled.")

    board = state.board
    piece = board.piece_at(move.from_square)
    if piece is None or piece.color != state.turn:
        raise OutOfTurnError(
            f"No {state.turn} piece on {move.from_square.to_wire()}. It is {state.turn}'s turn."
        )

    allowed = legal_destinations(
        board, move.from_square, state.last_move, state.castling_rights
    )
    if move.to_square not in allowed:
        raise IllegalDestinationError(
            f"{piece.type} on {move.from_square.to_wire()} cannot move to {move.to_square.to_wire()}."
        )
    _assert_consistent_flags(board, move, state.last_move)

    castling_rights = state.castling_rights.record_move(move.from_square, move.to_square)
    if move.castling is not None:
        castling_rights = castling_rights.record_move(
            move.castling.rook_from, move.castling.rook_to
        )

    return replace(
        state,
        board=board_after(board, move),
        last_move=LastMove(move.from_square, move.to_square),
        castling_rights=castling_rights,
        turn=state.turn.opponent,
        moves_since_seated=state.moves_since_seated + 1,
    )


# --- END OF GAME ---
def has_legal_move(
    board: Board,
    color: Color,
    last_move: Optional[LastMove],
    castling_rights: CastlingRights,
) -> bool:
    return any(
        legal_destinations(board, square, last_move, castling_rights)
        for square in board.locate_color(color)
    )


def is_checkmate(state: GameState) -> bool:
    """The side to move is in check and no legal move of any of its pieces resolves it."""
    if state.turn is None:
        return False
    if not is_in_check(state.board, state.turn):
        return False
    return not has_legal_move(
        state.board, state.turn, state.last_move, state.castling_rights
    )
