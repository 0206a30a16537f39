"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define candidate destinations for each piece type.


Special moves (en passant, castling) and legality are handled by the rules module.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.chess.pieces import Piece
from src.chess.square import Square
from src.core.shared_types import Color, PieceType

Vector = tuple[int, int]

STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece_at(self, square: Square) -> Optional[Piece]: ...


@dataclass(frozen=True)
class CastlingIntent:
    """The rook that travels along with a castling king"""

    rook_from: Square
    rook_to: Square


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    castling: Optional[CastlingIntent] = None
    is_en_passant: bool = False


def pawn_direction(color: Color) -> int:
    """White moves UP the board (towards row 0), Black moves DOWN."""
    return -1 if color == Color.WHITE else 1


def pawn_start_row(color: Color) -> int:
    return 6 if color == Color.WHITE else 1


def promotion_row(color: Color) -> int:
    """The far rank, seen from the pawn's side of the board"""
    return 0 if color == Color.WHITE else 7


# --- MOVEMENT RULES ---
def raycasting_move(square: Square, board: Board, directions: list[Vector]) -> list[Square]:
    """
    Raycasting algorithm
    -----

    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board. The first occupied square is included only if it holds an enemy piece.
    """
    player_color = board.piece_at(square).color

    destinations: list[Square] = []
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        while target_square.is_within_bounds():
            piece_found = board.piece_at(target_square)
            if piece_found is not None:
                if piece_found.color != player_color:
                    destinations.append(target_square)
                break
            destinations.append(target_square)
            target_square = target_square.offset(d_row, d_col)
    return destinations


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Square]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just jump by a fixed offset"""
    player_color = board.piece_at(square).color

    destinations: list[Square] = []
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if not target_square.is_within_bounds():
            continue

        piece_found = board.piece_at(target_square)
        if piece_found is None or piece_found.color != player_color:
            destinations.append(target_square)
    return destinations


def candidate_pawn_moves(square: Square, board: Board) -> list[Square]:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting row), if both squares are empty
    - takes diagonally, only when an enemy piece is standing there

    NOTE: En passant is added by the rules engine (it needs to know the last move)
    """
    color = board.piece_at(square).color
    direction = pawn_direction(color)
    destinations: list[Square] = []

    one_step = square.offset(direction, 0)
    if one_step.is_within_bounds() and board.piece_at(one_step) is None:
        destinations.append(one_step)
        two_steps = square.offset(2 * direction, 0)
        if square.row == pawn_start_row(color) and board.piece_at(two_steps) is None:
            destinations.append(two_steps)

    for d_col in (-1, 1):
        target_square = square.offset(direction, d_col)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece_at(target_square)
        if piece_found is not None and piece_found.color != color:
            destinations.append(target_square)
    return destinations


def candidate_knight_moves(square: Square, board: Board) -> list[Square]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Square]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Square]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Square]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(square, board, STRAIGHTS + DIAGONALS)


def candidate_king_moves(square: Square, board: Board) -> list[Square]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled by the rules engine).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Square]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """
    Is there a piece of the given type and color exactly one offset away from the square?
    """
    attacker = Piece(by_piece_type, by_color)
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if target_square.is_within_bounds() and board.piece_at(target_square) == attacker:
            return True
    return False


def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: set[PieceType],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color that
    is allowed to slide along the given direction?"_

    Only the first piece found in each direction matters. When it stands right next to the square,
    an enemy king counts as well.
    """
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        distance = 1
        while target_square.is_within_bounds():
            piece_found = board.piece_at(target_square)
            if piece_found is not None:
                if piece_found.color == by_color and (
                    piece_found.type in by_piece_types
                    or (distance == 1 and piece_found.type == PieceType.KING)
                ):
                    return True
                break
            target_square = target_square.offset(d_row, d_col)
            distance += 1
    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric. To check if a White pawn (moving UP the board) could take on the square,
    look one row DOWN the board: the two squares diagonally 'behind' the target from the attacker's point of view.
    """
    behind = -pawn_direction(by_color)
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, [(behind, -1), (behind, 1)]
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_along_straights(square: Square, by_color: Color, board: Board) -> bool:
    """Rooks and queens (and an adjacent king)"""
    return raycasting_attack(
        square, by_color, {PieceType.ROOK, PieceType.QUEEN}, board, STRAIGHTS
    )


def is_attacked_along_diagonals(square: Square, by_color: Color, board: Board) -> bool:
    """Bishops and queens (and an adjacent king)"""
    return raycasting_attack(
        square, by_color, {PieceType.BISHOP, PieceType.QUEEN}, board, DIAGONALS
    )


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: list[IsAttackedFn] = [
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_along_straights,
    is_attacked_along_diagonals,
]


def attacks_square(board: Board, target: Square, by_color: Color) -> bool:
    """
    Can any piece of `by_color` reach `target` in one geometrically valid move?

    Whose turn it is does not matter, neither does whether that move would be legal for the attacker.
    """
    return any(rule(target, by_color, board) for rule in ATTACK_RULES)
