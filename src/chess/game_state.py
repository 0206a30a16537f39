"""
Domain level data model of a single match: everything the session manager owns.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import CastlingRights
from src.chess.square import Square
from src.core.shared_types import Color, Phase

# Opaque, session scoped handle of a connected participant
ParticipantId = str


@dataclass(frozen=True)
class LastMove:
    from_square: Square
    to_square: Square


@dataclass(frozen=True)
class Seats:
    """Who plays which color. One participant per color (one color per participant is up to the session manager)."""

    white: Optional[ParticipantId] = None
    black: Optional[ParticipantId] = None

    def holder(self, color: Color) -> Optional[ParticipantId]:
        return self.white if color == Color.WHITE else self.black

    def color_of(self, participant: ParticipantId) -> Optional[Color]:
        if self.white == participant:
            return Color.WHITE
        if self.black == participant:
            return Color.BLACK
        return None

    def with_holder(self, color: Color, participant: Optional[ParticipantId]) -> Self:
        return replace(self, **{color.value: participant})

    def count(self) -> int:
        return sum(1 for holder in (self.white, self.black) if holder is not None)

    def is_full(self) -> bool:
        return self.count() == 2


@dataclass(frozen=True)
class GameState:
    """
    Snapshot of a match.
    ----

    `turn` stays None until both seats are filled. `moves_since_seated` counts committed moves since the
    current pair of players sat down (tells READY apart from IN_PROGRESS). `winner` is set on checkmate and
    ends the match for good, whoever sits down afterwards.
    """

    board: Board
    seats: Seats = field(default_factory=Seats)
    turn: Optional[Color] = None
    last_move: Optional[LastMove] = None
    castling_rights: CastlingRights = field(default_factory=CastlingRights)
    winner: Optional[Color] = None
    moves_since_seated: int = 0

    @classmethod
    def new_match(cls) -> Self:
        """Standard opening position, nobody seated"""
        return cls(board=Board.starting())

    @property
    def phase(self) -> Phase:
        if self.concluded:
            return Phase.CONCLUDED
        if self.turn is None:
            return Phase.ONE_SEATED if self.seats.count() == 1 else Phase.EMPTY
        if self.moves_since_seated == 0:
            return Phase.READY
        return Phase.IN_PROGRESS

    @property
    def concluded(self) -> bool:
        return self.winner is not None
