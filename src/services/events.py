"""
Events flowing in and out of a match session.

Inbound events form a closed set: `MatchSession.handle()` matches on them exhaustively.
Outbound events are wrapped in a Delivery telling the transport who should receive them.
"""

from dataclasses import dataclass
from typing import Optional, Self

from src.chess.game_state import GameState, ParticipantId
from src.chess.moves import Move
from src.core.shared_types import Color


# --- INBOUND ---
@dataclass(frozen=True)
class Connect:
    """A new observer joined the match"""


@dataclass(frozen=True)
class ClaimSeat:
    color: Color


@dataclass(frozen=True)
class ReleaseSeat:
    color: Color


@dataclass(frozen=True)
class SubmitMove:
    move: Move


@dataclass(frozen=True)
class Disconnect:
    pass


InboundEvent = Connect | ClaimSeat | ReleaseSeat | SubmitMove | Disconnect


# --- OUTBOUND ---
@dataclass(frozen=True)
class GameStateSnapshot:
    """Fully committed state of the match, sent to everyone"""

    state: GameState


@dataclass(frozen=True)
class SeatClaimed:
    color: Color


@dataclass(frozen=True)
class SeatUnavailable:
    color: Color


@dataclass(frozen=True)
class SeatReleased:
    pass


@dataclass(frozen=True)
class RequestRejected:
    """Why a request was turned down (uses the `code` of the exception behind it)"""

    code: str
    message: str


OutboundEvent = GameStateSnapshot | SeatClaimed | SeatUnavailable | SeatReleased | RequestRejected


@dataclass(frozen=True)
class Delivery:
    """An outbound event plus its audience. No recipient means: broadcast to all observers of the match."""

    event: OutboundEvent
    recipient: Optional[ParticipantId] = None

    @classmethod
    def broadcast(cls, event: OutboundEvent) -> Self:
        return cls(event)

    @classmethod
    def reply(cls, participant: ParticipantId, event: OutboundEvent) -> Self:
        return cls(event, recipient=participant)

    @property
    def is_broadcast(self) -> bool:
        return self.recipient is None
