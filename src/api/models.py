"""Wire models: inbound messages and outbound events as JSON travels over the WebSocket"""

from typing import Annotated, Literal, Optional, Self, Union, assert_never

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from src.chess.castling import CastlingRights
from src.chess.game_state import GameState, ParticipantId
from src.chess.moves import CastlingIntent, Move
from src.chess.square import Square
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, Phase, PieceType
from src.services.events import (
    ClaimSeat,
    GameStateSnapshot,
    InboundEvent,
    OutboundEvent,
    ReleaseSeat,
    RequestRejected,
    SeatClaimed,
    SeatReleased,
    SeatUnavailable,
    SubmitMove,
)


def _validate_wire_square(value: str) -> str:
    """Squares travel as 'row,col'. Raises InvalidRequestError if it cannot be read as one."""
    Square.from_wire(value)
    return value


# --- INBOUND MESSAGES ---
class ClaimSeatMessage(BaseModel):
    type: Literal["claim_seat"]
    color: Color

    def to_event(self) -> ClaimSeat:
        return ClaimSeat(self.color)


class ReleaseSeatMessage(BaseModel):
    type: Literal["release_seat"]
    color: Color

    def to_event(self) -> ReleaseSeat:
        return ReleaseSeat(self.color)


class CastlingPayload(BaseModel):
    rook_from: str = Field(alias="rookFrom")
    rook_to: str = Field(alias="rookTo")

    @field_validator(*["rook_from", "rook_to"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_wire_square(value)


class SubmitMoveMessage(BaseModel):
    type: Literal["submit_move"]
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    en_passant: bool = Field(default=False, alias="isEnPassant")
    promotion: Optional[PieceType] = None
    castling: Optional[CastlingPayload] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_wire_square(value)

    def to_event(self) -> SubmitMove:
        castling = (
            CastlingIntent(
                Square.from_wire(self.castling.rook_from),
                Square.from_wire(self.castling.rook_to),
            )
            if self.castling
            else None
        )
        move = Move(
            from_square=Square.from_wire(self.from_square),
            to_square=Square.from_wire(self.to_square),
            promote_to=self.promotion,
            castling=castling,
            is_en_passant=self.en_passant,
        )
        return SubmitMove(move)


InboundMessage = Annotated[
    Union[ClaimSeatMessage, ReleaseSeatMessage, SubmitMoveMessage],
    Field(discriminator="type"),
]
INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: str | bytes) -> InboundEvent:
    """JSON text from a client -> inbound event. Anything unreadable is an InvalidRequestError."""
    try:
        message = INBOUND_ADAPTER.validate_json(raw)
    except ValidationError as error:
        raise InvalidRequestError(
            f"Cannot interpret message: {error.error_count()} validation error(s)."
        ) from error
    return message.to_event()


# --- OUTBOUND MESSAGES ---
class LastMoveModel(BaseModel):
    from_square: str = Field(serialization_alias="from")
    to_square: str = Field(serialization_alias="to")


class PieceMovementModel(BaseModel):
    """Castling rights, named the way the browser clients know them"""

    white_king_moved: bool = Field(serialization_alias="whiteKingMoved")
    black_king_moved: bool = Field(serialization_alias="blackKingMoved")
    white_rook_a_moved: bool = Field(serialization_alias="whiteRookAMoved")
    white_rook_h_moved: bool = Field(serialization_alias="whiteRookHMoved")
    black_rook_a_moved: bool = Field(serialization_alias="blackRookAMoved")
    black_rook_h_moved: bool = Field(serialization_alias="blackRookHMoved")

    @classmethod
    def from_rights(cls, rights: CastlingRights) -> Self:
        return cls(
            white_king_moved=rights.white_king_moved,
            black_king_moved=rights.black_king_moved,
            white_rook_a_moved=rights.white_rook_a_moved,
            white_rook_h_moved=rights.white_rook_h_moved,
            black_rook_a_moved=rights.black_rook_a_moved,
            black_rook_h_moved=rights.black_rook_h_moved,
        )


class GameStateModel(BaseModel):
    board: list[list[str]]
    white: Optional[ParticipantId]
    black: Optional[ParticipantId]
    current_turn: Optional[Color] = Field(serialization_alias="currentTurn")
    last_move: Optional[LastMoveModel] = Field(serialization_alias="lastMove")
    piece_movement: PieceMovementModel = Field(serialization_alias="pieceMovement")
    is_checkmate: bool = Field(serialization_alias="isCheckmate")
    winner: Optional[Color]
    phase: Phase

    @classmethod
    def from_state(cls, state: GameState) -> Self:
        last_move = (
            LastMoveModel(
                from_square=state.last_move.from_square.to_wire(),
                to_square=state.last_move.to_square.to_wire(),
            )
            if state.last_move
            else None
        )
        return cls(
            board=state.board.to_symbols(),
            white=state.seats.white,
            black=state.seats.black,
            current_turn=state.turn,
            last_move=last_move,
            piece_movement=PieceMovementModel.from_rights(state.castling_rights),
            is_checkmate=state.concluded,
            winner=state.winner,
            phase=state.phase,
        )


class GameStateMessage(BaseModel):
    type: Literal["game_state"] = "game_state"
    state: GameStateModel


class SeatClaimedMessage(BaseModel):
    type: Literal["seat_claimed"] = "seat_claimed"
    color: Color


class SeatUnavailableMessage(BaseModel):
    type: Literal["seat_unavailable"] = "seat_unavailable"
    color: Color


class SeatReleasedMessage(BaseModel):
    type: Literal["seat_released"] = "seat_released"


class RequestRejectedMessage(BaseModel):
    type: Literal["request_rejected"] = "request_rejected"
    code: str
    message: str


OutboundMessage = Union[
    GameStateMessage,
    SeatClaimedMessage,
    SeatUnavailableMessage,
    SeatReleasedMessage,
    RequestRejectedMessage,
]


def to_message(event: OutboundEvent) -> OutboundMessage:
    match event:
        case GameStateSnapshot(state=state):
            return GameStateMessage(state=GameStateModel.from_state(state))
        case SeatClaimed(color=color):
            return SeatClaimedMessage(color=color)
        case SeatUnavailable(color=color):
            return SeatUnavailableMessage(color=color)
        case SeatReleased():
            return SeatReleasedMessage()
        case RequestRejected(code=code, message=message):
            return RequestRejectedMessage(code=code, message=message)
        case _:
            assert_never(event)


def serialize(event: OutboundEvent) -> dict:
    """JSON-ready dict, with the camelCase keys clients expect"""
    return to_message(event).model_dump(mode="json", by_alias=True)
