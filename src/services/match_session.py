"""
Match session manager.
----

Owns the one authoritative GameState of a match. Arbitrates seat claims, enforces turn order,
delegates move validation to the rules engine and decides who gets told what.

No I/O and no locking in here: every operation returns the deliveries the transport should make.
The transport is responsible for feeding events of one match in one at a time.
"""

import logging
from dataclasses import replace
from typing import Optional, assert_never

from src.chess import rules
from src.chess.game_state import GameState, ParticipantId
from src.chess.moves import Move
from src.core.exceptions import (
    GameError,
    OutOfTurnError,
    SeatNotHeldError,
)
from src.core.shared_types import Color, Phase
from src.services.events import (
    ClaimSeat,
    Connect,
    Delivery,
    Disconnect,
    GameStateSnapshot,
    InboundEvent,
    ReleaseSeat,
    RequestRejected,
    SeatClaimed,
    SeatReleased,
    SeatUnavailable,
    SubmitMove,
)

logger = logging.getLogger(__name__)


class MatchSession:
    """One live match: state + the set of connected observers."""

    def __init__(self, match_id: str, state: Optional[GameState] = None) -> None:
        self.match_id = match_id
        self._state = state if state is not None else GameState.new_match()
        self._observers: set[ParticipantId] = set()

    @property
    def state(self) -> GameState:
        """GameState is immutable, handing it out never exposes anything mutable."""
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def observers(self) -> frozenset[ParticipantId]:
        return frozenset(self._observers)

    def is_idle(self) -> bool:
        return not self._observers

    # -- entrypoint for the transport ---
    def handle(self, participant: ParticipantId, event: InboundEvent) -> list[Delivery]:
        match event:
            case Connect():
                return self.connect(participant)
            case ClaimSeat(color=color):
                return self.claim_seat(participant, color)
            case ReleaseSeat(color=color):
                return self.release_seat(participant, color)
            case SubmitMove(move=move):
                return self.submit_move(participant, move)
            case Disconnect():
                return self.on_disconnect(participant)
            case _:
                assert_never(event)

    # -- operations ---
    def connect(self, participant: ParticipantId) -> list[Delivery]:
        """Newcomers get to see the current state right away"""
        self._observers.add(participant)
        logger.info("match %s: %s connected", self.match_id, participant)
        return [Delivery.reply(participant, self._snapshot())]

    def claim_seat(self, participant: ParticipantId, color: Color) -> list[Delivery]:
        """
        First come, first served.
        ----

        Fails (requester only, nothing broadcast) if the seat is taken or the requester already sits at the other color.
        Filling the second seat hands the turn to White.
        """
        seats = self._state.seats
        if seats.holder(color) is not None or seats.color_of(participant) is not None:
            logger.warning(
                "match %s: %s cannot claim %s, seat unavailable",
                self.match_id,
                participant,
                color,
            )
            return [Delivery.reply(participant, SeatUnavailable(color))]

        seats = seats.with_holder(color, participant)
        new_state = replace(self._state, seats=seats)
        if seats.is_full() and self._state.turn is None and not self._state.concluded:
            new_state = replace(new_state, turn=Color.WHITE, moves_since_seated=0)

        self._commit(new_state)
        logger.info("match %s: %s claimed %s", self.match_id, participant, color)
        return [
            Delivery.broadcast(self._snapshot()),
            Delivery.reply(participant, SeatClaimed(color)),
        ]

    def release_seat(self, participant: ParticipantId, color: Color) -> list[Delivery]:
        """
        Give up a seat.
        ----

        Losing a seat ends the turn progression (no pause/resume). The board is left exactly as it is.
        """
        if self._state.seats.holder(color) != participant:
            return self._reject(
                participant, SeatNotHeldError(f"You do not hold the {color} seat.")
            )

        self._vacate(color)
        logger.info("match %s: %s released %s", self.match_id, participant, color)
        return [
            Delivery.broadcast(self._snapshot()),
            Delivery.reply(participant, SeatReleased()),
        ]

    def submit_move(self, participant: ParticipantId, move: Move) -> list[Delivery]:
        """
        Attempt a move on behalf of the participant.
        ----

        1. resolve the participant's color from the seats, it has to be that color's turn
        2. let the rules engine validate and apply it
        3. commit + look for checkmate + broadcast

        Rejections only go back to the requester, and change nothing.
        """
        color = self._state.seats.color_of(participant)
        if color is None or color != self._state.turn:
            return self._reject(
                participant, OutOfTurnError("It is not your turn to move.")
            )

        try:
            new_state = rules.validate_and_apply(self._state, move)
        except GameError as error:
            return self._reject(participant, error)

        if rules.is_checkmate(new_state):
            new_state = replace(new_state, winner=color)
            logger.info("match %s: checkmate, %s wins", self.match_id, color)

        self._commit(new_state)
        logger.info(
            "match %s: %s moved %s -> %s",
            self.match_id,
            color,
            move.from_square.to_wire(),
            move.to_square.to_wire(),
        )
        return [Delivery.broadcast(self._snapshot())]

    def on_disconnect(self, participant: ParticipantId) -> list[Delivery]:
        """Implicit release of whatever seat the participant held. Safe to call twice."""
        self._observers.discard(participant)
        color = self._state.seats.color_of(participant)
        if color is None:
            return []

        self._vacate(color)
        logger.info(
            "match %s: %s disconnected, %s seat is free", self.match_id, participant, color
        )
        return [Delivery.broadcast(self._snapshot())]

    # -- internal helpers --
    def _vacate(self, color: Color) -> None:
        seats = self._state.seats.with_holder(color, None)
        new_state = replace(self._state, seats=seats)
        if not seats.is_full():
            new_state = replace(new_state, turn=None)
        self._commit(new_state)

    def _commit(self, new_state: GameState) -> None:
        self._state = new_state

    def _snapshot(self) -> GameStateSnapshot:
        return GameStateSnapshot(self._state)

    def _reject(self, participant: ParticipantId, error: GameError) -> list[Delivery]:
        logger.warning(
            "match %s: rejected request from %s (%s): %s",
            self.match_id,
            participant,
            error.code,
            error,
        )
        return [Delivery.reply(participant, RequestRejected(error.code, str(error)))]
