"""Unit tests for src/services/match_session.py"""

import pytest

from src.chess.board import Board
from src.chess.moves import Move
from src.chess.square import Square
from src.core.shared_types import Color, Phase
from src.services.events import (
    ClaimSeat,
    Connect,
    Delivery,
    Disconnect,
    GameStateSnapshot,
    ReleaseSeat,
    RequestRejected,
    SeatClaimed,
    SeatReleased,
    SeatUnavailable,
    SubmitMove,
)
from src.services.match_session import MatchSession

WHITE_PLAYER = "white-socket"
BLACK_PLAYER = "black-socket"
SPECTATOR = "spectator-socket"

FOOLS_MATE = [
    (WHITE_PLAYER, "6,5", "5,5"),
    (BLACK_PLAYER, "1,4", "3,4"),
    (WHITE_PLAYER, "6,6", "4,6"),
    (BLACK_PLAYER, "0,3", "4,7"),
]


def move(from_wire: str, to_wire: str) -> Move:
    return Move(Square.from_wire(from_wire), Square.from_wire(to_wire))


def broadcasts(deliveries: list[Delivery]) -> list[Delivery]:
    return [delivery for delivery in deliveries if delivery.is_broadcast]


@pytest.fixture
def session() -> MatchSession:
    """Fresh match with a spectator and both future players connected, nobody seated"""
    session = MatchSession("test-match")
    for participant in (WHITE_PLAYER, BLACK_PLAYER, SPECTATOR):
        session.connect(participant)
    return session


# --- CONNECT ---
def test_new_match_is_empty() -> None:
    session = MatchSession("test-match")
    assert session.phase == Phase.EMPTY
    assert session.state.board == Board.starting()
    assert session.state.turn is None
    assert session.is_idle()


def test_connect_replies_with_snapshot_to_newcomer_only() -> None:
    session = MatchSession("test-match")
    deliveries = session.connect(SPECTATOR)

    assert deliveries == [Delivery.reply(SPECTATOR, GameStateSnapshot(session.state))]
    assert SPECTATOR in session.observers
    assert not session.is_idle()


# --- CLAIM SEAT ---
def test_claim_free_seat(session: MatchSession) -> None:
    deliveries = session.claim_seat(WHITE_PLAYER, Color.WHITE)

    assert deliveries == [
        Delivery.broadcast(GameStateSnapshot(session.state)),
        Delivery.reply(WHITE_PLAYER, SeatClaimed(Color.WHITE)),
    ]
    assert session.state.seats.white == WHITE_PLAYER
    assert session.phase == Phase.ONE_SEATED
    assert session.state.turn is None


def test_claim_taken_seat(session: MatchSession) -> None:
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    before = session.state

    deliveries = session.claim_seat(BLACK_PLAYER, Color.WHITE)

    assert deliveries == [Delivery.reply(BLACK_PLAYER, SeatUnavailable(Color.WHITE))]
    assert session.state == before
    assert session.state.seats.white == WHITE_PLAYER


def test_cannot_hold_both_seats(session: MatchSession) -> None:
    session.claim_seat(WHITE_PLAYER, Color.WHITE)

    deliveries = session.claim_seat(WHITE_PLAYER, Color.BLACK)

    assert deliveries == [Delivery.reply(WHITE_PLAYER, SeatUnavailable(Color.BLACK))]
    assert session.state.seats.black is None


def test_second_seat_makes_match_ready(session: MatchSession) -> None:
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    session.claim_seat(BLACK_PLAYER, Color.BLACK)

    assert session.phase == Phase.READY
    assert session.state.turn == Color.WHITE
    assert session.state.board == Board.starting()


def test_either_color_can_be_claimed_first(session: MatchSession) -> None:
    session.claim_seat(BLACK_PLAYER, Color.BLACK)
    assert session.phase == Phase.ONE_SEATED
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    assert session.state.turn == Color.WHITE


# --- SUBMIT MOVE ---
def test_black_cannot_open(seated_session: MatchSession) -> None:
    """Both seated, Black tries to move first: rejected, only Black hears about it"""
    before = seated_session.state
    deliveries = seated_session.submit_move(BLACK_PLAYER, move("1,4", "3,4"))

    assert len(deliveries) == 1
    assert deliveries[0].recipient == BLACK_PLAYER
    assert isinstance(deliveries[0].event, RequestRejected)
    assert deliveries[0].event.code == "out_of_turn"
    assert not broadcasts(deliveries)
    assert seated_session.state == before


def test_white_opens(seated_session: MatchSession) -> None:
    deliveries = seated_session.submit_move(WHITE_PLAYER, move("6,4", "4,4"))

    assert deliveries == [Delivery.broadcast(GameStateSnapshot(seated_session.state))]
    assert seated_session.phase == Phase.IN_PROGRESS
    assert seated_session.state.turn == Color.BLACK


def test_turns_alternate(seated_session: MatchSession) -> None:
    seated_session.submit_move(WHITE_PLAYER, move("6,4", "4,4"))

    # white again: not its turn anymore
    rejected = seated_session.submit_move(WHITE_PLAYER, move("6,3", "4,3"))
    assert rejected[0].event.code == "out_of_turn"

    seated_session.submit_move(BLACK_PLAYER, move("1,4", "3,4"))
    assert seated_session.state.turn == Color.WHITE


def test_moving_opponents_piece_is_out_of_turn(seated_session: MatchSession) -> None:
    deliveries = seated_session.submit_move(WHITE_PLAYER, move("1,4", "3,4"))
    assert deliveries[0].event.code == "out_of_turn"


def test_illegal_move_is_rejected(seated_session: MatchSession) -> None:
    before = seated_session.state
    deliveries = seated_session.submit_move(WHITE_PLAYER, move("7,0", "4,0"))

    assert deliveries == [
        Delivery.reply(WHITE_PLAYER, deliveries[0].event),
    ]
    assert deliveries[0].event.code == "illegal_destination"
    assert seated_session.state == before


def test_spectator_cannot_move(session: MatchSession) -> None:
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    session.claim_seat(BLACK_PLAYER, Color.BLACK)

    deliveries = session.submit_move(SPECTATOR, move("6,4", "4,4"))
    assert deliveries[0].recipient == SPECTATOR
    assert deliveries[0].event.code == "out_of_turn"


def test_no_moves_with_one_seat(session: MatchSession) -> None:
    session.claim_seat(WHITE_PLAYER, Color.WHITE)
    deliveries = session.submit_move(WHITE_PLAYER, move("6,4", "4,4"))
    assert deliveries[0].event.code == "out_of_turn"
    assert session.state.board == Board.starting()


# --- CHECKMATE ---
def play_fools_mate(session: MatchSession) -> None:
    for participant, from_wire, to_wire in FOOLS_MATE:
        session.submit_move(participant, move(from_wire, to_wire))


def test_checkmate_concludes_match(seated_session: MatchSession) -> None:
    play_fools_mate(seated_session)

    assert seated_session.state.concluded
    assert seated_session.phase == Phase.CONCLUDED
    assert seated_session.state.winner == Color.BLACK


def test_no_moves_after_checkmate(seated_session: MatchSession) -> None:
    play_fools_mate(seated_session)
    before = seated_session.state

    deliveries = seated_session.submit_move(WHITE_PLAYER, move("6,0", "5,0"))

    assert deliveries[0].event.code == "out_of_turn"
    assert seated_session.state == before


def test_concluded_survives_seat_release(seated_session: MatchSession) -> None:
    """Releasing a seat clears the turn like in any other match, the result stays"""
    play_fools_mate(seated_session)
    seated_session.release_seat(WHITE_PLAYER, Color.WHITE)

    assert seated_session.state.turn is None
    assert seated_session.phase == Phase.CONCLUDED
    assert seated_session.state.winner == Color.BLACK


def test_reseating_does_not_reopen_concluded_match(seated_session: MatchSession) -> None:
    play_fools_mate(seated_session)
    seated_session.on_disconnect(WHITE_PLAYER)
    seated_session.connect(SPECTATOR)
    seated_session.claim_seat(SPECTATOR, Color.WHITE)

    assert seated_session.state.seats.is_full()
    assert seated_session.state.turn is None
    assert seated_session.phase == Phase.CONCLUDED
    rejected = seated_session.submit_move(SPECTATOR, move("6,0", "5,0"))
    assert rejected[0].event.code == "out_of_turn"


# --- RELEASE SEAT ---
def test_release_held_seat(seated_session: MatchSession) -> None:
    seated_session.submit_move(WHITE_PLAYER, move("6,4", "4,4"))
    board_before = seated_session.state.board

    deliveries = seated_session.release_seat(BLACK_PLAYER, Color.BLACK)

    assert deliveries == [
        Delivery.broadcast(GameStateSnapshot(seated_session.state)),
        Delivery.reply(BLACK_PLAYER, SeatReleased()),
    ]
    assert seated_session.state.seats.black is None
    assert seated_session.state.turn is None
    assert seated_session.phase == Phase.ONE_SEATED
    # the board is left as it is
    assert seated_session.state.board == board_before


def test_release_seat_not_held(seated_session: MatchSession) -> None:
    before = seated_session.state
    deliveries = seated_session.release_seat(BLACK_PLAYER, Color.WHITE)

    assert len(deliveries) == 1
    assert deliveries[0].recipient == BLACK_PLAYER
    assert deliveries[0].event.code == "seat_not_held"
    assert seated_session.state == before


def test_reseating_hands_turn_to_white(seated_session: MatchSession) -> None:
    seated_session.submit_move(WHITE_PLAYER, move("6,4", "4,4"))
    seated_session.release_seat(BLACK_PLAYER, Color.BLACK)
    seated_session.connect(SPECTATOR)
    seated_session.claim_seat(SPECTATOR, Color.BLACK)

    assert seated_session.state.seats.black == SPECTATOR
    assert seated_session.state.turn == Color.WHITE
    assert seated_session.phase == Phase.READY


# --- DISCONNECT ---
def test_disconnect_releases_seat(seated_session: MatchSession) -> None:
    deliveries = seated_session.on_disconnect(WHITE_PLAYER)

    assert deliveries == [Delivery.broadcast(GameStateSnapshot(seated_session.state))]
    assert seated_session.state.seats.white is None
    assert seated_session.phase == Phase.ONE_SEATED
    assert WHITE_PLAYER not in seated_session.observers


def test_disconnect_is_idempotent(seated_session: MatchSession) -> None:
    seated_session.on_disconnect(WHITE_PLAYER)
    state_after_first = seated_session.state

    assert seated_session.on_disconnect(WHITE_PLAYER) == []
    assert seated_session.state == state_after_first


def test_disconnect_without_seat(session: MatchSession) -> None:
    assert session.on_disconnect(SPECTATOR) == []
    assert SPECTATOR not in session.observers


def test_everyone_gone_leaves_empty_idle_match(seated_session: MatchSession) -> None:
    seated_session.on_disconnect(WHITE_PLAYER)
    seated_session.on_disconnect(BLACK_PLAYER)

    assert seated_session.phase == Phase.EMPTY
    assert seated_session.is_idle()


# --- DISPATCH ---
@pytest.mark.parametrize(
    "event, expected_type",
    [
        (Connect(), GameStateSnapshot),
        (ClaimSeat(Color.WHITE), SeatClaimed),
        (ReleaseSeat(Color.WHITE), RequestRejected),
        (SubmitMove(move("6,4", "4,4")), RequestRejected),
    ],
)
def test_handle_dispatches_events(event, expected_type: type) -> None:
    session = MatchSession("test-match")
    deliveries = session.handle(SPECTATOR, event)
    replies = [delivery.event for delivery in deliveries if delivery.recipient == SPECTATOR]
    assert isinstance(replies[-1], expected_type)


def test_handle_disconnect(seated_session: MatchSession) -> None:
    seated_session.handle(BLACK_PLAYER, Disconnect())
    assert seated_session.state.seats.black is None
