"""
Custom exceptions.

Every error rejects a single request and leaves the match untouched, none of them is fatal to a session.
The `code` is what the requester gets to see in a rejection message.
"""


class GameError(Exception):
    """Top-level exception for everything the chess / session layers raise on purpose."""

    code = "game_error"


class OutOfTurnError(GameError):
    """Requester's color does not match the active turn (or requester holds no seat)."""

    code = "out_of_turn"


class IllegalDestinationError(GameError):
    """Target not in the computed legal set, or promotion/en passant/castling flags inconsistent with the board."""

    code = "illegal_destination"


class SeatNotHeldError(GameError):
    code = "seat_not_held"


class InvalidRequestError(GameError):
    """Could not interpret an inbound message."""

    code = "invalid_request"


class MatchNotFoundError(GameError):
    code = "match_not_found"
