"""
FastAPI application: the transport around the match sessions.

Endpoints:
    - GET /health: liveness + number of live matches
    - GET /matches/{match_id}: current snapshot of a match
    - WS /matches/{match_id}/ws: play / watch a match. Every connection is one participant.

Events of a single match are handled one at a time (per-match lock), deliveries are sent in order
while the lock is held.
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from src.api.models import GameStateModel, parse_inbound, serialize
from src.chess.game_state import ParticipantId
from src.core.config import Settings
from src.core.exceptions import InvalidRequestError, MatchNotFoundError
from src.services.events import (
    Connect,
    Delivery,
    Disconnect,
    InboundEvent,
    RequestRejected,
)
from src.services.registry import MatchRegistry

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Open WebSockets per match, so deliveries can be routed to one participant or to all of them."""

    def __init__(self) -> None:
        self._sockets: dict[str, dict[ParticipantId, WebSocket]] = {}

    def add(self, match_id: str, participant: ParticipantId, websocket: WebSocket) -> None:
        self._sockets.setdefault(match_id, {})[participant] = websocket

    def remove(self, match_id: str, participant: ParticipantId) -> None:
        sockets = self._sockets.get(match_id, {})
        sockets.pop(participant, None)
        if not sockets:
            self._sockets.pop(match_id, None)

    async def deliver(self, match_id: str, deliveries: list[Delivery]) -> None:
        sockets = self._sockets.get(match_id, {})
        for delivery in deliveries:
            payload = serialize(delivery.event)
            recipients = (
                list(sockets.items())
                if delivery.is_broadcast
                else [(delivery.recipient, sockets.get(delivery.recipient))]
            )
            for participant, websocket in recipients:
                if websocket is None:
                    continue
                try:
                    await websocket.send_json(payload)
                except (WebSocketDisconnect, RuntimeError):
                    # its own handler takes care of the disconnect
                    logger.warning(
                        "match %s: could not deliver to %s", match_id, participant
                    )


async def receive_frame(websocket: WebSocket) -> str | bytes:
    """Payload of the next text or binary frame. Raises WebSocketDisconnect once the client is gone."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    if message.get("text") is not None:
        return message["text"]
    return message.get("bytes") or b""


def create_app(
    settings: Optional[Settings] = None, registry: Optional[MatchRegistry] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    registry = registry if registry is not None else MatchRegistry()
    connections = ConnectionManager()

    app = FastAPI(title="Chess match server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.state.registry = registry

    async def dispatch(match_id: str, participant: ParticipantId, event: InboundEvent) -> None:
        async with registry.exclusive(match_id):
            session = registry.get_or_create(match_id)
            deliveries = session.handle(participant, event)
            await connections.deliver(match_id, deliveries)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "matches": len(registry)}

    @app.get("/matches/{match_id}")
    async def get_match(match_id: str) -> dict:
        try:
            session = registry.get(match_id)
        except MatchNotFoundError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error
        return GameStateModel.from_state(session.state).model_dump(
            mode="json", by_alias=True
        )

    @app.websocket("/matches/{match_id}/ws")
    async def match_socket(websocket: WebSocket, match_id: str) -> None:
        await websocket.accept()
        participant = uuid4().hex
        connections.add(match_id, participant, websocket)
        await dispatch(match_id, participant, Connect())
        try:
            while True:
                raw = await receive_frame(websocket)
                try:
                    event = parse_inbound(raw)
                except InvalidRequestError as error:
                    logger.warning("match %s: %s sent %s", match_id, participant, error)
                    await websocket.send_json(
                        serialize(RequestRejected(error.code, str(error)))
                    )
                    continue
                await dispatch(match_id, participant, event)
        except WebSocketDisconnect:
            logger.info("match %s: %s closed the connection", match_id, participant)
        finally:
            connections.remove(match_id, participant)
            async with registry.exclusive(match_id):
                session = registry.get_or_create(match_id)
                await connections.deliver(
                    match_id, session.handle(participant, Disconnect())
                )
                registry.discard_if_idle(match_id)

    return app
