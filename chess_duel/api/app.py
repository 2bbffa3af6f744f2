"""
FastAPI application: the websocket transport in front of the SessionCoordinator.

Every frame is JSON: {"event": "<name>", "data": <payload>}.
The coordinator runs synchronously inside the event loop, so events are handled one at the time, in arrival order.
"""

import asyncio
import json
import logging
from typing import Optional
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from chess_duel.api.models import (
    Envelope,
    JoinGameRequest,
    MoveRequest,
    RestartGameRequest,
    parse_inbound,
)
from chess_duel.core.config import Settings, get_settings
from chess_duel.core.exceptions import InvalidRequestError
from chess_duel.core.logging_config import configure_logging
from chess_duel.services.session_coordinator import Outbound, SessionCoordinator
from chess_duel.services.session_registry import ConnectionId, InMemorySessionRegistry

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Keeps track of the live websockets and delivers the coordinator's Outbound messages."""

    def __init__(self) -> None:
        self.active: dict[ConnectionId, WebSocket] = {}

    def connect(self, websocket: WebSocket) -> ConnectionId:
        connection = uuid4().hex
        self.active[connection] = websocket
        return connection

    def disconnect(self, connection: ConnectionId) -> None:
        self.active.pop(connection, None)

    async def deliver(self, messages: list[Outbound]) -> None:
        for message in messages:
            frame = json.dumps({"event": message.event, "data": _encode(message.payload)})
            sockets = [
                self.active[connection]
                for connection in message.recipients
                if connection in self.active
            ]
            # One dead socket should not keep the others from hearing about the game
            results = await asyncio.gather(
                *[ws.send_text(frame) for ws in sockets], return_exceptions=True
            )
            for result in results:
                if isinstance(result, Exception):
                    logger.warning("Failed to deliver %s: %s", message.event, result)


def _encode(payload: BaseModel | str | None) -> object:
    if isinstance(payload, BaseModel):
        return payload.model_dump(by_alias=True, mode="json")
    return payload


def _dispatch(
    coordinator: SessionCoordinator, connection: ConnectionId, raw: str
) -> list[Outbound]:
    """Parse one frame and hand it to the right handler. Malformed frames are logged and dropped."""
    try:
        request = parse_inbound(Envelope.model_validate(json.loads(raw)))
    except (json.JSONDecodeError, ValidationError, InvalidRequestError) as exc:
        logger.warning("Dropped malformed frame from %s: %s", connection, exc)
        return []

    if isinstance(request, JoinGameRequest):
        return coordinator.join_game(connection, request)
    if isinstance(request, MoveRequest):
        return coordinator.make_move(connection, request)
    if isinstance(request, RestartGameRequest):
        return coordinator.restart_game(connection, request)
    return []


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an app with its own (empty) session registry."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Chess Duel", description="Real-time two player chess sessions")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = InMemorySessionRegistry()
    coordinator = SessionCoordinator(registry, settings.default_session_id)
    manager = ConnectionManager()
    app.state.coordinator = coordinator
    app.state.connections = manager

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "sessions": len(registry.session_ids())}

    @app.websocket("/ws")
    async def ws_game(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = manager.connect(websocket)
        logger.info("Player connected: %s", connection)

        try:
            while True:
                raw = await websocket.receive_text()
                await manager.deliver(_dispatch(coordinator, connection, raw))
        except WebSocketDisconnect:
            logger.info("Player disconnected: %s", connection)
        finally:
            manager.disconnect(connection)
            # Delivered even when the handler itself is being cancelled
            await asyncio.shield(manager.deliver(coordinator.disconnect(connection)))

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Serve the app on the configured host and port"""
    settings = settings or get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
