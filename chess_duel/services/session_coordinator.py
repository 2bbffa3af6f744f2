"""
Orchestration of the events coming in from the players to the games (and the events going back out).

The coordinator never touches a socket. Every handler returns the list of Outbound messages to deliver,
and the transport layer takes care of the actual sending.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from chess_duel.api.models import (
    GameStateResponse,
    JoinGameRequest,
    MoveMadeResponse,
    MoveRequest,
    OutboundEvent,
    PlayerAssignedResponse,
    RestartGameRequest,
)
from chess_duel.core.shared_types import Color
from chess_duel.services.session_registry import ConnectionId, Session, SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

NOT_YOUR_TURN = "Not your turn"
INVALID_MOVE = "Invalid move"
GAME_OVER = "Game is over"


@dataclass(frozen=True)
class Outbound:
    """One event to deliver to one or more connections"""

    event: OutboundEvent
    recipients: tuple[ConnectionId, ...]
    payload: BaseModel | str | None = None


class SessionCoordinator:
    """Routes the events of all players to the right session and decides who hears about the outcome."""

    def __init__(
        self, registry: SessionRegistry, default_session_id: str = DEFAULT_SESSION_ID
    ) -> None:
        self.registry = registry
        self.default_session_id = default_session_id

    # -- EVENT HANDLERS ---
    def join_game(self, connection: ConnectionId, request: JoinGameRequest) -> list[Outbound]:
        """
        A player wants to join a session
        ----

        1. find the session, or create it (with a fresh game) on first sight of its ID
        2. full? tell the requester, nothing changes
        3. assign a color: white for the first joiner, the remaining color for the second
        4. tell the requester its color, then tell everyone in the session about the game

        NOTE: a connection plays in one session at the time. Joining another session leaves the previous one.
        """
        session_id = request.session_id or self.default_session_id
        outbound: list[Outbound] = []

        current = self.registry.find_by_connection(connection)
        if current is not None and current.session_id == session_id:
            color = current.color_of(connection)
            if color is not None:
                # Already seated here: just repeat the assignment
                return [self._player_assigned(connection, current, color)]

        session = self.registry.get(session_id)
        if session is not None and session.is_full:
            logger.info("Connection %s refused: session %s is full", connection, session_id)
            return [Outbound(OutboundEvent.GAME_FULL, (connection,))]

        if current is not None:
            outbound.extend(self._leave(connection, current))

        if session is None:
            session = self.registry.create(session_id)

        color = session.assign(connection)
        logger.info("Connection %s joined session %s as %s", connection, session_id, color)

        outbound.append(self._player_assigned(connection, session, color))
        outbound.append(
            Outbound(OutboundEvent.GAME_UPDATE, session.connections(), self._game_state(session))
        )
        return outbound

    def make_move(self, connection: ConnectionId, request: MoveRequest) -> list[Outbound]:
        """
        A player attempts a move
        -----

        Unknown session or a connection that is not seated in it: silently dropped (a stale client).
        Not your turn, a finished game, or an illegal move: only the requester hears about it.
        A committed move is broadcast to the whole session.
        """
        session = self.registry.get(request.session_id)
        if session is None:
            logger.debug("Move for unknown session %s dropped", request.session_id)
            return []

        color = session.color_of(connection)
        if color is None:
            logger.debug("Move from non-member %s in session %s dropped", connection, session.session_id)
            return []

        game = session.game
        if game.is_over:
            return [self._invalid_move(connection, GAME_OVER)]

        if game.current_player != color:
            return [self._invalid_move(connection, NOT_YOUR_TURN)]

        from_square, to_square = request.squares()
        if not game.apply_move(from_square, to_square, color):
            logger.debug(
                "Rejected move %s -> %s by %s in session %s",
                request.from_square,
                request.to_square,
                color,
                session.session_id,
            )
            return [self._invalid_move(connection, INVALID_MOVE)]

        logger.debug(
            "Session %s: %s played %s, status %s",
            session.session_id,
            color,
            game.last_move.to_notation() if game.last_move else "?",
            game.status,
        )
        payload = MoveMadeResponse(
            from_square=request.from_square,
            to_square=request.to_square,
            game_state=self._game_state(session),
        )
        return [Outbound(OutboundEvent.MOVE_MADE, session.connections(), payload)]

    def restart_game(self, connection: ConnectionId, request: RestartGameRequest) -> list[Outbound]:
        """Reset the session's game and tell everyone. No-op for an unknown session."""
        session = self.registry.get(request.session_id)
        if session is None:
            return []

        session.game.reset()
        logger.info("Session %s restarted by %s", session.session_id, connection)
        return [
            Outbound(
                OutboundEvent.GAME_RESTARTED, session.connections(), self._game_state(session)
            )
        ]

    def disconnect(self, connection: ConnectionId) -> list[Outbound]:
        """
        Connection dropped
        ----

        Remove it from its session. An empty session is deleted (game and all).
        If someone is left, they get told their opponent left.

        NOTE: the game status is not touched here. Going back to 'waiting' is up to the remaining client.
        """
        session = self.registry.find_by_connection(connection)
        if session is None:
            return []
        return self._leave(connection, session)

    # -- Internal helpers --
    def _leave(self, connection: ConnectionId, session: Session) -> list[Outbound]:
        color = session.remove(connection)
        logger.info("Connection %s (%s) left session %s", connection, color, session.session_id)

        if session.is_empty:
            self.registry.delete(session.session_id)
            return []
        return [Outbound(OutboundEvent.PLAYER_LEFT, session.connections())]

    def _player_assigned(
        self, connection: ConnectionId, session: Session, color: Color
    ) -> Outbound:
        payload = PlayerAssignedResponse(color=color, game_state=self._game_state(session))
        return Outbound(OutboundEvent.PLAYER_ASSIGNED, (connection,), payload)

    def _invalid_move(self, connection: ConnectionId, reason: str) -> Outbound:
        return Outbound(OutboundEvent.INVALID_MOVE, (connection,), reason)

    def _game_state(self, session: Session) -> GameStateResponse:
        return GameStateResponse.from_state(session.game.snapshot())

    def session(self, session_id: str) -> Optional[Session]:
        """convenience method for the transport layer / tests"""
        return self.registry.get(session_id)
