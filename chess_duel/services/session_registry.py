"""Protocol registry for the sessions in play (can implement later for something shared between processes)"""

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Protocol

from chess_duel.chess.game import Game
from chess_duel.core.exceptions import SessionError
from chess_duel.core.shared_types import Color

logger = logging.getLogger(__name__)

# Opaque identifier handed out by the transport for every live connection
ConnectionId = str


@dataclass
class Session:
    """One game plus the (at most two) connections playing it."""

    CAPACITY: ClassVar[int] = 2

    session_id: str
    game: Game
    members: dict[ConnectionId, Color] = field(default_factory=dict)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.CAPACITY

    @property
    def is_empty(self) -> bool:
        return not self.members

    def connections(self) -> tuple[ConnectionId, ...]:
        return tuple(self.members)

    def color_of(self, connection: ConnectionId) -> Optional[Color]:
        return self.members.get(connection)

    def free_color(self) -> Optional[Color]:
        """First joiner gets white. Later joiners get whatever color is not taken."""
        taken = set(self.members.values())
        return next((color for color in (Color.WHITE, Color.BLACK) if color not in taken), None)

    def assign(self, connection: ConnectionId) -> Color:
        color = self.free_color()
        if color is None:
            raise SessionError(f"Session {self.session_id!r} is full.")
        self.members[connection] = color
        return color

    def remove(self, connection: ConnectionId) -> Optional[Color]:
        return self.members.pop(connection, None)


class SessionRegistry(Protocol):
    """Where the coordinator keeps its sessions"""

    def get(self, session_id: str) -> Session | None:
        """Get session by ID, if it exists."""
        ...

    def create(self, session_id: str) -> Session:
        """Start a new session with a fresh game."""
        ...

    def delete(self, session_id: str) -> Session | None:
        """Remove a session (and its game)."""
        ...

    def find_by_connection(self, connection: ConnectionId) -> Session | None:
        """The session the connection is a member of, if any."""
        ...

    def session_ids(self) -> list[str]:
        """IDs of all live sessions."""
        ...


class InMemorySessionRegistry:
    """Sessions live in a plain dictionary. Lost when the process stops."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def create(self, session_id: str) -> Session:
        if session_id in self._sessions:
            raise SessionError(f"Session {session_id!r} already exists.")
        session = Session(session_id=session_id, game=Game.new_game())
        self._sessions[session_id] = session
        logger.info("Created session %s", session_id)
        return session

    def delete(self, session_id: str) -> Session | None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info("Deleted session %s", session_id)
        return session

    def find_by_connection(self, connection: ConnectionId) -> Session | None:
        # A connection belongs to at most one session: stop at the first match
        return next(
            (session for session in self._sessions.values() if connection in session.members),
            None,
        )

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
