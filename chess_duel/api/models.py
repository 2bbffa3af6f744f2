"""Inbound and outbound event models. Field names are snake_case in Python and camelCase on the wire."""

from enum import StrEnum
from typing import Any, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chess_duel.chess.moves import Move
from chess_duel.chess.pieces import Piece
from chess_duel.chess.square import Square
from chess_duel.core.exceptions import InvalidRequestError
from chess_duel.core.models import GameState
from chess_duel.core.shared_types import Color, PieceType, Status

Coordinate = tuple[int, int]


class InboundEvent(StrEnum):
    JOIN_GAME = "join-game"
    MAKE_MOVE = "make-move"
    RESTART_GAME = "restart-game"


class OutboundEvent(StrEnum):
    PLAYER_ASSIGNED = "player-assigned"
    GAME_UPDATE = "game-update"
    MOVE_MADE = "move-made"
    INVALID_MOVE = "invalid-move"
    GAME_FULL = "game-full"
    PLAYER_LEFT = "player-left"
    GAME_RESTARTED = "game-restarted"


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _validate_coordinate(value: Any) -> Any:
    """Must be a [row, col] pair of integers. Whether it is ON the board is for the Game to decide."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InvalidRequestError(f"Cannot interpret {value!r} as a [row, col] pair.")
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        raise InvalidRequestError(f"Coordinates must be integers, got {value!r}.")
    return value


def _validate_session_id(value: Any) -> str:
    """Surrounding whitespace is ignored, so every event of a client resolves to the same session."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidRequestError(f"Session id must be a string, got {value!r}.")
    return value.strip()


# --- REQUEST MODELS ---
class JoinGameRequest(WireModel):
    session_id: str = Field(default="", alias="sessionId")

    @field_validator("session_id", mode="before")
    @classmethod
    def validate_session_id(cls, value: Any) -> str:
        return _validate_session_id(value)


class MoveRequest(WireModel):
    session_id: str = Field(alias="sessionId")
    from_square: Coordinate = Field(alias="from")
    to_square: Coordinate = Field(alias="to")

    @field_validator("session_id", mode="before")
    @classmethod
    def validate_session_id(cls, value: Any) -> str:
        return _validate_session_id(value)

    @field_validator("from_square", "to_square", mode="before")
    @classmethod
    def validate_square(cls, value: Any) -> Any:
        return _validate_coordinate(value)

    def squares(self) -> tuple[Square, Square]:
        return Square.from_pair(self.from_square), Square.from_pair(self.to_square)


class RestartGameRequest(WireModel):
    session_id: str = Field(alias="sessionId")

    @field_validator("session_id", mode="before")
    @classmethod
    def validate_session_id(cls, value: Any) -> str:
        return _validate_session_id(value)


# --- RESPONSE MODELS ---
class PieceResponse(WireModel):
    type: PieceType
    color: Color

    @classmethod
    def from_piece(cls, piece: Optional[Piece]) -> Optional[Self]:
        if piece is None:
            return None
        return cls(type=piece.type, color=piece.color)


class MoveResponse(WireModel):
    from_square: Coordinate = Field(alias="from")
    to_square: Coordinate = Field(alias="to")
    piece: PieceResponse
    captured_piece: Optional[PieceResponse] = Field(default=None, alias="capturedPiece")

    @classmethod
    def from_move(cls, move: Move) -> Self:
        return cls(
            from_square=move.from_square.to_pair(),
            to_square=move.to_square.to_pair(),
            piece=PieceResponse(type=move.piece.type, color=move.piece.color),
            captured_piece=PieceResponse.from_piece(move.captured_piece),
        )


class GameStateResponse(WireModel):
    board: list[list[Optional[PieceResponse]]]
    current_player: Color = Field(alias="currentPlayer")
    game_status: Status = Field(alias="gameStatus")
    last_move: Optional[MoveResponse] = Field(default=None, alias="lastMove")
    move_history: list[MoveResponse] = Field(alias="moveHistory")

    @classmethod
    def from_state(cls, state: GameState) -> Self:
        return cls(
            board=[[PieceResponse.from_piece(piece) for piece in row] for row in state.board],
            current_player=state.current_player,
            game_status=state.game_status,
            last_move=MoveResponse.from_move(state.last_move) if state.last_move else None,
            move_history=[MoveResponse.from_move(move) for move in state.move_history],
        )


class PlayerAssignedResponse(WireModel):
    color: Color
    game_state: GameStateResponse = Field(alias="gameState")


class MoveMadeResponse(WireModel):
    from_square: Coordinate = Field(alias="from")
    to_square: Coordinate = Field(alias="to")
    game_state: GameStateResponse = Field(alias="gameState")


# --- TRANSPORT ENVELOPE ---
class Envelope(BaseModel):
    """Every websocket frame: {"event": ..., "data": ...}"""

    event: str
    data: Any = None


def parse_inbound(envelope: Envelope) -> JoinGameRequest | MoveRequest | RestartGameRequest:
    """
    Turn an inbound frame into a request model.

    join-game and restart-game carry the bare session id as their data (an object with `sessionId` is accepted too).
    """
    try:
        event = InboundEvent(envelope.event)
    except ValueError:
        raise InvalidRequestError(f"Unknown event: {envelope.event!r}") from None

    data = envelope.data
    if event == InboundEvent.MAKE_MOVE:
        if not isinstance(data, dict):
            raise InvalidRequestError("make-move expects an object with sessionId, from and to.")
        return MoveRequest.model_validate(data)

    if not isinstance(data, dict):
        data = {"sessionId": data}
    if event == InboundEvent.JOIN_GAME:
        return JoinGameRequest.model_validate(data)
    return RestartGameRequest.model_validate(data)
