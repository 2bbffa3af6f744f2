"""
Boundary layer data model(s).

The Game exposes its state to the Service layer through the snapshot defined here.
The Service (and from there the API layer) only ever reads this object; it never reaches into the Game's board.
"""

from dataclasses import dataclass
from typing import Optional

from chess_duel.chess.moves import Move
from chess_duel.chess.pieces import Piece
from chess_duel.core.shared_types import Color, Status

# Type aliases to make GameState easier to read
BoardRows = tuple[tuple[Optional[Piece], ...], ...]


@dataclass(frozen=True)
class GameState:
    """Read-only snapshot of a game. Rows are indexed [row][col], row 0 is black's home rank."""

    board: BoardRows
    current_player: Color
    game_status: Status
    last_move: Optional[Move]
    move_history: tuple[Move, ...]

    @property
    def ply_count(self) -> int:
        return len(self.move_history)
