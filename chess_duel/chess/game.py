"""
The Game class is the entrypoint into the domain layer for the service layer.
It is responsible for deciding whether a move is legal, applying it, and working out what the game status is afterwards.
The service layer only ever talks to the Game, and reads its state through `snapshot()`.

NOTE: Rule violations are never raised as exceptions. Every check answers with a boolean,
and the caller decides what to tell the players.
"""

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import Iterator, Optional, Self

from chess_duel.chess.board import Board
from chess_duel.chess.moves import Move, can_reach
from chess_duel.chess.square import Square
from chess_duel.core.models import GameState
from chess_duel.core.shared_types import TERMINAL_STATUSES, Color, PieceType, Status

logger = logging.getLogger(__name__)

# A flat cap on the number of recorded plies, standing in for the 50-move rule (50 moves per side).
MAX_PLIES_BEFORE_DRAW = 100

# Pieces that cannot deliver mate on their own (next to their king)
MINOR_PIECES: frozenset[PieceType] = frozenset({PieceType.BISHOP, PieceType.KNIGHT})

Candidate = tuple[Square, Square]


def is_in_check_on(board: Board, color: Color) -> bool:
    """
    Is the king of `color` attacked on this board?

    Attack detection only needs geometric reachability: any opposing piece that can reach the king's square.
    A board without a king of that color is never in check.
    """
    king_square = board.locate_king(color)
    if king_square is None:
        return False

    for square in board.locate_color(color.opponent):
        attacker = board.piece(square)
        if attacker is not None and can_reach(attacker, square, king_square, board):
            return True
    return False


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    current_player: Color = Color.WHITE
    status: Status = Status.WAITING
    last_move: Optional[Move] = None
    moves: list[Move] = field(default_factory=list)

    @classmethod
    def new_game(cls) -> Self:
        """Standard starting position, white to move, waiting for the first move."""
        return cls(board=Board.starting_position())

    @property
    def is_over(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def winner(self) -> Optional[Color]:
        """
        Only defined for checkmate.
        The player to move just got mated, so the opponent must be the winner.
        """
        if self.status != Status.CHECKMATE:
            return None
        return self.current_player.opponent

    def is_valid_move(self, from_square: Square, to_square: Square, mover: Color) -> bool:
        """
        Geometry and occupancy only
        ----

        1. the destination must be on the board
        2. there must be a piece of the mover's color on the starting square
        3. the destination may not hold a piece of the mover's own color
        4. the piece must be able to reach the destination (see moves.py)

        NOTE: does NOT check if your own king is left in check. `apply_move` takes care of that.
        """
        if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
            return False

        piece = self.board.piece(from_square)
        if piece is None or piece.color != mover:
            return False

        target = self.board.piece(to_square)
        if target is not None and target.color == mover:
            return False

        return can_reach(piece, from_square, to_square, self.board)

    def apply_move(self, from_square: Square, to_square: Square, mover: Color) -> bool:
        """
        Attempt to make a move
        -----

        1. re-validate the move
        2. play it on a hypothetical board: if that leaves your own king in check, the move is refused
        3. update the board
        4. record the move (history + last move)
        5. hand the turn to the opponent
        6. update game status

        Returns True if the move got committed.
        """
        if not self.is_valid_move(from_square, to_square, mover):
            return False

        if self._is_putting_yourself_in_check(from_square, to_square, mover):
            logger.debug(
                "Refused %s -> %s for %s: leaves own king in check",
                from_square.to_algebraic(),
                to_square.to_algebraic(),
                mover,
            )
            return False

        piece = self.board.piece(from_square)
        if piece is None:
            return False
        captured = self.board.move_piece(from_square, to_square)
        self._update_moves(Move(from_square, to_square, piece, captured))
        self.current_player = mover.opponent
        self._update_game_status()
        return True

    def is_in_check(self, color: Color) -> bool:
        return is_in_check_on(self.board, color)

    def legal_moves(self, color: Color) -> list[Candidate]:
        """Every (from, to) pair the player with the `color` pieces could legally play right now."""
        return list(self._iter_legal_moves(color))

    def reset(self) -> None:
        """Back to the starting position. The game waits for its first move again."""
        self.board = Board.starting_position()
        self.current_player = Color.WHITE
        self.status = Status.WAITING
        self.last_move = None
        self.moves = []

    def snapshot(self) -> GameState:
        """Read-only projection of the current state"""
        return GameState(
            board=self.board.rows(),
            current_player=self.current_player,
            game_status=self.status,
            last_move=self.last_move,
            move_history=tuple(self.moves),
        )

    # -- PRIVATE HELPERS ---
    def _update_moves(self, move: Move) -> None:
        self.moves.append(move)
        self.last_move = move

    def _is_putting_yourself_in_check(
        self, from_square: Square, to_square: Square, color: Color
    ) -> bool:
        """Play the candidate move on a copy of the board, then look for attacks on your own king"""
        return is_in_check_on(self.board.with_move(from_square, to_square), color)

    def _iter_legal_moves(self, color: Color) -> Iterator[Candidate]:
        """
        Brute force: every own piece to every square on the board.
        At most 16 x 64 candidates, each cheap to reject, so no need for anything smarter.
        """
        for from_square, to_square in product(
            self.board.locate_color(color), self.board.squares()
        ):
            if not self.is_valid_move(from_square, to_square, color):
                continue
            if self._is_putting_yourself_in_check(from_square, to_square, color):
                continue
            yield from_square, to_square

    def _has_legal_move(self, color: Color) -> bool:
        return next(self._iter_legal_moves(color), None) is not None

    def _update_game_status(self) -> None:
        """Performs checks to see if game has ended and changes status accordingly.

        NOTE the turn has already been handed over. The player checked here is the opponent of the player that just moved.
        """
        next_player = self.current_player
        if self.is_in_check(next_player):
            new_status = (
                Status.CHECK if self._has_legal_move(next_player) else Status.CHECKMATE
            )
        elif not self._has_legal_move(next_player):
            new_status = Status.STALEMATE
        elif self._is_draw():
            new_status = Status.DRAW
        else:
            new_status = Status.IN_PROGRESS
        self._change_status(new_status)

    def _change_status(self, new_status: Status) -> None:
        if new_status != self.status:
            logger.debug("Game status %s -> %s", self.status, new_status)
        self.status = new_status

    # --- CHECKS FOR ENDING THE GAME ---
    def _is_draw(self) -> bool:
        return (
            self._is_bare_kings()
            or self._is_lone_minor_piece_vs_king()
            or self._is_ply_limit_reached()
        )

    def _is_bare_kings(self) -> bool:
        """Exactly one piece left on each side"""
        return (
            len(self.board.pieces(Color.WHITE)) == 1
            and len(self.board.pieces(Color.BLACK)) == 1
        )

    def _is_lone_minor_piece_vs_king(self) -> bool:
        """One side has two pieces, one of them a bishop or a knight, the other side has a single piece"""
        for color in Color:
            own_pieces = self.board.pieces(color)
            opponent_pieces = self.board.pieces(color.opponent)
            if (
                len(own_pieces) == 2
                and any(piece.type in MINOR_PIECES for piece in own_pieces)
                and len(opponent_pieces) == 1
            ):
                return True
        return False

    def _is_ply_limit_reached(self) -> bool:
        """Not a real fifty-move rule: a flat cap on the total number of recorded plies"""
        return len(self.moves) >= MAX_PLIES_BEFORE_DRAW
