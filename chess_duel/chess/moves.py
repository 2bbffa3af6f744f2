"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define, per piece type, whether a piece can reach a target square.

Whether the move leaves your own king in check is decided later by Game.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from chess_duel.chess.pieces import Piece
from chess_duel.chess.square import Square
from chess_duel.core.shared_types import Color, PieceType


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...


Vector = tuple[int, int]

# Pawns move towards row 0 when white, towards row 7 when black
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_STARTING_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}


@dataclass(frozen=True)
class Move:
    """A committed move. Only created once a move has actually been applied to the board."""

    from_square: Square
    to_square: Square
    piece: Piece
    captured_piece: Optional[Piece] = None

    def to_notation(self) -> str:
        """Coordinate notation, ex. 'e2e4'"""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}"


def _offset(from_square: Square, to_square: Square) -> Vector:
    return (to_square.row - from_square.row, to_square.col - from_square.col)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def squares_between(from_square: Square, to_square: Square) -> list[Square]:
    """
    The squares strictly in between two squares on a straight or diagonal line.

    NOTE: Only meaningful when the squares share a row, a column, or a diagonal. Callers check the shape first.
    """
    d_row, d_col = _offset(from_square, to_square)
    step_row, step_col = _sign(d_row), _sign(d_col)
    squares_found: list[Square] = []
    row, col = from_square.row + step_row, from_square.col + step_col
    while (row, col) != (to_square.row, to_square.col):
        squares_found.append(Square(row, col))
        row += step_row
        col += step_col
    return squares_found


def is_path_clear(from_square: Square, to_square: Square, board: Board) -> bool:
    """Sliding pieces cannot jump: every square in between must be empty."""
    return all(board.is_empty(square) for square in squares_between(from_square, to_square))


# --- MOVEMENT RULES ---
def can_reach_pawn(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """
    A pawn:
    - moves a single square forward onto an empty square
    - can move two squares forward from its starting row onto an empty square
    - takes diagonally, one square forward, and only when an opponent's piece stands there

    NOTE: For the double step only the destination is checked, not the square in between.
    """
    direction = PAWN_DIRECTION[piece.color]
    d_row, d_col = _offset(from_square, to_square)
    target = board.piece(to_square)

    if d_col == 0 and target is None:
        if d_row == direction:
            return True
        if from_square.row == PAWN_STARTING_ROW[piece.color] and d_row == 2 * direction:
            return True

    if abs(d_col) == 1 and d_row == direction and target is not None:
        return target.color != piece.color

    return False


def can_reach_knight(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """Knights jump (2, 1) or (1, 2). Never obstructed."""
    d_row, d_col = _offset(from_square, to_square)
    return sorted((abs(d_row), abs(d_col))) == [1, 2]


def can_reach_bishop(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    d_row, d_col = _offset(from_square, to_square)
    return abs(d_row) == abs(d_col) and is_path_clear(from_square, to_square, board)


def can_reach_rook(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """Rooks move either horizontally or vertically"""
    d_row, d_col = _offset(from_square, to_square)
    return (d_row == 0 or d_col == 0) and is_path_clear(from_square, to_square, board)


def can_reach_queen(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return can_reach_rook(piece, from_square, to_square, board) or can_reach_bishop(
        piece, from_square, to_square, board
    )


def can_reach_king(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """The king moves a single square at the time. No castling."""
    d_row, d_col = _offset(from_square, to_square)
    return abs(d_row) <= 1 and abs(d_col) <= 1


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CanReachFn = Callable[[Piece, Square, Square, Board], bool]
MOVEMENT_RULES: dict[PieceType, CanReachFn] = {
    PieceType.PAWN: can_reach_pawn,
    PieceType.KNIGHT: can_reach_knight,
    PieceType.BISHOP: can_reach_bishop,
    PieceType.ROOK: can_reach_rook,
    PieceType.QUEEN: can_reach_queen,
    PieceType.KING: can_reach_king,
}


def can_reach(piece: Piece, from_square: Square, to_square: Square, board: Board) -> bool:
    """Can the piece geometrically reach the target square on this board? Never mutates the board."""
    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(piece, from_square, to_square, board)
