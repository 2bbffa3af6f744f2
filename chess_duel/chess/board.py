"""The Game board: an 8x8 grid of optional pieces. Pure data, the rules live in moves.py and game.py"""

from copy import deepcopy
from dataclasses import dataclass
from typing import Optional, Self

from chess_duel.chess.pieces import BACK_RANK, Piece
from chess_duel.chess.square import BOARD_DIMENSIONS, Square
from chess_duel.core.shared_types import Color, PieceType

Grid = list[list[Optional[Piece]]]


def _empty_grid() -> Grid:
    return [[None] * BOARD_DIMENSIONS[1] for _ in range(BOARD_DIMENSIONS[0])]


@dataclass
class Board:
    grid: Grid

    @classmethod
    def empty(cls) -> Self:
        return cls(_empty_grid())

    @classmethod
    def starting_position(cls) -> Self:
        """Black on rows 0 and 1 (top), white on rows 6 and 7 (bottom)"""
        grid = _empty_grid()
        for col, piece_type in enumerate(BACK_RANK):
            grid[0][col] = Piece(piece_type, Color.BLACK)
            grid[1][col] = Piece(PieceType.PAWN, Color.BLACK)
            grid[6][col] = Piece(PieceType.PAWN, Color.WHITE)
            grid[7][col] = Piece(piece_type, Color.WHITE)
        return cls(grid)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the piece placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on row 0 (the 8th rank), starting with the rook on a8
        * black pawns cover row 1
        * rows 2 through 5 have 8 consecutive empty squares
        * row 6 holds the white pawns (capital letters), row 7 the white pieces
        """
        grid = _empty_grid()
        for row, fen_one_rank in enumerate(fen_str.split("/")):
            col = 0
            for character in fen_one_rank:
                if character.isalpha():
                    grid[row][col] = Piece.from_fen(character)
                    col += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    col += int(character)
        return cls(grid)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(self._row_to_fen(row) for row in self.grid)

    def _row_to_fen(self, row: list[Optional[Piece]]) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for piece in row:
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire row is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Optional[Piece]:
        return self.grid[square.row][square.col]

    def is_empty(self, square: Square) -> bool:
        return self.piece(square) is None

    def place_piece(self, piece: Piece, square: Square) -> None:
        self.grid[square.row][square.col] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        removed = self.piece(square)
        self.grid[square.row][square.col] = None
        return removed

    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]:
        """Update the position on the board. Whatever stood on the destination is overwritten and returned."""
        piece_that_moved = self.remove_piece(from_square)
        captured = self.piece(to_square)
        self.grid[to_square.row][to_square.col] = piece_that_moved
        return captured

    def with_move(self, from_square: Square, to_square: Square) -> Self:
        """Hypothetical next board: the move is played on a copy, this board is left untouched."""
        board = deepcopy(self)
        board.move_piece(from_square, to_square)
        return board

    def squares(self) -> list[Square]:
        return [
            Square(row, col)
            for row in range(BOARD_DIMENSIONS[0])
            for col in range(BOARD_DIMENSIONS[1])
        ]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square
            for square in self.squares()
            if (piece := self.piece(square)) is not None and piece.color == color
        ]

    def locate_king(self, color: Color) -> Optional[Square]:
        king = Piece(PieceType.KING, color)
        return next(
            (square for square in self.squares() if self.piece(square) == king), None
        )

    def pieces(self, color: Color) -> list[Piece]:
        """find all pieces of a given color"""
        return [
            piece for row in self.grid for piece in row if piece and piece.color == color
        ]

    def rows(self) -> tuple[tuple[Optional[Piece], ...], ...]:
        """Immutable view of the grid. Pieces are frozen, so handing these out is safe."""
        return tuple(tuple(row) for row in self.grid)
