"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from chess_duel.core.exceptions import InvalidSquareError

# Chess board is always 8x8. (rows, columns)
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    """
    Zero-based (row, col) coordinate.

    Row 0 is black's home rank, row 7 is white's home rank. Column 0 is the a-file.
    """

    row: int
    col: int

    @classmethod
    def from_pair(cls, pair: tuple[int, int] | list[int]) -> Square:
        """Wire format: coordinates travel as [row, col] pairs"""
        if len(pair) != 2 or not all(
            isinstance(value, int) and not isinstance(value, bool) for value in pair
        ):
            raise InvalidSquareError(f"Cannot interpret {pair!r} as a (row, col) pair.")
        row, col = pair
        return cls(row, col)

    def to_pair(self) -> tuple[int, int]:
        return (self.row, self.col)

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' - 'h1' get converted to (0,0) - (7,7)"""
        col = ord(sq[0]) - ord("a")
        row = BOARD_DIMENSIONS[0] - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{BOARD_DIMENSIONS[0] - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )
