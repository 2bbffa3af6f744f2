"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Iterator

import pytest

from chess_duel.chess.board import Board
from chess_duel.chess.game import Game
from chess_duel.core.shared_types import Color, Status
from chess_duel.services.session_coordinator import SessionCoordinator
from chess_duel.services.session_registry import InMemorySessionRegistry

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_FEN = "/".join(["8"] * 8)


@pytest.fixture
def game_from_fen() -> Callable[..., Game]:
    """Call the inner function with the piece placement and (optionally) the color to move"""

    def _create_game(
        position: str,
        to_move: Color = Color.WHITE,
        status: Status = Status.IN_PROGRESS,
    ) -> Game:
        return Game(board=Board.from_fen(position), current_player=to_move, status=status)

    return _create_game


@pytest.fixture
def registry() -> Iterator[InMemorySessionRegistry]:
    """Ensures to clear the registry between tests"""
    repo = InMemorySessionRegistry()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def coordinator(registry: InMemorySessionRegistry) -> SessionCoordinator:
    return SessionCoordinator(registry)
