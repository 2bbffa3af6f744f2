"""Unit tests for /chess_duel/chess/game.py"""

from itertools import product
from typing import Callable

import pytest

from chess_duel.chess.board import Board
from chess_duel.chess.game import MAX_PLIES_BEFORE_DRAW, Game, is_in_check_on
from chess_duel.chess.moves import Move
from chess_duel.chess.pieces import Piece
from chess_duel.chess.square import Square
from chess_duel.core.models import GameState
from chess_duel.core.shared_types import Color, PieceType, Status

GameFactory = Callable[..., Game]
Play = tuple[tuple[int, int], tuple[int, int]]

FOOLS_MATE: list[Play] = [
    ((6, 5), (5, 5)),  # f2f3
    ((1, 4), (3, 4)),  # e7e5
    ((6, 6), (4, 6)),  # g2g4
    ((0, 3), (4, 7)),  # d8h4#
]

SCHOLARS_MATE: list[Play] = [
    ((6, 4), (4, 4)),  # e2e4
    ((1, 4), (3, 4)),  # e7e5
    ((7, 5), (4, 2)),  # f1c4
    ((0, 1), (2, 2)),  # b8c6
    ((7, 3), (3, 7)),  # d1h5
    ((0, 6), (2, 5)),  # g8f6
    ((3, 7), (1, 5)),  # h5xf7#
]


def play(game: Game, plays: list[Play]) -> None:
    """Alternate colors, starting with whoever is to move. Every move must be accepted."""
    for from_pair, to_pair in plays:
        assert game.apply_move(Square(*from_pair), Square(*to_pair), game.current_player)


def sq(algebraic: str) -> Square:
    return Square.from_algebraic(algebraic)


# -- CREATION LOGIC --
def test_creating_new_game() -> None:
    """Standard starting position, white to move, waiting for the first move"""
    game = Game.new_game()
    assert game.board == Board.starting_position()
    assert game.current_player == Color.WHITE
    assert game.status == Status.WAITING
    assert game.last_move is None
    assert game.moves == []


def test_legal_moves_in_starting_position() -> None:
    """16 pawn moves and 4 knight moves"""
    game = Game.new_game()
    assert len(game.legal_moves(Color.WHITE)) == 20
    assert len(game.legal_moves(Color.BLACK)) == 20


# -- VALIDATING MOVES --
@pytest.mark.parametrize(
    "to_pair",
    [(-1, 0), (0, -1), (8, 0), (0, 8), (-1, -1), (8, 8), (-3, 4), (4, 12)],
)
def test_destination_outside_board_is_never_valid(to_pair: tuple[int, int]) -> None:
    game = Game.new_game()
    to_square = Square(*to_pair)
    for row, col in product(range(8), range(8)):
        for color in Color:
            assert not game.is_valid_move(Square(row, col), to_square, color)


def test_starting_square_outside_board_is_not_valid() -> None:
    game = Game.new_game()
    assert not game.is_valid_move(Square(8, 4), Square(6, 4), Color.WHITE)


def test_no_piece_on_starting_square() -> None:
    game = Game.new_game()
    assert not game.is_valid_move(sq("e4"), sq("e5"), Color.WHITE)


def test_cannot_move_opponents_piece() -> None:
    game = Game.new_game()
    assert not game.is_valid_move(sq("e7"), sq("e5"), Color.WHITE)
    assert game.is_valid_move(sq("e7"), sq("e5"), Color.BLACK)


def test_cannot_capture_own_piece() -> None:
    game = Game.new_game()
    # rook a1 onto pawn a2
    assert not game.is_valid_move(sq("a1"), sq("a2"), Color.WHITE)
    # knight g1 onto pawn e2
    assert not game.is_valid_move(sq("g1"), sq("e2"), Color.WHITE)


def test_rook_blocked_in_starting_position() -> None:
    game = Game.new_game()
    assert not game.is_valid_move(Square(7, 0), Square(7, 7), Color.WHITE)
    assert not game.is_valid_move(Square(7, 0), Square(4, 0), Color.WHITE)


@pytest.mark.parametrize("to_move", [Color.WHITE, Color.BLACK])
def test_pawn_double_step(to_move: Color) -> None:
    """Two squares only from the starting rank"""
    game = Game.new_game()
    start_row, direction = (6, -1) if to_move == Color.WHITE else (1, 1)
    assert game.is_valid_move(
        Square(start_row, 3), Square(start_row + 2 * direction, 3), to_move
    )

    assert game.apply_move(
        Square(start_row, 3), Square(start_row + direction, 3), to_move
    )
    assert not game.is_valid_move(
        Square(start_row + direction, 3), Square(start_row + 3 * direction, 3), to_move
    )


def test_is_valid_move_ignores_king_safety(game_from_fen: GameFactory) -> None:
    """The pinned bishop has a geometrically valid move, applying it is refused"""
    game = game_from_fen("k3r3/8/8/8/8/8/4B3/4K3")
    assert game.is_valid_move(sq("e2"), sq("d3"), Color.WHITE)
    assert not game.apply_move(sq("e2"), sq("d3"), Color.WHITE)


# -- APPLYING MOVES --
def test_apply_legal_move() -> None:
    game = Game.new_game()
    assert game.apply_move(sq("e2"), sq("e4"), Color.WHITE)

    pawn = Piece(PieceType.PAWN, Color.WHITE)
    assert game.board.piece(sq("e4")) == pawn
    assert game.board.piece(sq("e2")) is None
    assert game.current_player == Color.BLACK
    assert game.status == Status.IN_PROGRESS
    assert game.last_move == Move(sq("e2"), sq("e4"), pawn)
    assert game.moves == [game.last_move]


def test_apply_illegal_move_changes_nothing() -> None:
    game = Game.new_game()
    assert not game.apply_move(sq("e2"), sq("e5"), Color.WHITE)
    assert game.board == Board.starting_position()
    assert game.current_player == Color.WHITE
    assert game.status == Status.WAITING
    assert game.moves == []


def test_apply_move_records_capture(game_from_fen: GameFactory) -> None:
    game = game_from_fen("4k3/8/8/3p4/4P3/8/8/4K3")
    assert game.apply_move(sq("e4"), sq("d5"), Color.WHITE)
    assert game.last_move is not None
    assert game.last_move.captured_piece == Piece(PieceType.PAWN, Color.BLACK)
    assert game.board.piece(sq("d5")) == Piece(PieceType.PAWN, Color.WHITE)


def test_pinned_piece_cannot_move(game_from_fen: GameFactory) -> None:
    """Moving the bishop would expose the king to the rook on the e-file: the board stays as it was"""
    game = game_from_fen("k3r3/8/8/8/8/8/4B3/4K3")
    before = game.board.to_fen()

    assert not game.apply_move(sq("e2"), sq("d3"), Color.WHITE)
    assert game.board.to_fen() == before
    assert game.current_player == Color.WHITE
    assert game.moves == []


def test_pinned_piece_can_move_along_the_pin(game_from_fen: GameFactory) -> None:
    """A rook pinned on the e-file can still slide along it, even capture the pinning piece"""
    game = game_from_fen("k3r3/8/8/8/8/8/4R3/4K3")
    assert game.apply_move(sq("e2"), sq("e8"), Color.WHITE)


def test_king_cannot_walk_into_check(game_from_fen: GameFactory) -> None:
    game = game_from_fen("k7/8/8/8/8/8/r7/4K3")
    assert not game.apply_move(sq("e1"), sq("e2"), Color.WHITE)
    assert game.apply_move(sq("e1"), sq("f1"), Color.WHITE)


def test_must_get_out_of_check(game_from_fen: GameFactory) -> None:
    """In check: a move that ignores the check is refused"""
    game = game_from_fen("k3r3/8/8/8/8/8/P7/4K3")
    assert game.is_in_check(Color.WHITE)
    assert not game.apply_move(sq("a2"), sq("a3"), Color.WHITE)
    assert game.apply_move(sq("e1"), sq("d1"), Color.WHITE)


# -- CHECK DETECTION --
def test_no_check_in_starting_position() -> None:
    game = Game.new_game()
    assert not game.is_in_check(Color.WHITE)
    assert not game.is_in_check(Color.BLACK)


def test_missing_king_is_never_in_check() -> None:
    board = Board.from_fen("8/8/8/8/8/8/8/r6R")
    assert not is_in_check_on(board, Color.WHITE)
    assert not is_in_check_on(board, Color.BLACK)


@pytest.mark.parametrize(
    "position, color_in_check",
    [
        ("4k3/8/8/8/8/8/8/4R3", Color.BLACK),  # rook on the file
        ("4k3/8/8/b7/8/8/8/4K3", Color.WHITE),  # bishop on the diagonal
        ("4k3/8/3N4/8/8/8/8/4K3", Color.BLACK),  # knight
        ("4k3/3P4/8/8/8/8/8/4K3", Color.BLACK),  # pawn, attacks upwards
        ("4k3/8/8/8/Q7/8/8/4K3", Color.BLACK),  # queen on the diagonal
    ],
)
def test_attack_detection(position: str, color_in_check: Color) -> None:
    board = Board.from_fen(position)
    assert is_in_check_on(board, color_in_check)
    assert not is_in_check_on(board, color_in_check.opponent)


def test_blocked_attack_is_no_check() -> None:
    board = Board.from_fen("4k3/4p3/8/8/8/8/8/4R3")
    assert not is_in_check_on(board, Color.BLACK)


def test_pawn_does_not_attack_forward() -> None:
    board = Board.from_fen("8/8/8/8/8/4k3/4P3/8")
    assert not is_in_check_on(board, Color.BLACK)


def test_attack_ignores_turn_order(game_from_fen: GameFactory) -> None:
    """Black is in check even though it is black's turn and the attacker could not move right now"""
    game = game_from_fen("4k3/8/8/8/8/8/8/4R2K", to_move=Color.BLACK)
    assert game.is_in_check(Color.BLACK)


# -- GAME STATUS --
def test_fools_mate() -> None:
    game = Game.new_game()
    play(game, FOOLS_MATE)
    assert game.status == Status.CHECKMATE
    assert game.current_player == Color.WHITE
    assert game.winner == Color.BLACK
    assert game.is_over
    assert game.legal_moves(Color.WHITE) == []


def test_scholars_mate() -> None:
    game = Game.new_game()
    play(game, SCHOLARS_MATE)
    assert game.status == Status.CHECKMATE
    assert game.current_player == Color.BLACK
    assert game.winner == Color.WHITE
    assert len(game.moves) == 7


def test_queen_and_bishop_lined_up_is_no_mate() -> None:
    """e4 d5 Bc4 Nf6 Qh5: the f7 pawn still shields the king, black simply plays on"""
    game = Game.new_game()
    play(
        game,
        [
            ((6, 4), (4, 4)),
            ((1, 3), (3, 3)),
            ((7, 5), (4, 2)),
            ((0, 6), (2, 5)),
            ((7, 3), (3, 7)),
        ],
    )
    assert game.current_player == Color.BLACK
    assert game.status == Status.IN_PROGRESS
    assert game.winner is None


def test_check(game_from_fen: GameFactory) -> None:
    game = game_from_fen("4k3/8/8/8/8/8/8/R3K3")
    assert game.apply_move(sq("a1"), sq("a8"), Color.WHITE)
    assert game.status == Status.CHECK
    assert not game.is_over


def test_check_status_cleared_after_escape(game_from_fen: GameFactory) -> None:
    game = game_from_fen("4k3/8/8/8/8/8/8/R3K3")
    game.apply_move(sq("a1"), sq("a8"), Color.WHITE)
    assert game.apply_move(sq("e8"), sq("e7"), Color.BLACK)
    assert game.status == Status.IN_PROGRESS


def test_back_rank_mate(game_from_fen: GameFactory) -> None:
    game = game_from_fen("6k1/5ppp/8/8/8/8/8/R5K1")
    assert game.apply_move(sq("a1"), sq("a8"), Color.WHITE)
    assert game.status == Status.CHECKMATE
    assert game.winner == Color.WHITE


def test_stalemate(game_from_fen: GameFactory) -> None:
    """Black king in the corner, not in check, every square around it covered"""
    game = game_from_fen("k7/8/1K6/8/8/8/8/2Q5")
    assert game.apply_move(sq("c1"), sq("c7"), Color.WHITE)
    assert game.status == Status.STALEMATE
    assert game.winner is None
    assert game.is_over


def test_stalemate_counts_king_safety(game_from_fen: GameFactory) -> None:
    """The black king could geometrically step to b8 or a7, but both squares are covered"""
    game = game_from_fen("k7/8/1K6/8/8/8/8/2Q5")
    game.apply_move(sq("c1"), sq("c7"), Color.WHITE)
    assert game.is_valid_move(sq("a8"), sq("b8"), Color.BLACK)
    assert game.legal_moves(Color.BLACK) == []


def test_draw_bare_kings(game_from_fen: GameFactory) -> None:
    game = game_from_fen("4k3/8/8/8/8/8/3p4/4K3")
    assert game.apply_move(sq("e1"), sq("d2"), Color.WHITE)
    assert game.status == Status.DRAW
    assert game.is_over


@pytest.mark.parametrize(
    "position, from_alg, to_alg",
    [
        ("4k3/8/8/8/8/8/3p4/4KB2", "e1", "d2"),  # king + bishop vs king
        ("4k3/8/8/8/8/8/3p4/4KN2", "e1", "d2"),  # king + knight vs king
        ("4kn2/8/8/8/8/8/3p4/4K3", "e1", "d2"),  # king vs king + knight
    ],
)
def test_draw_lone_minor_piece(
    game_from_fen: GameFactory, position: str, from_alg: str, to_alg: str
) -> None:
    game = game_from_fen(position)
    assert game.apply_move(sq(from_alg), sq(to_alg), Color.WHITE)
    assert game.status == Status.DRAW


def test_rook_is_no_draw(game_from_fen: GameFactory) -> None:
    game = game_from_fen("4k3/8/8/8/8/8/3p4/4KR2")
    assert game.apply_move(sq("e1"), sq("d2"), Color.WHITE)
    assert game.status == Status.IN_PROGRESS


@pytest.mark.parametrize(
    "plies_before, expected",
    [
        (MAX_PLIES_BEFORE_DRAW - 2, Status.IN_PROGRESS),
        (MAX_PLIES_BEFORE_DRAW - 1, Status.DRAW),
    ],
)
def test_draw_by_ply_count(
    game_from_fen: GameFactory, plies_before: int, expected: Status
) -> None:
    """Flat cap on the number of recorded plies, captures and pawn moves do not reset it"""
    game = game_from_fen("r3k3/8/8/8/8/8/8/R3K3")
    filler = Move(sq("a1"), sq("a2"), Piece(PieceType.ROOK, Color.WHITE))
    game.moves = [filler] * plies_before

    assert game.apply_move(sq("a1"), sq("a2"), Color.WHITE)
    assert game.status == expected


def test_checkmate_wins_over_draw(game_from_fen: GameFactory) -> None:
    """Mate on the 100th ply is still mate"""
    game = game_from_fen("6k1/5ppp/8/8/8/8/8/R5K1")
    filler = Move(sq("a1"), sq("a2"), Piece(PieceType.ROOK, Color.WHITE))
    game.moves = [filler] * (MAX_PLIES_BEFORE_DRAW - 1)
    assert game.apply_move(sq("a1"), sq("a8"), Color.WHITE)
    assert game.status == Status.CHECKMATE


# -- RESET / SNAPSHOT --
def test_reset() -> None:
    game = Game.new_game()
    play(game, FOOLS_MATE)

    game.reset()
    assert game.board == Board.starting_position()
    assert game.current_player == Color.WHITE
    assert game.status == Status.WAITING
    assert game.last_move is None
    assert game.moves == []


def test_snapshot() -> None:
    game = Game.new_game()
    game.apply_move(sq("e2"), sq("e4"), Color.WHITE)
    state = game.snapshot()

    assert isinstance(state, GameState)
    assert state.board == game.board.rows()
    assert state.current_player == Color.BLACK
    assert state.game_status == Status.IN_PROGRESS
    assert state.last_move == game.last_move
    assert state.move_history == (game.last_move,)
    assert state.ply_count == 1


def test_snapshot_is_idempotent() -> None:
    game = Game.new_game()
    play(game, FOOLS_MATE[:2])
    assert game.snapshot() == game.snapshot()


def test_snapshot_does_not_follow_later_moves() -> None:
    game = Game.new_game()
    before = game.snapshot()
    game.apply_move(sq("e2"), sq("e4"), Color.WHITE)

    assert before.board == Board.starting_position().rows()
    assert before.move_history == ()
    assert game.snapshot() != before
