"""
Unit tests for camel movement and stacking logic.
"""

from itertools import product

import pytest

from camel_engine.board import Board, Tile, TileKind
from camel_engine.config import RaceConfig
from camel_engine.constants import BLACK, BLUE, GREEN, PURPLE, RED, WHITE, YELLOW
from camel_engine.movement import resolve, resolve_move


class TestSingleCamelMove:
    """Tests for basic single camel movement."""

    def test_single_camel_move_to_empty_space(self):
        """Camel moves to an empty space and sits at the bottom."""
        board = Board.from_stacks({3: [RED]})

        new_board = resolve(board, RED, 2)

        assert new_board.stack(3) == []
        assert new_board.stack(5) == [RED]
        assert new_board.camel(RED).stack_order == 0

    def test_single_camel_move_maximum_distance(self):
        board = Board.from_stacks({5: [GREEN]})

        new_board = resolve(board, GREEN, 3)

        assert new_board.camel(GREEN).position == 8

    def test_camel_lands_on_stack_goes_on_top(self):
        """Camel landing on occupied space gets max stack + 1."""
        board = Board.from_stacks({0: [GREEN], 3: [BLUE, PURPLE]})

        new_board = resolve(board, GREEN, 3)

        assert new_board.stack(3) == [BLUE, PURPLE, GREEN]
        assert new_board.camel(GREEN).stack_order == 2

    def test_original_board_untouched(self):
        """Resolving returns a new board and leaves the input alone."""
        board = Board.from_stacks({3: [RED, BLUE]})

        resolve(board, RED, 2)

        assert board.stack(3) == [RED, BLUE]

    def test_resolve_is_deterministic(self):
        board = Board.from_stacks({1: [RED, BLUE], 4: [GREEN]})

        assert resolve(board, RED, 3) == resolve(board, RED, 3)


class TestStackMovement:
    """Tests for a camel carrying the camels above it."""

    def test_two_camel_stack_moves_together(self):
        """Red (bottom) rolls and carries blue; order is preserved."""
        board = Board.from_stacks({3: [RED, BLUE]})

        new_board = resolve(board, RED, 2)

        assert new_board.camel(RED).position == 5
        assert new_board.camel(BLUE).position == 5
        assert new_board.camel(RED).stack_order == 0
        assert new_board.camel(BLUE).stack_order == 1

    def test_moving_stack_lands_above_existing_camels(self):
        board = Board.from_stacks({3: [RED, BLUE], 5: [GREEN, YELLOW]})

        new_board = resolve(board, RED, 2)

        assert new_board.stack(5) == [GREEN, YELLOW, RED, BLUE]
        assert new_board.camel(RED).stack_order == 2
        assert new_board.camel(BLUE).stack_order == 3

    def test_middle_camel_carries_top_leaves_bottom(self):
        """Middle camel carries camels above, leaves camels below."""
        board = Board.from_stacks({2: [RED, BLUE, GREEN]})

        new_board = resolve(board, BLUE, 2)

        assert new_board.stack(2) == [RED]
        assert new_board.stack(4) == [BLUE, GREEN]
        assert new_board.camel(BLUE).stack_order == 0
        assert new_board.camel(GREEN).stack_order == 1

    def test_top_camel_moves_alone(self):
        board = Board.from_stacks({3: [RED, BLUE, GREEN]})

        new_board = resolve(board, GREEN, 2)

        assert new_board.stack(3) == [RED, BLUE]
        assert new_board.stack(5) == [GREEN]

    def test_bottom_camel_carries_all(self):
        board = Board.from_stacks({0: [RED, BLUE, GREEN, YELLOW, PURPLE]})

        new_board = resolve(board, RED, 1)

        assert new_board.stack(0) == []
        assert new_board.stack(1) == [RED, BLUE, GREEN, YELLOW, PURPLE]

    def test_outcome_lists_moved_camels(self):
        board = Board.from_stacks({2: [RED, BLUE, GREEN]})

        outcome = resolve_move(board, BLUE, 1)

        assert outcome.moved == (BLUE, GREEN)
        assert outcome.destination == 3
        assert outcome.tile is None


class TestDesertTiles:
    """Tests for oasis/mirage displacement."""

    def test_oasis_moves_one_further(self):
        board = Board.from_stacks({3: [RED]}, tiles=[Tile(5, TileKind.OASIS, owner=0)])

        outcome = resolve_move(board, RED, 2)

        assert outcome.board.camel(RED).position == 6
        assert outcome.tile == Tile(5, TileKind.OASIS, owner=0)

    def test_tiles_do_not_chain(self):
        """Oasis pushes onto another tiled space; no second displacement."""
        board = Board.from_stacks(
            {3: [RED]},
            tiles=[Tile(5, TileKind.OASIS, owner=0), Tile(6, TileKind.OASIS, owner=1)],
        )

        new_board = resolve(board, RED, 2)

        assert new_board.camel(RED).position == 6

    def test_mirage_moves_one_back_onto_stack(self):
        """Mirage pushes the camel back; it still stacks on top."""
        board = Board.from_stacks(
            {3: [RED], 4: [BLUE]},
            tiles=[Tile(5, TileKind.MIRAGE, owner=0)],
        )

        new_board = resolve(board, RED, 2)

        assert new_board.stack(4) == [BLUE, RED]

    def test_mirage_back_onto_own_space(self):
        """A group pushed back to its own space stays above the camels it left."""
        board = Board.from_stacks(
            {3: [RED, BLUE]},
            tiles=[Tile(4, TileKind.MIRAGE, owner=0)],
        )

        new_board = resolve(board, BLUE, 1)

        assert new_board.stack(3) == [RED, BLUE]
        assert new_board.is_well_formed()


class TestReversedCamels:
    """Tests for crazy camels moving backward."""

    def test_reversed_camel_moves_backward(self):
        board = Board.from_stacks({10: [BLACK]}, reversed_camels=[BLACK])

        new_board = resolve(board, BLACK, 3)

        assert new_board.camel(BLACK).position == 7

    def test_reversed_camel_carries_racing_camel_backward(self):
        board = Board.from_stacks({10: [BLACK, RED]}, reversed_camels=[BLACK])

        new_board = resolve(board, BLACK, 2)

        assert new_board.stack(8) == [BLACK, RED]

    def test_racing_camel_on_reversed_camel_moves_forward_alone(self):
        board = Board.from_stacks({10: [RED, WHITE]}, reversed_camels=[WHITE])

        new_board = resolve(board, WHITE, 1)

        assert new_board.stack(10) == [RED]
        assert new_board.stack(9) == [WHITE]


class TestClamping:
    """Tests for the legal track range."""

    def test_clamped_at_start(self):
        board = Board.from_stacks({1: [BLACK]}, reversed_camels=[BLACK])

        new_board = resolve(board, BLACK, 3)

        assert new_board.camel(BLACK).position == 0

    def test_clamped_at_max_position(self):
        board = Board.from_stacks({15: [RED]})

        new_board = resolve(board, RED, 3, max_position=16)

        assert new_board.camel(RED).position == 16

    def test_default_clamp_keeps_overshoot(self):
        """The configured clamp leaves room to detect a finished camel."""
        config = RaceConfig.classic()
        board = Board.from_stacks({15: [RED]}, tiles=[Tile(18, TileKind.OASIS, owner=0)])

        new_board = resolve(board, RED, 3, max_position=config.max_position)

        assert new_board.camel(RED).position == config.max_position
        assert new_board.camel(RED).position >= config.finish_line


class TestResolverContract:
    """Tests for caller errors and invariants."""

    def test_unknown_camel_raises(self):
        board = Board.from_stacks({0: [RED]})

        with pytest.raises(ValueError, match="not found"):
            resolve(board, GREEN, 1)

    def test_stacking_invariant_and_order_for_every_roll(self):
        """No shared slots and no reordering within the moving group."""
        board = Board.from_stacks(
            {1: [RED, BLUE, GREEN], 3: [YELLOW], 4: [PURPLE]},
            tiles=[Tile(2, TileKind.MIRAGE, owner=0), Tile(6, TileKind.OASIS, owner=1)],
        )

        for color, steps in product([RED, BLUE, GREEN, YELLOW, PURPLE], [1, 2, 3]):
            outcome = resolve_move(board, color, steps)
            new_board = outcome.board

            assert new_board.is_well_formed()
            moved = list(outcome.moved)
            landed = [c for c in new_board.stack(outcome.destination) if c in moved]
            assert landed == moved
