"""
Camel movement resolution.

Turns a die result (camel colour + step count) into a new board. The
resolver is a pure function: same inputs, same board, no randomness.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .board import Board, Camel, Tile


@dataclass(frozen=True)
class MoveOutcome:
    """
    Result of resolving one die.

    Attributes:
        board: The board after the move.
        moved: Colours that moved, bottom to top.
        destination: Final space of the moving group.
        tile: The desert tile the group landed on, if any.
    """

    board: Board
    moved: tuple[str, ...]
    destination: int
    tile: Optional[Tile] = None


def resolve_move(
    board: Board,
    color: str,
    steps: int,
    max_position: Optional[int] = None,
) -> MoveOutcome:
    """
    Move a camel and every camel stacked above it.

    Handles desert tile effects: a group landing on a tile is displaced one
    further space in the tile's direction. Tiles do not chain; the displaced
    space is never checked for another tile.

    Args:
        board: Board before the move.
        color: Colour of the camel whose die was rolled.
        steps: Number of spaces shown on the die.
        max_position: Upper clamp bound. ``None`` leaves the upper end open.

    Returns:
        MoveOutcome with the new board.

    Raises:
        ValueError: If the camel is not on the board.

    Example:
        >>> board = Board.from_stacks({3: ["red", "blue"]})
        >>> outcome = resolve_move(board, "red", 2)
        >>> outcome.board.stack(5)
        ['red', 'blue']
    """
    rolled = board.camel(color)

    # The moving group: this camel and all above it
    moving = [
        c for c in board.camels
        if c.position == rolled.position and c.stack_order >= rolled.stack_order
    ]
    moving_colors = {c.color for c in moving}

    destination = rolled.position + steps * rolled.direction.value

    tile = board.tile_at(destination)
    if tile is not None:
        destination += tile.kind.effect

    destination = max(0, destination)
    if max_position is not None:
        destination = min(destination, max_position)

    already_there = [
        c.stack_order for c in board.camels
        if c.position == destination and c.color not in moving_colors
    ]
    max_stack = max(already_there, default=-1)

    new_camels: list[Camel] = []
    for camel in board.camels:
        if camel.color in moving_colors:
            relative = camel.stack_order - rolled.stack_order
            camel = Camel(
                color=camel.color,
                position=destination,
                stack_order=max_stack + 1 + relative,
                direction=camel.direction,
            )
        new_camels.append(camel)

    moved = tuple(c.color for c in sorted(moving, key=lambda c: c.stack_order))
    return MoveOutcome(
        board=board.with_camels(new_camels),
        moved=moved,
        destination=destination,
        tile=tile,
    )


def resolve(
    board: Board,
    color: str,
    steps: int,
    max_position: Optional[int] = None,
) -> Board:
    """Resolve a die result and return only the new board."""
    return resolve_move(board, color, steps, max_position).board
