"""
Board model for the camel race.

Camels carry their own position and stack order; a ``Board`` is an immutable
snapshot of all camels plus the desert tiles currently in play. Only the
movement resolver produces new boards from old ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping, Optional

from .config import RaceConfig
from .randomness import RandomSource


class Direction(int, Enum):
    FORWARD = 1
    BACKWARD = -1


class TileKind(str, Enum):
    """Desert tile polarity; ``effect`` is the extra displacement."""

    OASIS = "oasis"
    MIRAGE = "mirage"

    @property
    def effect(self) -> int:
        return 1 if self is TileKind.OASIS else -1


@dataclass(frozen=True)
class Camel:
    """
    A single camel.

    Attributes:
        color: Identity of the camel.
        position: Track index (0 is the start square).
        stack_order: Height within its space; 0 is the bottom.
        direction: FORWARD for racing camels, BACKWARD for reversed camels.
    """

    color: str
    position: int
    stack_order: int = 0
    direction: Direction = Direction.FORWARD

    @property
    def is_racing(self) -> bool:
        return self.direction is Direction.FORWARD


@dataclass(frozen=True)
class Tile:
    position: int
    kind: TileKind
    owner: int


def _standing_key(camel: Camel) -> tuple[int, int]:
    return (camel.position, camel.stack_order)


def leaderboard(camels: Iterable[Camel]) -> list[Camel]:
    """
    Racing camels from first to last place.

    Ranking rules:
    - Primary: furthest position on track
    - Secondary: higher in stack

    Reversed camels never appear: they cannot win or place.
    """
    racing = [c for c in camels if c.is_racing]
    return sorted(racing, key=_standing_key, reverse=True)


def last_place(camels: Iterable[Camel]) -> Camel:
    """The racing camel with the worst standing."""
    racing = [c for c in camels if c.is_racing]
    if not racing:
        raise ValueError("No racing camels on the board")
    return min(racing, key=_standing_key)


@dataclass(frozen=True)
class Board:
    """
    Immutable snapshot of camels and desert tiles.

    Attributes:
        camels: Every camel on the track, in configuration order.
        tiles: Mapping of position to the desert tile placed there.
    """

    camels: tuple[Camel, ...] = ()
    tiles: Mapping[int, Tile] = field(default_factory=dict)

    def camel(self, color: str) -> Camel:
        """
        Look up a camel by colour.

        Raises:
            ValueError: If the camel is not on the board.
        """
        for camel in self.camels:
            if camel.color == color:
                return camel
        raise ValueError(f"Camel {color} not found on board")

    def occupants(self, position: int) -> list[Camel]:
        """Camels on a space, ordered bottom to top."""
        here = [c for c in self.camels if c.position == position]
        return sorted(here, key=lambda c: c.stack_order)

    def stack(self, position: int) -> list[str]:
        """Colours on a space, bottom to top."""
        return [c.color for c in self.occupants(position)]

    def tile_at(self, position: int) -> Optional[Tile]:
        return self.tiles.get(position)

    def leaderboard(self) -> list[Camel]:
        return leaderboard(self.camels)

    def rankings(self) -> list[str]:
        """Racing camel colours in rank order, 1st to last."""
        return [c.color for c in self.leaderboard()]

    def last_place(self) -> Camel:
        return last_place(self.camels)

    def leader_position(self) -> int:
        return self.leaderboard()[0].position

    def is_well_formed(self) -> bool:
        """True if no two camels share both position and stack order."""
        slots = [(c.position, c.stack_order) for c in self.camels]
        colors = [c.color for c in self.camels]
        return len(set(slots)) == len(slots) and len(set(colors)) == len(colors)

    def with_camels(self, camels: Iterable[Camel]) -> Board:
        return replace(self, camels=tuple(camels))

    def with_tiles(self, tiles: Mapping[int, Tile]) -> Board:
        return replace(self, tiles=dict(tiles))

    @classmethod
    def from_stacks(
        cls,
        stacks: Mapping[int, list[str]],
        reversed_camels: Iterable[str] = (),
        tiles: Iterable[Tile] = (),
    ) -> Board:
        """
        Build a board from bottom-to-top stacks.

        Example:
            >>> board = Board.from_stacks({3: ["red", "blue"]})
            >>> board.camel("blue").stack_order
            1
        """
        backward = set(reversed_camels)
        camels = [
            Camel(
                color=color,
                position=position,
                stack_order=height,
                direction=Direction.BACKWARD if color in backward else Direction.FORWARD,
            )
            for position, stack in stacks.items()
            for height, color in enumerate(stack)
        ]
        return cls(camels=tuple(camels), tiles={t.position: t for t in tiles})

    def __repr__(self) -> str:
        lines = ["Board:"]
        for position in sorted({c.position for c in self.camels}):
            names = ", ".join(self.stack(position))
            lines.append(f"  Space {position + 1}: [{names}] (bottom→top)")
        for position, tile in sorted(self.tiles.items()):
            lines.append(f"  Space {position + 1}: {tile.kind.value} (P{tile.owner})")
        return "\n".join(lines)


def starting_board(config: RaceConfig, source: RandomSource) -> Board:
    """
    Create the opening board.

    Racing camels are dropped in random order, each onto a random start
    space, so camels sharing a space stack in drop order. Reversed camels
    are dropped the same way onto the last spaces of the track.
    """
    stacks: dict[int, list[str]] = {}
    for color in source.shuffled(config.racing_camels):
        space = source.draw_start(config.start_spaces)
        stacks.setdefault(space, []).append(color)

    if config.reversed_camels:
        end_spaces = tuple(
            config.track_length - 1 - offset for offset in range(len(config.start_spaces))
        )
        for color in source.shuffled(config.reversed_camels):
            space = source.draw_start(end_spaces)
            stacks.setdefault(space, []).append(color)

    return Board.from_stacks(stacks, reversed_camels=config.reversed_camels)
