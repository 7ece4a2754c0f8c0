"""
Injectable randomness for the race engine.

Every random decision the engine makes goes through a ``RandomSource``, so a
race is fully reproducible from its seed and fully scriptable in tests.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional, Protocol, Sequence

import numpy as np

from .constants import WILDCARD_DIE


class RandomSource(Protocol):
    """Provider of every random draw the engine needs."""

    def draw_die(self, remaining: Sequence[str]) -> str:
        """Pick which die leaves the pyramid next."""
        ...

    def draw_reversed(self, colors: Sequence[str]) -> str:
        """Pick which reversed camel the wildcard die moves."""
        ...

    def draw_steps(self, faces: Sequence[int]) -> int:
        """Roll a die face."""
        ...

    def draw_start(self, spaces: Sequence[int]) -> int:
        """Pick a starting space during setup."""
        ...

    def shuffled(self, colors: Sequence[str]) -> list[str]:
        """Return the colours in a random drop order during setup."""
        ...


class NumpyRandomSource:
    """
    Production randomness backed by a NumPy generator.

    Example:
        >>> source = NumpyRandomSource(seed=7)
        >>> source.draw_steps((1, 2, 3)) in (1, 2, 3)
        True
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def draw_die(self, remaining: Sequence[str]) -> str:
        return str(remaining[int(self.rng.integers(len(remaining)))])

    def draw_reversed(self, colors: Sequence[str]) -> str:
        return str(colors[int(self.rng.integers(len(colors)))])

    def draw_steps(self, faces: Sequence[int]) -> int:
        return int(faces[int(self.rng.integers(len(faces)))])

    def draw_start(self, spaces: Sequence[int]) -> int:
        return int(spaces[int(self.rng.integers(len(spaces)))])

    def shuffled(self, colors: Sequence[str]) -> list[str]:
        order = list(colors)
        self.rng.shuffle(order)
        return order


class ScriptedRandomSource:
    """
    Replays a fixed sequence of rolls.

    Each roll is a ``(camel_color, steps)`` pair. When the colour is a
    reversed camel, the scripted die is the wildcard die and the wildcard
    draw returns that camel. Setup draws are deterministic: camels keep
    their given order and always take the first offered space.

    Raises:
        ValueError: If the script runs out, or names a die that is no longer
                    in the pyramid.
    """

    def __init__(self, rolls: Iterable[tuple[str, int]] = ()):
        self._rolls: deque[tuple[str, int]] = deque(rolls)
        self._current: Optional[tuple[str, int]] = None

    def extend(self, rolls: Iterable[tuple[str, int]]) -> None:
        self._rolls.extend(rolls)

    @property
    def pending(self) -> int:
        return len(self._rolls)

    def draw_die(self, remaining: Sequence[str]) -> str:
        if not self._rolls:
            raise ValueError("Scripted random source has no rolls left")
        self._current = self._rolls.popleft()
        color = self._current[0]
        if color in remaining:
            return color
        if WILDCARD_DIE in remaining:
            return WILDCARD_DIE
        raise ValueError(f"Scripted die {color} is not in the pyramid: {list(remaining)}")

    def draw_reversed(self, colors: Sequence[str]) -> str:
        assert self._current is not None, "draw_die() must come first"
        color = self._current[0]
        if color not in colors:
            raise ValueError(f"Scripted camel {color} is not a reversed camel")
        return color

    def draw_steps(self, faces: Sequence[int]) -> int:
        assert self._current is not None, "draw_die() must come first"
        return self._current[1]

    def draw_start(self, spaces: Sequence[int]) -> int:
        return spaces[0]

    def shuffled(self, colors: Sequence[str]) -> list[str]:
        return list(colors)
