"""
Action records a driver or bot policy submits to the engine.

``player`` is optional on every action; when given, the engine rejects the
action unless it is that player's turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .board import TileKind
from .ledger import WagerKind


@dataclass(frozen=True)
class Roll:
    """Take a pyramid ticket and roll the next die."""

    player: Optional[int] = None


@dataclass(frozen=True)
class TakeTicket:
    color: str
    player: Optional[int] = None


@dataclass(frozen=True)
class PlaceTile:
    kind: TileKind
    position: int
    player: Optional[int] = None


@dataclass(frozen=True)
class PlaceWager:
    color: str
    kind: WagerKind
    player: Optional[int] = None


@dataclass(frozen=True)
class FormPartnership:
    partner: int
    player: Optional[int] = None


Action = Union[Roll, TakeTicket, PlaceTile, PlaceWager, FormPartnership]


def describe(action: Action) -> str:
    """Short human-readable label, used by driver narration."""
    if isinstance(action, Roll):
        return "Roll"
    if isinstance(action, TakeTicket):
        return f"Leg bet on {action.color}"
    if isinstance(action, PlaceTile):
        return f"Place {TileKind(action.kind).value} at {action.position + 1}"
    if isinstance(action, PlaceWager):
        return f"Game {WagerKind(action.kind).value} bet on {action.color}"
    if isinstance(action, FormPartnership):
        return f"Partner with Player {action.partner + 1}"
    raise ValueError(f"Invalid action: {action!r}")
