"""
Player records and read-only race snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .board import Board
from .ledger import Wager


class Phase(str, Enum):
    AWAITING_ACTION = "awaiting_action"
    LEG_COMPLETE = "leg_complete"
    RACE_COMPLETE = "race_complete"


@dataclass
class Player:
    """
    A seat at the table.

    Attributes:
        index: Seat number, also the turn-order position.
        name: Display name.
        money: Current balance, never negative after settlement.
        tickets: Betting tickets held this leg as (camel, value) pairs.
        pyramid_tickets: Dice rolled by this player this leg.
        tile_placed: Whether the player placed a desert tile this leg.
        partner: Seat of this leg's partner, if any.
    """

    index: int
    name: str = ""
    money: int = 0
    tickets: list[tuple[str, int]] = field(default_factory=list)
    pyramid_tickets: int = 0
    tile_placed: bool = False
    partner: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Player {self.index + 1}"

    def clear_leg(self) -> None:
        self.tickets = []
        self.pyramid_tickets = 0
        self.tile_placed = False
        self.partner = None

    def copy(self) -> Player:
        return Player(
            index=self.index,
            name=self.name,
            money=self.money,
            tickets=list(self.tickets),
            pyramid_tickets=self.pyramid_tickets,
            tile_placed=self.tile_placed,
            partner=self.partner,
        )


@dataclass(frozen=True)
class DieRoll:
    """One die taken from the pyramid and the camel it moved."""

    die: str
    camel: str
    steps: int


@dataclass(frozen=True)
class RaceState:
    """
    Snapshot of a race after an engine transition.

    Snapshots are copies: mutating one never affects the engine.
    """

    board: Board
    dice_remaining: tuple[str, ...]
    tickets: dict[str, tuple[int, ...]]
    players: tuple[Player, ...]
    wagers: tuple[Wager, ...]
    current_player: int
    leg: int
    phase: Phase
    rolls: tuple[DieRoll, ...] = ()
    winner: Optional[str] = None
    loser: Optional[str] = None

    @property
    def balances(self) -> list[int]:
        return [p.money for p in self.players]

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.RACE_COMPLETE

    def to_dict(self) -> dict:
        """JSON-serialisable view, used by the HTTP host."""
        board = self.board
        positions = sorted({c.position for c in board.camels})
        return {
            "leg": self.leg,
            "phase": self.phase.value,
            "currentPlayer": self.current_player,
            "winner": self.winner,
            "loser": self.loser,
            "board": [
                {"space": p, "camels": board.stack(p)} for p in positions
            ],
            "tiles": [
                {"space": t.position, "type": t.kind.value, "owner": t.owner}
                for t in sorted(board.tiles.values(), key=lambda t: t.position)
            ],
            "rankings": board.rankings(),
            "diceRemaining": list(self.dice_remaining),
            "rolls": [
                {"die": r.die, "camel": r.camel, "steps": r.steps} for r in self.rolls
            ],
            "tickets": {c: list(v) for c, v in self.tickets.items()},
            "players": [
                {
                    "index": p.index,
                    "name": p.name,
                    "money": p.money,
                    "tickets": [{"camel": c, "value": v} for c, v in p.tickets],
                    "pyramidTickets": p.pyramid_tickets,
                    "tilePlaced": p.tile_placed,
                    "partner": p.partner,
                }
                for p in self.players
            ],
            "wagerCounts": {
                kind: sum(1 for w in self.wagers if w.kind.value == kind)
                for kind in ("winner", "loser")
            },
        }
