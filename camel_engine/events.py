"""
Outcomes returned by every engine action.

Each action returns exactly one outcome record carrying the post-action
snapshot. Rejections leave the race untouched and carry a reason code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .board import Tile
from .ledger import Wager
from .state import DieRoll, RaceState


class RejectCategory(str, Enum):
    INVALID_ACTION = "invalid_action"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    ILLEGAL_PLACEMENT = "illegal_placement"


class RejectReason(str, Enum):
    OUT_OF_TURN = "out_of_turn"
    RACE_OVER = "race_over"
    UNKNOWN_CAMEL = "unknown_camel"
    UNKNOWN_PLAYER = "unknown_player"
    FEATURE_DISABLED = "feature_disabled"
    ALREADY_PARTNERED = "already_partnered"
    NO_DICE = "no_dice"
    TICKETS_EXHAUSTED = "tickets_exhausted"
    WAGER_CARD_USED = "wager_card_used"
    TILE_ALREADY_PLACED = "tile_already_placed"
    NO_TILE_SPACE = "no_tile_space"
    START_SQUARE = "start_square"
    OFF_TRACK = "off_track"
    SPACE_OCCUPIED = "space_occupied"
    ADJACENT_TILE = "adjacent_tile"
    UNKNOWN_KIND = "unknown_kind"

    @property
    def category(self) -> RejectCategory:
        if self in _EXHAUSTED:
            return RejectCategory.RESOURCE_EXHAUSTED
        if self in _PLACEMENT:
            return RejectCategory.ILLEGAL_PLACEMENT
        return RejectCategory.INVALID_ACTION


_EXHAUSTED = frozenset({
    RejectReason.NO_DICE,
    RejectReason.TICKETS_EXHAUSTED,
    RejectReason.NO_TILE_SPACE,
})
_PLACEMENT = frozenset({
    RejectReason.START_SQUARE,
    RejectReason.OFF_TRACK,
    RejectReason.SPACE_OCCUPIED,
    RejectReason.ADJACENT_TILE,
})


@dataclass(frozen=True)
class Outcome:
    state: RaceState

    @property
    def accepted(self) -> bool:
        return True

    @property
    def tag(self) -> str:
        return _TAGS[type(self)]


@dataclass(frozen=True)
class Moved(Outcome):
    """A die was rolled and the race goes on."""

    player: int = 0
    roll: Optional[DieRoll] = None
    tile: Optional[Tile] = None


@dataclass(frozen=True)
class LegEnded(Moved):
    """The last die of the leg was rolled and the leg was settled."""

    standings: tuple[str, ...] = ()
    earnings: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RaceEnded(Moved):
    """A racing camel crossed the finish line; the race is settled."""

    winner: str = ""
    loser: str = ""
    standings: tuple[str, ...] = ()
    leg_earnings: dict[int, int] = field(default_factory=dict)
    final_earnings: dict[int, int] = field(default_factory=dict)

    @property
    def earnings(self) -> dict[int, int]:
        keys = set(self.leg_earnings) | set(self.final_earnings)
        return {
            p: self.leg_earnings.get(p, 0) + self.final_earnings.get(p, 0)
            for p in sorted(keys)
        }


@dataclass(frozen=True)
class TicketTaken(Outcome):
    player: int = 0
    color: str = ""
    value: int = 0


@dataclass(frozen=True)
class TilePlaced(Outcome):
    player: int = 0
    tile: Optional[Tile] = None
    retracted: Optional[Tile] = None


@dataclass(frozen=True)
class WagerPlaced(Outcome):
    wager: Optional[Wager] = None


@dataclass(frozen=True)
class PartnershipFormed(Outcome):
    player: int = 0
    partner: int = 0


@dataclass(frozen=True)
class Rejected(Outcome):
    reason: RejectReason = RejectReason.OUT_OF_TURN
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return False

    @property
    def category(self) -> RejectCategory:
        return self.reason.category


_TAGS: dict[type, str] = {
    Moved: "moved",
    LegEnded: "legEnded",
    RaceEnded: "raceEnded",
    TicketTaken: "ticketTaken",
    TilePlaced: "tilePlaced",
    WagerPlaced: "wagerPlaced",
    PartnershipFormed: "partnershipFormed",
    Rejected: "rejected",
}
