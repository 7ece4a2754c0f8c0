"""
Betting-ticket stacks and final wager records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class TicketsExhausted(ValueError):
    """Raised when a camel's ticket stack is empty."""


class WagerCardUsed(ValueError):
    """Raised when a player has already played their card for a camel."""


class TicketLedger:
    """
    Per-leg betting-ticket stacks, one per racing camel.

    Tickets are handed out first-come-first-served, highest value first, and
    are never replenished until ``reset_for_new_leg``.

    Example:
        >>> ledger = TicketLedger((5, 3, 2), ("red", "blue"))
        >>> ledger.take_ticket("red")
        5
        >>> ledger.peek_next_value("red")
        3
    """

    def __init__(self, schedule: Iterable[int], colors: Iterable[str]):
        self.schedule = tuple(schedule)
        self.colors = tuple(colors)
        self._stacks: dict[str, list[int]] = {}
        self.reset_for_new_leg()

    def take_ticket(self, color: str) -> int:
        """
        Take the top ticket for a camel.

        Raises:
            TicketsExhausted: If no tickets remain for this camel.
            ValueError: If the colour has no ticket stack.
        """
        stack = self._stack(color)
        if not stack:
            raise TicketsExhausted(f"No tickets remaining for camel {color}")
        return stack.pop(0)

    def peek_next_value(self, color: str) -> Optional[int]:
        stack = self._stack(color)
        return stack[0] if stack else None

    def remaining(self, color: str) -> list[int]:
        return list(self._stack(color))

    def reset_for_new_leg(self) -> None:
        self._stacks = {c: list(self.schedule) for c in self.colors}

    def copy(self) -> TicketLedger:
        clone = TicketLedger(self.schedule, self.colors)
        clone._stacks = {c: list(s) for c, s in self._stacks.items()}
        return clone

    def _stack(self, color: str) -> list[int]:
        try:
            return self._stacks[color]
        except KeyError:
            raise ValueError(f"No ticket stack for camel {color}") from None


class WagerKind(str, Enum):
    WINNER = "winner"
    LOSER = "loser"


@dataclass(frozen=True)
class Wager:
    player: int
    color: str
    kind: WagerKind


@dataclass
class WagerBook:
    """
    Final winner/loser wagers in submission order.

    Each player holds one card per racing camel. Playing a card on either
    the winner or the loser pile uses it up for the rest of the race.
    """

    colors: tuple[str, ...]
    wagers: list[Wager] = field(default_factory=list)

    def place(self, player: int, color: str, kind: WagerKind) -> Wager:
        """
        Record a final wager.

        Raises:
            WagerCardUsed: If the player already played this camel's card.
            ValueError: If the colour is not a racing camel.
        """
        if color not in self.colors:
            raise ValueError(f"Camel {color} cannot be wagered on")
        if color not in self.available_colors(player):
            raise WagerCardUsed(f"Player {player} already played the {color} card")
        wager = Wager(player=player, color=color, kind=WagerKind(kind))
        self.wagers.append(wager)
        return wager

    def available_colors(self, player: int) -> list[str]:
        used = {w.color for w in self.wagers if w.player == player}
        return [c for c in self.colors if c not in used]

    def entries(self, kind: WagerKind) -> list[Wager]:
        return [w for w in self.wagers if w.kind is WagerKind(kind)]

    def count(self, kind: WagerKind) -> int:
        return len(self.entries(kind))

    def copy(self) -> WagerBook:
        return WagerBook(colors=self.colors, wagers=list(self.wagers))
