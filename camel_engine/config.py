"""
Construction-time race configuration.

A ``RaceConfig`` bundles the knobs that distinguish rule variants (crazy
camels, ticket schedules, tile rules, final wagers, partnerships) so a single
engine can play all of them.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import (
    DIE_FACES,
    FINAL_WAGER_PAYOUTS,
    FINAL_WAGER_PENALTY,
    RACING_CAMELS,
    REVERSED_CAMELS,
    START_SPACES,
    STARTING_MONEY,
    TICKET_VALUES,
    TRACK_LENGTH,
    WILDCARD_DIE,
)


@dataclass(frozen=True)
class RaceConfig:
    """
    Rule set for one race.

    Attributes:
        racing_camels: Colours of the camels that race forward and can win.
        reversed_camels: Colours of camels moving backward. Empty disables
                         the crazy-camel variant and the wildcard die.
        track_length: Number of spaces; a racing camel reaching this index
                      finishes the race.
        start_spaces: Spaces racing camels may start on.
        die_faces: Step counts a die can show.
        ticket_values: Betting-ticket stack per camel, highest first.
        final_payouts: Payout schedule for correct final wagers.
        final_penalty: Earnings for an incorrect final wager.
        starting_money: Initial balance of every player.
        strict_tiles: Forbid placing a tile next to another player's tile.
        relocate_tiles: Allow placing a tile more than once per leg; the
                        previous tile is retracted.
        final_wagers: Enable final winner/loser wager cards.
        partnerships: Enable leg partnerships.
    """

    racing_camels: tuple[str, ...] = RACING_CAMELS
    reversed_camels: tuple[str, ...] = ()
    track_length: int = TRACK_LENGTH
    start_spaces: tuple[int, ...] = START_SPACES
    die_faces: tuple[int, ...] = DIE_FACES
    ticket_values: tuple[int, ...] = TICKET_VALUES
    final_payouts: tuple[int, ...] = FINAL_WAGER_PAYOUTS
    final_penalty: int = FINAL_WAGER_PENALTY
    starting_money: int = STARTING_MONEY
    strict_tiles: bool = True
    relocate_tiles: bool = False
    final_wagers: bool = True
    partnerships: bool = False

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def classic(cls) -> RaceConfig:
        """Five racing camels, no crazy camels."""
        return cls()

    @classmethod
    def crazy_camels(cls) -> RaceConfig:
        """Classic race plus two reversed camels and the wildcard die."""
        return cls(reversed_camels=REVERSED_CAMELS)

    @property
    def all_camels(self) -> tuple[str, ...]:
        return self.racing_camels + self.reversed_camels

    @property
    def dice(self) -> tuple[str, ...]:
        """The full per-leg die set."""
        if self.reversed_camels:
            return self.racing_camels + (WILDCARD_DIE,)
        return self.racing_camels

    @property
    def finish_line(self) -> int:
        return self.track_length

    @property
    def max_position(self) -> int:
        """Upper clamp bound; leaves room past the finish line for overshoot."""
        return self.finish_line + max(self.die_faces)

    def validate(self) -> None:
        """
        Check the configuration for internal consistency.

        Raises:
            ValueError: If any parameter is out of range or contradictory.
        """
        if len(self.racing_camels) < 2:
            raise ValueError("At least two racing camels are required")
        colours = self.all_camels
        if len(set(colours)) != len(colours):
            raise ValueError(f"Camel colours must be unique: {colours}")
        if WILDCARD_DIE in colours:
            raise ValueError(f"'{WILDCARD_DIE}' is reserved for the wildcard die")
        if self.track_length < 4:
            raise ValueError(f"Track too short: {self.track_length}")
        if not self.start_spaces or any(
            not 0 <= s < self.track_length for s in self.start_spaces
        ):
            raise ValueError(f"Invalid start spaces: {self.start_spaces}")
        if not self.die_faces or min(self.die_faces) < 1:
            raise ValueError(f"Die faces must be positive: {self.die_faces}")
        if list(self.ticket_values) != sorted(self.ticket_values, reverse=True):
            raise ValueError(f"Ticket values must be non-increasing: {self.ticket_values}")
        if not self.final_payouts:
            raise ValueError("Final wager payout schedule cannot be empty")
        if self.starting_money < 0:
            raise ValueError("Starting money cannot be negative")
