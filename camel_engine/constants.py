"""
Game constants for the camel race engine.

These are the classic-game defaults. Every value here can be overridden
per race through ``RaceConfig``.
"""

from typing import Final

# Racing camel colours
RED: Final[str] = "red"
BLUE: Final[str] = "blue"
GREEN: Final[str] = "green"
YELLOW: Final[str] = "yellow"
PURPLE: Final[str] = "purple"

# Reversed ("crazy") camel colours, moved by the shared wildcard die
BLACK: Final[str] = "black"
WHITE: Final[str] = "white"
WILDCARD_DIE: Final[str] = "grey"

# Convenience collections
RACING_CAMELS: Final[tuple[str, ...]] = (RED, BLUE, GREEN, YELLOW, PURPLE)
REVERSED_CAMELS: Final[tuple[str, ...]] = (BLACK, WHITE)
NUM_RACING_CAMELS: Final[int] = 5

# Board configuration
TRACK_LENGTH: Final[int] = 16  # Spaces 1-16 (0-indexed internally: 0-15)
START_SPACES: Final[tuple[int, ...]] = (0, 1, 2)
START_SQUARE: Final[int] = 0  # Desert tiles may never go here

# Dice configuration
DIE_FACES: Final[tuple[int, ...]] = (1, 2, 3)

# Betting tickets: first-come-first-served values per camel, per leg
TICKET_VALUES: Final[tuple[int, ...]] = (5, 3, 2)
SECOND_PLACE_PAYOUT: Final[int] = 1
WRONG_TICKET_PENALTY: Final[int] = -1

# Final wagers (first correct card gets 8, second gets 5, etc.)
FINAL_WAGER_PAYOUTS: Final[tuple[int, ...]] = (8, 5, 3, 2, 1)
FINAL_WAGER_PENALTY: Final[int] = -1

# Rewards
ROLL_REWARD: Final[int] = 1  # Paid per pyramid ticket at leg settlement
TILE_REWARD: Final[int] = 1  # Paid immediately to a tile owner when a camel lands
STARTING_MONEY: Final[int] = 3

# Players
NUM_PLAYERS: Final[int] = 4
INVALID_ACTION_PENALTY: Final[int] = -10
