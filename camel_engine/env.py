"""
Gymnasium environment for a full camel race.

Wraps the race engine in a gymnasium-compatible interface: the agent holds
one seat and bot policies play every other seat. Actions are rank-based so
the agent is colour-agnostic.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .actions import Action, PlaceTile, PlaceWager, Roll, TakeTicket, describe
from .board import TileKind
from .config import RaceConfig
from .constants import INVALID_ACTION_PENALTY, NUM_PLAYERS
from .events import Outcome
from .ledger import WagerKind
from .policies import ExpectedValuePolicy, Policy, RandomPolicy, best_tile_space
from .race import RaceEngine
from .randomness import NumpyRandomSource


class CamelRaceEnv(gym.Env):
    """
    Gymnasium environment for a full race.

    Action layout for ``n`` racing camels:
        0:              Roll
        1..n:           Leg ticket on the camel in rank i
        n+1, n+2:       Place oasis / mirage ahead of the leader
        n+3..2n+2:      Final winner wager on the camel in rank i
        2n+3..3n+2:     Final loser wager on the camel in rank i

    Example:
        >>> env = CamelRaceEnv(opponent_type="random")
        >>> obs, info = env.reset(seed=42)
        >>> obs, reward, terminated, truncated, info = env.step(0)
    """

    metadata = {"render_modes": ["human"]}

    def __init__(
        self,
        config: Optional[RaceConfig] = None,
        num_opponents: int = NUM_PLAYERS - 1,
        opponent_type: Literal["ev", "random"] = "random",
        opponent_simulations: int = 50,
        reward_mode: Literal["win", "coins"] = "win",
        render_mode: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the race environment.

        Args:
            config: Rule set for every race.
            num_opponents: Number of bot seats (1-7).
            opponent_type: "ev" for expected-value bots, "random" for random.
            opponent_simulations: Rollouts per EV bot decision.
            reward_mode: "win" for +1/-1, "coins" for final balance.
            render_mode: "human" for text output, None for silent.
            seed: Random seed.
        """
        super().__init__()

        self.config = config if config is not None else RaceConfig.classic()
        self.num_opponents = num_opponents
        self.num_players = num_opponents + 1
        self.opponent_type = opponent_type
        self.opponent_simulations = opponent_simulations
        self.reward_mode = reward_mode
        self.render_mode = render_mode

        self._rng = np.random.default_rng(seed)
        self.agent_index = 0
        self.engine: Optional[RaceEngine] = None
        self._opponents: dict[int, Policy] = {}

        n = len(self.config.racing_camels)
        self._num_camels = n
        self.num_actions = 3 * n + 3

        self.observation_space = spaces.Dict({
            "ranked_positions": spaces.Box(
                low=0, high=self.config.max_position,
                shape=(n,),
                dtype=np.int8,
            ),
            "dice_rolled_by_rank": spaces.MultiBinary(n),
            "tiles_available_by_rank": spaces.Box(
                low=0, high=max(self.config.ticket_values, default=0),
                shape=(n,),
                dtype=np.int8,
            ),
            "current_leg": spaces.Box(low=1, high=100, shape=(1,), dtype=np.int16),
            "desert_tiles": spaces.Box(
                low=-1, high=1,
                shape=(self.config.track_length,),
                dtype=np.int8,
            ),
            "my_tile_placed": spaces.MultiBinary(1),
            "my_wager_cards_by_rank": spaces.MultiBinary(n),
            "wager_counts": spaces.Box(low=0, high=255, shape=(2,), dtype=np.int16),
            "player_coins": spaces.Box(
                low=0, high=1000,
                shape=(self.num_players,),
                dtype=np.int16,
            ),
        })
        self.action_space = spaces.Discrete(self.num_actions)

    def _create_opponents(self) -> None:
        self._opponents = {}
        for seat in range(self.num_players):
            if seat == self.agent_index:
                continue
            seed = int(self._rng.integers(0, 2**31))
            if self.opponent_type == "ev":
                self._opponents[seat] = ExpectedValuePolicy(
                    simulations=self.opponent_simulations, seed=seed
                )
            else:
                self._opponents[seat] = RandomPolicy(seed=seed)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> tuple[dict[str, np.ndarray], dict[str, Any]]:
        """Reset to a new race with the agent in a random seat."""
        super().reset(seed=seed)

        if seed is not None:
            self._rng = np.random.default_rng(seed)

        self.agent_index = int(self._rng.integers(0, self.num_players))
        self._create_opponents()
        self.engine = RaceEngine(
            config=self.config,
            num_players=self.num_players,
            source=NumpyRandomSource(rng=self._rng),
            player_names=[
                "Agent" if i == self.agent_index else f"Bot {i}"
                for i in range(self.num_players)
            ],
        )

        if self.render_mode == "human":
            print(f"\n=== NEW RACE (Agent is Player {self.agent_index}) ===")
            print(self.engine.board)

        self._play_opponents()
        return self._get_observation(), self._get_info()

    def step(
        self,
        action: int,
    ) -> tuple[dict[str, np.ndarray], float, bool, bool, dict[str, Any]]:
        """Execute the agent's action, then bot turns until the agent acts again."""
        assert self.engine is not None, "Must call reset() first"

        record = self.translate_action(int(action))
        if record is None:
            if self.render_mode == "human":
                print(f"  [INVALID] Agent tried action {action}")
            return (
                self._get_observation(),
                float(INVALID_ACTION_PENALTY),
                False,
                False,
                self._get_info(),
            )

        outcome = self.engine.apply(record)
        self._render_outcome(record, outcome)
        if not outcome.accepted:
            return (
                self._get_observation(),
                float(INVALID_ACTION_PENALTY),
                False,
                False,
                self._get_info(),
            )

        self._play_opponents()

        if self.engine.state.is_over:
            return self._get_observation(), self._calculate_reward(), True, False, self._get_info()
        return self._get_observation(), 0.0, False, False, self._get_info()

    def translate_action(self, action: int) -> Optional[Action]:
        """Map a discrete action to an engine action, or None if masked."""
        if not self.action_masks()[action]:
            return None

        engine = self.engine
        n = self._num_camels
        seat = self.agent_index
        rankings = engine.board.rankings()

        if action == 0:
            return Roll(player=seat)
        if 1 <= action <= n:
            return TakeTicket(color=rankings[action - 1], player=seat)
        if action in (n + 1, n + 2):
            spot = best_tile_space(engine.observe(seat))
            kind = TileKind.OASIS if action == n + 1 else TileKind.MIRAGE
            return PlaceTile(kind=kind, position=spot, player=seat)
        if n + 3 <= action <= 2 * n + 2:
            return PlaceWager(rankings[action - n - 3], WagerKind.WINNER, player=seat)
        return PlaceWager(rankings[action - 2 * n - 3], WagerKind.LOSER, player=seat)

    def action_masks(self) -> np.ndarray:
        """Return boolean mask of valid actions."""
        masks = np.zeros(self.num_actions, dtype=bool)
        if self.engine is None or self.engine.state.is_over:
            return masks

        n = self._num_camels
        observable = self.engine.observe(self.agent_index)
        rankings = observable.rankings

        masks[0] = bool(observable.dice_remaining)
        for rank, camel in enumerate(rankings):
            masks[1 + rank] = observable.ticket_tops[camel] is not None
            masks[n + 3 + rank] = camel in observable.wager_colors
            masks[2 * n + 3 + rank] = camel in observable.wager_colors
        if observable.tile_positions:
            masks[n + 1] = True
            masks[n + 2] = True
        return masks

    def _play_opponents(self) -> None:
        """Let bots act until it is the agent's turn or the race ends."""
        engine = self.engine
        while not engine.state.is_over and engine.current_player != self.agent_index:
            seat = engine.current_player
            record = self._opponents[seat].decide(engine.observe(seat))
            outcome = engine.apply(record)
            self._render_outcome(record, outcome)
            if not outcome.accepted:
                # Fall back to a die roll; always legal while the race runs
                outcome = engine.apply(Roll(player=seat))
                self._render_outcome(Roll(player=seat), outcome)

    def _calculate_reward(self) -> float:
        """Calculate final reward based on reward mode."""
        coins = self.engine.state.balances
        my_coins = coins[self.agent_index]
        if self.reward_mode == "coins":
            return float(my_coins)
        return 1.0 if my_coins == max(coins) else -1.0

    def _get_observation(self) -> dict[str, np.ndarray]:
        """Build observation dictionary."""
        engine = self.engine
        observable = engine.observe(self.agent_index)
        board = observable.board
        rankings = observable.rankings

        ranked_positions = np.array(
            [board.camel(c).position for c in rankings], dtype=np.int8
        )
        dice_rolled = np.array(
            [0 if c in observable.dice_remaining else 1 for c in rankings], dtype=np.int8
        )
        tiles = np.array(
            [observable.ticket_tops[c] or 0 for c in rankings], dtype=np.int8
        )

        desert = np.zeros(self.config.track_length, dtype=np.int8)
        for space, tile in board.tiles.items():
            desert[space] = tile.kind.effect

        my_cards = np.array(
            [1 if c in observable.wager_colors else 0 for c in rankings], dtype=np.int8
        )
        wager_counts = np.array(
            [observable.wager_counts[WagerKind.WINNER], observable.wager_counts[WagerKind.LOSER]],
            dtype=np.int16,
        )

        return {
            "ranked_positions": ranked_positions,
            "dice_rolled_by_rank": dice_rolled,
            "tiles_available_by_rank": tiles,
            "current_leg": np.array([observable.leg], dtype=np.int16),
            "desert_tiles": desert,
            "my_tile_placed": np.array(
                [int(engine.players[self.agent_index].tile_placed)], dtype=np.int8
            ),
            "my_wager_cards_by_rank": my_cards,
            "wager_counts": wager_counts,
            "player_coins": np.array(observable.balances, dtype=np.int16),
        }

    def _get_info(self) -> dict[str, Any]:
        if self.engine is None:
            return {}
        state = self.engine.state
        return {
            "rankings": state.board.rankings(),
            "agent_index": self.agent_index,
            "current_leg": state.leg,
            "player_coins": state.balances,
            "winner": state.winner,
        }

    def _render_outcome(self, action: Action, outcome: Outcome) -> None:
        """Print the action taken and any leg/race settlement."""
        if self.render_mode != "human":
            return
        state = outcome.state
        seat = action.player if action.player is not None else state.current_player
        name = "Agent" if seat == self.agent_index else f"Bot {seat}"
        if not outcome.accepted:
            print(f"  {name}: {describe(action)} [REJECTED: {outcome.reason.value}]")
            return
        line = f"  {name}: {describe(action)}"
        roll = getattr(outcome, "roll", None)
        if roll is not None:
            line += f" -> {roll.camel} moves {roll.steps}"
        print(line)
        if outcome.tag == "legEnded":
            print(f"\n=== LEG {state.leg - 1} COMPLETE ===")
            print(f"  Rankings: {list(outcome.standings)}")
        elif outcome.tag == "raceEnded":
            print("\n=== RACE COMPLETE ===")
            print(f"  Final rankings: {list(outcome.standings)}")
            print(f"  Final coins: {state.balances}")

    def render(self) -> None:
        """Render current state."""
        if self.render_mode == "human" and self.engine is not None:
            print(f"\n=== Current State (Leg {self.engine.leg}) ===")
            print(self.engine.board)

    def close(self) -> None:
        pass
