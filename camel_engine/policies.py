"""
Bot policies for the camel race.

A policy sees only an ``ObservableState`` and returns an action record; the
driver submits that action to the engine. Policies never mutate engine state:
all look-ahead runs the pure movement resolver on board copies.
"""

from __future__ import annotations

from itertools import permutations, product
from typing import Optional, Protocol, Sequence

import numpy as np

from .actions import Action, FormPartnership, PlaceTile, PlaceWager, Roll, TakeTicket
from .board import Board, TileKind
from .config import RaceConfig
from .constants import ROLL_REWARD, SECOND_PLACE_PAYOUT, WILDCARD_DIE, WRONG_TICKET_PENALTY
from .ledger import WagerKind
from .movement import resolve
from .race import ObservableState
from .randomness import NumpyRandomSource


class Policy(Protocol):
    def decide(self, observable: ObservableState) -> Action:
        ...


def legal_actions(observable: ObservableState) -> list[Action]:
    """
    Every action the observed player may take right now.

    Desert tiles are offered only at the spot a few spaces ahead of the
    leader, so the list stays short.
    """
    seat = observable.player
    actions: list[Action] = []

    if observable.dice_remaining:
        actions.append(Roll(player=seat))

    for color, top in observable.ticket_tops.items():
        if top is not None:
            actions.append(TakeTicket(color=color, player=seat))

    spot = best_tile_space(observable)
    if spot is not None:
        actions.append(PlaceTile(kind=TileKind.OASIS, position=spot, player=seat))
        actions.append(PlaceTile(kind=TileKind.MIRAGE, position=spot, player=seat))

    for color in observable.wager_colors:
        actions.append(PlaceWager(color=color, kind=WagerKind.WINNER, player=seat))
        actions.append(PlaceWager(color=color, kind=WagerKind.LOSER, player=seat))

    for partner in observable.partner_options:
        actions.append(FormPartnership(partner=partner, player=seat))

    return actions


def best_tile_space(observable: ObservableState) -> Optional[int]:
    """Legal tile space closest to two spaces ahead of the leader."""
    if not observable.tile_positions:
        return None
    leader_pos = observable.board.leader_position()
    return min(observable.tile_positions, key=lambda s: abs(s - leader_pos - 2))


def _is_finished(board: Board, config: RaceConfig) -> bool:
    return any(c.is_racing and c.position >= config.finish_line for c in board.camels)


def _die_targets(die: str, config: RaceConfig) -> Sequence[str]:
    return config.reversed_camels if die == WILDCARD_DIE else (die,)


def get_leg_probabilities(
    board: Board,
    dice_remaining: Sequence[str],
    config: RaceConfig,
    simulations: int = 1000,
    rng: Optional[np.random.Generator] = None,
) -> dict[str, tuple[float, float]]:
    """
    Probability of each racing camel finishing the leg 1st and 2nd.

    Uses exact enumeration if 3 or fewer dice remain, otherwise Monte Carlo.
    A leg cut short by a camel crossing the finish line is ranked where it
    stopped.
    """
    colors = config.racing_camels
    dice = list(dice_remaining)

    if not dice:
        rankings = board.rankings()
        return {
            c: (1.0 if c == rankings[0] else 0.0, 1.0 if c == rankings[1] else 0.0)
            for c in colors
        }

    win_counts = {c: 0.0 for c in colors}
    second_counts = {c: 0.0 for c in colors}

    if len(dice) <= 3:
        # Exact calculation: every ordering, every face, every wildcard target
        total = 0.0
        for ordering in permutations(dice):
            targets = [_die_targets(d, config) for d in ordering]
            for camels in product(*targets):
                for faces in product(config.die_faces, repeat=len(ordering)):
                    sim = board
                    for camel, steps in zip(camels, faces):
                        sim = resolve(sim, camel, steps, config.max_position)
                        if _is_finished(sim, config):
                            break
                    rankings = sim.rankings()
                    win_counts[rankings[0]] += 1
                    second_counts[rankings[1]] += 1
                    total += 1
        return {c: (win_counts[c] / total, second_counts[c] / total) for c in colors}

    # Monte Carlo
    source = NumpyRandomSource(rng=rng if rng is not None else np.random.default_rng())
    for _ in range(simulations):
        sim = _roll_out_leg(board, dice, config, source)
        rankings = sim.rankings()
        win_counts[rankings[0]] += 1
        second_counts[rankings[1]] += 1
    return {c: (win_counts[c] / simulations, second_counts[c] / simulations) for c in colors}


def _roll_out_leg(
    board: Board,
    dice: Sequence[str],
    config: RaceConfig,
    source: NumpyRandomSource,
) -> Board:
    remaining = list(dice)
    while remaining and not _is_finished(board, config):
        die = source.draw_die(remaining)
        remaining.remove(die)
        camel = source.draw_reversed(config.reversed_camels) if die == WILDCARD_DIE else die
        board = resolve(board, camel, source.draw_steps(config.die_faces), config.max_position)
    return board


def get_game_probabilities(
    board: Board,
    dice_remaining: Sequence[str],
    config: RaceConfig,
    simulations: int = 1000,
    rng: Optional[np.random.Generator] = None,
) -> tuple[dict[str, float], dict[str, float]]:
    """
    Probability of each racing camel winning or losing the whole race.

    Desert tiles are dropped after the current leg, matching the real reset.
    """
    source = NumpyRandomSource(rng=rng if rng is not None else np.random.default_rng())
    colors = config.racing_camels
    win_counts = {c: 0 for c in colors}
    lose_counts = {c: 0 for c in colors}

    for _ in range(simulations):
        sim = _roll_out_leg(board, dice_remaining, config, source)
        if not _is_finished(sim, config):
            sim = sim.with_tiles({})
        while not _is_finished(sim, config):
            sim = _roll_out_leg(sim, config.dice, config, source)
        win_counts[sim.rankings()[0]] += 1
        lose_counts[sim.last_place().color] += 1

    return (
        {c: win_counts[c] / simulations for c in colors},
        {c: lose_counts[c] / simulations for c in colors},
    )


class RandomPolicy:
    """
    Simple random policy for baseline comparison.

    Selects uniformly at random from legal actions.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def decide(self, observable: ObservableState) -> Action:
        actions = legal_actions(observable)
        if not actions:
            return Roll(player=observable.player)
        return actions[int(self.rng.integers(len(actions)))]


class ExpectedValuePolicy:
    """
    Greedy expected-value policy.

    Leg tickets are valued from exact or simulated leg probabilities; final
    wagers are only considered once the leader is within ``wager_horizon``
    spaces of the finish line, since full-race rollouts are expensive.

    Attributes:
        simulations: Number of rollouts per probability estimate.
        wager_horizon: Distance to the finish at which wagers are evaluated.
        rng: Random generator for reproducibility.
    """

    def __init__(
        self,
        simulations: int = 200,
        wager_horizon: int = 5,
        seed: Optional[int] = None,
    ):
        self.simulations = simulations
        self.wager_horizon = wager_horizon
        self.rng = np.random.default_rng(seed)

    def decide(self, observable: ObservableState) -> Action:
        values = self.action_values(observable)
        if not values:
            return Roll(player=observable.player)
        return max(values, key=lambda pair: pair[1])[0]

    def action_values(self, observable: ObservableState) -> list[tuple[Action, float]]:
        """Expected value of every legal action."""
        actions = legal_actions(observable)
        if not actions:
            return []

        config = observable.config
        board = observable.board
        leg_probs = get_leg_probabilities(
            board, observable.dice_remaining, config, self.simulations, self.rng
        )

        game_probs = None
        if any(isinstance(a, PlaceWager) for a in actions):
            if config.finish_line - board.leader_position() <= self.wager_horizon:
                game_probs = get_game_probabilities(
                    board, observable.dice_remaining, config, self.simulations, self.rng
                )

        values: list[tuple[Action, float]] = []
        for action in actions:
            if isinstance(action, Roll):
                ev = float(ROLL_REWARD)

            elif isinstance(action, TakeTicket):
                p1, p2 = leg_probs[action.color]
                value = observable.ticket_tops[action.color] or 0
                ev = (
                    p1 * value
                    + p2 * SECOND_PLACE_PAYOUT
                    + (1.0 - p1 - p2) * WRONG_TICKET_PENALTY
                )

            elif isinstance(action, PlaceTile):
                # Tiles pay per landing, so they are worth more early in the leg
                ev = 0.4 + len(observable.dice_remaining) * 0.12
                if action.kind is TileKind.MIRAGE:
                    ev -= 0.05

            elif isinstance(action, PlaceWager):
                if game_probs is None:
                    ev = -1.5
                else:
                    probs = game_probs[0] if action.kind is WagerKind.WINNER else game_probs[1]
                    p = probs[action.color]
                    placed = observable.wager_counts[action.kind]
                    payout = config.final_payouts[min(placed, len(config.final_payouts) - 1)]
                    ev = p * payout + (1.0 - p) * config.final_penalty

            else:
                ev = 0.3

            values.append((action, ev))
        return values
