"""
Play bot-only camel races and print the results.

Usage:
    python run_race.py --races 20 --players 4 --policy ev --variant crazy
"""

import argparse
import time
from collections import Counter

from camel_engine.config import RaceConfig
from camel_engine.policies import ExpectedValuePolicy, RandomPolicy
from camel_engine.race import RaceEngine
from camel_engine.randomness import NumpyRandomSource


def play_race(config: RaceConfig, num_players: int, policy_name: str, simulations: int, seed: int):
    """Play one race to completion and return the final outcome."""
    engine = RaceEngine(
        config=config,
        num_players=num_players,
        source=NumpyRandomSource(seed=seed),
    )
    if policy_name == "ev":
        policies = [ExpectedValuePolicy(simulations=simulations, seed=seed + i) for i in range(num_players)]
    else:
        policies = [RandomPolicy(seed=seed + i) for i in range(num_players)]

    turns = 0
    outcome = None
    while not engine.state.is_over:
        seat = engine.current_player
        action = policies[seat].decide(engine.observe(seat))
        outcome = engine.apply(action)
        if not outcome.accepted:
            outcome = engine.take_roll_action()
        turns += 1
    return outcome, turns


def main():
    parser = argparse.ArgumentParser(description="Simulate camel races between bots")
    parser.add_argument("--races", type=int, default=10, help="Number of races")
    parser.add_argument("--players", type=int, default=4, help="Players per race")
    parser.add_argument("--policy", choices=["random", "ev"], default="random")
    parser.add_argument("--simulations", type=int, default=100, help="Rollouts per EV decision")
    parser.add_argument("--variant", choices=["classic", "crazy"], default="classic")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    config = RaceConfig.crazy_camels() if args.variant == "crazy" else RaceConfig.classic()

    winners: Counter = Counter()
    seat_wins: Counter = Counter()
    total_turns = 0
    total_legs = 0

    start_time = time.perf_counter()
    for race in range(args.races):
        outcome, turns = play_race(
            config, args.players, args.policy, args.simulations, args.seed + race * 1000
        )
        state = outcome.state
        winners[outcome.winner] += 1
        top = max(state.balances)
        for seat, coins in enumerate(state.balances):
            if coins == top:
                seat_wins[seat] += 1
        total_turns += turns
        total_legs += state.leg
        print(
            f"Race {race + 1:>3}: {outcome.winner:<7} wins in leg {state.leg}, "
            f"{turns} turns, coins {state.balances}"
        )
    total_time = time.perf_counter() - start_time

    print("\n--- Winning camels ---")
    for camel in config.racing_camels:
        print(f"{camel:<7}: {winners[camel] / args.races:>6.1%}")

    print("\n--- Seat wins (ties count for every tied seat) ---")
    for seat in range(args.players):
        print(f"Player {seat + 1}: {seat_wins[seat]}")

    print(f"\nAverage legs per race: {total_legs / args.races:.2f}")
    print(f"Average turns per race: {total_turns / args.races:.1f}")
    print(f"Total time: {total_time:.2f} seconds")


if __name__ == "__main__":
    main()
