"""
Leg and race settlement.

Scoring functions compute earnings without touching balances;
``apply_earnings`` is the only place money changes hands at settlement.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .board import Board
from .constants import ROLL_REWARD, SECOND_PLACE_PAYOUT, WRONG_TICKET_PENALTY
from .ledger import Wager, WagerKind
from .state import Player


def ticket_payout(color: str, value: int, first: str, second: str) -> int:
    """
    Earnings for one betting ticket.

    - Ticket matches 1st place: +ticket value
    - Ticket matches 2nd place: +1
    - Otherwise: -1
    """
    if color == first:
        return value
    if color == second:
        return SECOND_PLACE_PAYOUT
    return WRONG_TICKET_PENALTY


def score_leg(
    players: Sequence[Player],
    board: Board,
    roll_reward: int = ROLL_REWARD,
    partnerships: bool = False,
) -> dict[int, int]:
    """
    Score all betting tickets and pyramid tickets at the end of a leg.

    With partnerships enabled, each partner additionally earns the best
    positive ticket payout their partner scored this leg.

    Returns:
        Dict mapping player index to earnings this leg.
    """
    rankings = board.rankings()
    first, second = rankings[0], rankings[1]

    best_ticket: dict[int, int] = {}
    earnings: dict[int, int] = {}
    for player in players:
        payouts = [ticket_payout(c, v, first, second) for c, v in player.tickets]
        best_ticket[player.index] = max(payouts, default=0)
        earnings[player.index] = sum(payouts) + player.pyramid_tickets * roll_reward

    if partnerships:
        for player in players:
            if player.partner is not None:
                earnings[player.index] += max(0, best_ticket.get(player.partner, 0))

    return earnings


def _score_pile(
    wagers: Iterable[Wager],
    correct_color: str,
    payouts: Sequence[int],
    penalty: int,
    earnings: dict[int, int],
) -> None:
    correct_idx = 0
    for wager in wagers:
        if wager.color == correct_color:
            earnings[wager.player] += payouts[min(correct_idx, len(payouts) - 1)]
            correct_idx += 1
        else:
            earnings[wager.player] += penalty


def score_final(
    wagers: Sequence[Wager],
    board: Board,
    num_players: int,
    payouts: Sequence[int],
    penalty: int,
) -> dict[int, int]:
    """
    Score final winner and loser wagers at race end.

    Wagers are evaluated in the order they were placed. The Nth correct
    card on a pile earns the Nth payout (the last payout once the schedule
    runs out); every incorrect card earns ``penalty``.

    Returns:
        Dict mapping player index to earnings from final wagers.
    """
    earnings = {p: 0 for p in range(num_players)}
    winner = board.leaderboard()[0].color
    loser = board.last_place().color

    _score_pile(
        (w for w in wagers if w.kind is WagerKind.WINNER), winner, payouts, penalty, earnings
    )
    _score_pile(
        (w for w in wagers if w.kind is WagerKind.LOSER), loser, payouts, penalty, earnings
    )
    return earnings


def apply_earnings(players: Sequence[Player], earnings: dict[int, int]) -> None:
    """Add earnings to balances, clamping each balance at zero."""
    for player in players:
        player.money = max(0, player.money + earnings.get(player.index, 0))
