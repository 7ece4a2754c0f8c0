"""
Unit tests for leg and race settlement.
"""

from camel_engine.board import Board
from camel_engine.constants import (
    BLUE,
    FINAL_WAGER_PAYOUTS,
    FINAL_WAGER_PENALTY,
    GREEN,
    PURPLE,
    RED,
    YELLOW,
)
from camel_engine.ledger import Wager, WagerKind
from camel_engine.scoring import apply_earnings, score_final, score_leg, ticket_payout
from camel_engine.state import Player


def leg_board():
    """Green 1st, yellow 2nd, then purple, blue, red."""
    return Board.from_stacks({10: [GREEN], 8: [YELLOW], 2: [RED, BLUE, PURPLE]})


class TestTicketPayout:
    """Tests for single betting-ticket payouts."""

    def test_first_place_pays_value(self):
        assert ticket_payout(GREEN, 5, GREEN, YELLOW) == 5

    def test_second_place_pays_one(self):
        assert ticket_payout(YELLOW, 3, GREEN, YELLOW) == 1

    def test_other_places_cost_one(self):
        assert ticket_payout(RED, 2, GREEN, YELLOW) == -1


class TestScoreLeg:
    """Tests for end-of-leg settlement."""

    def test_winning_and_losing_tickets(self):
        """Green 5 wins, purple 5 loses: +5 - 1 = 4."""
        player = Player(index=0, tickets=[(GREEN, 5), (PURPLE, 5)])

        earnings = score_leg([player], leg_board())

        assert earnings == {0: 4}

    def test_pyramid_tickets_pay_one_each(self):
        player = Player(index=0, pyramid_tickets=3)

        earnings = score_leg([player], leg_board())

        assert earnings == {0: 3}

    def test_player_with_nothing_earns_zero(self):
        earnings = score_leg([Player(index=0), Player(index=1)], leg_board())

        assert earnings == {0: 0, 1: 0}

    def test_scoring_does_not_touch_balances(self):
        player = Player(index=0, money=3, tickets=[(GREEN, 5)])

        score_leg([player], leg_board())

        assert player.money == 3

    def test_partner_earns_best_positive_ticket(self):
        alice = Player(index=0, tickets=[(GREEN, 5), (YELLOW, 3)], partner=1)
        bob = Player(index=1, tickets=[(RED, 5)], partner=0)

        earnings = score_leg([alice, bob], leg_board(), partnerships=True)

        # Alice: 5 + 1, nothing from Bob's losing ticket
        assert earnings[0] == 6
        # Bob: -1 plus Alice's best ticket (5)
        assert earnings[1] == 4

    def test_partnership_ignored_when_disabled(self):
        alice = Player(index=0, tickets=[(GREEN, 5)], partner=1)
        bob = Player(index=1, partner=0)

        earnings = score_leg([alice, bob], leg_board())

        assert earnings[1] == 0


class TestScoreFinal:
    """Tests for final winner/loser wager settlement."""

    def test_correct_winner_cards_paid_in_order(self):
        wagers = [
            Wager(2, GREEN, WagerKind.WINNER),
            Wager(0, GREEN, WagerKind.WINNER),
            Wager(1, GREEN, WagerKind.WINNER),
        ]

        earnings = score_final(wagers, leg_board(), 3, FINAL_WAGER_PAYOUTS, FINAL_WAGER_PENALTY)

        assert earnings == {0: 5, 1: 3, 2: 8}

    def test_incorrect_cards_penalised(self):
        wagers = [
            Wager(0, RED, WagerKind.WINNER),
            Wager(1, GREEN, WagerKind.LOSER),
        ]

        earnings = score_final(wagers, leg_board(), 2, FINAL_WAGER_PAYOUTS, FINAL_WAGER_PENALTY)

        assert earnings == {0: -1, 1: -1}

    def test_loser_pile_scored_on_last_place(self):
        """Red is the bottom of the rear stack, so it finishes last."""
        wagers = [
            Wager(0, RED, WagerKind.LOSER),
            Wager(1, PURPLE, WagerKind.LOSER),
        ]

        earnings = score_final(wagers, leg_board(), 2, FINAL_WAGER_PAYOUTS, FINAL_WAGER_PENALTY)

        assert earnings == {0: 8, 1: -1}

    def test_incorrect_cards_do_not_use_payout_slots(self):
        wagers = [
            Wager(0, RED, WagerKind.WINNER),
            Wager(1, GREEN, WagerKind.WINNER),
        ]

        earnings = score_final(wagers, leg_board(), 2, FINAL_WAGER_PAYOUTS, FINAL_WAGER_PENALTY)

        assert earnings[1] == 8

    def test_payouts_past_schedule_use_last_value(self):
        wagers = [Wager(0, GREEN, WagerKind.WINNER)] * 3

        earnings = score_final(wagers, leg_board(), 1, (8, 5), FINAL_WAGER_PENALTY)

        assert earnings == {0: 8 + 5 + 5}


class TestApplyEarnings:
    """Tests for balance updates."""

    def test_earnings_added(self):
        players = [Player(index=0, money=3), Player(index=1, money=3)]

        apply_earnings(players, {0: 4, 1: -2})

        assert [p.money for p in players] == [7, 1]

    def test_balance_clamped_at_zero(self):
        player = Player(index=0, money=1)

        apply_earnings([player], {0: -5})

        assert player.money == 0

    def test_missing_player_unchanged(self):
        player = Player(index=0, money=2)

        apply_earnings([player], {})

        assert player.money == 2
