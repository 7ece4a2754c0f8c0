"""
Race and leg state machine.

``RaceEngine`` owns the authoritative race state. Drivers (a UI, the
gymnasium environment, the HTTP host, a bot loop) submit one action at a
time; every action is a single synchronous transition that returns an
``Outcome`` with a fresh snapshot. Rule violations are returned as
``Rejected`` outcomes and never change state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .actions import Action, FormPartnership, PlaceTile, PlaceWager, Roll, TakeTicket
from .board import Board, Tile, TileKind, starting_board
from .config import RaceConfig
from .constants import NUM_PLAYERS, START_SQUARE, TILE_REWARD, WILDCARD_DIE
from .events import (
    LegEnded,
    Moved,
    Outcome,
    PartnershipFormed,
    RaceEnded,
    Rejected,
    RejectReason,
    TicketTaken,
    TilePlaced,
    WagerPlaced,
)
from .ledger import TicketLedger, TicketsExhausted, WagerBook, WagerCardUsed, WagerKind
from .movement import resolve_move
from .randomness import NumpyRandomSource, RandomSource
from .scoring import apply_earnings, score_final, score_leg
from .state import DieRoll, Phase, Player, RaceState


@dataclass(frozen=True)
class ObservableState:
    """
    Read-only projection of the race for bot policies.

    Attributes:
        player: Seat the projection was made for.
        current_player: Seat whose turn it is.
        dice_remaining: Dice still in the pyramid.
        ticket_tops: Next ticket value per racing camel (None when exhausted).
        tile_positions: Spaces where ``player`` may place a desert tile now.
        wager_colors: Camels ``player`` still holds a final wager card for.
        partner_options: Seats ``player`` may partner with now.
        wager_counts: Number of final wagers on each pile so far.
        board: Current board (immutable).
        balances: Money per seat.
    """

    config: RaceConfig
    player: int
    current_player: int
    leg: int
    phase: Phase
    dice_remaining: tuple[str, ...]
    ticket_tops: dict[str, Optional[int]]
    tile_positions: tuple[int, ...]
    wager_colors: tuple[str, ...]
    partner_options: tuple[int, ...]
    wager_counts: dict[WagerKind, int]
    board: Board
    balances: tuple[int, ...]

    @property
    def rankings(self) -> list[str]:
        return self.board.rankings()


class RaceEngine:
    """
    Authoritative state of one race.

    Turn order is a fixed round-robin over the seats, advanced after every
    accepted action and carried across legs.

    Example:
        >>> engine = RaceEngine(num_players=3, source=NumpyRandomSource(seed=1))
        >>> outcome = engine.take_roll_action()
        >>> outcome.tag
        'moved'
    """

    def __init__(
        self,
        config: Optional[RaceConfig] = None,
        num_players: int = NUM_PLAYERS,
        source: Optional[RandomSource] = None,
        board: Optional[Board] = None,
        player_names: Optional[Sequence[str]] = None,
        first_player: int = 0,
    ):
        """
        Set up a race.

        Args:
            config: Rule set; defaults to the classic game.
            num_players: Number of seats (at least 2).
            source: Randomness provider; defaults to an unseeded NumPy source.
            board: Opening board. If None, one is drawn from ``source``.
            player_names: Optional display names, one per seat.
            first_player: Seat that acts first.

        Raises:
            ValueError: If the seat count, names, or board do not fit the config.
        """
        self.config = config if config is not None else RaceConfig.classic()
        self.source: RandomSource = source if source is not None else NumpyRandomSource()

        if num_players < 2:
            raise ValueError(f"At least two players are required, got {num_players}")
        if player_names is not None and len(player_names) != num_players:
            raise ValueError("One name per player is required")
        if not 0 <= first_player < num_players:
            raise ValueError(f"Invalid first player: {first_player}")

        self.players = [
            Player(
                index=i,
                name=player_names[i] if player_names else "",
                money=self.config.starting_money,
            )
            for i in range(num_players)
        ]

        if board is None:
            board = starting_board(self.config, self.source)
        self._check_board(board)
        self.board = board

        self.dice_remaining: list[str] = list(self.config.dice)
        self.ledger = TicketLedger(self.config.ticket_values, self.config.racing_camels)
        self.wagers = WagerBook(colors=self.config.racing_camels)
        self.rolls: list[DieRoll] = []
        self.current_player = first_player
        self.leg = 1
        self.phase = Phase.AWAITING_ACTION
        self.winner: Optional[str] = None
        self.loser: Optional[str] = None

    def _check_board(self, board: Board) -> None:
        colors = {c.color for c in board.camels}
        expected = set(self.config.all_camels)
        if colors != expected:
            raise ValueError(f"Board camels {sorted(colors)} do not match config {sorted(expected)}")
        if not board.is_well_formed():
            raise ValueError("Board has two camels in the same stack slot")
        for camel in board.camels:
            if camel.is_racing == (camel.color in self.config.reversed_camels):
                raise ValueError(f"Camel {camel.color} has the wrong direction")

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def state(self) -> RaceState:
        """Snapshot of the current race state."""
        return RaceState(
            board=self.board.with_tiles(self.board.tiles),
            dice_remaining=tuple(self.dice_remaining),
            tickets={c: tuple(self.ledger.remaining(c)) for c in self.config.racing_camels},
            players=tuple(p.copy() for p in self.players),
            wagers=tuple(self.wagers.wagers),
            current_player=self.current_player,
            leg=self.leg,
            phase=self.phase,
            rolls=tuple(self.rolls),
            winner=self.winner,
            loser=self.loser,
        )

    def is_race_finished(self) -> bool:
        """Check if any racing camel has reached the finish line."""
        return any(
            c.is_racing and c.position >= self.config.finish_line
            for c in self.board.camels
        )

    def legal_tile_positions(self, player: int) -> list[int]:
        """Spaces where a player may place a desert tile right now."""
        if self.players[player].tile_placed and not self.config.relocate_tiles:
            return []
        return [
            space for space in range(self.config.track_length)
            if self._placement_violation(player, space) is None
        ]

    def partner_options(self, player: int) -> list[int]:
        if not self.config.partnerships or self.players[player].partner is not None:
            return []
        return [
            p.index for p in self.players
            if p.index != player and p.partner is None
        ]

    def observe(self, player: Optional[int] = None) -> ObservableState:
        """Read-only projection for a bot policy, by default for the seat to act."""
        seat = self.current_player if player is None else player
        wager_colors = self.wagers.available_colors(seat) if self.config.final_wagers else []
        return ObservableState(
            config=self.config,
            player=seat,
            current_player=self.current_player,
            leg=self.leg,
            phase=self.phase,
            dice_remaining=tuple(self.dice_remaining),
            ticket_tops={c: self.ledger.peek_next_value(c) for c in self.config.racing_camels},
            tile_positions=tuple(self.legal_tile_positions(seat)),
            wager_colors=tuple(wager_colors),
            partner_options=tuple(self.partner_options(seat)),
            wager_counts={kind: self.wagers.count(kind) for kind in WagerKind},
            board=self.board.with_tiles(self.board.tiles),
            balances=tuple(p.money for p in self.players),
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def apply(self, action: Action) -> Outcome:
        """Dispatch an action record to the matching engine operation."""
        if isinstance(action, Roll):
            return self.take_roll_action(action.player)
        if isinstance(action, TakeTicket):
            return self.take_betting_ticket(action.color, action.player)
        if isinstance(action, PlaceTile):
            return self.place_tile(action.kind, action.position, action.player)
        if isinstance(action, PlaceWager):
            return self.place_wager(action.color, action.kind, action.player)
        if isinstance(action, FormPartnership):
            return self.form_partnership(action.partner, action.player)
        raise ValueError(f"Invalid action: {action!r}")

    def take_roll_action(self, player: Optional[int] = None) -> Outcome:
        """
        Take a pyramid ticket: draw a die, roll it, and move its camel.

        Ends the leg when the pyramid empties and ends the race as soon as a
        racing camel reaches the finish line.
        """
        rejected = self._gate(player)
        if rejected is not None:
            return rejected
        if not self.dice_remaining:
            return self._reject(RejectReason.NO_DICE, "No dice remaining in pyramid")

        actor = self.players[self.current_player]

        die = self.source.draw_die(tuple(self.dice_remaining))
        if die == WILDCARD_DIE:
            camel = self.source.draw_reversed(self.config.reversed_camels)
        else:
            camel = die
        steps = self.source.draw_steps(self.config.die_faces)

        move = resolve_move(self.board, camel, steps, self.config.max_position)
        self.board = move.board
        self.dice_remaining.remove(die)
        actor.pyramid_tickets += 1
        roll = DieRoll(die=die, camel=camel, steps=steps)
        self.rolls.append(roll)

        # Tile owner gets paid as soon as a camel lands on their tile
        if move.tile is not None:
            self.players[move.tile.owner].money += TILE_REWARD

        if self.is_race_finished():
            return self._finish_race(actor.index, roll, move.tile)

        if not self.dice_remaining:
            standings, earnings = self._settle_leg()
            self._advance_turn()
            return LegEnded(
                state=self.state,
                player=actor.index,
                roll=roll,
                tile=move.tile,
                standings=standings,
                earnings=earnings,
            )

        self._advance_turn()
        return Moved(state=self.state, player=actor.index, roll=roll, tile=move.tile)

    def take_betting_ticket(self, color: str, player: Optional[int] = None) -> Outcome:
        """Take the top betting ticket for a racing camel."""
        rejected = self._gate(player)
        if rejected is not None:
            return rejected
        if color not in self.config.racing_camels:
            return self._reject(RejectReason.UNKNOWN_CAMEL, f"No tickets for camel {color}")

        actor = self.players[self.current_player]
        try:
            value = self.ledger.take_ticket(color)
        except TicketsExhausted as e:
            return self._reject(RejectReason.TICKETS_EXHAUSTED, str(e))

        actor.tickets.append((color, value))
        self._advance_turn()
        return TicketTaken(state=self.state, player=actor.index, color=color, value=value)

    def place_tile(
        self,
        kind: TileKind,
        position: int,
        player: Optional[int] = None,
    ) -> Outcome:
        """
        Place the acting player's desert tile.

        Desert tiles cannot go on the start square, on spaces with camels or
        another tile, or (with ``strict_tiles``) next to another player's
        tile. A player's previous tile, if any, is retracted.
        """
        rejected = self._gate(player)
        if rejected is not None:
            return rejected
        try:
            kind = TileKind(kind)
        except ValueError:
            return self._reject(RejectReason.UNKNOWN_KIND, f"Unknown desert tile kind: {kind!r}")
        actor = self.players[self.current_player]

        if actor.tile_placed and not self.config.relocate_tiles:
            return self._reject(
                RejectReason.TILE_ALREADY_PLACED,
                f"{actor.name} already placed a desert tile this leg",
            )
        if not self.legal_tile_positions(actor.index):
            return self._reject(RejectReason.NO_TILE_SPACE, "No legal space for a desert tile")
        violation = self._placement_violation(actor.index, position)
        if violation is not None:
            return self._reject(violation, f"Cannot place desert tile on space {position + 1}")

        tiles = {s: t for s, t in self.board.tiles.items() if t.owner != actor.index}
        retracted = next(
            (t for t in self.board.tiles.values() if t.owner == actor.index), None
        )
        tile = Tile(position=position, kind=kind, owner=actor.index)
        tiles[position] = tile
        self.board = self.board.with_tiles(tiles)
        actor.tile_placed = True

        self._advance_turn()
        return TilePlaced(state=self.state, player=actor.index, tile=tile, retracted=retracted)

    def place_wager(
        self,
        color: str,
        kind: WagerKind,
        player: Optional[int] = None,
    ) -> Outcome:
        """Play a final winner or loser wager card."""
        rejected = self._gate(player)
        if rejected is not None:
            return rejected
        if not self.config.final_wagers:
            return self._reject(RejectReason.FEATURE_DISABLED, "Final wagers are disabled")
        if color not in self.config.racing_camels:
            return self._reject(RejectReason.UNKNOWN_CAMEL, f"Camel {color} cannot be wagered on")
        try:
            kind = WagerKind(kind)
        except ValueError:
            return self._reject(RejectReason.UNKNOWN_KIND, f"Unknown wager kind: {kind!r}")

        actor = self.players[self.current_player]
        try:
            wager = self.wagers.place(actor.index, color, kind)
        except WagerCardUsed as e:
            return self._reject(RejectReason.WAGER_CARD_USED, str(e))

        self._advance_turn()
        return WagerPlaced(state=self.state, wager=wager)

    def form_partnership(self, partner: int, player: Optional[int] = None) -> Outcome:
        """Partner the acting player with another seat for the rest of the leg."""
        rejected = self._gate(player)
        if rejected is not None:
            return rejected
        if not self.config.partnerships:
            return self._reject(RejectReason.FEATURE_DISABLED, "Partnerships are disabled")

        actor = self.players[self.current_player]
        if not 0 <= partner < self.num_players or partner == actor.index:
            return self._reject(RejectReason.UNKNOWN_PLAYER, f"Cannot partner with seat {partner}")
        if partner not in self.partner_options(actor.index):
            return self._reject(
                RejectReason.ALREADY_PARTNERED, "Both players must be without a partner"
            )

        actor.partner = partner
        self.players[partner].partner = actor.index
        self._advance_turn()
        return PartnershipFormed(state=self.state, player=actor.index, partner=partner)

    # =========================================================================
    # Transitions
    # =========================================================================

    def _gate(self, player: Optional[int]) -> Optional[Rejected]:
        if self.phase is Phase.RACE_COMPLETE:
            return self._reject(RejectReason.RACE_OVER, "The race is over")
        if player is not None:
            if not 0 <= player < self.num_players:
                return self._reject(RejectReason.UNKNOWN_PLAYER, f"No seat {player}")
            if player != self.current_player:
                return self._reject(
                    RejectReason.OUT_OF_TURN,
                    f"It is {self.players[self.current_player].name}'s turn",
                )
        return None

    def _reject(self, reason: RejectReason, detail: str = "") -> Rejected:
        return Rejected(state=self.state, reason=reason, detail=detail)

    def _placement_violation(self, player: int, space: int) -> Optional[RejectReason]:
        if space == START_SQUARE:
            return RejectReason.START_SQUARE
        if not 0 <= space < self.config.track_length:
            return RejectReason.OFF_TRACK
        if self.board.occupants(space):
            return RejectReason.SPACE_OCCUPIED
        others = {s for s, t in self.board.tiles.items() if t.owner != player}
        if space in others:
            return RejectReason.SPACE_OCCUPIED
        if self.config.strict_tiles and (space - 1 in others or space + 1 in others):
            return RejectReason.ADJACENT_TILE
        return None

    def _advance_turn(self) -> None:
        self.current_player = (self.current_player + 1) % self.num_players

    def _settle_leg(self) -> tuple[tuple[str, ...], dict[int, int]]:
        """
        Score the leg and reset for the next one.

        - Pays betting tickets and pyramid tickets
        - Clears tickets, partnerships and tile flags
        - Removes desert tiles
        - Returns dice to the pyramid and refills ticket stacks
        - Increments leg counter
        """
        self.phase = Phase.LEG_COMPLETE
        standings = tuple(self.board.rankings())
        earnings = score_leg(self.players, self.board, partnerships=self.config.partnerships)
        apply_earnings(self.players, earnings)

        for player in self.players:
            player.clear_leg()
        self.board = self.board.with_tiles({})
        self.dice_remaining = list(self.config.dice)
        self.ledger.reset_for_new_leg()
        self.rolls = []
        self.leg += 1
        self.phase = Phase.AWAITING_ACTION
        return standings, earnings

    def _finish_race(self, player: int, roll: DieRoll, tile: Optional[Tile]) -> RaceEnded:
        """Settle the open leg, then the final wagers, and close the race."""
        self.phase = Phase.LEG_COMPLETE
        standings = tuple(self.board.rankings())
        self.winner = standings[0]
        self.loser = self.board.last_place().color

        leg_earnings = score_leg(self.players, self.board, partnerships=self.config.partnerships)
        apply_earnings(self.players, leg_earnings)

        final_earnings: dict[int, int] = {}
        if self.config.final_wagers:
            final_earnings = score_final(
                self.wagers.wagers,
                self.board,
                self.num_players,
                self.config.final_payouts,
                self.config.final_penalty,
            )
            apply_earnings(self.players, final_earnings)

        for p in self.players:
            p.clear_leg()
        self.phase = Phase.RACE_COMPLETE
        return RaceEnded(
            state=self.state,
            player=player,
            roll=roll,
            tile=tile,
            winner=self.winner,
            loser=self.loser,
            standings=standings,
            leg_earnings=leg_earnings,
            final_earnings=final_earnings,
        )
