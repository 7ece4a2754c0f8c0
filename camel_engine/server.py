"""
HTTP host for a single authoritative race.

A Flask JSON API that owns one ``RaceEngine`` and serialises every incoming
action through a lock, so concurrent requests from several players (or a
bot loop) reach the engine strictly one at a time. The resulting state is
returned with every response.
"""

import threading
from dataclasses import replace
from typing import Any, Optional

from flask import Flask, jsonify, request

from .actions import Action, FormPartnership, PlaceTile, PlaceWager, Roll, TakeTicket, describe
from .board import TileKind
from .config import RaceConfig
from .constants import NUM_PLAYERS
from .events import Outcome, RaceEnded, Rejected
from .ledger import WagerKind
from .policies import ExpectedValuePolicy, RandomPolicy
from .race import RaceEngine
from .randomness import NumpyRandomSource


app = Flask(__name__)


# Global state
_lock = threading.RLock()
_engine: Optional[RaceEngine] = None


class InvalidRequest(ValueError):
    """Malformed request payload."""


@app.errorhandler(InvalidRequest)
def handle_bad_request(error: InvalidRequest):
    return jsonify({"error": str(error)}), 400


def new_engine(
    num_players: int = NUM_PLAYERS,
    seed: Optional[int] = None,
    variant: str = "classic",
    partnerships: bool = False,
    names: Optional[list[str]] = None,
) -> RaceEngine:
    """Replace the hosted race with a fresh one."""
    global _engine

    if variant == "classic":
        config = RaceConfig.classic()
    elif variant == "crazy":
        config = RaceConfig.crazy_camels()
    else:
        raise InvalidRequest(f"Unknown variant: {variant}")
    if partnerships:
        config = replace(config, partnerships=True)

    try:
        engine = RaceEngine(
            config=config,
            num_players=num_players,
            source=NumpyRandomSource(seed=seed),
            player_names=names,
        )
    except ValueError as e:
        raise InvalidRequest(str(e)) from e

    with _lock:
        _engine = engine
    app.logger.info("New %s race with %d players (seed=%s)", variant, num_players, seed)
    return engine


def _current_engine() -> RaceEngine:
    if _engine is None:
        return new_engine()
    return _engine


def outcome_to_dict(outcome: Outcome) -> dict[str, Any]:
    """Convert an engine outcome to a JSON-serialisable dict."""
    result: dict[str, Any] = {
        "event": outcome.tag,
        "accepted": outcome.accepted,
        "state": outcome.state.to_dict(),
    }
    if isinstance(outcome, Rejected):
        result["reason"] = outcome.reason.value
        result["category"] = outcome.category.value
        result["detail"] = outcome.detail
        return result

    roll = getattr(outcome, "roll", None)
    if roll is not None:
        result["roll"] = {"die": roll.die, "camel": roll.camel, "steps": roll.steps}
    tile = getattr(outcome, "tile", None)
    if tile is not None:
        result["tile"] = {"space": tile.position, "type": tile.kind.value, "owner": tile.owner}
    if outcome.tag == "legEnded":
        result["standings"] = list(outcome.standings)
        result["earnings"] = {str(p): v for p, v in outcome.earnings.items()}
    if isinstance(outcome, RaceEnded):
        result["winner"] = outcome.winner
        result["loser"] = outcome.loser
        result["standings"] = list(outcome.standings)
        result["legEarnings"] = {str(p): v for p, v in outcome.leg_earnings.items()}
        result["finalEarnings"] = {str(p): v for p, v in outcome.final_earnings.items()}
    if outcome.tag == "ticketTaken":
        result["camel"] = outcome.color
        result["value"] = outcome.value
    return result


def _submit(action: Action) -> Outcome:
    """Apply one action under the host lock and log the result."""
    with _lock:
        engine = _current_engine()
        outcome = engine.apply(action)
    if outcome.accepted:
        app.logger.info("%s -> %s", describe(action), outcome.tag)
    else:
        app.logger.info("%s rejected: %s", describe(action), outcome.reason.value)
    return outcome


def _payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return data


def _int_field(data: dict[str, Any], key: str, required: bool = False) -> Optional[int]:
    value = data.get(key)
    if value is None:
        if required:
            raise InvalidRequest(f"Missing field: {key}")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Field {key} must be an integer") from None


def _str_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidRequest(f"Missing field: {key}")
    return value


@app.route('/api/new', methods=['POST'])
def new_race():
    """Start a new race."""
    data = _payload()
    num_players = _int_field(data, "numPlayers")
    names = data.get("names")
    if names is not None and (
        not isinstance(names, list) or not all(isinstance(n, str) for n in names)
    ):
        raise InvalidRequest("Field names must be a list of strings")
    engine = new_engine(
        num_players=NUM_PLAYERS if num_players is None else num_players,
        seed=_int_field(data, "seed"),
        variant=data.get("variant", "classic"),
        partnerships=bool(data.get("partnerships", False)),
        names=names,
    )
    return jsonify({"state": engine.state.to_dict()})


@app.route('/api/state', methods=['GET'])
def get_state():
    with _lock:
        state = _current_engine().state
    return jsonify({"state": state.to_dict()})


@app.route('/api/roll', methods=['POST'])
def roll_dice():
    """Take a pyramid ticket and roll."""
    data = _payload()
    outcome = _submit(Roll(player=_int_field(data, "player")))
    return jsonify(outcome_to_dict(outcome))


@app.route('/api/ticket', methods=['POST'])
def take_ticket():
    """Take a leg betting ticket."""
    data = _payload()
    outcome = _submit(TakeTicket(color=_str_field(data, "camel"), player=_int_field(data, "player")))
    return jsonify(outcome_to_dict(outcome))


@app.route('/api/tile', methods=['POST'])
def place_tile():
    """Place a desert tile."""
    data = _payload()
    try:
        kind = TileKind(data.get("type"))
    except ValueError:
        raise InvalidRequest("Field type must be 'oasis' or 'mirage'") from None
    outcome = _submit(PlaceTile(
        kind=kind,
        position=_int_field(data, "space", required=True),
        player=_int_field(data, "player"),
    ))
    return jsonify(outcome_to_dict(outcome))


@app.route('/api/wager', methods=['POST'])
def place_wager():
    """Play a final winner/loser wager card."""
    data = _payload()
    try:
        kind = WagerKind(data.get("kind"))
    except ValueError:
        raise InvalidRequest("Field kind must be 'winner' or 'loser'") from None
    outcome = _submit(PlaceWager(
        color=_str_field(data, "camel"),
        kind=kind,
        player=_int_field(data, "player"),
    ))
    return jsonify(outcome_to_dict(outcome))


@app.route('/api/partnership', methods=['POST'])
def form_partnership():
    data = _payload()
    outcome = _submit(FormPartnership(
        partner=_int_field(data, "partner", required=True),
        player=_int_field(data, "player"),
    ))
    return jsonify(outcome_to_dict(outcome))


@app.route('/api/bot-step', methods=['POST'])
def bot_step():
    """Let a bot policy take the current player's turn."""
    data = _payload()
    policy_name = data.get("policy", "random")
    seed = _int_field(data, "seed")
    if policy_name == "ev":
        policy = ExpectedValuePolicy(
            simulations=_int_field(data, "simulations") or 100, seed=seed
        )
    elif policy_name == "random":
        policy = RandomPolicy(seed=seed)
    else:
        raise InvalidRequest(f"Unknown policy: {policy_name}")

    with _lock:
        engine = _current_engine()
        action = policy.decide(engine.observe())
        outcome = engine.apply(action)
    app.logger.info("Bot %s: %s -> %s", policy_name, describe(action), outcome.tag)

    result = outcome_to_dict(outcome)
    result["action"] = describe(action)
    return jsonify(result)


def run_server(port: int = 5000, debug: bool = False, seed: Optional[int] = None):
    """Run the race host."""
    new_engine(seed=seed)
    app.logger.info("Camel race host listening on http://localhost:%d", port)
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    import sys
    run_server(port=int(sys.argv[1]) if len(sys.argv) > 1 else 5000)
