import logging

from flask import Blueprint, current_app, jsonify, request

from arbitrator.models import GameMode, MatchConfig, Player
from arbitrator.tie_policy import policy_for
from arbitrator.validation import validate_match_request, validate_move_request

logger = logging.getLogger(__name__)

bp = Blueprint('match', __name__)


def timeout_bounds():
    return current_app.config['MIN_TIMEOUT_MS'], current_app.config['MAX_TIMEOUT_MS']


@bp.route('/api/match', methods=['POST'])
def start_match():
    """Play one match to completion and return its result."""
    data = request.get_json(silent=True)
    outcome = validate_match_request(data, timeout_bounds())
    if not outcome.ok:
        return jsonify(outcome.to_dict()), outcome.http_status

    matches = getattr(current_app, 'matches', None)
    if matches is None:
        return jsonify({'error': 'Match orchestrator unavailable'}), 500

    host = current_app.config['BOT_HOST']
    player1 = Player.from_dict(data['player1'], default_host=host)
    player2 = Player.from_dict(data['player2'], default_host=host)
    config = MatchConfig.from_request(data, current_app.config['DEFAULT_TIMEOUT_MS'])
    policy = policy_for(
        config.no_tie,
        current_app.config['NO_TIE_POLICY'],
        current_app.config['NO_TIE_MAX_REPLAYS']
    )

    try:
        result = policy.play(matches, player1, player2, config, GameMode.INDIVIDUAL)
    except Exception:
        logger.exception(f"Match between {player1.name} and {player2.name} faulted")
        return jsonify({'error': 'Internal server error'}), 500

    return jsonify(result.to_dict())


@bp.route('/api/match/<match_id>/move', methods=['POST'])
def submit_move(match_id):
    """Deliver a human player's move to a waiting match."""
    outcome = validate_move_request(request.get_json(silent=True))
    if not outcome.ok:
        return jsonify(outcome.to_dict()), outcome.http_status

    outcome = current_app.matches.submit_human_move(match_id, outcome.value)
    if not outcome.ok:
        return jsonify(outcome.to_dict()), outcome.http_status

    return jsonify({'accepted': True, **outcome.value})


@bp.route('/api/matches/pending')
def pending_matches():
    return jsonify({'matches': current_app.matches.pending_matches()})


@bp.route('/api/bots/available')
def available_bots():
    """Check the configured bot roster."""
    bots = current_app.transport.discover(
        current_app.config['BOT_ROSTER'],
        default_host=current_app.config['BOT_HOST'],
        timeout_ms=current_app.config['BOT_HEALTH_TIMEOUT_MS']
    )
    return jsonify({
        'bots': bots,
        'total': len(bots),
        'online': sum(1 for b in bots if b['status'] == 'healthy'),
    })
