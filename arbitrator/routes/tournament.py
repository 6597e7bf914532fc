import logging

from flask import Blueprint, current_app, jsonify, request

from arbitrator.models import MatchConfig, Player
from arbitrator.tournament_orchestrator import build_player_list
from arbitrator.validation import validate_tournament_config, validate_tournament_request

logger = logging.getLogger(__name__)

bp = Blueprint('tournament', __name__)


def timeout_bounds():
    return current_app.config['MIN_TIMEOUT_MS'], current_app.config['MAX_TIMEOUT_MS']


def run_tournament(players, data):
    config = MatchConfig.from_request(data, current_app.config['DEFAULT_TIMEOUT_MS'])
    try:
        tournament = current_app.tournaments.run_tournament(players, config)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception:
        logger.exception("Tournament faulted")
        return jsonify({'error': 'Internal server error'}), 500
    return jsonify(tournament.to_dict())


@bp.route('/api/tournament', methods=['POST'])
def start_tournament():
    """Run a tournament over an explicit player list and return the final bracket."""
    data = request.get_json(silent=True)
    outcome = validate_tournament_request(data, timeout_bounds())
    if not outcome.ok:
        return jsonify(outcome.to_dict()), outcome.http_status

    host = current_app.config['BOT_HOST']
    players = [Player.from_dict(p, default_host=host) for p in data['players']]
    return run_tournament(players, data)


@bp.route('/api/tournament/config', methods=['POST'])
def start_configured_tournament():
    """Run a tournament over a generated seat list (human, random bot, numbered bots)."""
    data = request.get_json(silent=True)
    outcome = validate_tournament_config(data, timeout_bounds())
    if not outcome.ok:
        return jsonify(outcome.to_dict()), outcome.http_status

    try:
        players = build_player_list(
            data['totalPlayers'],
            include_random=data.get('includeRandom', False),
            human_name=data.get('humanName'),
            host=current_app.config['BOT_HOST']
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return run_tournament(players, data)


@bp.route('/api/tournaments')
def list_tournaments():
    status = request.args.get('status')
    limit = request.args.get('limit', 50, type=int)
    offset = request.args.get('offset', 0, type=int)

    tournaments = current_app.registry.list_tournaments(status=status, limit=limit, offset=offset)
    return jsonify({
        'tournaments': [t.to_dict() for t in tournaments],
        'count': len(tournaments)
    })


@bp.route('/api/tournaments/<tournament_id>')
def get_tournament(tournament_id):
    tournament = current_app.registry.get_tournament(tournament_id)
    if not tournament:
        return jsonify({'error': 'Tournament not found'}), 404
    return jsonify(tournament.to_dict())
