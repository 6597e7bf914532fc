from flask import Blueprint, current_app, jsonify, request

bp = Blueprint('stats', __name__)


@bp.route('/api/statistics')
def get_statistics():
    return jsonify(current_app.statistics.get_stats())


@bp.route('/api/statistics', methods=['DELETE'])
def reset_statistics():
    current_app.statistics.reset_stats()
    return jsonify({'message': 'Statistics reset', 'stats': current_app.statistics.get_stats()})


@bp.route('/api/replays')
def replays():
    """Recently finished matches, one at a time, for the replay carousel."""
    index = request.args.get('index', 0, type=int)
    if index < 0:
        return jsonify({'error': 'index must be a non-negative integer'}), 400
    return jsonify(current_app.registry.replay(index))
