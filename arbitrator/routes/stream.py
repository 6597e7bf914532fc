from flask import Blueprint, Response, current_app, jsonify

from arbitrator.event_bus import StreamChannel

bp = Blueprint('stream', __name__)


@bp.route('/api/stream')
def event_stream():
    """Live match and tournament events as text/event-stream."""
    channel = StreamChannel(
        keepalive_interval=current_app.config['SSE_KEEPALIVE_INTERVAL'],
        max_queue=current_app.config['SSE_MAX_QUEUE']
    )
    current_app.event_bus.add_connection(channel)

    return Response(
        channel.stream(),
        status=channel.status,
        mimetype='text/event-stream',
        headers=channel.headers
    )


@bp.route('/api/stream/status')
def stream_status():
    return jsonify(current_app.event_bus.get_metrics())
