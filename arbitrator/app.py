import atexit
import logging
import os
import time

from flask import Flask, jsonify

from .config import config
from .event_bus import EventBus
from .match_events import MatchEvents
from .match_orchestrator import MatchOrchestrator
from .statistics import StatisticsAggregator
from .tournament_orchestrator import TournamentOrchestrator
from .tournament_registry import TournamentRegistry
from .transport import PlayerTransport

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """Application factory for the arbitrator service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    # Initialize services
    event_bus = EventBus(
        idle_timeout=app.config['SSE_IDLE_TIMEOUT'],
        sweep_interval=app.config['SSE_SWEEP_INTERVAL']
    )
    events = MatchEvents(event_bus)
    registry = TournamentRegistry(archive_size=app.config['REPLAY_ARCHIVE_SIZE'])
    statistics = StatisticsAggregator()
    events.subscribe(statistics.handle_event)
    events.subscribe(registry.handle_event)

    transport = PlayerTransport(
        docker_discovery=app.config['DOCKER_DISCOVERY'],
        service_map=app.config['DOCKER_SERVICE_MAP']
    )
    matches = MatchOrchestrator(
        transport,
        events,
        infinity_max_turns=app.config['INFINITY_MAX_TURNS'],
        human_move_timeout=app.config['HUMAN_MOVE_TIMEOUT']
    )
    tournaments = TournamentOrchestrator(
        matches,
        events,
        registry=registry,
        tie_policy=app.config['NO_TIE_POLICY'],
        max_replays=app.config['NO_TIE_MAX_REPLAYS'],
        max_concurrent=app.config['MAX_CONCURRENT_MATCHES'],
        shuffle=app.config['SHUFFLE_PLAYERS']
    )

    if app.config['START_EVENT_BUS']:
        event_bus.start()
        atexit.register(shutdown, matches, event_bus)

    # Store services on app for access in routes
    app.started_at = time.time()
    app.event_bus = event_bus
    app.events = events
    app.registry = registry
    app.statistics = statistics
    app.transport = transport
    app.matches = matches
    app.tournaments = tournaments

    from .routes import health, match, stats, stream, tournament
    app.register_blueprint(match.bp)
    app.register_blueprint(tournament.bp)
    app.register_blueprint(stream.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(stats.bp)

    register_error_handlers(app)

    return app


def shutdown(matches: MatchOrchestrator, event_bus: EventBus):
    """Release waiting human seats and close every open stream."""
    matches.cancel_pending()
    event_bus.close_all()


def register_error_handlers(app: Flask):

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Unhandled error while serving request")
        return jsonify({'error': 'Internal server error'}), 500
