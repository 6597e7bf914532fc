"""
Pytest configuration and fixtures for arbitrator tests.
"""
import os
import sys
import threading
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from arbitrator.app import create_app
from arbitrator.match_orchestrator import MatchOrchestrator
from arbitrator.models import (
    GameMode,
    HumanSeat,
    LocalBot,
    MatchConfig,
    MatchOutcome,
    MatchResult,
    Player,
)


class ScriptedTransport:
    """
    Stand-in for PlayerTransport.

    Each player plays its scripted positions in order, then the first empty
    cell. A player listed in ``failures`` raises that error instead.
    """

    def __init__(self, scripts=None, failures=None):
        self.scripts = {name: list(moves) for name, moves in (scripts or {}).items()}
        self.failures = failures or {}
        self.calls = []

    def request_move(self, player, board, symbol, timeout_ms):
        self.calls.append((player.name, list(board), symbol, timeout_ms))
        if player.name in self.failures:
            raise self.failures[player.name]
        script = self.scripts.get(player.name)
        if script:
            return script.pop(0)
        return board.index(0)


class RecordingEvents:
    """Collects published events in order."""

    def __init__(self):
        self.published = []

    def publish(self, event):
        self.published.append(event)

    @property
    def names(self):
        return [e.name for e in self.published]

    def of_type(self, name):
        return [e for e in self.published if e.name == name]


def make_bot(name, port=3001, player_type='algorithm'):
    return Player(name=name, endpoint=LocalBot('localhost', port), player_type=player_type)


def make_human(name='Alice'):
    return Player(name=name, endpoint=HumanSeat(), player_type='human')


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app('testing')
    yield app
    app.matches.cancel_pending()
    app.event_bus.close_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def fake_transport(app):
    """Swap the app's bot transport for a scripted one."""
    transport = ScriptedTransport()
    app.matches.transport = transport
    return transport


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def orchestrator(transport, events):
    return MatchOrchestrator(transport, events, infinity_max_turns=30)


@pytest.fixture
def bots():
    return [make_bot(f"Bot{i + 1}", 3002 + i) for i in range(12)]


@pytest.fixture
def default_config():
    return MatchConfig(timeout_ms=500)


@pytest.fixture
def bot_factory():
    return make_bot


@pytest.fixture
def human_factory():
    return make_human


class StubMatches:
    """
    Stand-in for MatchOrchestrator returning canned results.

    ``decide(player1, player2, config)`` returns 'win' (player1 wins),
    'draw' or 'fault' (raises). Every match is won by player1 by default.
    """

    def __init__(self, decide=None):
        self.decide = decide or (lambda p1, p2, config: 'win')
        self.calls = []
        self._lock = threading.Lock()

    def run_match(self, player1, player2, config=None, game_mode=GameMode.INDIVIDUAL, match_id=None):
        config = config or MatchConfig()
        with self._lock:
            self.calls.append((player1.name, player2.name, config.mode, match_id))
        outcome = self.decide(player1, player2, config)
        if outcome == 'fault':
            raise RuntimeError(f"{player1.name} vs {player2.name} crashed")
        return MatchResult(
            match_id=match_id or 'stub',
            players=(player1, player2),
            winner=player1 if outcome == 'win' else None,
            result=MatchOutcome.WIN if outcome == 'win' else MatchOutcome.DRAW,
            moves=9 if outcome == 'draw' else 5,
            duration=10,
            board_size=config.board_size,
            game_mode=game_mode,
            rule_mode=config.mode,
        )


@pytest.fixture
def stub_matches():
    return StubMatches()


@pytest.fixture
def stub_matches_factory():
    return StubMatches
