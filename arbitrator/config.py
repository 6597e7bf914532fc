import os


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'


def _env_float(name: str, default: str = None):
    value = os.getenv(name, default)
    return float(value) if value not in (None, '') else None


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Match defaults
    DEFAULT_TIMEOUT_MS = int(os.getenv('DEFAULT_TIMEOUT_MS', '3000'))
    MIN_TIMEOUT_MS = 100
    MAX_TIMEOUT_MS = 30000
    INFINITY_MAX_TURNS = int(os.getenv('INFINITY_MAX_TURNS', '200'))
    # Seconds a human seat may stay silent; unset means wait for the UI indefinitely
    HUMAN_MOVE_TIMEOUT = _env_float('HUMAN_MOVE_TIMEOUT')

    # Tournaments
    MAX_CONCURRENT_MATCHES = int(os.getenv('MAX_CONCURRENT_MATCHES', '4'))
    SHUFFLE_PLAYERS = _env_bool('SHUFFLE_PLAYERS')
    NO_TIE_POLICY = os.getenv('NO_TIE_POLICY', 'restart')
    NO_TIE_MAX_REPLAYS = int(os.getenv('NO_TIE_MAX_REPLAYS', '3'))

    # Event stream
    SSE_IDLE_TIMEOUT = float(os.getenv('SSE_IDLE_TIMEOUT', '300'))
    SSE_SWEEP_INTERVAL = float(os.getenv('SSE_SWEEP_INTERVAL', '30'))
    SSE_KEEPALIVE_INTERVAL = float(os.getenv('SSE_KEEPALIVE_INTERVAL', '15'))
    # Frames a stream client may fall behind before it is dropped
    SSE_MAX_QUEUE = int(os.getenv('SSE_MAX_QUEUE', '1000'))
    START_EVENT_BUS = True

    # Player services
    BOT_HOST = os.getenv('BOT_HOST', 'localhost')
    BOT_HEALTH_TIMEOUT_MS = int(os.getenv('BOT_HEALTH_TIMEOUT_MS', '500'))
    DOCKER_DISCOVERY = _env_bool('DOCKER_DISCOVERY')
    DOCKER_SERVICE_MAP = {
        3001: 'random-bot-1',
        3002: 'random-bot-2',
        3005: 'random-bot-3',
        3006: 'smart-bot-2',
        3007: 'algo-bot-1',
        3008: 'algo-bot-2',
        3009: 'algo-bot-3',
        3010: 'algo-bot-4',
    }
    BOT_ROSTER = [
        {'name': 'RandomBot1', 'port': 3001, 'type': 'random'},
        {'name': 'RandomBot2', 'port': 3002, 'type': 'random'},
        {'name': 'RandomBot3', 'port': 3005, 'type': 'random'},
        {'name': 'SmartBot2', 'port': 3006, 'type': 'algorithm'},
        {'name': 'AlgoBot1', 'port': 3007, 'type': 'algorithm'},
        {'name': 'AlgoBot2', 'port': 3008, 'type': 'algorithm'},
        {'name': 'AlgoBot3', 'port': 3009, 'type': 'algorithm'},
        {'name': 'AlgoBot4', 'port': 3010, 'type': 'algorithm'},
    ]

    # Recent results kept for the replay carousel
    REPLAY_ARCHIVE_SIZE = int(os.getenv('REPLAY_ARCHIVE_SIZE', '50'))


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    START_EVENT_BUS = False
    SHUFFLE_PLAYERS = False
    MAX_CONCURRENT_MATCHES = 2
    SSE_KEEPALIVE_INTERVAL = 0.05


class ProductionConfig(Config):
    DEBUG = False
    DOCKER_DISCOVERY = _env_bool('DOCKER_DISCOVERY', 'true')


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
