import copy
import logging
import threading
from collections.abc import Mapping
from numbers import Number

from shared.events import Event, MATCH_TERMINAL_EVENTS

logger = logging.getLogger(__name__)


def _empty_stats() -> dict:
    return {
        'totalGames': 0,
        'wins': {},
        'winsByType': {
            'algorithm': 0,
            'human': 0,
            'random': 0,
        },
        'draws': 0,
        'gamesByBoardSize': {
            '3x3': 0,
            '5x5': 0,
        },
        'gamesByMode': {
            'individual': 0,
            'tournament': 0,
        },
        'totalDuration': 0,
        'averageDuration': 0,
        'averageMoves': 0,
    }


def _positive(value) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool) and value > 0


class StatisticsAggregator:
    """
    Running counters over completed matches.

    Malformed payloads are ignored rather than rejected: recording a match is
    a side channel and never fails the request that produced it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stats = _empty_stats()

    def record_match(self, result) -> bool:
        if hasattr(result, 'to_dict') and not isinstance(result, Mapping):
            result = result.to_dict()
        if not isinstance(result, Mapping):
            return False

        players = result.get('players')
        if not isinstance(players, (list, tuple)) or not players:
            return False

        with self._lock:
            stats = self._stats
            stats['totalGames'] += 1
            total = stats['totalGames']

            winner = result.get('winner')
            if isinstance(winner, Mapping) and winner.get('name'):
                name = winner['name']
                stats['wins'][name] = stats['wins'].get(name, 0) + 1
                winner_type = winner.get('type') or 'algorithm'
                if winner_type in stats['winsByType']:
                    stats['winsByType'][winner_type] += 1
            else:
                stats['draws'] += 1

            size = result.get('boardSize')
            board_key = f"{size}x{size}" if size else '3x3'
            if board_key in stats['gamesByBoardSize']:
                stats['gamesByBoardSize'][board_key] += 1

            mode = result.get('gameMode') or 'individual'
            if mode in stats['gamesByMode']:
                stats['gamesByMode'][mode] += 1

            duration = result.get('duration')
            if _positive(duration):
                stats['totalDuration'] += duration
                stats['averageDuration'] = stats['totalDuration'] / total

            moves = result.get('moves')
            if _positive(moves):
                stats['averageMoves'] = (stats['averageMoves'] * (total - 1) + moves) / total

        return True

    def get_stats(self) -> dict:
        with self._lock:
            return copy.deepcopy(self._stats)

    def reset_stats(self):
        with self._lock:
            self._stats = _empty_stats()
        logger.info("Statistics reset")

    def handle_event(self, event: Event):
        """Listener hook: record every finished match."""
        if event.type in MATCH_TERMINAL_EVENTS:
            self.record_match(event.data.get('result'))
