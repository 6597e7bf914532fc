import logging
import threading
from collections import deque
from typing import List, Optional

from shared.events import Event, MATCH_TERMINAL_EVENTS
from .models import Tournament
from .playback import next_game_index

logger = logging.getLogger(__name__)


class TournamentRegistry:
    """
    Process-local record of tournaments and recently finished matches.

    - Tournaments are stored by id as soon as their bracket exists, so
      progress is visible while rounds are still being played
    - Finished match results are kept in a bounded archive for replays
    """

    def __init__(self, archive_size: int = 50):
        self._tournaments = {}
        self._archive = deque(maxlen=archive_size)
        self._lock = threading.Lock()

    def save(self, tournament: Tournament) -> Tournament:
        with self._lock:
            self._tournaments[tournament.tournament_id] = tournament
        logger.debug(f"Saved tournament {tournament.tournament_id}")
        return tournament

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        with self._lock:
            return self._tournaments.get(tournament_id)

    def list_tournaments(self, status: str = None, limit: int = 50, offset: int = 0) -> List[Tournament]:
        """Newest first, optionally filtered by status."""
        with self._lock:
            tournaments = list(self._tournaments.values())

        if status:
            tournaments = [t for t in tournaments if t.status.value == status]

        tournaments.sort(key=lambda t: t.created_at, reverse=True)
        return tournaments[offset:offset + limit]

    # ==================== Replay archive ====================

    def handle_event(self, event: Event):
        if event.type in MATCH_TERMINAL_EVENTS and event.data.get('result'):
            self.archive_result(event.data['result'])

    def archive_result(self, result: dict):
        with self._lock:
            self._archive.append(result)

    def recent_results(self) -> List[dict]:
        with self._lock:
            return list(self._archive)

    def replay(self, index: int = 0) -> dict:
        """Archived result at ``index`` plus the index the carousel shows next."""
        results = self.recent_results()
        if not results:
            return {'game': None, 'index': 0, 'nextIndex': 0, 'total': 0}
        index = index % len(results)
        return {
            'game': results[index],
            'index': index,
            'nextIndex': next_game_index(index, len(results)),
            'total': len(results),
        }
