"""
Request validation for the public API.

Validators return an ``Outcome`` instead of raising so the routes can map a
failure straight onto a JSON error response.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from shared.errors import ErrorKind

UNSAFE_NAME = re.compile(r'<script|javascript:|on\w+\s*=', re.IGNORECASE)

BOARD_SIZES = ('3x3', '5x5')
RULE_MODES = ('standard', 'infinity')
SPEEDS = ('slow', 'normal', 'fast')
MIN_PORT, MAX_PORT = 3000, 9999
MIN_PLAYERS, MAX_PLAYERS = 2, 12
MAX_NAME_LENGTH = 50
MAX_HUMAN_NAME_LENGTH = 32


@dataclass
class Outcome:
    ok: bool = True
    errors: List[str] = field(default_factory=list)
    kind: Optional[ErrorKind] = None
    value: object = None

    @classmethod
    def success(cls, value=None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, errors, kind: ErrorKind = ErrorKind.VALIDATION) -> "Outcome":
        if isinstance(errors, str):
            errors = [errors]
        return cls(ok=False, errors=list(errors), kind=kind)

    @property
    def message(self) -> str:
        return '; '.join(self.errors)

    @property
    def http_status(self) -> int:
        return self.kind.http_status if self.kind else 200

    def to_dict(self) -> dict:
        return {'error': self.message, 'errors': self.errors, 'kind': self.kind.value if self.kind else None}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_name(name, label: str, max_length: int) -> Optional[str]:
    if not isinstance(name, str) or not 1 <= len(name.strip()) <= max_length:
        return f"{label} must be a string of 1-{max_length} characters"
    if UNSAFE_NAME.search(name):
        return f"{label} contains disallowed characters"
    return None


def _check_url(url) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def validate_player(player, label: str, require_endpoint: bool = True) -> List[str]:
    if not player:
        return ['Two players are required to start a match.']
    if not isinstance(player, dict):
        return [f"{label} must be an object"]

    errors = []
    is_human = player.get('isHuman', False)
    if not isinstance(is_human, bool):
        errors.append(f"{label}.isHuman must be a boolean")

    error = _check_name(player.get('name'), f"{label}.name", MAX_NAME_LENGTH)
    if error:
        errors.append(error)

    if is_human is True:
        return errors

    port, url = player.get('port'), player.get('url')
    if require_endpoint and port is None and not url:
        errors.append(f"{label} must have a name and a port or url")
    if port is not None and (not _is_int(port) or not MIN_PORT <= port <= MAX_PORT):
        errors.append(f"{label}.port must be a number between {MIN_PORT}-{MAX_PORT}")
    if url and not _check_url(url):
        errors.append(f"{label}.url must be a valid URL")
    return errors


def _validate_options(data: dict, timeout_bounds) -> List[str]:
    errors = []

    board_size = data.get('boardSize')
    if board_size is not None and board_size not in BOARD_SIZES:
        errors.append('boardSize must be 3x3 or 5x5')

    no_tie = data.get('noTie')
    if no_tie is not None and not isinstance(no_tie, bool):
        errors.append('noTie must be a boolean')

    mode = data.get('mode')
    if mode is not None and mode not in RULE_MODES:
        errors.append('mode must be standard or infinity')

    speed = data.get('speed')
    if speed is not None and speed not in SPEEDS:
        errors.append('speed must be slow, normal or fast')

    timeout_ms = data.get('timeoutMs')
    low, high = timeout_bounds
    if timeout_ms is not None and (not _is_int(timeout_ms) or not low <= timeout_ms <= high):
        errors.append(f"timeoutMs must be an integer between {low}-{high}")

    return errors


def validate_match_request(data, timeout_bounds=(100, 30000)) -> Outcome:
    if not isinstance(data, dict):
        return Outcome.failure('Request body must be a JSON object')

    errors = []
    errors += validate_player(data.get('player1'), 'player1')
    errors += validate_player(data.get('player2'), 'player2')

    if not errors and data['player1']['name'].strip() == data['player2']['name'].strip():
        errors.append('player1 and player2 must have different names')

    errors += _validate_options(data, timeout_bounds)
    return Outcome.failure(errors) if errors else Outcome.success(data)


def validate_tournament_request(data, timeout_bounds=(100, 30000)) -> Outcome:
    if not isinstance(data, dict):
        return Outcome.failure('Request body must be a JSON object')

    players = data.get('players')
    if not isinstance(players, list) or not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
        return Outcome.failure(f"players must be an array of {MIN_PLAYERS}-{MAX_PLAYERS} players")

    errors = []
    for i, player in enumerate(players):
        errors += validate_player(player, f"players[{i}]")

    if not errors:
        names = [p['name'].strip() for p in players]
        if len(set(names)) != len(names):
            errors.append('Player names must be unique')

    errors += _validate_options(data, timeout_bounds)
    return Outcome.failure(errors) if errors else Outcome.success(data)


def validate_tournament_config(data, timeout_bounds=(100, 30000)) -> Outcome:
    if not isinstance(data, dict):
        return Outcome.failure('Request body must be a JSON object')

    errors = []
    total = data.get('totalPlayers')
    if not _is_int(total) or not MIN_PLAYERS <= total <= MAX_PLAYERS:
        errors.append(f"totalPlayers must be an integer between {MIN_PLAYERS}-{MAX_PLAYERS}")

    include_random = data.get('includeRandom')
    if include_random is not None and not isinstance(include_random, bool):
        errors.append('includeRandom must be a boolean')

    human_name = data.get('humanName')
    if human_name is not None:
        error = _check_name(human_name, 'humanName', MAX_HUMAN_NAME_LENGTH)
        if error:
            errors.append(error)

    errors += _validate_options(data, timeout_bounds)
    return Outcome.failure(errors) if errors else Outcome.success(data)


def validate_move_request(data) -> Outcome:
    if not isinstance(data, dict):
        return Outcome.failure('Request body must be a JSON object')
    position = data.get('position')
    if not _is_int(position) or position < 0:
        return Outcome.failure('position must be a non-negative integer')
    return Outcome.success(position)
