from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from shared.board import Symbol, parse_board_size
from shared.rules import RuleMode


# ==================== Players ====================

@dataclass(frozen=True)
class LocalBot:
    host: str
    port: int
    protocol: str = 'http'

    def to_dict(self) -> dict:
        return {'host': self.host, 'port': self.port, 'protocol': self.protocol}


@dataclass(frozen=True)
class RemoteBot:
    url: str

    def to_dict(self) -> dict:
        return {'url': self.url}


@dataclass(frozen=True)
class HumanSeat:
    def to_dict(self) -> dict:
        return {}


Endpoint = Union[LocalBot, RemoteBot, HumanSeat]


@dataclass(frozen=True)
class Player:
    name: str
    endpoint: Endpoint
    player_type: str = 'algorithm'
    symbol: Optional[Symbol] = None

    @property
    def is_human(self) -> bool:
        return isinstance(self.endpoint, HumanSeat)

    def with_symbol(self, symbol: Symbol) -> "Player":
        return replace(self, symbol=symbol)

    def to_dict(self) -> dict:
        data = {
            'name': self.name,
            'type': self.player_type,
            'isHuman': self.is_human,
            'symbol': self.symbol.value if self.symbol else None,
        }
        data.update(self.endpoint.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: dict, default_host: str = 'localhost') -> "Player":
        """Build a player from a request payload; validation happens upstream."""
        name = data['name'].strip()
        if data.get('isHuman'):
            return cls(name=name, endpoint=HumanSeat(), player_type='human')

        if data.get('url'):
            endpoint = RemoteBot(url=data['url'].strip().rstrip('/'))
        else:
            endpoint = LocalBot(
                host=(data.get('host') or default_host).strip(),
                port=int(data['port']),
                protocol=data.get('protocol') or 'http',
            )
        return cls(name=name, endpoint=endpoint, player_type=data.get('type', 'algorithm'))


# ==================== Matches ====================

class GameMode(str, Enum):
    INDIVIDUAL = "individual"
    TOURNAMENT = "tournament"


class MatchOutcome(str, Enum):
    PENDING = "pending"
    WIN = "win"
    DRAW = "draw"
    ERROR = "error"


@dataclass(frozen=True)
class MatchConfig:
    timeout_ms: int = 3000
    no_tie: bool = False
    board_size: int = 3
    mode: RuleMode = RuleMode.STANDARD
    speed: str = 'normal'

    @classmethod
    def from_request(cls, data: dict, default_timeout_ms: int = 3000) -> "MatchConfig":
        return cls(
            timeout_ms=int(data.get('timeoutMs') or default_timeout_ms),
            no_tie=bool(data.get('noTie', False)),
            board_size=parse_board_size(data.get('boardSize') or '3x3'),
            mode=RuleMode(data.get('mode') or RuleMode.STANDARD.value),
            speed=data.get('speed') or 'normal',
        )

    def to_dict(self) -> dict:
        return {
            'timeoutMs': self.timeout_ms,
            'noTie': self.no_tie,
            'boardSize': f"{self.board_size}x{self.board_size}",
            'mode': self.mode.value,
            'speed': self.speed,
        }


@dataclass(frozen=True)
class MatchResult:
    match_id: str
    players: Tuple[Player, ...]
    winner: Optional[Player]
    result: MatchOutcome
    moves: int
    duration: int
    board_size: int
    game_mode: GameMode
    rule_mode: RuleMode
    message: str = ''
    winning_line: Optional[Tuple[int, ...]] = None
    final_board: Tuple[int, ...] = ()
    history: Tuple[dict, ...] = ()

    @property
    def is_draw(self) -> bool:
        return self.result is MatchOutcome.DRAW

    def to_dict(self) -> dict:
        return {
            'matchId': self.match_id,
            'players': [p.to_dict() for p in self.players],
            'winner': self.winner.to_dict() if self.winner else None,
            'result': self.result.value,
            'moves': self.moves,
            'duration': self.duration,
            'boardSize': self.board_size,
            'gameMode': self.game_mode.value,
            'ruleMode': self.rule_mode.value,
            'message': self.message,
            'winningLine': list(self.winning_line) if self.winning_line else None,
            'finalBoard': list(self.final_board),
            'history': list(self.history),
        }


# ==================== Tournaments ====================

class RoundStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Match:
    match_id: str
    player1: Optional[Player] = None
    player2: Optional[Player] = None
    winner: Optional[Player] = None
    result: MatchOutcome = MatchOutcome.PENDING
    status: RoundStatus = RoundStatus.PENDING
    bye: bool = False
    match_result: Optional[MatchResult] = None

    @property
    def is_terminal(self) -> bool:
        return self.result is not MatchOutcome.PENDING

    @property
    def advancing(self) -> Optional[Player]:
        """Player moving on: the winner, or the higher seed after an unbroken draw."""
        if not self.is_terminal:
            return None
        return self.winner or self.player1

    @property
    def loser(self) -> Optional[Player]:
        if self.winner is None or self.bye:
            return None
        return self.player2 if self.winner.name == self.player1.name else self.player1

    def to_dict(self) -> dict:
        return {
            'matchId': self.match_id,
            'player1': self.player1.to_dict() if self.player1 else None,
            'player2': self.player2.to_dict() if self.player2 else None,
            'winner': self.winner.to_dict() if self.winner else None,
            'result': self.result.value,
            'status': self.status.value,
            'bye': self.bye,
            'details': self.match_result.to_dict() if self.match_result else None,
        }


@dataclass
class Round:
    round_number: int
    matches: List[Match] = field(default_factory=list)
    status: RoundStatus = RoundStatus.PENDING

    @property
    def is_complete(self) -> bool:
        return bool(self.matches) and all(m.is_terminal for m in self.matches)

    def to_dict(self) -> dict:
        return {
            'roundNumber': self.round_number,
            'status': self.status.value,
            'matches': [m.to_dict() for m in self.matches],
        }


@dataclass
class Tournament:
    tournament_id: str
    players: List[Player]
    config: MatchConfig
    bracket: List[Round] = field(default_factory=list)
    total_matches: int = 0
    completed_matches: int = 0
    winner: Optional[Player] = None
    runner_up: Optional[Player] = None
    status: RoundStatus = RoundStatus.PENDING
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat() + "Z")
    completed_at: Optional[str] = None

    @property
    def current_round(self) -> Optional[Round]:
        for rnd in self.bracket:
            if rnd.status is not RoundStatus.COMPLETED:
                return rnd
        return None

    @property
    def progress(self) -> int:
        if not self.total_matches:
            return 0
        return round(self.completed_matches / self.total_matches * 100)

    def to_dict(self) -> dict:
        return {
            'tournamentId': self.tournament_id,
            'status': self.status.value,
            'players': [p.to_dict() for p in self.players],
            'config': self.config.to_dict(),
            'bracket': [r.to_dict() for r in self.bracket],
            'totalRounds': len(self.bracket),
            'totalMatches': self.total_matches,
            'completedMatches': self.completed_matches,
            'progress': self.progress,
            'winner': self.winner.to_dict() if self.winner else None,
            'runnerUp': self.runner_up.to_dict() if self.runner_up else None,
            'createdAt': self.created_at,
            'completedAt': self.completed_at,
        }
