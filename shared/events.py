from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import json


class EventType(str, Enum):
    # Stream lifecycle
    CONNECTION = "connection"

    # Match lifecycle
    MATCH_STARTED = "match.start"
    MOVE = "move"
    MOVE_REMOVED = "move.removed"
    WIN = "win"
    DRAW = "draw"
    ERROR = "error"

    # Tournament lifecycle
    TOURNAMENT_STARTED = "tournament.started"
    ROUND_STARTED = "round.started"
    ROUND_COMPLETED = "round.completed"
    TOURNAMENT_COMPLETED = "tournament.completed"


MATCH_TERMINAL_EVENTS = (EventType.WIN, EventType.DRAW, EventType.ERROR)


@dataclass
class Event:
    type: EventType
    match_id: Optional[str] = None
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}

    @property
    def name(self) -> str:
        return self.type.value if isinstance(self.type, EventType) else self.type

    def payload(self) -> dict:
        """Wire payload: the event data plus its timestamp and match id."""
        payload = dict(self.data)
        payload.setdefault("timestamp", self.timestamp)
        if self.match_id is not None:
            payload.setdefault("matchId", self.match_id)
        return payload

    def to_dict(self) -> dict:
        return {
            "type": self.name,
            "match_id": self.match_id,
            "timestamp": self.timestamp,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            type=EventType(data["type"]) if data["type"] in [e.value for e in EventType] else data["type"],
            match_id=data.get("match_id"),
            timestamp=data.get("timestamp"),
            data=data.get("data", {})
        )

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        return cls.from_dict(json.loads(json_str))


def match_started_event(match_id: str, players: List[dict], board_size: int,
                        rule_mode: str, game_mode: str, delay_ms: int) -> Event:
    return Event(
        type=EventType.MATCH_STARTED,
        match_id=match_id,
        data={
            "players": players,
            "boardSize": board_size,
            "ruleMode": rule_mode,
            "gameMode": game_mode,
            "delayMs": delay_ms
        }
    )


def move_event(match_id: str, player: dict, position: int, board: List[int], turn: int) -> Event:
    return Event(
        type=EventType.MOVE,
        match_id=match_id,
        data={
            "player": player,
            "move": position,
            "board": board,
            "turn": turn
        }
    )


def move_removed_event(match_id: str, position: int, symbol: str, turn: int) -> Event:
    return Event(
        type=EventType.MOVE_REMOVED,
        match_id=match_id,
        data={
            "position": position,
            "symbol": symbol,
            "turn": turn
        }
    )


def match_finished_event(result: dict) -> Event:
    """Terminal event (win, draw or error) carrying the full match result."""
    event_type = {
        "win": EventType.WIN,
        "draw": EventType.DRAW,
    }.get(result.get("result"), EventType.ERROR)
    return Event(
        type=event_type,
        match_id=result.get("matchId"),
        data={
            "result": result,
            "winner": result.get("winner"),
            "message": result.get("message")
        }
    )


def tournament_started_event(tournament: dict) -> Event:
    return Event(
        type=EventType.TOURNAMENT_STARTED,
        data={"tournament": tournament}
    )


def round_started_event(tournament_id: str, round_num: int, matches_count: int) -> Event:
    return Event(
        type=EventType.ROUND_STARTED,
        data={
            "tournamentId": tournament_id,
            "round": round_num,
            "matchesCount": matches_count
        }
    )


def round_completed_event(tournament_id: str, round_num: int, advancing: List[str]) -> Event:
    return Event(
        type=EventType.ROUND_COMPLETED,
        data={
            "tournamentId": tournament_id,
            "round": round_num,
            "advancing": advancing
        }
    )


def tournament_completed_event(tournament: dict) -> Event:
    return Event(
        type=EventType.TOURNAMENT_COMPLETED,
        data={
            "tournament": tournament,
            "winner": tournament.get("winner"),
            "runnerUp": tournament.get("runnerUp")
        }
    )
