import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from shared.board import Symbol, is_valid_move
from shared.errors import ErrorKind, MoveError, MoveTimeout
from shared.events import (
    match_finished_event,
    match_started_event,
    move_event,
    move_removed_event,
)
from shared.rules import GameState, RuleMode, StandardRules, create_rules
from shared.state_machine import MatchStateMachine
from .models import GameMode, MatchConfig, MatchOutcome, MatchResult, Player
from .name_generator import generate_short_id
from .playback import speed_delay
from .validation import Outcome

logger = logging.getLogger(__name__)


@dataclass
class PendingHumanMove:
    """A match suspended until its human seat submits a move."""
    match_id: str
    player: Player
    rules: StandardRules
    ready: threading.Event = field(default_factory=threading.Event)
    position: Optional[int] = None
    cancelled: bool = False
    since: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            'matchId': self.match_id,
            'player': self.player.to_dict(),
            'board': self.rules.snapshot(),
            'turn': self.rules.turn + 1,
            'waitingSince': self.since,
        }


class MatchOrchestrator:
    """
    Runs one match to completion between two seats.

    X always moves first. A failed or illegal move ends the match immediately
    with result 'error' and the opponent as winner. Each call to ``run_match``
    owns its board, so any number of matches may run on separate threads.
    """

    def __init__(self, transport, events, infinity_max_turns: int = 200,
                 human_move_timeout: float = None):
        self.transport = transport
        self.events = events
        self.infinity_max_turns = infinity_max_turns
        self.human_move_timeout = human_move_timeout
        self._pending: Dict[str, PendingHumanMove] = {}
        self._lock = threading.Lock()

    def run_match(self, player1: Player, player2: Player, config: MatchConfig = None,
                  game_mode: GameMode = GameMode.INDIVIDUAL, match_id: str = None) -> MatchResult:
        config = config or MatchConfig()
        match_id = match_id or generate_short_id('match-')
        players = (player1.with_symbol(Symbol.X), player2.with_symbol(Symbol.O))
        rules = create_rules(config.mode, config.board_size)
        machine = MatchStateMachine()
        history: List[dict] = []
        started = time.monotonic()

        logger.info(
            f"Match {match_id}: {players[0].name} (X) vs {players[1].name} (O), "
            f"{config.board_size}x{config.board_size} {config.mode.value}"
        )
        self.events.publish(match_started_event(
            match_id,
            [p.to_dict() for p in players],
            config.board_size,
            config.mode.value,
            game_mode.value,
            speed_delay(config.speed),
        ))
        machine.transition('start')

        max_turns = self.infinity_max_turns if config.mode is RuleMode.INFINITY else None
        mover = 0

        def finish(result: MatchOutcome, winner: Optional[Player], message: str,
                   line=None) -> MatchResult:
            match_result = MatchResult(
                match_id=match_id,
                players=players,
                winner=winner,
                result=result,
                moves=rules.turn,
                duration=int((time.monotonic() - started) * 1000),
                board_size=config.board_size,
                game_mode=game_mode,
                rule_mode=config.mode,
                message=message,
                winning_line=line,
                final_board=tuple(rules.board),
                history=tuple(history),
            )
            self.events.publish(match_finished_event(match_result.to_dict()))
            logger.info(f"Match {match_id} finished: {result.value} ({message})")
            return match_result

        while True:
            player, opponent = players[mover], players[1 - mover]

            try:
                position = self._obtain_move(match_id, player, rules, config)
                machine.transition('receive_move')
                outcome = rules.apply(position, player.symbol)
            except MoveError as e:
                machine.transition('forfeit')
                rules.forfeit()
                logger.warning(f"Match {match_id}: {player.name} forfeits ({e.reason}): {e}")
                history.append({
                    'turn': rules.turn + 1,
                    'player': player.name,
                    'move': getattr(e, 'position', None),
                    'error': str(e),
                })
                return finish(MatchOutcome.ERROR, opponent, f"{player.name} forfeited: {e}")

            if outcome.evicted is not None:
                self.events.publish(move_removed_event(
                    match_id, outcome.evicted.position, outcome.evicted.symbol.value, rules.turn
                ))
            snapshot = rules.snapshot()
            self.events.publish(move_event(match_id, player.to_dict(), position, snapshot, rules.turn))
            history.append({
                'turn': rules.turn,
                'player': player.name,
                'symbol': player.symbol.value,
                'move': position,
                'removed': outcome.evicted.position if outcome.evicted else None,
                'boardAfter': snapshot,
            })

            if outcome.state is GameState.WON:
                machine.transition('win')
                return finish(MatchOutcome.WIN, player, f"{player.name} wins", outcome.winning_line)
            if outcome.state is GameState.DRAW:
                machine.transition('draw')
                return finish(MatchOutcome.DRAW, None, 'Draw')
            if max_turns is not None and rules.turn >= max_turns:
                machine.transition('draw')
                return finish(MatchOutcome.DRAW, None, f"Turn limit of {max_turns} reached")

            machine.transition('next_turn')
            mover = 1 - mover

    def _obtain_move(self, match_id: str, player: Player, rules: StandardRules,
                     config: MatchConfig) -> int:
        if player.is_human:
            return self._wait_for_human(match_id, player, rules)
        return self.transport.request_move(player, rules.snapshot(), player.symbol, config.timeout_ms)

    # ==================== Human seats ====================

    def _wait_for_human(self, match_id: str, player: Player, rules: StandardRules) -> int:
        pending = PendingHumanMove(match_id=match_id, player=player, rules=rules)
        with self._lock:
            self._pending[match_id] = pending

        logger.debug(f"Match {match_id}: waiting for {player.name}")
        try:
            pending.ready.wait(timeout=self.human_move_timeout)
        finally:
            # Once the entry is gone no submit can land, so position and
            # cancelled are final from here on
            with self._lock:
                if self._pending.get(match_id) is pending:
                    del self._pending[match_id]

        if pending.cancelled:
            raise MoveError(f"{player.name}'s match was cancelled", player=player.name)
        if pending.position is None:
            raise MoveTimeout(
                f"{player.name} did not move within {self.human_move_timeout}s", player=player.name
            )
        return pending.position

    def submit_human_move(self, match_id: str, position: int) -> Outcome:
        with self._lock:
            pending = self._pending.get(match_id)
            if pending is None:
                return Outcome.failure(f"No match {match_id} is waiting for a move", ErrorKind.NOT_FOUND)
            if not is_valid_move(pending.rules.board, position):
                return Outcome.failure(f"Cell {position} is not available")
            pending.position = position
            del self._pending[match_id]
        pending.ready.set()
        return Outcome.success({'matchId': match_id, 'position': position})

    def pending_matches(self) -> List[dict]:
        with self._lock:
            return [p.to_dict() for p in self._pending.values()]

    def cancel_pending(self) -> int:
        with self._lock:
            waiting = list(self._pending.values())
            self._pending.clear()
            for pending in waiting:
                pending.cancelled = True
        for pending in waiting:
            pending.ready.set()
        if waiting:
            logger.info(f"Cancelled {len(waiting)} matches waiting on human moves")
        return len(waiting)
