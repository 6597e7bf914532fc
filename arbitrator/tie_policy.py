import logging
from dataclasses import replace

from shared.rules import RuleMode
from .models import GameMode, MatchConfig, MatchResult, Player

logger = logging.getLogger(__name__)


class NoReplay:
    """The first result stands, draws included."""

    name = 'none'

    def play(self, orchestrator, player1: Player, player2: Player, config: MatchConfig,
             game_mode: GameMode = GameMode.INDIVIDUAL, match_id: str = None) -> MatchResult:
        return orchestrator.run_match(player1, player2, config, game_mode, match_id)


class RestartPolicy(NoReplay):
    """On a draw, replay a fresh match with symbols swapped, up to ``max_replays`` times."""

    name = 'restart'

    def __init__(self, max_replays: int = 3):
        self.max_replays = max_replays

    def replay_config(self, config: MatchConfig) -> MatchConfig:
        return config

    def play(self, orchestrator, player1, player2, config, game_mode=GameMode.INDIVIDUAL,
             match_id=None):
        result = orchestrator.run_match(player1, player2, config, game_mode, match_id)
        first, second = player1, player2
        replays = 0
        while result.is_draw and replays < self.max_replays:
            replays += 1
            first, second = second, first
            logger.info(
                f"Match {result.match_id} drawn, replay {replays}/{self.max_replays} "
                f"with {first.name} as X"
            )
            replay_id = f"{match_id}-replay{replays}" if match_id else None
            result = orchestrator.run_match(first, second, self.replay_config(config),
                                            game_mode, replay_id)
        return result


class SuddenDeathPolicy(RestartPolicy):
    """On a draw, replay once with symbols swapped under infinity rules."""

    name = 'sudden_death'

    def __init__(self):
        super().__init__(max_replays=1)

    def replay_config(self, config: MatchConfig) -> MatchConfig:
        return replace(config, mode=RuleMode.INFINITY)


def policy_for(no_tie: bool, name: str = 'restart', max_replays: int = 3):
    if not no_tie:
        return NoReplay()
    if name == SuddenDeathPolicy.name:
        return SuddenDeathPolicy()
    if name == NoReplay.name:
        return NoReplay()
    return RestartPolicy(max_replays=max_replays)
