import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import List, Optional, Set

from shared.events import (
    round_completed_event,
    round_started_event,
    tournament_completed_event,
    tournament_started_event,
)
from .models import (
    GameMode,
    HumanSeat,
    LocalBot,
    Match,
    MatchConfig,
    MatchOutcome,
    MatchResult,
    Player,
    Round,
    RoundStatus,
    Tournament,
)
from .name_generator import generate_match_name, generate_tournament_id
from .tie_policy import policy_for

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 12
RANDOM_BOT_PORT = 3001
FIRST_BOT_PORT = 3002


def build_player_list(total_players: int, include_random: bool = False,
                      human_name: str = None, host: str = 'localhost') -> List[Player]:
    """
    Seat list for a generated tournament: the human first, then the random
    bot, then numbered bots on consecutive ports.
    """
    if not MIN_PLAYERS <= total_players <= MAX_PLAYERS:
        raise ValueError(f"totalPlayers must be between {MIN_PLAYERS}-{MAX_PLAYERS}")

    players = []
    if human_name:
        players.append(Player(name=human_name.strip(), endpoint=HumanSeat(), player_type='human'))
    if include_random:
        players.append(Player(
            name='Random', endpoint=LocalBot(host, RANDOM_BOT_PORT), player_type='random'
        ))

    bot_number = 1
    while len(players) < total_players:
        players.append(Player(
            name=f"Bot{bot_number}",
            endpoint=LocalBot(host, FIRST_BOT_PORT + bot_number - 1),
        ))
        bot_number += 1
    return players


def round_sizes(player_count: int) -> List[int]:
    """Entrants per round; an odd round sends one entrant through on a bye."""
    sizes = []
    entrants = player_count
    while entrants > 1:
        sizes.append(entrants)
        entrants = (entrants + 1) // 2
    return sizes


def total_matches(player_count: int) -> int:
    # Every played match eliminates exactly one player
    return max(player_count - 1, 0)


class TournamentOrchestrator:
    """
    Single-elimination tournaments over the match orchestrator.

    Matches inside a round run concurrently on a thread pool; their results
    are applied here one at a time, so bracket state is only mutated by the
    thread running the tournament.
    """

    def __init__(self, matches, events, registry=None, tie_policy: str = 'restart',
                 max_replays: int = 3, max_concurrent: int = 4, shuffle: bool = False):
        self.matches = matches
        self.events = events
        self.registry = registry
        self.tie_policy = tie_policy
        self.max_replays = max_replays
        self.max_concurrent = max(1, max_concurrent)
        self.shuffle = shuffle

    # ==================== Bracket ====================

    def create_tournament(self, players: List[Player], config: MatchConfig = None) -> Tournament:
        config = config or MatchConfig()
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(f"A tournament needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
        names = [p.name for p in players]
        if len(set(names)) != len(names):
            raise ValueError("Player names must be unique within a tournament")

        seeded = list(players)
        if self.shuffle:
            random.shuffle(seeded)

        tournament = Tournament(
            tournament_id=generate_tournament_id(),
            players=seeded,
            config=config,
            total_matches=total_matches(len(seeded)),
        )
        for number, entrants in enumerate(round_sizes(len(seeded)), start=1):
            tournament.bracket.append(self._placeholder_round(number, entrants))
        self._seat_round(tournament.bracket[0], seeded)

        if self.registry is not None:
            self.registry.save(tournament)
        logger.info(
            f"Created tournament {tournament.tournament_id} with {len(seeded)} players, "
            f"{len(tournament.bracket)} rounds"
        )
        return tournament

    def _placeholder_round(self, number: int, entrants: int) -> Round:
        rnd = Round(round_number=number)
        slot = 1
        if entrants % 2:
            rnd.matches.append(Match(match_id=generate_match_name(number, slot), bye=True))
            slot += 1
        for _ in range(entrants // 2):
            rnd.matches.append(Match(match_id=generate_match_name(number, slot)))
            slot += 1
        return rnd

    def _seat_round(self, rnd: Round, entrants: List[Player], rested: Set[str] = frozenset()):
        queue = list(entrants)
        for match in rnd.matches:
            if match.bye:
                # Highest seed that has not sat out a round yet, else the top seed
                index = next((i for i, p in enumerate(queue) if p.name not in rested), 0)
                match.player1 = queue.pop(index)
                match.winner = match.player1
                match.result = MatchOutcome.WIN
                match.status = RoundStatus.COMPLETED
            else:
                match.player1 = queue.pop(0)
                match.player2 = queue.pop(0)

    # ==================== Play ====================

    def run_tournament(self, players: List[Player], config: MatchConfig = None) -> Tournament:
        tournament = self.create_tournament(players, config)
        return self.play(tournament)

    def play(self, tournament: Tournament) -> Tournament:
        tournament.status = RoundStatus.IN_PROGRESS
        self.events.publish(tournament_started_event(tournament.to_dict()))

        for index, rnd in enumerate(tournament.bracket):
            advancing = self._play_round(tournament, rnd)
            if index + 1 < len(tournament.bracket):
                self._seat_round(tournament.bracket[index + 1], advancing, self._rested(tournament))

        final = tournament.bracket[-1].matches[-1]
        if final.winner is not None:
            tournament.winner = final.winner
            tournament.runner_up = final.loser

        tournament.status = RoundStatus.COMPLETED
        tournament.completed_at = datetime.utcnow().isoformat() + "Z"
        self.events.publish(tournament_completed_event(tournament.to_dict()))
        logger.info(
            f"Tournament {tournament.tournament_id} completed, winner: "
            f"{tournament.winner.name if tournament.winner else 'none'}"
        )
        return tournament

    def _play_round(self, tournament: Tournament, rnd: Round) -> List[Player]:
        playable = [m for m in rnd.matches if not m.bye]
        rnd.status = RoundStatus.IN_PROGRESS
        self.events.publish(round_started_event(tournament.tournament_id, rnd.round_number, len(playable)))

        config = tournament.config
        policy = policy_for(config.no_tie, self.tie_policy, self.max_replays)
        with ThreadPoolExecutor(max_workers=self.max_concurrent) as pool:
            futures = {}
            for match in playable:
                match.status = RoundStatus.IN_PROGRESS
                future = pool.submit(
                    policy.play, self.matches, match.player1, match.player2,
                    config, GameMode.TOURNAMENT, match.match_id,
                )
                futures[future] = match

            for future in as_completed(futures):
                match = futures[future]
                try:
                    result = future.result()
                except Exception:
                    logger.exception(f"Match {match.match_id} faulted")
                    self._apply_fault(match)
                else:
                    self._apply_result(match, result)
                tournament.completed_matches += 1

        rnd.status = RoundStatus.COMPLETED
        advancing = [m.advancing for m in rnd.matches]
        self.events.publish(round_completed_event(
            tournament.tournament_id, rnd.round_number, [p.name for p in advancing]
        ))
        return advancing

    def _apply_result(self, match: Match, result: MatchResult):
        match.match_result = result
        match.result = result.result
        match.winner = self._seat_for(match, result.winner)
        match.status = RoundStatus.COMPLETED

    def _apply_fault(self, match: Match):
        match.result = MatchOutcome.ERROR
        match.winner = None
        match.status = RoundStatus.COMPLETED

    @staticmethod
    def _rested(tournament: Tournament) -> Set[str]:
        return {m.player1.name for rnd in tournament.bracket for m in rnd.matches
                if m.bye and m.player1 is not None}

    @staticmethod
    def _seat_for(match: Match, player: Optional[Player]) -> Optional[Player]:
        # Results carry symbol-tagged copies; map back to the bracket seat by name
        if player is None:
            return None
        return match.player1 if player.name == match.player1.name else match.player2
