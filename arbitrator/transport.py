import json
import logging
import time
from typing import Dict, List

import requests

from shared.board import Symbol, cell_value
from shared.errors import InvalidMove, MalformedResponse, MoveTimeout, UnreachableHost
from .models import HumanSeat, LocalBot, Player, RemoteBot

logger = logging.getLogger(__name__)


class PlayerTransport:
    """
    Asks bot services for moves over their HTTP contract:

        GET /move?board=<JSON array>&jugador=<1|2>  ->  {"move": <int>}

    Holds no per-match state, so one instance serves every match.
    """

    def __init__(self, docker_discovery: bool = False, service_map: Dict[int, str] = None):
        self.docker_discovery = docker_discovery
        self.service_map = service_map or {}

    def base_url(self, player: Player) -> str:
        endpoint = player.endpoint
        if isinstance(endpoint, RemoteBot):
            return endpoint.url.rstrip('/')
        if isinstance(endpoint, LocalBot):
            host = endpoint.host
            if self.docker_discovery:
                host = self.service_map.get(endpoint.port, host)
            return f"{endpoint.protocol}://{host}:{endpoint.port}"
        if isinstance(endpoint, HumanSeat):
            raise ValueError(f"{player.name} is a human seat and has no HTTP endpoint")
        raise TypeError(f"Unknown endpoint type: {type(endpoint).__name__}")

    def request_move(self, player: Player, board: List[int], symbol: Symbol, timeout_ms: int) -> int:
        """
        Request a move for ``symbol`` on ``board``.

        Raises MoveTimeout, UnreachableHost or MalformedResponse when the bot
        cannot produce a usable reply, and InvalidMove when the reply names an
        occupied or out-of-range cell.

        ``timeout_ms`` bounds the whole exchange: the body is streamed and
        abandoned once the deadline passes, however slowly it trickles in.
        """
        url = f"{self.base_url(player)}/move"
        params = {'board': json.dumps(list(board)), 'jugador': cell_value(symbol)}
        logger.debug(f"Requesting move from {player.name} at {url}")

        deadline = time.monotonic() + timeout_ms / 1000

        try:
            resp = requests.get(url, params=params, timeout=timeout_ms / 1000, stream=True)
            try:
                if resp.status_code != 200:
                    raise MalformedResponse(
                        f"{player.name} answered HTTP {resp.status_code}", player=player.name
                    )
                body = self._read_body(player, resp, deadline, timeout_ms)
            finally:
                resp.close()
        except requests.exceptions.Timeout:
            raise MoveTimeout(
                f"{player.name} did not answer within {timeout_ms} ms", player=player.name
            )
        except requests.exceptions.RequestException as e:
            raise UnreachableHost(f"Could not reach {player.name}: {e}", player=player.name)

        try:
            data = json.loads(body)
        except ValueError:
            raise MalformedResponse(f"{player.name} returned a non-JSON body", player=player.name)

        move = data.get('move') if isinstance(data, dict) else None
        if not isinstance(move, int) or isinstance(move, bool):
            raise MalformedResponse(
                f"{player.name} returned no integer move: {data!r}", player=player.name
            )

        if not 0 <= move < len(board):
            raise InvalidMove(move, f"{player.name} played out of range: {move}", player=player.name)
        if board[move] != 0:
            raise InvalidMove(move, f"{player.name} played occupied cell {move}", player=player.name)

        return move

    @staticmethod
    def _read_body(player: Player, resp, deadline: float, timeout_ms: int) -> bytes:
        chunks = []
        for chunk in resp.iter_content(chunk_size=1024):
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise MoveTimeout(
                    f"{player.name} did not finish answering within {timeout_ms} ms",
                    player=player.name
                )
        return b''.join(chunks)

    def check_health(self, player: Player, timeout_ms: int = 500) -> str:
        """Check GET /health. Returns 'healthy', 'unhealthy' or 'offline'."""
        try:
            resp = requests.get(f"{self.base_url(player)}/health", timeout=timeout_ms / 1000)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Health check for {player.name} failed: {e}")
            return 'offline'
        return 'healthy' if resp.ok else 'unhealthy'

    def discover(self, roster: List[dict], default_host: str = 'localhost',
                 timeout_ms: int = 500) -> List[dict]:
        """Check every configured bot and report its status."""
        bots = []
        for entry in roster:
            player = Player.from_dict(entry, default_host=default_host)
            status = self.check_health(player, timeout_ms)
            info = player.to_dict()
            info.update({
                'status': status,
                'capabilities': ['3x3', '5x5'],
            })
            bots.append(info)
        return bots
