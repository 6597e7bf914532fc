"""
Unit tests for PlayerTransport.
Tests: address resolution, request_move error mapping, health checks, discovery
"""
import json
import time

import pytest
import requests

from arbitrator.models import HumanSeat, LocalBot, Player, RemoteBot
from arbitrator.transport import PlayerTransport
from shared.board import Symbol
from shared.errors import InvalidMove, MalformedResponse, MoveTimeout, TransportError, UnreachableHost


@pytest.fixture
def mock_get(mocker):
    return mocker.patch('arbitrator.transport.requests.get')


def reply(mocker, status=200, body=None, json_error=False, chunks=None):
    """Streamed response: ``chunks`` overrides the body serialised from ``body``."""
    resp = mocker.MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    if chunks is None:
        chunks = [b'<html>not json</html>' if json_error else json.dumps(body).encode()]
    resp.iter_content.return_value = chunks
    return resp


def trickle(*parts, pause=0.0):
    for part in parts:
        time.sleep(pause)
        yield part


@pytest.fixture
def bot():
    return Player(name='AlgoBot1', endpoint=LocalBot('localhost', 3007))


class TestBaseUrl:
    """Tests for endpoint dispatch."""

    def test_local_bot(self, bot):
        assert PlayerTransport().base_url(bot) == 'http://localhost:3007'

    def test_remote_bot_strips_slash(self):
        player = Player(name='Remote', endpoint=RemoteBot('https://bots.example.com/x/'))
        assert PlayerTransport().base_url(player) == 'https://bots.example.com/x'

    def test_docker_discovery_maps_port_to_service(self, bot):
        transport = PlayerTransport(docker_discovery=True, service_map={3007: 'algo-bot-1'})
        assert transport.base_url(bot) == 'http://algo-bot-1:3007'

    def test_docker_discovery_keeps_unmapped_host(self):
        player = Player(name='Bot', endpoint=LocalBot('bots.local', 4000))
        transport = PlayerTransport(docker_discovery=True, service_map={3007: 'algo-bot-1'})
        assert transport.base_url(player) == 'http://bots.local:4000'

    def test_human_seat_is_rejected(self):
        human = Player(name='Alice', endpoint=HumanSeat(), player_type='human')
        with pytest.raises(ValueError):
            PlayerTransport().base_url(human)


class TestRequestMove:
    """Tests for request_move."""

    def test_returns_move(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, body={'move': 4})
        board = [1, 0, 0, 0, 0, 0, 0, 0, 0]

        assert PlayerTransport().request_move(bot, board, Symbol.O, 2000) == 4

        mock_get.assert_called_once_with(
            'http://localhost:3007/move',
            params={'board': json.dumps(board), 'jugador': 2},
            timeout=2.0,
            stream=True,
        )

    def test_x_is_player_one(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, body={'move': 0})
        PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 1000)
        assert mock_get.call_args.kwargs['params']['jugador'] == 1

    def test_timeout(self, mock_get, bot):
        mock_get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(MoveTimeout) as exc:
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)
        assert exc.value.player == 'AlgoBot1'
        assert exc.value.reason == 'timeout'

    def test_connection_error(self, mock_get, bot):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(UnreachableHost):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)

    def test_non_200(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, status=500, body={'error': 'boom'})
        with pytest.raises(MalformedResponse):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)

    def test_non_json(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, json_error=True)
        with pytest.raises(MalformedResponse):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)

    @pytest.mark.parametrize('body', [{}, {'move': '4'}, {'move': 1.5}, {'move': True}, [4], None])
    def test_missing_or_non_integer_move(self, mocker, mock_get, bot, body):
        mock_get.return_value = reply(mocker, body=body)
        with pytest.raises(MalformedResponse):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)

    @pytest.mark.parametrize('move', [-1, 9, 25])
    def test_out_of_range(self, mocker, mock_get, bot, move):
        mock_get.return_value = reply(mocker, body={'move': move})
        with pytest.raises(InvalidMove) as exc:
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)
        assert exc.value.position == move

    def test_occupied_cell(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, body={'move': 0})
        with pytest.raises(InvalidMove):
            PlayerTransport().request_move(bot, [2, 0, 0, 0, 0, 0, 0, 0, 0], Symbol.X, 100)

    def test_body_split_across_chunks(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, chunks=trickle(b'{"mo', b've": ', b'7}'))
        assert PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 1000) == 7

    def test_slow_body_hits_overall_deadline(self, mocker, mock_get, bot):
        """Each chunk arrives within the socket timeout but the reply as a whole is late."""
        resp = reply(mocker, chunks=trickle(b'{"mo', b've": ', b'4}', pause=0.06))
        mock_get.return_value = resp
        with pytest.raises(MoveTimeout):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)
        resp.close.assert_called_once()

    def test_non_200_closes_response(self, mocker, mock_get, bot):
        resp = reply(mocker, status=404, body={})
        mock_get.return_value = resp
        with pytest.raises(MalformedResponse):
            PlayerTransport().request_move(bot, [0] * 9, Symbol.X, 100)
        resp.close.assert_called_once()
        resp.iter_content.assert_not_called()

    def test_transport_errors_share_a_base(self):
        assert issubclass(MoveTimeout, TransportError)
        assert issubclass(UnreachableHost, TransportError)
        assert issubclass(MalformedResponse, TransportError)


class TestHealth:
    """Tests for check_health and discover."""

    def test_healthy(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, body={'status': 'ok'})
        assert PlayerTransport().check_health(bot) == 'healthy'
        assert mock_get.call_args.args[0] == 'http://localhost:3007/health'

    def test_unhealthy(self, mocker, mock_get, bot):
        mock_get.return_value = reply(mocker, status=503)
        assert PlayerTransport().check_health(bot) == 'unhealthy'

    def test_offline(self, mock_get, bot):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert PlayerTransport().check_health(bot) == 'offline'

    def test_discover(self, mocker, mock_get):
        mock_get.side_effect = [reply(mocker, body={}), requests.exceptions.Timeout()]
        roster = [
            {'name': 'RandomBot1', 'port': 3001, 'type': 'random'},
            {'name': 'AlgoBot1', 'port': 3007, 'type': 'algorithm'},
        ]
        bots = PlayerTransport().discover(roster, default_host='bots')

        assert [b['name'] for b in bots] == ['RandomBot1', 'AlgoBot1']
        assert [b['status'] for b in bots] == ['healthy', 'offline']
        assert bots[0]['host'] == 'bots'
        assert bots[0]['type'] == 'random'
        assert bots[0]['capabilities'] == ['3x3', '5x5']
