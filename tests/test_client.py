"""Tests for the Discord client."""
import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from slash_commands.client import DiscordClient
from slash_commands.errors import InvalidArgumentError, NotReadyError


def _response(status_code=200, payload=None, content=b'{}'):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.content = content
    response.text = content.decode()
    response.json.return_value = payload
    if not response.ok:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


@pytest.fixture
def client():
    return DiscordClient('secret', application_id='app-1', api_base_url='https://discord.test/api/v10/')


def test_token_required():
    with pytest.raises(InvalidArgumentError):
        DiscordClient('')


class TestRequest:

    @pytest.mark.asyncio
    async def test_sends_bot_authorization(self, client):
        with patch('slash_commands.client.requests.request', return_value=_response(payload=[{'id': '1'}])) as mock_request:
            result = await client.request('GET', 'applications/app-1/commands')

        assert result == [{'id': '1'}]
        args, kwargs = mock_request.call_args
        assert args == ('GET', 'https://discord.test/api/v10/applications/app-1/commands')
        assert kwargs['headers']['Authorization'] == 'Bot secret'
        assert kwargs['json'] is None
        assert kwargs['timeout'] == client.timeout

    @pytest.mark.asyncio
    async def test_sends_json_body(self, client):
        with patch('slash_commands.client.requests.request', return_value=_response(payload={'id': '1'})) as mock_request:
            await client.request('POST', '/applications/app-1/commands', json={'name': 'ping'})

        args, kwargs = mock_request.call_args
        assert args[1] == 'https://discord.test/api/v10/applications/app-1/commands'
        assert kwargs['json'] == {'name': 'ping'}

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self, client):
        with patch('slash_commands.client.requests.request', return_value=_response(204, content=b'')):
            assert await client.request('DELETE', 'applications/app-1/commands/1') is None

    @pytest.mark.asyncio
    async def test_http_error_is_raised(self, client):
        with patch('slash_commands.client.requests.request', return_value=_response(404, content=b'{"message": "Unknown"}')):
            with pytest.raises(requests.HTTPError, match="404"):
                await client.request('GET', 'applications/app-1/commands')


class TestEvents:

    def test_listeners_called_in_order(self, client):
        seen = []
        client.on('INTERACTION_CREATE', lambda payload: seen.append(('first', payload)))
        client.on('INTERACTION_CREATE', lambda payload: seen.append(('second', payload)))

        client.emit('INTERACTION_CREATE', {'id': '1'})

        assert seen == [('first', {'id': '1'}), ('second', {'id': '1'})]
        assert client.listener_count('INTERACTION_CREATE') == 2

    def test_failing_listener_does_not_stop_delivery(self, client):
        later = MagicMock()
        client.on('INTERACTION_CREATE', MagicMock(side_effect=RuntimeError("boom")))
        client.on('INTERACTION_CREATE', later)

        client.emit('INTERACTION_CREATE', {'id': '1'})

        later.assert_called_once_with({'id': '1'})

    def test_events_without_listeners_are_ignored(self, client):
        client.emit('GUILD_CREATE', {'id': '1'})

    @pytest.mark.asyncio
    async def test_awaitable_result_is_scheduled(self, client):
        handled = asyncio.Event()

        async def handler(payload):
            handled.set()

        client.on('INTERACTION_CREATE', handler)
        client.emit('INTERACTION_CREATE', {'id': '1'})

        await asyncio.wait_for(handled.wait(), timeout=1)


class TestReady:

    def test_application_id_unknown_before_ready(self):
        client = DiscordClient('secret')
        with pytest.raises(NotReadyError):
            client.application_id

    def test_ready_sets_application_id(self):
        client = DiscordClient('secret')
        client.emit('READY', {'user': {'id': 'user-1', 'username': 'bot'}, 'application': {'id': 'app-9'}})

        assert client.application_id == 'app-9'
        assert client.user['username'] == 'bot'

    def test_ready_falls_back_to_user_id(self):
        client = DiscordClient('secret')
        client.emit('READY', {'user': {'id': 'user-1'}})

        assert client.application_id == 'user-1'

    def test_configured_application_id_is_kept(self, client):
        client.emit('READY', {'user': {'id': 'user-1'}, 'application': {'id': 'app-9'}})

        assert client.application_id == 'app-1'

    @pytest.mark.asyncio
    async def test_wait_until_ready_requires_login(self, client):
        with pytest.raises(NotReadyError):
            await client.wait_until_ready()
