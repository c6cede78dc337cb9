"""Shared fixtures for the slash command tests."""
from collections import defaultdict

import pytest

from slash_commands.commands import SlashCommandInterface


class FakeClient:
    """Records REST calls and gateway listener attachments instead of talking to Discord."""

    def __init__(self, application_id='app-1'):
        self.application_id = application_id
        self.calls = []
        self.responses = {}
        self.listeners = defaultdict(list)
        self.on_calls = 0

    async def request(self, method, route, json=None):
        self.calls.append((method, route, json))
        result = self.responses.get((method, route))
        if isinstance(result, Exception):
            raise result
        return result

    def on(self, event_type, callback):
        self.on_calls += 1
        self.listeners[event_type].append(callback)

    def emit(self, event_type, payload):
        for callback in self.listeners[event_type]:
            callback(payload)


def make_interaction(name, interaction_id='900', token='tok'):
    return {'id': interaction_id, 'token': token, 'type': 2, 'data': {'name': name}}


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def commands(client):
    return SlashCommandInterface(client)
