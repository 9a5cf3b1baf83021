"""Shared fixtures: an app per test plus identified Socket.IO test clients."""

import pytest

from jankenwars import create_app
from jankenwars.config import TestingConfig
from jankenwars.models.game import GamePhase, Player
from jankenwars.models.room import Room, RoomPlayer
from jankenwars.services.rules import create_game_state


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class Participant:
    """A Socket.IO test client that has already sent user:join."""

    def __init__(self, client, username, sid, token):
        self.client = client
        self.username = username
        self.sid = sid
        self.token = token

    def emit(self, event, *args):
        self.client.emit(event, *args)

    def drain(self):
        return self.client.get_received()

    def disconnect(self):
        if self.client.is_connected():
            self.client.disconnect()


def payloads(received, name):
    """Payloads of every received event called `name`."""
    return [item['args'][0] if item['args'] else None for item in received if item['name'] == name]


def names(received):
    return [item['name'] for item in received]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app():
    app, _ = create_app(TestingConfig)
    return app


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def connect(app):
    """Factory: connect(username, token=None) -> Participant."""
    participants = []

    def _connect(username, token=None):
        client = app.socketio.test_client(app)
        client.emit('user:join', {'username': username, 'sessionToken': token})
        joined = payloads(client.get_received(), 'user:joined')[-1]
        participant = Participant(client, username, joined['sid'], joined['sessionToken'])
        participants.append(participant)
        return participant

    yield _connect

    for participant in participants:
        participant.disconnect()


@pytest.fixture
def started_room(connect):
    """alice (PLAYER1) and bob (PLAYER2) in a started game; queues drained."""
    alice = connect('alice')
    bob = connect('bob')

    alice.emit('room:create')
    room_id = payloads(alice.drain(), 'room:created')[0]['roomId']
    bob.emit('room:join', room_id)
    alice.emit('player:ready', room_id)
    bob.emit('player:ready', room_id)

    alice.drain()
    bob.drain()
    return room_id, alice, bob


def make_started_room(room_id='abcd1234', now=1_000_000.0):
    """A room record in SELECTING_CELL with sockets s1 / s2."""
    room = Room(id=room_id, created_at=now, last_activity=now)
    room.players['s1'] = RoomPlayer(sid='s1', username='alice', session_id='sess1', player_number=1, ready=True)
    room.players['s2'] = RoomPlayer(sid='s2', username='bob', session_id='sess2', player_number=2, ready=True)
    room.in_progress = True
    room.game_state = create_game_state(GamePhase.SELECTING_CELL)
    assert room.game_state.current_player is Player.PLAYER1
    return room
