"""Tests for the python-socketio client glue, driven by a recording stand-in."""

from jankenwars.client.socket_client import JankenWarsClient
from jankenwars.client.store import ClientPhase
from jankenwars.services.rules import create_game_state
from jankenwars.models.game import GamePhase

ROOM = 'abcd1234'


class RecordingSio:
    def __init__(self):
        self.handlers = {}
        self.sent = []

    def on(self, event, handler):
        self.handlers[event] = handler

    def emit(self, event, data=None):
        self.sent.append((event, data))

    def fire(self, event, *args):
        self.handlers[event](*args)


def room_payload(sid, state):
    return {
        'roomId': ROOM,
        'players': [
            {'id': sid, 'username': 'alice', 'playerNumber': 1, 'ready': True, 'connected': True},
            {'id': 'other', 'username': 'bob', 'playerNumber': 2, 'ready': True, 'connected': True},
        ],
        'spectators': 0,
        'inProgress': True,
        'gameState': state.to_dict(),
    }


def test_connect_identifies_with_stored_token():
    sio = RecordingSio()
    client = JankenWarsClient('http://localhost:5000', 'alice', sio=sio)
    client.store.session_token = 'tok'

    sio.fire('connect')

    assert client.store.phase is ClientPhase.CONNECTED
    assert sio.sent == [('user:join', {'username': 'alice', 'sessionToken': 'tok'})]


def test_reconnect_rejoins_room_after_identity_ack():
    sio = RecordingSio()
    seen = []
    client = JankenWarsClient('http://localhost:5000', 'alice', sio=sio,
                              on_event=lambda event, payload: seen.append(event))

    sio.fire('connect')
    sio.fire('user:joined', {'sid': 'a1', 'username': 'alice', 'sessionToken': 'tok'})
    sio.fire('room:joined', room_payload('a1', create_game_state(GamePhase.READY)))
    sio.sent.clear()

    sio.fire('disconnect')
    assert client.store.phase is ClientPhase.DISCONNECTED

    sio.fire('connect')
    sio.fire('user:joined', {'sid': 'a2', 'username': 'alice', 'sessionToken': 'tok2'})

    assert sio.sent == [
        ('user:join', {'username': 'alice', 'sessionToken': 'tok'}),
        ('room:join', ROOM),
    ]
    assert seen == ['user:joined', 'room:joined', 'user:joined']


def test_play_sends_only_moves_the_store_accepts():
    sio = RecordingSio()
    client = JankenWarsClient('http://localhost:5000', 'alice', sio=sio)
    sio.fire('user:joined', {'sid': 'a1', 'username': 'alice', 'sessionToken': 'tok'})
    sio.fire('game:start', room_payload('a1', create_game_state(GamePhase.SELECTING_CELL)))
    sio.sent.clear()

    assert client.play(0, 0)
    event, payload = sio.sent[-1]
    assert event == 'game:move'
    assert payload['position'] == {'row': 0, 'col': 0}
    assert client.store.game_state.board[0][0].is_empty

    assert not client.play(9, 9)
    assert len(sio.sent) == 1


def test_room_actions_use_current_room():
    sio = RecordingSio()
    client = JankenWarsClient('http://localhost:5000', 'alice', sio=sio)

    client.toggle_ready()
    assert sio.sent == []

    sio.fire('user:joined', {'sid': 'a1', 'username': 'alice', 'sessionToken': 'tok'})
    sio.fire('room:created', {**room_payload('a1', create_game_state()), 'gameState': None})
    client.toggle_ready()
    client.request_rematch()
    client.leave_room()
    client.find_match()
    client.cancel_match()

    assert sio.sent == [
        ('player:ready', ROOM),
        ('game:request_rematch', ROOM),
        ('room:leave', ROOM),
        ('matchmaking:join', None),
        ('matchmaking:cancel', None),
    ]
