"""
Socket Client

python-socketio glue between a JankenWars server and an OnlineGameStore.
After every transport (re)connect it identifies again with the stored
session token and, once acknowledged, rejoins the room it was in.
"""

import logging
from typing import Any, Callable, Optional

import socketio

from ..models.game import Position
from .store import OnlineGameStore

logger = logging.getLogger('jankenwars.client')


class JankenWarsClient:
    """Thin action/event layer over socketio.Client."""

    def __init__(self, url: str, username: str, store: Optional[OnlineGameStore] = None,
                 sio: Optional[socketio.Client] = None,
                 on_event: Optional[Callable[[str, Any], None]] = None):
        self.url = url
        self.store = store or OnlineGameStore(username)
        self.sio = sio or socketio.Client(reconnection=True, logger=False, engineio_logger=False)
        self.on_event = on_event

        self.sio.on('connect', self._on_connect)
        self.sio.on('disconnect', self._on_disconnect)
        for event in self.store.events:
            self.sio.on(event, self._forwarder(event))

    def _forwarder(self, event: str):
        def forward(payload=None):
            self.store.handle(event, payload)
            if event == 'user:joined' and self.store.awaiting_rejoin:
                logger.info("Rejoining room %s", self.store.room_id)
                self.sio.emit('room:join', self.store.room_id)
            if self.on_event:
                self.on_event(event, payload)
        return forward

    def _on_connect(self):
        self.store.connected()
        self.sio.emit('user:join', {
            'username': self.store.username,
            'sessionToken': self.store.session_token
        })

    def _on_disconnect(self, *args):
        logger.warning("Disconnected from %s", self.url)
        self.store.disconnected()

    # Connection

    def connect(self, wait_timeout: int = 10) -> None:
        self.store.connecting()
        self.sio.connect(self.url, wait_timeout=wait_timeout)

    def disconnect(self) -> None:
        self.sio.disconnect()

    def wait(self) -> None:
        self.sio.wait()

    # Actions

    def create_room(self) -> None:
        self.sio.emit('room:create')

    def join_room(self, room_id: str) -> None:
        self.sio.emit('room:join', room_id)

    def leave_room(self) -> None:
        if self.store.room_id:
            self.sio.emit('room:leave', self.store.room_id)

    def toggle_ready(self) -> None:
        if self.store.room_id:
            self.sio.emit('player:ready', self.store.room_id)

    def play(self, row: int, col: int) -> bool:
        """Send the offered piece to (row, col). False when the store refuses the move."""
        payload = self.store.build_move(Position(row, col))
        if payload is None:
            return False
        self.sio.emit('game:move', payload)
        return True

    def request_rematch(self) -> None:
        if self.store.room_id:
            self.sio.emit('game:request_rematch', self.store.room_id)

    def find_match(self) -> None:
        self.sio.emit('matchmaking:join')

    def cancel_match(self) -> None:
        self.sio.emit('matchmaking:cancel')
