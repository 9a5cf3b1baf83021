"""
Online Game Store

Client-side synchronization state machine. It never talks to the network:
the socket client feeds it inbound events through handle(), and it hands
back outbound payloads (build_move) without touching its own board.
"""

import random
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.game import GamePhase, GameState, Inventory, PieceType, Player, Position
from ..services.rules import get_random_piece, is_valid_move

ROOM_NOT_FOUND = 'Room not found'
ROOM_NOT_FOUND_CODE = 'room_not_found'


class ClientPhase(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    IN_LOBBY = "IN_LOBBY"
    IN_GAME = "IN_GAME"
    SPECTATING = "SPECTATING"
    GAME_OVER = "GAME_OVER"


def derive_offered_piece(inventory: Inventory, rng: Optional[random.Random] = None) -> Optional[PieceType]:
    """
    Piece offered to the local player when a turn starts: a random normal
    piece still in stock. Purely local; the server never sees the draw.
    """
    return get_random_piece(inventory, rng)


class OnlineGameStore:
    """
    Local view of one online game.

    Every GameState snapshot replaces the local state wholesale; nothing the
    player does changes the board until the server echoes it back.
    """

    def __init__(self, username: str, rng: Optional[random.Random] = None):
        self.username = username
        self.rng = rng or random.Random()

        self.phase = ClientPhase.DISCONNECTED
        self.sid: Optional[str] = None
        self.session_token: Optional[str] = None
        self.room_id: Optional[str] = None
        self.players: List[Dict[str, Any]] = []
        self.spectator_count = 0
        self.is_spectator = False
        self.game_state: Optional[GameState] = None

        self.offered_piece: Optional[PieceType] = None
        self.special_selected = False
        self._stashed_piece: Optional[PieceType] = None

        self.matchmaking = False
        self.opponent_left = False
        self.last_error: Optional[str] = None
        self.awaiting_rejoin = False

        self._handlers = {
            'user:joined': self._on_user_joined,
            'room:created': self._on_room_state,
            'room:joined': self._on_room_state,
            'room:joined:spectator': self._on_spectator_joined,
            'room:player:joined': self._on_roster,
            'room:player:ready': self._on_roster,
            'player:left': self._on_roster,
            'room:left': self._on_room_left,
            'game:start': self._on_room_state,
            'game:state:update': self._on_state_update,
            'game:rematch:initiated': self._on_room_state,
            'game:opponent_left': self._on_opponent_left,
            'game:error': self._on_game_error,
            'error': self._on_error,
            'matchmaking:waiting': self._on_matchmaking_waiting,
            'matchmaking:matched': self._on_matched,
            'matchmaking:cancelled': self._on_matchmaking_cancelled,
        }

    # Transport lifecycle

    def connecting(self) -> None:
        self.phase = ClientPhase.CONNECTING

    def connected(self) -> None:
        if self.phase in (ClientPhase.DISCONNECTED, ClientPhase.CONNECTING):
            self.phase = ClientPhase.CONNECTED

    def disconnected(self) -> None:
        """Transport lost. Identity and room id survive for the rejoin."""
        self.phase = ClientPhase.DISCONNECTED
        self.sid = None
        self.matchmaking = False
        self._clear_turn()

    # Inbound events

    @property
    def events(self) -> List[str]:
        return list(self._handlers)

    def handle(self, event: str, payload: Any = None) -> bool:
        """Apply one server event. Returns False for events the store ignores."""
        handler = self._handlers.get(event)
        if handler is None:
            return False
        handler(payload if payload is not None else {})
        return True

    def _on_user_joined(self, payload: Dict) -> None:
        self.sid = payload.get('sid')
        self.session_token = payload.get('sessionToken') or self.session_token
        self.username = payload.get('username', self.username)
        self.awaiting_rejoin = self.room_id is not None
        if self.phase in (ClientPhase.DISCONNECTED, ClientPhase.CONNECTING):
            self.phase = ClientPhase.CONNECTED

    def _on_room_state(self, payload: Dict) -> None:
        self.room_id = payload.get('roomId', self.room_id)
        self.awaiting_rejoin = False
        self.matchmaking = False
        self.opponent_left = False
        self._apply_roster(payload)
        self.is_spectator = self.my_player is None
        self._apply_snapshot(payload.get('gameState'))

    def _on_spectator_joined(self, payload: Dict) -> None:
        self.room_id = payload.get('roomId', self.room_id)
        self.awaiting_rejoin = False
        self.is_spectator = True
        self._apply_roster(payload)
        self._apply_snapshot(payload.get('gameState'))

    def _on_roster(self, payload: Dict) -> None:
        if payload.get('roomId') not in (None, self.room_id):
            return
        self._apply_roster(payload)

    def _on_state_update(self, payload: Dict) -> None:
        if payload.get('roomId') not in (None, self.room_id):
            return
        self._apply_snapshot(payload.get('gameState'))

    def _on_opponent_left(self, payload: Dict) -> None:
        if payload.get('roomId') not in (None, self.room_id):
            return
        self.opponent_left = True
        self._apply_snapshot(payload.get('gameState'))

    def _on_room_left(self, payload: Dict) -> None:
        self._reset_room()

    def _on_game_error(self, payload: Dict) -> None:
        # The last snapshot stays authoritative unless the room itself is gone
        self._on_error(payload)

    def _on_error(self, payload: Dict) -> None:
        self.last_error = payload.get('message')
        if payload.get('code') == ROOM_NOT_FOUND_CODE or self.last_error == ROOM_NOT_FOUND:
            self._reset_room()

    def _on_matchmaking_waiting(self, payload: Dict) -> None:
        self.matchmaking = True

    def _on_matched(self, payload: Dict) -> None:
        self._on_room_state(payload)

    def _on_matchmaking_cancelled(self, payload: Dict) -> None:
        self.matchmaking = False

    # State application

    def _apply_roster(self, payload: Dict) -> None:
        if 'players' in payload:
            self.players = list(payload['players'])
        self.spectator_count = payload.get('spectators', self.spectator_count)

    def _apply_snapshot(self, data: Optional[Dict]) -> None:
        """Replace local state with a server snapshot and recompute the phase."""
        was_my_turn = self.is_my_turn
        previous_move = self.game_state.last_move if self.game_state else None

        self.game_state = GameState.from_dict(data) if data is not None else None
        self.last_error = None
        self.phase = self._derive_phase()

        if not self.is_my_turn:
            self._clear_turn()
        elif not was_my_turn or self.game_state.last_move != previous_move or self.offered_piece is None:
            self._start_turn()

    def _derive_phase(self) -> ClientPhase:
        state = self.game_state
        if state is not None and state.game_phase is GamePhase.GAME_OVER:
            return ClientPhase.GAME_OVER
        if state is not None and state.game_phase is GamePhase.SELECTING_CELL:
            return ClientPhase.SPECTATING if self.is_spectator else ClientPhase.IN_GAME
        if self.is_spectator and self.room_id:
            return ClientPhase.SPECTATING
        return ClientPhase.IN_LOBBY if self.room_id else ClientPhase.CONNECTED

    def _start_turn(self) -> None:
        self.special_selected = False
        self._stashed_piece = None
        self.offered_piece = derive_offered_piece(self.my_inventory, self.rng)

    def _clear_turn(self) -> None:
        self.offered_piece = None
        self.special_selected = False
        self._stashed_piece = None

    def _reset_room(self) -> None:
        self.room_id = None
        self.players = []
        self.spectator_count = 0
        self.is_spectator = False
        self.game_state = None
        self.opponent_left = False
        self.awaiting_rejoin = False
        self._clear_turn()
        if self.phase is not ClientPhase.DISCONNECTED:
            self.phase = ClientPhase.CONNECTED

    # Derived views

    @property
    def my_player(self) -> Optional[Player]:
        for player in self.players:
            if self.sid is not None and player.get('id') == self.sid:
                return Player.from_number(player['playerNumber'])
        return None

    @property
    def my_inventory(self) -> Inventory:
        if self.game_state is None or self.my_player is None:
            return {}
        return self.game_state.inventory_for(self.my_player)

    @property
    def is_my_turn(self) -> bool:
        return (
            self.phase is ClientPhase.IN_GAME
            and self.game_state is not None
            and self.game_state.game_phase is GamePhase.SELECTING_CELL
            and self.my_player is not None
            and self.game_state.current_player is self.my_player
        )

    # Local input

    def select_special(self) -> bool:
        """Swap the offered piece for SPECIAL; restored by cancel_special()."""
        if not self.is_my_turn or self.special_selected:
            return False
        if self.my_inventory.get(PieceType.SPECIAL, 0) <= 0:
            return False

        self._stashed_piece = self.offered_piece
        self.offered_piece = PieceType.SPECIAL
        self.special_selected = True
        return True

    def cancel_special(self) -> bool:
        if not self.special_selected:
            return False
        self.offered_piece = self._stashed_piece
        self._stashed_piece = None
        self.special_selected = False
        return True

    def build_move(self, position: Position) -> Optional[Dict[str, Any]]:
        """
        The game:move payload for placing the offered piece at `position`,
        or None when the move cannot be made. The local board is left as is.
        """
        if not self.is_my_turn or self.offered_piece is None:
            return None
        if not is_valid_move(self.game_state.board, position, self.offered_piece, self.my_player):
            return None

        return {
            'roomId': self.room_id,
            'position': position.to_dict(),
            'piece': self.offered_piece.value
        }
