"""
Room Service

Manages the server-resident room registry: creation, joining (as player,
spectator or returning player), ready toggling, departures and timed
garbage collection.
"""

import time
import uuid
from typing import Callable, Dict, List, Optional

from ..config.game_settings import ROOM_ID_LENGTH
from ..models.game import EndReason, GamePhase, GameResult
from ..models.room import Room, RoomPlayer
from .rules import create_game_state


class RoomService:
    """
    In-memory room registry.

    Every public method runs to completion without yielding, so per-room
    operations are serialized by the event loop that calls them. Results are
    plain dicts ({'success': bool, ...}) describing what changed; callers
    decide who to notify.
    """

    def __init__(self, empty_grace_seconds: int = 300, max_lifetime_seconds: int = 21600,
                 clock: Callable[[], float] = time.time):
        self.rooms: Dict[str, Room] = {}
        self.socket_rooms: Dict[str, str] = {}  # sid -> room_id (players and spectators)
        self.empty_grace_seconds = empty_grace_seconds
        self.max_lifetime_seconds = max_lifetime_seconds
        self.clock = clock

    # Lookups

    def get_room(self, room_id: Optional[str]) -> Optional[Room]:
        if not room_id:
            return None
        return self.rooms.get(room_id)

    def room_of(self, sid: str) -> Optional[Room]:
        return self.get_room(self.socket_rooms.get(sid))

    def list_open_rooms(self) -> List[Dict]:
        """Rooms that are not in progress, with player counts."""
        return [
            {
                'id': room.id,
                'playerCount': len(room.connected_players()),
                'players': [p.username for p in sorted(room.players.values(), key=lambda p: p.player_number)]
            }
            for room in self.rooms.values()
            if not room.in_progress
        ]

    def _generate_room_id(self) -> str:
        while True:
            room_id = uuid.uuid4().hex[:ROOM_ID_LENGTH]
            if room_id not in self.rooms:
                return room_id

    # Lifecycle

    def create_room(self, sid: str, username: str, session_id: str) -> Dict:
        """Create a room with the caller as player 1 (not ready)."""
        left = self.leave_current_room(sid)

        now = self.clock()
        room = Room(id=self._generate_room_id(), created_at=now, last_activity=now)
        room.players[sid] = RoomPlayer(sid=sid, username=username, session_id=session_id, player_number=1)
        self.rooms[room.id] = room
        self.socket_rooms[sid] = room.id

        return {'success': True, 'room': room, 'player': room.players[sid], 'left': left}

    def create_matched_room(self, first: Dict, second: Dict) -> Dict:
        """
        Create a room for a matchmaking pair. Both seats start ready, so the
        start condition is evaluated immediately.

        Args:
            first / second: {'sid', 'username', 'session_id'} in queue order
        """
        left = {entry['sid']: self.leave_current_room(entry['sid']) for entry in (first, second)}

        now = self.clock()
        room = Room(id=self._generate_room_id(), created_at=now, last_activity=now)
        for number, entry in enumerate((first, second), start=1):
            room.players[entry['sid']] = RoomPlayer(
                sid=entry['sid'],
                username=entry['username'],
                session_id=entry['session_id'],
                player_number=number,
                ready=True
            )
            self.socket_rooms[entry['sid']] = room.id
        self.rooms[room.id] = room

        game_started = self._maybe_start(room)
        return {
            'success': True,
            'room': room,
            'game_started': game_started,
            'left': {sid: result for sid, result in left.items() if result}
        }

    def join_room(self, room_id: str, sid: str, username: str, session_id: str) -> Dict:
        """
        Join a room.

        Resolution order:
        1. a seat holding this session id -> returning player takes it over
        2. game in progress -> spectator
        3. two connected players already seated -> spectator
        4. a free seat -> new player
        5. a seat whose socket is gone -> new player replaces it
        """
        room = self.get_room(room_id)
        if not room:
            return {'success': False, 'error': 'Room not found', 'code': 'room_not_found'}

        # Already a member of this room: answer with the current role
        if self.socket_rooms.get(sid) == room.id:
            if sid in room.players:
                return {'success': True, 'role': 'player', 'room': room, 'player': room.players[sid],
                        'game_started': False, 'left': None}
            return {'success': True, 'role': 'spectator', 'room': room, 'player': None,
                    'game_started': False, 'left': None}

        left = self.leave_current_room(sid)
        now = self.clock()

        seat = room.player_by_session(session_id)
        if seat:
            replaced_sid = seat.sid
            del room.players[replaced_sid]
            if self.socket_rooms.get(replaced_sid) == room.id:
                del self.socket_rooms[replaced_sid]
            seat.sid = sid
            seat.username = username
            seat.connected = True
            room.players[sid] = seat
            self._register_member(room, sid, now)
            return {
                'success': True,
                'role': 'rejoined',
                'room': room,
                'player': seat,
                'replaced_sid': replaced_sid,
                'game_started': self._maybe_start(room),
                'left': left
            }

        if room.in_progress or len(room.connected_players()) >= 2:
            room.spectators.append(sid)
            self._register_member(room, sid, now)
            return {'success': True, 'role': 'spectator', 'room': room, 'player': None,
                    'game_started': False, 'left': left}

        number = room.free_player_number()
        if number is None:
            # Both seats exist but one socket is gone: the newcomer takes it over
            stale = next(p for p in room.players.values() if not p.connected)
            number = stale.player_number
            del room.players[stale.sid]

        seat = RoomPlayer(sid=sid, username=username, session_id=session_id, player_number=number)
        room.players[sid] = seat
        self._register_member(room, sid, now)

        return {
            'success': True,
            'role': 'player',
            'room': room,
            'player': seat,
            'game_started': self._maybe_start(room),
            'left': left
        }

    def _register_member(self, room: Room, sid: str, now: float) -> None:
        self.socket_rooms[sid] = room.id
        room.pending_deletion = None
        room.touch(now)

    def toggle_ready(self, room_id: str, sid: str) -> Dict:
        """Flip a player's ready flag; may start the game."""
        room = self.get_room(room_id)
        if not room:
            return {'success': False, 'error': 'Room not found', 'code': 'room_not_found'}

        player = room.players.get(sid)
        if not player:
            return {'success': False, 'error': 'Only players can change ready state', 'code': 'not_a_player'}

        if room.in_progress:
            return {'success': False, 'error': 'Game already in progress', 'code': 'in_progress'}

        player.ready = not player.ready
        room.touch(self.clock())

        return {
            'success': True,
            'room': room,
            'player': player,
            'game_started': self._maybe_start(room)
        }

    def _maybe_start(self, room: Room) -> bool:
        """Start the game when exactly two connected players are all ready."""
        if not room.ready_to_start():
            return False

        room.in_progress = True
        room.game_state = create_game_state(GamePhase.SELECTING_CELL)
        room.pending_deletion = None
        return True

    def leave_current_room(self, sid: str) -> Optional[Dict]:
        room_id = self.socket_rooms.get(sid)
        if not room_id:
            return None
        return self.leave_room(room_id, sid)

    def leave_room(self, room_id: str, sid: str, disconnected: bool = False) -> Dict:
        """
        Remove a socket from a room.

        A voluntary leave frees the seat; a transport disconnect keeps the
        seat (marked disconnected) so its owner can come back. Leaving an
        active game forfeits it to the remaining player.
        """
        room = self.get_room(room_id)
        if not room or self.socket_rooms.get(sid) != room.id:
            return {'success': False, 'error': 'Not in this room', 'code': 'not_in_room'}

        del self.socket_rooms[sid]
        now = self.clock()
        room.touch(now)

        result = {
            'success': True,
            'room': room,
            'was_player': False,
            'left_player': None,
            'forfeit': False,
            'emptied': False
        }

        if sid in room.spectators:
            room.spectators.remove(sid)
        else:
            player = room.players[sid]
            result['was_player'] = True
            result['left_player'] = player

            if room.in_progress and room.game_state and room.game_state.game_phase is GamePhase.SELECTING_CELL:
                self._forfeit(room, player, now)
                result['forfeit'] = True

            if disconnected:
                player.connected = False
            else:
                del room.players[sid]

        if room.is_empty():
            room.pending_deletion = now + self.empty_grace_seconds
            result['emptied'] = True

        return result

    def _forfeit(self, room: Room, leaving: RoomPlayer, now: float) -> None:
        """The remaining player wins by forfeit; the room becomes collectable."""
        state = room.game_state
        state.game_phase = GamePhase.GAME_OVER
        state.game_result = GameResult.win_for(leaving.player.opponent)
        state.end_reason = EndReason.OPPONENT_LEFT
        state.winning_line = None
        room.in_progress = False
        room.pending_deletion = now + self.empty_grace_seconds
        for player in room.players.values():
            player.ready = False

    def handle_disconnect(self, sid: str) -> Optional[Dict]:
        room_id = self.socket_rooms.get(sid)
        if not room_id:
            return None
        return self.leave_room(room_id, sid, disconnected=True)

    def reset_for_rematch(self, room: Room) -> None:
        room.in_progress = False
        room.game_state = create_game_state(GamePhase.READY)
        room.pending_deletion = None
        for player in room.players.values():
            player.ready = False
        room.touch(self.clock())

    # Garbage collection

    def collect_garbage(self, now: Optional[float] = None) -> List[str]:
        """
        Delete rooms whose grace period ran out or that outlived the
        maximum lifetime. Deletions are silent to absent clients.

        Returns:
            List of deleted room ids
        """
        now = self.clock() if now is None else now
        expired = [
            room_id for room_id, room in self.rooms.items()
            if (room.pending_deletion is not None and room.pending_deletion <= now)
            or now - room.created_at >= self.max_lifetime_seconds
        ]

        for room_id in expired:
            self.delete_room(room_id)

        return expired

    def delete_room(self, room_id: str) -> bool:
        if room_id not in self.rooms:
            return False
        del self.rooms[room_id]
        for sid in [s for s, r in self.socket_rooms.items() if r == room_id]:
            del self.socket_rooms[sid]
        return True
