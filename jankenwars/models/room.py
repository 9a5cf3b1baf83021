"""
Room Data Models

Server-resident room records: the player seats, spectators and lifecycle
timestamps the registry garbage-collects on.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .game import GamePhase, GameState, Player


@dataclass
class RoomPlayer:
    """A player seat. player_number is stable across reconnection."""
    sid: str
    username: str
    session_id: str
    player_number: int
    ready: bool = False
    connected: bool = True

    @property
    def player(self) -> Player:
        return Player.from_number(self.player_number)

    def to_dict(self) -> Dict:
        return {
            "id": self.sid,
            "username": self.username,
            "playerNumber": self.player_number,
            "ready": self.ready,
            "connected": self.connected,
        }


@dataclass
class Room:
    """Server-side room record."""
    id: str
    created_at: float
    last_activity: float
    players: Dict[str, RoomPlayer] = field(default_factory=dict)  # sid -> seat
    game_state: Optional[GameState] = None
    in_progress: bool = False
    spectators: List[str] = field(default_factory=list)
    pending_deletion: Optional[float] = None

    def touch(self, now: float) -> None:
        self.last_activity = now

    def connected_players(self) -> List[RoomPlayer]:
        return [p for p in self.players.values() if p.connected]

    def player_by_session(self, session_id: str) -> Optional[RoomPlayer]:
        for player in self.players.values():
            if player.session_id == session_id:
                return player
        return None

    def free_player_number(self) -> Optional[int]:
        taken = {p.player_number for p in self.players.values()}
        for number in (1, 2):
            if number not in taken:
                return number
        return None

    def is_empty(self) -> bool:
        """No connected player and no spectator left."""
        return not self.connected_players() and not self.spectators

    def ready_to_start(self) -> bool:
        connected = self.connected_players()
        return (
            not self.in_progress
            and (self.game_state is None or self.game_state.game_phase is not GamePhase.GAME_OVER)
            and len(self.players) == 2
            and len(connected) == 2
            and all(p.ready for p in connected)
        )

    def roster(self) -> Dict:
        players = sorted(self.players.values(), key=lambda p: p.player_number)
        return {
            "roomId": self.id,
            "players": [p.to_dict() for p in players],
            "spectators": len(self.spectators),
            "inProgress": self.in_progress,
        }
