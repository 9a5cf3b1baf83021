"""
User Data Models

Contains connection-identity data structures.
"""

from dataclasses import dataclass


@dataclass
class ConnectedUser:
    """Identity bound to one live socket."""
    sid: str
    username: str
    session_id: str
    connected_at: float


@dataclass
class QueueEntry:
    """Matchmaking queue entry."""
    sid: str
    username: str
    session_id: str

    def to_dict(self) -> dict:
        return {'sid': self.sid, 'username': self.username, 'session_id': self.session_id}
