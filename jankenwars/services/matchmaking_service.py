"""
Matchmaking Service

FIFO queue of waiting users; the two oldest entries are paired into a new
room as soon as the queue holds two.
"""

from typing import Callable, Dict, List

from ..models.user import QueueEntry
from .room_service import RoomService


class MatchmakingService:
    """Quick-match queue backed by the room registry."""

    def __init__(self, room_service: RoomService, queue_limit: int = 100):
        self.room_service = room_service
        self.queue_limit = queue_limit
        self.queue: List[QueueEntry] = []

    def is_queued(self, sid: str) -> bool:
        return any(entry.sid == sid for entry in self.queue)

    def enqueue(self, sid: str, username: str, session_id: str) -> Dict:
        """
        Add a user to the queue and pair the two oldest entries if possible.

        Returns:
            {'success': True, 'matched': False} while waiting, or
            {'success': True, 'matched': True, 'room': ..., 'game_started': ...}
        """
        if not self.is_queued(sid):
            self.queue.append(QueueEntry(sid=sid, username=username, session_id=session_id))

        if len(self.queue) < 2:
            return {'success': True, 'matched': False}

        first = self.queue.pop(0)
        second = self.queue.pop(0)
        result = self.room_service.create_matched_room(first.to_dict(), second.to_dict())

        return {
            'success': True,
            'matched': True,
            'room': result['room'],
            'game_started': result['game_started'],
            'left': result['left'],
            'pair': (first, second)
        }

    def cancel(self, sid: str) -> Dict:
        """Remove the caller's entry; a no-op when it was already paired or never queued."""
        before = len(self.queue)
        self.queue = [entry for entry in self.queue if entry.sid != sid]
        return {'success': True, 'removed': len(self.queue) != before}

    def remove(self, sid: str) -> bool:
        return self.cancel(sid)['removed']

    def sweep(self, is_connected: Callable[[str], bool]) -> Dict:
        """
        Drop entries whose socket is gone; if the queue is still oversized,
        clear it entirely.
        """
        before = len(self.queue)
        self.queue = [entry for entry in self.queue if is_connected(entry.sid)]
        dropped = before - len(self.queue)

        cleared = False
        if len(self.queue) > self.queue_limit:
            dropped += len(self.queue)
            self.queue = []
            cleared = True

        return {'dropped': dropped, 'cleared': cleared}
