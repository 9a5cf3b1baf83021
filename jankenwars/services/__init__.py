"""
Services Package

Contains all business logic and service classes.
"""

from .game_service import GameService
from .matchmaking_service import MatchmakingService
from .room_service import RoomService
from .session_service import SessionService

__all__ = ['GameService', 'MatchmakingService', 'RoomService', 'SessionService']
