"""
Data Models Package

Contains all data models and schemas used throughout the application.
"""

from .game import (
    PieceType, Player, GamePhase, GameResult, EndReason, Position, Cell,
    MoveRecord, MoveRequest, GameState, INVENTORY_PIECES
)
from .room import Room, RoomPlayer
from .user import ConnectedUser, QueueEntry

__all__ = [
    'PieceType', 'Player', 'GamePhase', 'GameResult', 'EndReason', 'Position', 'Cell',
    'MoveRecord', 'MoveRequest', 'GameState', 'INVENTORY_PIECES',
    'Room', 'RoomPlayer', 'ConnectedUser', 'QueueEntry'
]
