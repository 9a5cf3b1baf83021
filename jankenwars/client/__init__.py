"""
Client Package

Client-side synchronization for online games.
"""

from .store import ClientPhase, OnlineGameStore, derive_offered_piece
from .socket_client import JankenWarsClient

__all__ = ['ClientPhase', 'OnlineGameStore', 'derive_offered_piece', 'JankenWarsClient']
