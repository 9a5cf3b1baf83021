"""
Utilities Package

Contains utility functions, decorators, and helper modules.
"""

from .decorators import rate_limited, identified_required, serialized, socket_errors
from .helpers import get_client_ip, RateLimiter
from .game_logger import game_logger

__all__ = ['rate_limited', 'identified_required', 'serialized', 'socket_errors', 'get_client_ip', 'RateLimiter', 'game_logger']
