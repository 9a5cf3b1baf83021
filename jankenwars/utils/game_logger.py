"""
Game Logger Module for the JankenWars Server

This module provides structured logging for socket events, HTTP responses
and game events (starts, moves, wins, forfeits, room garbage collection).
"""

import logging
import json
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path


class GameLogger:
    """
    Centralized logging system for the JankenWars server.

    Features:
    - User action tracking with IP / socket / username identification
    - Server response logging
    - Game event logging
    - JSON structured logs for easy parsing
    """

    def __init__(self, name: str = 'jankenwars'):
        self.name = name
        self.log_dir: Optional[Path] = None
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        # Console handler only until setup() configures the file log
        if not self.logger.handlers:
            self.logger.addHandler(self._console_handler())

    def _console_handler(self) -> logging.Handler:
        # Console handler for only important messages (WARNING and above)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        return console_handler

    def setup(self, log_dir: str = "logs", level: str = "INFO", to_file: bool = True) -> logging.Logger:
        """Configure handlers: dated log file (optional) plus console warnings."""
        self.logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

        # Prevent duplicate handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if to_file:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)

            # Create log file with date
            file_handler = logging.FileHandler(self._log_file(), encoding='utf-8')
            file_handler.setLevel(self.logger.level)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s | %(levelname)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)
        else:
            self.log_dir = None

        self.logger.addHandler(self._console_handler())
        return self.logger

    def _log_file(self) -> Path:
        return self.log_dir / f"game_log_{datetime.now().strftime('%Y-%m-%d')}.log"

    def _get_user_identity(self, request, username: Optional[str] = None) -> Dict[str, Optional[str]]:
        """Extract user identity information from a Flask / Socket.IO request."""
        return {
            'user_ip': getattr(request, 'remote_addr', None) or 'unknown',
            'session_id': getattr(request, 'sid', None),
            'username': username
        }

    def _create_log_entry(self,
                          event_type: str,
                          action: str,
                          user_info: Dict[str, Optional[str]],
                          details: Dict[str, Any]) -> str:
        """Create a structured log entry."""
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'event_type': event_type,
            'action': action,
            'user': user_info,
            'details': details
        }
        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def log_user_action(self,
                        request,
                        action: str,
                        room_id: Optional[str] = None,
                        username: Optional[str] = None,
                        **kwargs):
        """
        Log user actions with full context.

        Args:
            request: Flask request object (HTTP or Socket.IO context)
            action: Type of action (e.g., 'room:create', 'game:move')
            room_id: Room identifier if applicable
            username: Acting user if known
            **kwargs: Additional details to log
        """
        details = {
            'room_id': room_id,
            'method': getattr(request, 'method', None),
            'path': getattr(request, 'path', None),
            **kwargs
        }

        log_message = self._create_log_entry(
            'USER_ACTION', action, self._get_user_identity(request, username), details
        )
        self.logger.info(log_message)

    def log_server_response(self,
                            request,
                            action: str,
                            success: bool,
                            response_data: Dict[str, Any],
                            room_id: Optional[str] = None,
                            **kwargs):
        """
        Log server responses with full context.

        Args:
            request: Flask request object
            action: Action that was performed
            success: Whether the action succeeded
            response_data: Data being returned to client
            room_id: Room identifier if applicable
            **kwargs: Additional details to log
        """
        details = {
            'room_id': room_id,
            'success': success,
            'response_size': len(str(response_data)),
            'response_data': self._sanitize_response_data(response_data),
            **kwargs
        }

        event_type = 'SERVER_RESPONSE_SUCCESS' if success else 'SERVER_RESPONSE_ERROR'
        log_message = self._create_log_entry(event_type, action, self._get_user_identity(request), details)

        if success:
            self.logger.info(log_message)
        else:
            self.logger.warning(log_message)

    def log_game_event(self,
                       room_id: Optional[str],
                       event: str,
                       actor: str = 'system',
                       **kwargs):
        """
        Log game-specific events (starts, wins, draws, forfeits, deletions).

        Args:
            room_id: Room identifier
            event: Type of game event (e.g., 'game_started', 'game_won')
            actor: Socket id or 'system'
            **kwargs: Additional game details
        """
        user_info = {'user_ip': None, 'session_id': actor, 'username': kwargs.pop('username', None)}
        details = {
            'room_id': room_id,
            **kwargs
        }

        log_message = self._create_log_entry('GAME_EVENT', event, user_info, details)
        self.logger.info(log_message)

    def log_error(self,
                  request,
                  error: Exception,
                  action: str,
                  room_id: Optional[str] = None):
        """
        Log errors with full context.

        Args:
            request: Flask request object (or None outside a request)
            error: Exception that occurred
            action: Action that was being performed
            room_id: Room identifier if applicable
        """
        details = {
            'room_id': room_id,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'action': action
        }

        log_message = self._create_log_entry('ERROR', action, self._get_user_identity(request), details)
        self.logger.error(log_message)

    def _sanitize_response_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Keep log lines small: full boards are summarized."""
        if not isinstance(data, dict):
            return {'data_type': type(data).__name__}

        sanitized = data.copy()

        if isinstance(sanitized.get('gameState'), dict):
            state = sanitized['gameState']
            sanitized['gameState'] = {
                'currentPlayer': state.get('currentPlayer'),
                'gamePhase': state.get('gamePhase'),
                'gameResult': state.get('gameResult'),
                'endReason': state.get('endReason'),
            }

        sanitized.pop('sessionToken', None)
        return sanitized


# Global logger instance
game_logger = GameLogger()
