"""
Lobby Controller

Read-only room listing for the lobby screen.
"""

from flask import Blueprint, request, jsonify, current_app
from ..utils.decorators import rate_limited
from ..utils.game_logger import game_logger

lobby_bp = Blueprint('lobby', __name__)


@lobby_bp.route('/game-rooms', methods=['GET'])
@rate_limited
def list_game_rooms():
    """Rooms that have not started, with player counts."""
    try:
        with current_app.state_lock:
            rooms = current_app.room_service.list_open_rooms()
        response_data = {'rooms': rooms}
        game_logger.log_server_response(request, 'list_game_rooms', True, {'count': len(rooms)})
        return jsonify(response_data)
    except Exception as e:
        game_logger.log_error(request, e, 'list_game_rooms')
        error_response = {
            'success': False,
            'error': 'Failed to list rooms'
        }
        return jsonify(error_response), 500
