"""
Health Controller

Liveness endpoint for load balancers and monitoring.
"""

import time

from flask import Blueprint, current_app, jsonify

from .. import __version__
from ..config.game_settings import get_rule_summary
from ..utils.decorators import rate_limited

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
@rate_limited
def health_check():
    """Process status, version and uptime."""
    return jsonify({
        'status': 'ok',
        'version': __version__,
        'uptime_seconds': int(time.time() - current_app.started_at),
        'rooms': len(current_app.room_service.rooms),
        'matchmaking_queue': len(current_app.matchmaking_service.queue),
        'connected_users': current_app.session_service.get_active_sessions_count(),
        'rules': get_rule_summary()
    })
