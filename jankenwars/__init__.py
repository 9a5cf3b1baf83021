"""
JankenWars Game Server Application Package

Real-time server for online JankenWars: rooms, quick matchmaking and the
authoritative move processor, served over Flask-SocketIO, plus a small
read-only HTTP surface.
"""

import threading
import time

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from .config import Config

__version__ = "1.0.0"


def create_app(config_class=Config):
    """
    Application factory pattern for creating Flask app instances.

    The room registry, matchmaking queue and move processor are built once
    here and handed by reference to the WebSocket layer.

    Args:
        config_class: Configuration class to use

    Returns:
        Tuple of (Flask application, SocketIO instance)
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    from .services import GameService, MatchmakingService, RoomService, SessionService
    from .utils.game_logger import game_logger
    from .utils.helpers import RateLimiter

    game_logger.setup(
        log_dir=app.config['LOG_DIR'],
        level=app.config['LOG_LEVEL'],
        to_file=app.config['LOG_TO_FILE']
    )

    # Initialize extensions
    origins = app.config['CORS_ORIGINS']
    if origins != '*':
        origins = [origin.strip() for origin in origins.split(',') if origin.strip()]
    CORS(app, origins=origins)
    socketio = SocketIO(app, cors_allowed_origins=origins, logger=False, engineio_logger=False)

    # Services
    app.session_service = SessionService(
        app.config['SESSION_TOKEN_SECRET'],
        token_ttl_seconds=app.config['SESSION_TOKEN_TTL_SECONDS']
    )
    app.room_service = RoomService(
        empty_grace_seconds=app.config['ROOM_EMPTY_GRACE_SECONDS'],
        max_lifetime_seconds=app.config['ROOM_MAX_LIFETIME_SECONDS']
    )
    app.matchmaking_service = MatchmakingService(
        app.room_service,
        queue_limit=app.config['MATCHMAKING_QUEUE_LIMIT']
    )
    app.game_service = GameService(app.room_service)
    app.rate_limiter = RateLimiter(
        max_requests=app.config['RATE_LIMIT_MAX_REQUESTS'],
        window_seconds=app.config['RATE_LIMIT_WINDOW_SECONDS']
    )
    app.started_at = time.time()
    app.state_lock = threading.RLock()

    # Register blueprints
    from .controllers.health_controller import health_bp
    from .controllers.lobby_controller import lobby_bp

    app.register_blueprint(health_bp, url_prefix='/api')
    app.register_blueprint(lobby_bp, url_prefix='/api')

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    # Register WebSocket handlers
    from .websocket.handlers import register_websocket_handlers
    register_websocket_handlers(
        socketio,
        app.session_service,
        app.room_service,
        app.matchmaking_service,
        app.game_service,
        lock=app.state_lock
    )

    # Store socketio instance for use in other modules
    app.socketio = socketio

    return app, socketio
