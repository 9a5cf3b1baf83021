"""
JankenWars Game Server - Main Entry Point

This is the main entry point for the JankenWars game server.
It creates the Flask-SocketIO application, starts the room cleanup worker
and runs the server.
"""

import threading

from jankenwars import create_app
from jankenwars.config import get_config
from jankenwars.utils.game_logger import game_logger


def run_cleanup(app):
    """
    One cleanup pass: delete expired rooms, drop stale matchmaking entries
    and forget idle rate-limit buckets.

    Returns:
        Summary of what was removed
    """
    with app.state_lock:
        deleted_rooms = app.room_service.collect_garbage()
        sweep_result = app.matchmaking_service.sweep(app.session_service.is_connected)

    for room_id in deleted_rooms:
        game_logger.log_game_event(room_id, 'room_deleted', reason='expired')
    if sweep_result['cleared']:
        game_logger.logger.warning("Matchmaking queue exceeded its limit and was cleared")

    pruned = app.rate_limiter.prune()

    summary = {
        'rooms_deleted': len(deleted_rooms),
        'queue_entries_dropped': sweep_result['dropped'],
        'queue_cleared': sweep_result['cleared'],
        'rate_limit_buckets_pruned': pruned
    }
    if deleted_rooms or sweep_result['dropped']:
        game_logger.logger.info(f"Cleanup: {summary}")
    return summary


def room_cleanup_worker(app, stop_event=None):
    """
    Background worker that periodically garbage-collects rooms and the
    matchmaking queue. Runs every CLEANUP_INTERVAL_SECONDS.
    """
    stop_event = stop_event or threading.Event()
    interval = app.config['CLEANUP_INTERVAL_SECONDS']
    print("Room cleanup worker started")

    while not stop_event.wait(interval):
        try:
            with app.app_context():
                run_cleanup(app)
        except Exception as e:
            game_logger.log_error(None, e, 'room_cleanup')


def main():
    """Main function to create the app and start the server."""
    config_class = get_config()

    try:
        print("Creating Flask application...")
        app, socketio = create_app(config_class)
        print("✓ Flask application created successfully")

        cleanup_thread = threading.Thread(target=room_cleanup_worker, args=(app,), daemon=True)
        cleanup_thread.start()
        print(f"✓ Room cleanup worker started - checking every {config_class.CLEANUP_INTERVAL_SECONDS} seconds")

        game_logger.logger.info("JankenWars Server Starting")

        print(f"\nStarting JankenWars Game Server on {config_class.HOST}:{config_class.PORT}")
        print(f"Debug mode: {config_class.DEBUG}")
        print("=" * 50)

        socketio.run(app, host=config_class.HOST, port=config_class.PORT, debug=config_class.DEBUG,
                     allow_unsafe_werkzeug=True)

    except KeyboardInterrupt:
        print("\nServer shutting down...")
        game_logger.logger.info("JankenWars Server shutting down (KeyboardInterrupt)")
    except Exception as e:
        print(f"Error starting server: {e}")
        game_logger.logger.error(f"Error starting server: {e}")
        raise


if __name__ == '__main__':
    main()
