"""
Request Decorators

Contains decorators for HTTP rate limiting and WebSocket identity checks.
"""

from functools import wraps
from flask import request, jsonify, current_app
from flask_socketio import emit

from .game_logger import game_logger
from .helpers import get_client_ip


def rate_limited(f):
    """
    Decorator applying the per-IP request limit to an HTTP endpoint.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        limiter = current_app.rate_limiter
        client_ip = get_client_ip()

        if not limiter.allow(client_ip):
            game_logger.logger.warning(f"Rate limit exceeded for {client_ip} on {request.path}")
            response = jsonify({
                'success': False,
                'error': 'Too many requests, please try again later.'
            })
            response.status_code = 429
            response.headers['Retry-After'] = str(limiter.retry_after(client_ip))
            return response

        return f(*args, **kwargs)

    return decorated_function


def identified_required(session_service):
    """Decorator for WebSocket events that need a prior user:join."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = session_service.get_user(request.sid)
            if not user:
                emit('error', {'message': 'Join with a username first'})
                return

            kwargs['user'] = user
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def socket_errors(action):
    """
    Decorator that logs unexpected handler failures and tells the sender,
    so a single bad event never tears down the connection.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except Exception as e:
                game_logger.log_error(request, e, action)
                emit('error', {'message': 'Internal server error'})

        return decorated_function

    return decorator


def serialized(lock):
    """Run the wrapped handler while holding the shared registry lock."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            with lock:
                return f(*args, **kwargs)

        return decorated_function

    return decorator
