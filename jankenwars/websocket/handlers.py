"""
WebSocket Event Handlers

Handles all WebSocket events for real-time multiplayer functionality.

Every handler runs to completion (validate, mutate, broadcast) before the
next event is dispatched, which serializes moves per room in arrival order.
"""

import threading

from flask import request
from flask_socketio import emit, join_room, leave_room

from ..utils.decorators import identified_required, serialized, socket_errors
from ..utils.game_logger import game_logger
from ..utils.validators import parse_move_payload, parse_room_id, parse_user_join


def room_payload(room):
    """Roster plus full state snapshot."""
    return {
        **room.roster(),
        'gameState': room.game_state.to_dict() if room.game_state else None
    }


def register_websocket_handlers(socketio, sessions, rooms, matchmaking, games, lock=None):
    """
    Register all WebSocket event handlers.

    Args:
        socketio: Flask-SocketIO instance
        sessions: SessionService
        rooms: RoomService
        matchmaking: MatchmakingService
        games: GameService
        lock: Lock shared with every other writer of the registries
    """
    identified = identified_required(sessions)
    serial = serialized(lock or threading.RLock())

    def broadcast_game_start(room):
        socketio.emit('game:start', room_payload(room), to=room.id)
        game_logger.log_game_event(
            room.id, 'game_started',
            players=[p.username for p in sorted(room.players.values(), key=lambda p: p.player_number)]
        )

    def announce_departure(sid, result, disconnected=False):
        """Tell the rest of a room that `sid` left it."""
        if not result or not result.get('success'):
            return

        room = result['room']
        if not disconnected:
            leave_room(room.id, sid=sid)

        if result['forfeit']:
            socketio.emit('game:opponent_left', {
                'roomId': room.id,
                'gameState': room.game_state.to_dict(),
                'leftPlayerId': sid
            }, to=room.id, skip_sid=sid)
            game_logger.log_game_event(
                room.id, 'game_forfeited', sid,
                username=result['left_player'].username,
                result=room.game_state.game_result.value,
                disconnected=disconnected
            )

        if result['was_player']:
            socketio.emit('player:left', {
                'playerId': sid,
                'disconnected': disconnected,
                **room.roster()
            }, to=room.id, skip_sid=sid)

        if result['emptied']:
            game_logger.log_game_event(room.id, 'room_emptied', pending_deletion=room.pending_deletion)

    def enter_room(sid, room):
        join_room(room.id, sid=sid)

    @socketio.on('connect')
    @serial
    def handle_connect(auth=None):
        """Handle WebSocket connection."""
        game_logger.log_user_action(request, 'connect')

    @socketio.on('disconnect')
    @serial
    def handle_disconnect(reason=None):
        """Handle WebSocket disconnection: drop queue entry, keep the room seat."""
        sid = request.sid
        matchmaking.remove(sid)
        announce_departure(sid, rooms.handle_disconnect(sid), disconnected=True)

        user = sessions.forget(sid)
        game_logger.log_user_action(
            request, 'disconnect', username=user.username if user else None,
            reason=str(reason) if reason else None
        )

    @socketio.on('user:join')
    @serial
    @socket_errors('user:join')
    def handle_user_join(payload=None):
        """Associate a username (and optional session token) with this socket."""
        data, error = parse_user_join(payload)
        if error:
            emit('error', {'message': error})
            return

        result = sessions.identify(request.sid, data['username'], data['session_token'])
        game_logger.log_user_action(request, 'user:join', username=data['username'], resumed=result['resumed'])

        emit('user:joined', {
            'sid': request.sid,
            'username': result['username'],
            'sessionToken': result['session_token'],
            'resumed': result['resumed']
        })

    @socketio.on('room:create')
    @serial
    @socket_errors('room:create')
    @identified
    def handle_room_create(payload=None, user=None):
        """Create a room with the caller as player 1."""
        sid = request.sid
        matchmaking.remove(sid)

        result = rooms.create_room(sid, user.username, user.session_id)
        announce_departure(sid, result['left'])

        room = result['room']
        enter_room(sid, room)
        game_logger.log_user_action(request, 'room:create', room.id, user.username)

        emit('room:created', room_payload(room))

    @socketio.on('room:join')
    @serial
    @socket_errors('room:join')
    @identified
    def handle_room_join(payload=None, user=None):
        """Join as player, spectator or returning player."""
        room_id, error = parse_room_id(payload)
        if error:
            emit('error', {'message': error})
            return

        sid = request.sid
        game_logger.log_user_action(request, 'room:join', room_id, user.username)

        result = rooms.join_room(room_id, sid, user.username, user.session_id)
        if not result['success']:
            game_logger.log_server_response(request, 'room:join', False, result, room_id)
            emit('error', {'message': result['error'], 'code': result['code']})
            return

        matchmaking.remove(sid)
        announce_departure(sid, result['left'])

        room = result['room']
        enter_room(sid, room)

        if result['role'] == 'spectator':
            emit('room:joined:spectator', room_payload(room))
            return

        replaced_sid = result.get('replaced_sid')
        if replaced_sid and replaced_sid != sid:
            leave_room(room.id, sid=replaced_sid)
            game_logger.log_game_event(room.id, 'player_rejoined', sid, username=user.username,
                                       player_number=result['player'].player_number)

        emit('room:joined', room_payload(room))
        socketio.emit('room:player:joined', {
            'playerId': sid,
            'rejoined': result['role'] == 'rejoined',
            **room.roster()
        }, to=room.id, skip_sid=sid)

        if result['game_started']:
            broadcast_game_start(room)

    @socketio.on('player:ready')
    @serial
    @socket_errors('player:ready')
    @identified
    def handle_player_ready(payload=None, user=None):
        """Toggle ready; may start the game."""
        room_id, error = parse_room_id(payload)
        if error:
            emit('error', {'message': error})
            return

        result = rooms.toggle_ready(room_id, request.sid)
        if not result['success']:
            emit('error', {'message': result['error'], 'code': result['code']})
            return

        room = result['room']
        game_logger.log_user_action(request, 'player:ready', room.id, user.username, ready=result['player'].ready)

        socketio.emit('room:player:ready', {
            'playerId': request.sid,
            'ready': result['player'].ready,
            **room.roster()
        }, to=room.id)

        if result['game_started']:
            broadcast_game_start(room)

    @socketio.on('game:move')
    @serial
    @socket_errors('game:move')
    @identified
    def handle_game_move(payload=None, user=None):
        """Submit a move; the full new state goes to everyone in the room."""
        move, error = parse_move_payload(payload)
        if error:
            emit('error', {'message': error})
            return

        game_logger.log_user_action(
            request, 'game:move', move.room_id, user.username,
            piece=move.piece.value, position=move.position.to_dict()
        )

        result = games.process_move(request.sid, move)
        if not result['success']:
            game_logger.log_server_response(request, 'game:move', False, result, move.room_id)
            emit('game:error', {'message': result['error'], 'code': result['code']})
            return

        room = result['room']
        socketio.emit('game:state:update', {
            'roomId': room.id,
            'gameState': result['game_state'].to_dict(),
            'moveDetails': result['move_details']
        }, to=room.id)

        if result['game_over']:
            game_logger.log_game_event(room.id, 'game_over', request.sid,
                                       **games.describe_result(result['game_state']))

    @socketio.on('game:request_rematch')
    @serial
    @socket_errors('game:request_rematch')
    @identified
    def handle_request_rematch(payload=None, user=None):
        """Reset a finished game to READY."""
        room_id, error = parse_room_id(payload)
        if error:
            emit('error', {'message': error})
            return

        result = games.request_rematch(request.sid, room_id)
        if not result['success']:
            emit('game:error', {'message': result['error'], 'code': result['code']})
            return

        room = result['room']
        game_logger.log_game_event(room.id, 'rematch_initiated', request.sid, username=user.username)
        socketio.emit('game:rematch:initiated', room_payload(room), to=room.id)

    @socketio.on('room:leave')
    @serial
    @socket_errors('room:leave')
    @identified
    def handle_room_leave(payload=None, user=None):
        """Voluntary departure; frees the seat."""
        room_id, error = parse_room_id(payload)
        if error:
            emit('error', {'message': error})
            return

        sid = request.sid
        result = rooms.leave_room(room_id, sid)
        if not result['success']:
            emit('error', {'message': result['error'], 'code': result['code']})
            return

        game_logger.log_user_action(request, 'room:leave', room_id, user.username)
        announce_departure(sid, result)
        emit('room:left', {'roomId': room_id})

    @socketio.on('matchmaking:join')
    @serial
    @socket_errors('matchmaking:join')
    @identified
    def handle_matchmaking_join(payload=None, user=None):
        """Queue for a quick match."""
        result = matchmaking.enqueue(request.sid, user.username, user.session_id)
        game_logger.log_user_action(request, 'matchmaking:join', username=user.username, matched=result['matched'])

        if not result['matched']:
            emit('matchmaking:waiting', {'queueSize': len(matchmaking.queue)})
            return

        room = result['room']
        for departed_sid, departed in result['left'].items():
            announce_departure(departed_sid, departed)

        for entry in result['pair']:
            enter_room(entry.sid, room)

        socketio.emit('matchmaking:matched', room_payload(room), to=room.id)
        game_logger.log_game_event(room.id, 'players_matched',
                                   players=[entry.username for entry in result['pair']])

        if result['game_started']:
            broadcast_game_start(room)

    @socketio.on('matchmaking:cancel')
    @serial
    @socket_errors('matchmaking:cancel')
    @identified
    def handle_matchmaking_cancel(payload=None, user=None):
        """Leave the queue; a no-op once paired."""
        result = matchmaking.cancel(request.sid)
        emit('matchmaking:cancelled', {'removed': result['removed']})
