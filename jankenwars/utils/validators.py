"""
Boundary Validators

Server-enforced checks applied to every inbound socket payload before it
reaches room or game logic. Each parser returns (value, error_message);
value is None whenever error_message is non-empty.
"""

from typing import Any, Optional, Tuple

from ..config.game_settings import BOARD_SIZE, ROOM_ID_PATTERN, USERNAME_PATTERN
from ..models.game import MoveRequest, PieceType, Position

PLAYABLE_PIECES = {PieceType.ROCK.value, PieceType.PAPER.value, PieceType.SCISSORS.value, PieceType.SPECIAL.value}


def validate_room_id(room_id: Any) -> bool:
    return isinstance(room_id, str) and ROOM_ID_PATTERN.match(room_id) is not None


def validate_username(username: Any) -> bool:
    return isinstance(username, str) and USERNAME_PATTERN.match(username) is not None


def parse_room_id(payload: Any) -> Tuple[Optional[str], str]:
    """Accepts a bare room id or {'roomId': ...}; normalises to lowercase."""
    room_id = payload.get('roomId') if isinstance(payload, dict) else payload
    if not validate_room_id(room_id):
        return None, "Invalid room ID"
    return room_id.lower(), ""


def parse_user_join(payload: Any) -> Tuple[Optional[dict], str]:
    """Accepts a bare username or {'username': ..., 'sessionToken': ...}."""
    if isinstance(payload, dict):
        username = payload.get('username')
        token = payload.get('sessionToken')
    else:
        username, token = payload, None

    if isinstance(username, str):
        username = username.strip()

    if not validate_username(username):
        return None, "Username must be 3-20 letters, digits or underscores"

    if token is not None and not isinstance(token, str):
        return None, "Session token must be a string"

    return {'username': username, 'session_token': token}, ""


def parse_move_payload(payload: Any, board_size: int = BOARD_SIZE) -> Tuple[Optional[MoveRequest], str]:
    """Validates {'roomId', 'position': {'row', 'col'}, 'piece'}."""
    if not isinstance(payload, dict):
        return None, "Move payload must be an object"

    room_id, error = parse_room_id(payload.get('roomId'))
    if error:
        return None, error

    try:
        position = Position.from_dict(payload.get('position'))
    except ValueError as e:
        return None, str(e)

    if not (0 <= position.row < board_size and 0 <= position.col < board_size):
        return None, "Position out of bounds"

    piece = payload.get('piece')
    if not isinstance(piece, str) or piece not in PLAYABLE_PIECES:
        return None, "Invalid piece type"

    return MoveRequest(room_id=room_id, position=position, piece=PieceType(piece)), ""
