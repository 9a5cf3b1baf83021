"""
Game Service

Contains the authoritative move processor for online JankenWars games.
"""

from typing import Dict, Optional, Tuple

from ..models.game import (
    EndReason, GamePhase, GameResult, GameState, MoveRecord, MoveRequest, PieceType, Player
)
from ..models.room import Room, RoomPlayer
from .room_service import RoomService
from .rules import find_winning_line, has_pieces, is_draw, is_valid_move, resolve_move


class GameService:
    """
    Server-side move processor.

    This class handles:
    - Move validation against the room's authoritative state
    - Applying moves through the rules engine
    - Turn, phase and result transitions
    - Rematch resets

    A rejected request never touches room state: every check runs before the
    new state is built, and the new state replaces the old one in a single
    assignment.
    """

    def __init__(self, room_service: RoomService):
        self.room_service = room_service

    def validate_move(self, sid: str, move: MoveRequest) -> Tuple[Optional[Room], Optional[RoomPlayer], Dict]:
        """
        Runs every validation step for a move.

        Returns:
            Tuple of (room, player, error); error is empty when the move is acceptable
        """
        room = self.room_service.get_room(move.room_id)
        if not room:
            return None, None, {'error': 'Room not found', 'code': 'room_not_found'}

        state = room.game_state
        if not room.in_progress or state is None or state.game_phase is not GamePhase.SELECTING_CELL:
            return room, None, {'error': 'Game is not in progress', 'code': 'not_in_progress'}

        player = room.players.get(sid)
        if not player or not player.connected:
            return room, None, {'error': 'Only players can make moves', 'code': 'not_a_player'}

        if state.current_player is not player.player:
            return room, player, {'error': 'Not your turn', 'code': 'not_your_turn'}

        if not is_valid_move(state.board, move.position, move.piece, player.player):
            return room, player, {'error': 'Invalid move', 'code': 'invalid_move'}

        if state.inventory_for(player.player).get(move.piece, 0) <= 0:
            return room, player, {
                'error': f'No {move.piece.value.lower()} pieces left',
                'code': 'piece_unavailable'
            }

        return room, player, {}

    def process_move(self, sid: str, move: MoveRequest) -> Dict:
        """
        Validate and apply a move.

        Args:
            sid: Socket id of the sender
            move: Boundary-validated move request

        Returns:
            {'success': True, 'room', 'game_state', 'move_details', 'game_over'}
            or {'success': False, 'error', 'code'}
        """
        room, player, error = self.validate_move(sid, move)
        if error:
            return {'success': False, **error}

        new_state = self._apply_move(room.game_state, player.player, move)
        room.game_state = new_state
        room.touch(self.room_service.clock())

        move_details = {'playerId': sid, **new_state.last_move.to_dict()}

        return {
            'success': True,
            'room': room,
            'game_state': new_state,
            'move_details': move_details,
            'game_over': new_state.game_phase is GamePhase.GAME_OVER
        }

    def _apply_move(self, state: GameState, mover: Player, move: MoveRequest) -> GameState:
        board, captured = resolve_move(state.board, move.position, move.piece, mover)

        player1_inventory = dict(state.player1_inventory)
        player2_inventory = dict(state.player2_inventory)
        inventory = player1_inventory if mover is Player.PLAYER1 else player2_inventory
        inventory[move.piece] -= 1

        record = MoveRecord(
            player=mover,
            piece=move.piece,
            position=move.position,
            captured=captured,
            locked=board[move.position.row][move.position.col].has_been_used
        )

        new_state = GameState(
            board=board,
            player1_inventory=player1_inventory,
            player2_inventory=player2_inventory,
            current_player=mover,
            game_phase=GamePhase.SELECTING_CELL,
            game_result=GameResult.ONGOING,
            last_move=record
        )

        winning_line = find_winning_line(board, mover)
        if winning_line:
            new_state.game_phase = GamePhase.GAME_OVER
            new_state.game_result = GameResult.win_for(mover)
            new_state.winning_line = winning_line
            new_state.end_reason = EndReason.ALIGNMENT
            return new_state

        if is_draw(board, player1_inventory, player2_inventory):
            new_state.game_phase = GamePhase.GAME_OVER
            new_state.game_result = GameResult.DRAW
            new_state.end_reason = EndReason.DRAW
            return new_state

        # A player with nothing left to place passes the turn straight back
        next_player = mover.opponent
        if not has_pieces(new_state.inventory_for(next_player)):
            record.turn_skipped = True
            next_player = mover

        new_state.current_player = next_player
        return new_state

    def request_rematch(self, sid: str, room_id: str) -> Dict:
        """
        Reset a finished game back to the READY phase.

        Returns:
            {'success': True, 'room'} or {'success': False, 'error', 'code'}
        """
        room = self.room_service.get_room(room_id)
        if not room:
            return {'success': False, 'error': 'Room not found', 'code': 'room_not_found'}

        if sid not in room.players:
            return {'success': False, 'error': 'Only players can request a rematch', 'code': 'not_a_player'}

        if not room.game_state or room.game_state.game_phase is not GamePhase.GAME_OVER:
            return {'success': False, 'error': 'Rematch is only available after the game ends',
                    'code': 'rematch_unavailable'}

        self.room_service.reset_for_rematch(room)
        return {'success': True, 'room': room}

    def describe_result(self, state: GameState) -> Dict:
        """Summary used for game-over logging."""
        winner: Optional[str] = None
        if state.game_result is GameResult.PLAYER1_WIN:
            winner = Player.PLAYER1.value
        elif state.game_result is GameResult.PLAYER2_WIN:
            winner = Player.PLAYER2.value

        return {
            'result': state.game_result.value,
            'winner': winner,
            'end_reason': state.end_reason.value if state.end_reason else None,
            'pieces_left': {
                Player.PLAYER1.value: sum(state.player1_inventory.values()),
                Player.PLAYER2.value: sum(state.player2_inventory.values())
            },
            'special_used': {
                Player.PLAYER1.value: state.player1_inventory.get(PieceType.SPECIAL, 0) == 0,
                Player.PLAYER2.value: state.player2_inventory.get(PieceType.SPECIAL, 0) == 0
            }
        }
