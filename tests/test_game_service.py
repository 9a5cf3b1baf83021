"""Tests for the authoritative move processor."""

import copy

from conftest import FakeClock, make_started_room

from jankenwars.models.game import (
    Cell, EndReason, GamePhase, GameResult, MoveRequest, PieceType, Player, Position
)
from jankenwars.services.game_service import GameService
from jankenwars.services.room_service import RoomService

R, P, S, X = PieceType.ROCK, PieceType.PAPER, PieceType.SCISSORS, PieceType.SPECIAL


def setup_game():
    rooms = RoomService(clock=FakeClock())
    room = make_started_room()
    rooms.rooms[room.id] = room
    rooms.socket_rooms.update({'s1': room.id, 's2': room.id})
    return GameService(rooms), room


def move(room, row, col, piece):
    return MoveRequest(room_id=room.id, position=Position(row, col), piece=piece)


def snapshot(room):
    return copy.deepcopy(room.game_state.to_dict())


def test_first_placement():
    games, room = setup_game()
    result = games.process_move('s1', move(room, 0, 0, R))

    state = result['game_state']
    assert result['success']
    assert state.board[0][0] == Cell(R, Player.PLAYER1, False)
    assert state.player1_inventory[R] == 6
    assert state.player2_inventory[R] == 7
    assert state.current_player is Player.PLAYER2
    assert room.game_state is state
    assert result['move_details'] == {
        'playerId': 's1',
        'player': 'PLAYER1',
        'piece': 'ROCK',
        'position': {'row': 0, 'col': 0},
        'captured': False,
        'locked': False,
        'turnSkipped': False,
    }


def test_losing_attack_is_rejected_and_winning_attack_locks():
    games, room = setup_game()
    games.process_move('s1', move(room, 0, 0, R))
    before = snapshot(room)

    rejected = games.process_move('s2', move(room, 0, 0, S))
    assert rejected == {'success': False, 'error': 'Invalid move', 'code': 'invalid_move'}
    assert snapshot(room) == before

    accepted = games.process_move('s2', move(room, 0, 0, P))
    assert accepted['success']
    assert room.game_state.board[0][0] == Cell(P, Player.PLAYER2, True)
    assert accepted['move_details']['captured']
    assert accepted['move_details']['locked']


def test_validation_order_and_codes():
    games, room = setup_game()

    assert games.process_move('s1', MoveRequest('00000000', Position(0, 0), R))['code'] == 'room_not_found'
    assert games.process_move('s9', move(room, 0, 0, R))['code'] == 'not_a_player'
    assert games.process_move('s2', move(room, 0, 0, R))['code'] == 'not_your_turn'

    room.game_state.player1_inventory[X] = 0
    assert games.process_move('s1', move(room, 0, 0, X))['code'] == 'piece_unavailable'

    room.in_progress = False
    assert games.process_move('s1', move(room, 0, 0, R))['code'] == 'not_in_progress'


def test_every_rejection_leaves_state_untouched():
    games, room = setup_game()
    games.process_move('s1', move(room, 2, 2, X))
    before = snapshot(room)

    attempts = [
        ('s1', move(room, 1, 1, R)),       # wrong turn
        ('s2', move(room, 2, 2, R)),       # special cannot be captured
        ('s2', move(room, 2, 2, X)),       # special only on empty cells
        ('s3', move(room, 1, 1, R)),       # not a player
    ]
    for sid, request in attempts:
        assert not games.process_move(sid, request)['success']
        assert snapshot(room) == before


def test_turns_alternate_until_game_over():
    games, room = setup_game()
    expected = Player.PLAYER1
    cells = [(row, col) for row in range(6) for col in range(6)]
    for index, (row, col) in enumerate(cells):
        assert room.game_state.current_player is expected
        sid = 's1' if expected is Player.PLAYER1 else 's2'
        result = games.process_move(sid, move(room, row, col, [R, P, S][index % 3]))
        assert result['success']
        if result['game_over']:
            break
        expected = expected.opponent

    # row-major filling hands PLAYER1 the first column
    assert room.game_state.game_phase is GamePhase.GAME_OVER
    assert room.game_state.winning_line == [Position(r, 0) for r in range(4)]


def test_alignment_win():
    games, room = setup_game()
    for col in range(3):
        games.process_move('s1', move(room, 0, col, R))
        games.process_move('s2', move(room, 5, col, P))

    result = games.process_move('s1', move(room, 0, 3, R))
    state = room.game_state

    assert result['game_over']
    assert state.game_phase is GamePhase.GAME_OVER
    assert state.game_result is GameResult.PLAYER1_WIN
    assert state.end_reason is EndReason.ALIGNMENT
    assert state.winning_line == [Position(0, c) for c in range(4)]
    # game stays in progress until a rematch is requested
    assert room.in_progress
    assert games.process_move('s2', move(room, 4, 4, P))['code'] == 'not_in_progress'


def test_draw_when_both_inventories_run_out():
    games, room = setup_game()
    state = room.game_state
    for inventory in (state.player1_inventory, state.player2_inventory):
        for piece in inventory:
            inventory[piece] = 0
    state.player1_inventory[R] = 1

    result = games.process_move('s1', move(room, 3, 3, R))
    assert result['game_over']
    assert room.game_state.game_result is GameResult.DRAW
    assert room.game_state.end_reason is EndReason.DRAW


def test_turn_skipped_when_opponent_has_no_pieces():
    games, room = setup_game()
    state = room.game_state
    for piece in state.player2_inventory:
        state.player2_inventory[piece] = 0

    result = games.process_move('s1', move(room, 0, 0, R))
    assert result['success']
    assert result['move_details']['turnSkipped']
    assert room.game_state.current_player is Player.PLAYER1


def test_rematch_only_after_game_over():
    games, room = setup_game()
    assert games.request_rematch('s1', room.id)['code'] == 'rematch_unavailable'

    room.game_state.game_phase = GamePhase.GAME_OVER
    assert games.request_rematch('s9', room.id)['code'] == 'not_a_player'

    result = games.request_rematch('s2', room.id)
    assert result['success']
    assert room.game_state.game_phase is GamePhase.READY
    assert not room.in_progress
    assert not any(p.ready for p in room.players.values())


def test_describe_result():
    games, room = setup_game()
    room.game_state.game_result = GameResult.PLAYER2_WIN
    room.game_state.end_reason = EndReason.OPPONENT_LEFT

    summary = games.describe_result(room.game_state)
    assert summary['winner'] == 'PLAYER2'
    assert summary['end_reason'] == 'OPPONENT_LEFT'
    assert summary['pieces_left'] == {'PLAYER1': 22, 'PLAYER2': 22}
