"""Tests for the room registry."""

from conftest import FakeClock

from jankenwars.config.game_settings import ROOM_ID_PATTERN
from jankenwars.models.game import EndReason, GamePhase, GameResult, Player
from jankenwars.services.room_service import RoomService


def make_service(clock=None):
    return RoomService(empty_grace_seconds=300, max_lifetime_seconds=6 * 3600, clock=clock or FakeClock())


def two_player_room(service):
    room = service.create_room('s1', 'alice', 'sess1')['room']
    service.join_room(room.id, 's2', 'bob', 'sess2')
    return room


def test_create_room_registers_player_one():
    service = make_service()
    result = service.create_room('s1', 'alice', 'sess1')

    room = result['room']
    assert result['success']
    assert ROOM_ID_PATTERN.match(room.id)
    assert room.players['s1'].player_number == 1
    assert not room.players['s1'].ready
    assert not room.in_progress
    assert service.room_of('s1') is room


def test_join_missing_room_is_an_error_without_mutation():
    service = make_service()
    result = service.join_room('deadbeef', 's1', 'alice', 'sess1')

    assert not result['success']
    assert result['code'] == 'room_not_found'
    assert service.rooms == {}
    assert service.socket_rooms == {}


def test_second_player_takes_seat_two_then_spectators():
    service = make_service()
    room = two_player_room(service)
    assert room.players['s2'].player_number == 2

    result = service.join_room(room.id, 's3', 'carol', 'sess3')
    assert result['role'] == 'spectator'
    assert room.spectators == ['s3']
    assert len(room.players) == 2


def test_both_ready_starts_game():
    service = make_service()
    room = two_player_room(service)

    first = service.toggle_ready(room.id, 's1')
    assert first['success'] and not first['game_started']

    second = service.toggle_ready(room.id, 's2')
    assert second['game_started']
    assert room.in_progress
    assert room.game_state.game_phase is GamePhase.SELECTING_CELL
    assert room.game_state.current_player is Player.PLAYER1


def test_toggle_ready_flips_back():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's1')
    assert not room.players['s1'].ready


def test_toggle_ready_rejects_spectators_and_running_games():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')

    service.join_room(room.id, 's3', 'carol', 'sess3')
    assert service.toggle_ready(room.id, 's3')['code'] == 'not_a_player'
    assert service.toggle_ready(room.id, 's1')['code'] == 'in_progress'


def test_join_in_progress_room_makes_spectator():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')

    result = service.join_room(room.id, 's9', 'zed', 'sess9')
    assert result['role'] == 'spectator'
    assert room.game_state.game_phase is GamePhase.SELECTING_CELL


def test_disconnect_keeps_seat_and_session_rejoin_restores_it():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's2')

    service.handle_disconnect('s2')
    seat = room.players['s2']
    assert not seat.connected
    assert seat.ready

    result = service.join_room(room.id, 's2b', 'bob', 'sess2')
    assert result['role'] == 'rejoined'
    assert result['replaced_sid'] == 's2'
    assert 's2' not in room.players
    assert room.players['s2b'].player_number == 2
    assert room.players['s2b'].ready
    assert room.players['s2b'].connected
    assert service.room_of('s2b') is room


def test_rejoin_reevaluates_start():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')
    service.reset_for_rematch(room)
    service.toggle_ready(room.id, 's2')
    service.handle_disconnect('s2')
    service.toggle_ready(room.id, 's1')
    assert not room.in_progress

    result = service.join_room(room.id, 's2b', 'bob', 'sess2')
    assert result['game_started']
    assert room.in_progress


def test_same_username_without_session_does_not_take_seat():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's2')
    service.handle_disconnect('s2')

    result = service.join_room(room.id, 's4', 'bob', 'another-session')
    assert result['role'] == 'player'
    assert 's2' not in room.players
    assert room.players['s4'].player_number == 2
    assert not room.players['s4'].ready


def test_voluntary_leave_frees_seat():
    service = make_service()
    room = two_player_room(service)

    result = service.leave_room(room.id, 's2')
    assert result['was_player']
    assert not result['forfeit']
    assert 's2' not in room.players
    assert room.free_player_number() == 2


def test_leave_mid_game_forfeits_to_remaining_player():
    clock = FakeClock()
    service = make_service(clock)
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')

    result = service.leave_room(room.id, 's1', disconnected=True)

    state = room.game_state
    assert result['forfeit']
    assert state.game_phase is GamePhase.GAME_OVER
    assert state.game_result is GameResult.PLAYER2_WIN
    assert state.end_reason is EndReason.OPPONENT_LEFT
    assert not room.in_progress
    assert room.pending_deletion == clock.now + 300


def test_forfeited_room_only_restarts_through_rematch():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')
    service.leave_room(room.id, 's1', disconnected=True)

    rejoin = service.join_room(room.id, 's1b', 'alice', 'sess1')
    assert rejoin['role'] == 'rejoined'
    assert not rejoin['game_started']
    assert not any(p.ready for p in room.players.values())

    service.toggle_ready(room.id, 's1b')
    assert not service.toggle_ready(room.id, 's2')['game_started']
    assert room.game_state.game_phase is GamePhase.GAME_OVER


def test_empty_room_gets_grace_period_then_collected():
    clock = FakeClock()
    service = make_service(clock)
    room = service.create_room('s1', 'alice', 'sess1')['room']

    result = service.handle_disconnect('s1')
    assert result['emptied']
    assert room.pending_deletion == clock.now + 300

    clock.advance(299)
    assert service.collect_garbage() == []

    clock.advance(1)
    assert service.collect_garbage() == [room.id]
    assert service.get_room(room.id) is None


def test_rejoin_clears_pending_deletion():
    clock = FakeClock()
    service = make_service(clock)
    room = service.create_room('s1', 'alice', 'sess1')['room']
    service.handle_disconnect('s1')

    clock.advance(100)
    service.join_room(room.id, 's1b', 'alice', 'sess1')
    assert room.pending_deletion is None

    clock.advance(1000)
    assert service.collect_garbage() == []


def test_max_lifetime_deletes_active_rooms():
    clock = FakeClock()
    service = make_service(clock)
    room = two_player_room(service)

    clock.advance(6 * 3600)
    assert service.collect_garbage() == [room.id]
    assert service.room_of('s1') is None


def test_creating_a_room_leaves_the_previous_one():
    service = make_service()
    first = two_player_room(service)

    result = service.create_room('s2', 'bob', 'sess2')
    assert result['left']['room'] is first
    assert 's2' not in first.players
    assert service.room_of('s2') is result['room']


def test_matched_room_starts_immediately():
    service = make_service()
    result = service.create_matched_room(
        {'sid': 's1', 'username': 'alice', 'session_id': 'sess1'},
        {'sid': 's2', 'username': 'bob', 'session_id': 'sess2'}
    )

    room = result['room']
    assert result['game_started']
    assert room.in_progress
    assert room.players['s1'].player_number == 1
    assert room.players['s2'].player_number == 2


def test_list_open_rooms_hides_running_games():
    service = make_service()
    lobby = service.create_room('s5', 'erin', 'sess5')['room']
    running = two_player_room(service)
    service.toggle_ready(running.id, 's1')
    service.toggle_ready(running.id, 's2')

    rooms = service.list_open_rooms()
    assert rooms == [{'id': lobby.id, 'playerCount': 1, 'players': ['erin']}]


def test_rematch_reset():
    service = make_service()
    room = two_player_room(service)
    service.toggle_ready(room.id, 's1')
    service.toggle_ready(room.id, 's2')
    room.game_state.game_phase = GamePhase.GAME_OVER

    service.reset_for_rematch(room)
    assert not room.in_progress
    assert room.game_state.game_phase is GamePhase.READY
    assert not any(p.ready for p in room.players.values())
