"""Server half of the session coordinator.

Each command follows the same shape: load the room, check the caller's role,
let the owning service mutate, commit, then publish a hint on the channel
whose aggregate changed. Subscribers reload; nothing here pushes state.
"""

from flask import current_app

from sketchguess import db
from sketchguess.errors import InvalidPayload, InvalidTransition, Unauthorized
from sketchguess.models import Room, RoundStats, now_ms
from . import channels, messages, roster, rounds, strokes
from .scheduler import schedule_round_end
from .scoring import points_from_config, seconds_left
from .store import commit, find_player, get_player_or_404, get_room_or_404
from .words import DIFFICULTIES

ROUNDS_RANGE = (1, 20)
DURATION_RANGE = (10, 300)


def _int_in_range(data, key, bounds):
    raw = data.get(key)
    if isinstance(raw, bool):
        raise InvalidPayload(f'{key} must be an integer', code=f'invalid_{key}')
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidPayload(f'{key} must be an integer', code=f'invalid_{key}')
    low, high = bounds
    if value < low or value > high:
        raise InvalidPayload(f'{key} must be between {low} and {high}', code=f'invalid_{key}')
    return value


def _apply_settings(room: Room, data: dict) -> None:
    if 'max_rounds' in data:
        room.max_rounds = _int_in_range(data, 'max_rounds', ROUNDS_RANGE)
    if 'round_duration' in data:
        room.round_duration = _int_in_range(data, 'round_duration', DURATION_RANGE)
    if 'difficulty' in data:
        difficulty = str(data.get('difficulty') or '').strip().lower()
        if difficulty not in DIFFICULTIES:
            raise InvalidPayload(f'difficulty must be one of {", ".join(DIFFICULTIES)}', code='invalid_difficulty')
        room.difficulty = difficulty
    if 'custom_words' in data:
        words = data.get('custom_words')
        if isinstance(words, str):
            words = words.split(',')
        if words is not None and not isinstance(words, list):
            raise InvalidPayload('custom_words must be a list', code='invalid_custom_words')
        room.custom_word_list = words or []
    if 'team_mode' in data:
        room.team_mode = bool(data.get('team_mode'))


def room_state(room: Room, viewer_user=None, at_ms=None) -> dict:
    """Room snapshot for one viewer: ranked roster, derived timer, round winners."""
    viewer = find_player(room, viewer_user.id) if viewer_user is not None else None
    at_ms = at_ms if at_ms is not None else now_ms()
    payload = room.to_dict(viewer=viewer)
    players = roster.ranked_players(room)
    payload['players'] = [p.to_dict() for p in players]
    payload['teams'] = roster.team_totals(players) if room.team_mode else None
    payload['server_time_ms'] = at_ms
    payload['time_left'] = seconds_left(room.round_duration, room.round_started_at_ms, at_ms) \
        if room.state == 'playing' else 0
    stats = RoundStats.query.filter_by(room_id=room.id, round_number=room.current_round).first() \
        if room.current_round else None
    payload['correct_guessers'] = stats.guesser_ids if stats else []
    payload['viewer_player_id'] = viewer.id if viewer else None
    return payload


def create_room(user, data=None) -> Room:
    data = data or {}
    cfg = current_app.config
    room = Room(
        host_user_id=user.id,
        max_rounds=int(cfg.get('MAX_ROUNDS', 3)),
        round_duration=int(cfg.get('ROUND_DURATION_SEC', 60)),
        difficulty=cfg.get('DEFAULT_DIFFICULTY', 'medium'),
    )
    _apply_settings(room, data)
    db.session.add(room)
    commit('room')

    # The host joins their own room.
    roster.join(room, user)
    commit('join')
    current_app.logger.info(f"[create] room={room.id} code={room.room_code} host={user.id}")
    return room


def update_settings(room_code: str, user, data: dict) -> Room:
    room = get_room_or_404(room_code)
    if room.host_user_id != user.id:
        raise Unauthorized('Only the host can change settings', code='only_host')
    if room.state != 'waiting':
        raise InvalidTransition('Settings are locked once the game starts', code='not_waiting')
    _apply_settings(room, data or {})
    db.session.add(room)
    commit('settings')
    channels.publish(channels.ROOM, room, 'settings_updated')
    return room


def join(room_code: str, user):
    room = get_room_or_404(room_code)
    player = roster.join(room, user)
    commit('join')
    channels.publish(channels.ROOM, room, 'player_joined', {'player_id': player.id})
    return room, player


def leave(room_code: str, user) -> Room:
    room = get_room_or_404(room_code)
    player = get_player_or_404(room, user.id)
    roster.leave(room, player)
    commit('leave')
    channels.publish(channels.ROOM, room, 'player_left', {'player_id': player.id})
    return room


def choose_team(room_code: str, user, raw_team) -> Room:
    room = get_room_or_404(room_code)
    player = get_player_or_404(room, user.id)
    roster.set_team(room, player, roster.parse_team(raw_team))
    commit('team')
    channels.publish(channels.ROOM, room, 'team_changed', {'player_id': player.id})
    return room


def start_game(room_code: str, user) -> Room:
    room = get_room_or_404(room_code)
    if room.host_user_id != user.id:
        raise Unauthorized('Only the host can start the game', code='only_host')
    rounds.start_game(room, roster.active_players(room))
    commit('start')
    channels.publish(channels.ROOM, room, 'game_started', {'round_number': room.current_round})
    channels.publish(channels.DRAWING, room, 'canvas_cleared', {'round_number': room.current_round})
    return room


def run_advance(room: Room, expected_round: int):
    """Guarded advance shared by client "time's up" requests and the celebration timer."""
    result = rounds.advance_round(room, roster.active_players(room), expected_round=expected_round)
    if not result.advanced:
        db.session.rollback()
        return result
    commit('advance')
    if result.finished:
        channels.publish(channels.ROOM, room, 'game_finished', {'round_number': room.current_round})
    else:
        channels.publish(channels.ROOM, room, 'round_advanced', {'round_number': room.current_round})
        channels.publish(channels.DRAWING, room, 'canvas_cleared', {'round_number': room.current_round})
    return result


def _round_over(room: Room, at_ms=None) -> bool:
    """The deadline has passed on the server clock, or someone already guessed the word."""
    at_ms = at_ms if at_ms is not None else now_ms()
    if seconds_left(room.round_duration, room.round_started_at_ms, at_ms) == 0:
        return True
    stats = RoundStats.query.filter_by(room_id=room.id, round_number=room.current_round).first()
    return bool(stats and stats.guesser_ids)


def advance(room_code: str, user, expected_round) -> Room:
    """Client "time's up" request for ``expected_round``."""
    room = get_room_or_404(room_code)
    get_player_or_404(room, user.id)
    if isinstance(expected_round, bool) or not isinstance(expected_round, int):
        raise InvalidPayload('expected_round must be an integer', code='invalid_expected_round')
    if room.state == 'playing' and room.current_round == expected_round and not _round_over(room):
        raise InvalidTransition('The round is still running', code='round_active')
    run_advance(room, expected_round)
    return room


def add_stroke(room_code: str, user, data: dict):
    room = get_room_or_404(room_code)
    player = find_player(room, user.id)
    stroke = strokes.append(room, player, data or {})
    commit('stroke')
    channels.publish(channels.DRAWING, room, 'stroke_added', {'round_number': stroke.round_number})
    return room, stroke


def undo_stroke(room_code: str, user):
    room = get_room_or_404(room_code)
    player = find_player(room, user.id)
    removed = strokes.undo(room, player)
    if removed is not None:
        commit('undo')
        channels.publish(channels.DRAWING, room, 'stroke_undone', {'round_number': room.current_round})
    return room, removed


def clear_canvas(room_code: str, user):
    room = get_room_or_404(room_code)
    player = find_player(room, user.id)
    removed = strokes.clear(room, player)
    commit('clear')
    channels.publish(channels.DRAWING, room, 'canvas_cleared', {'round_number': room.current_round})
    return room, removed


def send_message(room_code: str, user, text):
    room = get_room_or_404(room_code)
    player = get_player_or_404(room, user.id)
    result = messages.submit(room, player, text)
    if result.already_guessed:
        return room, player, result

    awarded = 0
    round_number = room.current_round
    if result.correct:
        time_left = seconds_left(room.round_duration, room.round_started_at_ms, now_ms())
        awarded = points_from_config(current_app.config, time_left, room.round_duration)
        if not roster.award_points(room, player, round_number, awarded):
            awarded = 0
    commit('message')
    channels.publish(channels.CHAT, room, 'message_created', {'message_id': result.message.id})

    if result.correct:
        current_app.logger.info(
            f"[guess] room={room.id} round={round_number} player={player.id} points={awarded}"
        )
        channels.publish(channels.ROOM, room, 'correct_guess', {
            'player_id': player.id, 'display_name': player.display_name, 'round_number': round_number,
        })
        stats = RoundStats.query.filter_by(room_id=room.id, round_number=round_number).first()
        winners = stats.guesser_ids if stats else [player.id]
        if winners == [player.id]:
            # First correct guess of the round opens the celebration.
            channels.publish(channels.ROOM, room, 'round_end', {'round_number': round_number, 'winners': winners})
        schedule_round_end(current_app._get_current_object(), room.id, round_number)
        db.session.expire_all()
    result.points = awarded
    return room, player, result
