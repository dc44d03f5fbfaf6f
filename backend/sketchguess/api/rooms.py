from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from sketchguess.errors import InvalidPayload
from sketchguess.services.games import coordinator, messages, strokes
from sketchguess.services.games.store import find_player, get_room_or_404


rooms = Blueprint('rooms', __name__)


def _viewer():
    return current_user if current_user.is_authenticated else None


def _body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload('Request body must be a JSON object')
    return data


@rooms.route('', methods=['POST'])
@login_required
def create_room():
    room = coordinator.create_room(current_user, _body())
    return jsonify(coordinator.room_state(room, current_user)), 201


@rooms.route('/<string:room_code>', methods=['GET'])
def get_room_state(room_code):
    room = get_room_or_404(room_code)
    return jsonify(coordinator.room_state(room, _viewer()))


@rooms.route('/<string:room_code>/settings', methods=['PATCH'])
@login_required
def update_settings(room_code):
    room = coordinator.update_settings(room_code, current_user, _body())
    return jsonify(coordinator.room_state(room, current_user))


@rooms.route('/<string:room_code>/join', methods=['POST'])
@login_required
def join_room(room_code):
    room, player = coordinator.join(room_code, current_user)
    return jsonify({'player': player.to_dict(), 'room': coordinator.room_state(room, current_user)}), 201


@rooms.route('/<string:room_code>/leave', methods=['POST'])
@login_required
def leave_room(room_code):
    room = coordinator.leave(room_code, current_user)
    return jsonify(coordinator.room_state(room, current_user))


@rooms.route('/<string:room_code>/team', methods=['POST'])
@login_required
def choose_team(room_code):
    room = coordinator.choose_team(room_code, current_user, _body().get('team'))
    return jsonify(coordinator.room_state(room, current_user))


@rooms.route('/<string:room_code>/start', methods=['POST'])
@login_required
def start_game(room_code):
    room = coordinator.start_game(room_code, current_user)
    return jsonify(coordinator.room_state(room, current_user))


@rooms.route('/<string:room_code>/advance', methods=['POST'])
@login_required
def advance_round(room_code):
    room = coordinator.advance(room_code, current_user, _body().get('expected_round'))
    return jsonify(coordinator.room_state(room, current_user))


@rooms.route('/<string:room_code>/strokes', methods=['GET'])
def list_strokes(room_code):
    room = get_room_or_404(room_code)
    round_number = request.args.get('round', type=int)
    rows = strokes.for_round(room, round_number)
    return jsonify({
        'round_number': round_number if round_number is not None else room.current_round,
        'strokes': [s.to_dict() for s in rows],
    })


@rooms.route('/<string:room_code>/strokes', methods=['POST'])
@login_required
def add_stroke(room_code):
    _, stroke = coordinator.add_stroke(room_code, current_user, _body())
    return jsonify(stroke.to_dict()), 201


@rooms.route('/<string:room_code>/strokes/undo', methods=['POST'])
@login_required
def undo_stroke(room_code):
    _, removed = coordinator.undo_stroke(room_code, current_user)
    return jsonify({'removed_id': removed.id if removed is not None else None})


@rooms.route('/<string:room_code>/strokes/clear', methods=['POST'])
@login_required
def clear_canvas(room_code):
    _, removed = coordinator.clear_canvas(room_code, current_user)
    return jsonify({'removed': removed})


@rooms.route('/<string:room_code>/messages', methods=['GET'])
def list_messages(room_code):
    room = get_room_or_404(room_code)
    viewer = find_player(room, current_user.id) if current_user.is_authenticated else None
    limit = int(current_app.config.get('MESSAGE_HISTORY_LIMIT', 50))
    return jsonify({'messages': [m.to_dict(viewer=viewer) for m in messages.recent(room, limit)]})


@rooms.route('/<string:room_code>/messages', methods=['POST'])
@login_required
def send_message(room_code):
    _, player, result = coordinator.send_message(room_code, current_user, _body().get('text'))
    if result.already_guessed:
        return jsonify({'already_guessed': True, 'correct': False, 'points': 0, 'message': None})
    return jsonify({
        'already_guessed': False,
        'correct': result.correct,
        'points': result.points,
        'message': result.message.to_dict(viewer=player),
    }), 201
