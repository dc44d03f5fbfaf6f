import json
import re
from typing import List, Optional

from sketchguess import db
from sketchguess.errors import InvalidPayload, InvalidTransition, Unauthorized
from sketchguess.models import Player, Room, Stroke

HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')
MIN_WIDTH = 1
MAX_WIDTH = 50
MAX_POINTS = 5000


def can_draw(room: Room, player: Optional[Player]) -> bool:
    return (
        player is not None
        and room.state == 'playing'
        and room.current_drawer_id is not None
        and room.current_drawer_id == player.id
    )


def _require_drawer(room: Room, player: Optional[Player]) -> None:
    if not can_draw(room, player):
        raise Unauthorized('Only the current drawer can draw', code='not_drawer')


def _parse_point(raw):
    if isinstance(raw, dict):
        raw = (raw.get('x'), raw.get('y'))
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise InvalidPayload('Each point needs an x and a y', code='invalid_point')
    x, y = raw
    if isinstance(x, bool) or isinstance(y, bool) or not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        raise InvalidPayload('Point coordinates must be numbers', code='invalid_point')
    return [round(float(x), 2), round(float(y), 2)]


def parse_stroke(data: dict) -> dict:
    """Validate a stroke body into column values."""
    raw_points = data.get('points')
    if not isinstance(raw_points, list) or len(raw_points) < 2:
        raise InvalidPayload('A stroke needs at least two points', code='invalid_points')
    if len(raw_points) > MAX_POINTS:
        raise InvalidPayload('Stroke is too long', code='invalid_points')
    points = [_parse_point(p) for p in raw_points]

    is_eraser = bool(data.get('is_eraser', False))
    color = data.get('color') or '#000000'
    if not isinstance(color, str) or not HEX_COLOR.match(color):
        raise InvalidPayload('Color must look like #RRGGBB', code='invalid_color')

    width = data.get('width', 5)
    if isinstance(width, bool) or not isinstance(width, (int, float)):
        raise InvalidPayload('Width must be a number', code='invalid_width')
    width = int(width)
    if width < MIN_WIDTH or width > MAX_WIDTH:
        raise InvalidPayload(f'Width must be between {MIN_WIDTH} and {MAX_WIDTH}', code='invalid_width')

    return {'points': json.dumps(points), 'color': color.lower(), 'width': width, 'is_eraser': is_eraser}


def append(room: Room, player: Player, data: dict) -> Stroke:
    _require_drawer(room, player)
    claimed_round = data.get('round_number')
    if claimed_round is not None and claimed_round != room.current_round:
        raise InvalidTransition('Stroke belongs to a round that is no longer active', code='stale_round')

    stroke = Stroke(room_id=room.id, round_number=room.current_round, **parse_stroke(data))
    db.session.add(stroke)
    return stroke


def for_round(room: Room, round_number: Optional[int] = None) -> List[Stroke]:
    """Strokes of one round in replay (creation) order."""
    if round_number is None:
        round_number = room.current_round
    return (
        Stroke.query.filter_by(room_id=room.id, round_number=round_number)
        .order_by(Stroke.id)
        .all()
    )


def undo(room: Room, player: Player) -> Optional[Stroke]:
    """Drop the newest stroke of the active round; None when there is nothing to undo."""
    _require_drawer(room, player)
    last = (
        Stroke.query.filter_by(room_id=room.id, round_number=room.current_round)
        .order_by(Stroke.id.desc())
        .first()
    )
    if last is None:
        return None
    db.session.delete(last)
    return last


def clear(room: Room, player: Player) -> int:
    _require_drawer(room, player)
    return Stroke.query.filter_by(room_id=room.id, round_number=room.current_round).delete(
        synchronize_session=False
    )
