import pytest

from sketchguess import db
from sketchguess.errors import InvalidPayload, InvalidTransition, Unauthorized
from sketchguess.models import Player
from sketchguess.services.games import roster, rounds, strokes


LINE = {'points': [[0, 0], [10, 10]], 'color': '#FF0000', 'width': 4}


def _player(room, user):
    return Player.query.filter_by(room_id=room.id, user_id=user.id).one()


@pytest.fixture()
def playing(room):
    rounds.start_game(room, roster.active_players(room))
    db.session.commit()
    return room


def test_drawer_appends_strokes_in_order(playing, users):
    drawer = _player(playing, users[0])
    first = strokes.append(playing, drawer, LINE)
    second = strokes.append(playing, drawer, dict(LINE, points=[{'x': 1, 'y': 2}, {'x': 3, 'y': 4}]))
    db.session.commit()

    rows = strokes.for_round(playing)
    assert [s.id for s in rows] == [first.id, second.id]
    assert rows[0].color == '#ff0000'
    assert rows[0].round_number == 1
    assert rows[1].point_list == [(1.0, 2.0), (3.0, 4.0)]


def test_only_the_drawer_can_draw(playing, users):
    guesser = _player(playing, users[1])
    with pytest.raises(Unauthorized) as exc:
        strokes.append(playing, guesser, LINE)
    assert exc.value.code == 'not_drawer'
    with pytest.raises(Unauthorized):
        strokes.undo(playing, guesser)
    with pytest.raises(Unauthorized):
        strokes.clear(playing, guesser)


def test_nobody_draws_before_the_game_starts(room, users):
    with pytest.raises(Unauthorized):
        strokes.append(room, _player(room, users[0]), LINE)


def test_stroke_for_a_past_round_is_rejected(playing, users):
    drawer = _player(playing, users[0])
    with pytest.raises(InvalidTransition) as exc:
        strokes.append(playing, drawer, dict(LINE, round_number=2))
    assert exc.value.code == 'stale_round'


@pytest.mark.parametrize('payload', [
    {'points': [[0, 0]]},
    {'points': 'not a list'},
    {'points': [[0, 0], [1]]},
    {'points': [[0, 0], ['a', 1]]},
    {'points': [[0, 0], [1, 1]], 'color': 'red'},
    {'points': [[0, 0], [1, 1]], 'width': 0},
    {'points': [[0, 0], [1, 1]], 'width': 51},
    {'points': [[0, 0], [1, 1]], 'width': True},
])
def test_parse_stroke_rejects_bad_payloads(payload):
    with pytest.raises(InvalidPayload):
        strokes.parse_stroke(payload)


def test_parse_stroke_defaults():
    parsed = strokes.parse_stroke({'points': [[0, 0], [1.239, 2]]})
    assert parsed['color'] == '#000000'
    assert parsed['width'] == 5
    assert parsed['is_eraser'] is False
    assert parsed['points'] == '[[0.0, 0.0], [1.24, 2.0]]'


def test_undo_removes_newest_stroke(playing, users):
    drawer = _player(playing, users[0])
    first = strokes.append(playing, drawer, LINE)
    strokes.append(playing, drawer, LINE)
    db.session.commit()

    removed = strokes.undo(playing, drawer)
    db.session.commit()
    assert removed is not None
    assert [s.id for s in strokes.for_round(playing)] == [first.id]

    strokes.undo(playing, drawer)
    db.session.commit()
    assert strokes.undo(playing, drawer) is None


def test_clear_only_touches_the_active_round(playing, users):
    drawer = _player(playing, users[0])
    strokes.append(playing, drawer, LINE)
    strokes.append(playing, drawer, LINE)
    db.session.commit()

    rounds.advance_round(playing, roster.active_players(playing), expected_round=1)
    db.session.commit()
    next_drawer = _player(playing, users[1])
    strokes.append(playing, next_drawer, LINE)
    db.session.commit()

    assert strokes.clear(playing, next_drawer) == 1
    db.session.commit()
    assert strokes.for_round(playing) == []
    assert len(strokes.for_round(playing, 1)) == 2
