import pytest

from sketchguess import db
from sketchguess.errors import InvalidPayload, Unauthorized
from sketchguess.models import CORRECT_GUESS_TEXT, Message, Player
from sketchguess.services.games import messages, roster, rounds


def _player(room, user):
    return Player.query.filter_by(room_id=room.id, user_id=user.id).one()


@pytest.fixture()
def playing(room):
    room.custom_word_list = ['Cat']
    db.session.commit()
    rounds.start_game(room, roster.active_players(room))
    db.session.commit()
    return room


def test_guess_normalization():
    assert messages.normalize_guess('  CaT \n') == 'cat'
    assert messages.is_correct_guess(' CAT ', 'cat')
    assert not messages.is_correct_guess('ca', 'cat')
    assert not messages.is_correct_guess('cats', 'cat')
    assert not messages.is_correct_guess('cat', None)


def test_lobby_chat_is_not_a_guess(room, users):
    result = messages.submit(room, _player(room, users[1]), 'hi all')
    db.session.commit()
    assert not result.correct
    assert not result.message.is_guess
    assert result.message.round_number is None


def test_correct_guess_is_marked_and_redacted_for_others(playing, users):
    drawer, bob, cara = (_player(playing, u) for u in users)
    result = messages.submit(playing, bob, '  cAt ')
    db.session.commit()

    assert result.correct
    assert result.message.is_guess and result.message.is_correct
    assert result.message.round_number == 1
    assert result.message.to_dict(viewer=bob)['text'] == 'cAt'
    assert result.message.to_dict(viewer=cara)['text'] == CORRECT_GUESS_TEXT
    assert result.message.to_dict()['text'] == CORRECT_GUESS_TEXT


def test_wrong_guess_is_plain_chat(playing, users):
    result = messages.submit(playing, _player(playing, users[2]), 'dog')
    db.session.commit()
    assert result.message.is_guess
    assert not result.correct
    assert result.message.to_dict()['text'] == 'dog'


def test_drawer_cannot_chat_during_turn(playing, users):
    with pytest.raises(Unauthorized) as exc:
        messages.submit(playing, _player(playing, users[0]), 'it is a cat')
    assert exc.value.code == 'drawer_cannot_guess'


def test_repeat_correct_guess_is_not_stored(playing, users):
    bob = _player(playing, users[1])
    messages.submit(playing, bob, 'cat')
    db.session.commit()

    again = messages.submit(playing, bob, 'CAT')
    db.session.commit()
    assert again.already_guessed
    assert again.message is None
    assert Message.query.filter_by(room_id=playing.id).count() == 1


@pytest.mark.parametrize('text,code', [
    ('', 'empty_message'),
    ('   ', 'empty_message'),
    (None, 'empty_message'),
    ('x' * 201, 'message_too_long'),
])
def test_invalid_messages(room, users, text, code):
    with pytest.raises(InvalidPayload) as exc:
        messages.submit(room, _player(room, users[1]), text)
    assert exc.value.code == code


def test_recent_returns_latest_in_ascending_order(room, users):
    bob = _player(room, users[1])
    for i in range(5):
        messages.submit(room, bob, f'line {i}')
    db.session.commit()
    assert [m.text for m in messages.recent(room, limit=3)] == ['line 2', 'line 3', 'line 4']
