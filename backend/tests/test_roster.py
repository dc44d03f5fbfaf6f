import pytest

from sketchguess import db
from sketchguess.errors import InvalidPayload, InvalidTransition
from sketchguess.models import Player
from sketchguess.services.games import coordinator, roster, rounds
from sketchguess.services.games.roster import Team


def _player(room, user):
    return Player.query.filter_by(room_id=room.id, user_id=user.id).one()


def test_host_joins_first_and_order_follows_joins(room, users):
    orders = [_player(room, u).join_order for u in users]
    assert orders == [1, 2, 3]
    assert [p.user_id for p in roster.active_players(room)] == [u.id for u in users]


def test_join_twice_keeps_the_same_row(room, users):
    bob = users[1]
    before = _player(room, bob)
    again = roster.join(room, bob)
    db.session.commit()
    assert again.id == before.id
    assert again.join_order == 2
    assert Player.query.filter_by(room_id=room.id).count() == 3


def test_rejoin_after_leaving_restores_score_and_position(room, users):
    bob = users[1]
    player = _player(room, bob)
    player.score = 120
    roster.leave(room, player)
    db.session.commit()
    assert bob.id not in [p.user_id for p in roster.active_players(room)]

    back = roster.join(room, bob)
    db.session.commit()
    assert back.is_active
    assert back.score == 120
    assert back.join_order == 2


def test_cannot_join_finished_room(room, users, app_ctx):
    from sketchguess.models import User
    room.state = 'finished'
    db.session.commit()
    late = User(username='dave', display_name='Dave')
    late.set_password('password')
    db.session.add(late)
    db.session.commit()
    with pytest.raises(InvalidTransition) as exc:
        roster.join(room, late)
    assert exc.value.code == 'game_finished'


def test_team_mode_balances_new_players(users):
    alice, bob, cara = users
    team_room = coordinator.create_room(alice, {'team_mode': True})
    roster.join(team_room, bob)
    db.session.commit()
    roster.join(team_room, cara)
    db.session.commit()
    teams = [_player(team_room, u).team for u in users]
    assert teams == ['red', 'blue', 'red']


def test_parse_team():
    assert roster.parse_team('Blue') is Team.BLUE
    assert roster.parse_team(' red ') is Team.RED
    assert roster.parse_team(None) is None
    assert roster.parse_team('') is None
    with pytest.raises(InvalidPayload):
        roster.parse_team('green')


def test_set_team_rules(room, users):
    bob = _player(room, users[1])
    with pytest.raises(InvalidTransition) as exc:
        roster.set_team(room, bob, Team.RED)
    assert exc.value.code == 'team_mode_off'

    room.team_mode = True
    roster.set_team(room, bob, Team.BLUE)
    db.session.commit()
    assert bob.team == 'blue'
    roster.set_team(room, bob, None)
    assert bob.team is None

    rounds.start_game(room, roster.active_players(room))
    db.session.commit()
    with pytest.raises(InvalidTransition) as exc:
        roster.set_team(room, bob, Team.RED)
    assert exc.value.code == 'teams_locked'


def test_ranking_and_team_totals(room, users):
    alice, bob, cara = (_player(room, u) for u in users)
    alice.score, bob.score, cara.score = 50, 150, 150
    alice.team, bob.team, cara.team = 'red', 'blue', None
    db.session.commit()

    ranked = roster.ranked_players(room)
    assert [p.id for p in ranked] == [bob.id, cara.id, alice.id]
    assert roster.team_totals(ranked) == {'red': 50, 'blue': 150}


def test_award_points_once_per_round(room, users):
    rounds.start_game(room, roster.active_players(room))
    db.session.commit()
    bob = _player(room, users[1])

    assert roster.award_points(room, bob, 1, 130)
    db.session.commit()
    assert not roster.award_points(room, bob, 1, 130)
    db.session.commit()
    assert bob.score == 130


def test_award_points_without_round_stats_is_skipped(room, users):
    bob = _player(room, users[1])
    assert not roster.award_points(room, bob, 7, 100)
    assert bob.score == 0
