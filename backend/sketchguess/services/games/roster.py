from enum import Enum
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import func

from sketchguess import db
from sketchguess.errors import InvalidPayload, InvalidTransition
from sketchguess.models import Player, Room, RoundStats


class Team(str, Enum):
    RED = 'red'
    BLUE = 'blue'


def parse_team(raw) -> Optional[Team]:
    """``None``/empty means unassigned; anything else must name a team."""
    if raw is None or raw == '':
        return None
    try:
        return Team(str(raw).strip().lower())
    except ValueError:
        raise InvalidPayload(f'Unknown team: {raw}', code='invalid_team')


def active_players(room: Room) -> List[Player]:
    """Players still in the room, in join order."""
    return Player.query.filter_by(room_id=room.id, is_active=True).order_by(Player.join_order).all()


def ranked_players(room: Room) -> List[Player]:
    return (
        Player.query.filter_by(room_id=room.id, is_active=True)
        .order_by(Player.score.desc(), Player.join_order)
        .all()
    )


def team_totals(players) -> Dict[str, int]:
    totals = {team.value: 0 for team in Team}
    for p in players:
        if p.team in totals:
            totals[p.team] += p.score
    return totals


def _balanced_team(room: Room) -> Team:
    counts = {team.value: 0 for team in Team}
    for p in active_players(room):
        if p.team in counts:
            counts[p.team] += 1
    return Team.RED if counts['red'] <= counts['blue'] else Team.BLUE


def join(room: Room, user) -> Player:
    """Add ``user`` to the room, or reactivate their existing row.

    Joining twice is a no-op; a returning player keeps their score and their
    original place in the drawing order.
    """
    if room.state == 'finished':
        raise InvalidTransition('The game has already finished', code='game_finished')

    player = Player.query.filter_by(room_id=room.id, user_id=user.id).first()
    if player:
        player.display_name = user.name
        player.is_active = True
        db.session.add(player)
        return player

    last_order = db.session.query(func.max(Player.join_order)).filter(Player.room_id == room.id).scalar()
    player = Player(
        room_id=room.id,
        user_id=user.id,
        display_name=user.name,
        score=0,
        join_order=(last_order or 0) + 1,
    )
    if room.team_mode:
        player.team = _balanced_team(room).value
    db.session.add(player)
    return player


def leave(room: Room, player: Player) -> None:
    player.is_active = False
    db.session.add(player)


def set_team(room: Room, player: Player, team: Optional[Team]) -> None:
    if not room.team_mode:
        raise InvalidTransition('Team mode is off for this room', code='team_mode_off')
    if room.state != 'waiting':
        raise InvalidTransition('Teams are locked once the game starts', code='teams_locked')
    player.team = team.value if team else None
    db.session.add(player)


def award_points(room: Room, player: Player, round_number: int, points: int) -> bool:
    """Credit ``points`` once per (player, round).

    Membership in the round's correct-guesser set is the idempotence guard:
    a second award for the same round leaves the score untouched.
    """
    stats = (
        RoundStats.query.filter_by(room_id=room.id, round_number=round_number)
        .with_for_update()
        .first()
    )
    if stats is None:
        current_app.logger.warning(f"[award-skip] room={room.id} round={round_number} missing stats")
        return False
    if not stats.add_guesser(player.id):
        return False
    player.score = (player.score or 0) + max(0, int(points))
    db.session.add(stats)
    db.session.add(player)
    return True
