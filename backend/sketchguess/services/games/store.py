from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sketchguess import db
from sketchguess.errors import NotFound, TransientIO
from sketchguess.models import Player, Room


def commit(action: str) -> None:
    """Commit the session; a store failure rolls back and surfaces as TransientIO."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[store-failed] action={action} error={exc}")
        raise TransientIO(f'Could not save {action}, please retry') from exc


def get_room_or_404(room_code: str) -> Room:
    if not room_code:
        raise NotFound('Room not found', code='room_not_found')
    room = Room.query.filter_by(room_code=room_code.strip().upper()).first()
    if not room:
        raise NotFound('Room not found', code='room_not_found')
    return room


def find_player(room: Room, user_id: int):
    return Player.query.filter_by(room_id=room.id, user_id=user_id).first()


def get_player_or_404(room: Room, user_id: int) -> Player:
    player = find_player(room, user_id)
    if not player or not player.is_active:
        raise NotFound('You have not joined this room', code='player_not_found')
    return player
