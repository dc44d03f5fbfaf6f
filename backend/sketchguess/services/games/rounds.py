"""Round engine: the only code that moves a room between states.

waiting --start_game--> playing --advance_round (round < max)--> playing
playing --advance_round (round == max)--> finished

``finished`` is terminal. Every transition out of ``playing`` is a
compare-and-set on (room id, state, round number) so duplicate or racing
advance requests for the same round collapse into a single transition.
"""

from dataclasses import dataclass
from typing import List, Optional

from flask import current_app

from sketchguess import db
from sketchguess.errors import InvalidTransition
from sketchguess.models import Player, Room, RoundStats, now_ms as _now_ms
from .words import select_word, source_for_room


@dataclass
class AdvanceResult:
    room: Room
    advanced: bool
    finished: bool = False


def first_drawer(players: List[Player]) -> Optional[Player]:
    if not players:
        return None
    return min(players, key=lambda p: p.join_order)


def next_drawer(players: List[Player], current: Optional[Player]) -> Optional[Player]:
    """Round-robin successor of ``current`` in join order.

    ``current`` may already have left the room; its join order still marks
    the position, so the nearest remaining successor takes the turn.
    """
    ordered = sorted(players, key=lambda p: p.join_order)
    if not ordered:
        return None
    if current is None:
        return ordered[0]
    for p in ordered:
        if p.join_order > current.join_order:
            return p
    return ordered[0]


def _pick_word(room: Room, rng=None) -> str:
    fallback = current_app.config.get('DEFAULT_WORD', 'cat')
    return select_word(source_for_room(room), rng=rng, fallback=fallback)


def _open_round_stats(room: Room, round_number: int, drawer: Player, word: str) -> RoundStats:
    stats = RoundStats(
        room_id=room.id,
        round_number=round_number,
        drawer_id=drawer.id if drawer else None,
        word=word,
        correct_guessers='[]',
    )
    db.session.add(stats)
    return stats


def start_game(room: Room, players: List[Player], now_ms: Optional[int] = None, rng=None) -> Room:
    if room.state != 'waiting':
        raise InvalidTransition('Game has already started or is finished', code='not_waiting')
    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    if len(players) < min_players:
        raise InvalidTransition(f'At least {min_players} players are required to start', code='not_enough_players')

    drawer = first_drawer(players)
    word = _pick_word(room, rng)
    started = now_ms if now_ms is not None else _now_ms()

    updated = Room.query.filter_by(id=room.id, state='waiting').update(
        {
            Room.state: 'playing',
            Room.current_round: 1,
            Room.current_drawer_id: drawer.id,
            Room.current_word: word,
            Room.round_started_at_ms: started,
        },
        synchronize_session=False,
    )
    if not updated:
        db.session.rollback()
        raise InvalidTransition('Game has already started', code='not_waiting')

    _open_round_stats(room, 1, drawer, word)
    db.session.expire(room)
    current_app.logger.info(f"[start] room={room.id} drawer={drawer.id} players={len(players)}")
    return room


def finish_game(room: Room, expected_round: int) -> bool:
    updated = Room.query.filter_by(id=room.id, state='playing', current_round=expected_round).update(
        {
            Room.state: 'finished',
            Room.current_drawer_id: None,
            Room.round_started_at_ms: None,
        },
        synchronize_session=False,
    )
    db.session.expire(room)
    if updated:
        current_app.logger.info(f"[finish] room={room.id} finished at round={expected_round}")
    return bool(updated)


def advance_round(room: Room, players: List[Player], expected_round: Optional[int] = None,
                  now_ms: Optional[int] = None, rng=None) -> AdvanceResult:
    """Move to the next round, or finish after the last one.

    ``expected_round`` is the round the caller believes is active. When the
    room has moved on (another client or the celebration timer got there
    first) the call is a no-op and ``advanced`` is False.
    """
    if room.state == 'finished':
        return AdvanceResult(room=room, advanced=False, finished=True)
    if room.state != 'playing':
        raise InvalidTransition('Game is not in progress', code='not_playing')

    if expected_round is None:
        expected_round = room.current_round
    if expected_round != room.current_round:
        current_app.logger.info(
            f"[advance-skip] room={room.id} expected_round={expected_round} actual_round={room.current_round}"
        )
        return AdvanceResult(room=room, advanced=False)

    if expected_round + 1 > room.max_rounds:
        done = finish_game(room, expected_round)
        return AdvanceResult(room=room, advanced=done, finished=room.state == 'finished')

    if not players:
        # Nobody left to draw; the room waits for someone to rejoin.
        current_app.logger.info(f"[advance-skip] room={room.id} round={expected_round} no active players")
        return AdvanceResult(room=room, advanced=False)

    current = db.session.get(Player, room.current_drawer_id) if room.current_drawer_id else None
    drawer = next_drawer(players, current)
    word = _pick_word(room, rng)
    started = now_ms if now_ms is not None else _now_ms()
    next_round = expected_round + 1

    updated = Room.query.filter_by(id=room.id, state='playing', current_round=expected_round).update(
        {
            Room.current_round: next_round,
            Room.current_drawer_id: drawer.id,
            Room.current_word: word,
            Room.round_started_at_ms: started,
        },
        synchronize_session=False,
    )
    if not updated:
        db.session.expire(room)
        current_app.logger.info(f"[advance-skip] room={room.id} lost race for round={expected_round}")
        return AdvanceResult(room=room, advanced=False)

    _open_round_stats(room, next_round, drawer, word)
    db.session.expire(room)
    current_app.logger.info(
        f"[advance] room={room.id} round {expected_round} -> {next_round} drawer={drawer.id}"
    )
    return AdvanceResult(room=room, advanced=True)
