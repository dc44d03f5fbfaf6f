from dataclasses import dataclass
from typing import List, Optional

from sketchguess import db
from sketchguess.errors import InvalidPayload, Unauthorized
from sketchguess.models import Message, Player, Room, RoundStats

MAX_MESSAGE_LENGTH = 200


def normalize_guess(text: str) -> str:
    return (text or '').strip().casefold()


def is_correct_guess(text: str, word: Optional[str]) -> bool:
    """Exact match after case-folding and trimming; partial matches never count."""
    if not word:
        return False
    target = normalize_guess(word)
    return bool(target) and normalize_guess(text) == target


def is_guess(room: Room, player: Player) -> bool:
    return room.state == 'playing' and room.current_drawer_id != player.id


@dataclass
class SubmitResult:
    message: Optional[Message]
    correct: bool = False
    already_guessed: bool = False
    points: int = 0


def _already_guessed(room: Room, player: Player) -> bool:
    stats = RoundStats.query.filter_by(room_id=room.id, round_number=room.current_round).first()
    if stats and player.id in stats.guesser_ids:
        return True
    return (
        Message.query.filter_by(
            room_id=room.id, author_id=player.id, round_number=room.current_round, is_correct=True
        ).first()
        is not None
    )


def submit(room: Room, player: Player, text) -> SubmitResult:
    """Classify and store a chat line.

    A repeated correct guess from the same player in the same round is not
    stored at all: storing it as a plain message would print the word.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidPayload('Message text is required', code='empty_message')
    text = text.strip()
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidPayload(f'Messages are limited to {MAX_MESSAGE_LENGTH} characters', code='message_too_long')

    if room.state == 'playing' and room.current_drawer_id == player.id:
        raise Unauthorized('The drawer cannot chat or guess during their turn', code='drawer_cannot_guess')

    guess = is_guess(room, player)
    correct = guess and is_correct_guess(text, room.current_word)
    if correct and _already_guessed(room, player):
        return SubmitResult(message=None, correct=False, already_guessed=True)

    message = Message(
        room_id=room.id,
        author_id=player.id,
        display_name=player.display_name,
        text=text,
        round_number=room.current_round if room.state == 'playing' else None,
        is_guess=guess,
        is_correct=correct,
    )
    db.session.add(message)
    return SubmitResult(message=message, correct=correct)


def recent(room: Room, limit: int = 50) -> List[Message]:
    """The latest ``limit`` messages, oldest first."""
    rows = (
        Message.query.filter_by(room_id=room.id)
        .order_by(Message.id.desc())
        .limit(limit)
        .all()
    )
    rows.reverse()
    return rows
