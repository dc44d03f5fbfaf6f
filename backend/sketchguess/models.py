from sketchguess import db, bcrypt
from flask_login import UserMixin
import json
import random
import string
import time


ROOM_STATES = ('waiting', 'playing', 'finished')
ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


def _load_json_list(raw):
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    return value if isinstance(value, list) else []


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(64), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def name(self):
        return self.display_name or self.username

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'display_name': self.name,
        }


def generate_room_code(length=ROOM_CODE_LENGTH):
    """Generate a unique, short room code."""
    while True:
        code = ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))
        if not Room.query.filter_by(room_code=code).first():
            return code


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    room_code = db.Column(db.String(ROOM_CODE_LENGTH), unique=True, nullable=False, index=True)
    host_user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    state = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, playing, finished
    current_round = db.Column(db.Integer, nullable=False, default=0)
    max_rounds = db.Column(db.Integer, nullable=False, default=3)
    round_duration = db.Column(db.Integer, nullable=False, default=60)
    current_drawer_id = db.Column(
        db.Integer, db.ForeignKey('player.id', name='fk_room_current_drawer_id', use_alter=True), nullable=True
    )
    current_word = db.Column(db.String(128), nullable=True)
    round_started_at_ms = db.Column(db.BigInteger, nullable=True)
    difficulty = db.Column(db.String(16), nullable=False, default='medium')
    custom_words = db.Column(db.Text, nullable=True)  # JSON-encoded list of words
    team_mode = db.Column(db.Boolean, nullable=False, default=False)
    created_at_ms = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def __init__(self, **kwargs):
        super(Room, self).__init__(**kwargs)
        if not self.room_code:
            self.room_code = generate_room_code()

    @property
    def custom_word_list(self):
        return [w for w in _load_json_list(self.custom_words) if isinstance(w, str) and w.strip()]

    @custom_word_list.setter
    def custom_word_list(self, words):
        cleaned = [w.strip() for w in (words or []) if isinstance(w, str) and w.strip()]
        self.custom_words = json.dumps(cleaned) if cleaned else None

    def to_dict(self, viewer=None):
        """Serialize for one viewer; the secret word only reaches the drawer."""
        is_drawer = viewer is not None and self.current_drawer_id is not None and viewer.id == self.current_drawer_id
        word = self.current_word if self.state == 'playing' else None
        return {
            'id': self.id,
            'room_code': self.room_code,
            'host_user_id': self.host_user_id,
            'state': self.state,
            'current_round': self.current_round,
            'max_rounds': self.max_rounds,
            'round_duration': self.round_duration,
            'current_drawer_id': self.current_drawer_id,
            'current_word': word if is_drawer else None,
            'word_hint': ''.join(' ' if ch == ' ' else '_' for ch in word) if word else None,
            'round_started_at_ms': self.round_started_at_ms,
            'difficulty': self.difficulty,
            'team_mode': bool(self.team_mode),
            'has_custom_words': bool(self.custom_word_list),
        }


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (db.UniqueConstraint('room_id', 'user_id', name='uq_player_room_user'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    display_name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    team = db.Column(db.String(8), nullable=True)  # red, blue or unassigned
    join_order = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    joined_at_ms = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'user_id': self.user_id,
            'display_name': self.display_name,
            'score': self.score,
            'team': self.team,
            'join_order': self.join_order,
            'is_active': self.is_active,
        }


class Stroke(db.Model):
    __tablename__ = 'stroke'
    __table_args__ = (db.Index('ix_stroke_room_round', 'room_id', 'round_number'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    round_number = db.Column(db.Integer, nullable=False)
    points = db.Column(db.Text, nullable=False)  # JSON-encoded [[x, y], ...]
    color = db.Column(db.String(16), nullable=False, default='#000000')
    width = db.Column(db.Integer, nullable=False, default=5)
    is_eraser = db.Column(db.Boolean, nullable=False, default=False)
    created_at_ms = db.Column(db.BigInteger, nullable=False, default=now_ms)

    @property
    def point_list(self):
        return [tuple(p) for p in _load_json_list(self.points)]

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'round_number': self.round_number,
            'points': [list(p) for p in self.point_list],
            'color': self.color,
            'width': self.width,
            'is_eraser': self.is_eraser,
            'created_at_ms': self.created_at_ms,
        }


CORRECT_GUESS_TEXT = 'Guessed correctly!'


class Message(db.Model):
    __tablename__ = 'message'
    __table_args__ = (db.Index('ix_message_room_id', 'room_id', 'id'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    display_name = db.Column(db.String(64), nullable=False)
    text = db.Column(db.Text, nullable=False)
    round_number = db.Column(db.Integer, nullable=True)
    is_guess = db.Column(db.Boolean, nullable=False, default=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    created_at_ms = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def to_dict(self, viewer=None):
        # A correct guess is the secret word; only its author gets the literal text back.
        own = viewer is not None and viewer.id == self.author_id
        text = self.text if (not self.is_correct or own) else CORRECT_GUESS_TEXT
        return {
            'id': self.id,
            'room_id': self.room_id,
            'author_id': self.author_id,
            'display_name': self.display_name,
            'text': text,
            'round_number': self.round_number,
            'is_guess': self.is_guess,
            'is_correct': self.is_correct,
            'created_at_ms': self.created_at_ms,
        }


class RoundStats(db.Model):
    __tablename__ = 'round_stats'
    __table_args__ = (db.UniqueConstraint('room_id', 'round_number', name='uq_round_stats_room_round'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    round_number = db.Column(db.Integer, nullable=False)
    drawer_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    word = db.Column(db.String(128), nullable=False)
    correct_guessers = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list of player ids

    @property
    def guesser_ids(self):
        return [int(pid) for pid in _load_json_list(self.correct_guessers)]

    def add_guesser(self, player_id) -> bool:
        """Append ``player_id`` once; returns False if it was already there."""
        ids = self.guesser_ids
        if player_id in ids:
            return False
        ids.append(player_id)
        self.correct_guessers = json.dumps(ids)
        return True

    def to_dict(self):
        return {
            'room_id': self.room_id,
            'round_number': self.round_number,
            'drawer_id': self.drawer_id,
            'correct_guessers': self.guesser_ids,
        }


class WordCategory(db.Model):
    __tablename__ = 'word_category'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, index=True)
    words = db.Column(db.Text, nullable=False)  # comma separated

    @property
    def word_list(self):
        return [w.strip() for w in (self.words or '').split(',') if w.strip()]
