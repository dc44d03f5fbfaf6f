"""Secret-word selection.

A room resolves to exactly one word source: its custom list when it has one,
otherwise the categories for its difficulty, otherwise the fixed fallback.
Each round draws independently, so words may repeat across rounds.
"""

import random
from dataclasses import dataclass
from typing import List, Tuple, Union

from sketchguess import db
from sketchguess.models import WordCategory

DIFFICULTIES = ('easy', 'medium', 'hard')
FALLBACK_WORD = 'cat'


@dataclass(frozen=True)
class Fixed:
    word: str


@dataclass(frozen=True)
class FromCategory:
    difficulty: str


@dataclass(frozen=True)
class FromCustomList:
    words: Tuple[str, ...]


WordSource = Union[Fixed, FromCategory, FromCustomList]


def source_for_room(room) -> WordSource:
    custom = room.custom_word_list
    if custom:
        return FromCustomList(tuple(custom))
    return FromCategory(room.difficulty or 'medium')


def categories_for(difficulty: str) -> List[List[str]]:
    rows = WordCategory.query.filter_by(difficulty=difficulty).order_by(WordCategory.id).all()
    return [row.word_list for row in rows if row.word_list]


def select_word(source: WordSource, rng=None, fallback: str = FALLBACK_WORD) -> str:
    rng = rng or random
    if isinstance(source, Fixed):
        return source.word
    if isinstance(source, FromCustomList):
        if source.words:
            return rng.choice(source.words)
        return fallback
    if isinstance(source, FromCategory):
        categories = categories_for(source.difficulty)
        if not categories:
            return select_word(Fixed(fallback), rng)
        return rng.choice(rng.choice(categories))
    raise TypeError(f'unsupported word source: {source!r}')


DEFAULT_CATEGORIES = [
    ('Animals', 'easy', 'cat,dog,fish,bird,cow,duck,pig,frog'),
    ('Food', 'easy', 'apple,pizza,cake,egg,banana,bread'),
    ('Objects', 'medium', 'umbrella,guitar,ladder,lamp,scissors,bicycle'),
    ('Places', 'medium', 'castle,beach,library,airport,volcano,island'),
    ('Actions', 'hard', 'juggling,whisper,sleepwalking,hibernate,procrastinate'),
    ('Ideas', 'hard', 'gravity,nostalgia,democracy,echo,infinity'),
]


def seed_word_categories():
    for name, difficulty, words in DEFAULT_CATEGORIES:
        db.session.add(WordCategory(name=name, difficulty=difficulty, words=words))
