import math
from typing import Optional

BASE_POINTS = 100
BONUS_CAP = 50
MIN_POINTS = 50


def seconds_left(round_duration: int, round_started_at_ms: Optional[int], now_ms: int) -> int:
    """Remaining whole seconds, rebuilt from the round start on every call."""
    if not round_started_at_ms:
        return 0
    elapsed = (now_ms - round_started_at_ms) // 1000
    return max(0, int(round_duration) - int(elapsed))


def points_for(time_left: float, round_duration: float, base: int = BASE_POINTS,
               bonus_cap: int = BONUS_CAP, min_points: int = MIN_POINTS) -> int:
    """Points for a correct guess.

    ``max(base + floor(ratio * bonus_cap), min_points)`` where ratio is the
    share of the round still left, clamped to [0, 1]. Faster guesses never
    score less than slower ones.
    """
    if round_duration and round_duration > 0:
        ratio = min(1.0, max(0.0, float(time_left) / float(round_duration)))
    else:
        ratio = 0.0
    return max(base + math.floor(ratio * bonus_cap), min_points)


def points_from_config(config, time_left, round_duration) -> int:
    return points_for(
        time_left,
        round_duration,
        base=int(config.get('SCORE_BASE', BASE_POINTS)),
        bonus_cap=int(config.get('SCORE_BONUS_CAP', BONUS_CAP)),
        min_points=int(config.get('SCORE_MIN', MIN_POINTS)),
    )
