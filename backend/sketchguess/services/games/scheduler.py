import time
from typing import Set, Tuple

from sketchguess import db, socketio
from sketchguess.models import Room


_scheduled_round_keys: Set[Tuple[int, int]] = set()


def schedule_round_end(app, room_id: int, round_number: int) -> bool:
    """Advance ``round_number`` after the celebration delay.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single timer per (room_id, round)
    - On fire, re-reads the room and aborts if the round has moved on, so a
      client's own "time's up" advance and this timer never double-advance

    Returns True when a timer was scheduled (or, in tests, run).
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False

    key = (room_id, round_number)
    if key in _scheduled_round_keys:
        app.logger.info(f"[timer-skip] room={room_id} round={round_number} already scheduled")
        return False
    _scheduled_round_keys.add(key)

    delay = float(app.config.get('CELEBRATION_DELAY_SEC', 3))
    app.logger.info(f"[timer-set] room={room_id} round={round_number} delay={delay}s")

    def _worker(rid: int, expected_round: int, delay_sec: float):
        try:
            hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        except (TypeError, ValueError):
            hb = 0
        if hb > 0:
            slept = 0.0
            while slept < delay_sec:
                step = min(hb, delay_sec - slept)
                time.sleep(step)
                slept += step
                app.logger.info(
                    f"[timer-heartbeat] room={rid} round={expected_round} remaining={max(0, delay_sec - slept)}s"
                )
        elif delay_sec > 0:
            time.sleep(delay_sec)

        from .coordinator import run_advance

        with app.app_context():
            try:
                room = db.session.get(Room, rid)
                if not room:
                    return
                app.logger.info(
                    f"[timer-fire] room={rid} expected_round={expected_round} "
                    f"actual_state={room.state} actual_round={room.current_round}"
                )
                if room.state != 'playing' or room.current_round != expected_round:
                    app.logger.info(f"[timer-abort] room={rid} mismatch state/round")
                    return
                run_advance(room, expected_round)
            finally:
                _scheduled_round_keys.discard((rid, expected_round))

    if app.config.get('TESTING'):
        _worker(room_id, round_number, delay)
    else:
        socketio.start_background_task(_worker, room_id, round_number, delay)
    return True


def pending_round_keys():
    return set(_scheduled_round_keys)
