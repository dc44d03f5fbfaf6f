from sketchguess import db
from sketchguess.services.games import roster, rounds, scheduler


def _start(room):
    rounds.start_game(room, roster.active_players(room))
    db.session.commit()


def test_scheduler_is_disabled_in_tests_by_default(app_ctx, room):
    _start(room)
    assert scheduler.schedule_round_end(app_ctx, room.id, 1) is False
    assert room.current_round == 1


def test_scheduler_advances_the_round_when_enabled(app_ctx, room):
    app_ctx.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    _start(room)

    assert scheduler.schedule_round_end(app_ctx, room.id, 1) is True
    db.session.expire_all()
    assert room.current_round == 2
    assert scheduler.pending_round_keys() == set()


def test_scheduler_aborts_when_round_already_moved(app_ctx, room):
    app_ctx.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    _start(room)
    rounds.advance_round(room, roster.active_players(room), expected_round=1)
    db.session.commit()

    assert scheduler.schedule_round_end(app_ctx, room.id, 1) is True
    db.session.expire_all()
    assert room.current_round == 2
    assert room.state == 'playing'


def test_scheduler_keeps_a_single_timer_per_round(app_ctx, room):
    app_ctx.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    _start(room)
    key = (room.id, 1)
    scheduler._scheduled_round_keys.add(key)
    try:
        assert scheduler.schedule_round_end(app_ctx, room.id, 1) is False
    finally:
        scheduler._scheduled_round_keys.discard(key)
    assert room.current_round == 1
