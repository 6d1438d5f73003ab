import pytest
from kivy.clock import Clock

from workout_engine.rest_timer import RestTimer


def test_countdown_reaches_zero_and_stops(rest_timer, fake_clock, fake_time):
    rest_timer.start(45)
    assert rest_timer.active
    assert rest_timer.remaining == 45

    for _ in range(50):
        fake_time.advance(1)
        fake_clock.tick()
        assert rest_timer.remaining >= 0

    assert rest_timer.remaining == 0
    assert not rest_timer.active
    assert rest_timer.current is None
    assert fake_clock.pending == []


def test_remaining_follows_wall_clock(rest_timer, fake_time):
    rest_timer.start(60)
    fake_time.advance(12.5)
    assert rest_timer.remaining == 48
    fake_time.advance(0.5)
    assert rest_timer.remaining == 47


def test_suspended_loop_loses_no_time(rest_timer, fake_clock, fake_time):
    finished = []
    rest_timer.on_finished = finished.append
    handle = rest_timer.start(60)

    # no ticks delivered while the process is suspended
    fake_time.advance(45)
    assert rest_timer.remaining == 15
    fake_time.advance(100)
    assert not rest_timer.active
    assert not handle.active

    fake_clock.tick()
    assert finished == [handle]
    fake_clock.tick()
    assert finished == [handle]


def test_new_countdown_replaces_running_one(rest_timer, fake_clock, fake_time):
    first = rest_timer.start(30)
    fake_time.advance(10)
    second = rest_timer.start(20)

    assert rest_timer.remaining == 20
    assert not first.active
    assert first.remaining == 0
    assert not first.event.is_triggered
    assert [e for e in fake_clock.pending] == [second.event]

    # cancelling the stale handle leaves the new countdown alone
    assert first.cancel() is False
    assert second.active


def test_cancel_stops_countdown_without_finishing(rest_timer, fake_clock, fake_time):
    finished = []
    rest_timer.on_finished = finished.append
    handle = rest_timer.start(30)
    fake_time.advance(5)

    assert handle.cancel() is True
    assert rest_timer.remaining == 0
    assert not rest_timer.active
    assert not handle.event.is_triggered

    fake_time.advance(60)
    fake_clock.tick()
    assert finished == []
    assert rest_timer.cancel() is False


def test_finished_callback_runs_once(rest_timer, fake_clock, fake_time):
    finished = []
    rest_timer.on_finished = finished.append
    handle = rest_timer.start(3)
    for _ in range(6):
        fake_time.advance(1)
        fake_clock.tick()
    assert finished == [handle]


def test_adjust_extends_and_clamps(rest_timer, fake_time):
    assert rest_timer.adjust(10) is False

    rest_timer.start(30)
    fake_time.advance(10)
    assert rest_timer.adjust(15)
    assert rest_timer.remaining == 35

    assert rest_timer.adjust(-100)
    assert rest_timer.remaining == 0
    assert not rest_timer.active


def test_zero_and_negative_durations(rest_timer, fake_clock):
    assert rest_timer.start(0) is None
    assert not rest_timer.active
    assert fake_clock.events == []
    with pytest.raises(ValueError):
        rest_timer.start(-1)


def test_schedules_on_kivy_clock(fake_time):
    timer = RestTimer(clock=Clock, time_func=fake_time)
    handle = timer.start(30)
    try:
        assert handle.event.is_triggered
        assert timer.update_timer(handle, 1.0) is True
        fake_time.advance(30)
        assert timer.update_timer(handle, 1.0) is False
        assert not handle.event.is_triggered
    finally:
        timer.cancel()
