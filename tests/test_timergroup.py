import pytest

from neocd.timer import (
    CDROM_64HZ_DELAY,
    CYCLES_PER_FRAME,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    WATCHDOG_DELAY,
    TimerState,
    pixel_to_master,
)
from neocd.timergroup import TimerGroup, TimerId


def test_initial_configuration():
    group = TimerGroup()
    assert group[TimerId.WATCHDOG].delay == WATCHDOG_DELAY
    assert group[TimerId.WATCHDOG].state is TimerState.STOPPED
    assert group[TimerId.YM2610_A].user_data == 0
    assert group[TimerId.YM2610_B].user_data == 1
    assert len(group) == len(TimerId)


def test_reset_activates_frame_timers():
    group = TimerGroup()
    group.reset()
    active = {timer_id for timer_id in TimerId if group[timer_id].is_active()}
    assert active == {TimerId.VBL, TimerId.VBL_RELOAD, TimerId.DRAWLINE, TimerId.CDROM}
    assert group[TimerId.CDROM].delay == CDROM_64HZ_DELAY
    assert group[TimerId.VBL].delay == pixel_to_master(SCREEN_WIDTH * SCREEN_HEIGHT)


def test_time_slice_without_active_timers_is_one_frame():
    group = TimerGroup()
    assert group.time_slice() == CYCLES_PER_FRAME


def test_time_slice_is_smallest_active_delay():
    group = TimerGroup()
    group.reset()
    delays = [timer.delay for timer in group if timer.is_active()]
    assert group.time_slice() == min(delays)
    assert group.time_slice() == group[TimerId.DRAWLINE].delay


def test_advance_time_fires_callback():
    calls = []
    group = TimerGroup({TimerId.DRAWLINE: lambda timer, data: calls.append((timer, data))})
    group.reset()
    drawline = group[TimerId.DRAWLINE]
    vbl_before = group[TimerId.VBL].delay
    step = drawline.delay
    group.advance_time(step)
    assert calls == [(drawline, 0)]
    assert not drawline.is_active()
    assert group[TimerId.VBL].delay == vbl_before - step


def test_stopped_timers_do_not_advance():
    group = TimerGroup()
    group.reset()
    group.advance_time(10)
    assert group[TimerId.WATCHDOG].delay == WATCHDOG_DELAY


def test_save_and_load_round_trip():
    group = TimerGroup()
    group.reset()
    group.advance_time(20)
    group[TimerId.HBL].arm(1234)
    data = group.save_state()

    other = TimerGroup()
    other.load_state(data)
    for timer_id in TimerId:
        assert other[timer_id].delay == group[timer_id].delay
        assert other[timer_id].state == group[timer_id].state
        assert other[timer_id].user_data == group[timer_id].user_data


def test_load_rejects_wrong_size():
    group = TimerGroup()
    with pytest.raises(ValueError):
        group.load_state(group.save_state()[:-1])