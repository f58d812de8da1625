import pytest

from neocd import timer as t
from neocd.timer import Timer, TimerState


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, timer, user_data):
        self.calls.append((timer, user_data))


def test_pixel_clock_is_quarter_of_master():
    assert t.pixel_to_master(1) == 4


def test_cycles_per_frame_matches_screen():
    assert t.CYCLES_PER_FRAME == t.pixel_to_master(t.SCREEN_WIDTH * t.SCREEN_HEIGHT)


@pytest.mark.parametrize("n", [0, 1, 7, 384, 101376])
def test_conversion_round_trips(n):
    assert t.master_to_pixel(t.pixel_to_master(n)) == n
    assert t.master_to_m68k(t.m68k_to_master(n)) == n
    assert t.master_to_z80(t.z80_to_master(n)) == n


def test_seconds_round_trip():
    assert t.seconds_to_master(1.0) == int(t.MASTER_CLOCK)
    assert t.master_to_seconds(int(t.MASTER_CLOCK)) == 1.0


def test_new_timer_is_stopped():
    timer = Timer()
    assert not timer.is_active()
    assert timer.state is TimerState.STOPPED


def test_arm_then_advance_fires_callback():
    recorder = Recorder()
    timer = Timer(recorder, user_data=7)
    timer.arm(100)
    timer.advance_time(60)
    assert timer.is_active()
    assert timer.delay == 40
    assert recorder.calls == []
    timer.advance_time(40)
    assert not timer.is_active()
    assert recorder.calls == [(timer, 7)]


def test_arm_with_zero_fires_immediately():
    recorder = Recorder()
    timer = Timer(recorder)
    timer.arm(0)
    assert len(recorder.calls) == 1
    assert not timer.is_active()


def test_arm_relative_adds_to_remaining():
    timer = Timer()
    timer.arm(50)
    timer.advance_time(20)
    timer.arm_relative(100)
    assert timer.delay == 130


def test_advance_while_stopped_keeps_delay():
    timer = Timer()
    timer.delay = 10
    timer.advance_time(5)
    assert timer.delay == 10


def test_setting_active_state_with_expired_delay_fires():
    recorder = Recorder()
    timer = Timer(recorder, user_data=3)
    timer.delay = 0
    timer.state = TimerState.ACTIVE
    assert recorder.calls == [(timer, 3)]
    assert timer.state is TimerState.STOPPED


def test_callback_can_rearm():
    timer = Timer(lambda tm, _: tm.arm_relative(10))
    timer.arm(10)
    timer.advance_time(10)
    assert timer.is_active()
    assert timer.delay == 10


def test_save_and_load_state_round_trip():
    source = Timer(user_data=0xDEADBEEF)
    source.arm(12345)
    restored = Timer()
    restored.load_state(source.save_state())
    assert restored.is_active()
    assert restored.delay == 12345
    assert restored.user_data == 0xDEADBEEF
    assert len(source.save_state()) == Timer.STATE_SIZE


def test_load_state_rejects_wrong_size():
    with pytest.raises(ValueError):
        Timer().load_state(b"\x00")