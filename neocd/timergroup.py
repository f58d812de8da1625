"""The fixed set of machine timers, advanced together in master clock cycles."""

from __future__ import annotations

import enum
from typing import Iterator, List, Mapping, Optional

from neocd.rounding import round_to_int
from neocd.timer import (
    ACTIVE_AREA_LEFT,
    CDROM_64HZ_DELAY,
    FRAME_RATE,
    MASTER_CLOCK,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    VBL_IRQ_X,
    VBL_IRQ_Y,
    VBL_RELOAD_X,
    VBL_RELOAD_Y,
    WATCHDOG_DELAY,
    Timer,
    TimerCallback,
    TimerState,
    pixel_to_master,
)


class TimerId(enum.IntEnum):
    WATCHDOG = 0
    VBL = 1
    HBL = 2
    VBL_RELOAD = 3
    DRAWLINE = 4
    CDROM = 5
    YM2610_A = 6
    YM2610_B = 7
    AUDIO_COMMAND = 8


class TimerGroup:
    """All machine timers, one per :class:`TimerId`."""

    def __init__(self, callbacks: Optional[Mapping[TimerId, TimerCallback]] = None) -> None:
        callbacks = dict(callbacks or {})
        self._timers: List[Timer] = [Timer(callbacks.get(timer_id)) for timer_id in TimerId]
        self[TimerId.WATCHDOG].delay = WATCHDOG_DELAY
        self[TimerId.YM2610_A].user_data = 0
        self[TimerId.YM2610_B].user_data = 1

    def __getitem__(self, timer_id: TimerId) -> Timer:
        return self._timers[TimerId(timer_id)]

    def __iter__(self) -> Iterator[Timer]:
        return iter(self._timers)

    def __len__(self) -> int:
        return len(self._timers)

    def reset(self) -> None:
        """Put every timer in its power-on state."""
        self[TimerId.WATCHDOG].state = TimerState.STOPPED
        self[TimerId.DRAWLINE].arm(pixel_to_master(ACTIVE_AREA_LEFT - VBL_IRQ_X))
        self[TimerId.VBL].arm(pixel_to_master(SCREEN_WIDTH * SCREEN_HEIGHT))
        self[TimerId.VBL_RELOAD].arm(
            pixel_to_master(
                (VBL_RELOAD_Y - VBL_IRQ_Y) * SCREEN_WIDTH + (VBL_RELOAD_X - VBL_IRQ_X)
            )
        )
        self[TimerId.HBL].state = TimerState.STOPPED
        self[TimerId.CDROM].arm(CDROM_64HZ_DELAY)
        self[TimerId.AUDIO_COMMAND].state = TimerState.STOPPED
        self[TimerId.YM2610_A].state = TimerState.STOPPED
        self[TimerId.YM2610_B].state = TimerState.STOPPED

    def time_slice(self) -> int:
        """Cycles until the next active timer expires, at most one frame."""
        frame = round_to_int(MASTER_CLOCK / FRAME_RATE)
        return min([frame] + [timer.delay for timer in self._timers if timer.is_active()])

    def advance_time(self, time: int) -> None:
        for timer in self._timers:
            timer.advance_time(time)

    def save_state(self) -> bytes:
        return b"".join(timer.save_state() for timer in self._timers)

    def load_state(self, data: bytes) -> None:
        size = Timer.STATE_SIZE
        expected = size * len(self._timers)
        if len(data) != expected:
            raise ValueError(f"timer group state must be {expected} bytes, got {len(data)}")
        for number, timer in enumerate(self._timers):
            timer.load_state(data[number * size:(number + 1) * size])