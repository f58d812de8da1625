"""Machine clock constants, clock conversions and a countdown timer."""

from __future__ import annotations

import enum
import struct
from typing import Callable, Optional

from neocd.rounding import round_to_int

MASTER_CLOCK = 24168000.0
M68K_CLOCK = 12084000.0
Z80_CLOCK = 4028000.0
PIXEL_CLOCK = 6042000.0

SCREEN_WIDTH = 384
SCREEN_HEIGHT = 264

ACTIVE_AREA_TOP = 16
ACTIVE_AREA_BOTTOM = ACTIVE_AREA_TOP + 224
ACTIVE_AREA_LEFT = 28
ACTIVE_AREA_RIGHT = ACTIVE_AREA_LEFT + 320

VBL_IRQ_X = ACTIVE_AREA_LEFT // 2
VBL_IRQ_Y = ACTIVE_AREA_BOTTOM

VBL_RELOAD_X = ACTIVE_AREA_RIGHT - 63
VBL_RELOAD_Y = ACTIVE_AREA_BOTTOM

WATCHDOG_DELAY = round_to_int(MASTER_CLOCK * 0.13516792)
CDROM_64HZ_DELAY = round_to_int(MASTER_CLOCK / 64.64)
CDROM_75HZ_DELAY = round_to_int(MASTER_CLOCK / 75.0)
CDROM_150HZ_DELAY = round_to_int(MASTER_CLOCK / 150.0)

FRAME_RATE = PIXEL_CLOCK / float(SCREEN_WIDTH * SCREEN_HEIGHT)
CYCLES_PER_FRAME = round_to_int((MASTER_CLOCK / PIXEL_CLOCK) * SCREEN_WIDTH * SCREEN_HEIGHT)


def seconds_to_master(value: float) -> int:
    return round_to_int(value * MASTER_CLOCK)


def master_to_seconds(value: int) -> float:
    return float(value) / MASTER_CLOCK


def m68k_to_master(value: int) -> int:
    return round_to_int(float(value) * (MASTER_CLOCK / M68K_CLOCK))


def z80_to_master(value: int) -> int:
    return round_to_int(float(value) * (MASTER_CLOCK / Z80_CLOCK))


def pixel_to_master(value: int) -> int:
    return round_to_int(float(value) * (MASTER_CLOCK / PIXEL_CLOCK))


def master_to_m68k(value: int) -> int:
    return round_to_int(float(value) / (MASTER_CLOCK / M68K_CLOCK))


def master_to_z80(value: int) -> int:
    return round_to_int(float(value) / (MASTER_CLOCK / Z80_CLOCK))


def master_to_pixel(value: int) -> int:
    return round_to_int(float(value) / (MASTER_CLOCK / PIXEL_CLOCK))


class TimerState(enum.IntEnum):
    STOPPED = 0
    ACTIVE = 1


TimerCallback = Callable[["Timer", int], None]

_STATE_FORMAT = struct.Struct("<iiI")


class Timer:
    """Countdown in master clock cycles that fires a callback when it runs out."""

    STATE_SIZE = _STATE_FORMAT.size

    def __init__(self, callback: Optional[TimerCallback] = None, user_data: int = 0) -> None:
        self._state = TimerState.STOPPED
        self.callback = callback
        self.delay = 0
        self.user_data = user_data & 0xFFFFFFFF

    @property
    def state(self) -> TimerState:
        return self._state

    @state.setter
    def state(self, state: TimerState) -> None:
        self._state = TimerState(state)
        self._check_timeout()

    def is_active(self) -> bool:
        return self._state is TimerState.ACTIVE

    def arm(self, delay: int) -> None:
        """Start the timer with an absolute delay."""
        self.delay = delay
        self._state = TimerState.ACTIVE
        self._check_timeout()

    def arm_relative(self, delay: int) -> None:
        """Start the timer, adding ``delay`` to what remains of the previous one."""
        self.delay += delay
        self._state = TimerState.ACTIVE
        self._check_timeout()

    def advance_time(self, time: int) -> None:
        if not self.is_active():
            return
        self.delay -= time
        self._check_timeout()

    def _check_timeout(self) -> None:
        if not self.is_active() or self.delay > 0:
            return
        self._state = TimerState.STOPPED
        if self.callback is not None:
            self.callback(self, self.user_data)

    def save_state(self) -> bytes:
        return _STATE_FORMAT.pack(int(self._state), self.delay, self.user_data & 0xFFFFFFFF)

    def load_state(self, data: bytes) -> None:
        if len(data) != _STATE_FORMAT.size:
            raise ValueError(f"timer state must be {_STATE_FORMAT.size} bytes, got {len(data)}")
        state, delay, user_data = _STATE_FORMAT.unpack(data)
        self._state = TimerState(state)
        self.delay = delay
        self.user_data = user_data