"""Access handlers for backup RAM, controllers, palette RAM, switches and sound CPU link."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from neocd.memory import Memory
from neocd.timer import WATCHDOG_DELAY
from neocd.timergroup import TimerGroup, TimerId

_log = logging.getLogger(__name__)

_WORD = struct.Struct(">H")

# Selector values for which the controller ports return the joystick state.
_JOYSTICK_SELECTORS = frozenset((0x00, 0x12, 0x1B))

PALETTE_BANK_WORDS = 4096


@dataclass
class InputPorts:
    """Current state of the three input ports and the port selector."""

    input1: int = 0xFF
    input2: int = 0xFF
    input3: int = 0xFF
    selector: int = 0

    @property
    def joystick_selected(self) -> bool:
        return self.selector in _JOYSTICK_SELECTORS


class PaletteVideo(Protocol):
    active_palette_bank: int

    def convert_color(self, index: int) -> None:
        """Refresh the converted copy of one palette entry."""


class AudioResultHolder(Protocol):
    audio_result: int


class BackupRamHandlers:
    """Backup RAM, present on the odd bytes only."""

    def __init__(self, memory: Memory) -> None:
        self.memory = memory

    def read_byte(self, address: int) -> int:
        if address & 1:
            return self.memory.backup_ram[address >> 1]
        return 0xFF

    def read_word(self, address: int) -> int:
        return self.memory.backup_ram[address >> 1] | 0xFF00

    def write_byte(self, address: int, data: int) -> None:
        if address & 1:
            self.memory.backup_ram[address >> 1] = data & 0xFF

    def write_word(self, address: int, data: int) -> None:
        self.memory.backup_ram[address >> 1] = data & 0xFF


class Controller1Handlers:
    """First joystick port; writing to it kicks the watchdog."""

    def __init__(self, ports: InputPorts, timers: TimerGroup) -> None:
        self.ports = ports
        self.timers = timers

    def read_byte(self, address: int) -> int:
        if not address & 1 and self.ports.joystick_selected:
            return self.ports.input1
        return 0xFF

    def read_word(self, address: int) -> int:
        if self.ports.joystick_selected:
            return (self.ports.input1 << 8) | 0xFF
        return 0xFFFF

    def _kick_watchdog(self) -> None:
        self.timers[TimerId.WATCHDOG].delay = WATCHDOG_DELAY

    def write_byte(self, address: int, data: int) -> None:
        if address & 1:
            self._kick_watchdog()

    def write_word(self, address: int, data: int) -> None:
        self._kick_watchdog()


class Controller2Handlers:
    """Second joystick port; writes are ignored."""

    def __init__(self, ports: InputPorts) -> None:
        self.ports = ports

    def read_byte(self, address: int) -> int:
        if not address & 1 and self.ports.joystick_selected:
            return self.ports.input2
        return 0xFF

    def read_word(self, address: int) -> int:
        if self.ports.joystick_selected:
            return (self.ports.input2 << 8) | 0xFF
        return 0xFFFF

    def write_byte(self, address: int, data: int) -> None:
        pass

    def write_word(self, address: int, data: int) -> None:
        pass


class Controller3Handlers:
    """Start/select port; writing sets the port selector."""

    def __init__(self, ports: InputPorts) -> None:
        self.ports = ports

    def read_byte(self, address: int) -> int:
        if not address & 1:
            if self.ports.joystick_selected:
                return self.ports.input3
            return 0x0F
        return 0xFF

    def read_word(self, address: int) -> int:
        if self.ports.joystick_selected:
            return (self.ports.input3 << 8) | 0xFF
        return 0x0FFF

    def write_byte(self, address: int, data: int) -> None:
        if address & 1:
            self.ports.selector = data & 0xFF

    def write_word(self, address: int, data: int) -> None:
        self.ports.selector = data & 0xFF


class PaletteRamHandlers:
    """Palette RAM seen through the active bank; writes refresh converted colours."""

    def __init__(self, memory: Memory, video: PaletteVideo) -> None:
        self.memory = memory
        self.video = video

    def _bank_word(self, address: int) -> int:
        return self.video.active_palette_bank * PALETTE_BANK_WORDS + address // 2

    def read_byte(self, address: int) -> int:
        bank_start = self.video.active_palette_bank * PALETTE_BANK_WORDS * 2
        return self.memory.palette_ram[bank_start + address]

    def read_word(self, address: int) -> int:
        return _WORD.unpack_from(self.memory.palette_ram, self._bank_word(address) * 2)[0]

    def write_byte(self, address: int, data: int) -> None:
        color = self._bank_word(address)
        bank_start = self.video.active_palette_bank * PALETTE_BANK_WORDS * 2
        self.memory.palette_ram[bank_start + address] = data & 0xFF
        self.video.convert_color(color)

    def write_word(self, address: int, data: int) -> None:
        color = self._bank_word(address)
        _WORD.pack_into(self.memory.palette_ram, color * 2, data & 0xFFFF)
        self.video.convert_color(color)


class SwitchHandlers:
    """System switches: vector table mapping and palette bank selection."""

    def __init__(self, memory: Memory, video: PaletteVideo) -> None:
        self.memory = memory
        self.video = video

    def read_byte(self, address: int) -> int:
        return 0xFF

    def read_word(self, address: int) -> int:
        return 0xFFFF

    def write_word(self, address: int, data: int) -> None:
        if address in (0x00, 0x10):
            pass  # darken colours, not emulated
        elif address == 0x02:
            self.memory.map_vectors_to_rom()
        elif address == 0x0E:
            self.video.active_palette_bank = 0
        elif address == 0x12:
            self.memory.map_vectors_to_ram()
        elif address == 0x1E:
            self.video.active_palette_bank = 1
        else:
            _log.debug(
                "SWITCHES: write to unknown switch %06X DATA=%04X", address + 0x3A0000, data
            )

    def write_byte(self, address: int, data: int) -> None:
        if address & 1:
            self.write_word(address & 0xFFFFFE, data)


class Z80CommHandlers:
    """Command and result registers shared with the sound CPU."""

    def __init__(
        self,
        machine: AudioResultHolder,
        timers: TimerGroup,
        end_timeslice: Optional[Callable[[], None]] = None,
    ) -> None:
        self.machine = machine
        self.timers = timers
        self.end_timeslice = end_timeslice

    def read_byte(self, address: int) -> int:
        if not address:
            return self.machine.audio_result
        return 0xFF

    def read_word(self, address: int) -> int:
        return (self.machine.audio_result << 8) | 0xFF

    def _send_command(self, command: int) -> None:
        timer = self.timers[TimerId.AUDIO_COMMAND]
        timer.user_data = command & 0xFFFFFFFF
        # One cycle, not zero, otherwise the callback would run immediately.
        timer.arm(1)
        # Let the sound CPU catch up before the command timer raises its NMI.
        if self.end_timeslice is not None:
            self.end_timeslice()

    def write_byte(self, address: int, data: int) -> None:
        if not address:
            self._send_command(data)

    def write_word(self, address: int, data: int) -> None:
        self._send_command(data >> 8)