"""Access handlers for the bank-switched mapped area and the video registers."""

from __future__ import annotations

import logging
import struct
from typing import Callable, Protocol

from neocd.machine import Interrupt
from neocd.memory import Memory, MemoryArea
from neocd.timer import SCREEN_HEIGHT, m68k_to_master, pixel_to_master
from neocd.timergroup import TimerGroup, TimerId
from neocd.video import HirqControl, Video

_log = logging.getLogger(__name__)

_WORD = struct.Struct(">H")

SPR_BANK_SIZE = 0x100000
PCM_BANK_SIZE = 0x80000


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class InterruptController(Protocol):
    def screen_y(self) -> int:
        """Current vertical beam position."""

    def clear_interrupt(self, interrupt: Interrupt) -> None:
        """Drop a pending interrupt."""

    def update_interrupts(self) -> int:
        """Recompute and signal the interrupt level."""


class MappedRamHandlers:
    """The window at E00000 onto sprite, PCM, Z80 or fix RAM, once the bus is granted."""

    def __init__(self, memory: Memory) -> None:
        self.memory = memory

    def _granted_area(self) -> int:
        memory = self.memory
        if memory.area_select & memory.bus_request:
            return memory.area_select
        return 0

    def _spr_address(self, address: int, mask: int) -> int:
        return (address + (self.memory.spr_bank_select & 3) * SPR_BANK_SIZE) & mask

    def _pcm_address(self, address: int) -> int:
        return ((address >> 1) + (self.memory.pcm_bank_select & 1) * PCM_BANK_SIZE) & 0xFFFFF

    def read_byte(self, address: int) -> int:
        memory = self.memory
        area = self._granted_area()
        if area == MemoryArea.FIX:
            if address & 1:
                return memory.fix_ram[(address >> 1) & 0x1FFFF]
        elif area == MemoryArea.SPR:
            return memory.spr_ram[self._spr_address(address, 0x3FFFFF)]
        elif area == MemoryArea.Z80:
            if address & 1:
                return memory.z80_ram[(address >> 1) & 0xFFFF]
        elif area == MemoryArea.PCM:
            if address & 1:
                return memory.pcm_ram[self._pcm_address(address)]
        return 0xFF

    def read_word(self, address: int) -> int:
        memory = self.memory
        area = self._granted_area()
        if area == MemoryArea.FIX:
            return memory.fix_ram[(address >> 1) & 0x1FFFF] | 0xFF00
        if area == MemoryArea.SPR:
            return _WORD.unpack_from(memory.spr_ram, self._spr_address(address, 0x3FFFFE))[0]
        if area == MemoryArea.Z80:
            return memory.z80_ram[(address >> 1) & 0xFFFF] | 0xFF00
        if area == MemoryArea.PCM:
            return memory.pcm_ram[self._pcm_address(address)] | 0xFF00
        return 0xFFFF

    def write_byte(self, address: int, data: int) -> None:
        memory = self.memory
        area = self._granted_area()
        data &= 0xFF
        if area == MemoryArea.FIX:
            if address & 1:
                memory.fix_ram[(address >> 1) & 0x1FFFF] = data
        elif area == MemoryArea.SPR:
            memory.spr_ram[self._spr_address(address, 0x3FFFFF)] = data
        elif area == MemoryArea.Z80:
            if address & 1:
                memory.z80_ram[(address >> 1) & 0xFFFF] = data
        elif area == MemoryArea.PCM:
            if address & 1:
                memory.pcm_ram[self._pcm_address(address)] = data

    def write_word(self, address: int, data: int) -> None:
        memory = self.memory
        area = self._granted_area()
        if area == MemoryArea.FIX:
            memory.fix_ram[(address >> 1) & 0x1FFFF] = data & 0xFF
        elif area == MemoryArea.SPR:
            _WORD.pack_into(memory.spr_ram, self._spr_address(address, 0x3FFFFE), data & 0xFFFF)
        elif area == MemoryArea.Z80:
            memory.z80_ram[(address >> 1) & 0xFFFF] = data & 0xFF
        elif area == MemoryArea.PCM:
            memory.pcm_ram[self._pcm_address(address)] = data & 0xFF


class VideoRegisterHandlers:
    """The video registers at 3C0000: video RAM access, raster interrupt and IRQ acknowledge.

    ``cycles_run`` returns the 68000 cycles already run in the current time slice.
    """

    def __init__(
        self,
        memory: Memory,
        video: Video,
        machine: InterruptController,
        timers: TimerGroup,
        cycles_run: Callable[[], int],
    ) -> None:
        self.memory = memory
        self.video = video
        self.machine = machine
        self.timers = timers
        self.cycles_run = cycles_run

    def read_word(self, address: int) -> int:
        video = self.video
        if address in (0x0, 0x2):
            return video.videoram_data
        if address == 0x4:
            return video.videoram_modulo
        if address == 0x6:
            vertical = self.machine.screen_y() + 0x100
            if vertical >= 0x200:
                vertical -= SCREEN_HEIGHT
            return ((vertical << 7) | (video.auto_animation_counter & 7)) & 0xFFFFFFFF
        return 0xFFFF

    def write_word(self, address: int, data: int) -> None:
        video = self.video
        video_ram = self.memory.video_ram
        data &= 0xFFFF

        if address == 0x0:
            video.videoram_offset = data
            video.videoram_data = video_ram[video.videoram_offset]
        elif address == 0x2:
            offset = video.videoram_offset
            video_ram[offset] = data
            offset = (offset & 0x8000) | ((offset + video.videoram_modulo) & 0x7FFF)
            video.videoram_offset = offset
            video.videoram_data = video_ram[offset]
        elif address == 0x4:
            video.videoram_modulo = data
        elif address == 0x6:
            video.auto_animation_speed = data >> 8
            video.auto_animation_disabled = bool(data & 0x0008)
            video.hirq_control = data & 0x00F0
        elif address == 0x8:
            video.hirq_register = ((video.hirq_register & 0x0000FFFF) | (data << 16)) & 0xFFFFFFFF
        elif address == 0xA:
            video.hirq_register = (video.hirq_register & 0xFFFF0000) | data
            if video.hirq_control & HirqControl.RELATIVE:
                # Count the cycles already run in this time slice, so that
                # line-exact raster effects land on the right line.
                elapsed = m68k_to_master(self.cycles_run())
                delay = pixel_to_master(_to_int32(video.hirq_register + 1))
                self.timers[TimerId.HBL].arm(_to_int32(elapsed + delay))
        elif address == 0xC:
            if data & 0x02:
                self.machine.clear_interrupt(Interrupt.RASTER)
            if data & 0x04:
                self.machine.clear_interrupt(Interrupt.VERTICAL_BLANK)
            self.machine.update_interrupts()
        elif address == 0xE:
            _log.debug("VIDEO: write to register $3C000E (Data=%04X)", data)

    def read_byte(self, address: int) -> int:
        if not address & 1:
            return self.read_word(address & 6) >> 8
        return 0xFF

    def write_byte(self, address: int, data: int) -> None:
        if not address & 1:
            data &= 0xFF
            self.write_word(address, (data << 8) | data)