"""Machine-wide state: interrupt lines, masks, frame timing and save state."""

from __future__ import annotations

import enum
import struct
from typing import Callable, Optional

from neocd.timer import (
    CYCLES_PER_FRAME,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    VBL_IRQ_X,
    VBL_IRQ_Y,
    m68k_to_master,
    master_to_pixel,
)

_STATE_FORMAT = struct.Struct("<I?II??IIIii??dIII")

CDROM_DECODER_VECTOR = 0x54
CDROM_COMMUNICATION_VECTOR = 0x58


class Nationality(enum.IntEnum):
    JAPAN = 0
    USA = 1
    EUROPE = 2
    PORTUGAL = 3


class Interrupt(enum.IntFlag):
    VERTICAL_BLANK = 1
    CDROM_DECODER = 2
    CDROM_COMMUNICATION = 4
    RASTER = 8


class MachineState:
    """Interrupt, timing and sound-link registers shared by the whole machine.

    ``irq_line``, when set, receives the 68000 interrupt level after each update.
    """

    STATE_SIZE = _STATE_FORMAT.size

    def __init__(self) -> None:
        self.cdz_irq1_divisor = 0
        self.cd_communication_n_reset = False
        self.irq_mask1 = 0
        self.irq_mask2 = 0
        self.cd_sector_decoded_this_frame = False
        self.fast_forward = False
        self.machine_nationality = int(Nationality.JAPAN)
        self.cdrom_vector = 0
        self.pending_interrupts = 0
        self.remaining_cycles_this_frame = 0
        self.z80_time_slice = 0
        self.z80_disable = True
        self.z80_nmi_disable = True
        self.current_time_seconds = 0.0
        self.audio_command = 0
        self.audio_result = 0
        self.bios_type = 0
        self.irq_level = 0
        self.irq_line: Optional[Callable[[int], None]] = None

    def reset(self) -> None:
        """Return the registers to their power-on values; nationality and BIOS are kept."""
        self.cdrom_vector = 0
        self.cd_communication_n_reset = False
        self.cdz_irq1_divisor = 0
        self.pending_interrupts = 0
        self.irq_mask1 = 0
        self.irq_mask2 = 0
        self.remaining_cycles_this_frame = 0
        self.z80_time_slice = 0
        self.z80_disable = True
        self.z80_nmi_disable = True
        self.current_time_seconds = 0.0
        self.fast_forward = False
        self.audio_command = 0
        self.audio_result = 0
        self.irq_level = 0

    def set_interrupt(self, interrupt: Interrupt) -> None:
        self.pending_interrupts |= int(interrupt)

    def clear_interrupt(self, interrupt: Interrupt) -> None:
        self.pending_interrupts &= ~int(interrupt)

    def update_interrupts(self) -> int:
        """Compute the interrupt level from the pending interrupts and signal it."""
        pending = self.pending_interrupts
        level = 0
        if pending & Interrupt.VERTICAL_BLANK:
            level = 1
        if pending & Interrupt.CDROM_DECODER:
            level = 2
            self.cdrom_vector = CDROM_DECODER_VECTOR
        if pending & Interrupt.CDROM_COMMUNICATION:
            level = 2
            self.cdrom_vector = CDROM_COMMUNICATION_VECTOR
        if pending & Interrupt.RASTER:
            level = 3
        self.irq_level = level
        if self.irq_line is not None:
            self.irq_line(level)
        return level

    def _frame_pixels(self) -> int:
        return master_to_pixel(CYCLES_PER_FRAME - self.remaining_cycles_this_frame)

    def screen_x(self) -> int:
        """Horizontal beam position, frames starting at the vertical blank interrupt."""
        return (VBL_IRQ_X + self._frame_pixels()) % SCREEN_WIDTH

    def screen_y(self) -> int:
        """Vertical beam position, frames starting at the vertical blank interrupt."""
        return (VBL_IRQ_Y + (VBL_IRQ_X + self._frame_pixels()) // SCREEN_WIDTH) % SCREEN_HEIGHT

    def is_cd_decoder_irq_enabled(self) -> bool:
        return (self.irq_mask1 & 0x500) == 0x500

    def is_cd_communication_irq_enabled(self) -> bool:
        return (self.irq_mask1 & 0x50) == 0x50 and self.cd_communication_n_reset

    def is_vbl_enabled(self) -> bool:
        return (self.irq_mask2 & 0x030) == 0x030

    def is_hbl_enabled(self) -> bool:
        return True

    def m68k_master_cycles_this_frame(self, m68k_cycles_run: int) -> int:
        """Master cycles elapsed this frame, including the running 68000 time slice."""
        return (
            CYCLES_PER_FRAME
            - self.remaining_cycles_this_frame
            + m68k_to_master(m68k_cycles_run)
        )

    def save_state(self) -> bytes:
        return _STATE_FORMAT.pack(
            self.cdz_irq1_divisor & 0xFFFFFFFF,
            self.cd_communication_n_reset,
            self.irq_mask1 & 0xFFFFFFFF,
            self.irq_mask2 & 0xFFFFFFFF,
            self.cd_sector_decoded_this_frame,
            self.fast_forward,
            self.machine_nationality & 0xFFFFFFFF,
            self.cdrom_vector & 0xFFFFFFFF,
            self.pending_interrupts & 0xFFFFFFFF,
            self.remaining_cycles_this_frame,
            self.z80_time_slice,
            self.z80_disable,
            self.z80_nmi_disable,
            self.current_time_seconds,
            self.audio_command & 0xFFFFFFFF,
            self.audio_result & 0xFFFFFFFF,
            self.bios_type & 0xFFFFFFFF,
        )

    def load_state(self, data: bytes) -> None:
        if len(data) != _STATE_FORMAT.size:
            raise ValueError(
                f"machine state must be {_STATE_FORMAT.size} bytes, got {len(data)}"
            )
        (
            self.cdz_irq1_divisor,
            self.cd_communication_n_reset,
            self.irq_mask1,
            self.irq_mask2,
            self.cd_sector_decoded_this_frame,
            self.fast_forward,
            self.machine_nationality,
            self.cdrom_vector,
            self.pending_interrupts,
            self.remaining_cycles_this_frame,
            self.z80_time_slice,
            self.z80_disable,
            self.z80_nmi_disable,
            self.current_time_seconds,
            self.audio_command,
            self.audio_result,
            self.bios_type,
        ) = _STATE_FORMAT.unpack(data)