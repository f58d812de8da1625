"""Palette conversion, fix layer drawing and video registers."""

from __future__ import annotations

import enum
import struct
from array import array

from neocd.memory import FIXRAM_SIZE, PALETTERAM_SIZE, Memory

FRAMEBUFFER_WIDTH = 320
FRAMEBUFFER_HEIGHT = 224
ASPECT_RATIO = 4.0 / 3.0
MAX_SPRITES_PER_SCREEN = 381
MAX_SPRITES_PER_LINE = 96

# Used to clip sprites
LEFT_BORDER = 160 - (FRAMEBUFFER_WIDTH // 2)
RIGHT_BORDER = (FRAMEBUFFER_WIDTH // 2) + 159

PALETTE_BANK_SIZE = 0x1000
FIX_TILE_SIZE = 32
FIX_MAP_START = 0xE004 // 2
FIRST_SCANLINE = 16

_PALETTE_WORD = struct.Struct(">H")
_STATE_FORMAT = struct.Struct("<IIII????IIIIIIIIII")


class HirqControl(enum.IntFlag):
    DISABLE = 0x00
    ENABLE = 0x10
    RELATIVE = 0x20
    VBLANK_LOAD = 0x40
    AUTOREPEAT = 0x80


def convert_color_value(color: int) -> int:
    """Convert a hardware palette word to RGB565."""
    c = color & 0xFFFF
    return (
        ((c & 0x0F00) << 4) | ((c & 0x4000) >> 3)
        | ((c & 0x00F0) << 3) | ((c & 0x2000) >> 7)
        | ((c & 0x000F) << 1) | ((c & 0x1000) >> 12)
    ) & 0xFFFF


def _zero_words(count: int) -> array:
    return array("H", bytes(count * 2))


class Video:
    """Video state: converted palette, frame buffer and the registers saved in states."""

    STATE_SIZE = _STATE_FORMAT.size

    def __init__(self, memory: Memory) -> None:
        self.memory = memory
        self.palette_ram_pc = _zero_words(PALETTERAM_SIZE // 2)
        self.fix_usage_map = bytearray(FIXRAM_SIZE // FIX_TILE_SIZE)
        self.frame_buffer = _zero_words(FRAMEBUFFER_WIDTH * FRAMEBUFFER_HEIGHT)
        self.reset()

    def reset(self) -> None:
        self.palette_ram_pc[:] = _zero_words(len(self.palette_ram_pc))
        self.fix_usage_map[:] = bytes(len(self.fix_usage_map))
        self.active_palette_bank = 0
        self.auto_animation_counter = 0
        self.auto_animation_frame_counter = 0
        self.auto_animation_speed = 0
        self.auto_animation_disabled = False
        self.spr_disable = True
        self.fix_disable = True
        self.video_enable = False
        self.hirq_control = int(HirqControl.DISABLE)
        self.hirq_register = 0
        self.videoram_offset = 0
        self.videoram_modulo = 0
        self.videoram_data = 0
        self.sprite_x = 0
        self.sprite_y = 0
        self.sprite_zoom_x = 15
        self.sprite_zoom_y = 255
        self.sprite_clipping = 0x20

    def convert_color(self, index: int) -> None:
        """Refresh the RGB565 copy of palette entry ``index``."""
        (color,) = _PALETTE_WORD.unpack_from(self.memory.palette_ram, index * 2)
        self.palette_ram_pc[index] = convert_color_value(color)

    def convert_palette(self) -> None:
        for index in range(len(self.palette_ram_pc)):
            self.convert_color(index)

    def update_fix_usage_map(self) -> None:
        """Mark each fix tile that has at least one non-transparent pixel."""
        fix = self.memory.fix_ram
        self.fix_usage_map[:] = bytes(
            1 if any(fix[start:start + FIX_TILE_SIZE]) else 0
            for start in range(0, FIXRAM_SIZE, FIX_TILE_SIZE)
        )

    def _row_start(self, scanline: int) -> int:
        return (scanline - FIRST_SCANLINE) * FRAMEBUFFER_WIDTH

    def draw_fix(self, scanline: int) -> None:
        """Draw the fix layer for a scanline between 16 and 239."""
        video_ram = self.memory.video_ram
        fix_ram = self.memory.fix_ram
        palette = self.palette_ram_pc
        frame = self.frame_buffer

        first = FIX_MAP_START + (scanline - FIRST_SCANLINE) // 8 + LEFT_BORDER * 4
        last = first + FRAMEBUFFER_WIDTH * 4
        pixel = self._row_start(scanline)
        tile_line = scanline % 8
        bank = self.active_palette_bank * PALETTE_BANK_SIZE

        for entry in video_ram[first:last:32]:
            character = entry & 0x0FFF
            if not self.fix_usage_map[character]:
                pixel += 8
                continue
            fix_base = character * FIX_TILE_SIZE + tile_line
            palette_base = bank + ((entry & 0xF000) >> 12) * 16
            for column in (16, 24, 0, 8):
                data = fix_ram[fix_base + column]
                for colour in (data & 0x0F, data >> 4):
                    if colour:
                        frame[pixel] = palette[palette_base + colour]
                    pixel += 1

    def draw_black_line(self, scanline: int) -> None:
        start = self._row_start(scanline)
        self.frame_buffer[start:start + FRAMEBUFFER_WIDTH] = _zero_words(FRAMEBUFFER_WIDTH)

    def draw_empty_line(self, scanline: int) -> None:
        """Fill a line with the backdrop colour, the last entry of the active bank."""
        color = self.palette_ram_pc[self.active_palette_bank * PALETTE_BANK_SIZE + 4095]
        start = self._row_start(scanline)
        self.frame_buffer[start:start + FRAMEBUFFER_WIDTH] = array(
            "H", [color] * FRAMEBUFFER_WIDTH
        )

    def save_state(self) -> bytes:
        values = (
            self.active_palette_bank,
            self.auto_animation_counter,
            self.auto_animation_speed,
            self.auto_animation_frame_counter,
        )
        registers = (
            self.hirq_control,
            self.hirq_register,
            self.videoram_offset,
            self.videoram_modulo,
            self.videoram_data,
            self.sprite_x,
            self.sprite_y,
            self.sprite_zoom_x,
            self.sprite_zoom_y,
            self.sprite_clipping,
        )
        return _STATE_FORMAT.pack(
            *(value & 0xFFFFFFFF for value in values),
            bool(self.auto_animation_disabled),
            bool(self.spr_disable),
            bool(self.fix_disable),
            bool(self.video_enable),
            *(value & 0xFFFFFFFF for value in registers),
        )

    def load_state(self, data: bytes) -> None:
        if len(data) != _STATE_FORMAT.size:
            raise ValueError(
                f"video state must be {_STATE_FORMAT.size} bytes, got {len(data)}"
            )
        (
            self.active_palette_bank,
            self.auto_animation_counter,
            self.auto_animation_speed,
            self.auto_animation_frame_counter,
            self.auto_animation_disabled,
            self.spr_disable,
            self.fix_disable,
            self.video_enable,
            self.hirq_control,
            self.hirq_register,
            self.videoram_offset,
            self.videoram_modulo,
            self.videoram_data,
            self.sprite_x,
            self.sprite_y,
            self.sprite_zoom_x,
            self.sprite_zoom_y,
            self.sprite_clipping,
        ) = _STATE_FORMAT.unpack(data)