"""The 68000 address map: RAM areas, regions, the lookup table and DMA registers."""

from __future__ import annotations

import enum
import struct
import sys
from array import array
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, runtime_checkable

MEMORY_GRANULARITY = 0x80
ADDRESS_SPACE = 0x1000000

RAM_SIZE = 0x200000
ROM_SIZE = 0x80000
SPRRAM_SIZE = 0x400000
FIXRAM_SIZE = 0x20000
PCMRAM_SIZE = 0x100000
VIDEORAM_SIZE = 0x20000
PALETTERAM_SIZE = 0x4000
YZOOMROM_SIZE = 0x10000
Z80RAM_SIZE = 0x10000
BACKUPRAM_SIZE = 0x2000

DMA_CONFIG_COUNT = 9

_YZOOM_ORDER = (0x8, 0x0, 0xC, 0x4, 0xA, 0x2, 0xE, 0x6, 0x9, 0x1, 0xD, 0x5, 0xB, 0x3, 0xF, 0x7)

_STATE_HEADER = struct.Struct("<?9HIIIHIIII")


class RegionFlags(enum.IntFlag):
    READ_NOP = 0x01
    READ_MAPPED = 0x02
    READ_DIRECT = 0x04
    WRITE_NOP = 0x08
    WRITE_MAPPED = 0x10
    WRITE_DIRECT = 0x20


class RegionId(enum.IntEnum):
    RAM = 0
    UNUSED_20 = 1
    CONTROLLER1 = 2
    Z80_COMM = 3
    CONTROLLER2 = 4
    UNUSED_36 = 5
    CONTROLLER3 = 6
    SWITCHES = 7
    VIDEO = 8
    UNUSED_3E = 9
    PALETTE = 10
    BACKUP = 11
    ROM = 12
    MAPPED_RAM = 13
    CD_INTERFACE = 14


class MemoryArea(enum.IntFlag):
    SPR = 1
    PCM = 2
    Z80 = 4
    FIX = 8


@runtime_checkable
class Handlers(Protocol):
    """Byte and word access callbacks for a memory-mapped region."""

    def read_byte(self, address: int) -> int:
        """Read one byte at an offset within the region."""

    def read_word(self, address: int) -> int:
        """Read one 16-bit word at an offset within the region."""

    def write_byte(self, address: int, data: int) -> None:
        """Write one byte at an offset within the region."""

    def write_word(self, address: int, data: int) -> None:
        """Write one 16-bit word at an offset within the region."""


@dataclass(eq=False)
class Region:
    """One area of the address map and how it is accessed."""

    flags: RegionFlags
    start_address: int
    end_address: int
    address_mask: int
    handlers: Optional[Handlers] = None
    read_base: Optional[bytearray] = None
    write_base: Optional[bytearray] = None

    def contains(self, address: int) -> bool:
        return self.start_address <= address <= self.end_address


_MAPPED = RegionFlags.READ_MAPPED | RegionFlags.WRITE_MAPPED
_NOP = RegionFlags.READ_NOP | RegionFlags.WRITE_NOP

# (region, flags, start, end, mask, read buffer, write buffer)
_LAYOUT = (
    (RegionId.RAM, RegionFlags.READ_DIRECT | RegionFlags.WRITE_DIRECT,
     0x000000, 0x1FFFFF, 0x001FFFFF, "ram", "ram"),
    (RegionId.UNUSED_20, _NOP, 0x200000, 0x2FFFFF, 0x00000000, None, None),
    (RegionId.CONTROLLER1, _MAPPED, 0x300000, 0x31FFFF, 0x00000001, None, None),
    (RegionId.Z80_COMM, _MAPPED, 0x320000, 0x33FFFF, 0x00000001, None, None),
    (RegionId.CONTROLLER2, _MAPPED, 0x340000, 0x35FFFF, 0x00000001, None, None),
    (RegionId.UNUSED_36, _NOP, 0x360000, 0x37FFFF, 0x00000000, None, None),
    (RegionId.CONTROLLER3, _MAPPED, 0x380000, 0x39FFFF, 0x00000001, None, None),
    (RegionId.SWITCHES, _MAPPED, 0x3A0000, 0x3BFFFF, 0x0000001F, None, None),
    (RegionId.VIDEO, _MAPPED, 0x3C0000, 0x3DFFFF, 0x0000000F, None, None),
    (RegionId.UNUSED_3E, _NOP, 0x3E0000, 0x3FFFFF, 0x00000000, None, None),
    (RegionId.PALETTE, _MAPPED, 0x400000, 0x4FFFFF, 0x00001FFF, None, None),
    (RegionId.BACKUP, _MAPPED, 0x800000, 0x8FFFFF, 0x00003FFF, None, None),
    (RegionId.ROM, RegionFlags.READ_DIRECT | RegionFlags.WRITE_NOP,
     0xC00000, 0xCFFFFF, 0x0007FFFF, "rom", None),
    (RegionId.MAPPED_RAM, _MAPPED, 0xE00000, 0xEFFFFF, 0x000FFFFF, None, None),
    (RegionId.CD_INTERFACE, _MAPPED, 0xFF0000, 0xFF01FF, 0x000001FF, None, None),
)


def generate_y_zoom_data() -> bytes:
    """Build the sprite vertical shrink table exactly as the hardware ROM holds it."""
    out = bytearray()
    table = [False] * 256
    for z in range(16):
        for y in range(16):
            table[(_YZOOM_ORDER[y] << 4) | _YZOOM_ORDER[z]] = True
            block = bytes(t for t, used in enumerate(table) if used)
            out += block + b"\xFF" * (256 - len(block))
    return bytes(out)


def _zero_words(count: int) -> array:
    return array("H", bytes(count * 2))


def _words_to_bytes(words: array) -> bytes:
    data = array("H", words)
    if sys.byteorder == "big":
        data.byteswap()
    return data.tobytes()


def _bytes_to_words(data: bytes) -> array:
    words = array("H")
    words.frombytes(data)
    if sys.byteorder == "big":
        words.byteswap()
    return words


class Memory:
    """All memory of the machine and the map that routes CPU addresses to it.

    Palette RAM holds big-endian words as bytes; video RAM holds words by index.
    """

    def __init__(self, handlers: Optional[Mapping[RegionId, Handlers]] = None) -> None:
        self.ram = bytearray(RAM_SIZE)
        self.rom = bytearray(ROM_SIZE)
        self.spr_ram = bytearray(SPRRAM_SIZE)
        self.fix_ram = bytearray(FIXRAM_SIZE)
        self.pcm_ram = bytearray(PCMRAM_SIZE)
        self.video_ram = _zero_words(VIDEORAM_SIZE // 2)
        self.palette_ram = bytearray(PALETTERAM_SIZE)
        self.z80_ram = bytearray(Z80RAM_SIZE)
        self.backup_ram = bytearray(BACKUPRAM_SIZE)
        self.y_zoom_rom = generate_y_zoom_data()

        self.vectors_mapped_to_rom = False
        self.dma_config: List[int] = [0] * DMA_CONFIG_COUNT
        self.dma_source = 0
        self.dma_destination = 0
        self.dma_length = 0
        self.dma_pattern = 0
        self.spr_bank_select = 0
        self.pcm_bank_select = 0
        self.bus_request = 0
        self.area_select = 0

        handlers = dict(handlers or {})
        self.regions: Dict[RegionId, Region] = {}
        for region_id, flags, start, end, mask, read_name, write_name in _LAYOUT:
            self.regions[region_id] = Region(
                flags=flags,
                start_address=start,
                end_address=end,
                address_mask=mask,
                handlers=handlers.get(region_id),
                read_base=getattr(self, read_name) if read_name else None,
                write_base=getattr(self, write_name) if write_name else None,
            )

        # Only used to swap the first 0x80 bytes of the map between ROM and RAM.
        self.rom_vectors = Region(
            RegionFlags.READ_DIRECT | RegionFlags.WRITE_NOP,
            0x000000, 0x00007F, 0x0000007F, None, self.rom, None,
        )
        self.ram_vectors = Region(
            RegionFlags.READ_DIRECT | RegionFlags.WRITE_DIRECT,
            0x000000, 0x00007F, 0x0000007F, None, self.ram, self.ram,
        )

        self.region_lookup_table: List[Optional[Region]] = [None] * (
            ADDRESS_SPACE // MEMORY_GRANULARITY
        )
        for region in self.regions.values():
            first = region.start_address // MEMORY_GRANULARITY
            last = region.end_address // MEMORY_GRANULARITY
            self.region_lookup_table[first:last + 1] = [region] * (last - first + 1)

        self.map_vectors_to_rom()

    def reset(self) -> None:
        """Clear all volatile RAM and registers; ROM and backup RAM are kept."""
        for buffer in (self.ram, self.spr_ram, self.fix_ram, self.pcm_ram,
                       self.palette_ram, self.z80_ram):
            buffer[:] = bytes(len(buffer))
        self.video_ram[:] = _zero_words(len(self.video_ram))

        self.map_vectors_to_rom()
        self.reset_dma()

        self.bus_request = 0
        self.area_select = 0
        self.spr_bank_select = 0
        self.pcm_bank_select = 0

    def map_vectors_to_ram(self) -> None:
        self.region_lookup_table[0] = self.ram_vectors
        self.vectors_mapped_to_rom = False

    def map_vectors_to_rom(self) -> None:
        self.region_lookup_table[0] = self.rom_vectors
        self.vectors_mapped_to_rom = True

    def region_for(self, address: int) -> Optional[Region]:
        """The region the CPU sees at ``address``, including the vector swap."""
        return self.region_lookup_table[(address & 0xFFFFFF) // MEMORY_GRANULARITY]

    def find_region(self, address: int) -> Optional[Region]:
        """The main map region holding ``address``, as used by DMA transfers."""
        address &= 0xFFFFFF
        return next(
            (region for region in self.regions.values() if region.contains(address)),
            None,
        )

    def reset_dma(self) -> None:
        self.dma_config = [0] * DMA_CONFIG_COUNT
        self.dma_source = 0
        self.dma_destination = 0
        self.dma_length = 0
        self.dma_pattern = 0

    def save_state(self) -> bytes:
        header = _STATE_HEADER.pack(
            self.vectors_mapped_to_rom,
            *(value & 0xFFFF for value in self.dma_config),
            self.dma_source & 0xFFFFFFFF,
            self.dma_destination & 0xFFFFFFFF,
            self.dma_length & 0xFFFFFFFF,
            self.dma_pattern & 0xFFFF,
            self.spr_bank_select & 0xFFFFFFFF,
            self.pcm_bank_select & 0xFFFFFFFF,
            self.bus_request & 0xFFFFFFFF,
            self.area_select & 0xFFFFFFFF,
        )
        return b"".join((
            header,
            bytes(self.ram),
            bytes(self.rom),
            bytes(self.spr_ram),
            bytes(self.fix_ram),
            bytes(self.pcm_ram),
            _words_to_bytes(self.video_ram),
            bytes(self.palette_ram),
            bytes(self.z80_ram),
        ))

    def load_state(self, data: bytes) -> None:
        blobs = (
            (self.ram, RAM_SIZE),
            (self.rom, ROM_SIZE),
            (self.spr_ram, SPRRAM_SIZE),
            (self.fix_ram, FIXRAM_SIZE),
            (self.pcm_ram, PCMRAM_SIZE),
            (None, VIDEORAM_SIZE),
            (self.palette_ram, PALETTERAM_SIZE),
            (self.z80_ram, Z80RAM_SIZE),
        )
        expected = _STATE_HEADER.size + sum(size for _, size in blobs)
        if len(data) != expected:
            raise ValueError(f"memory state must be {expected} bytes, got {len(data)}")

        fields = _STATE_HEADER.unpack_from(data, 0)
        if fields[0]:
            self.map_vectors_to_rom()
        else:
            self.map_vectors_to_ram()
        self.dma_config = list(fields[1:1 + DMA_CONFIG_COUNT])
        (
            self.dma_source,
            self.dma_destination,
            self.dma_length,
            self.dma_pattern,
            self.spr_bank_select,
            self.pcm_bank_select,
            self.bus_request,
            self.area_select,
        ) = fields[1 + DMA_CONFIG_COUNT:]

        offset = _STATE_HEADER.size
        for buffer, size in blobs:
            chunk = data[offset:offset + size]
            if buffer is None:
                self.video_ram[:] = _bytes_to_words(chunk)
            else:
                buffer[:] = chunk
            offset += size