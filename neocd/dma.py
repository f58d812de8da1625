"""The DMA controller that moves words between regions of the address map."""

from __future__ import annotations

import logging
import struct
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, Optional, Protocol

from neocd.memory import Memory, Region, RegionFlags
from neocd.rounding import byte_swap_16

_log = logging.getLogger(__name__)

_WORD = struct.Struct(">H")

CD_SECTOR_WORDS = 0x400
# Art of Fighting (CDZ BIOS) sends CD transfers with an oversized length; the
# length is patched and the BIOS variable at this address is fixed up.
_CD_LENGTH_FIX_ADDRESS = 0x10FEFC
_CD_LENGTH_FIX_VALUE = 0x800


class CdBufferSource(Protocol):
    """The CD decoder side of a transfer: its sector buffer and end notification."""

    @property
    def buffer(self) -> bytes:
        """The decoder buffer holding the sector data."""

    def end_transfer(self) -> None:
        """Signal that the host has taken the data."""


class DmaEngine:
    """Runs the transfer selected by the DMA configuration registers of ``memory``."""

    def __init__(self, memory: Memory, cd_source: Optional[CdBufferSource] = None) -> None:
        self.memory = memory
        self.cd_source = cd_source
        self._operations: Dict[int, Callable[[], bool]] = {
            0xFE3D: self.copy,
            0xFE6D: self.copy,
            0xFFC5: self.copy_cdrom,
            0xFF89: self.copy_cdrom,  # Front loader BIOS
            0xFEF5: self.fill,
            0xFFCD: self.pattern,
            0xFFDD: self.pattern,
            0xE2DD: self.copy_odd_bytes,
            0xF2DD: self.copy_odd_bytes,  # Front loader BIOS
            0xFC2D: self.copy_cdrom_odd_bytes,
            0xCFFD: self.fill_odd_bytes,
        }

    def run(self) -> bool:
        """Start the configured transfer; False if the configuration is unknown or it failed."""
        memory = self.memory
        operation = self._operations.get(memory.dma_config[0])
        if operation is None:
            _log.debug(
                "DMA transfer with unknown DMA configuration: %s",
                " ".join(f"{value:04x}" for value in memory.dma_config),
            )
            self._log_registers()
            return False
        return operation()

    # Word access helpers

    @staticmethod
    def _fetch(region: Region, offset: int) -> int:
        masked = offset & region.address_mask
        if region.flags & RegionFlags.READ_DIRECT:
            return _WORD.unpack_from(region.read_base, masked)[0]
        if region.flags & RegionFlags.READ_MAPPED and region.handlers is not None:
            return region.handlers.read_word(masked) & 0xFFFF
        return 0xFFFF

    @staticmethod
    def _store(region: Region, offset: int, data: int) -> None:
        masked = offset & region.address_mask
        data &= 0xFFFF
        if region.flags & RegionFlags.WRITE_DIRECT:
            _WORD.pack_into(region.write_base, masked, data)
        elif region.flags & RegionFlags.WRITE_MAPPED and region.handlers is not None:
            region.handlers.write_word(masked, data)

    def _read_words(self, region: Region, offset: int) -> Iterator[int]:
        while True:
            yield self._fetch(region, offset)
            offset = (offset + 2) & 0xFFFFFFFF

    def _write_words(self, region: Region, offset: int, words: Iterable[int]) -> None:
        for word in words:
            self._store(region, offset, word)
            offset = (offset + 2) & 0xFFFFFFFF

    def _log_registers(self) -> None:
        memory = self.memory
        _log.debug(
            "Source: %X Dest: %X Length: %X Pattern: %X",
            memory.dma_source,
            memory.dma_destination,
            memory.dma_length,
            memory.dma_pattern,
        )

    def _regions_for_copy(self, name: str):
        # The source and destination registers are swapped for memory copies.
        memory = self.memory
        source = memory.find_region(memory.dma_destination)
        destination = memory.find_region(memory.dma_source)
        if source is None or destination is None:
            _log.debug("DMA %s: unhandled call", name)
            self._log_registers()
            return None
        return source, destination

    def _destination_region(self, name: str) -> Optional[Region]:
        region = self.memory.find_region(self.memory.dma_destination)
        if region is None:
            _log.debug("DMA %s: unknown destination region", name)
            self._log_registers()
        return region

    # Memory to memory

    def copy(self) -> bool:
        regions = self._regions_for_copy("COPY")
        if regions is None:
            return False
        source, destination = regions
        memory = self.memory
        words = islice(self._read_words(source, memory.dma_destination), memory.dma_length)
        self._write_words(destination, memory.dma_source, words)
        return True

    def copy_odd_bytes(self) -> bool:
        regions = self._regions_for_copy("COPY ODD BYTES")
        if regions is None:
            return False
        source, destination = regions
        memory = self.memory
        fetched = islice(self._read_words(source, memory.dma_destination), memory.dma_length)
        words = (word for data in fetched for word in (byte_swap_16(data), data))
        self._write_words(destination, memory.dma_source, words)
        return True

    # CD decoder buffer to memory

    def _limit_cd_length(self) -> None:
        memory = self.memory
        if memory.dma_length > CD_SECTOR_WORDS:
            _log.debug("DMA transfer from CD buffer with length > 0x400")
            self._write_long(_CD_LENGTH_FIX_ADDRESS, _CD_LENGTH_FIX_VALUE)
            memory.dma_length = CD_SECTOR_WORDS
        elif memory.dma_length < CD_SECTOR_WORDS:
            _log.debug("DMA transfer from CD buffer with length = %X", memory.dma_length)

    def _write_long(self, address: int, value: int) -> None:
        region = self.memory.region_for(address)
        if region is None:
            return
        self._store(region, address, value >> 16)
        self._store(region, address + 2, value)

    def _cd_words(self) -> Iterator[int]:
        if self.cd_source is None:
            raise RuntimeError("no CD buffer source attached to the DMA engine")
        size = self.memory.dma_length * 2
        data = bytes(self.cd_source.buffer[:size])
        if len(data) < size:
            raise ValueError(f"CD buffer holds {len(data)} bytes, transfer needs {size}")
        return (word for (word,) in _WORD.iter_unpack(data))

    def copy_cdrom(self) -> bool:
        region = self._destination_region("COPY FROM CD BUFFER")
        if region is None:
            return False
        self._limit_cd_length()
        self._write_words(region, self.memory.dma_destination, self._cd_words())
        self.cd_source.end_transfer()
        return True

    def copy_cdrom_odd_bytes(self) -> bool:
        region = self._destination_region("COPY FROM CD BUFFER (ODD BYTES)")
        if region is None:
            return False
        self._limit_cd_length()
        words = (word for data in self._cd_words() for word in (data >> 8, data))
        self._write_words(region, self.memory.dma_destination, words)
        self.cd_source.end_transfer()
        return True

    # Fills

    def pattern(self) -> bool:
        region = self._destination_region("PATTERN")
        if region is None:
            return False
        memory = self.memory
        words = (memory.dma_pattern for _ in range(memory.dma_length))
        self._write_words(region, memory.dma_destination, words)
        return True

    def _addresses(self, step: int) -> Iterator[int]:
        address = self.memory.dma_destination
        for _ in range(self.memory.dma_length):
            yield address
            address = (address + step) & 0xFFFFFFFF

    def fill(self) -> bool:
        """Fill with the address being written, as two words per entry."""
        region = self._destination_region("FILL")
        if region is None:
            return False
        words = (word for address in self._addresses(4) for word in (address >> 16, address))
        self._write_words(region, self.memory.dma_destination, words)
        return True

    def fill_odd_bytes(self) -> bool:
        """Fill with the address being written, one byte of it per word."""
        region = self._destination_region("FILL ODD BYTES")
        if region is None:
            return False
        words = (
            word
            for address in self._addresses(8)
            for word in (address >> 24, address >> 16, address >> 8, address)
        )
        self._write_words(region, self.memory.dma_destination, words)
        return True