"""Reader for 16-bit 44.1 kHz PCM WAVE audio tracks."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

_RIFF_HEADER = struct.Struct("<4sI4s")
_CHUNK_HEADER = struct.Struct("<4sI")
_FMT_CHUNK = struct.Struct("<HHIIHH")

_PCM_FORMAT = 1
_BITS_PER_SAMPLE = 16
_SAMPLE_RATE = 44100


class WavFormatError(ValueError):
    """The stream is not a WAVE file in the supported format."""


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) < size:
        raise WavFormatError(f"truncated {what}")
    return data


class WavFile:
    """Gives access to the PCM data of a WAVE stream, in bytes from its start."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._position = 0
        self._data_start = 0
        self._data_size = 0

        magic, riff_size, format_id = _RIFF_HEADER.unpack(
            _read_exact(stream, _RIFF_HEADER.size, "RIFF header")
        )
        if magic != b"RIFF" or format_id != b"WAVE":
            raise WavFormatError("not a RIFF WAVE file")

        file_size = riff_size + 8
        fmt_pos = 0
        data_pos = 0
        data_size = 0

        while data_pos == 0 or fmt_pos == 0:
            chunk_id, chunk_size = _CHUNK_HEADER.unpack(
                _read_exact(stream, _CHUNK_HEADER.size, "chunk header")
            )
            position = stream.tell()
            if position + chunk_size > file_size:
                raise WavFormatError("chunk extends past the end of the file")
            if chunk_id == b"fmt ":
                fmt_pos = position
            elif chunk_id == b"data":
                data_pos = position
                data_size = chunk_size
            stream.seek(chunk_size, io.SEEK_CUR)

        stream.seek(fmt_pos)
        audio_format, _channels, sample_rate, _bytes_per_second, _block, bits = (
            _FMT_CHUNK.unpack(_read_exact(stream, _FMT_CHUNK.size, "fmt chunk"))
        )
        if (
            audio_format != _PCM_FORMAT
            or bits != _BITS_PER_SAMPLE
            or sample_rate != _SAMPLE_RATE
        ):
            raise WavFormatError("audio must be 16-bit PCM at 44100 Hz")

        self._data_start = data_pos
        self._data_size = data_size
        stream.seek(self._data_start)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes of audio data from the current position."""
        if self._data_size <= 0:
            return b""
        available = self._data_size - self._position
        data = self._stream.read(max(0, min(size, available)))
        self._position += len(data)
        return data

    def seek(self, position: int) -> None:
        """Move to ``position`` bytes into the audio data, clamped to its length."""
        self._position = min(position, self._data_size)
        self._stream.seek(self._position + self._data_start)

    def length(self) -> int:
        """Size of the audio data in bytes."""
        return max(self._data_size, 0)