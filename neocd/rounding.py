"""Integer rounding, clamping and byte-order helpers."""

from __future__ import annotations

from typing import TypeVar

T = TypeVar("T", int, float)


def round_to_int(value: float) -> int:
    """Round to the nearest integer, halves rounding towards positive infinity."""
    if value >= 0.0:
        return int(value + 0.5)
    offset = int(value - 1.0)
    return int(value - float(offset) + 0.5) + offset


def clamp(value: T, low: T, high: T) -> T:
    """Limit ``value`` to the closed range ``[low, high]``."""
    return max(low, min(high, value))


def byte_swap_16(value: int) -> int:
    """Swap the two bytes of a 16-bit word."""
    value &= 0xFFFF
    return ((value << 8) | (value >> 8)) & 0xFFFF


def byte_swap_32(value: int) -> int:
    """Reverse the four bytes of a 32-bit double word."""
    value &= 0xFFFFFFFF
    return (
        ((value << 24) & 0xFF000000)
        | ((value << 8) & 0x00FF0000)
        | ((value >> 8) & 0x0000FF00)
        | (value >> 24)
    )