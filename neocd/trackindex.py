"""A CD track number paired with an index number."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class TrackIndex:
    """Track and index, ordered by track first, then index."""

    track: int = 0
    index: int = 0

    def __post_init__(self) -> None:
        for name in ("track", "index"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} must fit in one byte, got {value}")