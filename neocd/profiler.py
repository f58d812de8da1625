"""Wall-clock time accumulation per emulation category."""

from __future__ import annotations

import enum
import time
from typing import Dict, MutableMapping, Optional


class ProfilingCategory(enum.IntEnum):
    TOTAL = 0
    AUDIO_CD = 1
    AUDIO_YM2610 = 2
    CPU_M68K = 3
    CPU_Z80 = 4
    VIDEO_AND_IRQ = 5
    INPUT_POLLING = 6


def new_accumulators() -> Dict[ProfilingCategory, float]:
    """A table of zeroed millisecond totals, one per category."""
    return {category: 0.0 for category in ProfilingCategory}


ACCUMULATORS: Dict[ProfilingCategory, float] = new_accumulators()


class TimeProfiler:
    """Measures elapsed milliseconds and adds them to a category's total.

    Timing starts on construction; use as a context manager or call :meth:`end`.
    """

    def __init__(
        self,
        category: ProfilingCategory,
        accumulators: Optional[MutableMapping[ProfilingCategory, float]] = None,
    ) -> None:
        self.category = ProfilingCategory(category)
        self.accumulators = ACCUMULATORS if accumulators is None else accumulators
        self._start = 0.0
        self._running = False
        self.start()

    def start(self) -> None:
        self._start = time.perf_counter()
        self._running = True

    def end(self) -> None:
        if not self._running:
            return
        elapsed_ms = (time.perf_counter() - self._start) * 1000.0
        self.accumulators[self.category] = self.accumulators.get(self.category, 0.0) + elapsed_ms
        self._running = False

    def __enter__(self) -> "TimeProfiler":
        return self

    def __exit__(self, *args: object) -> None:
        self.end()