"""Deadline-based countdown primitive.

Remaining time is always recomputed from an absolute wall-clock deadline,
never decremented per tick.  Late timer callbacks therefore cannot
accumulate drift, and after the process is suspended the next reading
reflects the real elapsed time (possibly zero, which advances the phase
immediately).
"""

from __future__ import annotations

import math
import time
from typing import Callable


def remaining_seconds(deadline_ms: float, now_ms: float) -> int:
    """Whole seconds left until *deadline_ms*, rounded up, never negative."""
    return max(0, math.ceil((deadline_ms - now_ms) / 1000))


def _wall_clock_ms() -> float:
    return time.time() * 1000


class PhaseClock:
    """Wall-clock source plus the remaining-seconds calculation.

    *now* is injectable so tests can move time by hand.
    """

    def __init__(self, now: Callable[[], float] | None = None) -> None:
        self._now = now or _wall_clock_ms

    def now_ms(self) -> float:
        return self._now()

    def deadline_in(self, seconds: int, now_ms: float | None = None) -> float:
        if now_ms is None:
            now_ms = self.now_ms()
        return now_ms + seconds * 1000

    def remaining(
        self, deadline_ms: float | None, now_ms: float | None = None,
    ) -> int | None:
        """Seconds left for *deadline_ms*, or ``None`` when nothing is armed."""
        if deadline_ms is None:
            return None
        if now_ms is None:
            now_ms = self.now_ms()
        return remaining_seconds(deadline_ms, now_ms)
