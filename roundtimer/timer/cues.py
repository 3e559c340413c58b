"""Decides which audio cue fires for a given remaining second.

Rules, first match wins:

1. 1..3 seconds left in any phase        → ``final_countdown``
2. WORK and remaining == end warning     → ``round_ending``
3. REST and remaining == next-round warn → ``next_round``

Rule 1 includes PREP.  Thresholds of 0 disable rules 2 and 3.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ..audio.sounds import Cue
from ..settings import TimerConfig
from .rounds import Phase


logger = logging.getLogger(__name__)

COUNTDOWN_FROM = 3


class CueSink(Protocol):
    def play(
        self,
        cue: Cue | str,
        *,
        delay_ms: int = 0,
        playback_rate: float = 1.0,
        volume: float | None = None,
    ) -> None: ...

    def unlock(self) -> bool: ...


@dataclass(frozen=True)
class CuePlay:
    cue: Cue
    delay_ms: int = 0
    playback_rate: float = 1.0
    volume: float | None = None


FINAL_COUNTDOWN = "final_countdown"
ROUND_ENDING = "round_ending"
NEXT_ROUND = "next_round"
PHASE_CHANGE = "phase_change"
FINISH = "finish"

CUE_PATTERNS: dict[str, tuple[CuePlay, ...]] = {
    FINAL_COUNTDOWN: (
        CuePlay(Cue.COUNTDOWN, volume=0.75),
    ),
    ROUND_ENDING: (
        CuePlay(Cue.ROUND_WARNING),
        CuePlay(Cue.ROUND_WARNING, delay_ms=170),
    ),
    NEXT_ROUND: (
        CuePlay(Cue.NEXT_ROUND_WARNING, playback_rate=0.95),
        CuePlay(Cue.NEXT_ROUND_WARNING, delay_ms=180, playback_rate=1.1),
    ),
    PHASE_CHANGE: (
        CuePlay(Cue.PHASE_CHANGE),
    ),
    FINISH: (
        CuePlay(Cue.FINISH, volume=0.9),
        CuePlay(Cue.FINISH, delay_ms=320, playback_rate=1.15, volume=0.9),
    ),
}


def pattern_variants() -> list[tuple[Cue, float]]:
    """Every (cue, rate) pair the patterns play at a non-default rate."""
    pairs = {
        (step.cue, step.playback_rate)
        for steps in CUE_PATTERNS.values()
        for step in steps
        if step.playback_rate != 1.0
    }
    return sorted(pairs, key=lambda p: (p[0].value, p[1]))


def evaluate(remaining: int, phase: Phase, config: TimerConfig) -> str | None:
    """Name of the pattern due at *remaining* seconds, or ``None``."""
    if remaining <= 0 or phase == Phase.FINISHED:
        return None
    if remaining <= COUNTDOWN_FROM:
        return FINAL_COUNTDOWN
    if (
        phase == Phase.WORK
        and config.end_warning_seconds > 0
        and remaining == config.end_warning_seconds
    ):
        return ROUND_ENDING
    if (
        phase == Phase.REST
        and config.next_round_warning_seconds > 0
        and remaining == config.next_round_warning_seconds
    ):
        return NEXT_ROUND
    return None


class CueScheduler:
    """Fires at most one pattern per distinct remaining-second value."""

    def __init__(self, player: CueSink | None = None) -> None:
        self._player = player
        self._last_second: int | None = None
        self._prepare_variants()

    @property
    def last_second(self) -> int | None:
        return self._last_second

    def rearm(self, remaining: int | None) -> None:
        """Mark *remaining* as already handled (phase entry, resume)."""
        self._last_second = remaining

    def on_second(
        self, remaining: int, phase: Phase, config: TimerConfig,
    ) -> str | None:
        if remaining == self._last_second:
            return None
        self._last_second = remaining
        pattern = evaluate(remaining, phase, config)
        if pattern is not None:
            self.play_pattern(pattern)
        return pattern

    def play_pattern(self, name: str) -> None:
        if self._player is None:
            return
        for step in CUE_PATTERNS[name]:
            try:
                self._player.play(
                    step.cue,
                    delay_ms=step.delay_ms,
                    playback_rate=step.playback_rate,
                    volume=step.volume,
                )
            except Exception:
                logger.debug("Cue %s failed", step.cue.value, exc_info=True)

    def unlock_audio(self) -> None:
        if self._player is None:
            return
        try:
            self._player.unlock()
        except Exception:
            logger.debug("Audio unlock failed", exc_info=True)

    def _prepare_variants(self) -> None:
        # Variant files must exist before the first tick that plays them.
        prepare = getattr(self._player, "prepare", None)
        if prepare is None:
            return
        try:
            prepare(pattern_variants())
        except Exception:
            logger.debug("Cue variant preparation failed", exc_info=True)
