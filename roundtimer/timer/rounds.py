"""Round state machine.

Phases
------
PREP       Get-ready countdown before the first round.
WORK       Round in progress.
REST       Break between rounds (never after the last round).
FINISHED   Terminal; only a reset leaves it.

Transitions
-----------
PREP → WORK(1)
WORK(r) → REST              (r < rounds)
WORK(r) → FINISHED          (r >= rounds)
REST → WORK(r + 1)
Any → PREP                  (reset)

The machine owns the single live :class:`RunState`.  Durations are
copied from the config when a phase is entered, so a config applied
later never resizes the phase already running.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..settings import TimerConfig, DEFAULT_CONFIG


logger = logging.getLogger(__name__)


class Phase(Enum):
    PREP = "prep"
    WORK = "work"
    REST = "rest"
    FINISHED = "finished"


@dataclass
class RunState:
    phase: Phase = Phase.PREP
    round: int = 1
    phase_duration_seconds: int = DEFAULT_CONFIG.prep_seconds
    deadline_ms: float | None = None
    remaining_seconds: int = DEFAULT_CONFIG.prep_seconds
    running: bool = False

    @property
    def progress(self) -> float:
        """0.0 → 1.0 through the current phase."""
        total = max(1, self.phase_duration_seconds)
        elapsed = total - self.remaining_seconds
        return max(0.0, min(1.0, elapsed / total))

    @classmethod
    def initial(cls, config: TimerConfig) -> RunState:
        return cls(
            phase=Phase.PREP,
            round=1,
            phase_duration_seconds=config.prep_seconds,
            deadline_ms=None,
            remaining_seconds=config.prep_seconds,
            running=False,
        )


class RoundStateMachine:
    """Sequences PREP → WORK → REST → … → FINISHED for one config."""

    def __init__(self, config: TimerConfig = DEFAULT_CONFIG) -> None:
        self._config = config
        self._state = RunState.initial(config)

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def state(self) -> RunState:
        return self._state

    def reset(self, config: TimerConfig | None = None) -> RunState:
        """Discard the run and start over at PREP."""
        if config is not None:
            self._config = config
        self._state = RunState.initial(self._config)
        return self._state

    def arm(self, now_ms: float) -> None:
        """Set a fresh deadline from the frozen remaining time."""
        self._state.deadline_ms = now_ms + self._state.remaining_seconds * 1000

    def disarm(self) -> None:
        self._state.deadline_ms = None

    def advance(
        self, now_ms: float, *, for_deadline: float | None = None,
    ) -> Phase | None:
        """Move to the next phase and return it.

        Returns ``None`` without touching state when there is nothing to
        advance: the run is finished, no deadline is active, or
        *for_deadline* names a deadline that has already been processed.
        """
        s = self._state
        if s.phase == Phase.FINISHED or s.deadline_ms is None:
            return None
        if for_deadline is not None and for_deadline != s.deadline_ms:
            return None

        cfg = self._config
        if s.phase == Phase.PREP:
            self._enter(Phase.WORK, cfg.work_seconds, now_ms, round_=1)
        elif s.phase == Phase.WORK:
            if s.round >= cfg.rounds:
                self._finish()
            else:
                self._enter(Phase.REST, cfg.rest_seconds, now_ms)
        else:
            self._enter(Phase.WORK, cfg.work_seconds, now_ms, round_=s.round + 1)

        logger.info("Phase → %s (round %d)", s.phase.value, s.round)
        return s.phase

    # ── internal ──────────────────────────────────────────────────────────

    def _enter(
        self,
        phase: Phase,
        duration: int,
        now_ms: float,
        *,
        round_: int | None = None,
    ) -> None:
        s = self._state
        s.phase = phase
        if round_ is not None:
            s.round = round_
        s.phase_duration_seconds = duration
        s.remaining_seconds = duration
        s.deadline_ms = now_ms + duration * 1000

    def _finish(self) -> None:
        s = self._state
        s.phase = Phase.FINISHED
        s.remaining_seconds = 0
        s.deadline_ms = None
        s.running = False
