"""Timer package."""

from .clock import PhaseClock, remaining_seconds
from .rounds import Phase, RunState, RoundStateMachine
from .cues import CueScheduler, CUE_PATTERNS, evaluate
from .engine import RoundTimerEngine, TimerSnapshot, TICK_INTERVAL_MS

__all__ = [
    "PhaseClock",
    "remaining_seconds",
    "Phase",
    "RunState",
    "RoundStateMachine",
    "CueScheduler",
    "CUE_PATTERNS",
    "evaluate",
    "RoundTimerEngine",
    "TimerSnapshot",
    "TICK_INTERVAL_MS",
]
