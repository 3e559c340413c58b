"""Shared test helpers for RoundTimer."""

from roundtimer.timer.clock import PhaseClock
from roundtimer.timer.engine import RoundTimerEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock(PhaseClock):
    """Wall clock that only moves when told to."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0):
        self.ms = start_ms
        super().__init__(now=lambda: self.ms)

    def advance(self, seconds: float) -> None:
        self.ms += seconds * 1000


class RecordingPlayer:
    """Stands in for CuePlayer; records every play call."""

    def __init__(self, *, fail: bool = False):
        self.calls: list[dict] = []
        self.unlock_calls = 0
        self.enabled = True
        self._fail = fail

    def play(self, cue, *, delay_ms=0, playback_rate=1.0, volume=None):
        if self._fail:
            raise RuntimeError("audio device gone")
        self.calls.append({
            "cue": getattr(cue, "value", cue),
            "delay_ms": delay_ms,
            "playback_rate": playback_rate,
            "volume": volume,
        })

    def unlock(self):
        self.unlock_calls += 1
        if self._fail:
            raise RuntimeError("autoplay blocked")
        return True

    def set_enabled(self, enabled):
        self.enabled = enabled

    def cues(self) -> list[str]:
        return [c["cue"] for c in self.calls]

    def clear(self):
        self.calls.clear()


def run_for(engine: RoundTimerEngine, clock: FakeClock, seconds: float,
            step: float = 0.1) -> None:
    """Advance the fake clock in driver-sized steps, ticking each time."""
    steps = int(round(seconds / step))
    for _ in range(steps):
        clock.advance(step)
        engine._on_tick()


def finish_phase(engine: RoundTimerEngine, clock: FakeClock) -> None:
    """Jump straight past the current deadline and tick once."""
    clock.advance(engine.remaining + 0.001)
    engine._on_tick()
