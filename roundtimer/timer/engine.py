"""Round timer engine: the control surface plus the 100ms driver.

Flow
----
start/resume → deadline armed → driver polls the clock every 100ms →
on each new whole second the cue scheduler runs → at zero the state
machine advances (new deadline, phase-change cue) or finishes (finish
cue, driver stopped).

Pausing stops the driver and drops the deadline but keeps the frozen
remaining seconds; resuming arms a fresh deadline from that value.
Applying a config (or preset) always resets the run to PREP, paused.

Everything runs on the Qt event loop thread.  The driver is the only
periodic callback and control operations stop it before touching the
state it reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal

from ..settings import (
    MemoryStore,
    Preset,
    SettingsStore,
    TimerConfig,
    get_preset,
    load_config,
    normalize,
    persist_config,
)
from .clock import PhaseClock, remaining_seconds
from .cues import FINISH, PHASE_CHANGE, CueScheduler, CueSink
from .rounds import Phase, RoundStateMachine, RunState


logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 100


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the run for whoever renders it."""

    phase: Phase
    round: int
    rounds: int
    remaining_seconds: int
    phase_duration_seconds: int
    running: bool
    progress: float


class RoundTimerEngine(QObject):
    """Qt-driven interval timer: PREP → WORK → REST → … → FINISHED.

    Signals
    -------
    tick(remaining_seconds: int)
        Emitted whenever the displayed whole second changes.
    phase_changed(phase: Phase)
        Emitted on every transition and on reset.
    running_changed(running: bool)
        Emitted when the driver starts or stops.
    config_changed(config: TimerConfig)
        Emitted after a config or preset is applied.
    finished()
        Emitted once when the last round ends.
    snapshot_changed(snapshot: TimerSnapshot)
        Emitted after any observable change.
    """

    tick = pyqtSignal(int)
    phase_changed = pyqtSignal(object)
    running_changed = pyqtSignal(bool)
    config_changed = pyqtSignal(object)
    finished = pyqtSignal()
    snapshot_changed = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        config: TimerConfig | None = None,
        store: SettingsStore | None = None,
        player: CueSink | None = None,
        clock: PhaseClock | None = None,
        interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)

        # ── collaborators ─────────────────────────────────────────────
        self._store: SettingsStore = store if store is not None else MemoryStore()
        self._player = player
        self._clock = clock or PhaseClock()
        self._cues = CueScheduler(player)

        # ── run state ─────────────────────────────────────────────────
        if config is None:
            config = load_config(self._store)
        self._machine = RoundStateMachine(normalize(config))
        self._cues.rearm(self._machine.state.remaining_seconds)

        # ── driver ────────────────────────────────────────────────────
        self._driver = QTimer(self)
        self._driver.setTimerType(Qt.TimerType.PreciseTimer)
        self._driver.setInterval(interval_ms)
        self._driver.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def config(self) -> TimerConfig:
        return self._machine.config

    @property
    def state(self) -> RunState:
        return self._machine.state

    @property
    def phase(self) -> Phase:
        return self._machine.state.phase

    @property
    def current_round(self) -> int:
        return self._machine.state.round

    @property
    def remaining(self) -> int:
        """Seconds left in the current phase (last computed)."""
        return self._machine.state.remaining_seconds

    @property
    def phase_duration(self) -> int:
        return self._machine.state.phase_duration_seconds

    @property
    def percent_complete(self) -> float:
        return self._machine.state.progress

    @property
    def is_running(self) -> bool:
        return self._machine.state.running

    @property
    def sound_enabled(self) -> bool:
        return bool(getattr(self._player, "enabled", False))

    def get_snapshot(self) -> TimerSnapshot:
        s = self._machine.state
        return TimerSnapshot(
            phase=s.phase,
            round=s.round,
            rounds=self.config.rounds,
            remaining_seconds=s.remaining_seconds,
            phase_duration_seconds=s.phase_duration_seconds,
            running=s.running,
            progress=s.progress,
        )

    def subscribe(
        self, callback: Callable[[TimerSnapshot], None],
    ) -> Callable[[], None]:
        """Call *callback* with a fresh snapshot after every change.

        Returns a function that removes the subscription.
        """
        self.snapshot_changed.connect(callback)

        def unsubscribe() -> None:
            try:
                self.snapshot_changed.disconnect(callback)
            except TypeError:
                pass

        return unsubscribe

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def toggle_run(self) -> None:
        """Pause when running, otherwise start or resume."""
        if self.is_running:
            self._pause()
        else:
            self._resume()

    def start(self) -> None:
        if not self.is_running:
            self._resume()

    def pause(self) -> None:
        if self.is_running:
            self._pause()

    def reset(self, config: TimerConfig | None = None) -> None:
        """Stop and rebuild the run at PREP (paused)."""
        was_running = self.is_running
        self._driver.stop()
        state = self._machine.reset(config)
        self._cues.rearm(state.remaining_seconds)

        self.phase_changed.emit(state.phase)
        self.tick.emit(state.remaining_seconds)
        if was_running:
            self.running_changed.emit(False)
        self._emit_snapshot()

    def apply_config(self, raw: Mapping[str, Any] | TimerConfig | None) -> TimerConfig:
        """Normalize, persist and activate *raw*.  Always resets the run."""
        config = normalize(raw)
        persist_config(self._store, config)
        logger.info(
            "Applying config: %d x %ds / %ds (prep %ds)",
            config.rounds, config.work_seconds,
            config.rest_seconds, config.prep_seconds,
        )
        self.reset(config)
        self.config_changed.emit(config)
        return config

    def apply_preset(self, preset: Preset | str) -> TimerConfig | None:
        if isinstance(preset, str):
            found = get_preset(preset)
            if found is None:
                logger.warning("Unknown preset %r", preset)
                return None
            preset = found
        logger.info("Applying preset %s", preset.id)
        return self.apply_config(preset.config)

    def set_sound_enabled(self, enabled: bool) -> None:
        setter = getattr(self._player, "set_enabled", None)
        if setter is not None:
            setter(enabled)
        self._emit_snapshot()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: run control
    # ══════════════════════════════════════════════════════════════════

    def _pause(self) -> None:
        self._driver.stop()
        state = self._machine.state
        state.running = False
        self._machine.disarm()
        logger.info("Paused with %ds left", state.remaining_seconds)
        self.running_changed.emit(False)
        self._emit_snapshot()

    def _resume(self) -> None:
        self._cues.unlock_audio()

        state = self._machine.state
        if state.remaining_seconds <= 0:
            state = self._machine.reset()
            self.phase_changed.emit(state.phase)
            self.tick.emit(state.remaining_seconds)

        self._machine.arm(self._clock.now_ms())
        self._cues.rearm(state.remaining_seconds)
        state.running = True
        self._driver.start()
        self.running_changed.emit(True)
        self._emit_snapshot()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: driver
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        state = self._machine.state
        deadline = state.deadline_ms
        if not state.running or deadline is None:
            return

        now = self._clock.now_ms()
        remaining = remaining_seconds(deadline, now)
        changed = remaining != state.remaining_seconds
        if changed:
            state.remaining_seconds = remaining
            self._cues.on_second(remaining, state.phase, self.config)
            self.tick.emit(remaining)

        if now >= deadline:
            self._advance(now, deadline)
        elif changed:
            self._emit_snapshot()

    def _advance(self, now: float, deadline: float) -> None:
        phase = self._machine.advance(now, for_deadline=deadline)
        if phase is None:
            return

        state = self._machine.state
        self._cues.rearm(state.remaining_seconds)

        if phase == Phase.FINISHED:
            self._driver.stop()
            self._cues.play_pattern(FINISH)
            self.phase_changed.emit(phase)
            self.running_changed.emit(False)
            self.finished.emit()
        else:
            self._cues.play_pattern(PHASE_CHANGE)
            self.phase_changed.emit(phase)
            self.tick.emit(state.remaining_seconds)
        self._emit_snapshot()

    def _emit_snapshot(self) -> None:
        self.snapshot_changed.emit(self.get_snapshot())
