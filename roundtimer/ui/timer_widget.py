"""Main timer display widget.

Layout (top → bottom):
    - Phase label and round counter
    - MM:SS countdown (large, centred)
    - Phase progress bar
    - Start/Pause, Reset and sound toggle
    - One button per preset
"""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QProgressBar,
)

from ..settings import PRESETS
from ..timer.engine import RoundTimerEngine, TimerSnapshot
from ..timer.rounds import Phase
from .styles import phase_color


PHASE_LABELS: dict[Phase, str] = {
    Phase.PREP:     "GET READY",
    Phase.WORK:     "ROUND",
    Phase.REST:     "REST",
    Phase.FINISHED: "DONE",
}


def format_clock(seconds: int) -> str:
    """``75`` → ``"01:15"``."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class RoundTimerWidget(QWidget):
    """Timer card driven entirely by engine snapshots."""

    def __init__(
        self, engine: RoundTimerEngine, parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._build_ui()
        self._connect_signals()
        self.refresh(engine.get_snapshot())

    # ── build ─────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        self._card = QFrame(self)
        self._card.setObjectName("card")
        root.addWidget(self._card)

        layout = QVBoxLayout(self._card)
        layout.setContentsMargins(32, 24, 32, 28)
        layout.setSpacing(12)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._phase_label = QLabel(self._card)
        self._phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._phase_label.setStyleSheet(
            "font-size: 22px; font-weight: 800; letter-spacing: 4px; background: transparent;"
        )
        layout.addWidget(self._phase_label)

        self._round_label = QLabel(self._card)
        self._round_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._round_label.setStyleSheet("font-size: 15px; background: transparent;")
        layout.addWidget(self._round_label)

        self._time_label = QLabel(self._card)
        self._time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._time_label.setStyleSheet(
            "font-size: 120px; font-weight: 800; background: transparent;"
        )
        layout.addWidget(self._time_label)

        self._progress = QProgressBar(self._card)
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        layout.addWidget(self._progress)

        # ── main controls ────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(12)
        btn_row.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._reset_btn = QPushButton("Reset", self._card)
        self._reset_btn.setObjectName("dangerButton")

        self._start_pause_btn = QPushButton("Start", self._card)
        self._start_pause_btn.setObjectName("primaryButton")

        self._sound_btn = QPushButton(self._card)
        self._sound_btn.setCheckable(True)

        btn_row.addWidget(self._reset_btn)
        btn_row.addWidget(self._start_pause_btn)
        btn_row.addWidget(self._sound_btn)
        layout.addLayout(btn_row)

        # ── presets ──────────────────────────────────────────────────
        preset_row = QHBoxLayout()
        preset_row.setSpacing(8)
        preset_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._preset_buttons: dict[str, QPushButton] = {}
        for preset in PRESETS:
            btn = QPushButton(f"{preset.name}\n{preset.description}", self._card)
            btn.setObjectName("presetButton")
            btn.clicked.connect(
                lambda _checked=False, pid=preset.id: self._engine.apply_preset(pid)
            )
            self._preset_buttons[preset.id] = btn
            preset_row.addWidget(btn)
        layout.addLayout(preset_row)

    # ── signals ───────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        self._start_pause_btn.clicked.connect(self._engine.toggle_run)
        self._reset_btn.clicked.connect(lambda: self._engine.reset())
        self._sound_btn.toggled.connect(self._engine.set_sound_enabled)
        self._engine.subscribe(self.refresh)

    # ── slots ─────────────────────────────────────────────────────────────

    def refresh(self, snap: TimerSnapshot) -> None:
        self._phase_label.setText(PHASE_LABELS[snap.phase])
        if snap.phase in (Phase.WORK, Phase.REST):
            self._round_label.setText(f"Round {snap.round} of {snap.rounds}")
        else:
            self._round_label.setText(f"{snap.rounds} rounds")

        self._time_label.setText(format_clock(snap.remaining_seconds))
        self._progress.setValue(int(snap.progress * 1000))

        self._start_pause_btn.setText("Pause" if snap.running else "Start")

        sound_on = self._engine.sound_enabled
        self._sound_btn.blockSignals(True)
        self._sound_btn.setChecked(sound_on)
        self._sound_btn.blockSignals(False)
        self._sound_btn.setText("Sound on" if sound_on else "Sound off")

        color = phase_color(snap.phase, snap.remaining_seconds, self._engine.config)
        self._card.setStyleSheet(
            f"QFrame#card {{ background-color: {color}; border-radius: 24px; }}"
        )

    # ── read-only accessors (tests, shortcuts) ────────────────────────────

    @property
    def time_text(self) -> str:
        return self._time_label.text()

    @property
    def phase_text(self) -> str:
        return self._phase_label.text()

    @property
    def round_text(self) -> str:
        return self._round_label.text()

    @property
    def start_pause_text(self) -> str:
        return self._start_pause_btn.text()

    def preset_button(self, preset_id: str) -> QPushButton:
        return self._preset_buttons[preset_id]
