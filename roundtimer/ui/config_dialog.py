"""Configuration dialog for RoundTimer.

A modal dialog for editing the six timer parameters.  Nothing is saved
here: on accept the caller passes :meth:`ConfigDialog.raw_config` to
``RoundTimerEngine.apply_config``, which normalizes, persists and resets.
"""

from __future__ import annotations

from typing import Any

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QSpinBox, QPushButton, QWidget,
)

from ..settings import (
    TimerConfig, ROUNDS_RANGE, WORK_RANGE, REST_RANGE, PREP_RANGE,
    format_min_sec,
)


# One-click durations offered under each spin box (seconds).
QUICK_PICKS: dict[str, tuple[int, ...]] = {
    "prep_seconds": (5, 8, 10, 15, 20),
    "work_seconds": (60, 90, 120, 180, 240, 300),
    "rest_seconds": (20, 30, 45, 60, 90),
}


class ConfigDialog(QDialog):
    """Modal editor for a :class:`TimerConfig`."""

    def __init__(
        self,
        config: TimerConfig,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Timer settings")
        self.setMinimumWidth(380)
        self.setModal(True)

        self._config = config
        self._quick_picks: dict[str, list[QPushButton]] = {}

        self._build_ui()
        self._populate()

    # ══════════════════════════════════════════════════════════════════
    #  BUILD UI
    # ══════════════════════════════════════════════════════════════════

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(24, 20, 24, 20)
        root.setSpacing(16)

        title = QLabel("Rounds")
        title.setStyleSheet("font-size: 15px; font-weight: 700; margin-top: 4px;")
        root.addWidget(title)

        form = QFormLayout()
        form.setContentsMargins(0, 0, 0, 0)
        form.setHorizontalSpacing(20)
        form.setVerticalSpacing(10)

        self._rounds_spin = self._spin(*ROUNDS_RANGE)
        form.addRow("Rounds:", self._rounds_spin)

        self._work_spin = self._spin(*WORK_RANGE, suffix=" s")
        self._work_spin.valueChanged.connect(self._on_work_changed)
        form.addRow("Round length:", self._work_spin)
        form.addRow("", self._quick_pick_row("work_seconds", self._work_spin))

        self._rest_spin = self._spin(*REST_RANGE, suffix=" s")
        self._rest_spin.valueChanged.connect(self._on_rest_changed)
        form.addRow("Rest length:", self._rest_spin)
        form.addRow("", self._quick_pick_row("rest_seconds", self._rest_spin))

        self._prep_spin = self._spin(*PREP_RANGE, suffix=" s")
        form.addRow("Get ready:", self._prep_spin)
        form.addRow("", self._quick_pick_row("prep_seconds", self._prep_spin))

        self._end_warn_spin = self._spin(0, WORK_RANGE[1] - 1, suffix=" s")
        self._end_warn_spin.setSpecialValueText("Off")
        form.addRow("Round ending warning:", self._end_warn_spin)

        self._next_warn_spin = self._spin(0, REST_RANGE[1] - 1, suffix=" s")
        self._next_warn_spin.setSpecialValueText("Off")
        form.addRow("Next round warning:", self._next_warn_spin)

        root.addLayout(form)

        # ── buttons ──────────────────────────────────────────────────
        root.addStretch()
        btn_row = QHBoxLayout()
        btn_row.addStretch()
        cancel_btn = QPushButton("Cancel")
        cancel_btn.setObjectName("secondaryButton")
        cancel_btn.clicked.connect(self.reject)
        save_btn = QPushButton("Save")
        save_btn.setObjectName("primaryButton")
        save_btn.setDefault(True)
        save_btn.clicked.connect(self.accept)
        btn_row.addWidget(cancel_btn)
        btn_row.addWidget(save_btn)
        root.addLayout(btn_row)

    @staticmethod
    def _spin(low: int, high: int, *, suffix: str = "") -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(low, high)
        if suffix:
            spin.setSuffix(suffix)
        return spin

    def _quick_pick_row(self, field: str, spin: QSpinBox) -> QHBoxLayout:
        row = QHBoxLayout()
        row.setSpacing(6)
        buttons = []
        for seconds in QUICK_PICKS[field]:
            btn = QPushButton(format_min_sec(seconds))
            btn.setObjectName("chipButton")
            btn.clicked.connect(
                lambda _checked=False, s=seconds: spin.setValue(s)
            )
            row.addWidget(btn)
            buttons.append(btn)
        row.addStretch()
        self._quick_picks[field] = buttons
        return row

    # ══════════════════════════════════════════════════════════════════
    #  POPULATE / CHANGE HANDLERS
    # ══════════════════════════════════════════════════════════════════

    def _populate(self) -> None:
        c = self._config
        self._rounds_spin.setValue(c.rounds)
        self._work_spin.setValue(c.work_seconds)
        self._rest_spin.setValue(c.rest_seconds)
        self._prep_spin.setValue(c.prep_seconds)
        self._on_work_changed(c.work_seconds)
        self._on_rest_changed(c.rest_seconds)
        self._end_warn_spin.setValue(c.end_warning_seconds)
        self._next_warn_spin.setValue(c.next_round_warning_seconds)

    def _on_work_changed(self, value: int) -> None:
        # A warning must land inside the phase it warns about.
        self._end_warn_spin.setMaximum(value - 1)

    def _on_rest_changed(self, value: int) -> None:
        self._next_warn_spin.setMaximum(value - 1)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC
    # ══════════════════════════════════════════════════════════════════

    def quick_pick_buttons(self, field: str) -> list[QPushButton]:
        return list(self._quick_picks[field])

    def raw_config(self) -> dict[str, Any]:
        return {
            "rounds": self._rounds_spin.value(),
            "work_seconds": self._work_spin.value(),
            "rest_seconds": self._rest_spin.value(),
            "prep_seconds": self._prep_spin.value(),
            "end_warning_seconds": self._end_warn_spin.value(),
            "next_round_warning_seconds": self._next_warn_spin.value(),
        }
