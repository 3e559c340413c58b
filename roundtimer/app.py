"""Main application window for RoundTimer."""

from __future__ import annotations

from PyQt6.QtCore import QEvent, Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QDialog

from .audio.sounds import CuePlayer
from .settings import JsonFileStore
from .timer.engine import RoundTimerEngine
from .timer.rounds import Phase
from .ui.config_dialog import ConfigDialog
from .ui.styles import build_stylesheet
from .ui.timer_widget import RoundTimerWidget


class RoundTimerApp(QMainWindow):
    """Main application window."""

    def __init__(
        self,
        *,
        engine: RoundTimerEngine | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("RoundTimer")
        self.setMinimumSize(560, 640)

        # ── engine ────────────────────────────────────────────────────
        if engine is None:
            engine = RoundTimerEngine(
                self,
                store=JsonFileStore(),
                player=CuePlayer(self),
            )
        self._engine = engine

        # ── layout ────────────────────────────────────────────────────
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(20, 20, 20, 20)
        self._timer_widget = RoundTimerWidget(self._engine, central)
        layout.addWidget(self._timer_widget)
        self.setCentralWidget(central)
        self.setStyleSheet(build_stylesheet())

        self._build_menu_bar()

    @property
    def engine(self) -> RoundTimerEngine:
        return self._engine

    @property
    def timer_widget(self) -> RoundTimerWidget:
        return self._timer_widget

    # ══════════════════════════════════════════════════════════════════
    #  MENU
    # ══════════════════════════════════════════════════════════════════

    def _build_menu_bar(self) -> None:
        menu_bar = self.menuBar()

        prefs_action = QAction("Preferences…", self)
        prefs_action.setMenuRole(QAction.MenuRole.PreferencesRole)
        prefs_action.setShortcut(QKeySequence("Ctrl+,"))
        prefs_action.triggered.connect(self._open_config)

        quit_action = QAction("Quit RoundTimer", self)
        quit_action.setMenuRole(QAction.MenuRole.QuitRole)
        quit_action.setShortcut(QKeySequence("Ctrl+Q"))
        quit_action.triggered.connect(self.close)

        app_menu = menu_bar.addMenu("RoundTimer")
        app_menu.addAction(prefs_action)
        app_menu.addSeparator()
        app_menu.addAction(quit_action)

        self._fullscreen_action = QAction("Enter Full Screen", self)
        self._fullscreen_action.setShortcuts([
            QKeySequence("Ctrl+Meta+F"), QKeySequence("F11"),
        ])
        self._fullscreen_action.triggered.connect(self.toggle_fullscreen)

        view_menu = menu_bar.addMenu("View")
        view_menu.addAction(self._fullscreen_action)

    def toggle_fullscreen(self) -> None:
        """Fill the screen with the timer, or go back to a normal window."""
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()
        self._sync_fullscreen_action()

    def _sync_fullscreen_action(self) -> None:
        self._fullscreen_action.setText(
            "Exit Full Screen" if self.isFullScreen() else "Enter Full Screen"
        )

    def _open_config(self) -> None:
        """Edit the config; saving applies it and resets the run."""
        dlg = ConfigDialog(self._engine.config, parent=self)
        if dlg.exec() == QDialog.DialogCode.Accepted:
            self._engine.apply_config(dlg.raw_config())

    # ══════════════════════════════════════════════════════════════════
    #  KEYBOARD SHORTCUTS
    # ══════════════════════════════════════════════════════════════════

    def _on_space(self) -> None:
        """Start, pause, or resume the timer."""
        self._engine.toggle_run()

    def _on_escape(self) -> None:
        """Reset the timer (no-op when already at a fresh PREP)."""
        snap = self._engine.get_snapshot()
        fresh = (
            snap.phase == Phase.PREP
            and not snap.running
            and snap.remaining_seconds == self._engine.config.prep_seconds
        )
        if not fresh:
            self._engine.reset()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        """Handle Space (start/pause) and Escape (reset) globally."""
        key = event.key()
        if key == Qt.Key.Key_Space and not event.modifiers():
            self._on_space()
            event.accept()
            return
        if key == Qt.Key.Key_Escape:
            self._on_escape()
            event.accept()
            return
        super().keyPressEvent(event)

    def changeEvent(self, event) -> None:  # type: ignore[override]
        # Full screen can also be left through the window manager.
        if event.type() == QEvent.Type.WindowStateChange:
            self._sync_fullscreen_action()
        super().changeEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._engine.pause()
        event.accept()
