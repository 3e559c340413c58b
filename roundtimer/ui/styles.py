"""QSS stylesheet and phase colours for RoundTimer."""

from __future__ import annotations

from ..settings import TimerConfig
from ..timer.rounds import Phase

# ── phase colours (background of the timer card) ───────────────────────

PHASE_COLORS: dict[Phase, str] = {
    Phase.PREP:     "#F59E0B",   # amber
    Phase.WORK:     "#10B981",   # green
    Phase.REST:     "#3B82F6",   # blue
    Phase.FINISHED: "#4A4A5E",   # neutral dim
}

# Used while a warning threshold is active.
WARNING_COLORS: dict[Phase, str] = {
    Phase.WORK: "#DC2626",       # red: round ending
    Phase.REST: "#9333EA",       # purple: next round incoming
}

PALETTE: dict[str, str] = {
    "bg":           "#1A1A2E",
    "bg_secondary": "#232340",
    "accent":       "#CBA6F7",
    "accent2":      "#89B4FA",
    "text":         "#E2E2F0",
    "text_muted":   "#7A7A9A",
    "danger":       "#F38BA8",
    "border":       "#313154",
}


def phase_color(phase: Phase, remaining: int, config: TimerConfig) -> str:
    """Card colour for *phase*, switching to the warning colour near the end."""
    if phase == Phase.WORK and 0 < remaining <= config.end_warning_seconds:
        return WARNING_COLORS[Phase.WORK]
    if phase == Phase.REST and 0 < remaining <= config.next_round_warning_seconds:
        return WARNING_COLORS[Phase.REST]
    return PHASE_COLORS[phase]


def build_stylesheet(palette: dict[str, str] | None = None) -> str:
    p = palette or PALETTE
    return f"""
    QWidget {{
        background-color: {p['bg']};
        color: {p['text']};
        font-family: "Helvetica Neue", Arial;
        font-size: 14px;
    }}

    QPushButton {{
        background-color: {p['bg_secondary']};
        color: {p['text']};
        border: 1px solid {p['border']};
        border-radius: 10px;
        padding: 10px 24px;
        font-weight: 600;
    }}

    QPushButton:hover {{
        border-color: {p['accent']};
    }}

    QPushButton#primaryButton {{
        background-color: {p['accent']};
        color: {p['bg']};
        border: none;
        font-size: 17px;
        padding: 14px 40px;
        border-radius: 12px;
        font-weight: 700;
    }}

    QPushButton#primaryButton:hover {{
        background-color: {p['accent2']};
    }}

    QPushButton#dangerButton {{
        background-color: transparent;
        color: {p['danger']};
        font-size: 13px;
        padding: 8px 16px;
        border-radius: 8px;
    }}

    QPushButton#presetButton {{
        font-size: 12px;
        padding: 6px 12px;
        border-radius: 8px;
        color: {p['text_muted']};
    }}

    QPushButton#chipButton {{
        font-size: 12px;
        padding: 4px 10px;
        border-radius: 12px;
    }}

    QProgressBar {{
        background-color: rgba(0, 0, 0, 0.25);
        border: none;
        border-radius: 4px;
        max-height: 8px;
    }}

    QProgressBar::chunk {{
        background-color: white;
        border-radius: 4px;
    }}
    """
