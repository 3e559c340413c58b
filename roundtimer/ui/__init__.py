"""UI package."""

from .timer_widget import RoundTimerWidget, format_clock
from .config_dialog import ConfigDialog

__all__ = [
    "RoundTimerWidget",
    "format_clock",
    "ConfigDialog",
]
