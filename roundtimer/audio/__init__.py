"""Audio package."""

from .sounds import Cue, CuePlayer

__all__ = ["Cue", "CuePlayer"]
