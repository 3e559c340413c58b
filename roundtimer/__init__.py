"""RoundTimer: interval timer for boxing and HIIT rounds."""

__version__ = "0.1.0"
