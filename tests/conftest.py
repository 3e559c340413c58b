"""Shared pytest fixtures for RoundTimer tests."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from roundtimer.settings import MemoryStore
from roundtimer.timer.engine import RoundTimerEngine

from helpers import FakeClock, RecordingPlayer


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Never touch the real settings file or sound cache."""
    monkeypatch.setattr("roundtimer.settings.APP_SUPPORT_DIR", tmp_path)
    monkeypatch.setattr("roundtimer.settings.SETTINGS_PATH", tmp_path / "settings.json")
    monkeypatch.setattr("roundtimer.audio.sounds.SOUNDS_DIR", tmp_path / "sounds")
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def player():
    return RecordingPlayer()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(qapp, clock, player, store):
    """Fresh engine on the default config with a fake clock and player."""
    return RoundTimerEngine(parent=None, store=store, player=player, clock=clock)
