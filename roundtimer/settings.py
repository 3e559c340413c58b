"""Timer configuration with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/RoundTimer/settings.json

Every write path goes through :func:`normalize`, which clamps each field
into its valid range and never raises.  A corrupted or stale file simply
falls back to the defaults.

Usage::

    store = JsonFileStore()
    config = load_config(store)
    config = normalize({**asdict(config), "rounds": 5})
    persist_config(store, config)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Protocol


logger = logging.getLogger(__name__)

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "RoundTimer"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"

CONFIG_KEY = "timer-config-v2"


# ── bounds ────────────────────────────────────────────────────────────────

ROUNDS_RANGE = (1, 20)
WORK_RANGE = (10, 900)       # seconds
REST_RANGE = (10, 600)
PREP_RANGE = (3, 180)


# ── config ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerConfig:
    """One complete, already-clamped set of timer parameters."""

    rounds: int = 3
    work_seconds: int = 180
    rest_seconds: int = 60
    prep_seconds: int = 10
    end_warning_seconds: int = 10          # before the end of Work
    next_round_warning_seconds: int = 10   # before the end of Rest


DEFAULT_CONFIG = TimerConfig()


def clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def _coerce_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def normalize(raw: Mapping[str, Any] | TimerConfig | None) -> TimerConfig:
    """Build a valid :class:`TimerConfig` from anything.

    Missing or unusable fields take their default, then every field is
    clamped.  The warning thresholds are clamped last because their
    upper bound depends on the resolved work/rest durations.
    """
    if isinstance(raw, TimerConfig):
        raw = asdict(raw)
    if not isinstance(raw, Mapping):
        raw = {}

    def pick(name: str) -> int:
        default = getattr(DEFAULT_CONFIG, name)
        return _coerce_int(raw.get(name), default)

    rounds = clamp(pick("rounds"), *ROUNDS_RANGE)
    work = clamp(pick("work_seconds"), *WORK_RANGE)
    rest = clamp(pick("rest_seconds"), *REST_RANGE)
    prep = clamp(pick("prep_seconds"), *PREP_RANGE)

    return TimerConfig(
        rounds=rounds,
        work_seconds=work,
        rest_seconds=rest,
        prep_seconds=prep,
        end_warning_seconds=clamp(pick("end_warning_seconds"), 0, work - 1),
        next_round_warning_seconds=clamp(
            pick("next_round_warning_seconds"), 0, rest - 1,
        ),
    )


# ── presets ───────────────────────────────────────────────────────────────


def format_min_sec(seconds: int) -> str:
    """``125`` → ``"2:05"``."""
    m, s = divmod(max(0, seconds), 60)
    return f"{m}:{s:02d}"


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    config: TimerConfig

    @property
    def description(self) -> str:
        c = self.config
        return (
            f"{c.rounds} x {format_min_sec(c.work_seconds)}"
            f" / {format_min_sec(c.rest_seconds)}"
        )


PRESETS: tuple[Preset, ...] = (
    Preset("boxing-classic", "Boxing classic", TimerConfig(
        rounds=3, work_seconds=180, rest_seconds=60, prep_seconds=10,
        end_warning_seconds=10, next_round_warning_seconds=10,
    )),
    Preset("short-sparring", "Short sparring", TimerConfig(
        rounds=5, work_seconds=120, rest_seconds=60, prep_seconds=10,
        end_warning_seconds=10, next_round_warning_seconds=10,
    )),
    Preset("conditioning", "Conditioning", TimerConfig(
        rounds=8, work_seconds=60, rest_seconds=30, prep_seconds=8,
        end_warning_seconds=8, next_round_warning_seconds=10,
    )),
    Preset("tabata", "Tabata", TimerConfig(
        rounds=8, work_seconds=20, rest_seconds=10, prep_seconds=5,
        end_warning_seconds=3, next_round_warning_seconds=3,
    )),
)


def get_preset(preset_id: str) -> Preset | None:
    for preset in PRESETS:
        if preset.id == preset_id:
            return preset
    return None


# ── stores ────────────────────────────────────────────────────────────────


class SettingsStore(Protocol):
    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...


class MemoryStore:
    """In-process store (tests, headless runs)."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})

    def save(self, key: str, value: Any) -> None:
        self.data[key] = value

    def load(self, key: str) -> Any | None:
        return self.data.get(key)


class JsonFileStore:
    """All keys in a single JSON object on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        try:
            if self._path.exists():
                data = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    return data
                logger.warning("Ignoring non-object settings file %s", self._path)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read settings from %s: %s", self._path, exc)
        return {}

    def load(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(data, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Could not save settings to %s: %s", self._path, exc)


def load_config(store: SettingsStore) -> TimerConfig:
    """Load the saved config, falling back to :data:`DEFAULT_CONFIG`."""
    try:
        raw = store.load(CONFIG_KEY)
    except Exception:
        logger.warning("Settings store failed on load; using defaults", exc_info=True)
        raw = None
    return normalize(raw)


def persist_config(store: SettingsStore, config: TimerConfig) -> None:
    """Write *config* to the store.  Failures are logged, never raised."""
    try:
        store.save(CONFIG_KEY, asdict(config))
    except Exception:
        logger.warning("Settings store failed on save", exc_info=True)

