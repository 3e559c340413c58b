"""Cue synthesis and playback using numpy + QSoundEffect.

All cues are generated programmatically as WAV files using sine-wave
synthesis with ADSR envelopes.  Files are cached to disk so subsequent
launches are instant.  Pitch-shifted variants (``playback_rate``) are
resampled from the base cue and cached next to it.

Cues
----
- ``countdown``: short high beep for the last three seconds
- ``roundWarning``: sharp knock, played twice before a round ends
- ``nextRoundWarning``: rising chirp, played twice before rest ends
- ``phaseChange``: boxing bell at every phase transition
- ``finish``: closing arpeggio when the workout is done

Every ``play`` call builds its own ``QSoundEffect`` voice, so repeated
cues overlap instead of cutting each other off.
"""

from __future__ import annotations

import io
import logging
import time
import wave
from enum import Enum
from pathlib import Path
from typing import Iterable

import numpy as np

from PyQt6.QtCore import QObject, QTimer, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..settings import APP_SUPPORT_DIR


logger = logging.getLogger(__name__)


# ── paths ────────────────────────────────────────────────────────────────

SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

SAMPLE_RATE = 44100

DEFAULT_VOLUME = 0.85
RATE_RANGE = (0.5, 2.0)

MAX_VOICES = 16
VOICE_GRACE_S = 0.5         # kept past the clip length before a forced release
WAV_HEADER_BYTES = 44


class Cue(Enum):
    COUNTDOWN = "countdown"
    ROUND_WARNING = "roundWarning"
    NEXT_ROUND_WARNING = "nextRoundWarning"
    PHASE_CHANGE = "phaseChange"
    FINISH = "finish"


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _make_envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    d_end = min(a + decay, length)
    if decay > 0 and d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    s_end = max(length - release, d_end)
    if s_end > d_end:
        env[d_end:s_end] = sustain_level
    if release > 0 and s_end < length:
        env[s_end:] = np.linspace(sustain_level, 0.0, length - s_end)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _silence(duration_s: float) -> np.ndarray:
    return np.zeros(int(SAMPLE_RATE * duration_s))


def _resample(samples: np.ndarray, rate: float) -> np.ndarray:
    """Play *samples* back *rate* times faster (and higher)."""
    if rate == 1.0 or len(samples) == 0:
        return samples
    n_out = max(1, int(len(samples) / rate))
    positions = np.arange(n_out) * rate
    return np.interp(positions, np.arange(len(samples)), samples)


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
#  CUE GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _synth_countdown() -> np.ndarray:
    """Final seconds: crisp 1kHz beep, 120ms."""
    tone = _sine(1000.0, 0.12) * 0.6
    env = _make_envelope(len(tone), attack=60, decay=400, sustain_level=0.6, release=1200)
    return np.concatenate([tone * env, _silence(0.04)])


def _synth_round_warning() -> np.ndarray:
    """Round ending: wooden knock (two partials, fast decay)."""
    duration = 0.09
    knock = _sine(660.0, duration) * 0.45 + _sine(1320.0, duration) * 0.12
    env = _make_envelope(len(knock), attack=30, decay=900, sustain_level=0.15, release=2000)
    return np.concatenate([knock * env, _silence(0.03)])


def _synth_next_round_warning() -> np.ndarray:
    """Next round: short rising chirp (A5→E6)."""
    notes = [880.0, 1318.51]
    parts: list[np.ndarray] = []
    for freq in notes:
        tone = _sine(freq, 0.07) * 0.45
        env = _make_envelope(len(tone), attack=40, decay=200, sustain_level=0.4, release=400)
        parts.append(tone * env)
        parts.append(_silence(0.015))
    return np.concatenate(parts)


def _synth_phase_change() -> np.ndarray:
    """Phase change: boxing bell, bright strike with a long ring."""
    duration = 1.2
    strike = (
        _sine(830.0, duration) * 0.35
        + _sine(1660.0, duration) * 0.12
        + _sine(2490.0, duration) * 0.05
    )
    env = _make_envelope(
        len(strike),
        attack=int(SAMPLE_RATE * 0.005),
        decay=int(SAMPLE_RATE * 0.25),
        sustain_level=0.3,
        release=int(SAMPLE_RATE * 0.8),
    )
    return strike * env


def _synth_finish() -> np.ndarray:
    """Workout complete: celebratory arpeggio (C5→E5→G5→C6)."""
    notes = [523.25, 659.25, 783.99, 1046.50]
    parts: list[np.ndarray] = []
    for i, freq in enumerate(notes):
        if i == len(notes) - 1:
            tone = _sine(freq, 0.45) * 0.5 + _sine(freq * 2, 0.45) * 0.08
            env = _make_envelope(len(tone), attack=80, decay=400, sustain_level=0.5, release=900)
            parts.append(tone * env)
        else:
            tone = _sine(freq, 0.11) * 0.5
            env = _make_envelope(len(tone), attack=60, decay=150, sustain_level=0.35, release=250)
            parts.append(tone * env)
            parts.append(_silence(0.02))
    return np.concatenate(parts)


_GENERATORS = {
    Cue.COUNTDOWN: _synth_countdown,
    Cue.ROUND_WARNING: _synth_round_warning,
    Cue.NEXT_ROUND_WARNING: _synth_next_round_warning,
    Cue.PHASE_CHANGE: _synth_phase_change,
    Cue.FINISH: _synth_finish,
}


def render_cue(cue: Cue, rate: float = 1.0) -> bytes:
    """WAV bytes for *cue* at the given playback rate."""
    return _to_wav_bytes(_resample(_GENERATORS[cue](), rate))


def cue_filename(cue: Cue, rate: float = 1.0) -> str:
    if rate == 1.0:
        return f"{cue.value}.wav"
    return f"{cue.value}@{rate:.2f}.wav"


def _clip_seconds(path: Path) -> float:
    """Length of a cached 16-bit mono cue, from its file size."""
    try:
        size = path.stat().st_size
    except OSError:
        return 0.0
    return max(0, size - WAV_HEADER_BYTES) / 2 / SAMPLE_RATE


# ═══════════════════════════════════════════════════════════════════════════
#  CUE PLAYER
# ═══════════════════════════════════════════════════════════════════════════


class CuePlayer(QObject):
    """Plays cues as independent, overlapping voices.

    Usage::

        player = CuePlayer(parent=self)
        player.unlock()
        player.play(Cue.ROUND_WARNING)
        player.play(Cue.ROUND_WARNING, delay_ms=170)

    Playback problems (missing asset, no audio device) are logged and
    ignored; sound never blocks the timer.
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__(parent)
        self._enabled = enabled
        self._unlocked = False
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        # voice → monotonic time after which it is released regardless
        self._voices: dict[QSoundEffect, float] = {}
        self._monotonic = time.monotonic

        self._ensure_wav_files()

    # ── public API ────────────────────────────────────────────────────

    def play(
        self,
        cue: Cue | str,
        *,
        delay_ms: int = 0,
        playback_rate: float = 1.0,
        volume: float | None = None,
    ) -> None:
        """Play *cue* now, or after *delay_ms* without blocking."""
        if not self._enabled:
            return
        try:
            cue = Cue(cue)
        except ValueError:
            logger.debug("Unknown cue %r", cue)
            return

        rate = round(max(RATE_RANGE[0], min(playback_rate, RATE_RANGE[1])), 2)
        level = DEFAULT_VOLUME if volume is None else max(0.0, min(volume, 1.0))

        if delay_ms > 0:
            QTimer.singleShot(
                int(delay_ms), lambda: self._start_voice(cue, rate, level),
            )
        else:
            self._start_voice(cue, rate, level)

    def unlock(self) -> bool:
        """Prime audio output with a silent cue.  Succeeds once per session."""
        if self._unlocked:
            return True
        if not self._enabled:
            return False
        voice = self._start_voice(Cue.COUNTDOWN, 1.0, 0.0)
        self._unlocked = voice is not None
        return self._unlocked

    def prepare(self, variants: Iterable[tuple[Cue, float]]) -> None:
        """Render the given (cue, rate) variants to the cache now."""
        for cue, rate in variants:
            rate = round(max(RATE_RANGE[0], min(rate, RATE_RANGE[1])), 2)
            self._source_for(Cue(cue), rate)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    @property
    def active_voices(self) -> tuple[QSoundEffect, ...]:
        return tuple(self._voices)

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_files(self) -> None:
        """Generate any missing base WAV files to the cache directory."""
        try:
            self._sounds_dir.mkdir(parents=True, exist_ok=True)
            for cue in Cue:
                path = self._sounds_dir / cue_filename(cue)
                if not path.exists():
                    path.write_bytes(render_cue(cue))
        except OSError as exc:
            logger.warning("Could not write cue files to %s: %s", self._sounds_dir, exc)

    def _source_for(self, cue: Cue, rate: float) -> Path | None:
        path = self._sounds_dir / cue_filename(cue, rate)
        if not path.exists():
            try:
                path.write_bytes(render_cue(cue, rate))
            except OSError as exc:
                logger.debug("Cue %s unavailable: %s", path.name, exc)
                return None
        return path

    def _new_voice(self) -> QSoundEffect:
        return QSoundEffect(self)

    def _start_voice(
        self, cue: Cue, rate: float, volume: float,
    ) -> QSoundEffect | None:
        source = self._source_for(cue, rate)
        if source is None:
            return None
        self._sweep()
        try:
            voice = self._new_voice()
            voice.setSource(QUrl.fromLocalFile(str(source)))
            voice.setVolume(volume)
            voice.playingChanged.connect(lambda: self._on_playing_changed(voice))
            voice.statusChanged.connect(lambda: self._on_status_changed(voice))
            self._voices[voice] = (
                self._monotonic() + _clip_seconds(source) + VOICE_GRACE_S
            )
            voice.play()
        except Exception:
            logger.debug("Playback of %s failed", cue.value, exc_info=True)
            return None
        return voice

    def _sweep(self) -> None:
        """Release voices whose backend never reported the end of playback."""
        now = self._monotonic()
        for voice, expires in list(self._voices.items()):
            if expires <= now:
                self._release(voice)
        while len(self._voices) >= MAX_VOICES:
            self._release(next(iter(self._voices)))

    def _on_playing_changed(self, voice: QSoundEffect) -> None:
        if not voice.isPlaying():
            self._release(voice)

    def _on_status_changed(self, voice: QSoundEffect) -> None:
        if voice.status() == QSoundEffect.Status.Error:
            logger.debug("Voice failed to load: %s", voice.source().toString())
            self._release(voice)

    def _release(self, voice: QSoundEffect) -> None:
        if voice in self._voices:
            del self._voices[voice]
            voice.deleteLater()
