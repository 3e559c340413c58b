"""Comprehensive tests for the RoundTimer engine.

Covers: start/pause/resume, deadline-based ticking, drift and sleep
immunity, phase transitions and their cues, finishing, reset, applying
configs and presets, snapshots and subscriptions.
"""

import pytest

from roundtimer.settings import CONFIG_KEY, DEFAULT_CONFIG, TimerConfig, get_preset
from roundtimer.timer.engine import RoundTimerEngine, TICK_INTERVAL_MS
from roundtimer.timer.rounds import Phase

from helpers import SignalCollector, RecordingPlayer, run_for, finish_phase


SHORT = TimerConfig(
    rounds=2, work_seconds=20, rest_seconds=10, prep_seconds=5,
    end_warning_seconds=10, next_round_warning_seconds=5,
)


@pytest.fixture
def short(qapp, clock, player, store):
    return RoundTimerEngine(
        parent=None, config=SHORT, store=store, player=player, clock=clock,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  INITIAL STATE
# ═══════════════════════════════════════════════════════════════════════════


class TestInitialState:

    def test_defaults_to_stored_baseline(self, engine):
        assert engine.config == DEFAULT_CONFIG
        assert engine.phase == Phase.PREP
        assert engine.remaining == DEFAULT_CONFIG.prep_seconds
        assert engine.is_running is False

    def test_loads_config_from_store(self, qapp, clock, player, store):
        store.save(CONFIG_KEY, {"rounds": 6, "prep_seconds": 15})
        eng = RoundTimerEngine(store=store, player=player, clock=clock)
        assert eng.config.rounds == 6
        assert eng.remaining == 15

    def test_corrupt_store_falls_back(self, qapp, clock, player, store):
        store.save(CONFIG_KEY, "garbage")
        eng = RoundTimerEngine(store=store, player=player, clock=clock)
        assert eng.config == DEFAULT_CONFIG

    def test_driver_interval(self, engine):
        assert engine._driver.interval() == TICK_INTERVAL_MS
        assert not engine._driver.isActive()


# ═══════════════════════════════════════════════════════════════════════════
#  START / PAUSE / RESUME
# ═══════════════════════════════════════════════════════════════════════════


class TestRunControl:

    def test_toggle_starts(self, short, clock):
        short.toggle_run()
        assert short.is_running
        assert short.state.deadline_ms == clock.ms + 5000
        assert short._driver.isActive()

    def test_toggle_pauses(self, short):
        short.toggle_run()
        short.toggle_run()
        assert not short.is_running
        assert short.state.deadline_ms is None
        assert not short._driver.isActive()

    def test_start_unlocks_audio(self, short, player):
        short.start()
        assert player.unlock_calls == 1

    def test_start_and_pause_are_idempotent(self, short):
        c = SignalCollector()
        short.running_changed.connect(c)
        short.start()
        short.start()
        short.pause()
        short.pause()
        assert c.items == [True, False]

    def test_pause_resume_exactness(self, short, clock):
        short.apply_config({**SHORT.__dict__, "work_seconds": 60})
        short.start()
        finish_phase(short, clock)         # into WORK(1), 60 s
        run_for(short, clock, 13)
        assert short.remaining == 47

        short.pause()
        clock.advance(600)                 # ten minutes away
        short._on_tick()                   # stray tick while paused
        assert short.remaining == 47

        short.toggle_run()
        assert short.state.deadline_ms == clock.ms + 47_000
        short._on_tick()
        assert short.remaining == 47

    def test_ticks_while_paused_do_nothing(self, short, player):
        short._on_tick()
        assert player.calls == []
        assert short.phase == Phase.PREP

    def test_resume_after_finish_restarts_from_prep(self, short, clock):
        short.start()
        for _ in range(4):
            finish_phase(short, clock)
        assert short.phase == Phase.FINISHED

        short.toggle_run()
        assert short.phase == Phase.PREP
        assert short.remaining == SHORT.prep_seconds
        assert short.is_running


# ═══════════════════════════════════════════════════════════════════════════
#  TICKING
# ═══════════════════════════════════════════════════════════════════════════


class TestTicking:

    def test_tick_signal_once_per_second(self, short, clock):
        c = SignalCollector()
        short.tick.connect(c)
        short.start()
        run_for(short, clock, 3)
        assert c.items == [4, 3, 2]

    def test_remaining_from_deadline_not_tick_count(self, short, clock):
        short.start()
        # A single very late callback.
        clock.advance(3.2)
        short._on_tick()
        assert short.remaining == 2

    def test_percent_complete(self, short, clock):
        short.start()
        finish_phase(short, clock)          # WORK, 20 s
        run_for(short, clock, 10)
        assert short.percent_complete == pytest.approx(0.5)


# ═══════════════════════════════════════════════════════════════════════════
#  DRIFT / SLEEP
# ═══════════════════════════════════════════════════════════════════════════


class TestDriftImmunity:

    def test_coalesced_late_ticks_advance_once(self, short, clock):
        c = SignalCollector()
        short.phase_changed.connect(c)
        short.start()

        clock.advance(5.75)                 # deadline passed while delayed
        for _ in range(5):                  # queued ticks delivered together
            short._on_tick()

        assert c.items == [Phase.WORK]
        assert short.phase == Phase.WORK
        assert short.current_round == 1
        assert short.remaining == SHORT.work_seconds

    def test_remaining_never_negative(self, short, clock):
        c = SignalCollector()
        short.tick.connect(c)
        short.start()
        clock.advance(4.999)
        short._on_tick()
        clock.advance(30)                   # device slept
        short._on_tick()
        assert min(c.items) >= 0

    def test_suspension_advances_immediately_on_wake(self, short, clock):
        short.start()
        finish_phase(short, clock)          # WORK(1)
        clock.advance(3600)                 # suspended for an hour
        short._on_tick()
        assert short.phase == Phase.REST    # exactly one step, not a cascade


# ═══════════════════════════════════════════════════════════════════════════
#  TRANSITIONS & CUES
# ═══════════════════════════════════════════════════════════════════════════


class TestTransitions:

    def test_full_sequence(self, short, clock):
        c = SignalCollector()
        short.phase_changed.connect(c)
        short.start()
        for _ in range(10):
            if short.phase == Phase.FINISHED:
                break
            finish_phase(short, clock)
        assert c.items == [
            Phase.WORK, Phase.REST, Phase.WORK, Phase.FINISHED,
        ]

    def test_phase_change_cue_once_per_transition(self, short, clock, player):
        short.start()
        player.clear()
        finish_phase(short, clock)
        finish_phase(short, clock)
        assert player.cues().count("phaseChange") == 2

    def test_finish(self, short, clock, player):
        done = SignalCollector()
        running = SignalCollector()
        short.finished.connect(done)
        short.running_changed.connect(running)
        short.start()
        for _ in range(4):
            finish_phase(short, clock)

        assert len(done) == 1
        assert running.last is False
        assert short.phase == Phase.FINISHED
        assert short.remaining == 0
        assert short.state.deadline_ms is None
        assert not short.is_running
        assert not short._driver.isActive()
        assert player.cues()[-2:] == ["finish", "finish"]
        assert "phaseChange" not in player.cues()[-2:]

    def test_round_ending_and_countdown_cues(self, short, clock, player):
        short.start()
        finish_phase(short, clock)          # WORK(1), 20 s, warn at 10
        player.clear()
        run_for(short, clock, 20)

        cues = player.cues()
        assert cues.count("roundWarning") == 2       # one double-knock
        assert cues.count("countdown") == 3          # 3, 2, 1
        assert cues[-1] == "phaseChange"
        assert short.phase == Phase.REST

    def test_next_round_cue_in_rest(self, short, clock, player):
        short.start()
        finish_phase(short, clock)          # WORK(1)
        finish_phase(short, clock)          # REST, 10 s, warn at 5
        player.clear()
        run_for(short, clock, 6)
        assert player.cues().count("nextRoundWarning") == 2

    def test_prep_gets_final_countdown(self, short, clock, player):
        short.start()
        run_for(short, clock, 5)
        assert player.cues()[:3] == ["countdown", "countdown", "countdown"]
        assert player.cues()[3] == "phaseChange"

    def test_no_duplicate_cues_at_100ms(self, short, clock, player):
        short.start()
        finish_phase(short, clock)
        player.clear()
        run_for(short, clock, 17.5, step=0.05)      # into the last 3 s
        assert player.cues().count("countdown") == 1


# ═══════════════════════════════════════════════════════════════════════════
#  RESET / APPLY
# ═══════════════════════════════════════════════════════════════════════════


class TestResetAndApply:

    def test_reset_stops_and_returns_to_prep(self, short, clock):
        short.start()
        finish_phase(short, clock)
        short.reset()
        assert short.phase == Phase.PREP
        assert short.remaining == SHORT.prep_seconds
        assert not short.is_running
        assert not short._driver.isActive()

    def test_apply_config_normalizes_persists_resets(self, short, clock, store):
        short.start()
        finish_phase(short, clock)
        cfg = short.apply_config({"rounds": 50, "work_seconds": 30, "prep_seconds": 1})
        assert cfg.rounds == 20
        assert cfg.prep_seconds == 3
        assert short.config == cfg
        assert store.load(CONFIG_KEY)["rounds"] == 20
        assert short.phase == Phase.PREP
        assert short.remaining == 3
        assert not short.is_running

    def test_apply_config_emits_config_changed(self, short):
        c = SignalCollector()
        short.config_changed.connect(c)
        short.apply_config({"rounds": 4})
        assert c.last.rounds == 4

    def test_apply_config_never_raises(self, short):
        short.apply_config(None)
        short.apply_config("nonsense")
        short.apply_config({"rounds": object()})
        assert short.config == DEFAULT_CONFIG

    def test_running_phase_not_resized(self, short, clock):
        short.start()
        finish_phase(short, clock)          # WORK(1), 20 s
        run_for(short, clock, 5)
        assert short.phase_duration == 20
        short.apply_config({**SHORT.__dict__, "work_seconds": 300})
        # The run was reset rather than stretched.
        assert short.phase == Phase.PREP
        assert short.phase_duration == SHORT.prep_seconds

    def test_tabata_preset_mid_rest(self, short, clock, store):
        short.start()
        finish_phase(short, clock)
        finish_phase(short, clock)
        assert short.phase == Phase.REST

        short.apply_preset(get_preset("tabata"))
        assert short.phase == Phase.PREP
        assert short.remaining == 5
        assert not short.is_running
        assert store.load(CONFIG_KEY)["rounds"] == 8

    def test_apply_preset_by_id(self, short):
        cfg = short.apply_preset("conditioning")
        assert cfg.rounds == 8
        assert short.config.work_seconds == 60

    def test_unknown_preset_ignored(self, short):
        assert short.apply_preset("does-not-exist") is None
        assert short.config == SHORT

    def test_tabata_full_run(self, qapp, clock, player, store):
        eng = RoundTimerEngine(
            config=get_preset("tabata").config,
            store=store, player=player, clock=clock,
        )
        phases = SignalCollector()
        eng.phase_changed.connect(phases)
        eng.start()
        run_for(eng, clock, 5 + 8 * 20 + 7 * 10 + 1)
        assert phases.items.count(Phase.WORK) == 8
        assert phases.items.count(Phase.REST) == 7
        assert phases.items[-1] == Phase.FINISHED
        assert phases.items[-2] == Phase.WORK


# ═══════════════════════════════════════════════════════════════════════════
#  SNAPSHOT / SUBSCRIPTION / SOUND
# ═══════════════════════════════════════════════════════════════════════════


class TestSnapshot:

    def test_snapshot_fields(self, short, clock):
        short.start()
        finish_phase(short, clock)
        snap = short.get_snapshot()
        assert snap.phase == Phase.WORK
        assert snap.round == 1
        assert snap.rounds == 2
        assert snap.remaining_seconds == 20
        assert snap.phase_duration_seconds == 20
        assert snap.running is True
        assert snap.progress == 0.0

    def test_snapshot_is_frozen(self, short):
        snap = short.get_snapshot()
        with pytest.raises(AttributeError):
            snap.remaining_seconds = 1

    def test_subscribe_and_unsubscribe(self, short, clock):
        seen = []
        unsubscribe = short.subscribe(seen.append)
        short.start()
        run_for(short, clock, 1)
        assert seen[0].running is True
        assert seen[-1].remaining_seconds == 4

        count = len(seen)
        unsubscribe()
        unsubscribe()                       # second call is harmless
        run_for(short, clock, 1)
        assert len(seen) == count

    def test_sound_toggle(self, short, player):
        assert short.sound_enabled is True
        short.set_sound_enabled(False)
        assert player.enabled is False
        assert short.sound_enabled is False

    def test_without_player(self, qapp, clock, store):
        eng = RoundTimerEngine(config=SHORT, store=store, clock=clock)
        eng.start()
        finish_phase(eng, clock)
        assert eng.phase == Phase.WORK
        assert eng.sound_enabled is False

    def test_failing_player_does_not_break_timer(self, qapp, clock, store):
        eng = RoundTimerEngine(
            config=SHORT, store=store, clock=clock,
            player=RecordingPlayer(fail=True),
        )
        eng.start()
        run_for(eng, clock, 6)
        assert eng.phase == Phase.WORK
