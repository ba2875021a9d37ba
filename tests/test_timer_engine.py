import logging

from pourtimer.engine.clock import Ticker
from pourtimer.engine.cues import TONES, Cue
from pourtimer.engine.timer import Phase, TimerEngine
from pourtimer.models.step import Step

CUE_BY_TONE = {tone: cue for cue, tone in TONES.items()}


class RecordingEmitter:
    """Collects every tone request instead of playing it."""

    def __init__(self):
        self.calls = []

    def emit_tone(self, frequency_hz, duration_s, volume):
        self.calls.append((frequency_hz, duration_s, volume))

    @property
    def cues(self):
        return [CUE_BY_TONE[(f, d)] for f, d, _ in self.calls]


class BrokenEmitter:
    def emit_tone(self, frequency_hz, duration_s, volume):
        raise RuntimeError("no sound card")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _steps(*pairs):
    return [Step(name=f"s{i}", water=w, time=t) for i, (w, t) in enumerate(pairs)]


STEPS_B = _steps((30, 30), (90, 30), (120, 45))


def _engine(steps=STEPS_B, emitter=None, **kwargs):
    emitter = emitter or RecordingEmitter()
    clock = FakeClock()
    engine = TimerEngine(steps, emitter, ticker=Ticker(1.0, clock=clock), **kwargs)
    return engine, emitter, clock


def _ticks(engine, n):
    for _ in range(n):
        engine.tick()


def test_initial_state_waits_for_start():
    engine, emitter, _ = _engine()
    assert engine.phase == Phase.IDLE
    assert engine.elapsed_seconds == 0
    assert engine.countdown_seconds == 10
    assert engine.active_index == 0
    _ticks(engine, 3)
    assert engine.countdown_seconds == 10
    assert emitter.calls == []


def test_preparation_beeps_each_second_then_start_tone():
    engine, emitter, _ = _engine()
    engine.start()
    assert engine.phase == Phase.PREPARING
    assert engine.ticker.armed

    _ticks(engine, 9)
    assert engine.countdown_seconds == 1
    assert engine.phase == Phase.PREPARING
    _ticks(engine, 1)

    assert emitter.cues == [Cue.PRE] * 10 + [Cue.START]
    assert engine.phase == Phase.RUNNING
    assert engine.countdown_seconds == 0
    assert engine.elapsed_seconds == 0


def test_active_step_and_target_pour_mid_brew():
    engine, _, _ = _engine()
    engine.skip_preparation()
    _ticks(engine, 35)
    view = engine.view()
    assert view.active_index == 1
    assert view.target_pour == 120
    assert view.remaining_seconds == 25
    assert view.progress == 5 / 30
    assert view.active_step.name == "s1"


def test_finishes_when_schedule_is_exhausted():
    engine, emitter, _ = _engine()
    engine.skip_preparation()
    _ticks(engine, 105)
    assert engine.phase == Phase.FINISHED
    assert engine.active_index == 3
    assert not engine.ticker.armed
    assert emitter.cues[-1] == Cue.FINISH

    _ticks(engine, 5)
    assert engine.elapsed_seconds == 105
    view = engine.view()
    assert view.is_finished
    assert view.remaining_seconds == 0
    assert view.progress == 1.0
    assert view.target_pour == 240
    assert view.active_step is None


def test_full_cue_timeline():
    engine, emitter, _ = _engine()
    engine.skip_preparation()
    _ticks(engine, 105)
    pre10 = [Cue.PRE] * 10
    assert emitter.cues == [Cue.START] + pre10 + [Cue.STEP] + pre10 + [Cue.STEP] + pre10 + [Cue.FINISH]


def test_transition_tick_plays_step_tone_then_incoming_pre_cue():
    engine, emitter, _ = _engine(_steps((10, 5), (10, 3)))
    engine.skip_preparation()
    _ticks(engine, 8)
    assert emitter.cues == [
        Cue.START,
        Cue.PRE, Cue.PRE, Cue.PRE, Cue.PRE,
        Cue.STEP, Cue.PRE,
        Cue.PRE, Cue.PRE,
        Cue.FINISH,
    ]


def test_short_step_gets_a_pre_cue_for_every_second():
    engine, emitter, _ = _engine(_steps((10, 20), (10, 4), (10, 20)))
    engine.skip_preparation()
    _ticks(engine, 20)
    assert emitter.cues[-1] == Cue.PRE
    _ticks(engine, 4)
    # 4 s step: one pre-cue per second, the first on the transition tick
    assert emitter.cues[-6:] == [Cue.STEP, Cue.PRE, Cue.PRE, Cue.PRE, Cue.PRE, Cue.STEP]


def test_one_second_steps_still_get_transition_cues():
    engine, emitter, _ = _engine(_steps((10, 1), (10, 1)))
    engine.skip_preparation()
    _ticks(engine, 2)
    assert emitter.cues == [Cue.START, Cue.STEP, Cue.PRE, Cue.FINISH]


def test_zero_length_step_is_never_active_and_never_cued():
    engine, emitter, _ = _engine(_steps((30, 10), (20, 0), (40, 10)))
    engine.skip_preparation()
    seen = set()
    for _ in range(19):
        engine.tick()
        seen.add(engine.active_index)
    assert 1 not in seen
    assert emitter.cues.count(Cue.STEP) == 1
    assert engine.view().target_pour == 90


def test_idle_view_shows_first_timed_step():
    engine, _, _ = _engine(_steps((20, 0), (40, 10)))
    assert engine.active_index == 0
    view = engine.view()
    assert view.active_index == 1
    assert view.target_pour == 60
    engine.start()
    engine.reset()
    assert engine.view().active_step.water == 40


def test_zero_length_first_step_is_skipped_on_start():
    engine, _, _ = _engine(_steps((20, 0), (40, 10)))
    engine.skip_preparation()
    assert engine.active_index == 1


def test_empty_schedule_finishes_immediately():
    engine, emitter, _ = _engine([])
    engine.skip_preparation()
    assert engine.phase == Phase.FINISHED
    assert engine.active_index == 0
    assert emitter.cues == [Cue.START, Cue.FINISH]
    assert engine.view().progress == 1.0


def test_pause_keeps_counters_and_resumes_where_it_left_off():
    engine, _, _ = _engine()
    engine.start()
    _ticks(engine, 3)
    engine.pause()
    assert engine.phase == Phase.PAUSED
    assert not engine.ticker.armed
    _ticks(engine, 4)
    assert engine.countdown_seconds == 7

    engine.start()
    assert engine.phase == Phase.PREPARING
    _ticks(engine, 7)
    _ticks(engine, 12)
    engine.toggle()
    assert engine.phase == Phase.PAUSED
    assert engine.elapsed_seconds == 12
    engine.toggle()
    assert engine.phase == Phase.RUNNING
    engine.tick()
    assert engine.elapsed_seconds == 13


def test_skip_preparation_from_pause_and_noop_when_running():
    engine, emitter, _ = _engine()
    engine.start()
    _ticks(engine, 2)
    engine.pause()
    engine.skip_preparation()
    assert engine.phase == Phase.RUNNING
    assert engine.countdown_seconds == 0
    assert engine.ticker.armed
    starts = emitter.cues.count(Cue.START)
    engine.skip_preparation()
    assert emitter.cues.count(Cue.START) == starts == 1


def test_reset_is_idempotent_and_stops_ticking():
    engine, _, _ = _engine()
    engine.skip_preparation()
    _ticks(engine, 40)
    engine.reset()
    once = engine.view()
    engine.reset()
    assert engine.view() == once
    assert once.phase == Phase.IDLE
    assert once.elapsed_seconds == 0
    assert once.countdown_seconds == 10
    assert once.active_index == 0
    assert not engine.ticker.armed


def test_reset_from_finished_allows_a_new_brew():
    engine, emitter, _ = _engine(_steps((10, 2)), prep_seconds=0)
    engine.start()
    _ticks(engine, 2)
    assert engine.phase == Phase.FINISHED
    engine.reset()
    engine.start()
    assert engine.phase == Phase.RUNNING
    assert emitter.cues.count(Cue.START) == 2


def test_start_is_ignored_once_finished():
    engine, emitter, _ = _engine(_steps((10, 1)))
    engine.skip_preparation()
    engine.tick()
    calls = len(emitter.calls)
    engine.start()
    engine.toggle()
    assert engine.phase == Phase.FINISHED
    assert len(emitter.calls) == calls


def test_ticks_follow_the_clock():
    engine, _, clock = _engine()
    engine.start()
    clock.now = 3.5
    assert engine.run_due_ticks() == 3
    assert engine.countdown_seconds == 7
    engine.pause()
    clock.now = 10
    assert engine.run_due_ticks() == 0


def test_due_ticks_stop_at_finish():
    engine, _, clock = _engine(_steps((10, 2)), prep_seconds=0)
    engine.start()
    clock.now = 10
    assert engine.run_due_ticks() == 2
    assert engine.phase == Phase.FINISHED


def test_close_cancels_ticker():
    engine, _, _ = _engine()
    engine.start()
    engine.close()
    assert not engine.ticker.armed


def test_volume_is_clamped_and_passed_to_emitter():
    engine, emitter, _ = _engine(volume=0.4)
    engine.start()
    assert emitter.calls[-1][2] == 0.4
    engine.set_volume(1.7)
    assert engine.volume == 1.0
    engine.set_volume(-2)
    assert engine.volume == 0.0
    engine.tick()
    # muted cues are still requested; the emitter decides to stay quiet
    assert emitter.calls[-1][2] == 0.0


def test_toggle_mute_restores_previous_volume():
    engine, _, _ = _engine(volume=0.6)
    engine.toggle_mute()
    assert engine.volume == 0.0
    engine.toggle_mute()
    assert engine.volume == 0.6


def test_emitter_failures_never_reach_the_tick_loop(caplog):
    engine, _, _ = _engine(emitter=BrokenEmitter())
    with caplog.at_level(logging.ERROR, logger="pourtimer.engine.timer"):
        engine.start()
        _ticks(engine, 10)
    assert engine.phase == Phase.RUNNING
    assert "Tone output failed" in caplog.text


def test_preparation_progress():
    engine, _, _ = _engine()
    assert engine.view().progress == 0.0
    engine.start()
    _ticks(engine, 4)
    assert engine.view().progress == 0.4
    assert engine.view().in_preparation


def test_long_preparation_only_beeps_inside_cue_window():
    engine, emitter, _ = _engine(prep_seconds=15)
    engine.start()
    _ticks(engine, 15)
    assert emitter.cues == [Cue.PRE] * 10 + [Cue.START]
