import io

from rich.console import Console

from pourtimer.engine.clock import Ticker
from pourtimer.engine.timer import Phase, TimerEngine
from pourtimer.models.schedule import Schedule
from pourtimer.models.step import Step
from pourtimer.settings import Settings
from pourtimer.tui import timer_view
from pourtimer.tui.render import format_mmss, render_schedule, render_timer


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class ScriptedKeys:
    """Stands in for KeyReader: each read lets `timeout` pass on the fake clock."""

    def __init__(self, clock, keys, interactive=True):
        self.clock = clock
        self.keys = list(keys)
        self.interactive = interactive

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        pass

    def read(self, timeout):
        self.clock.now += 0.5 if timeout is None else timeout
        if not self.interactive:
            return None
        return self.keys.pop(0) if self.keys else "q"


class WarmEmitter:
    def __init__(self):
        self.warmed = 0
        self.tones = []

    def warm_up(self):
        self.warmed += 1

    def emit_tone(self, frequency_hz, duration_s, volume):
        self.tones.append(frequency_hz)


def _console():
    out = io.StringIO()
    return Console(file=out, width=100), out


def _engine(steps, emitter, clock, prep=10):
    return TimerEngine(steps, emitter, ticker=Ticker(1.0, clock=clock), prep_seconds=prep)


def test_keys_drive_the_engine_and_leaving_stops_ticks():
    clock = FakeClock()
    emitter = WarmEmitter()
    engine = _engine(Schedule().snapshot(), emitter, clock)
    console, out = _console()

    keys = ScriptedKeys(clock, [" ", "s", None, None, None, "q"])
    timer_view.run_timer(engine, console, emitter=emitter, keys=keys)

    assert emitter.warmed == 1
    assert engine.phase == Phase.RUNNING
    assert engine.elapsed_seconds == 4
    assert not engine.ticker.armed
    assert "Pour-over timer" in out.getvalue()


def test_without_keyboard_the_timer_runs_to_the_end():
    clock = FakeClock()
    emitter = WarmEmitter()
    engine = _engine([Step(name="Only", water=50, time=2)], emitter, clock, prep=0)
    console, out = _console()

    timer_view.run_timer(engine, console, emitter=emitter, keys=ScriptedKeys(clock, [], interactive=False))

    assert engine.phase == Phase.FINISHED
    assert emitter.warmed == 1
    assert "Brew complete" in out.getvalue()


def test_handle_key_volume_mute_and_reset():
    clock = FakeClock()
    engine = _engine(Schedule().snapshot(), WarmEmitter(), clock)
    engine.set_volume(0.5)
    assert timer_view.handle_key(engine, "+")
    assert engine.volume == 0.6
    timer_view.handle_key(engine, "m")
    assert engine.volume == 0.0
    timer_view.handle_key(engine, "m")
    timer_view.handle_key(engine, "-")
    assert round(engine.volume, 2) == 0.5
    timer_view.handle_key(engine, " ")
    timer_view.handle_key(engine, "r")
    assert engine.phase == Phase.IDLE
    assert timer_view.handle_key(engine, "q") is False


def test_build_engine_uses_settings():
    s = Settings(PREP_SECONDS=5, CUE_WINDOW_SECONDS=3, TICK_SECONDS=0.5, VOLUME=0.25)
    engine = timer_view.build_engine(Schedule(), WarmEmitter(), s)
    assert engine.countdown_seconds == 5
    assert engine.cue_window == 3
    assert engine.ticker.interval == 0.5
    assert engine.volume == 0.25


def test_render_screens():
    clock = FakeClock()
    engine = _engine(Schedule().snapshot(), WarmEmitter(), clock)
    console, out = _console()

    console.print(render_timer(engine.view()))
    engine.skip_preparation()
    for _ in range(35):
        engine.tick()
    console.print(render_timer(engine.view()))
    console.print(render_schedule(Schedule()))

    text = out.getvalue()
    assert "Get ready" in text
    assert "Pour to 120ml" in text
    assert "Step 2 / 3" in text
    assert "Pour schedule" in text
    assert "240ml" in text


def test_preparation_screen_skips_zero_length_first_step():
    clock = FakeClock()
    steps = [Step(name="Rinse", water=0, time=0), Step(name="Main", water=200, time=60)]
    engine = _engine(steps, WarmEmitter(), clock)
    console, out = _console()

    console.print(render_timer(engine.view()))

    text = out.getvalue()
    assert "First: Main to 200ml" in text
    assert "Rinse" not in text


def test_format_mmss():
    assert format_mmss(105) == "1:45"
    assert format_mmss(0) == "0:00"
    assert format_mmss(-4) == "0:00"
