"""Live timer screen: one cooperative loop for keys, ticks and redraws."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.live import Live

from pourtimer.engine.clock import Ticker
from pourtimer.engine.cues import ToneEmitter
from pourtimer.engine.timer import TimerEngine
from pourtimer.models.schedule import Schedule
from pourtimer.settings import Settings
from pourtimer.tui.keys import KeyReader
from pourtimer.tui.render import render_timer

logger = logging.getLogger(__name__)

VOLUME_STEP = 0.1
IDLE_WAIT = 0.5


def build_engine(schedule: Schedule, emitter: ToneEmitter, s: Settings, volume: Optional[float] = None) -> TimerEngine:
    """Fresh timer session over a snapshot of the schedule."""
    return TimerEngine(
        schedule.snapshot(),
        emitter,
        ticker=Ticker(interval=s.TICK_SECONDS),
        prep_seconds=int(s.PREP_SECONDS),
        cue_window=int(s.CUE_WINDOW_SECONDS),
        volume=s.VOLUME if volume is None else volume,
    )


def handle_key(engine: TimerEngine, key: str, warm_up: Optional[Callable[[], None]] = None) -> bool:
    """Apply one key press; returns False when the user asked to leave."""
    if key in ("q", "Q", "\x1b"):
        return False
    if key == " ":
        if not engine.is_ticking and warm_up is not None:
            warm_up()
        engine.toggle()
    elif key in ("s", "S"):
        engine.skip_preparation()
    elif key in ("r", "R"):
        engine.reset()
    elif key in ("m", "M"):
        engine.toggle_mute()
    elif key in ("+", "="):
        engine.set_volume(engine.volume + VOLUME_STEP)
    elif key in ("-", "_"):
        engine.set_volume(engine.volume - VOLUME_STEP)
    return True


def run_timer(
    engine: TimerEngine,
    console: Console,
    emitter: Optional[ToneEmitter] = None,
    autostart: bool = False,
    skip_prep: bool = False,
    keys: Optional[KeyReader] = None,
) -> None:
    """Drive `engine` until the user leaves, or it finishes when there is no keyboard.

    The engine is always closed on the way out so no tick outlives the screen.
    """
    warm_up = getattr(emitter, "warm_up", None)
    reader = keys or KeyReader()
    try:
        with reader, Live(render_timer(engine.view(), show_keys=reader.interactive), console=console,
                          auto_refresh=False, transient=False) as live:
            if autostart or not reader.interactive:
                if warm_up is not None:
                    warm_up()
                if skip_prep:
                    engine.skip_preparation()
                else:
                    engine.start()
                live.update(render_timer(engine.view(), show_keys=reader.interactive), refresh=True)

            while True:
                if not reader.interactive and not engine.is_ticking:
                    break
                wait = engine.ticker.seconds_until_next()
                key = reader.read(IDLE_WAIT if wait is None else wait)
                if key is not None and not handle_key(engine, key, warm_up):
                    break
                engine.run_due_ticks()
                live.update(render_timer(engine.view(), show_keys=reader.interactive), refresh=True)
    finally:
        engine.close()
