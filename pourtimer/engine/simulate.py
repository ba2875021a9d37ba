"""Dry run of a whole brew: every cue the timer would fire, without waiting."""

from __future__ import annotations

from typing import List, NamedTuple, Sequence

from pourtimer.engine.cues import TONES, Cue
from pourtimer.engine.timer import Phase, TimerEngine
from pourtimer.models.step import Step

_CUE_BY_TONE = {tone: cue for cue, tone in TONES.items()}


class CueEvent(NamedTuple):
    tick: int
    phase: Phase
    countdown_seconds: int
    elapsed_seconds: int
    active_index: int
    cue: Cue


class _Recorder:
    def __init__(self):
        self.tones = []

    def emit_tone(self, frequency_hz: float, duration_s: float, volume: float) -> None:
        self.tones.append((frequency_hz, duration_s))


def simulate(steps: Sequence[Step], prep_seconds: int = 10, cue_window: int = 10, max_ticks: int = 24 * 3600) -> List[CueEvent]:
    recorder = _Recorder()
    engine = TimerEngine(steps, recorder, prep_seconds=prep_seconds, cue_window=cue_window)
    events: List[CueEvent] = []
    seen = 0

    def collect(tick: int) -> None:
        nonlocal seen
        for freq, dur in recorder.tones[seen:]:
            cue = _CUE_BY_TONE[(freq, dur)]
            events.append(CueEvent(tick, engine.phase, engine.countdown_seconds,
                                   engine.elapsed_seconds, engine.active_index, cue))
        seen = len(recorder.tones)

    engine.start()
    collect(0)
    tick = 0
    while engine.is_ticking and tick < max_ticks:
        tick += 1
        engine.tick()
        collect(tick)
    engine.close()
    return events
