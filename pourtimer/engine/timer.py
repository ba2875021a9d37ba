"""Brew timer state machine.

One logical clock drives everything: each call to `tick()` is one second of
either preparation countdown or brew time. The engine never edits steps; it
works on the tuple it was constructed with, and a new engine is built every
time the timer view is entered.

Cue rules while running, evaluated after the clock advances:

* the step that was active before the tick has just ended (remaining == 0)
  and another step takes over: step-transition tone, once per transition;
* the active step has 1..cue_window seconds left: pre-cue tone;
* the schedule is exhausted: finished tone instead of a transition tone.

On a transition tick both rules are checked, transition tone first, so a
step no longer than the cue window still gets a pre-cue for each of its
seconds.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel

from pourtimer.engine import resolve
from pourtimer.engine.clock import Ticker
from pourtimer.engine.cues import TONES, Cue, ToneEmitter
from pourtimer.models.schedule import total_time, total_water
from pourtimer.models.step import Step

logger = logging.getLogger(__name__)

DEFAULT_PREP_SECONDS = 10
DEFAULT_CUE_WINDOW = 10


class Phase(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class TimerView(BaseModel):
    """Everything the timer screen shows, read once per tick."""

    phase: Phase
    elapsed_seconds: int
    countdown_seconds: int
    prep_seconds: int
    active_index: int
    step_count: int
    active_step: Optional[Step] = None
    remaining_seconds: int
    progress: float
    target_pour: float
    total_water: float
    volume: float

    @property
    def is_finished(self) -> bool:
        return self.phase == Phase.FINISHED

    @property
    def in_preparation(self) -> bool:
        return self.countdown_seconds > 0 and not self.is_finished


class TimerEngine:
    def __init__(
        self,
        steps: Sequence[Step],
        emitter: ToneEmitter,
        ticker: Optional[Ticker] = None,
        prep_seconds: int = DEFAULT_PREP_SECONDS,
        cue_window: int = DEFAULT_CUE_WINDOW,
        volume: float = 1.0,
    ):
        self._steps: Tuple[Step, ...] = tuple(steps)
        self._emitter = emitter
        self._ticker = ticker or Ticker()
        self.prep_seconds = max(0, int(prep_seconds))
        self.cue_window = max(0, int(cue_window))
        self._total_time = total_time(self._steps)

        self._volume = 1.0
        self._unmuted_volume = 1.0
        self.set_volume(volume)

        self._phase = Phase.IDLE
        self._elapsed = 0
        self._countdown = self.prep_seconds
        self._active_index = 0

    # --- read-only state ---

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def countdown_seconds(self) -> int:
        return self._countdown

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def ticker(self) -> Ticker:
        return self._ticker

    @property
    def is_ticking(self) -> bool:
        return self._phase in (Phase.PREPARING, Phase.RUNNING)

    # --- commands ---

    def start(self) -> None:
        """Begin from idle, or resume from pause. Ignored while ticking or finished."""
        if self._phase == Phase.IDLE:
            self._ticker.arm()
            if self._countdown > 0:
                self._set_phase(Phase.PREPARING)
                # the opening countdown second gets its beep too
                if self._countdown <= self.cue_window:
                    self._cue(Cue.PRE)
            else:
                self._enter_running()
        elif self._phase == Phase.PAUSED:
            self._set_phase(Phase.PREPARING if self._countdown > 0 else Phase.RUNNING)
            self._ticker.arm()

    def pause(self) -> None:
        if self.is_ticking:
            self._ticker.cancel()
            self._set_phase(Phase.PAUSED)

    def toggle(self) -> None:
        if self.is_ticking:
            self.pause()
        else:
            self.start()

    def skip_preparation(self) -> None:
        if self._countdown <= 0 or self._phase in (Phase.RUNNING, Phase.FINISHED):
            return
        self._countdown = 0
        self._ticker.arm()
        self._enter_running()

    def reset(self) -> None:
        self._ticker.cancel()
        self._elapsed = 0
        self._countdown = self.prep_seconds
        self._active_index = 0
        self._set_phase(Phase.IDLE)

    def close(self) -> None:
        """Stop ticking for good; called when the timer view is left."""
        self._ticker.cancel()
        logger.debug("Timer session closed at %ss (%s)", self._elapsed, self._phase.value)

    def set_volume(self, volume: float) -> None:
        self._volume = min(1.0, max(0.0, float(volume)))
        if self._volume > 0:
            self._unmuted_volume = self._volume

    def toggle_mute(self) -> None:
        if self._volume > 0:
            self._volume = 0.0
        else:
            self._volume = self._unmuted_volume

    # --- clock ---

    def run_due_ticks(self) -> int:
        """Apply every tick the ticker says is due; returns how many ran."""
        ran = 0
        for _ in range(self._ticker.due()):
            if not self.is_ticking:
                break
            self.tick()
            ran += 1
        return ran

    def tick(self) -> None:
        if self._phase == Phase.PREPARING:
            self._tick_preparing()
        elif self._phase == Phase.RUNNING:
            self._tick_running()

    def _tick_preparing(self) -> None:
        self._countdown -= 1
        if 0 < self._countdown <= self.cue_window:
            self._cue(Cue.PRE)
        if self._countdown <= 0:
            self._countdown = 0
            self._enter_running()

    def _tick_running(self) -> None:
        previous = self._active_index
        self._elapsed += 1

        index = resolve.active_step_index(self._steps, self._elapsed)
        if index is None:
            if self._elapsed >= self._total_time:
                self._finish()
            return
        self._active_index = index

        if (
            previous != index
            and 0 <= previous < len(self._steps)
            and resolve.step_end(self._steps, previous) == self._elapsed
        ):
            logger.info("Step %d (%s) done at %ss", previous + 1, self._steps[previous].name, self._elapsed)
            self._cue(Cue.STEP)

        remaining = resolve.remaining_seconds(self._steps, index, self._elapsed)
        if 0 < remaining <= self.cue_window:
            self._cue(Cue.PRE)

    def _enter_running(self) -> None:
        self._set_phase(Phase.RUNNING)
        self._cue(Cue.START)
        index = resolve.active_step_index(self._steps, self._elapsed)
        if index is None:
            # nothing to time: empty schedule or only zero-length steps
            self._finish()
            return
        self._active_index = index

    def _finish(self) -> None:
        self._ticker.cancel()
        self._active_index = len(self._steps)
        self._set_phase(Phase.FINISHED)
        self._cue(Cue.FINISH)

    def _set_phase(self, phase: Phase) -> None:
        if phase != self._phase:
            logger.info(
                "Timer %s -> %s | elapsed=%ss countdown=%ss",
                self._phase.value, phase.value, self._elapsed, self._countdown,
            )
        self._phase = phase

    def _cue(self, cue: Cue) -> None:
        tone = TONES[cue]
        logger.debug("Cue %s at elapsed=%ss countdown=%ss", cue.value, self._elapsed, self._countdown)
        try:
            self._emitter.emit_tone(tone.frequency_hz, tone.duration_s, self._volume)
        except Exception:
            logger.exception("Tone output failed for cue %s; timer continues", cue.value)

    # --- presentation ---

    def view(self) -> TimerView:
        steps = self._steps
        index = self._active_index
        finished = self._phase == Phase.FINISHED
        if not finished and 0 <= index < len(steps) and steps[index].time == 0:
            # before the brew starts, show the first step that will actually run
            first = resolve.active_step_index(steps, self._elapsed)
            if first is not None:
                index = first
        if finished:
            progress = 1.0
        elif self._countdown > 0:
            progress = resolve.preparation_progress(self._countdown, self.prep_seconds)
        else:
            progress = resolve.step_progress(steps, index, self._elapsed)
        return TimerView(
            phase=self._phase,
            elapsed_seconds=self._elapsed,
            countdown_seconds=self._countdown,
            prep_seconds=self.prep_seconds,
            active_index=index,
            step_count=len(steps),
            active_step=steps[index] if 0 <= index < len(steps) else None,
            remaining_seconds=resolve.remaining_seconds(steps, index, self._elapsed),
            progress=progress,
            target_pour=resolve.target_pour(steps, index),
            total_water=total_water(steps),
            volume=self._volume,
        )
