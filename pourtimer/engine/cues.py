"""Audible cues the timer fires and the output contract it fires them at."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Protocol


class Tone(NamedTuple):
    frequency_hz: float
    duration_s: float


class Cue(str, Enum):
    PRE = "pre"
    START = "start"
    STEP = "step"
    FINISH = "finish"


TONES = {
    Cue.PRE: Tone(880.0, 0.1),
    Cue.START: Tone(1320.0, 0.3),
    Cue.STEP: Tone(1760.0, 0.3),
    Cue.FINISH: Tone(1760.0, 0.4),
}


class ToneEmitter(Protocol):
    """Best-effort, non-blocking tone output.

    Implementations own mute handling: volume 0 must produce no sound, but the
    timer still calls in.
    """

    def emit_tone(self, frequency_hz: float, duration_s: float, volume: float) -> None: ...
