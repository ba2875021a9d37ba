"""Tone output backends.

Output is strictly best effort: a missing sound device or mixer error is
logged and the call returns, so the timer loop never stalls on audio.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Tuple

# keep pygame's import banner out of the terminal UI
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import numpy as np  # noqa: E402
import pygame  # noqa: E402
import pygame.sndarray  # noqa: E402

from pourtimer.audio.waveform import sine_tone, to_pcm16  # noqa: E402
from pourtimer.settings import Settings  # noqa: E402

logger = logging.getLogger(__name__)


class SilentToneEmitter:
    """Keeps quiet; cues only show up in debug logs."""

    def emit_tone(self, frequency_hz: float, duration_s: float, volume: float) -> None:
        logger.debug("tone %.0f Hz %.2fs vol=%.2f (silent)", frequency_hz, duration_s, volume)

    def warm_up(self) -> None:
        pass

    def close(self) -> None:
        pass


class PygameToneEmitter:
    """Plays synthesized beeps through pygame's mixer without blocking.

    The mixer is opened on first use, typically the user's first start press.
    Sounds are cached per (frequency, duration); pygame mixes overlapping
    plays on free channels.
    """

    def __init__(self, sample_rate: int = 44100):
        self.sample_rate = int(sample_rate)
        self._sounds: Dict[Tuple[float, float], "pygame.mixer.Sound"] = {}
        self._ready = False
        self._unavailable = False

    @property
    def available(self) -> bool:
        return not self._unavailable

    def warm_up(self) -> None:
        self._ensure_mixer()

    def _ensure_mixer(self) -> bool:
        if self._ready:
            return True
        if self._unavailable:
            return False
        try:
            pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=2, buffer=512)
        except pygame.error as e:
            self._unavailable = True
            logger.warning("Audio output unavailable, cues will be silent: %s", e)
            return False
        self._ready = True
        logger.debug("pygame mixer ready at %d Hz", self.sample_rate)
        return True

    def _sound_for(self, frequency_hz: float, duration_s: float) -> "pygame.mixer.Sound | None":
        key = (float(frequency_hz), float(duration_s))
        sound = self._sounds.get(key)
        if sound is None:
            # the device may not honour the requested rate
            rate, _, channels = pygame.mixer.get_init()
            wave = sine_tone(frequency_hz, duration_s, rate)
            if wave.size == 0:
                return None
            frames = np.ascontiguousarray(to_pcm16(wave, channels))
            sound = pygame.sndarray.make_sound(frames)
            self._sounds[key] = sound
        return sound

    def emit_tone(self, frequency_hz: float, duration_s: float, volume: float) -> None:
        if volume <= 0 or frequency_hz <= 0 or duration_s <= 0:
            return
        if not self._ensure_mixer():
            return
        try:
            sound = self._sound_for(frequency_hz, duration_s)
            if sound is None:
                return
            sound.set_volume(min(1.0, float(volume)))
            sound.play()
        except (pygame.error, ValueError) as e:
            logger.warning("Tone %.0f Hz failed: %s", frequency_hz, e)

    def close(self) -> None:
        if self._ready:
            pygame.mixer.quit()
            self._ready = False
        self._sounds.clear()


def build_emitter(s: Settings):
    if s.AUDIO_BACKEND == "none":
        return SilentToneEmitter()
    return PygameToneEmitter(sample_rate=int(s.SAMPLE_RATE))
