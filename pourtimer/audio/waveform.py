"""Sine tone synthesis for the cue beeps."""

from __future__ import annotations

import numpy as np

ATTACK_S = 0.01
PEAK = 1.0
FLOOR = 0.001


def envelope(n: int, sample_rate: int, attack_s: float = ATTACK_S) -> np.ndarray:
    """Linear rise to full level over `attack_s`, then exponential decay to FLOOR.

    Starting and ending near silence keeps back-to-back beeps free of clicks.
    """
    if n <= 0:
        return np.zeros(0, dtype=np.float64)
    attack = min(n, max(1, int(sample_rate * attack_s)))
    env = np.empty(n, dtype=np.float64)
    env[:attack] = np.linspace(0.0, PEAK, attack, endpoint=False)
    decay = n - attack
    if decay > 0:
        env[attack:] = np.geomspace(PEAK, FLOOR, decay)
    return env


def sine_tone(frequency_hz: float, duration_s: float, sample_rate: int = 44100) -> np.ndarray:
    """Mono float tone in [-1, 1]; empty when frequency or duration is not positive."""
    n = int(round(duration_s * sample_rate))
    if frequency_hz <= 0 or n <= 0:
        return np.zeros(0, dtype=np.float64)
    t = np.arange(n, dtype=np.float64) / sample_rate
    wave = np.sin(2.0 * np.pi * frequency_hz * t)
    return wave * envelope(n, sample_rate)


def to_pcm16(wave: np.ndarray, channels: int = 2) -> np.ndarray:
    """16-bit PCM frames shaped (n, channels) as pygame.sndarray expects."""
    pcm = (np.clip(wave, -1.0, 1.0) * 32767).astype(np.int16)
    if channels <= 1:
        return pcm
    return np.repeat(pcm.reshape(-1, 1), channels, axis=1)
