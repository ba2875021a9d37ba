"""Application settings loaded from environment (and .env).

This module provides a small Settings holder backed by environment variables.
Keep this file simple and import `settings` from other modules.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None:
        return default
    return v


def _get_float(name: str, default: float) -> float:
    raw = _get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        # validate_settings() reports the bad value with its name
        return float("nan")


@dataclass
class Settings:
    # Logging configuration
    # LOG_LEVEL can be DEBUG, INFO, WARNING, ERROR, or CRITICAL
    LOG_LEVEL: str = _get("LOG_LEVEL", "INFO")
    # Optional path to write logs to a file; if unset, logs go to stderr
    LOG_FILE: str | None = _get("LOG_FILE", None)

    # Timer
    # Seconds of countdown before the brew clock starts
    PREP_SECONDS: float = _get_float("POUR_PREP_SECONDS", 10)
    # Pre-cue beeps sound while a countdown is within this many seconds
    CUE_WINDOW_SECONDS: float = _get_float("POUR_CUE_WINDOW_SECONDS", 10)
    TICK_SECONDS: float = _get_float("POUR_TICK_SECONDS", 1.0)

    # Audio
    VOLUME: float = _get_float("POUR_VOLUME", 1.0)
    # "pygame" plays tones through the sound card, "none" keeps quiet
    AUDIO_BACKEND: str = _get("POUR_AUDIO_BACKEND", "pygame")
    SAMPLE_RATE: float = _get_float("POUR_SAMPLE_RATE", 44100)


settings = Settings()


def validate_settings(s: Settings | None = None) -> None:
    """Validate numeric settings and raise a helpful RuntimeError if any are off.

    Callers load a .env first, so this runs at command time, not import time.
    """
    s = s or settings
    problems = []
    if not (s.PREP_SECONDS >= 0) or not float(s.PREP_SECONDS).is_integer():
        problems.append(f"POUR_PREP_SECONDS must be a whole number >= 0 (got {s.PREP_SECONDS})")
    if not (s.CUE_WINDOW_SECONDS >= 0):
        problems.append(f"POUR_CUE_WINDOW_SECONDS must be >= 0 (got {s.CUE_WINDOW_SECONDS})")
    if not (s.TICK_SECONDS > 0):
        problems.append(f"POUR_TICK_SECONDS must be > 0 (got {s.TICK_SECONDS})")
    if not (0.0 <= s.VOLUME <= 1.0):
        problems.append(f"POUR_VOLUME must be between 0 and 1 (got {s.VOLUME})")
    if s.AUDIO_BACKEND not in ("pygame", "none"):
        problems.append(f"POUR_AUDIO_BACKEND must be 'pygame' or 'none' (got {s.AUDIO_BACKEND!r})")
    if not (s.SAMPLE_RATE >= 8000):
        problems.append(f"POUR_SAMPLE_RATE must be >= 8000 (got {s.SAMPLE_RATE})")
    if problems:
        msg = (
            "Invalid settings: "
            + "; ".join(problems)
            + "\nPlease fix them in your .env or environment and try again."
        )
        raise RuntimeError(msg)
