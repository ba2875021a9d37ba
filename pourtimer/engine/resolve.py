"""Pure mapping from elapsed brew time onto the step list.

Everything here is recomputed from scratch on each tick. Resolution is a
linear scan, O(steps) per tick, which is plenty for recipes of a handful of
pours and keeps the rule easy to read.
"""

from __future__ import annotations

from typing import Optional, Sequence

from pourtimer.models.schedule import cumulative_time_before, cumulative_water_before, total_water
from pourtimer.models.step import Step


def active_step_index(steps: Sequence[Step], elapsed: int) -> Optional[int]:
    """Index of the first step whose [start, start + time) holds `elapsed`.

    Zero-length steps have an empty interval and are never active. Returns
    None once elapsed is past the last non-empty step.
    """
    start = 0
    for i, step in enumerate(steps):
        if start <= elapsed < start + step.time:
            return i
        start += step.time
    return None


def step_end(steps: Sequence[Step], index: int) -> int:
    return cumulative_time_before(steps, index) + steps[index].time


def remaining_seconds(steps: Sequence[Step], index: int, elapsed: int) -> int:
    """Seconds left in step `index`, floored at 0; 0 for the finished sentinel."""
    if not 0 <= index < len(steps):
        return 0
    return max(0, step_end(steps, index) - elapsed)


def target_pour(steps: Sequence[Step], index: int) -> float:
    """Cumulative water that should be in the brewer when step `index` ends."""
    if index >= len(steps):
        return total_water(steps)
    return cumulative_water_before(steps, index) + steps[index].water


def step_progress(steps: Sequence[Step], index: int, elapsed: int) -> float:
    """Fraction of step `index` already elapsed, in [0, 1].

    A zero-length step reports 0.0 rather than dividing by its duration.
    """
    if not 0 <= index < len(steps):
        return 1.0
    duration = steps[index].time
    if duration <= 0:
        return 0.0
    remaining = step_end(steps, index) - elapsed
    return min(1.0, max(0.0, (duration - remaining) / duration))


def preparation_progress(countdown: int, prep_seconds: int) -> float:
    if prep_seconds <= 0:
        return 1.0
    return min(1.0, max(0.0, (prep_seconds - countdown) / prep_seconds))
