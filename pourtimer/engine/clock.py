"""Periodic tick source for the cooperative timer loop.

There is no thread here: the owning loop asks how long it may wait, waits
(on keyboard input, for example) and then calls `due()` to learn how many
ticks elapsed. Deadlines advance by whole intervals from the arm time so
a slow render never drifts the brew clock.
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class Ticker:
    def __init__(self, interval: float = 1.0, clock: Callable[[], float] = time.monotonic):
        if interval <= 0:
            raise ValueError("tick interval must be positive")
        self.interval = interval
        self._clock = clock
        self._next_deadline: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self._next_deadline is not None

    def arm(self) -> None:
        """Start ticking one interval from now; re-arming an armed ticker is a no-op."""
        if self._next_deadline is None:
            self._next_deadline = self._clock() + self.interval

    def cancel(self) -> None:
        self._next_deadline = None

    def seconds_until_next(self) -> Optional[float]:
        """Time the loop may block before the next tick; None while disarmed."""
        if self._next_deadline is None:
            return None
        return max(0.0, self._next_deadline - self._clock())

    def due(self) -> int:
        """Consume and return the number of ticks whose deadline has passed."""
        if self._next_deadline is None:
            return 0
        now = self._clock()
        if now < self._next_deadline:
            return 0
        count = int((now - self._next_deadline) // self.interval) + 1
        self._next_deadline += count * self.interval
        return count
