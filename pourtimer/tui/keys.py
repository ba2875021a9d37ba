"""Single-key input with a timeout, so the timer loop can wait on the keyboard
and the next tick at the same time without a second thread."""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Optional

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    import msvcrt
else:
    import select
    import termios
    import tty


class KeyReader:
    """Context manager putting a tty stdin in cbreak mode for the duration."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdin
        self._saved = None
        self.interactive = False

    def __enter__(self) -> "KeyReader":
        try:
            self.interactive = self._stream.isatty()
        except (AttributeError, ValueError):
            self.interactive = False
        if self.interactive and sys.platform != "win32":
            fd = self._stream.fileno()
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        if not self.interactive:
            logger.info("stdin is not a terminal; timer runs without key controls")
        return self

    def __exit__(self, *exc) -> None:
        if self._saved is not None:
            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved)
            self._saved = None

    def read(self, timeout: Optional[float]) -> Optional[str]:
        """Return one key, or None once `timeout` seconds pass (None waits forever)."""
        if not self.interactive:
            time.sleep(timeout if timeout is not None else 0.25)
            return None
        if sys.platform == "win32":
            return self._read_windows(timeout)
        ready, _, _ = select.select([self._stream], [], [], timeout)
        if not ready:
            return None
        data = os.read(self._stream.fileno(), 1)
        return data.decode(errors="ignore") or None

    def _read_windows(self, timeout: Optional[float]) -> Optional[str]:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if msvcrt.kbhit():
                return msvcrt.getwch()
            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(0.02)
