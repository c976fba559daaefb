"""Raw terminal key input for the editor (POSIX terminals)."""

from __future__ import annotations

import os
import select
import sys
import termios
import tty
from types import TracebackType
from typing import Any, TextIO

POLL_SECONDS = 0.1

_ESCAPE_SEQUENCES = {
    b"\x1b[A": "up",
    b"\x1b[B": "down",
    b"\x1b[C": "right",
    b"\x1b[D": "left",
    b"\x1bOA": "up",
    b"\x1bOB": "down",
    b"\x1bOC": "right",
    b"\x1bOD": "left",
}
_CONTROL_KEYS = {
    b"\x1b": "esc",
    b"\r": "enter",
    b"\n": "enter",
    b" ": "space",
}


def decode_key(data: bytes) -> str | None:
    """Map the bytes of one key press to a key name, or None when unrecognized.

    Arrows become ``up``/``down``/``left``/``right``; printable characters
    map to themselves, so ``K`` and ``k`` stay distinct.
    """
    if data in _ESCAPE_SEQUENCES:
        return _ESCAPE_SEQUENCES[data]
    if data in _CONTROL_KEYS:
        return _CONTROL_KEYS[data]
    if data.startswith(b"\x1b"):
        return None
    text = data.decode("utf-8", errors="ignore")
    if len(text) == 1 and text.isprintable():
        return text
    return None


class KeyReader:
    """Context manager putting stdin into cbreak mode and polling for keys."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._fd = -1
        self._saved: list[Any] | None = None

    def __enter__(self) -> KeyReader:
        self._fd = self._stream.fileno()
        self._saved = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._saved is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def read(self, timeout: float = POLL_SECONDS) -> str | None:
        """Wait up to ``timeout`` seconds for a key; None when nothing arrived."""
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None
        return decode_key(os.read(self._fd, 8))
