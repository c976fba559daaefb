"""Tests for terminal key decoding."""

from __future__ import annotations

import pytest

from ci_composer.editor.keys import decode_key


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"\x1b[A", "up"),
        (b"\x1b[B", "down"),
        (b"\x1b[C", "right"),
        (b"\x1b[D", "left"),
        (b"\x1bOA", "up"),
        (b"\x1b", "esc"),
        (b"\r", "enter"),
        (b"\n", "enter"),
        (b" ", "space"),
        (b"k", "k"),
        (b"K", "K"),
        (b"W", "W"),
        (b"\x1b[3~", None),
        (b"\x03", None),
        (b"ab", None),
    ],
)
def test_decode_key(data: bytes, expected: str | None) -> None:
    assert decode_key(data) == expected
