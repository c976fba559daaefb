"""Cheap line diff between an existing CI file and freshly generated text.

The matcher is greedy with a short lookahead window rather than a minimal
edit script: on a mismatch it looks a few lines ahead in the new text, then
in the old text, for the line that would re-synchronize both sides.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

LOOKAHEAD = 5


class DiffTag(str, Enum):
    """Classification of one diff line."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class DiffLine:
    """One line of the diff with its classification."""

    tag: DiffTag
    text: str


def _find_ahead(lines: list[str], start: int, target: str) -> int | None:
    end = min(start + LOOKAHEAD, len(lines))
    for index in range(start + 1, end):
        if lines[index] == target:
            return index
    return None


def compute_diff(old: str, new: str) -> list[DiffLine]:
    """Diff ``old`` against ``new`` line by line.

    Dropping ``REMOVED`` lines yields ``new``; dropping ``ADDED`` lines
    yields ``old``.
    """
    old_lines = old.splitlines()
    new_lines = new.splitlines()
    result: list[DiffLine] = []
    old_index = 0
    new_index = 0
    while old_index < len(old_lines) and new_index < len(new_lines):
        old_line = old_lines[old_index]
        new_line = new_lines[new_index]
        if old_line == new_line:
            result.append(DiffLine(DiffTag.UNCHANGED, new_line))
            old_index += 1
            new_index += 1
            continue
        anchor = _find_ahead(new_lines, new_index, old_line)
        if anchor is not None:
            result.extend(DiffLine(DiffTag.ADDED, line) for line in new_lines[new_index:anchor])
            new_index = anchor
            continue
        anchor = _find_ahead(old_lines, old_index, new_line)
        if anchor is not None:
            result.extend(DiffLine(DiffTag.REMOVED, line) for line in old_lines[old_index:anchor])
            old_index = anchor
            continue
        result.append(DiffLine(DiffTag.REMOVED, old_line))
        result.append(DiffLine(DiffTag.ADDED, new_line))
        old_index += 1
        new_index += 1
    result.extend(DiffLine(DiffTag.REMOVED, line) for line in old_lines[old_index:])
    result.extend(DiffLine(DiffTag.ADDED, line) for line in new_lines[new_index:])
    return result


def has_changes(diff: list[DiffLine]) -> bool:
    """Return True when any line was added or removed."""
    return any(line.tag is not DiffTag.UNCHANGED for line in diff)
