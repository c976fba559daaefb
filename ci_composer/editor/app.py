"""Interactive editor loop: poll keys, mutate state, redraw."""

from __future__ import annotations

import sys
from pathlib import Path

from rich.console import Console
from rich.live import Live

from ci_composer.editor.keys import POLL_SECONDS, KeyReader
from ci_composer.editor.render import render_state
from ci_composer.editor.state import EditorState
from ci_composer.errors import TerminalRequiredError
from ci_composer.logging_utils import get_logger

_LOGGER = get_logger("editor")


def run_editor(state: EditorState, console: Console) -> Path | None:
    """Run the editor until the user quits; return the written file, if any."""
    if not sys.stdin.isatty():
        raise TerminalRequiredError("the editor needs an interactive terminal")
    _LOGGER.info("Editor started in %s", state.working_dir)
    height = max(5, console.size.height - 12)
    with KeyReader() as keys, Live(
        render_state(state, height), console=console, screen=True, auto_refresh=False
    ) as live:
        while not state.should_quit:
            key = keys.read(POLL_SECONDS)
            if key is None:
                continue
            state.handle_key(key)
            height = max(5, console.size.height - 12)
            live.update(render_state(state, height), refresh=True)
    _LOGGER.info("Editor stopped (write=%s)", state.write_on_exit)
    if not state.write_on_exit:
        return None
    return state.write_output()
