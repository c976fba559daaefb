"""Command-line interface for cci."""

from __future__ import annotations

# ruff: noqa: F401
from ci_composer.commands import editor, generate, inspection
from ci_composer.commands.common import app

if __name__ == "__main__":
    app()
