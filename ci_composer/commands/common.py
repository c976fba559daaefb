"""Shared CLI objects and helpers for the command modules."""

from __future__ import annotations

# ruff: noqa: F401
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from ci_composer import __version__
from ci_composer.detection import (
    DetectionResult,
    detect_project,
    existing_ci_files,
    try_detect_project,
)
from ci_composer.document import DEFAULT_DOCUMENT_NAME, load_document
from ci_composer.editor.app import run_editor
from ci_composer.editor.diff import compute_diff
from ci_composer.editor.highlight import highlight_diff_line
from ci_composer.editor.state import load_session
from ci_composer.errors import CciError, CciIOError, ProjectDetectionError
from ci_composer.generator import (
    GeneratedFile,
    MultiPresetGenerator,
    OverwriteAction,
    write_generated,
)
from ci_composer.logging_utils import configure_logging, get_logger
from ci_composer.platforms.base import Platform
from ci_composer.presets.registry import default_registry
from ci_composer.workflow_lint import lint_workflows

app = typer.Typer(
    add_completion=False,
    help="Generate CI configuration from presets for GitHub, Gitea, GitLab, CircleCI and Jenkins.",
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger("cli")


def _version_callback(value: bool) -> None:
    """Print package version and exit when requested."""
    if value:
        console.print(__version__)
        raise typer.Exit()


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn tool errors into a one-line diagnostic on stderr and exit code 1."""
    try:
        yield
    except CciError as exc:
        logger.error("%s", exc.diagnostic())
        err_console.print(f"[red]{escape(exc.diagnostic())}[/red]", soft_wrap=True)
        raise typer.Exit(code=1) from exc


def _resolve_platform(raw: str) -> Platform:
    """Parse a platform name, warning when it falls back to GitHub."""
    platform = Platform.parse(raw)
    if platform.value != raw.strip().lower():
        err_console.print(
            f"[yellow]Unknown platform '{escape(raw)}'; using {platform.display_name}.[/yellow]",
            soft_wrap=True,
        )
    return platform


__all__ = [name for name in globals() if not name.startswith("__")]
