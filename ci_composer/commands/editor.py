"""Root callback and the interactive editor command."""

from __future__ import annotations

# mypy: ignore-errors
# ruff: noqa: B008,F403,F405,I001
from ci_composer.commands.common import *


def _launch_editor(directory: Path, platform: str) -> None:
    target = _resolve_platform(platform)
    with _cli_errors():
        detection = try_detect_project(directory)
        if detection is None and not (directory / DEFAULT_DOCUMENT_NAME).is_file():
            raise ProjectDetectionError(directory)
        state = load_session(directory, detection, platform=target)
        written = run_editor(state, console)
    if written is not None:
        console.print(f"[green]Wrote[/green] {escape(str(written))}", soft_wrap=True)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show cci version and exit.",
            is_eager=True,
            callback=_version_callback,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug logging."),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Write logs to this file (truncated on each run)."),
    ] = None,
) -> None:
    """Generate CI configuration from presets; runs the editor when no command is given."""
    configure_logging(log_file=log_file, verbose=verbose)
    if ctx.invoked_subcommand is None:
        _launch_editor(Path("."), "github")


@app.command()
def editor(
    directory: Annotated[
        Path,
        typer.Option("--dir", help="Project directory to configure."),
    ] = Path("."),
    platform: Annotated[
        str,
        typer.Option("--platform", help="Initial target platform."),
    ] = "github",
) -> None:
    """Edit presets interactively with a live preview of the generated file."""
    _launch_editor(directory, platform)
