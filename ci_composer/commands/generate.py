"""CLI commands that read a ``cci.yml`` document: generate and validate."""

from __future__ import annotations

# mypy: ignore-errors
# ruff: noqa: B008,F403,F405,I001
from ci_composer.commands.common import *


def _stdin_is_terminal() -> bool:
    return sys.stdin.isatty()


def _ask_overwrite(target: Path, generated: GeneratedFile) -> OverwriteAction:
    """Show how ``target`` would change and ask what to do with it."""
    try:
        existing = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise CciIOError(target, exc) from exc
    console.print(f"[yellow]File exists: {escape(str(target))}[/yellow]", soft_wrap=True)
    for line in compute_diff(existing, generated.content):
        console.print(highlight_diff_line(line), soft_wrap=True)
    choice = Prompt.ask(
        "What would you like to do?",
        choices=[action.value for action in OverwriteAction],
        default=OverwriteAction.ABORT.value,
        console=console,
    )
    return OverwriteAction(choice)


@app.command()
def generate(
    config_path: Annotated[
        Path,
        typer.Argument(help="Preset document to generate from."),
    ] = Path(DEFAULT_DOCUMENT_NAME),
    platform: Annotated[
        str,
        typer.Option(
            "--platform", help="Target platform: github, gitea, gitlab, circleci, jenkins."
        ),
    ] = "github",
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing CI files."),
    ] = False,
    directory: Annotated[
        Path,
        typer.Option("--dir", help="Repository root the files are written under."),
    ] = Path("."),
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print generated files instead of writing them."),
    ] = False,
) -> None:
    """Generate one CI file per preset in the document."""
    target = _resolve_platform(platform)
    with _cli_errors():
        document = load_document(config_path)
        detection = try_detect_project(directory)
        files = MultiPresetGenerator().generate(
            document, target, detection=detection, working_dir=directory
        )
        if dry_run:
            for generated in files:
                typer.echo(f"# {generated.path}")
                typer.echo(generated.content)
            return
        resolve = _ask_overwrite if _stdin_is_terminal() else None
        report = write_generated(files, directory, force=force, resolve=resolve)
    for original, backup in report.backups.items():
        console.print(
            f"[green]Backed up[/green] {escape(str(original))} to {escape(str(backup))}",
            soft_wrap=True,
        )
    for path in report.skipped:
        console.print(f"[yellow]Skipped[/yellow] {escape(str(path))}", soft_wrap=True)
    for path in report.written:
        console.print(f"[green]Generated[/green] {escape(str(path))}", soft_wrap=True)


@app.command()
def validate(
    config_path: Annotated[
        Path,
        typer.Argument(help="Preset document to validate."),
    ] = Path(DEFAULT_DOCUMENT_NAME),
) -> None:
    """Check that a document parses and names at least one known preset."""
    registry = default_registry()
    table = Table(title=f"Presets in {config_path}")
    table.add_column("Preset", style="cyan")
    table.add_column("Tag", style="magenta")
    table.add_column("Options", style="green")
    with _cli_errors():
        document = load_document(config_path)
        for choice in document.presets:
            preset = registry.by_document_tag(choice.tag)
            config = preset.from_document(choice)
            preset.check_config(config)
            summary = ", ".join(config.enabled_summary())
            table.add_row(preset.meta.display_name, choice.tag, summary or "-")
    console.print(table)
    console.print(
        f"[PASS] {escape(str(config_path))}: {len(document.presets)} preset(s)", soft_wrap=True
    )
