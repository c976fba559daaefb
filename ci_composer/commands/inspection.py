"""CLI commands that inspect a working directory: detect and lint."""

from __future__ import annotations

# mypy: ignore-errors
# ruff: noqa: B008,F403,F405,I001
from ci_composer.commands.common import *


def _print_detection(detection: DetectionResult) -> None:
    console.print(f"Project type: [bold]{detection.project_type.display_name}[/bold]")
    console.print(f"Language version: {detection.language_version or 'not specified'}")
    for key, value in detection.metadata.items():
        console.print(f"  {key}: {escape(value)}", soft_wrap=True)


@app.command()
def detect(
    directory: Annotated[
        Path,
        typer.Option("--dir", help="Directory to inspect."),
    ] = Path("."),
) -> None:
    """Detect the project type and list presets that apply to it."""
    registry = default_registry()
    with _cli_errors():
        detection = detect_project(directory)
    _print_detection(detection)

    existing = existing_ci_files(directory)
    if existing:
        console.print("\nExisting CI files:")
        for platform, path in existing.items():
            found = registry.recognize(path)
            suffix = f" (presets: {', '.join(found)})" if found else ""
            console.print(
                f"  {platform.display_name}: {escape(str(path))}{suffix}", soft_wrap=True
            )
    else:
        console.print("\nNo existing CI files found.")

    matching = registry.matching(detection.project_type, directory)
    console.print("\nMatching presets:")
    for preset in matching:
        console.print(f"  [green]●[/green] {preset.preset_id}: {preset.meta.description}")
    others = [preset for preset in registry if preset not in matching]
    if others:
        console.print("\nOther presets:")
        for preset in others:
            console.print(f"  ○ {preset.preset_id}: {preset.meta.description}")

    console.print("\nNext steps:")
    console.print("  cci editor        configure presets interactively")
    console.print("  cci generate      write CI files from cci.yml")


@app.command()
def lint(
    directory: Annotated[
        Path,
        typer.Option("--dir", help="Repository root containing .github or .gitea workflows."),
    ] = Path("."),
) -> None:
    """Check generated GitHub and Gitea workflows for structural problems."""
    results = lint_workflows(directory)
    failed = [result for result in results if not result.passed]
    for result in results:
        if result.passed:
            console.print(f"[PASS] {escape(str(result.path))}", soft_wrap=True)
        else:
            console.print(
                f"[FAIL] {escape(str(result.path))}: {escape(', '.join(result.errors))}",
                soft_wrap=True,
            )
    if failed:
        raise typer.Exit(code=1)
