"""CLI tests for generate, validate, detect, lint and the editor entry point."""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ci_composer import __version__
from ci_composer.cli import app
from ci_composer.platforms.base import Platform
from ci_composer.presets import rust

RUST_AND_DOCKER = "presets:\n  - Rust:\n      coverage: true\n  - Docker:\n      image_name: api\n"


def _project(tmp_path: Path, document: str = "presets:\n  - Rust\n") -> Path:
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "demo"\n', encoding="utf-8")
    config = tmp_path / "cci.yml"
    config.write_text(document, encoding="utf-8")
    return config


def test_generate_single_preset(tmp_path: Path) -> None:
    config = _project(tmp_path)
    result = CliRunner().invoke(app, ["generate", str(config), "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    workflow = tmp_path / ".github" / "workflows" / "ci.yml"
    assert workflow.is_file()
    assert "rust/test:" in workflow.read_text(encoding="utf-8")
    assert "Generated" in result.output


def test_generate_multiple_presets_for_gitlab(tmp_path: Path) -> None:
    config = _project(tmp_path, RUST_AND_DOCKER)
    result = CliRunner().invoke(
        app, ["generate", str(config), "--dir", str(tmp_path), "--platform", "gitlab"]
    )
    assert result.exit_code == 0, result.output
    assert (tmp_path / ".gitlab-ci-rust.yml").is_file()
    assert "docker build -t api" in (tmp_path / ".gitlab-ci-docker.yml").read_text(
        encoding="utf-8"
    )


def test_generate_refuses_to_overwrite_without_force(tmp_path: Path) -> None:
    config = _project(tmp_path)
    runner = CliRunner()
    args = ["generate", str(config), "--dir", str(tmp_path)]
    assert runner.invoke(app, args).exit_code == 0

    conflict = runner.invoke(app, args)
    assert conflict.exit_code == 1
    assert "[file-conflict]" in conflict.output
    assert "--force" in conflict.output

    forced = runner.invoke(app, [*args, "--force"])
    assert forced.exit_code == 0, forced.output


def test_generate_dry_run_writes_nothing(tmp_path: Path) -> None:
    config = _project(tmp_path)
    result = CliRunner().invoke(
        app, ["generate", str(config), "--dir", str(tmp_path), "--dry-run"]
    )
    assert result.exit_code == 0, result.output
    assert "# .github/workflows/ci.yml" in result.output
    assert "rust/test:" in result.output
    assert not (tmp_path / ".github").exists()


def test_generate_unknown_platform_falls_back_to_github(tmp_path: Path) -> None:
    config = _project(tmp_path)
    result = CliRunner().invoke(
        app, ["generate", str(config), "--dir", str(tmp_path), "--platform", "bitbucket"]
    )
    assert result.exit_code == 0, result.output
    assert "Unknown platform 'bitbucket'" in result.output
    assert (tmp_path / ".github" / "workflows" / "ci.yml").is_file()


def test_validate_passes(tmp_path: Path) -> None:
    config = _project(tmp_path, RUST_AND_DOCKER)
    result = CliRunner().invoke(app, ["validate", str(config)])
    assert result.exit_code == 0, result.output
    assert "[PASS]" in result.output
    assert "2 preset(s)" in result.output


def test_validate_reports_document_errors(tmp_path: Path) -> None:
    runner = CliRunner()
    cases = {
        "presets: []\n": "[document-semantics]",
        "presets: [\n": "[document-syntax]",
        "presets:\n  - Java\n": "unknown preset 'Java'",
        "presets:\n  - Rust:\n      coverage: maybe\n": "[document-semantics]",
    }
    for text, expected in cases.items():
        config = tmp_path / "cci.yml"
        config.write_text(text, encoding="utf-8")
        result = runner.invoke(app, ["validate", str(config)])
        assert result.exit_code == 1
        assert expected in result.output


def test_validate_missing_file(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["validate", str(tmp_path / "cci.yml")])
    assert result.exit_code == 1
    assert "[io]" in result.output


def test_detect_rust_project_with_existing_ci(tmp_path: Path) -> None:
    _project(tmp_path)
    text = rust.PRESET.generate(rust.PRESET.default_config(True), Platform.GITLAB, None)
    (tmp_path / ".gitlab-ci.yml").write_text(text, encoding="utf-8")

    result = CliRunner().invoke(app, ["detect", "--dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Project type: Rust Binary" in result.output
    assert "GitLab CI:" in result.output
    assert "(presets: rust)" in result.output
    assert "Matching presets:" in result.output
    assert "Other presets:" in result.output


def test_detect_without_ci_files(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/x\ngo 1.22\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["detect", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Language version: 1.22" in result.output
    assert "No existing CI files found." in result.output


def test_detect_unknown_project(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["detect", "--dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "[detection]" in result.output


def test_lint_generated_and_broken_workflows(tmp_path: Path) -> None:
    config = _project(tmp_path)
    runner = CliRunner()
    assert runner.invoke(app, ["generate", str(config), "--dir", str(tmp_path)]).exit_code == 0

    passed = runner.invoke(app, ["lint", "--dir", str(tmp_path)])
    assert passed.exit_code == 0, passed.output
    assert "[PASS]" in passed.output

    broken = tmp_path / ".github" / "workflows" / "broken.yml"
    broken.write_text("name: Broken\njobs: {}\n", encoding="utf-8")
    failed = runner.invoke(app, ["lint", "--dir", str(tmp_path)])
    assert failed.exit_code == 1
    assert "[FAIL]" in failed.output
    assert "missing_on" in failed.output


def test_version_flag() -> None:
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_editor_requires_terminal(tmp_path: Path) -> None:
    _project(tmp_path)
    result = CliRunner().invoke(app, ["editor", "--dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "[terminal] the editor needs an interactive terminal" in result.output


def test_editor_without_project_or_document(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["editor", "--dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "[detection]" in result.output


def _interactive(monkeypatch: pytest.MonkeyPatch) -> None:
    module = importlib.import_module("ci_composer.commands.generate")
    monkeypatch.setattr(module, "_stdin_is_terminal", lambda: True)


def _existing_workflow(tmp_path: Path) -> tuple[Path, list[str]]:
    config = _project(tmp_path)
    workflow = tmp_path / ".github" / "workflows" / "ci.yml"
    workflow.parent.mkdir(parents=True)
    workflow.write_text("name: Old CI\n", encoding="utf-8")
    return workflow, ["generate", str(config), "--dir", str(tmp_path)]


def test_generate_prompt_overwrite(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _interactive(monkeypatch)
    workflow, args = _existing_workflow(tmp_path)

    result = CliRunner().invoke(app, args, input="overwrite\n")

    assert result.exit_code == 0, result.output
    assert "File exists:" in result.output
    assert "- name: Old CI" in result.output
    assert "What would you like to do?" in result.output
    assert "rust/test:" in workflow.read_text(encoding="utf-8")


def test_generate_prompt_skip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _interactive(monkeypatch)
    workflow, args = _existing_workflow(tmp_path)

    result = CliRunner().invoke(app, args, input="skip\n")

    assert result.exit_code == 0, result.output
    assert "Skipped" in result.output
    assert workflow.read_text(encoding="utf-8") == "name: Old CI\n"


def test_generate_prompt_backup(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _interactive(monkeypatch)
    workflow, args = _existing_workflow(tmp_path)

    result = CliRunner().invoke(app, args, input="backup\n")

    assert result.exit_code == 0, result.output
    assert "Backed up" in result.output
    (backup,) = workflow.parent.glob("ci.yml.bak.*")
    assert backup.read_text(encoding="utf-8") == "name: Old CI\n"
    assert "rust/test:" in workflow.read_text(encoding="utf-8")


def test_generate_prompt_abort(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _interactive(monkeypatch)
    workflow, args = _existing_workflow(tmp_path)

    result = CliRunner().invoke(app, args, input="abort\n")

    assert result.exit_code == 1
    assert "[cancelled]" in result.output
    assert workflow.read_text(encoding="utf-8") == "name: Old CI\n"


def test_generate_prompt_defaults_to_abort(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _interactive(monkeypatch)
    workflow, args = _existing_workflow(tmp_path)

    result = CliRunner().invoke(app, args, input="\n")

    assert result.exit_code == 1
    assert "[cancelled]" in result.output
    assert workflow.read_text(encoding="utf-8") == "name: Old CI\n"
