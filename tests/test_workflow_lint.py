"""Tests for structural linting of GitHub and Gitea workflows."""

from __future__ import annotations

from pathlib import Path

from ci_composer.platforms.base import Platform
from ci_composer.presets import docker, rust
from ci_composer.workflow_lint import lint_workflow, lint_workflows


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_duplicate_keys_detected() -> None:
    errors = lint_workflow("name: CI\nname: CI2\non: [push]\njobs: {}\n")
    assert errors == ["duplicate_key:name"]


def test_missing_on_and_jobs() -> None:
    assert lint_workflow("name: CI\njobs: {}\n") == ["missing_on"]
    assert lint_workflow("name: CI\non: [push]\n") == ["missing_jobs"]


def test_job_id_scheme_and_step_shape() -> None:
    errors = lint_workflow(
        """
name: CI
on: [push]
jobs:
  Build:
    runs-on: ubuntu-latest
    steps:
      - name: Both
        uses: actions/checkout@v4
        run: echo hi
"""
    )
    assert "job_id_scheme:Build" in errors
    assert "step_needs_uses_or_run:Build" in errors


def test_missing_runs_on_and_unbalanced_expression() -> None:
    errors = lint_workflow(
        """
name: CI
on:
  push:
    branches: main
jobs:
  rust/test:
    steps:
      - run: echo ${{ secrets.TOKEN
"""
    )
    assert "trigger_filter_not_list:push.branches" in errors
    assert "missing_runs_on:rust/test" in errors
    assert "invalid_expression_syntax" in errors


def test_generated_workflows_pass() -> None:
    rust_text = rust.PRESET.generate(rust.PRESET.default_config(True), Platform.GITHUB, "stable")
    docker_text = docker.PRESET.generate(docker.PRESET.default_config(True), Platform.GITEA, None)
    assert lint_workflow(rust_text) == []
    assert lint_workflow(docker_text) == []


def test_lint_workflows_scans_github_and_gitea(tmp_path: Path) -> None:
    _write(tmp_path / ".github" / "workflows" / "ci.yml", "name: CI\non: [push]\njobs: {}\n")
    _write(
        tmp_path / ".gitea" / "workflows" / "ci.yml",
        "name: CI\non: [push]\njobs:\n  go/test:\n    runs-on: ubuntu-latest\n"
        "    steps:\n      - run: go test ./...\n",
    )
    results = lint_workflows(tmp_path)
    assert [result.path.parent.parent.name for result in results] == [".github", ".gitea"]
    assert results[0].errors == ("no_jobs",)
    assert results[1].passed


def test_lint_workflows_reports_missing_directory(tmp_path: Path) -> None:
    results = lint_workflows(tmp_path)
    assert len(results) == 1
    assert results[0].errors == ("missing_workflows",)
