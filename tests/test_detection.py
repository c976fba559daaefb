"""Tests for project detection and existing CI file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from ci_composer.detection import (
    DetectionResult,
    ProjectType,
    detect_project,
    existing_ci_files,
    find_dockerfiles,
    try_detect_project,
)
from ci_composer.errors import ProjectDetectionError
from ci_composer.platforms.base import Platform


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_rust_workspace(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["core", "cli"]\n')
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.RUST_WORKSPACE
    assert result.metadata["members"] == "core, cli"
    assert result.metadata["member_count"] == "2"


def test_rust_library_with_rust_version(tmp_path: Path) -> None:
    _write(
        tmp_path / "Cargo.toml",
        '[package]\nname = "demo"\nversion = "0.1.0"\nrust-version = "1.74"\n',
    )
    _write(tmp_path / "src" / "lib.rs")
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.RUST_LIBRARY
    assert result.language_version == "1.74"
    assert result.metadata["name"] == "demo"


def test_rust_binary_without_rust_version(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[package]\nname = "demo"\n')
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.RUST_BINARY
    assert result.language_version is None


def test_malformed_cargo_manifest_still_detects_rust(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", "[package\n")
    assert detect_project(tmp_path).project_type is ProjectType.RUST_BINARY


def test_rust_wins_over_docker(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[package]\nname = "demo"\n')
    _write(tmp_path / "Dockerfile", "FROM rust:1.75\n")
    assert detect_project(tmp_path).project_type is ProjectType.RUST_BINARY


def test_python_app_and_library(tmp_path: Path) -> None:
    _write(tmp_path / "requirements.txt", "requests\n")
    library = detect_project(tmp_path)
    assert library.project_type is ProjectType.PYTHON_LIBRARY
    assert library.metadata == {"config": "requirements.txt"}
    _write(tmp_path / "main.py")
    app = detect_project(tmp_path)
    assert app.project_type is ProjectType.PYTHON_APP
    assert app.language_version == "3.11"


def test_go_module_version(tmp_path: Path) -> None:
    _write(tmp_path / "go.mod", "module example.com/svc\n\ngo 1.22\n")
    _write(tmp_path / "cmd" / "svc" / "main.go")
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.GO_APP
    assert result.language_version == "1.22"
    assert result.metadata["module"] == "example.com/svc"


def test_go_library_defaults_version(tmp_path: Path) -> None:
    _write(tmp_path / "go.mod", "module example.com/lib\n")
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.GO_LIBRARY
    assert result.language_version == "1.21"


def test_docker_base_image(tmp_path: Path) -> None:
    _write(
        tmp_path / "Dockerfile",
        "# build image\nFROM --platform=linux/amd64 python:3.12-slim AS base\n",
    )
    _write(tmp_path / "Dockerfile.prod", "FROM base\n")
    _write(tmp_path / "compose.yaml", "services: {}\n")
    result = detect_project(tmp_path)
    assert result.project_type is ProjectType.DOCKER_IMAGE
    assert result.language_version is None
    assert result.metadata["base_image"] == "python:3.12-slim"
    assert result.metadata["dockerfiles"] == "Dockerfile, Dockerfile.prod"
    assert result.metadata["compose_file"] == "compose.yaml"
    assert find_dockerfiles(tmp_path) == ["Dockerfile", "Dockerfile.prod"]


def test_no_match_raises_and_try_returns_none(tmp_path: Path) -> None:
    _write(tmp_path / "README.md", "hello\n")
    with pytest.raises(ProjectDetectionError) as excinfo:
        detect_project(tmp_path)
    assert excinfo.value.directory == tmp_path
    assert excinfo.value.diagnostic().startswith("[detection] Could not detect")
    assert try_detect_project(tmp_path) is None


def test_existing_ci_files(tmp_path: Path) -> None:
    _write(tmp_path / ".gitlab-ci.yml", "stages: [test]\n")
    _write(tmp_path / ".github" / "workflows" / "rust.yml", "name: rust\n")
    _write(tmp_path / "Jenkinsfile", "pipeline {}\n")
    found = existing_ci_files(tmp_path)
    assert list(found) == [Platform.GITHUB, Platform.GITLAB, Platform.JENKINS]
    assert found[Platform.GITHUB].name == "rust.yml"


def test_existing_ci_files_empty(tmp_path: Path) -> None:
    assert existing_ci_files(tmp_path) == {}


def test_to_dict() -> None:
    result = DetectionResult(ProjectType.GO_APP, "1.22", {"module": "m"})
    assert result.to_dict() == {
        "project_type": "go-app",
        "language_version": "1.22",
        "metadata": {"module": "m"},
    }
    assert ProjectType.RUST_WORKSPACE.display_name == "Rust Workspace"
