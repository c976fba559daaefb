"""Tests for the preset registry and existing CI recognition."""

from __future__ import annotations

from pathlib import Path

import pytest

from ci_composer.detection import ProjectType
from ci_composer.errors import InternalError, SourceDocumentSemanticsError
from ci_composer.platforms.base import Platform
from ci_composer.presets import docker, rust
from ci_composer.presets.registry import PresetRegistry, default_registry


def test_default_registry_order() -> None:
    registry = default_registry()
    assert registry.preset_ids == ["rust", "python-app", "go-app", "docker"]
    assert len(registry) == 4


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(InternalError, match="duplicate preset ids"):
        PresetRegistry([rust.PRESET, rust.PRESET])


def test_lookup_by_id_and_tag() -> None:
    registry = default_registry()
    assert registry.get("docker") is docker.PRESET
    assert registry.get("java") is None
    assert registry.by_document_tag("Rust") is rust.PRESET
    with pytest.raises(InternalError):
        registry.require("java")


def test_unknown_tag_lists_known_tags() -> None:
    with pytest.raises(SourceDocumentSemanticsError) as excinfo:
        default_registry().by_document_tag("Java")
    assert "unknown preset 'Java'" in excinfo.value.message
    assert "Rust, Python, GoApp, Docker" in excinfo.value.message


def test_matching_uses_project_type_and_directory(tmp_path: Path) -> None:
    registry = default_registry()
    matching = registry.matching(ProjectType.RUST_LIBRARY, tmp_path)
    assert [preset.preset_id for preset in matching] == ["rust"]
    (tmp_path / "Dockerfile").write_text("FROM scratch\n", encoding="utf-8")
    matching = registry.matching(ProjectType.RUST_LIBRARY, tmp_path)
    assert [preset.preset_id for preset in matching] == ["rust", "docker"]
    assert registry.matching(None, tmp_path)[0] is docker.PRESET


def test_recognize_generated_workflows(tmp_path: Path) -> None:
    registry = default_registry()
    workflow = tmp_path / "ci.yml"
    workflow.write_text(
        rust.PRESET.generate(rust.PRESET.default_config(True), Platform.GITLAB, None),
        encoding="utf-8",
    )
    assert registry.recognize(workflow) == ["rust"]


def test_recognize_jenkinsfile_markers(tmp_path: Path) -> None:
    jenkinsfile = tmp_path / "Jenkinsfile"
    jenkinsfile.write_text(
        docker.PRESET.generate(docker.PRESET.default_config(True), Platform.JENKINS, None),
        encoding="utf-8",
    )
    assert default_registry().recognize(jenkinsfile) == ["docker"]


def test_recognize_malformed_file_matches_nothing(tmp_path: Path) -> None:
    broken = tmp_path / "ci.yml"
    broken.write_text("jobs: [\n", encoding="utf-8")
    assert default_registry().recognize(broken) == []
    assert default_registry().recognize(tmp_path / "missing.yml") == []
