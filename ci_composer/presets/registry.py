"""Ordered registry of every preset the tool knows about."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ci_composer.detection import CiMarkers, ProjectType, recognize_presets
from ci_composer.errors import InternalError, SourceDocumentSemanticsError
from ci_composer.presets import docker, go_app, python_app, rust
from ci_composer.presets.base import PresetDefinition

_CI_MARKERS = {
    rust.PRESET_ID: CiMarkers("rust", ("cargo ",)),
    python_app.PRESET_ID: CiMarkers("python", ("pytest", "pip install")),
    go_app.PRESET_ID: CiMarkers("go", ("go test",)),
    docker.PRESET_ID: CiMarkers("docker", ("docker build",)),
}


class PresetRegistry:
    """Immutable, ordered collection of preset definitions.

    Registration order is the display order in the editor (before its
    matching-first sort) and the order presets are listed by ``detect``.
    """

    def __init__(self, presets: list[PresetDefinition[Any]]) -> None:
        ids = [preset.preset_id for preset in presets]
        if len(set(ids)) != len(ids):
            raise InternalError(f"duplicate preset ids in registry: {', '.join(ids)}")
        self._presets: tuple[PresetDefinition[Any], ...] = tuple(presets)

    def __iter__(self) -> Iterator[PresetDefinition[Any]]:
        return iter(self._presets)

    def __len__(self) -> int:
        return len(self._presets)

    @property
    def preset_ids(self) -> list[str]:
        return [preset.preset_id for preset in self._presets]

    def get(self, preset_id: str) -> PresetDefinition[Any] | None:
        """Return the preset registered under ``preset_id``."""
        return next((preset for preset in self._presets if preset.preset_id == preset_id), None)

    def require(self, preset_id: str) -> PresetDefinition[Any]:
        """Return the preset registered under ``preset_id`` or raise InternalError."""
        preset = self.get(preset_id)
        if preset is None:
            raise InternalError(f"unknown preset id '{preset_id}'")
        return preset

    def by_document_tag(self, tag: str) -> PresetDefinition[Any]:
        """Return the preset a document choice tag names."""
        for preset in self._presets:
            if preset.document_tag == tag:
                return preset
        known = ", ".join(preset.document_tag for preset in self._presets)
        raise SourceDocumentSemanticsError(f"unknown preset '{tag}'; expected one of: {known}")

    def matching(
        self, project_type: ProjectType | None, working_dir: Path
    ) -> list[PresetDefinition[Any]]:
        """Return presets that apply to the project, in registration order."""
        return [
            preset for preset in self._presets if preset.matches_project(project_type, working_dir)
        ]

    def recognize(self, ci_file: Path) -> list[str]:
        """Return ids of registered presets found in an existing CI file."""
        markers = {
            preset_id: hints
            for preset_id, hints in _CI_MARKERS.items()
            if self.get(preset_id) is not None
        }
        return recognize_presets(ci_file, markers)


def default_registry() -> PresetRegistry:
    """Return the registry of built-in presets."""
    return PresetRegistry([rust.PRESET, python_app.PRESET, go_app.PRESET, docker.PRESET])
