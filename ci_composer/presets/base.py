"""Preset definition record and helpers for reading document fields.

Each preset module builds one ``PresetDefinition``: static metadata plus
explicit conversion functions between ``PresetConfig``, the typed preset
instance and ``PresetChoice``, and one emitter per platform model.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from ci_composer.detection import ProjectType
from ci_composer.document import PresetChoice
from ci_composer.errors import InternalError, SourceDocumentSemanticsError
from ci_composer.platforms.base import Platform
from ci_composer.platforms.circleci import CircleCIConfig
from ci_composer.platforms.github import GitHubWorkflow
from ci_composer.platforms.gitlab import GitLabCI
from ci_composer.platforms.jenkins import JenkinsConfig
from ci_composer.platforms.serializers import PlatformModel, serialize
from ci_composer.presets.options import PresetConfig, PresetMeta

InstanceT = TypeVar("InstanceT")
EnumT = TypeVar("EnumT", bound=Enum)


@dataclass(frozen=True)
class Emitters(Generic[InstanceT]):
    """Platform emitters of one preset; Gitea reuses the GitHub emitter."""

    github: Callable[[InstanceT], GitHubWorkflow]
    gitlab: Callable[[InstanceT], GitLabCI]
    circleci: Callable[[InstanceT], CircleCIConfig]
    jenkins: Callable[[InstanceT], JenkinsConfig]

    def emit(self, instance: InstanceT, platform: Platform) -> PlatformModel:
        """Build the platform model for ``instance``."""
        if platform in {Platform.GITHUB, Platform.GITEA}:
            return self.github(instance)
        if platform is Platform.GITLAB:
            return self.gitlab(instance)
        if platform is Platform.CIRCLECI:
            return self.circleci(instance)
        return self.jenkins(instance)


@dataclass(frozen=True)
class PresetDefinition(Generic[InstanceT]):
    """Everything the registry, editor and generator need to know about a preset."""

    meta: PresetMeta
    document_tag: str
    project_types: frozenset[ProjectType]
    default_version: str | None
    from_config: Callable[[PresetConfig, str], InstanceT]
    to_document: Callable[[PresetConfig, str | None], PresetChoice]
    from_document: Callable[[PresetChoice], PresetConfig]
    emitters: Emitters[InstanceT]
    apply_document: Callable[[InstanceT, PresetChoice], InstanceT] | None = None
    matches_directory: Callable[[Path], bool] | None = None

    @property
    def preset_id(self) -> str:
        return self.meta.preset_id

    def matches_project(self, project_type: ProjectType | None, working_dir: Path) -> bool:
        """Return True when the preset applies to the detected project."""
        if project_type is not None and project_type in self.project_types:
            return True
        return self.matches_directory is not None and self.matches_directory(working_dir)

    def default_config(self, detected: bool) -> PresetConfig:
        """Return declared defaults, or booleans switched off when not detected."""
        config = PresetConfig(self.preset_id)
        for option in self.meta.iter_options():
            config.set(option.id, option.default_value if detected else option.off_value())
        return config

    def resolve_version(self, language_version: str | None) -> str:
        """Return the language version to emit, falling back to the preset default."""
        if language_version:
            return language_version
        return self.default_version or ""

    def build_instance(self, config: PresetConfig, language_version: str | None) -> InstanceT:
        """Build the typed instance for ``config`` after checking its keys."""
        self.check_config(config)
        return self.from_config(config, self.resolve_version(language_version))

    def check_config(self, config: PresetConfig) -> None:
        """Raise InternalError when ``config`` does not belong to this preset."""
        if config.preset_id != self.preset_id:
            raise InternalError(f"config for '{config.preset_id}' passed to '{self.preset_id}'")
        for option in self.meta.iter_options():
            value = config.get(option.id)
            if value is not None and type(value) is not type(option.default_value):
                raise InternalError(
                    f"option '{option.id}' of {self.preset_id} holds {type(value).__name__}"
                )

    def overlay(self, instance: InstanceT, choice: PresetChoice) -> InstanceT:
        """Apply document-only fields of ``choice`` that the editor does not expose."""
        if self.apply_document is None:
            return instance
        return self.apply_document(instance, choice)

    def render(self, instance: InstanceT, platform: Platform) -> str:
        """Emit and serialize ``instance`` for ``platform``."""
        return serialize(platform, self.emitters.emit(instance, platform))

    def generate(
        self, config: PresetConfig, platform: Platform, language_version: str | None
    ) -> str:
        """Generate the CI file text for ``config`` on ``platform``."""
        return self.render(self.build_instance(config, language_version), platform)


class ChoiceFields:
    """Typed access to the fields of one document choice, with error reporting."""

    def __init__(self, choice: PresetChoice, allowed: set[str]) -> None:
        unknown = sorted(set(choice.fields) - allowed)
        if unknown:
            raise SourceDocumentSemanticsError(
                f"{choice.tag}: unknown fields {', '.join(unknown)}; "
                f"expected: {', '.join(sorted(allowed))}"
            )
        self._choice = choice

    def _raw(self, name: str) -> Any:
        return self._choice.fields.get(name)

    def _type_error(self, name: str, expected: str) -> SourceDocumentSemanticsError:
        return SourceDocumentSemanticsError(
            f"{self._choice.tag}.{name} must be {expected}, got {self._raw(name)!r}"
        )

    def boolean(self, name: str) -> bool:
        """Return a boolean field, False when absent."""
        value = self._raw(name)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise self._type_error(name, "true or false")
        return value

    def string(self, name: str, default: str) -> str:
        """Return a string field, ``default`` when absent."""
        value = self._raw(name)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, str | int | float):
            raise self._type_error(name, "a string")
        return str(value)

    def enum(self, name: str, enum_type: type[EnumT], default: EnumT) -> EnumT:
        """Return an enum field, ``default`` when absent."""
        value = self._raw(name)
        if value is None:
            return default
        return self._parse_variant(name, enum_type, value)

    def optional_enum(self, name: str, enum_type: type[EnumT]) -> EnumT | None:
        """Return an optional enum field; absence and null both mean None."""
        value = self._raw(name)
        if value is None:
            return None
        return self._parse_variant(name, enum_type, value)

    def _parse_variant(self, name: str, enum_type: type[EnumT], value: Any) -> EnumT:
        variants = ", ".join(str(item.value) for item in enum_type)
        if not isinstance(value, str):
            raise self._type_error(name, f"one of: {variants}")
        try:
            return enum_type(value.lower())
        except ValueError as exc:
            raise SourceDocumentSemanticsError(
                f"{self._choice.tag}.{name}: unknown variant '{value}'; expected one of: {variants}"
            ) from exc

    def string_pairs(self, name: str) -> tuple[tuple[str, str], ...]:
        """Return an ordered mapping field as key/value pairs, empty when absent."""
        value = self._raw(name)
        if value is None:
            return ()
        if not isinstance(value, Mapping):
            raise self._type_error(name, "a mapping of names to values")
        return tuple((str(key), str(item)) for key, item in value.items())
