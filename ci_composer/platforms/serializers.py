"""Serialize platform models to the text each CI service reads."""

from __future__ import annotations

from typing import Any

import yaml

from ci_composer.errors import InternalError
from ci_composer.platforms.base import Platform
from ci_composer.platforms.circleci import CircleCIConfig
from ci_composer.platforms.github import GitHubWorkflow
from ci_composer.platforms.gitlab import GitLabCI
from ci_composer.platforms.jenkins import JenkinsConfig

PlatformModel = GitHubWorkflow | GitLabCI | CircleCIConfig | JenkinsConfig


class _BlockDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors and keeps multi-line strings readable."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_BlockDumper.add_representer(str, _represent_str)


def to_yaml(data: dict[str, object]) -> str:
    """Dump a mapping as block YAML, keeping insertion order."""
    return yaml.dump(
        data,
        Dumper=_BlockDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=4096,
    )


def jenkins_to_string(config: JenkinsConfig) -> str:
    """Render a Jenkins declarative pipeline."""
    parts = [f"pipeline {{\n    agent {{\n        label '{config.agent}'\n    }}\n\n"]
    if config.environment:
        parts.append("    environment {\n")
        for key, value in config.environment:
            parts.append(f"        {key} = '{value}'\n")
        parts.append("    }\n\n")
    parts.append("    stages {\n")
    for stage in config.stages:
        parts.append(f"        stage('{stage.name}') {{\n")
        parts.append("            steps {\n")
        for step in stage.steps:
            parts.append(f"                {step}\n")
        parts.append("            }\n")
        parts.append("        }\n")
    parts.append("    }\n}\n")
    return "".join(parts)


def serialize(platform: Platform, model: PlatformModel) -> str:
    """Serialize a platform model, checking it matches the requested platform."""
    if platform is Platform.JENKINS:
        if not isinstance(model, JenkinsConfig):
            raise InternalError(f"Jenkins serializer received {type(model).__name__}")
        return jenkins_to_string(model)
    expected: dict[Platform, type] = {
        Platform.GITHUB: GitHubWorkflow,
        Platform.GITEA: GitHubWorkflow,
        Platform.GITLAB: GitLabCI,
        Platform.CIRCLECI: CircleCIConfig,
    }
    if not isinstance(model, expected[platform]):
        raise InternalError(
            f"{platform.display_name} serializer received {type(model).__name__}"
        )
    return to_yaml(model.to_dict())  # type: ignore[union-attr]
