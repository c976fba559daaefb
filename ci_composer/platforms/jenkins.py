"""Jenkins declarative pipeline model."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class JenkinsStage:
    """Named stage holding raw pipeline step lines."""

    name: str
    steps: list[str]


@dataclass(frozen=True)
class JenkinsConfig:
    """Complete Jenkinsfile pipeline."""

    stages: list[JenkinsStage]
    agent: str = "any"
    environment: list[tuple[str, str]] = field(default_factory=list)


def sh(command: str) -> str:
    """Wrap a shell command in a single-quoted ``sh`` step."""
    escaped = command.replace("\\", "\\\\").replace("'", "\\'")
    return f"sh '{escaped}'"
