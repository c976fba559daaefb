"""Target CI platforms and helpers shared by the platform models."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import PurePosixPath

DEFAULT_BRANCHES = ("main", "master")
DEFAULT_TAG_PATTERNS = ("v*",)
UBUNTU_LATEST = "ubuntu-latest"


class Platform(str, Enum):
    """CI service a configuration file can be emitted for."""

    GITHUB = "github"
    GITEA = "gitea"
    GITLAB = "gitlab"
    CIRCLECI = "circleci"
    JENKINS = "jenkins"

    @property
    def display_name(self) -> str:
        """Return the human-readable platform name."""
        return _DISPLAY_NAMES[self]

    @property
    def output_path(self) -> PurePosixPath:
        """Return the file path, relative to the repository root, the platform reads."""
        return _OUTPUT_PATHS[self]

    @property
    def multi_file(self) -> bool:
        """Return True when the platform reads every file in a workflows directory."""
        return self in {Platform.GITHUB, Platform.GITEA}

    @classmethod
    def parse(cls, value: str | None) -> Platform:
        """Map a user-supplied platform name to a platform, falling back to GitHub."""
        if value is None:
            return cls.GITHUB
        normalized = value.strip().lower()
        for platform in cls:
            if platform.value == normalized:
                return platform
        return cls.GITHUB


_DISPLAY_NAMES = {
    Platform.GITHUB: "GitHub Actions",
    Platform.GITEA: "Gitea Actions",
    Platform.GITLAB: "GitLab CI",
    Platform.CIRCLECI: "CircleCI",
    Platform.JENKINS: "Jenkins",
}

_OUTPUT_PATHS = {
    Platform.GITHUB: PurePosixPath(".github/workflows/ci.yml"),
    Platform.GITEA: PurePosixPath(".gitea/workflows/ci.yml"),
    Platform.GITLAB: PurePosixPath(".gitlab-ci.yml"),
    Platform.CIRCLECI: PurePosixPath(".circleci/config.yml"),
    Platform.JENKINS: PurePosixPath("Jenkinsfile"),
}


def compact_mapping(pairs: Iterable[tuple[str, object]]) -> dict[str, object]:
    """Build an ordered mapping, omitting keys whose value is unset."""
    return {key: value for key, value in pairs if value is not None}


def default_branches() -> list[str]:
    """Return a fresh copy of the default trigger branches."""
    return list(DEFAULT_BRANCHES)


def default_tag_patterns() -> list[str]:
    """Return a fresh copy of the default release tag patterns."""
    return list(DEFAULT_TAG_PATTERNS)
