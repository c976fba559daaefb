"""Project-type detection and discovery of existing CI files.

Detectors inspect build manifests in a working directory and run in a fixed
order: Rust, Python, Go, then Docker. The first one that recognizes the
directory wins.
"""

from __future__ import annotations

import re
import tomllib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from ci_composer.errors import ProjectDetectionError
from ci_composer.logging_utils import get_logger
from ci_composer.platforms.base import Platform

DOCKERFILE_NAMES = (
    "Dockerfile",
    "dockerfile",
    "Dockerfile.dev",
    "Dockerfile.prod",
    "Dockerfile.build",
)
COMPOSE_FILE_NAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

DEFAULT_PYTHON_VERSION = "3.11"
DEFAULT_GO_VERSION = "1.21"

_LOGGER = get_logger("detection")


class ProjectType(str, Enum):
    """Coarse classification of a repository."""

    RUST_BINARY = "rust-binary"
    RUST_LIBRARY = "rust-library"
    RUST_WORKSPACE = "rust-workspace"
    PYTHON_APP = "python-app"
    PYTHON_LIBRARY = "python-library"
    GO_APP = "go-app"
    GO_LIBRARY = "go-library"
    DOCKER_IMAGE = "docker-image"

    @property
    def display_name(self) -> str:
        """Return a readable label such as ``Rust Binary``."""
        return self.value.replace("-", " ").title()


@dataclass(frozen=True)
class DetectionResult:
    """Detected project type, language version and detector notes."""

    project_type: ProjectType
    language_version: str | None
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Serialize the result for logs and CLI output."""
        return {
            "project_type": self.project_type.value,
            "language_version": self.language_version,
            "metadata": dict(self.metadata),
        }


class ProjectDetector(ABC):
    """Detector contract: recognize a directory or return None."""

    name: str

    @abstractmethod
    def detect(self, path: Path) -> DetectionResult | None:
        """Return a detection result when the directory matches."""


class RustDetector(ProjectDetector):
    """Recognize Cargo projects."""

    name = "Rust"

    def detect(self, path: Path) -> DetectionResult | None:
        manifest_path = path / "Cargo.toml"
        if not manifest_path.is_file():
            return None
        try:
            manifest = tomllib.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            _LOGGER.warning("Unreadable Cargo.toml at %s: %s", manifest_path, exc)
            manifest = {}
        package = manifest.get("package", {})
        version = package.get("rust-version") if isinstance(package, dict) else None
        language_version = version if isinstance(version, str) else None
        metadata: dict[str, str] = {}
        if isinstance(package, dict) and isinstance(package.get("name"), str):
            metadata["name"] = package["name"]

        workspace = manifest.get("workspace")
        if isinstance(workspace, dict):
            members = [str(member) for member in workspace.get("members", [])]
            metadata["type"] = "workspace"
            metadata["members"] = ", ".join(members)
            metadata["member_count"] = str(len(members))
            return DetectionResult(ProjectType.RUST_WORKSPACE, language_version, metadata)
        if "lib" in manifest or (path / "src" / "lib.rs").is_file():
            metadata["type"] = "library"
            return DetectionResult(ProjectType.RUST_LIBRARY, language_version, metadata)
        metadata["type"] = "binary"
        return DetectionResult(ProjectType.RUST_BINARY, language_version, metadata)


class PythonDetector(ProjectDetector):
    """Recognize Python projects by packaging or requirements files."""

    name = "Python"

    def detect(self, path: Path) -> DetectionResult | None:
        markers = [
            name
            for name in ("pyproject.toml", "setup.py", "requirements.txt")
            if (path / name).is_file()
        ]
        if not markers:
            return None
        metadata = {"config": markers[0]}
        is_app = (path / "main.py").is_file() or (path / "__main__.py").is_file()
        project_type = ProjectType.PYTHON_APP if is_app else ProjectType.PYTHON_LIBRARY
        return DetectionResult(project_type, DEFAULT_PYTHON_VERSION, metadata)


class GoDetector(ProjectDetector):
    """Recognize Go modules."""

    name = "Go"

    def detect(self, path: Path) -> DetectionResult | None:
        go_mod = path / "go.mod"
        if not go_mod.is_file():
            return None
        metadata: dict[str, str] = {}
        language_version = DEFAULT_GO_VERSION
        try:
            content = go_mod.read_text(encoding="utf-8")
        except OSError as exc:
            _LOGGER.warning("Unreadable go.mod at %s: %s", go_mod, exc)
            content = ""
        for line in content.splitlines():
            if line.startswith("module "):
                metadata["module"] = line.removeprefix("module ").strip()
            elif line.startswith("go "):
                language_version = line.removeprefix("go ").strip()
                metadata["go_version"] = language_version
        is_app = (path / "main.go").is_file() or (path / "cmd").is_dir()
        project_type = ProjectType.GO_APP if is_app else ProjectType.GO_LIBRARY
        return DetectionResult(project_type, language_version, metadata)


class DockerDetector(ProjectDetector):
    """Recognize directories that build a container image."""

    name = "Docker"

    def detect(self, path: Path) -> DetectionResult | None:
        dockerfiles = find_dockerfiles(path)
        compose_file = next(
            (name for name in COMPOSE_FILE_NAMES if (path / name).is_file()),
            None,
        )
        if not dockerfiles and compose_file is None:
            return None
        metadata: dict[str, str] = {}
        if compose_file is not None:
            metadata["compose_file"] = compose_file
        if dockerfiles:
            metadata["dockerfile"] = dockerfiles[0]
            if len(dockerfiles) > 1:
                metadata["dockerfiles"] = ", ".join(dockerfiles)
            base_image = _extract_base_image(path / dockerfiles[0])
            if base_image is not None:
                metadata["base_image"] = base_image
        return DetectionResult(ProjectType.DOCKER_IMAGE, None, metadata)


def find_dockerfiles(path: Path) -> list[str]:
    """Return the Dockerfile variants present directly in ``path``."""
    try:
        present = {entry.name for entry in path.iterdir() if entry.is_file()}
    except OSError:
        return []
    return [name for name in DOCKERFILE_NAMES if name in present]


def _extract_base_image(dockerfile: Path) -> str | None:
    try:
        content = dockerfile.read_text(encoding="utf-8")
    except OSError:
        return None
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            continue
        match = re.match(r"(?i)FROM\s+(?:--\S+\s+)*(\S+)", stripped)
        if match:
            return match.group(1)
    return None


def default_detectors() -> list[ProjectDetector]:
    """Return detectors in priority order."""
    return [RustDetector(), PythonDetector(), GoDetector(), DockerDetector()]


def detect_project(path: Path, detectors: list[ProjectDetector] | None = None) -> DetectionResult:
    """Detect the project type of ``path`` or raise ProjectDetectionError."""
    for detector in detectors or default_detectors():
        result = detector.detect(path)
        if result is not None:
            _LOGGER.info("Detected %s project in %s", result.project_type.value, path)
            return result
    raise ProjectDetectionError(path)


def try_detect_project(path: Path) -> DetectionResult | None:
    """Detect the project type of ``path``, returning None when nothing matches."""
    try:
        return detect_project(path)
    except ProjectDetectionError:
        _LOGGER.info("No project type detected in %s", path)
        return None


def existing_ci_files(path: Path) -> dict[Platform, Path]:
    """Return the platform output files that already exist under ``path``."""
    found: dict[Platform, Path] = {}
    for platform in Platform:
        candidate = path / platform.output_path
        if candidate.is_file():
            found[platform] = candidate
        elif platform.multi_file and candidate.parent.is_dir():
            workflows = sorted(candidate.parent.glob("*.yml")) + sorted(
                candidate.parent.glob("*.yaml")
            )
            if workflows:
                found[platform] = workflows[0]
    return found


@dataclass(frozen=True)
class CiMarkers:
    """How a preset shows up in existing CI files."""

    job_prefix: str
    jenkins_markers: tuple[str, ...]


def recognize_presets(path: Path, markers: Mapping[str, CiMarkers]) -> list[str]:
    """Return ids of presets whose jobs or commands appear in the CI file at ``path``.

    YAML files are matched by ``<prefix>/`` job ids, Jenkinsfiles by command
    substrings. Unreadable or malformed files match nothing.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Unreadable CI file %s: %s", path, exc)
        return []
    if path.name == "Jenkinsfile":
        return [
            preset_id
            for preset_id, hints in markers.items()
            if any(marker in content for marker in hints.jenkins_markers)
        ]
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        _LOGGER.warning("Malformed CI file %s: %s", path, exc)
        return []
    if not isinstance(data, dict):
        return []
    job_ids = [str(key) for key in data]
    if isinstance(data.get("jobs"), dict):
        job_ids.extend(str(key) for key in data["jobs"])
    return [
        preset_id
        for preset_id, hints in markers.items()
        if any(job_id.startswith(f"{hints.job_prefix}/") for job_id in job_ids)
    ]
