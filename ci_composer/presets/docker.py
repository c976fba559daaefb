"""Docker image preset: buildx builds with optional registry push and layer caching."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from ci_composer.detection import ProjectType, find_dockerfiles
from ci_composer.document import PresetChoice
from ci_composer.platforms.base import default_branches, default_tag_patterns
from ci_composer.platforms.circleci import (
    CircleCIConfig,
    CircleCIDocker,
    CircleCIJob,
    CircleCIStep,
    CircleCIWorkflow,
    CircleCIWorkflowJob,
    CommandStep,
    RunCommand,
    SimpleStep,
)
from ci_composer.platforms.github import (
    DetailedTriggers,
    GitHubJob,
    GitHubStep,
    GitHubTriggerConfig,
    GitHubWorkflow,
)
from ci_composer.platforms.gitlab import GitLabCI, GitLabJob, GitLabOnly
from ci_composer.platforms.jenkins import JenkinsConfig, JenkinsStage, sh
from ci_composer.presets.base import ChoiceFields, Emitters, PresetDefinition
from ci_composer.presets.options import (
    BoolValue,
    FeatureMeta,
    OptionMeta,
    PresetConfig,
    PresetMeta,
    StringValue,
    optional_enum_value,
    parse_optional_enum,
)

PRESET_ID = "docker"
DOCUMENT_TAG = "Docker"
DEFAULT_IMAGE_NAME = "myapp"
DEFAULT_DOCKERFILE = "./Dockerfile"
DEFAULT_BUILD_CONTEXT = "."

METADATA_TAGS = "\n".join(
    [
        "type=ref,event=branch",
        "type=ref,event=pr",
        "type=semver,pattern={{version}}",
        "type=semver,pattern={{major}}.{{minor}}",
    ]
)

_DOCUMENT_FIELDS = {
    "image_name",
    "registry",
    "cache",
    "push_on_tags_only",
    "dockerfile_path",
    "build_context",
    "build_args",
}


class DockerRegistry(str, Enum):
    """Container registries images can be pushed to."""

    DOCKERHUB = "dockerhub"
    GITHUB = "github"

    @property
    def shell_login(self) -> str:
        """Return the password-on-stdin login command used outside GitHub Actions."""
        if self is DockerRegistry.DOCKERHUB:
            return "echo $DOCKER_PASSWORD | docker login -u $DOCKER_USERNAME --password-stdin"
        return "echo $GITHUB_TOKEN | docker login ghcr.io -u $GITHUB_USERNAME --password-stdin"

    def qualify(self, image_name: str) -> str:
        """Return the image reference pushed by shell-based emitters."""
        if self is DockerRegistry.DOCKERHUB:
            return f"$DOCKER_USERNAME/{image_name}"
        return f"ghcr.io/$GITHUB_USERNAME/{image_name}"


@dataclass(frozen=True)
class DockerPreset:
    """Typed Docker preset configuration.

    ``dockerfile_path``, ``build_context`` and ``build_args`` are only
    settable from the document; the editor leaves them at their defaults.
    """

    image_name: str = DEFAULT_IMAGE_NAME
    registry: DockerRegistry | None = None
    enable_cache: bool = False
    push_on_tags_only: bool = False
    dockerfile_path: str = DEFAULT_DOCKERFILE
    build_context: str = DEFAULT_BUILD_CONTEXT
    build_args: tuple[tuple[str, str], ...] = ()

    @property
    def pushes(self) -> bool:
        return self.registry is not None

    @property
    def image_ref(self) -> str:
        if self.registry is None:
            return self.image_name
        return self.registry.qualify(self.image_name)


META = PresetMeta(
    preset_id=PRESET_ID,
    display_name="Docker",
    description="Build and push Docker images with multi-platform support",
    features=(
        FeatureMeta(
            id="configuration",
            display_name="Configuration",
            description="Image naming",
            options=(
                OptionMeta(
                    id="image_name",
                    display_name="Image Name",
                    description="Name of the Docker image to build",
                    default_value=StringValue(DEFAULT_IMAGE_NAME),
                ),
            ),
        ),
        FeatureMeta(
            id="registry",
            display_name="Registry",
            description="Where built images are pushed",
            options=(
                OptionMeta(
                    id="registry",
                    display_name="Registry",
                    description="Push target: dockerhub, github (ghcr.io) or none",
                    default_value=optional_enum_value(DockerRegistry, None),
                ),
            ),
        ),
        FeatureMeta(
            id="optimization",
            display_name="Optimization",
            description="Build speed and publishing policy",
            options=(
                OptionMeta(
                    id="enable_cache",
                    display_name="Layer Cache",
                    description="Reuse build layers through the GitHub Actions cache",
                    default_value=BoolValue(True),
                ),
                OptionMeta(
                    id="push_on_tags_only",
                    display_name="Push On Tags Only",
                    description="Only publish images for version tags",
                    default_value=BoolValue(False),
                ),
            ),
        ),
    ),
)


def from_config(config: PresetConfig, language_version: str) -> DockerPreset:
    """Build the typed preset from editor options; there is no language version."""
    return DockerPreset(
        image_name=config.get_string("image_name") or DEFAULT_IMAGE_NAME,
        registry=parse_optional_enum(DockerRegistry, config.get_enum("registry")),
        enable_cache=config.get_bool("enable_cache"),
        push_on_tags_only=config.get_bool("push_on_tags_only"),
    )


def to_document(config: PresetConfig, language_version: str | None = None) -> PresetChoice:
    """Export editor options as a document choice."""
    registry = parse_optional_enum(DockerRegistry, config.get_enum("registry"))
    return PresetChoice(
        DOCUMENT_TAG,
        {
            "image_name": config.get_string("image_name") or DEFAULT_IMAGE_NAME,
            "registry": registry.value if registry is not None else None,
            "cache": config.get_bool("enable_cache"),
            "push_on_tags_only": config.get_bool("push_on_tags_only"),
        },
    )


def from_document(choice: PresetChoice) -> PresetConfig:
    """Load editor options from a document choice."""
    fields = ChoiceFields(choice, _DOCUMENT_FIELDS)
    config = PresetConfig(PRESET_ID)
    config.set("image_name", StringValue(fields.string("image_name", DEFAULT_IMAGE_NAME)))
    config.set(
        "registry",
        optional_enum_value(DockerRegistry, fields.optional_enum("registry", DockerRegistry)),
    )
    config.set("enable_cache", BoolValue(fields.boolean("cache")))
    config.set("push_on_tags_only", BoolValue(fields.boolean("push_on_tags_only")))
    return config


def apply_document(preset: DockerPreset, choice: PresetChoice) -> DockerPreset:
    """Overlay the build location and build arguments from ``choice``."""
    fields = ChoiceFields(choice, _DOCUMENT_FIELDS)
    return replace(
        preset,
        dockerfile_path=fields.string("dockerfile_path", DEFAULT_DOCKERFILE),
        build_context=fields.string("build_context", DEFAULT_BUILD_CONTEXT),
        build_args=fields.string_pairs("build_args"),
    )


def matches_directory(path: Path) -> bool:
    """Match any directory holding a Dockerfile variant."""
    return bool(find_dockerfiles(path))


def _build_command(preset: DockerPreset) -> str:
    parts = ["docker build", f"-t {preset.image_ref}", f"-f {preset.dockerfile_path}"]
    parts.extend(f"--build-arg {key}={value}" for key, value in preset.build_args)
    parts.append(preset.build_context)
    return " ".join(parts)


def _push_command(preset: DockerPreset) -> str:
    return f"docker push {preset.image_ref}"


def _login_step(registry: DockerRegistry) -> GitHubStep:
    if registry is DockerRegistry.DOCKERHUB:
        return GitHubStep.action(
            "Login to Docker Hub",
            "docker/login-action@v3",
            {
                "username": "${{ secrets.DOCKER_USERNAME }}",
                "password": "${{ secrets.DOCKER_PASSWORD }}",
            },
        )
    return GitHubStep.action(
        "Login to GitHub Container Registry",
        "docker/login-action@v3",
        {
            "registry": "ghcr.io",
            "username": "${{ github.actor }}",
            "password": "${{ secrets.GITHUB_TOKEN }}",
        },
    )


def _github_triggers(preset: DockerPreset) -> DetailedTriggers:
    if preset.push_on_tags_only:
        push = GitHubTriggerConfig(tags=default_tag_patterns())
    else:
        push = GitHubTriggerConfig(branches=default_branches(), tags=default_tag_patterns())
    return DetailedTriggers(
        {
            "push": push,
            "pull_request": GitHubTriggerConfig(branches=default_branches()),
        }
    )


def to_github(preset: DockerPreset) -> GitHubWorkflow:
    """Emit a GitHub Actions workflow with a single build job."""
    steps = [
        GitHubStep.checkout(),
        GitHubStep.action("Set up Docker Buildx", "docker/setup-buildx-action@v3"),
    ]
    if preset.registry is not None:
        steps.append(_login_step(preset.registry))
    images = preset.image_name
    if preset.registry is DockerRegistry.GITHUB:
        images = f"ghcr.io/${{{{ github.repository_owner }}}}/{preset.image_name}"
    steps.append(
        GitHubStep.action(
            "Extract Docker metadata",
            "docker/metadata-action@v5",
            {"images": images, "tags": METADATA_TAGS},
            step_id="meta",
        )
    )
    build: dict[str, object] = {
        "context": preset.build_context,
        "file": preset.dockerfile_path,
        "tags": "${{ steps.meta.outputs.tags }}",
        "labels": "${{ steps.meta.outputs.labels }}",
    }
    if preset.pushes:
        build["push"] = "true"
    if preset.enable_cache:
        build["cache-from"] = "type=gha"
        build["cache-to"] = "type=gha,mode=max"
    if preset.build_args:
        build["build-args"] = "\n".join(f"{key}={value}" for key, value in preset.build_args)
    steps.append(
        GitHubStep.action("Build and push Docker image", "docker/build-push-action@v5", build)
    )
    return GitHubWorkflow(
        name="Docker Build and Push",
        on=_github_triggers(preset),
        jobs={"docker/build": GitHubJob(steps=steps, timeout_minutes=30)},
    )


def to_gitlab(preset: DockerPreset) -> GitLabCI:
    """Emit a GitLab CI pipeline with a single build job."""
    script = [preset.registry.shell_login] if preset.registry is not None else []
    script.append(_build_command(preset))
    if preset.pushes:
        script.append(_push_command(preset))
    return GitLabCI(
        stages=["build"],
        jobs={
            "docker/build": GitLabJob(
                stage="build",
                image="docker:latest",
                script=script,
                only=GitLabOnly(refs=["tags"]) if preset.push_on_tags_only else None,
            )
        },
    )


def to_circleci(preset: DockerPreset) -> CircleCIConfig:
    """Emit a CircleCI configuration using a remote Docker engine."""
    steps: list[CircleCIStep] = [SimpleStep("checkout"), SimpleStep("setup_remote_docker")]
    if preset.registry is not None:
        steps.append(CommandStep(preset.registry.shell_login))
    steps.append(CommandStep(RunCommand("Build Docker image", _build_command(preset))))
    if preset.pushes:
        steps.append(CommandStep(RunCommand("Push Docker image", _push_command(preset))))
    return CircleCIConfig(
        jobs={
            "docker/build": CircleCIJob(
                docker=[CircleCIDocker(image="cimg/base:stable")], steps=steps
            )
        },
        workflows={"ci": CircleCIWorkflow(jobs=[CircleCIWorkflowJob("docker/build")])},
    )


def to_jenkins(preset: DockerPreset) -> JenkinsConfig:
    """Emit a Jenkins pipeline with a single build stage."""
    steps: list[str] = []
    if preset.registry is not None:
        steps.append(sh(preset.registry.shell_login))
    steps.append(sh(_build_command(preset)))
    if preset.pushes:
        steps.append(sh(_push_command(preset)))
    return JenkinsConfig(stages=[JenkinsStage("Docker Build", steps)])


PRESET: PresetDefinition[DockerPreset] = PresetDefinition(
    meta=META,
    document_tag=DOCUMENT_TAG,
    project_types=frozenset({ProjectType.DOCKER_IMAGE}),
    default_version=None,
    from_config=from_config,
    to_document=to_document,
    from_document=from_document,
    emitters=Emitters(
        github=to_github,
        gitlab=to_gitlab,
        circleci=to_circleci,
        jenkins=to_jenkins,
    ),
    apply_document=apply_document,
    matches_directory=matches_directory,
)
