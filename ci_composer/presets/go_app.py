"""Go application preset: go test with optional golangci-lint and gosec."""

from __future__ import annotations

from dataclasses import dataclass

from ci_composer.detection import ProjectType
from ci_composer.document import PresetChoice
from ci_composer.platforms.circleci import (
    CircleCIConfig,
    CircleCIDocker,
    CircleCIJob,
    CircleCIStep,
    CircleCIWorkflow,
    CircleCIWorkflowJob,
    CommandStep,
    RestoreCacheStep,
    RunCommand,
    SaveCacheStep,
    SimpleStep,
)
from ci_composer.platforms.github import GitHubJob, GitHubStep, GitHubWorkflow, branch_triggers
from ci_composer.platforms.gitlab import GitLabCache, GitLabCI, GitLabJob
from ci_composer.platforms.jenkins import JenkinsConfig, JenkinsStage, sh
from ci_composer.presets.base import ChoiceFields, Emitters, PresetDefinition
from ci_composer.presets.options import (
    BoolValue,
    FeatureMeta,
    OptionMeta,
    PresetConfig,
    PresetMeta,
)

PRESET_ID = "go-app"
DOCUMENT_TAG = "GoApp"
DEFAULT_GO_VERSION = "1.21"

TEST_COMMAND = "go test -v ./..."
BUILD_COMMAND = "go build -v ./..."
LINT_COMMAND = "golangci-lint run"
GOSEC_COMMAND = "gosec ./..."
GOSEC_INSTALL = "go install github.com/securego/gosec/v2/cmd/gosec@latest"
GOLANGCI_INSTALL = "go install github.com/golangci/golangci-lint/cmd/golangci-lint@latest"
GO_SUM_CACHE_KEY = 'go-mod-v1-{{ checksum "go.sum" }}'

_DOCUMENT_FIELDS = {
    "enable_linter": "linter",
    "enable_security_scan": "security_scan",
}


@dataclass(frozen=True)
class GoAppPreset:
    """Typed Go application preset configuration."""

    version: str = DEFAULT_GO_VERSION
    enable_linter: bool = False
    enable_security_scan: bool = False


META = PresetMeta(
    preset_id=PRESET_ID,
    display_name="Go App",
    description="CI pipeline for Go applications with testing, linting, and security scanning",
    features=(
        FeatureMeta(
            id="linting",
            display_name="Linting",
            description="Code quality checks",
            options=(
                OptionMeta(
                    id="enable_linter",
                    display_name="Enable Linter",
                    description="Run golangci-lint",
                    default_value=BoolValue(True),
                ),
            ),
        ),
        FeatureMeta(
            id="security",
            display_name="Security",
            description="Static security analysis",
            options=(
                OptionMeta(
                    id="enable_security_scan",
                    display_name="Security Scan",
                    description="Run gosec security scanner",
                    default_value=BoolValue(True),
                ),
            ),
        ),
    ),
)


def from_config(config: PresetConfig, language_version: str) -> GoAppPreset:
    """Build the typed preset from editor options."""
    return GoAppPreset(
        version=language_version,
        enable_linter=config.get_bool("enable_linter"),
        enable_security_scan=config.get_bool("enable_security_scan"),
    )


def to_document(config: PresetConfig, language_version: str | None = None) -> PresetChoice:
    """Export editor options as a document choice."""
    fields: dict[str, object] = {"version": language_version or DEFAULT_GO_VERSION}
    for option_id, field_name in _DOCUMENT_FIELDS.items():
        fields[field_name] = config.get_bool(option_id)
    return PresetChoice(DOCUMENT_TAG, fields)


def from_document(choice: PresetChoice) -> PresetConfig:
    """Load editor options from a document choice."""
    fields = ChoiceFields(choice, {"version", *_DOCUMENT_FIELDS.values()})
    config = PresetConfig(PRESET_ID)
    for option_id, field_name in _DOCUMENT_FIELDS.items():
        config.set(option_id, BoolValue(fields.boolean(field_name)))
    return config


def _setup_steps(preset: GoAppPreset) -> list[GitHubStep]:
    return [
        GitHubStep.checkout(),
        GitHubStep.action("Set up Go", "actions/setup-go@v5", {"go-version": preset.version}),
    ]


def to_github(preset: GoAppPreset) -> GitHubWorkflow:
    """Emit a GitHub Actions workflow."""
    jobs = {
        "go/test": GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.shell("Download dependencies", "go mod download"),
                GitHubStep.shell("Run tests", TEST_COMMAND),
                GitHubStep.shell("Build", BUILD_COMMAND),
            ],
            timeout_minutes=30,
        )
    }
    if preset.enable_linter:
        jobs["go/lint"] = GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.action(
                    "Run golangci-lint", "golangci/golangci-lint-action@v3", {"version": "latest"}
                ),
            ],
            timeout_minutes=10,
        )
    if preset.enable_security_scan:
        jobs["go/security"] = GitHubJob(
            steps=[
                GitHubStep.checkout(),
                GitHubStep.action(
                    "Run Gosec Security Scanner", "securego/gosec@master", {"args": "./..."}
                ),
            ],
            timeout_minutes=10,
        )
    return GitHubWorkflow(name="CI", on=branch_triggers(), jobs=jobs)


def _ordered_commands(preset: GoAppPreset) -> list[str]:
    """Return commands in run order: security scan, lint, tests."""
    commands: list[str] = []
    if preset.enable_security_scan:
        commands.append(GOSEC_COMMAND)
    if preset.enable_linter:
        commands.append(LINT_COMMAND)
    commands.append(TEST_COMMAND)
    return commands


def _tool_installs(preset: GoAppPreset) -> list[str]:
    installs: list[str] = []
    if preset.enable_security_scan:
        installs.append(GOSEC_INSTALL)
    if preset.enable_linter:
        installs.append(GOLANGCI_INSTALL)
    return installs


def to_gitlab(preset: GoAppPreset) -> GitLabCI:
    """Emit a GitLab CI pipeline with a single test job."""
    return GitLabCI(
        stages=["test"],
        jobs={
            "go/test": GitLabJob(
                stage="test",
                image=f"golang:{preset.version}",
                script=_ordered_commands(preset),
                before_script=_tool_installs(preset) or None,
                cache=GitLabCache(key="go-cache", paths=["~/go/pkg/mod"]),
            )
        },
    )


def to_circleci(preset: GoAppPreset) -> CircleCIConfig:
    """Emit a CircleCI configuration with a single test job."""
    names = {GOSEC_COMMAND: "Security scan", LINT_COMMAND: "Lint", TEST_COMMAND: "Run tests"}
    steps: list[CircleCIStep] = [
        SimpleStep("checkout"),
        RestoreCacheStep(keys=[GO_SUM_CACHE_KEY]),
    ]
    steps.extend(CommandStep(install) for install in _tool_installs(preset))
    steps.extend(
        CommandStep(RunCommand(names[command], command)) for command in _ordered_commands(preset)
    )
    steps.append(SaveCacheStep(key=GO_SUM_CACHE_KEY, paths=["/home/circleci/go/pkg/mod"]))
    return CircleCIConfig(
        jobs={
            "go/test": CircleCIJob(
                docker=[CircleCIDocker(image=f"cimg/go:{preset.version}")], steps=steps
            )
        },
        workflows={"ci": CircleCIWorkflow(jobs=[CircleCIWorkflowJob("go/test")])},
    )


def to_jenkins(preset: GoAppPreset) -> JenkinsConfig:
    """Emit a Jenkins pipeline with a single test stage."""
    steps = [sh(command) for command in _tool_installs(preset)]
    steps.extend(sh(command) for command in _ordered_commands(preset))
    return JenkinsConfig(stages=[JenkinsStage("Test", steps)])


PRESET: PresetDefinition[GoAppPreset] = PresetDefinition(
    meta=META,
    document_tag=DOCUMENT_TAG,
    project_types=frozenset({ProjectType.GO_APP, ProjectType.GO_LIBRARY}),
    default_version=DEFAULT_GO_VERSION,
    from_config=from_config,
    to_document=to_document,
    from_document=from_document,
    emitters=Emitters(
        github=to_github,
        gitlab=to_gitlab,
        circleci=to_circleci,
        jenkins=to_jenkins,
    ),
)
