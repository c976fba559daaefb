"""Python application preset: pytest plus optional linter, formatter and mypy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

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
    RunCommand,
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
    optional_enum_value,
    parse_optional_enum,
)

PRESET_ID = "python-app"
DOCUMENT_TAG = "Python"
DEFAULT_PYTHON_VERSION = "3.11"

INSTALL_REQUIREMENTS = "pip install -r requirements.txt"
TEST_COMMAND = "pytest"
TYPE_CHECK_COMMAND = "mypy ."


class PythonLinter(str, Enum):
    """Supported Python linters."""

    FLAKE8 = "flake8"
    RUFF = "ruff"

    @property
    def check_command(self) -> str:
        return {PythonLinter.FLAKE8: "flake8 .", PythonLinter.RUFF: "ruff check ."}[self]


class PythonFormatter(str, Enum):
    """Supported Python format checkers."""

    BLACK = "black"
    RUFF = "ruff"

    @property
    def check_command(self) -> str:
        return {
            PythonFormatter.BLACK: "black --check .",
            PythonFormatter.RUFF: "ruff format --check .",
        }[self]


@dataclass(frozen=True)
class PythonAppPreset:
    """Typed Python application preset configuration."""

    version: str = DEFAULT_PYTHON_VERSION
    linter: PythonLinter | None = None
    enable_type_check: bool = False
    formatter: PythonFormatter | None = None


META = PresetMeta(
    preset_id=PRESET_ID,
    display_name="Python App",
    description="CI pipeline for Python applications with pytest, linting, and type checking",
    features=(
        FeatureMeta(
            id="testing",
            display_name="Testing",
            description="Test execution and static type checks",
            options=(
                OptionMeta(
                    id="enable_type_check",
                    display_name="Type Checking",
                    description="Run mypy static type checking",
                    default_value=BoolValue(True),
                ),
            ),
        ),
        FeatureMeta(
            id="linting",
            display_name="Linting",
            description="Code quality checks",
            options=(
                OptionMeta(
                    id="linter",
                    display_name="Linter",
                    description="Linter to run: flake8 or ruff",
                    default_value=optional_enum_value(PythonLinter, None),
                ),
            ),
        ),
        FeatureMeta(
            id="formatting",
            display_name="Formatting",
            description="Code style enforcement",
            options=(
                OptionMeta(
                    id="formatter",
                    display_name="Formatter",
                    description="Format checker to run: black or ruff",
                    default_value=optional_enum_value(PythonFormatter, None),
                ),
            ),
        ),
    ),
)

_DOCUMENT_FIELDS = {"version", "linter", "type_check", "formatter"}


def from_config(config: PresetConfig, language_version: str) -> PythonAppPreset:
    """Build the typed preset from editor options."""
    return PythonAppPreset(
        version=language_version,
        linter=parse_optional_enum(PythonLinter, config.get_enum("linter")),
        enable_type_check=config.get_bool("enable_type_check"),
        formatter=parse_optional_enum(PythonFormatter, config.get_enum("formatter")),
    )


def to_document(config: PresetConfig, language_version: str | None = None) -> PresetChoice:
    """Export editor options as a document choice; unset tools are left out."""
    linter = parse_optional_enum(PythonLinter, config.get_enum("linter"))
    formatter = parse_optional_enum(PythonFormatter, config.get_enum("formatter"))
    return PresetChoice(
        DOCUMENT_TAG,
        {
            "version": language_version or DEFAULT_PYTHON_VERSION,
            "linter": linter.value if linter is not None else None,
            "type_check": config.get_bool("enable_type_check"),
            "formatter": formatter.value if formatter is not None else None,
        },
    )


def from_document(choice: PresetChoice) -> PresetConfig:
    """Load editor options from a document choice."""
    fields = ChoiceFields(choice, _DOCUMENT_FIELDS)
    config = PresetConfig(PRESET_ID)
    config.set("enable_type_check", BoolValue(fields.boolean("type_check")))
    config.set(
        "linter", optional_enum_value(PythonLinter, fields.optional_enum("linter", PythonLinter))
    )
    config.set(
        "formatter",
        optional_enum_value(PythonFormatter, fields.optional_enum("formatter", PythonFormatter)),
    )
    return config


def _setup_steps(preset: PythonAppPreset) -> list[GitHubStep]:
    return [
        GitHubStep.checkout(),
        GitHubStep.action(
            "Set up Python", "actions/setup-python@v5", {"python-version": preset.version}
        ),
    ]


def to_github(preset: PythonAppPreset) -> GitHubWorkflow:
    """Emit a GitHub Actions workflow with one job per enabled check."""
    jobs = {
        "python/test": GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.shell("Install dependencies", INSTALL_REQUIREMENTS),
                GitHubStep.shell("Run tests", TEST_COMMAND),
            ],
            timeout_minutes=30,
        )
    }
    if preset.linter is not None:
        linter = preset.linter.value
        jobs["python/lint"] = GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.shell(f"Install {linter}", f"pip install {linter}"),
                GitHubStep.shell(f"Run {linter}", preset.linter.check_command),
            ],
            timeout_minutes=10,
        )
    if preset.enable_type_check:
        jobs["python/type-check"] = GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.shell("Install mypy", "pip install mypy"),
                GitHubStep.shell("Run mypy", TYPE_CHECK_COMMAND),
            ],
            timeout_minutes=10,
        )
    if preset.formatter is not None:
        jobs["python/format"] = GitHubJob(
            steps=[
                *_setup_steps(preset),
                GitHubStep.shell(
                    f"Install {preset.formatter.value}", f"pip install {preset.formatter.value}"
                ),
                GitHubStep.shell("Check formatting", preset.formatter.check_command),
            ],
            timeout_minutes=10,
        )
    return GitHubWorkflow(name="CI", on=branch_triggers(), jobs=jobs)


def _check_commands(preset: PythonAppPreset) -> list[tuple[str, str, str]]:
    """Return (tool, install command, check command) for each enabled check."""
    checks: list[tuple[str, str, str]] = []
    if preset.linter is not None:
        tool = preset.linter.value
        checks.append((tool, f"pip install {tool}", preset.linter.check_command))
    if preset.formatter is not None:
        tool = preset.formatter.value
        checks.append((tool, f"pip install {tool}", preset.formatter.check_command))
    if preset.enable_type_check:
        checks.append(("mypy", "pip install mypy", TYPE_CHECK_COMMAND))
    return checks


def to_gitlab(preset: PythonAppPreset) -> GitLabCI:
    """Emit a GitLab CI pipeline with a single test job."""
    script = [INSTALL_REQUIREMENTS]
    for _, install, check in _check_commands(preset):
        script.extend([install, check])
    script.append(TEST_COMMAND)
    return GitLabCI(
        stages=["test"],
        variables={"PIP_CACHE_DIR": "$CI_PROJECT_DIR/.cache/pip"},
        jobs={
            "python/test": GitLabJob(
                stage="test",
                image=f"python:{preset.version}",
                script=script,
                cache=GitLabCache(key="pip-cache", paths=[".cache/pip"]),
                timeout="30m",
            )
        },
    )


def to_circleci(preset: PythonAppPreset) -> CircleCIConfig:
    """Emit a CircleCI configuration with a single test job."""
    steps: list[CircleCIStep] = [
        SimpleStep("checkout"),
        CommandStep(RunCommand("Install dependencies", INSTALL_REQUIREMENTS)),
    ]
    for tool, install, check in _check_commands(preset):
        steps.append(CommandStep(RunCommand(f"Install {tool}", install)))
        steps.append(CommandStep(RunCommand(f"Run {tool}", check)))
    steps.append(CommandStep(RunCommand("Run tests", TEST_COMMAND)))
    jobs = {
        "python/test": CircleCIJob(
            docker=[CircleCIDocker(image=f"cimg/python:{preset.version}")],
            steps=steps,
        )
    }
    return CircleCIConfig(
        jobs=jobs,
        workflows={"ci": CircleCIWorkflow(jobs=[CircleCIWorkflowJob("python/test")])},
    )


def to_jenkins(preset: PythonAppPreset) -> JenkinsConfig:
    """Emit a Jenkins pipeline with a single test stage."""
    steps = [sh(INSTALL_REQUIREMENTS)]
    for _, install, check in _check_commands(preset):
        steps.extend([sh(install), sh(check)])
    steps.append(sh(TEST_COMMAND))
    return JenkinsConfig(stages=[JenkinsStage("Test", steps)])


PRESET: PresetDefinition[PythonAppPreset] = PresetDefinition(
    meta=META,
    document_tag=DOCUMENT_TAG,
    project_types=frozenset({ProjectType.PYTHON_APP, ProjectType.PYTHON_LIBRARY}),
    default_version=DEFAULT_PYTHON_VERSION,
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
