"""Rust preset: cargo test, tarpaulin coverage, clippy, rustfmt, cargo-audit, release builds."""

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
from ci_composer.platforms.gitlab import (
    GitLabArtifacts,
    GitLabCache,
    GitLabCI,
    GitLabJob,
    GitLabOnly,
)
from ci_composer.platforms.jenkins import JenkinsConfig, JenkinsStage, sh
from ci_composer.presets.base import ChoiceFields, Emitters, PresetDefinition
from ci_composer.presets.options import (
    BoolValue,
    FeatureMeta,
    OptionMeta,
    PresetConfig,
    PresetMeta,
)

PRESET_ID = "rust"
DOCUMENT_TAG = "Rust"
DEFAULT_RUST_VERSION = "stable"

TEST_COMMAND = "cargo test --all-features"
TARPAULIN_INSTALL = "cargo install cargo-tarpaulin"
TARPAULIN_RUN = "cargo tarpaulin --out Xml --all-features"
CLIPPY_COMMAND = "cargo clippy --all-features -- -D warnings"
FMT_COMMAND = "cargo fmt -- --check"
RELEASE_COMMAND = "cargo build --release"
CARGO_LOCK_CACHE_KEY = 'v1-cargo-cache-{{ checksum "Cargo.lock" }}'

# option id -> document field
_DOCUMENT_FIELDS = {
    "enable_coverage": "coverage",
    "enable_linter": "linter",
    "enable_security_scan": "security_scan",
    "enable_format_check": "format_check",
    "build_release": "build_release",
}


@dataclass(frozen=True)
class RustPreset:
    """Typed Rust preset configuration."""

    version: str = DEFAULT_RUST_VERSION
    enable_coverage: bool = False
    enable_linter: bool = False
    enable_security_scan: bool = False
    enable_format_check: bool = False
    build_release: bool = False


META = PresetMeta(
    preset_id=PRESET_ID,
    display_name="Rust",
    description="CI pipeline for Rust projects (binaries, libraries, and workspaces)",
    features=(
        FeatureMeta(
            id="testing",
            display_name="Testing",
            description="Test coverage reporting",
            options=(
                OptionMeta(
                    id="enable_coverage",
                    display_name="Code Coverage",
                    description="Enable code coverage reporting with tarpaulin",
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
                    id="enable_linter",
                    display_name="Clippy Linter",
                    description="Run clippy with warnings treated as errors",
                    default_value=BoolValue(True),
                ),
            ),
        ),
        FeatureMeta(
            id="security",
            display_name="Security",
            description="Dependency vulnerability scanning",
            options=(
                OptionMeta(
                    id="enable_security_scan",
                    display_name="Security Scan",
                    description="Run cargo-audit for dependency vulnerabilities",
                    default_value=BoolValue(True),
                ),
            ),
        ),
        FeatureMeta(
            id="formatting",
            display_name="Formatting",
            description="Code style enforcement",
            options=(
                OptionMeta(
                    id="enable_format_check",
                    display_name="Rustfmt Check",
                    description="Verify code is formatted with rustfmt",
                    default_value=BoolValue(True),
                ),
            ),
        ),
        FeatureMeta(
            id="building",
            display_name="Building",
            description="Release binary builds",
            options=(
                OptionMeta(
                    id="build_release",
                    display_name="Build Release",
                    description="Build optimized release binary in CI",
                    default_value=BoolValue(True),
                ),
            ),
        ),
    ),
)


def from_config(config: PresetConfig, language_version: str) -> RustPreset:
    """Build the typed preset from editor options."""
    return RustPreset(
        version=language_version,
        enable_coverage=config.get_bool("enable_coverage"),
        enable_linter=config.get_bool("enable_linter"),
        enable_security_scan=config.get_bool("enable_security_scan"),
        enable_format_check=config.get_bool("enable_format_check"),
        build_release=config.get_bool("build_release"),
    )


def to_document(config: PresetConfig, language_version: str | None = None) -> PresetChoice:
    """Export editor options as a document choice."""
    fields: dict[str, object] = {"version": language_version or DEFAULT_RUST_VERSION}
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


def _toolchain_step(preset: RustPreset, component: str | None = None) -> GitHubStep:
    inputs: dict[str, object] = {"toolchain": preset.version}
    if component is not None:
        inputs["components"] = component
    return GitHubStep.action("Setup Rust toolchain", "dtolnay/rust-toolchain@stable", inputs)


def to_github(preset: RustPreset) -> GitHubWorkflow:
    """Emit a GitHub Actions workflow."""
    test_steps = [
        GitHubStep.checkout(),
        _toolchain_step(preset),
        GitHubStep.action("Cache dependencies", "Swatinem/rust-cache@v2"),
        GitHubStep.shell("Run tests", TEST_COMMAND),
    ]
    if preset.enable_coverage:
        test_steps.extend(
            [
                GitHubStep.shell("Install tarpaulin", TARPAULIN_INSTALL),
                GitHubStep.shell("Generate coverage", TARPAULIN_RUN),
                GitHubStep.action(
                    "Upload coverage to Codecov",
                    "codecov/codecov-action@v3",
                    {"files": "./cobertura.xml", "fail_ci_if_error": False},
                ),
            ]
        )
    if preset.build_release:
        test_steps.append(GitHubStep.shell("Build release binary", RELEASE_COMMAND))

    jobs = {"rust/test": GitHubJob(steps=test_steps, timeout_minutes=30)}
    if preset.enable_linter:
        jobs["rust/lint"] = GitHubJob(
            steps=[
                GitHubStep.checkout(),
                _toolchain_step(preset, "clippy"),
                GitHubStep.action("Cache dependencies", "Swatinem/rust-cache@v2"),
                GitHubStep.shell("Run clippy", CLIPPY_COMMAND),
            ],
            timeout_minutes=15,
        )
    if preset.enable_format_check:
        jobs["rust/format"] = GitHubJob(
            steps=[
                GitHubStep.checkout(),
                _toolchain_step(preset, "rustfmt"),
                GitHubStep.shell("Check formatting", FMT_COMMAND),
            ],
            timeout_minutes=10,
        )
    if preset.enable_security_scan:
        jobs["rust/security"] = GitHubJob(
            steps=[
                GitHubStep.checkout(),
                GitHubStep.action(
                    "Run security audit",
                    "rustsec/audit-check@v1",
                    {"token": "${{ secrets.GITHUB_TOKEN }}"},
                ),
            ],
            timeout_minutes=10,
        )
    return GitHubWorkflow(name="CI", on=branch_triggers(), jobs=jobs)


def _rustup_install(version: str) -> str:
    return (
        "curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | "
        f"sh -s -- -y --default-toolchain {version}"
    )


def _rust_image(version: str) -> str:
    # Docker Hub publishes numbered tags only; channels map to latest.
    if version in {"", "stable", "beta", "nightly"}:
        return "rust:latest"
    return f"rust:{version}"


def to_gitlab(preset: RustPreset) -> GitLabCI:
    """Emit a GitLab CI pipeline."""
    stages = ["test"]
    script = [_rustup_install(preset.version), "source $HOME/.cargo/env", TEST_COMMAND]
    if preset.enable_coverage:
        script.extend([TARPAULIN_INSTALL, TARPAULIN_RUN])
    jobs = {
        "rust/test": GitLabJob(
            stage="test",
            image="rust:latest",
            script=script,
            cache=GitLabCache(key="rust-cache", paths=["target/", ".cargo/"]),
            artifacts=(
                GitLabArtifacts(paths=["cobertura.xml"], name="coverage")
                if preset.enable_coverage
                else None
            ),
            only=GitLabOnly(refs=["main", "master", "merge_requests"]),
            timeout="30m",
        )
    }
    if preset.build_release:
        stages.append("build")
        jobs["rust/build"] = GitLabJob(
            stage="build",
            image=_rust_image(preset.version),
            script=[RELEASE_COMMAND],
            cache=GitLabCache(key="rust-cache", paths=["target/", ".cargo/"]),
            artifacts=GitLabArtifacts(paths=["target/release/"], name="release"),
            timeout="30m",
        )
    if preset.enable_linter or preset.enable_format_check:
        stages.append("lint")
    if preset.enable_linter:
        jobs["rust/lint"] = GitLabJob(
            stage="lint",
            image=_rust_image(preset.version),
            script=["rustup component add clippy", CLIPPY_COMMAND],
            timeout="15m",
        )
    if preset.enable_format_check:
        jobs["rust/format"] = GitLabJob(
            stage="lint",
            image=_rust_image(preset.version),
            script=["rustup component add rustfmt", FMT_COMMAND],
            timeout="10m",
        )
    if preset.enable_security_scan:
        stages.append("security")
        jobs["rust/security"] = GitLabJob(
            stage="security",
            image="rust:latest",
            script=["cargo install cargo-audit", "cargo audit"],
            cache=GitLabCache(key="cargo-audit-cache", paths=[".cargo/"]),
            timeout="10m",
        )
    return GitLabCI(stages=stages, jobs=jobs)


def _circleci_setup(preset: RustPreset) -> list[CircleCIStep]:
    return [
        SimpleStep("checkout"),
        RestoreCacheStep(keys=[CARGO_LOCK_CACHE_KEY]),
        CommandStep(RunCommand("Install Rust", _rustup_install(preset.version))),
        CommandStep(
            RunCommand("Configure Rust environment", "echo 'source $HOME/.cargo/env' >> $BASH_ENV")
        ),
    ]


def to_circleci(preset: RustPreset) -> CircleCIConfig:
    """Emit a CircleCI configuration."""
    image = [CircleCIDocker(image="rust:latest")]
    test_steps = _circleci_setup(preset)
    test_steps.append(CommandStep(RunCommand("Run tests", TEST_COMMAND)))
    if preset.enable_coverage:
        test_steps.extend(
            [
                CommandStep(RunCommand("Install tarpaulin", TARPAULIN_INSTALL)),
                CommandStep(RunCommand("Generate coverage", TARPAULIN_RUN)),
            ]
        )
    if preset.build_release:
        test_steps.append(CommandStep(RunCommand("Build release binary", RELEASE_COMMAND)))
    test_steps.append(SaveCacheStep(key=CARGO_LOCK_CACHE_KEY, paths=["~/.cargo", "./target"]))

    jobs = {"rust/test": CircleCIJob(docker=image, steps=test_steps)}
    if preset.enable_linter:
        jobs["rust/lint"] = CircleCIJob(
            docker=image,
            steps=[
                *_circleci_setup(preset),
                CommandStep(RunCommand("Install clippy", "rustup component add clippy")),
                CommandStep(RunCommand("Run clippy", CLIPPY_COMMAND)),
            ],
        )
    if preset.enable_format_check:
        jobs["rust/format"] = CircleCIJob(
            docker=image,
            steps=[
                *_circleci_setup(preset),
                CommandStep(RunCommand("Install rustfmt", "rustup component add rustfmt")),
                CommandStep(RunCommand("Check formatting", FMT_COMMAND)),
            ],
        )
    if preset.enable_security_scan:
        jobs["rust/security"] = CircleCIJob(
            docker=image,
            steps=[
                *_circleci_setup(preset),
                CommandStep(RunCommand("Install cargo-audit", "cargo install cargo-audit")),
                CommandStep(RunCommand("Run security audit", "cargo audit")),
            ],
        )
    workflow = CircleCIWorkflow(jobs=[CircleCIWorkflowJob(job_id) for job_id in jobs])
    return CircleCIConfig(jobs=jobs, workflows={"ci": workflow})


def to_jenkins(preset: RustPreset) -> JenkinsConfig:
    """Emit a Jenkins declarative pipeline."""

    def cargo(command: str) -> str:
        # Each sh step runs in a fresh shell, so the cargo env is sourced every time.
        return sh(f". $HOME/.cargo/env && {command}")

    test_steps = [sh(_rustup_install(preset.version)), cargo(TEST_COMMAND)]
    if preset.enable_coverage:
        test_steps.extend([cargo(TARPAULIN_INSTALL), cargo(TARPAULIN_RUN)])
    stages = [JenkinsStage("Test", test_steps)]
    if preset.build_release:
        stages.append(JenkinsStage("Build Release", [cargo(RELEASE_COMMAND)]))
    if preset.enable_linter:
        stages.append(
            JenkinsStage("Lint", [cargo("rustup component add clippy"), cargo(CLIPPY_COMMAND)])
        )
    if preset.enable_format_check:
        stages.append(
            JenkinsStage(
                "Format Check", [cargo("rustup component add rustfmt"), cargo(FMT_COMMAND)]
            )
        )
    if preset.enable_security_scan:
        stages.append(
            JenkinsStage(
                "Security Scan", [cargo("cargo install cargo-audit"), cargo("cargo audit")]
            )
        )
    return JenkinsConfig(stages=stages)


PRESET: PresetDefinition[RustPreset] = PresetDefinition(
    meta=META,
    document_tag=DOCUMENT_TAG,
    project_types=frozenset(
        {ProjectType.RUST_BINARY, ProjectType.RUST_LIBRARY, ProjectType.RUST_WORKSPACE}
    ),
    default_version=DEFAULT_RUST_VERSION,
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
