"""GitHub Actions workflow model, also used verbatim for Gitea Actions."""

from __future__ import annotations

from dataclasses import dataclass, field

from ci_composer.platforms.base import UBUNTU_LATEST, compact_mapping, default_branches

ACTION_CHECKOUT = "actions/checkout@v4"


@dataclass(frozen=True)
class GitHubTriggerConfig:
    """Branch and tag filters for one trigger event."""

    branches: list[str] | None = None
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the filters, omitting unset ones."""
        return compact_mapping([("branches", self.branches), ("tags", self.tags)])


@dataclass(frozen=True)
class SimpleTriggers:
    """Trigger list form: ``on: [push, pull_request]``."""

    events: list[str]

    def to_data(self) -> object:
        """Serialize the trigger list."""
        return list(self.events)


@dataclass(frozen=True)
class DetailedTriggers:
    """Trigger mapping form: ``on: {push: {branches: [...]}}``."""

    events: dict[str, GitHubTriggerConfig]

    def to_data(self) -> object:
        """Serialize the trigger mapping in declaration order."""
        return {event: config.to_dict() for event, config in self.events.items()}


GitHubTriggers = SimpleTriggers | DetailedTriggers


@dataclass(frozen=True)
class GitHubStep:
    """One workflow step: either an action reference or a shell command."""

    name: str | None = None
    id: str | None = None
    uses: str | None = None
    run: str | None = None
    with_: dict[str, object] | None = None
    env: dict[str, str] | None = None

    @classmethod
    def checkout(cls) -> GitHubStep:
        """Return the standard repository checkout step."""
        return cls(name="Checkout code", uses=ACTION_CHECKOUT)

    @classmethod
    def shell(cls, name: str, command: str) -> GitHubStep:
        """Return a named shell step."""
        return cls(name=name, run=command)

    @classmethod
    def action(
        cls,
        name: str,
        uses: str,
        with_: dict[str, object] | None = None,
        *,
        step_id: str | None = None,
    ) -> GitHubStep:
        """Return a named action step with optional inputs."""
        return cls(name=name, id=step_id, uses=uses, with_=with_)

    def to_dict(self) -> dict[str, object]:
        """Serialize the step using GitHub field names."""
        return compact_mapping(
            [
                ("name", self.name),
                ("id", self.id),
                ("uses", self.uses),
                ("run", self.run),
                ("with", self.with_),
                ("env", self.env),
            ]
        )


@dataclass(frozen=True)
class GitHubJob:
    """One workflow job."""

    steps: list[GitHubStep]
    runs_on: str = UBUNTU_LATEST
    needs: list[str] | None = None
    timeout_minutes: int | None = None
    continue_on_error: bool | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the job using GitHub field names."""
        return compact_mapping(
            [
                ("runs-on", self.runs_on),
                ("steps", [step.to_dict() for step in self.steps]),
                ("needs", self.needs),
                ("timeout-minutes", self.timeout_minutes),
                ("continue-on-error", self.continue_on_error),
            ]
        )


@dataclass(frozen=True)
class GitHubWorkflow:
    """Complete workflow file."""

    name: str
    on: GitHubTriggers
    jobs: dict[str, GitHubJob] = field(default_factory=dict)
    env: dict[str, str] | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the workflow with jobs in insertion order."""
        return compact_mapping(
            [
                ("name", self.name),
                ("on", self.on.to_data()),
                ("env", self.env),
                ("jobs", {job_id: job.to_dict() for job_id, job in self.jobs.items()}),
            ]
        )


def branch_triggers() -> DetailedTriggers:
    """Run on pushes and pull requests targeting the default branches."""
    return DetailedTriggers(
        {
            "push": GitHubTriggerConfig(branches=default_branches()),
            "pull_request": GitHubTriggerConfig(branches=default_branches()),
        }
    )
