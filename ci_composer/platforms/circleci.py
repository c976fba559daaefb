"""CircleCI configuration model."""

from __future__ import annotations

from dataclasses import dataclass, field

from ci_composer.platforms.base import compact_mapping

CIRCLECI_VERSION = "2.1"


@dataclass(frozen=True)
class CircleCIDocker:
    """Docker executor image."""

    image: str

    def to_dict(self) -> dict[str, object]:
        """Serialize the executor image."""
        return {"image": self.image}


@dataclass(frozen=True)
class RunCommand:
    """Named form of a ``run`` step."""

    name: str
    command: str

    def to_dict(self) -> dict[str, object]:
        """Serialize the named command."""
        return {"name": self.name, "command": self.command}


@dataclass(frozen=True)
class SimpleStep:
    """Built-in step referenced by name, e.g. ``checkout``."""

    name: str

    def to_data(self) -> object:
        """Serialize as a bare string."""
        return self.name


@dataclass(frozen=True)
class CommandStep:
    """Shell step, either a bare command or a named one."""

    run: str | RunCommand

    def to_data(self) -> object:
        """Serialize the ``run`` step."""
        if isinstance(self.run, RunCommand):
            return {"run": self.run.to_dict()}
        return {"run": self.run}


@dataclass(frozen=True)
class RestoreCacheStep:
    """Restore a cache by the first matching key."""

    keys: list[str]

    def to_data(self) -> object:
        """Serialize the ``restore_cache`` step."""
        return {"restore_cache": {"keys": list(self.keys)}}


@dataclass(frozen=True)
class SaveCacheStep:
    """Persist paths under a cache key."""

    key: str
    paths: list[str]

    def to_data(self) -> object:
        """Serialize the ``save_cache`` step."""
        return {"save_cache": {"key": self.key, "paths": list(self.paths)}}


CircleCIStep = SimpleStep | CommandStep | RestoreCacheStep | SaveCacheStep


@dataclass(frozen=True)
class CircleCIJob:
    """One job with its executor and steps."""

    docker: list[CircleCIDocker]
    steps: list[CircleCIStep]
    environment: dict[str, str] | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the job."""
        return compact_mapping(
            [
                ("docker", [image.to_dict() for image in self.docker]),
                ("steps", [step.to_data() for step in self.steps]),
                ("environment", self.environment),
            ]
        )


@dataclass(frozen=True)
class CircleCIWorkflowJob:
    """Workflow entry: a job name, optionally with upstream requirements."""

    name: str
    requires: list[str] | None = None

    def to_data(self) -> object:
        """Serialize as a bare name or a ``{name: {requires: [...]}}`` mapping."""
        if self.requires:
            return {self.name: {"requires": list(self.requires)}}
        return self.name


@dataclass(frozen=True)
class CircleCIWorkflow:
    """Ordered list of jobs run by a workflow."""

    jobs: list[CircleCIWorkflowJob]

    def to_dict(self) -> dict[str, object]:
        """Serialize the workflow."""
        return {"jobs": [job.to_data() for job in self.jobs]}


@dataclass(frozen=True)
class CircleCIConfig:
    """Complete ``.circleci/config.yml``."""

    jobs: dict[str, CircleCIJob] = field(default_factory=dict)
    workflows: dict[str, CircleCIWorkflow] = field(default_factory=dict)
    version: str = CIRCLECI_VERSION
    orbs: dict[str, str] | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the configuration."""
        return compact_mapping(
            [
                ("version", self.version),
                ("orbs", self.orbs),
                ("jobs", {job_id: job.to_dict() for job_id, job in self.jobs.items()}),
                (
                    "workflows",
                    {name: workflow.to_dict() for name, workflow in self.workflows.items()},
                ),
            ]
        )
