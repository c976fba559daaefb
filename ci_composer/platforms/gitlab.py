"""GitLab CI pipeline model."""

from __future__ import annotations

from dataclasses import dataclass, field

from ci_composer.platforms.base import compact_mapping


@dataclass(frozen=True)
class GitLabCache:
    """Cache declaration for a job or the whole pipeline."""

    key: str
    paths: list[str]

    def to_dict(self) -> dict[str, object]:
        """Serialize the cache declaration."""
        return {"key": self.key, "paths": list(self.paths)}


@dataclass(frozen=True)
class GitLabArtifacts:
    """Files kept after a job finishes."""

    paths: list[str]
    name: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the artifacts declaration."""
        return compact_mapping([("paths", list(self.paths)), ("name", self.name)])


@dataclass(frozen=True)
class GitLabOnly:
    """Ref filter restricting when a job runs."""

    refs: list[str] | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the ref filter."""
        return compact_mapping([("refs", self.refs)])


@dataclass(frozen=True)
class GitLabJob:
    """One pipeline job."""

    stage: str
    script: list[str]
    image: str | None = None
    before_script: list[str] | None = None
    after_script: list[str] | None = None
    needs: list[str] | None = None
    cache: GitLabCache | None = None
    artifacts: GitLabArtifacts | None = None
    only: GitLabOnly | None = None
    timeout: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the job; ``stage`` and ``image`` lead, matching GitLab docs."""
        return compact_mapping(
            [
                ("stage", self.stage),
                ("image", self.image),
                ("script", list(self.script)),
                ("before_script", self.before_script),
                ("after_script", self.after_script),
                ("needs", self.needs),
                ("cache", self.cache.to_dict() if self.cache else None),
                ("artifacts", self.artifacts.to_dict() if self.artifacts else None),
                ("only", self.only.to_dict() if self.only else None),
                ("timeout", self.timeout),
            ]
        )


@dataclass(frozen=True)
class GitLabCI:
    """Complete ``.gitlab-ci.yml``; jobs are top-level keys after the globals."""

    jobs: dict[str, GitLabJob] = field(default_factory=dict)
    stages: list[str] | None = None
    variables: dict[str, str] | None = None
    cache: GitLabCache | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize globals first, then each job under its id."""
        payload = compact_mapping(
            [
                ("stages", self.stages),
                ("variables", self.variables),
                ("cache", self.cache.to_dict() if self.cache else None),
            ]
        )
        for job_id, job in self.jobs.items():
            payload[job_id] = job.to_dict()
        return payload
