"""Structural linting of emitted GitHub/Gitea workflow files."""

from __future__ import annotations

import re
from collections.abc import Hashable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

JOB_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*/[a-z][a-z-]*$")
_EXPRESSION = re.compile(r"\$\{\{.*?\}\}")


class DuplicateKeyError(ValueError):
    """Raised when duplicate keys are found in YAML input."""

    def __init__(self, key: str) -> None:
        super().__init__(f"duplicate key: {key}")
        self.key = key


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate keys."""

    def construct_mapping(self, node: Any, deep: bool = False) -> dict[Hashable, Any]:
        mapping: dict[Hashable, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)  # type: ignore[no-untyped-call]
            if key in mapping:
                raise DuplicateKeyError(str(key))
            mapping[key] = self.construct_object(  # type: ignore[no-untyped-call]
                value_node,
                deep=deep,
            )
        return mapping


def load_unique(text: str) -> Any:
    """Parse YAML text, rejecting duplicate mapping keys."""
    return yaml.load(text, Loader=UniqueKeyLoader)  # noqa: S506


@dataclass(frozen=True)
class WorkflowLintResult:
    """Workflow lint result with errors."""

    path: Path
    errors: tuple[str, ...]

    @property
    def passed(self) -> bool:
        """Return True when no lint errors are present."""
        return not self.errors


def lint_workflows(root: Path) -> list[WorkflowLintResult]:
    """Lint every workflow under ``.github/workflows`` and ``.gitea/workflows``."""
    results: list[WorkflowLintResult] = []
    for workflow_dir in (root / ".github" / "workflows", root / ".gitea" / "workflows"):
        if not workflow_dir.is_dir():
            continue
        for workflow in sorted(workflow_dir.glob("*.yml")):
            try:
                text = workflow.read_text(encoding="utf-8")
            except OSError as exc:
                results.append(WorkflowLintResult(path=workflow, errors=(f"unreadable:{exc}",)))
                continue
            results.append(WorkflowLintResult(path=workflow, errors=tuple(lint_workflow(text))))
    if not results:
        missing = root / ".github" / "workflows"
        return [WorkflowLintResult(path=missing, errors=("missing_workflows",))]
    return results


def lint_workflow(text: str) -> list[str]:
    """Check that workflow YAML has the structure GitHub and Gitea accept."""
    try:
        data = load_unique(text)
    except DuplicateKeyError as exc:
        return [f"duplicate_key:{exc.key}"]
    except yaml.YAMLError as exc:
        return [f"invalid_yaml:{exc}"]
    if not isinstance(data, dict):
        return ["workflow_root_not_mapping"]
    # YAML 1.1 readers turn a bare ``on`` key into True.
    on_key = "on" if "on" in data else True if True in data else None
    if on_key is None:
        return ["missing_on"]
    if "jobs" not in data or not isinstance(data["jobs"], dict):
        return ["missing_jobs"]
    errors: list[str] = []
    errors.extend(_validate_triggers(data[on_key]))
    errors.extend(_validate_jobs(data["jobs"]))
    return errors


def _validate_triggers(triggers: Any) -> list[str]:
    if isinstance(triggers, str | list):
        return []
    if not isinstance(triggers, dict):
        return ["triggers_invalid"]
    errors: list[str] = []
    for event, config in triggers.items():
        if config is None:
            continue
        if not isinstance(config, dict):
            errors.append(f"trigger_not_mapping:{event}")
            continue
        for key in ("branches", "tags"):
            if key in config and not isinstance(config[key], list):
                errors.append(f"trigger_filter_not_list:{event}.{key}")
    return errors


def _validate_jobs(jobs: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not jobs:
        errors.append("no_jobs")
    for job_id, job in jobs.items():
        if not JOB_ID_PATTERN.match(str(job_id)):
            errors.append(f"job_id_scheme:{job_id}")
        if not isinstance(job, dict):
            errors.append(f"job_not_mapping:{job_id}")
            continue
        if "runs-on" not in job:
            errors.append(f"missing_runs_on:{job_id}")
        steps = job.get("steps", [])
        if not isinstance(steps, list) or not steps:
            errors.append(f"steps_not_list:{job_id}")
            continue
        for step in steps:
            errors.extend(_validate_step(step, job_id))
    return errors


def _validate_step(step: Any, job_id: str) -> list[str]:
    if not isinstance(step, dict):
        return [f"step_not_mapping:{job_id}"]
    errors: list[str] = []
    if ("uses" in step) == ("run" in step):
        errors.append(f"step_needs_uses_or_run:{job_id}")
    with_inputs = step.get("with")
    if with_inputs is not None and not isinstance(with_inputs, dict):
        errors.append(f"step_with_not_mapping:{job_id}")
    for value in _string_values(step):
        if not _expressions_balanced(value):
            errors.append("invalid_expression_syntax")
            break
    return errors


def _string_values(step: dict[str, Any]) -> list[str]:
    values: list[str] = []
    for value in step.values():
        if isinstance(value, str):
            values.append(value)
        elif isinstance(value, dict):
            values.extend(item for item in value.values() if isinstance(item, str))
    return values


def _expressions_balanced(text: str) -> bool:
    """Ensure every GitHub expression opener has a closing delimiter."""
    return "${{" not in _EXPRESSION.sub("", text)
