"""Tests for the repository quality gate script."""

from __future__ import annotations

import importlib.util
from collections.abc import Callable, Sequence
from pathlib import Path
from types import ModuleType

import pytest

RUN_CI = Path(__file__).resolve().parents[1] / "ci" / "run_ci.py"


def _load() -> ModuleType:
    spec = importlib.util.spec_from_file_location("run_ci", RUN_CI)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _fake_runner(exit_codes: dict[str, int], calls: list[str]) -> Callable[[Sequence[str]], int]:
    def run(args: Sequence[str]) -> int:
        tool = args[2]
        calls.append(tool)
        return exit_codes.get(tool, 0)

    return run


def test_gates_run_in_order(monkeypatch: pytest.MonkeyPatch) -> None:
    module = _load()
    calls: list[str] = []
    monkeypatch.setattr(module, "_run", _fake_runner({}, calls))
    assert module.main([]) == 0
    assert calls == ["ruff", "mypy", "pytest", "pip_audit"]


def test_first_failing_gate_stops_the_run(monkeypatch: pytest.MonkeyPatch) -> None:
    module = _load()
    calls: list[str] = []
    monkeypatch.setattr(module, "_run", _fake_runner({"mypy": 2}, calls))
    assert module.main([]) == 2
    assert calls == ["ruff", "mypy"]


def test_selected_gates_and_skipped_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    module = _load()
    calls: list[str] = []
    monkeypatch.setattr(module, "_run", _fake_runner({}, calls))
    assert module.main(["--gate", "tests", "--gate", "lint", "--skip-audit"]) == 0
    assert calls == ["ruff", "pytest"]


def test_audit_only_blocks_when_required(monkeypatch: pytest.MonkeyPatch) -> None:
    module = _load()
    calls: list[str] = []
    monkeypatch.setattr(module, "_run", _fake_runner({"pip_audit": 1}, calls))
    monkeypatch.delenv(module.AUDIT_REQUIRED_ENV, raising=False)
    assert module.main([]) == 0

    monkeypatch.setenv(module.AUDIT_REQUIRED_ENV, "true")
    assert module.main([]) == 1


def test_coverage_gate_targets_package() -> None:
    tests_gate = _load().gate_commands()["tests"]
    assert "--cov=ci_composer" in tests_gate
    assert "--cov-fail-under=80" in tests_gate
