"""Repository quality gates for ci-composer.

Gates run in order and stop at the first failure. The dependency audit runs
last and only fails the run when ``CCI_CI_PIP_AUDIT_REQUIRED`` is set.
"""

from __future__ import annotations

import argparse
import os
import subprocess  # nosec B404
import sys
from collections.abc import Sequence

AUDIT_REQUIRED_ENV = "CCI_CI_PIP_AUDIT_REQUIRED"
COVERAGE_FLOOR = 80
AUDIT_COMMAND = [sys.executable, "-m", "pip_audit", "--progress-spinner", "off"]


def _run(args: Sequence[str]) -> int:
    """Run one command and return its exit code."""
    command = " ".join(args)
    print(f"$ {command}")
    completed = subprocess.run(args, check=False)  # nosec B603
    if completed.returncode:
        print(f"[FAIL] exit {completed.returncode}: {command}")
    return int(completed.returncode)


def gate_commands() -> dict[str, list[str]]:
    """Return the blocking gates by name, in run order."""
    return {
        "lint": [sys.executable, "-m", "ruff", "check", "."],
        "types": [sys.executable, "-m", "mypy", "ci_composer"],
        "tests": [
            sys.executable,
            "-m",
            "pytest",
            "--cov=ci_composer",
            "--cov-report=term-missing",
            f"--cov-fail-under={COVERAGE_FLOOR}",
        ],
    }


def _audit_required() -> bool:
    return os.environ.get(AUDIT_REQUIRED_ENV, "").strip().lower() in {"1", "true", "yes"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run ci-composer quality gates.")
    parser.add_argument(
        "--gate",
        action="append",
        choices=sorted(gate_commands()),
        help="Run only this gate; repeatable. Defaults to every gate.",
    )
    parser.add_argument("--skip-audit", action="store_true", help="Do not run pip-audit.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    options = _parse_args(argv)
    gates = gate_commands()
    selected = options.gate or list(gates)
    for name in gates:
        if name not in selected:
            continue
        exit_code = _run(gates[name])
        if exit_code != 0:
            return exit_code
    if options.skip_audit:
        return 0
    audit_exit = _run(AUDIT_COMMAND)
    if audit_exit == 0:
        return 0
    if _audit_required():
        return audit_exit
    print(f"pip-audit found issues; not blocking because {AUDIT_REQUIRED_ENV} is unset.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
