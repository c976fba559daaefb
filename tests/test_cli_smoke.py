"""Smoke tests for the cci CLI run as a subprocess."""

from __future__ import annotations

import subprocess
import sys

from ci_composer import __version__


def _run(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "ci_composer.cli", *args],
        check=False,
        capture_output=True,
        text=True,
    )


def test_help_returns_zero() -> None:
    result = _run("--help")
    assert result.returncode == 0
    assert "Usage:" in result.stdout


def test_version_returns_zero() -> None:
    result = _run("--version")
    assert result.returncode == 0
    assert result.stdout.strip() == __version__


def test_generate_help_returns_zero() -> None:
    result = _run("generate", "--help")
    assert result.returncode == 0
    assert "--platform" in result.stdout
