"""Error taxonomy shared by the generator, the editor and the CLI glue."""

from __future__ import annotations

from pathlib import Path


class CciError(Exception):
    """Base class for every error the tool reports to users."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def diagnostic(self) -> str:
        """Return the one-line diagnostic printed by the CLI."""
        return f"[{self.kind}] {self.message}"


class SourceDocumentSyntaxError(CciError, ValueError):
    """Raised when the declarative document cannot be parsed."""

    kind = "document-syntax"

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        prefix = f"{path}: " if path is not None else ""
        super().__init__(f"{prefix}{message}")
        self.path = path


class SourceDocumentSemanticsError(CciError, ValueError):
    """Raised when a parsed document is empty or names unknown presets or values."""

    kind = "document-semantics"


class ProjectDetectionError(CciError):
    """Raised when no project type can be inferred from a directory."""

    kind = "detection"

    def __init__(self, directory: Path) -> None:
        super().__init__(
            f"Could not detect a project type in {directory}. "
            "Expected Cargo.toml, pyproject.toml, setup.py, requirements.txt, go.mod "
            "or a Dockerfile."
        )
        self.directory = directory


class FileConflictError(CciError):
    """Raised when a target file exists and overwriting was not requested."""

    kind = "file-conflict"

    def __init__(self, path: Path) -> None:
        super().__init__(f"File exists: {path}. Use --force to overwrite")
        self.path = path


class CciIOError(CciError):
    """Raised when reading or writing a file at the system boundary fails."""

    kind = "io"

    def __init__(self, path: Path, exc: OSError) -> None:
        reason = exc.strerror or str(exc)
        super().__init__(f"{path}: {reason}")
        self.path = path


class UserCancelledError(CciError):
    """Raised when the user declines an interactive confirmation."""

    kind = "cancelled"

    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message)


class TerminalRequiredError(CciError):
    """Raised when an interactive command runs without a terminal on stdin."""

    kind = "terminal"


class InternalError(CciError):
    """Raised on invariant violations; these indicate bugs, not bad input."""

    kind = "internal"
