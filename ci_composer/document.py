"""The declarative ``cci.yml`` document: an ordered list of preset choices."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ci_composer.errors import CciIOError, SourceDocumentSemanticsError, SourceDocumentSyntaxError
from ci_composer.platforms.serializers import to_yaml
from ci_composer.workflow_lint import DuplicateKeyError, load_unique

DEFAULT_DOCUMENT_NAME = "cci.yml"


@dataclass(frozen=True)
class PresetChoice:
    """One entry of the document: a preset tag and its field values."""

    tag: str
    fields: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Serialize as a single-key mapping, omitting unset fields."""
        return {self.tag: {key: value for key, value in self.fields.items() if value is not None}}


@dataclass(frozen=True)
class CciDocument:
    """Ordered preset choices stored in a repository."""

    presets: list[PresetChoice] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Serialize the document."""
        return {"presets": [choice.to_dict() for choice in self.presets]}


def parse_document(text: str, *, path: Path | None = None) -> CciDocument:
    """Parse document text; an empty preset list is rejected."""
    try:
        data = load_unique(text)
    except DuplicateKeyError as exc:
        raise SourceDocumentSyntaxError(f"duplicate key '{exc.key}'", path=path) from exc
    except yaml.YAMLError as exc:
        raise SourceDocumentSyntaxError(f"invalid YAML: {exc}", path=path) from exc
    if not isinstance(data, dict) or "presets" not in data:
        raise SourceDocumentSyntaxError("expected a mapping with a 'presets' list", path=path)
    unknown = sorted(str(key) for key in data if key != "presets")
    if unknown:
        raise SourceDocumentSyntaxError(f"unknown top-level keys: {', '.join(unknown)}", path=path)
    entries = data["presets"]
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise SourceDocumentSyntaxError("'presets' must be a list", path=path)
    choices = [_parse_choice(entry, index, path) for index, entry in enumerate(entries)]
    if not choices:
        where = f"{path}: " if path is not None else ""
        raise SourceDocumentSemanticsError(f"{where}no presets configured")
    return CciDocument(presets=choices)


def _parse_choice(entry: object, index: int, path: Path | None) -> PresetChoice:
    if isinstance(entry, str):
        return PresetChoice(tag=entry)
    if not isinstance(entry, dict) or len(entry) != 1:
        raise SourceDocumentSyntaxError(
            f"presets[{index}] must be a single-key mapping such as '- Rust: {{...}}'",
            path=path,
        )
    ((tag, body),) = entry.items()
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise SourceDocumentSyntaxError(f"presets[{index}].{tag} must be a mapping", path=path)
    return PresetChoice(tag=str(tag), fields={str(key): value for key, value in body.items()})


def load_document(path: Path) -> CciDocument:
    """Read and parse a document file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CciIOError(path, exc) from exc
    return parse_document(text, path=path)


def dump_document(document: CciDocument) -> str:
    """Render a document as YAML."""
    return to_yaml(document.to_dict())


def write_document(document: CciDocument, path: Path) -> None:
    """Write a document file, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_document(document), encoding="utf-8")
    except OSError as exc:
        raise CciIOError(path, exc) from exc
