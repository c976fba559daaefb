"""Generate CI files for every preset choice of a document."""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath

from ci_composer.detection import DetectionResult
from ci_composer.document import CciDocument, PresetChoice
from ci_composer.errors import (
    CciIOError,
    FileConflictError,
    SourceDocumentSemanticsError,
    UserCancelledError,
)
from ci_composer.logging_utils import get_logger
from ci_composer.platforms.base import Platform
from ci_composer.presets.registry import PresetRegistry, default_registry

_LOGGER = get_logger("generator")


@dataclass(frozen=True)
class GeneratedFile:
    """Rendered CI file for one preset, with its path relative to the repository root."""

    preset_id: str
    platform: Platform
    path: PurePosixPath
    content: str


def output_path_for(platform: Platform, preset_id: str, *, multiple: bool) -> PurePosixPath:
    """Return where the file for ``preset_id`` goes.

    A single preset uses the platform's fixed path. With several presets,
    multi-file platforms get ``<workflows>/<preset_id>.yml`` and the others
    get ``-<preset_id>`` appended to the file stem.
    """
    path = platform.output_path
    if not multiple:
        return path
    if platform.multi_file:
        return path.parent / f"{preset_id}.yml"
    return path.with_name(f"{path.stem}-{preset_id}{path.suffix}")


class MultiPresetGenerator:
    """Render each preset choice of a document for one platform."""

    def __init__(self, registry: PresetRegistry | None = None) -> None:
        self.registry = registry or default_registry()

    def render_choice(
        self, choice: PresetChoice, platform: Platform, language_version: str | None = None
    ) -> str:
        """Render one choice; its ``version`` field beats ``language_version``."""
        preset = self.registry.by_document_tag(choice.tag)
        config = preset.from_document(choice)
        version = choice.fields.get("version")
        resolved = str(version) if version is not None else language_version
        instance = preset.overlay(preset.build_instance(config, resolved), choice)
        return preset.render(instance, platform)

    def generate(
        self,
        document: CciDocument,
        platform: Platform,
        *,
        detection: DetectionResult | None = None,
        working_dir: Path | None = None,
    ) -> list[GeneratedFile]:
        """Render every choice of ``document`` in order.

        A detected language version only applies to presets matching the
        detected project; a choice's own ``version`` field beats both.
        """
        project_type = detection.project_type if detection is not None else None
        seen: set[str] = set()
        multiple = len(document.presets) > 1
        files: list[GeneratedFile] = []
        for choice in document.presets:
            preset = self.registry.by_document_tag(choice.tag)
            if preset.preset_id in seen:
                raise SourceDocumentSemanticsError(
                    f"preset '{choice.tag}' is listed more than once"
                )
            seen.add(preset.preset_id)
            language_version = None
            if detection is not None and preset.matches_project(
                project_type, working_dir or Path(".")
            ):
                language_version = detection.language_version
            content = self.render_choice(choice, platform, language_version)
            path = output_path_for(platform, preset.preset_id, multiple=multiple)
            files.append(GeneratedFile(preset.preset_id, platform, path, content))
        return files


class OverwriteAction(str, Enum):
    """What to do with a generated file whose target already exists."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    BACKUP = "backup"
    ABORT = "abort"


ConflictResolver = Callable[[Path, GeneratedFile], OverwriteAction]


@dataclass
class WriteReport:
    """Outcome of ``write_generated``; ``backups`` maps each target to its copy."""

    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    backups: dict[Path, Path] = field(default_factory=dict)


def backup_path_for(target: Path, now: datetime | None = None) -> Path:
    """Return ``<name>.bak.<YYYYmmdd_HHMMSS>`` beside ``target``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return target.with_name(f"{target.name}.bak.{stamp}")


def _resolve_conflicts(
    targets: list[tuple[Path, GeneratedFile]], resolve: ConflictResolver | None
) -> dict[Path, OverwriteAction]:
    actions: dict[Path, OverwriteAction] = {}
    for target, generated in targets:
        if not target.exists():
            continue
        if resolve is None:
            raise FileConflictError(target)
        action = resolve(target, generated)
        if action is OverwriteAction.ABORT:
            raise UserCancelledError(f"aborted at existing file {target}")
        actions[target] = action
    return actions


def write_generated(
    files: list[GeneratedFile],
    working_dir: Path,
    *,
    force: bool,
    resolve: ConflictResolver | None = None,
) -> WriteReport:
    """Write generated files under ``working_dir``.

    Existing targets are overwritten with ``force``. Otherwise each one is
    passed to ``resolve``, or raises FileConflictError when there is none.
    Every conflict is settled before anything is written, so a conflict or an
    abort leaves the tree untouched.
    """
    targets = [(working_dir / Path(generated.path), generated) for generated in files]
    actions = {} if force else _resolve_conflicts(targets, resolve)
    report = WriteReport()
    for target, generated in targets:
        action = actions.get(target, OverwriteAction.OVERWRITE)
        if action is OverwriteAction.SKIP:
            _LOGGER.info("Skipped %s for preset %s", target, generated.preset_id)
            report.skipped.append(target)
            continue
        existed = target.exists()
        try:
            if action is OverwriteAction.BACKUP:
                backup = backup_path_for(target)
                shutil.copy2(target, backup)
                report.backups[target] = backup
                _LOGGER.info("Backed up %s to %s", target, backup)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content, encoding="utf-8")
        except OSError as exc:
            raise CciIOError(target, exc) from exc
        _LOGGER.info(
            "%s %s for preset %s",
            "Overwrote" if existed else "Wrote",
            target,
            generated.preset_id,
        )
        report.written.append(target)
    return report
