"""Editor state machine: preset tree, cursor, platform menu and live preview.

The tree is a flat list derived from the registry and the expansion sets.
It is rebuilt from scratch after every mutation that can change what is
visible, and the preview is regenerated after every mutation that can change
the generated text.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ci_composer.detection import DetectionResult, ProjectType
from ci_composer.document import (
    DEFAULT_DOCUMENT_NAME,
    CciDocument,
    PresetChoice,
    load_document,
    write_document,
)
from ci_composer.editor.diff import DiffLine, compute_diff
from ci_composer.errors import CciError, CciIOError, InternalError
from ci_composer.logging_utils import get_logger
from ci_composer.platforms.base import Platform
from ci_composer.presets.base import PresetDefinition
from ci_composer.presets.options import BoolValue, EnumValue, PresetConfig
from ci_composer.presets.registry import PresetRegistry, default_registry

NO_PRESET_PLACEHOLDER = (
    "# No preset options enabled\n# Enable at least one option to generate configuration"
)
PLATFORMS = list(Platform)

_LOGGER = get_logger("editor")


@dataclass(frozen=True)
class PresetItem:
    """Tree row for a preset."""

    preset_id: str


@dataclass(frozen=True)
class FeatureItem:
    """Tree row for a feature of an expanded preset."""

    preset_id: str
    feature_id: str


@dataclass(frozen=True)
class OptionItem:
    """Tree row for an option of an expanded feature."""

    preset_id: str
    feature_id: str
    option_id: str


TreeItem = PresetItem | FeatureItem | OptionItem


class EditorState:
    """Complete state of one interactive editing session."""

    def __init__(
        self,
        *,
        working_dir: Path,
        project_type: ProjectType | None,
        language_version: str | None,
        configs: dict[str, PresetConfig],
        platform: Platform = Platform.GITHUB,
        registry: PresetRegistry | None = None,
        expanded_presets: set[str] | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        missing = [pid for pid in self.registry.preset_ids if pid not in configs]
        if missing:
            raise InternalError(f"missing configuration for presets: {', '.join(missing)}")
        self.working_dir = working_dir
        self.project_type = project_type
        self.language_version = language_version
        self.configs = configs
        self.platform = platform
        self.expanded_presets: set[str] = set(expanded_presets or ())
        self.expanded_features: set[tuple[str, str]] = set()
        # Choices from a loaded document, keyed by preset id.
        self.loaded_choices: dict[str, PresetChoice] = {}
        self.items: list[TreeItem] = []
        self.cursor = 0
        self.platform_menu_open = False
        self.platform_menu_cursor = PLATFORMS.index(platform)
        self.preview_scroll = 0
        self.preview = ""
        self.preview_preset_id: str | None = None
        self.generation_error: str | None = None
        self.existing_content: str | None = None
        self.diff: list[DiffLine] | None = None
        self.status: str | None = None
        self.should_quit = False
        self.write_on_exit = False
        self.rebuild_tree()
        self.load_existing_file()
        self.regenerate_preview()

    @classmethod
    def from_detection(
        cls,
        working_dir: Path,
        detection: DetectionResult | None,
        *,
        platform: Platform = Platform.GITHUB,
        registry: PresetRegistry | None = None,
    ) -> EditorState:
        """Start a session with defaults for matching presets and everything else off."""
        registry = registry or default_registry()
        project_type = detection.project_type if detection is not None else None
        configs: dict[str, PresetConfig] = {}
        expanded: set[str] = set()
        for preset in registry:
            matches = preset.matches_project(project_type, working_dir)
            configs[preset.preset_id] = preset.default_config(matches)
            if matches:
                expanded.add(preset.preset_id)
        _LOGGER.info(
            "Editor session for %s (%s)",
            working_dir,
            project_type.value if project_type is not None else "unknown project",
        )
        return cls(
            working_dir=working_dir,
            project_type=project_type,
            language_version=detection.language_version if detection is not None else None,
            configs=configs,
            platform=platform,
            registry=registry,
            expanded_presets=expanded,
        )

    # Tree

    def _matches(self, preset: PresetDefinition[Any]) -> bool:
        return preset.matches_project(self.project_type, self.working_dir)

    def ordered_presets(self) -> list[PresetDefinition[Any]]:
        """Return presets in registration order with matching presets first."""
        return sorted(self.registry, key=lambda preset: not self._matches(preset))

    def rebuild_tree(self) -> None:
        """Recompute visible rows and clamp the cursor."""
        items: list[TreeItem] = []
        for preset in self.ordered_presets():
            items.append(PresetItem(preset.preset_id))
            if preset.preset_id not in self.expanded_presets:
                continue
            for feature in preset.meta.features:
                items.append(FeatureItem(preset.preset_id, feature.id))
                if (preset.preset_id, feature.id) not in self.expanded_features:
                    continue
                items.extend(
                    OptionItem(preset.preset_id, feature.id, option.id)
                    for option in feature.options
                )
        self.items = items
        self.cursor = max(0, min(self.cursor, len(items) - 1))

    def current_item(self) -> TreeItem | None:
        if not self.items:
            return None
        return self.items[self.cursor]

    def current_item_description(self) -> str:
        """Return the description of the preset, feature or option under the cursor."""
        item = self.current_item()
        if item is None:
            return ""
        preset = self.registry.require(item.preset_id)
        if isinstance(item, PresetItem):
            return preset.meta.description
        feature = preset.meta.feature(item.feature_id)
        if feature is None:
            return ""
        if isinstance(item, FeatureItem):
            return feature.description
        option = feature.option(item.option_id)
        return option.description if option is not None else ""

    def move_cursor(self, delta: int) -> None:
        if not self.items:
            return
        self.cursor = max(0, min(self.cursor + delta, len(self.items) - 1))

    def expand(self) -> None:
        """Expand the preset or feature under the cursor."""
        item = self.current_item()
        if isinstance(item, PresetItem):
            self.expanded_presets.add(item.preset_id)
        elif isinstance(item, FeatureItem):
            self.expanded_features.add((item.preset_id, item.feature_id))
        else:
            return
        self.rebuild_tree()

    def collapse(self) -> None:
        """Collapse the row under the cursor, or the parent feature of an option."""
        item = self.current_item()
        if isinstance(item, PresetItem):
            if item.preset_id not in self.expanded_presets:
                return
            self.expanded_presets.discard(item.preset_id)
            self.expanded_features = {
                key for key in self.expanded_features if key[0] != item.preset_id
            }
            self.rebuild_tree()
        elif isinstance(item, FeatureItem):
            key = (item.preset_id, item.feature_id)
            if key not in self.expanded_features:
                return
            self.expanded_features.discard(key)
            self.rebuild_tree()
        elif isinstance(item, OptionItem):
            self.expanded_features.discard((item.preset_id, item.feature_id))
            self.rebuild_tree()
            self.cursor = self.items.index(FeatureItem(item.preset_id, item.feature_id))

    # Configuration

    def activate(self) -> None:
        """Toggle the row under the cursor: all booleans of a preset, or one option."""
        item = self.current_item()
        if isinstance(item, PresetItem):
            self.toggle_preset(item.preset_id)
        elif isinstance(item, OptionItem):
            self.toggle_option(item.preset_id, item.option_id)

    def toggle_option(self, preset_id: str, option_id: str) -> None:
        """Flip a boolean option or advance an enum option, then regenerate."""
        config = self.configs[preset_id]
        value = config.get(option_id)
        if not isinstance(value, BoolValue | EnumValue):
            self.status = "Only boolean and choice options can be toggled"
            return
        config.toggle(option_id)
        self.regenerate_preview()

    def toggle_preset(self, preset_id: str) -> None:
        """Switch every boolean option of a preset off if any is on, else on."""
        config = self.configs[preset_id]
        option_ids = config.bool_option_ids()
        any_on = any(config.get_bool(option_id) for option_id in option_ids)
        for option_id in option_ids:
            config.set(option_id, BoolValue(not any_on))
        self.regenerate_preview()

    def is_preset_enabled(self, preset_id: str) -> bool:
        return self.configs[preset_id].has_enabled_options()

    def version_for(self, preset: PresetDefinition[Any]) -> str | None:
        """Return a loaded choice's version, else the detected one for matching presets."""
        choice = self.loaded_choices.get(preset.preset_id)
        if choice is not None and choice.fields.get("version") is not None:
            return str(choice.fields["version"])
        return self.language_version if self._matches(preset) else None

    def render_preset(self, preset: PresetDefinition[Any]) -> str:
        """Generate the file for ``preset``, overlaying document-only fields of a loaded choice."""
        instance = preset.build_instance(self.configs[preset.preset_id], self.version_for(preset))
        choice = self.loaded_choices.get(preset.preset_id)
        if choice is not None:
            instance = preset.overlay(instance, choice)
        return preset.render(instance, self.platform)

    # Preview

    def active_preset(self) -> PresetDefinition[Any] | None:
        """Return the first preset, in registration order, with any enabled option."""
        return next(
            (preset for preset in self.registry if self.is_preset_enabled(preset.preset_id)),
            None,
        )

    @property
    def output_path(self) -> Path:
        return self.working_dir / Path(self.platform.output_path)

    def regenerate_preview(self) -> None:
        """Regenerate the preview text and its diff against the existing file."""
        self.preview_scroll = 0
        preset = self.active_preset()
        self.preview_preset_id = preset.preset_id if preset is not None else None
        if preset is None:
            self.preview = NO_PRESET_PLACEHOLDER
            self.generation_error = None
        else:
            try:
                self.preview = self.render_preset(preset)
                self.generation_error = None
            except CciError as exc:
                _LOGGER.warning("Preview generation failed for %s: %s", preset.preset_id, exc)
                self.generation_error = exc.message
                self.preview = f"# Error generating preview:\n# {exc.message}"
        if self.existing_content is None:
            self.diff = None
        else:
            self.diff = compute_diff(self.existing_content, self.preview)

    def load_existing_file(self) -> None:
        """Snapshot the file at the platform's output path; unreadable means absent."""
        try:
            self.existing_content = self.output_path.read_text(encoding="utf-8")
        except OSError:
            self.existing_content = None

    def preview_lines(self) -> int:
        if self.diff is not None:
            return len(self.diff)
        return len(self.preview.splitlines())

    def scroll_preview(self, delta: int) -> None:
        limit = max(0, self.preview_lines() - 1)
        self.preview_scroll = max(0, min(self.preview_scroll + delta, limit))

    # Platform menu

    def open_platform_menu(self) -> None:
        self.platform_menu_open = True
        self.platform_menu_cursor = PLATFORMS.index(self.platform)

    def move_platform_cursor(self, delta: int) -> None:
        self.platform_menu_cursor = max(
            0, min(self.platform_menu_cursor + delta, len(PLATFORMS) - 1)
        )

    def select_platform(self) -> None:
        """Apply the platform under the menu cursor and close the menu."""
        self.platform_menu_open = False
        platform = PLATFORMS[self.platform_menu_cursor]
        if platform is self.platform:
            return
        _LOGGER.info("Switched platform to %s", platform.value)
        self.platform = platform
        self.status = f"Platform: {platform.display_name}"
        self.load_existing_file()
        self.regenerate_preview()

    # Documents

    def export_to_document(self) -> CciDocument:
        """Return a document holding every preset with at least one enabled option."""
        choices: list[PresetChoice] = []
        for preset in self.registry:
            if not self.is_preset_enabled(preset.preset_id):
                continue
            choice = preset.to_document(self.configs[preset.preset_id], self.version_for(preset))
            loaded = self.loaded_choices.get(preset.preset_id)
            if loaded is not None:
                # Keep fields the editor does not expose, such as Docker build args.
                fields = dict(choice.fields)
                for key, value in loaded.fields.items():
                    fields.setdefault(key, value)
                choice = PresetChoice(choice.tag, fields)
            choices.append(choice)
        return CciDocument(presets=choices)

    def load_document_into(self, document: CciDocument) -> None:
        """Replace the configs named by ``document``; other presets are switched off."""
        named: dict[str, PresetConfig] = {}
        loaded: dict[str, PresetChoice] = {}
        for choice in document.presets:
            preset = self.registry.by_document_tag(choice.tag)
            named[preset.preset_id] = preset.from_document(choice)
            loaded[preset.preset_id] = choice
        for preset in self.registry:
            self.configs[preset.preset_id] = named.get(
                preset.preset_id, preset.default_config(False)
            )
        self.loaded_choices = loaded
        self.expanded_presets = set(named)
        self.rebuild_tree()
        self.regenerate_preview()

    def save_document(self, path: Path | None = None) -> Path:
        """Write the exported document, by default to ``cci.yml`` in the working directory."""
        target = path or self.working_dir / DEFAULT_DOCUMENT_NAME
        document = self.export_to_document()
        if not document.presets:
            self.status = "Nothing to save: no preset options enabled"
            return target
        write_document(document, target)
        self.status = f"Saved {target}"
        _LOGGER.info("Saved editor configuration to %s", target)
        return target

    def write_output(self) -> Path:
        """Write the current preview to the platform's output path."""
        target = self.output_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.preview, encoding="utf-8")
        except OSError as exc:
            raise CciIOError(target, exc) from exc
        _LOGGER.info("Wrote %s from editor", target)
        return target

    # Input

    def handle_key(self, key: str) -> None:
        """Apply one key press."""
        self.status = None
        if self.platform_menu_open:
            self._handle_menu_key(key)
            return
        if key in {"up", "k"}:
            self.move_cursor(-1)
        elif key in {"down", "j"}:
            self.move_cursor(1)
        elif key == "K":
            self.scroll_preview(-1)
        elif key == "J":
            self.scroll_preview(1)
        elif key in {"right", "l"}:
            self.expand()
        elif key in {"left", "h"}:
            self.collapse()
        elif key in {"space", "enter"}:
            self.activate()
        elif key == "p":
            self.open_platform_menu()
        elif key == "s":
            try:
                self.save_document()
            except CciError as exc:
                self.status = exc.diagnostic()
        elif key in {"q", "esc"}:
            self.should_quit = True
        elif key == "W":
            self.write_on_exit = True
            self.should_quit = True

    def _handle_menu_key(self, key: str) -> None:
        if key in {"up", "k"}:
            self.move_platform_cursor(-1)
        elif key in {"down", "j"}:
            self.move_platform_cursor(1)
        elif key == "enter":
            self.select_platform()
        elif key in {"esc", "q"}:
            self.platform_menu_open = False


def load_session(
    working_dir: Path,
    detection: DetectionResult | None,
    *,
    platform: Platform = Platform.GITHUB,
    document_path: Path | None = None,
) -> EditorState:
    """Start a session from detection, then apply a saved document when one exists."""
    state = EditorState.from_detection(working_dir, detection, platform=platform)
    path = document_path or working_dir / DEFAULT_DOCUMENT_NAME
    if path.is_file():
        state.load_document_into(load_document(path))
        state.status = f"Loaded {path}"
    return state
