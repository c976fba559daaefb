"""Render an ``EditorState`` snapshot as a rich layout."""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from ci_composer.editor.highlight import highlight_diff_line, highlight_line
from ci_composer.editor.state import (
    PLATFORMS,
    EditorState,
    FeatureItem,
    OptionItem,
    PresetItem,
    TreeItem,
)
from ci_composer.presets.options import BoolValue, EnumValue, IntValue, StringValue

HELP_TEXT = (
    "↑↓/jk move  →←/lh expand/collapse  space toggle  J/K scroll  "
    "p platform  s save cci.yml  W write & quit  q quit"
)
PREVIEW_HEIGHT = 40


def tree_row_label(state: EditorState, item: TreeItem) -> str:
    """Return the text of one tree row with its markers."""
    preset = state.registry.require(item.preset_id)
    if isinstance(item, PresetItem):
        arrow = "▼" if item.preset_id in state.expanded_presets else "▶"
        dot = "●" if state.is_preset_enabled(item.preset_id) else "○"
        return f"{arrow} {dot} {preset.meta.display_name}"
    feature = preset.meta.feature(item.feature_id)
    feature_name = feature.display_name if feature is not None else item.feature_id
    if isinstance(item, FeatureItem):
        expanded = (item.preset_id, item.feature_id) in state.expanded_features
        return f"  {'▼' if expanded else '▶'} {feature_name}"
    option = preset.meta.option(item.option_id)
    name = option.display_name if option is not None else item.option_id
    value = state.configs[item.preset_id].get(item.option_id)
    if isinstance(value, BoolValue):
        return f"      [{'✓' if value.value else ' '}] {name}"
    if isinstance(value, EnumValue):
        return f"      {name} ({value.selected})"
    if isinstance(value, StringValue | IntValue):
        return f"      {name}: {value.value}"
    return f"      {name}"


def _info_bar(state: EditorState) -> Text:
    project = state.project_type.display_name if state.project_type else "Unknown"
    text = Text()
    text.append("Project: ", style="bold")
    text.append(project)
    text.append("  Version: ", style="bold")
    text.append(state.language_version or "default")
    text.append("  Platform: ", style="bold")
    text.append(state.platform.display_name, style="cyan")
    text.append("  Output: ", style="bold")
    text.append(str(state.platform.output_path))
    if state.existing_content is not None:
        text.append("  (exists, showing diff)", style="yellow")
    return text


def _tree_panel(state: EditorState) -> Panel:
    rows = []
    for index, item in enumerate(state.items):
        style = "reverse" if index == state.cursor else ""
        if isinstance(item, PresetItem) and not state.is_preset_enabled(item.preset_id):
            style = f"{style} dim".strip()
        rows.append(Text(tree_row_label(state, item), style=style))
    return Panel(Group(*rows), title="Presets", border_style="blue")


def _platform_menu(state: EditorState) -> Panel:
    rows = []
    for index, platform in enumerate(PLATFORMS):
        marker = "●" if platform is state.platform else " "
        style = "reverse" if index == state.platform_menu_cursor else ""
        rows.append(Text(f"{marker} {platform.display_name}", style=style))
    return Panel(Group(*rows), title="Select platform (enter/esc)", border_style="magenta")


def preview_lines(state: EditorState) -> list[Text]:
    """Return highlighted preview lines, as a diff when an existing file is loaded."""
    if state.diff is not None:
        return [highlight_diff_line(line) for line in state.diff]
    return [highlight_line(line) for line in state.preview.splitlines()]


def _preview_panel(state: EditorState, height: int) -> Panel:
    lines = preview_lines(state)[state.preview_scroll : state.preview_scroll + height]
    title = "Preview"
    if state.preview_preset_id is not None:
        title = f"Preview: {state.preview_preset_id}"
    border = "red" if state.generation_error else "green"
    return Panel(Text("\n").join(lines), title=title, border_style=border)


def _footer(state: EditorState) -> Text:
    text = Text(HELP_TEXT, style="bright_black")
    if state.status:
        text.append("\n")
        text.append(state.status, style="bold yellow")
    return text


def render_state(state: EditorState, height: int = PREVIEW_HEIGHT) -> RenderableType:
    """Build the full-screen layout for ``state``."""
    layout = Layout()
    layout.split_column(
        Layout(Panel(_info_bar(state)), name="info", size=3),
        Layout(name="body"),
        Layout(Panel(Text(state.current_item_description())), name="description", size=3),
        Layout(_footer(state), name="footer", size=2),
    )
    left = _platform_menu(state) if state.platform_menu_open else _tree_panel(state)
    layout["body"].split_row(
        Layout(left, name="tree", ratio=2),
        Layout(_preview_panel(state, height), name="preview", ratio=3),
    )
    return layout
