"""Prefix-based colouring of YAML-ish preview lines using rich ``Text``."""

from __future__ import annotations

from rich.text import Text

from ci_composer.editor.diff import DiffLine, DiffTag

COMMENT_STYLE = "bright_black"
KEY_STYLE = "cyan"
STRING_STYLE = "green"
BOOL_STYLE = "magenta"
NUMBER_STYLE = "yellow"
BULLET_STYLE = "yellow"

_DIFF_STYLES = {
    DiffTag.ADDED: ("+ ", "on dark_green"),
    DiffTag.REMOVED: ("- ", "on dark_red"),
    DiffTag.UNCHANGED: ("  ", ""),
}


def _value_style(value: str) -> str:
    stripped = value.strip()
    if stripped.startswith(('"', "'")):
        return STRING_STYLE
    if stripped in {"true", "false"}:
        return BOOL_STYLE
    try:
        float(stripped)
    except ValueError:
        return ""
    return NUMBER_STYLE


def _append_body(text: Text, body: str) -> None:
    if body.startswith("- "):
        text.append("- ", style=BULLET_STYLE)
        body = body[2:]
    key, colon, value = body.partition(":")
    if not colon:
        text.append(body)
        return
    text.append(key, style=KEY_STYLE)
    text.append(":")
    if value:
        text.append(value, style=_value_style(value))


def highlight_line(line: str) -> Text:
    """Return ``line`` coloured by its leading syntax."""
    text = Text()
    if not line.strip():
        return text
    body = line.lstrip(" ")
    text.append(line[: len(line) - len(body)])
    if body.startswith("#"):
        text.append(body, style=COMMENT_STYLE)
        return text
    _append_body(text, body)
    return text


def highlight_diff_line(line: DiffLine) -> Text:
    """Return a highlighted diff line with a ``+``/``-`` gutter and background."""
    marker, background = _DIFF_STYLES[line.tag]
    text = Text(marker)
    text.append_text(highlight_line(line.text))
    if background:
        text.stylize(background)
    return text


def highlight_text(content: str) -> Text:
    """Highlight a whole preview, one line at a time."""
    return Text("\n").join(highlight_line(line) for line in content.splitlines())
