"""Preset metadata and the dynamic option store edited by the TUI.

A preset declares features, each grouping options. ``PresetConfig`` holds
the current value of every declared option, keyed by option id.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from ci_composer.errors import InternalError

NONE_SENTINEL = "none"

EnumT = TypeVar("EnumT", bound=Enum)


@dataclass(frozen=True)
class BoolValue:
    """Boolean option value."""

    value: bool

    @property
    def is_enabled(self) -> bool:
        return self.value


@dataclass(frozen=True)
class EnumValue:
    """Choice among ordered variants; ``selected`` is always one of them."""

    selected: str
    variants: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.selected not in self.variants:
            raise InternalError(
                f"enum value '{self.selected}' is not one of: {', '.join(self.variants)}"
            )

    @property
    def is_enabled(self) -> bool:
        # Always holds a variant, the sentinel included.
        return True

    def advance(self) -> EnumValue:
        """Return the value with the next variant selected, wrapping around."""
        index = self.variants.index(self.selected)
        return EnumValue(self.variants[(index + 1) % len(self.variants)], self.variants)


@dataclass(frozen=True)
class StringValue:
    """Free-text option value."""

    value: str

    @property
    def is_enabled(self) -> bool:
        return True


@dataclass(frozen=True)
class IntValue:
    """Integer option value."""

    value: int

    @property
    def is_enabled(self) -> bool:
        return True


OptionValue = BoolValue | EnumValue | StringValue | IntValue


def enum_value(member: Enum) -> EnumValue:
    """Return an EnumValue selecting ``member`` among all members of its enum."""
    variants = tuple(str(item.value) for item in type(member))
    return EnumValue(str(member.value), variants)


def optional_enum_value(enum_type: type[Enum], member: Enum | None) -> EnumValue:
    """Return an EnumValue whose variants start with the ``none`` sentinel."""
    variants = (NONE_SENTINEL, *(str(item.value) for item in enum_type))
    selected = NONE_SENTINEL if member is None else str(member.value)
    return EnumValue(selected, variants)


def parse_enum(enum_type: type[EnumT], raw: str | None, default: EnumT) -> EnumT:
    """Parse a variant name, falling back to ``default`` on missing or unknown input."""
    if raw is None:
        return default
    try:
        return enum_type(raw.lower())
    except ValueError:
        return default


def parse_optional_enum(enum_type: type[EnumT], raw: str | None) -> EnumT | None:
    """Parse a variant name, mapping the sentinel, missing or unknown input to None."""
    if raw is None or raw == NONE_SENTINEL:
        return None
    try:
        return enum_type(raw.lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class OptionMeta:
    """Declaration of one user-editable option."""

    id: str
    display_name: str
    description: str
    default_value: OptionValue
    depends_on: str | None = None

    def off_value(self) -> OptionValue:
        """Return the value used when the owning preset does not match the project."""
        if isinstance(self.default_value, BoolValue):
            return BoolValue(False)
        return self.default_value


@dataclass(frozen=True)
class FeatureMeta:
    """UI grouping of related options."""

    id: str
    display_name: str
    description: str
    options: tuple[OptionMeta, ...]

    def option(self, option_id: str) -> OptionMeta | None:
        """Return the option declared with ``option_id`` in this feature."""
        return next((option for option in self.options if option.id == option_id), None)


@dataclass(frozen=True)
class PresetMeta:
    """Display text and feature tree of one preset."""

    preset_id: str
    display_name: str
    description: str
    features: tuple[FeatureMeta, ...]

    def feature(self, feature_id: str) -> FeatureMeta | None:
        """Return the feature declared with ``feature_id``."""
        return next((feature for feature in self.features if feature.id == feature_id), None)

    def iter_options(self) -> Iterator[OptionMeta]:
        """Yield every option in feature order."""
        for feature in self.features:
            yield from feature.options

    def option(self, option_id: str) -> OptionMeta | None:
        """Return the option declared with ``option_id`` in any feature."""
        return next((option for option in self.iter_options() if option.id == option_id), None)


@dataclass
class PresetConfig:
    """Current value of every option of one preset."""

    preset_id: str
    values: dict[str, OptionValue] = field(default_factory=dict)

    def get(self, option_id: str) -> OptionValue | None:
        return self.values.get(option_id)

    def get_bool(self, option_id: str) -> bool:
        """Return a boolean option, False when missing."""
        value = self.values.get(option_id)
        if value is None:
            return False
        if not isinstance(value, BoolValue):
            raise InternalError(f"option '{option_id}' of {self.preset_id} is not a boolean")
        return value.value

    def get_string(self, option_id: str) -> str:
        """Return a string option, empty when missing."""
        value = self.values.get(option_id)
        if value is None:
            return ""
        if not isinstance(value, StringValue):
            raise InternalError(f"option '{option_id}' of {self.preset_id} is not a string")
        return value.value

    def get_int(self, option_id: str) -> int:
        """Return an integer option, zero when missing."""
        value = self.values.get(option_id)
        if value is None:
            return 0
        if not isinstance(value, IntValue):
            raise InternalError(f"option '{option_id}' of {self.preset_id} is not an integer")
        return value.value

    def get_enum(self, option_id: str) -> str | None:
        """Return the selected variant of an enum option, None when missing."""
        value = self.values.get(option_id)
        if value is None:
            return None
        if not isinstance(value, EnumValue):
            raise InternalError(f"option '{option_id}' of {self.preset_id} is not an enum")
        return value.selected

    def set(self, option_id: str, value: OptionValue) -> None:
        """Store a value, refusing to change the type of an existing option."""
        current = self.values.get(option_id)
        if current is not None and type(current) is not type(value):
            raise InternalError(
                f"option '{option_id}' of {self.preset_id} holds {type(current).__name__}, "
                f"not {type(value).__name__}"
            )
        self.values[option_id] = value

    def toggle(self, option_id: str) -> None:
        """Flip a boolean option or advance an enum option to its next variant."""
        value = self.values.get(option_id)
        if isinstance(value, BoolValue):
            self.values[option_id] = BoolValue(not value.value)
        elif isinstance(value, EnumValue):
            self.values[option_id] = value.advance()

    def has_enabled_options(self) -> bool:
        """Return True when any boolean is on or the preset has a non-boolean option."""
        return any(value.is_enabled for value in self.values.values())

    def enabled_summary(self) -> list[str]:
        """Return booleans that are on by id and every other option as ``id=value``."""
        summary: list[str] = []
        for option_id, value in self.values.items():
            if isinstance(value, BoolValue):
                if value.value:
                    summary.append(option_id)
            elif isinstance(value, EnumValue):
                summary.append(f"{option_id}={value.selected}")
            else:
                summary.append(f"{option_id}={value.value}")
        return summary

    def bool_option_ids(self) -> list[str]:
        return [key for key, value in self.values.items() if isinstance(value, BoolValue)]

    def copy(self) -> PresetConfig:
        return PresetConfig(self.preset_id, dict(self.values))
