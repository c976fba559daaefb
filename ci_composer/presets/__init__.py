"""Built-in presets, their option model and the preset registry."""

from ci_composer.presets.base import PresetDefinition
from ci_composer.presets.options import PresetConfig
from ci_composer.presets.registry import PresetRegistry, default_registry

__all__ = ["PresetConfig", "PresetDefinition", "PresetRegistry", "default_registry"]
