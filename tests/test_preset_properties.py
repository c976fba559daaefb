"""Properties every preset must satisfy on every platform."""

from __future__ import annotations

import itertools
import re
from typing import Any

import pytest
import yaml

from ci_composer.platforms.base import Platform
from ci_composer.presets.base import PresetDefinition
from ci_composer.presets.options import BoolValue, EnumValue, OptionValue, PresetConfig
from ci_composer.presets.registry import default_registry

PRESETS = list(default_registry())
JOB_ROLES = "test|lint|format|security|build|release|type-check"
JOB_ID = re.compile(rf"^(rust|python|go|docker)/({JOB_ROLES})$")
GITLAB_GLOBALS = {"stages", "variables", "cache"}


def _choices(value: OptionValue) -> list[OptionValue]:
    if isinstance(value, BoolValue):
        return [BoolValue(False), BoolValue(True)]
    if isinstance(value, EnumValue):
        return [EnumValue(variant, value.variants) for variant in value.variants]
    return [value]


def all_configs(preset: PresetDefinition[Any]) -> list[PresetConfig]:
    """Return every config reachable by toggling options of the preset."""
    options = list(preset.meta.iter_options())
    configs = []
    for values in itertools.product(*(_choices(option.default_value) for option in options)):
        config = PresetConfig(preset.preset_id)
        for option, value in zip(options, values, strict=True):
            config.set(option.id, value)
        configs.append(config)
    return configs


def _job_ids(platform: Platform, text: str) -> list[str]:
    data = yaml.safe_load(text)
    if platform is Platform.GITLAB:
        return [str(key) for key in data if key not in GITLAB_GLOBALS]
    return [str(key) for key in data["jobs"]]


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
@pytest.mark.parametrize("platform", list(Platform), ids=lambda platform: platform.value)
def test_every_reachable_config_emits(preset: PresetDefinition[Any], platform: Platform) -> None:
    for config in all_configs(preset):
        text = preset.generate(config, platform, None)
        assert text.strip()
        if platform is not Platform.JENKINS:
            assert all(JOB_ID.match(job_id) for job_id in _job_ids(platform, text))


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
@pytest.mark.parametrize("platform", list(Platform), ids=lambda platform: platform.value)
def test_emission_is_deterministic(preset: PresetDefinition[Any], platform: Platform) -> None:
    first = preset.generate(preset.default_config(True), platform, "1.0")
    second = preset.generate(preset.default_config(True), platform, "1.0")
    assert first == second


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
def test_gitea_matches_github(preset: PresetDefinition[Any]) -> None:
    config = preset.default_config(True)
    github = preset.generate(config, Platform.GITHUB, None)
    assert preset.generate(config, Platform.GITEA, None) == github


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
def test_document_round_trip(preset: PresetDefinition[Any]) -> None:
    for config in all_configs(preset):
        restored = preset.from_document(preset.to_document(config, None))
        assert restored == config


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
def test_toggling_is_idempotent(preset: PresetDefinition[Any]) -> None:
    original = preset.default_config(True)
    for option in preset.meta.iter_options():
        config = original.copy()
        value = config.get(option.id)
        if isinstance(value, BoolValue):
            config.toggle(option.id)
            assert config != original
            config.toggle(option.id)
        elif isinstance(value, EnumValue):
            for _ in value.variants:
                config.toggle(option.id)
        assert config == original


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
def test_detected_and_undetected_defaults(preset: PresetDefinition[Any]) -> None:
    detected = preset.default_config(True)
    undetected = preset.default_config(False)
    for option in preset.meta.iter_options():
        assert detected.get(option.id) == option.default_value
        if isinstance(option.default_value, BoolValue):
            assert undetected.get(option.id) == BoolValue(False)
        else:
            assert undetected.get(option.id) == option.default_value
    has_choices = any(
        not isinstance(option.default_value, BoolValue) for option in preset.meta.iter_options()
    )
    assert undetected.has_enabled_options() == has_choices


@pytest.mark.parametrize("preset", PRESETS, ids=lambda preset: preset.preset_id)
def test_config_holds_every_declared_option(preset: PresetDefinition[Any]) -> None:
    config = preset.default_config(True)
    assert set(config.values) == {option.id for option in preset.meta.iter_options()}
