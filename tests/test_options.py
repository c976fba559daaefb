"""Tests for option values and the per-preset option store."""

from __future__ import annotations

import pytest

from ci_composer.errors import InternalError
from ci_composer.presets.docker import DockerRegistry
from ci_composer.presets.options import (
    BoolValue,
    EnumValue,
    IntValue,
    PresetConfig,
    StringValue,
    enum_value,
    optional_enum_value,
    parse_enum,
    parse_optional_enum,
)
from ci_composer.presets.rust import META


def test_enabled_semantics() -> None:
    assert BoolValue(True).is_enabled
    assert not BoolValue(False).is_enabled
    assert StringValue("myapp").is_enabled
    assert IntValue(3).is_enabled
    assert optional_enum_value(DockerRegistry, None).is_enabled
    assert optional_enum_value(DockerRegistry, DockerRegistry.GITHUB).is_enabled
    assert enum_value(DockerRegistry.DOCKERHUB).is_enabled


def test_enum_value_must_select_a_variant() -> None:
    with pytest.raises(InternalError, match="not one of"):
        EnumValue("quay", ("none", "dockerhub", "github"))


def test_advance_wraps_around() -> None:
    value = optional_enum_value(DockerRegistry, None)
    seen = [value.selected]
    for _ in value.variants:
        value = value.advance()
        seen.append(value.selected)
    assert seen == ["none", "dockerhub", "github", "none"]


def test_parse_helpers() -> None:
    assert parse_enum(DockerRegistry, "GitHub", DockerRegistry.DOCKERHUB) is DockerRegistry.GITHUB
    assert parse_enum(DockerRegistry, "quay", DockerRegistry.DOCKERHUB) is DockerRegistry.DOCKERHUB
    assert parse_optional_enum(DockerRegistry, "none") is None
    assert parse_optional_enum(DockerRegistry, None) is None
    assert parse_optional_enum(DockerRegistry, "dockerhub") is DockerRegistry.DOCKERHUB


def test_set_refuses_type_change() -> None:
    config = PresetConfig("rust", {"enable_coverage": BoolValue(True)})
    with pytest.raises(InternalError, match="holds BoolValue, not StringValue"):
        config.set("enable_coverage", StringValue("yes"))
    config.set("enable_coverage", BoolValue(False))
    assert config.get_bool("enable_coverage") is False


def test_typed_getters() -> None:
    config = PresetConfig(
        "docker",
        {
            "image_name": StringValue("api"),
            "registry": optional_enum_value(DockerRegistry, None),
            "enable_cache": BoolValue(True),
        },
    )
    assert config.get_string("image_name") == "api"
    assert config.get_enum("registry") == "none"
    assert config.get_bool("missing") is False
    assert config.get_string("missing") == ""
    assert config.get_int("missing") == 0
    with pytest.raises(InternalError):
        config.get_bool("image_name")
    with pytest.raises(InternalError):
        config.get_enum("enable_cache")


def test_toggle_and_enabled_options() -> None:
    assert not PresetConfig("rust", {"enable_linter": BoolValue(False)}).has_enabled_options()
    config = PresetConfig(
        "docker",
        {"image_name": StringValue("api"), "registry": optional_enum_value(DockerRegistry, None)},
    )
    assert config.has_enabled_options()
    config.toggle("image_name")
    assert config.get_string("image_name") == "api"
    config.toggle("registry")
    assert config.get_enum("registry") == "dockerhub"
    assert config.bool_option_ids() == []


def test_copy_is_independent() -> None:
    config = PresetConfig("rust", {"enable_linter": BoolValue(False)})
    clone = config.copy()
    clone.toggle("enable_linter")
    assert config.get_bool("enable_linter") is False
    assert clone.get_bool("enable_linter") is True


def test_meta_lookup() -> None:
    option = META.option("enable_coverage")
    assert option is not None
    assert option.off_value() == BoolValue(False)
    assert META.option("missing") is None
    feature = META.features[0]
    assert META.feature(feature.id) is feature
    assert feature.option(feature.options[0].id) is feature.options[0]


def test_enabled_summary_lists_booleans_on_and_other_values() -> None:
    config = PresetConfig(
        "docker",
        {
            "image_name": StringValue("api"),
            "registry": optional_enum_value(DockerRegistry, None),
            "enable_cache": BoolValue(True),
            "push_on_tags_only": BoolValue(False),
        },
    )
    assert config.enabled_summary() == ["image_name=api", "registry=none", "enable_cache"]
