"""Tests for platform model serialization."""

from __future__ import annotations

import pytest
import yaml

from ci_composer.errors import InternalError
from ci_composer.platforms.base import Platform, compact_mapping
from ci_composer.platforms.gitlab import GitLabCI
from ci_composer.platforms.jenkins import JenkinsConfig, JenkinsStage, sh
from ci_composer.platforms.serializers import jenkins_to_string, serialize, to_yaml

EXPECTED_JENKINSFILE = """pipeline {
    agent {
        label 'any'
    }

    environment {
        CARGO_TERM_COLOR = 'always'
    }

    stages {
        stage('Test') {
            steps {
                sh 'cargo test'
            }
        }
    }
}
"""


def test_jenkins_template() -> None:
    config = JenkinsConfig(
        stages=[JenkinsStage("Test", [sh("cargo test")])],
        environment=[("CARGO_TERM_COLOR", "always")],
    )
    assert jenkins_to_string(config) == EXPECTED_JENKINSFILE


def test_jenkins_without_environment_block() -> None:
    text = jenkins_to_string(JenkinsConfig(stages=[JenkinsStage("Build", [])]))
    assert "environment" not in text
    assert "        stage('Build') {\n            steps {\n            }\n" in text


def test_sh_escapes_quotes_and_backslashes() -> None:
    assert sh("echo 'hi'") == "sh 'echo \\'hi\\''"
    assert sh("a\\b") == "sh 'a\\\\b'"


def test_serialize_rejects_mismatched_model() -> None:
    with pytest.raises(InternalError, match="Jenkins serializer received GitLabCI"):
        serialize(Platform.JENKINS, GitLabCI(stages=["test"], jobs={}))
    with pytest.raises(InternalError, match="GitHub Actions serializer received JenkinsConfig"):
        serialize(Platform.GITHUB, JenkinsConfig(stages=[]))


def test_to_yaml_block_style_without_anchors() -> None:
    shared = ["main", "master"]
    text = to_yaml({"on": {"push": {"branches": shared}, "pull_request": {"branches": shared}}})
    assert "&" not in text
    assert "*" not in text
    assert "[" not in text
    assert text.startswith("'on':\n")
    assert yaml.safe_load(text)["on"]["pull_request"]["branches"] == shared


def test_to_yaml_keeps_order_and_literal_blocks() -> None:
    text = to_yaml({"b": 1, "a": "line one\nline two\n"})
    assert text.index("b:") < text.index("a:")
    assert "a: |\n  line one\n  line two\n" in text


def test_compact_mapping_drops_unset_values() -> None:
    assert compact_mapping([("a", 1), ("b", None), ("c", False), ("d", [])]) == {
        "a": 1,
        "c": False,
        "d": [],
    }
