"""Tests for matrixci.core.scope."""

import pytest

from matrixci.core.errors import ConfigurationError
from matrixci.core.scope import (
    CARGO_HACK_VERSION,
    DEFAULT_SCOPE,
    SERIAL_TEST_ARGS,
    MatrixConfig,
)


class TestMatrixConfigValidation:
    """Tests for the subset rule on matrix options."""

    def test_accepts_options_drawn_from_features(self):
        """Test that options referencing declared features are accepted."""
        config = MatrixConfig(
            features=frozenset({"a", "b", "c"}),
            excluded=frozenset({"c"}),
            included=frozenset({"a"}),
            skipped=frozenset({"c"}),
        )
        assert config.tool_version == CARGO_HACK_VERSION

    @pytest.mark.parametrize(
        ("option", "kwargs"),
        [
            ("exclude", {"excluded": frozenset({"zzz"})}),
            ("include", {"included": frozenset({"zzz"})}),
            ("skip", {"skipped": frozenset({"zzz"})}),
            ("at-least-one-of", {"at_least_one_of": frozenset({frozenset({"a", "zzz"})})}),
        ],
    )
    def test_rejects_undeclared_features(self, option, kwargs):
        """Test that each option is checked against the feature set."""
        with pytest.raises(ConfigurationError, match=f"'{option}'.*zzz"):
            MatrixConfig(features=frozenset({"a", "b"}), **kwargs)

    def test_rejects_empty_tool_version(self):
        """Test that the tool version must be pinned."""
        with pytest.raises(ConfigurationError, match="pinned"):
            MatrixConfig(features=frozenset({"a"}), tool_version="")


class TestHackArgs:
    """Tests for rendering cargo hack arguments."""

    def test_default_scope_arguments(self):
        """Test the exact arguments of the default scope."""
        assert DEFAULT_SCOPE.to_hack_args() == [
            "--feature-powerset",
            "--at-least-one-of",
            "bin,postgres",
            "--exclude-features",
            "watchman",
            "--include-features",
            "test-postgres",
            "--skip",
            "watchman",
        ]

    def test_default_scope_declares_all_features(self):
        """Test the default feature set and pinned version."""
        assert DEFAULT_SCOPE.features == {"bin", "postgres", "test-postgres", "watchman"}
        assert DEFAULT_SCOPE.tool_version == "0.6.20"

    def test_empty_options_are_omitted(self):
        """Test that only the power-set flag is emitted without options."""
        config = MatrixConfig(features=frozenset({"a"}))
        assert config.to_hack_args() == ["--feature-powerset"]

    def test_groups_are_rendered_in_stable_order(self):
        """Test that several groups render deterministically."""
        config = MatrixConfig(
            features=frozenset({"a", "b", "c", "d"}),
            at_least_one_of=frozenset({frozenset({"d", "c"}), frozenset({"b", "a"})}),
        )
        assert config.to_hack_args() == [
            "--feature-powerset",
            "--at-least-one-of",
            "a,b",
            "--at-least-one-of",
            "c,d",
        ]

    def test_serial_args_are_single_threaded(self):
        """Test the serial harness arguments."""
        assert SERIAL_TEST_ARGS == ("--test-threads", "1")


class TestFromMapping:
    """Tests for MatrixConfig.from_mapping."""

    def test_builds_from_lists_and_strings(self):
        """Test that comma-separated strings and lists are both accepted."""
        config = MatrixConfig.from_mapping(
            {
                "features": ["bin", "postgres", "watchman"],
                "at_least_one_of": ["bin,postgres"],
                "exclude": "watchman",
                "skip": ["watchman"],
                "tool_version": "0.6.21",
            },
        )
        assert config.at_least_one_of == {frozenset({"bin", "postgres"})}
        assert config.excluded == {"watchman"}
        assert config.skipped == {"watchman"}
        assert config.included == frozenset()
        assert config.tool_version == "0.6.21"

    def test_missing_version_uses_pinned_default(self):
        """Test that an absent tool version falls back to the pinned one."""
        config = MatrixConfig.from_mapping({"features": ["a"]})
        assert config.tool_version == CARGO_HACK_VERSION

    def test_rejects_non_list_groups(self):
        """Test that a malformed at_least_one_of section is reported."""
        with pytest.raises(ConfigurationError, match="list of groups"):
            MatrixConfig.from_mapping({"features": ["a"], "at_least_one_of": 3})

    def test_subset_rule_applies(self):
        """Test that from_mapping validates like the constructor."""
        with pytest.raises(ConfigurationError, match="undeclared"):
            MatrixConfig.from_mapping({"features": ["a"], "include": ["b"]})
