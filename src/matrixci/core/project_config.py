"""Project/user YAML configuration loading for matrixci.

This module provides helpers to locate, load, and deep-merge configuration from
user (~/.config/matrixci/config.yaml) and project (.matrixci.yaml) files. Built-in
defaults target the winvoice-server Postgres test setup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from matrixci.core.constants import (
    LockfileDefaults,
    ServiceDefaults,
    ToolchainDefaults,
)
from matrixci.core.paths import ProjectPaths
from matrixci.core.scope import DEFAULT_SCOPE
from matrixci.core.yaml import safe_read_yaml


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries in place and return ``base``.

    Values from ``override`` take precedence. Nested dicts are merged
    recursively; other values are replaced.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def default_config() -> dict[str, Any]:
    """Return the default configuration structure."""
    return {
        "defaults": {
            "log_level": "INFO",
        },
        "lockfile": {
            "path": str(ProjectPaths.LOCKFILE),
            "dependency": LockfileDefaults.DEPENDENCY,
            "canonical_origin": LockfileDefaults.CANONICAL_ORIGIN,
            "remote_init_subtree": LockfileDefaults.REMOTE_INIT_SUBTREE,
        },
        "service": {
            "name": ServiceDefaults.NAME,
            "image": ServiceDefaults.IMAGE,
            "database": ServiceDefaults.DATABASE,
            "user": ServiceDefaults.USER,
            "password": ServiceDefaults.PASSWORD,
            "init_mount": ServiceDefaults.INIT_MOUNT,
            "local_init_dirs": list(ServiceDefaults.LOCAL_INIT_DIRS),
        },
        "toolchain": {
            "image": ToolchainDefaults.IMAGE,
            "workdir": ToolchainDefaults.WORKDIR,
            "rustflags": ToolchainDefaults.RUSTFLAGS,
        },
        "matrix": {
            "tool_version": DEFAULT_SCOPE.tool_version,
            "features": sorted(DEFAULT_SCOPE.features),
            "at_least_one_of": [sorted(g) for g in DEFAULT_SCOPE.at_least_one_of],
            "exclude": sorted(DEFAULT_SCOPE.excluded),
            "include": sorted(DEFAULT_SCOPE.included),
            "skip": sorted(DEFAULT_SCOPE.skipped),
        },
    }


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with tolerant fallback.

    Returns an empty dict when the file is missing or not a mapping at the top
    level. A file that exists but cannot be parsed is reported, not ignored.
    """
    if not path.exists():
        return {}
    data = safe_read_yaml(path) or {}
    return data if isinstance(data, dict) else {}


def get_user_config_path() -> Path:
    """Get path to user-level matrixci configuration file."""
    return Path.home() / ".config" / "matrixci" / "config.yaml"


def get_project_config_path(repo_root: Path) -> Path:
    """Get path to project-level matrixci configuration file."""
    return repo_root / ProjectPaths.MATRIXCI_CONFIG


def load_merged_config(repo_root: Path) -> dict[str, Any]:
    """Load default + user + project YAML config into a single dict.

    Raises
    ------
    YamlOperationError
        If an existing config file is not valid YAML
    """
    cfg = default_config()

    for path in (get_user_config_path(), get_project_config_path(repo_root)):
        override = load_yaml(path)
        if override:
            deep_merge(cfg, override)

    return cfg
