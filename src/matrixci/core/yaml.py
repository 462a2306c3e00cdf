"""YAML helpers for matrixci configuration and generated compose files."""

from pathlib import Path
from typing import Any

import yaml


class YamlOperationError(Exception):
    """Raised when YAML file operations fail."""


def safe_read_yaml(path: Path) -> dict[str, Any]:
    """Safely read YAML file with error handling.

    Parameters
    ----------
    path : Path
        Path to YAML file

    Returns
    -------
    dict[str, Any]
        Parsed YAML data

    Raises
    ------
    YamlOperationError
        If file cannot be read or parsed
    """
    try:
        if not path.exists():
            msg = f"YAML file does not exist: {path}"
            raise YamlOperationError(msg)

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if data is not None else {}

    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise YamlOperationError(msg) from e
    except OSError as e:
        msg = f"Cannot read YAML file {path}: {e}"
        raise YamlOperationError(msg) from e


def parse_yaml(text: str, origin: str = "<string>") -> dict[str, Any]:
    """Parse YAML text that must hold a mapping.

    Raises
    ------
    YamlOperationError
        If the text is not valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {origin}: {e}"
        raise YamlOperationError(msg) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at the top level of {origin}"
        raise YamlOperationError(msg)
    return data
