"""Environment helpers for logging configuration."""

import os
from pathlib import Path

LOG_LEVEL_ENV = "MATRIXCI_LOG_LEVEL"
NO_FILE_LOGGING_ENV = "MATRIXCI_NO_FILE_LOGGING"
CONSOLE_LOGGING_ENV = "MATRIXCI_CONSOLE_LOGGING"
LOG_DIR_ENV = "MATRIXCI_LOG_DIR"

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def get_log_level(default: str = "INFO") -> str:
    """Read the log level from the environment.

    Parameters
    ----------
    default : str
        Level used when the variable is unset or invalid

    Returns
    -------
    str
        Upper-cased level name
    """
    level = os.environ.get(LOG_LEVEL_ENV, default).strip().upper()
    return level if level in _VALID_LEVELS else default


def get_log_file_path(name: str = "cli", log_dir: Path | None = None) -> Path:
    """Return the log file path for ``name``, creating the directory."""
    if log_dir is None:
        env_dir = os.environ.get(LOG_DIR_ENV)
        log_dir = Path(env_dir) if env_dir else Path.home() / ".matrixci" / "log"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{name}.log"


def should_use_file_logging() -> bool:
    """Whether file logging is enabled (it is unless explicitly disabled)."""
    return not _env_flag(NO_FILE_LOGGING_ENV)


def should_use_console_logging() -> bool:
    """Whether logs should also be mirrored to stderr."""
    return _env_flag(CONSOLE_LOGGING_ENV)
