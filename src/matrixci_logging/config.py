"""Logger configuration profiles."""

import logging
import sys
from logging.handlers import RotatingFileHandler

from matrixci_logging.utils import (
    get_log_file_path,
    get_log_level,
    should_use_console_logging,
    should_use_file_logging,
)

CLI_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
TEST_FORMAT = "%(levelname)-8s %(name)s: %(message)s"

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

PROFILES = ("cli", "test")


def configure_logger(
    name: str,
    profile: str = "cli",
    level: str | None = None,
    log_file: str | None = None,
    to_console: bool | None = None,
) -> logging.Logger:
    """Configure a named logger according to a profile.

    Parameters
    ----------
    name : str
        Logger name, usually a top-level package
    profile : str
        ``"cli"`` logs to a rotating file (and optionally stderr);
        ``"test"`` logs to stderr only
    level : str, optional
        Log level; read from the environment when omitted
    log_file : str, optional
        Explicit log file for the ``cli`` profile
    to_console : bool, optional
        Mirror records to stderr; read from the environment when omitted

    Returns
    -------
    logging.Logger
        The configured logger

    Raises
    ------
    ValueError
        If the profile is unknown
    """
    if profile not in PROFILES:
        msg = f"Unknown profile: {profile}"
        raise ValueError(msg)

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(level.upper() if level else get_log_level())
    logger.propagate = False

    if profile == "test":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(TEST_FORMAT))
        logger.addHandler(handler)
        return logger

    if should_use_file_logging():
        path = log_file or str(get_log_file_path("cli"))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(CLI_FORMAT))
        logger.addHandler(file_handler)

    if to_console is None:
        to_console = should_use_console_logging()
    if to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(TEST_FORMAT))
        logger.addHandler(console)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_cli_logger(name: str) -> logging.Logger:
    """Get a logger for CLI modules.

    Configuration happens once at CLI startup through ``configure_logger``;
    module loggers only inherit from their package logger.
    """
    return logging.getLogger(name)

