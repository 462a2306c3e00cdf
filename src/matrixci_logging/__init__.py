"""Logging setup shared by the matrixci packages."""

from logging import DEBUG, ERROR, INFO, WARNING

from matrixci_logging.config import configure_logger, get_cli_logger
from matrixci_logging.utils import get_log_file_path, get_log_level

__all__ = [
    "DEBUG",
    "ERROR",
    "INFO",
    "WARNING",
    "configure_logger",
    "get_cli_logger",
    "get_log_file_path",
    "get_log_level",
]
