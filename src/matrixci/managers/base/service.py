"""Base service class for matrixci services."""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from matrixci_logging import get_cli_logger

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor


class BaseService:
    """Base service class providing common functionality for pipeline services.

    This base class provides:
    - Repository context
    - Command execution support
    - Logging setup
    """

    def __init__(
        self,
        repo_root: Path,
        command_executor: Optional["CommandExecutor"] = None,
    ) -> None:
        """Initialize the base service.

        Parameters
        ----------
        repo_root : Path
            Repository root directory
        command_executor : CommandExecutor | None, optional
            Command executor instance for running commands
        """
        self.repo_root = repo_root
        self._command_executor = command_executor
        self._logger = get_cli_logger(self.__class__.__module__)

    @property
    def command_executor(self) -> "CommandExecutor":
        """Get command executor instance, creating if necessary."""
        if self._command_executor is None:
            from matrixci.services.command_executor import CommandExecutor

            self._command_executor = CommandExecutor()
        return self._command_executor

    def log_debug(self, message: str, *args: Any) -> None:
        """Log a debug message with service context."""
        self._logger.debug("[%s] " + message, self.__class__.__name__, *args)

    def log_info(self, message: str, *args: Any) -> None:
        """Log an info message with service context."""
        self._logger.info("[%s] " + message, self.__class__.__name__, *args)

    def log_warning(self, message: str, *args: Any) -> None:
        """Log a warning message with service context."""
        self._logger.warning("[%s] " + message, self.__class__.__name__, *args)

    def log_error(self, message: str, *args: Any) -> None:
        """Log an error message with service context."""
        self._logger.error("[%s] " + message, self.__class__.__name__, *args)

    def ensure_directory(self, path: Path) -> Path:
        """Ensure a directory exists, creating if necessary."""
        path.mkdir(parents=True, exist_ok=True)
        return path
