"""Error hierarchy for matrixci.

Every fatal pipeline condition is a ``MatrixCIError``. Nothing in the pipeline
retries; errors propagate to the CLI boundary where ``handle_exceptions`` maps
them to exit codes.
"""


class MatrixCIError(Exception):
    """Base class for all matrixci errors."""


class ConfigurationError(MatrixCIError):
    """Invalid configuration or build setup."""


class DependencyNotFoundError(ConfigurationError):
    """The tracked dependency or its source field is missing from the lockfile."""

    def __init__(self, dependency: str, reason: str) -> None:
        self.dependency = dependency
        super().__init__(f"Dependency '{dependency}' not resolvable: {reason}")


class ProvisioningError(MatrixCIError):
    """The database service could not be assembled."""


class CommandExecutionError(MatrixCIError):
    """A subprocess failed, timed out, or wrote to stderr when it must not."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)
