"""Custom Click decorators for common CLI patterns."""

import functools
import traceback
from collections.abc import Callable
from typing import Any, TypeVar

import click

from matrixci.core.constants import ExitCode
from matrixci.core.errors import ConfigurationError, MatrixCIError
from matrixci.core.utils import CliOutput
from matrixci_logging import get_cli_logger

logger = get_cli_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_exceptions(func: F) -> F:
    """Handle exceptions and convert to appropriate exit codes.

    Parameters
    ----------
    func : Callable
        Function to wrap

    Returns
    -------
    Callable
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            ctx = click.get_current_context()
            CliOutput.warning("Interrupted")
            ctx.exit(ExitCode.GENERAL_ERROR)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            raise
        except Exception as e:
            ctx = click.get_current_context()
            logger.debug("Command failed", exc_info=True)

            if isinstance(e, ConfigurationError):
                CliOutput.error(str(e))
                ctx.exit(ExitCode.CONFIG_ERROR)
            elif isinstance(e, MatrixCIError):
                CliOutput.error(str(e))
                ctx.exit(ExitCode.GENERAL_ERROR)
            elif isinstance(e, FileNotFoundError):
                CliOutput.error(f"File not found: {e}")
                ctx.exit(ExitCode.NOT_FOUND)
            elif isinstance(e, PermissionError):
                CliOutput.error(f"Permission denied: {e}")
                ctx.exit(ExitCode.PERMISSION_ERROR)
            else:
                CliOutput.error(f"Unexpected error: {e}")
                verbose = bool(getattr(ctx.obj, "verbose", False))
                if verbose:
                    CliOutput.error("Full traceback:")
                    CliOutput.error(traceback.format_exc())
                else:
                    CliOutput.info("Re-run with -v for full traceback")
                ctx.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]
