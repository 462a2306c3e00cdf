"""Main CLI entry point for matrixci.

This module provides the main Click command group and wires the pipeline
subcommands together.
"""

from pathlib import Path

import click

from matrixci.commands import lock, test
from matrixci.core.config import PipelineSettings, detect_repo_root
from matrixci.core.constants import ALL_LOG_LEVELS, EnvVars, LogLevel
from matrixci.services import CommandExecutor
from matrixci_logging import configure_logger, get_cli_logger

logger = get_cli_logger(__name__)

LOGGING_PACKAGES = ("matrixci", "matrixci_logging")


def _configure_logging(verbose: bool, log_level: str | None) -> str | None:
    """Configure package loggers from the CLI flags.

    Parameters
    ----------
    verbose : bool
        Whether -v verbose mode is enabled
    log_level : str | None
        Explicit log level if provided

    Returns
    -------
    str | None
        The effective log level, or None when the environment default applies
    """
    effective_level = log_level or (LogLevel.DEBUG.value if verbose else None)
    for pkg_name in LOGGING_PACKAGES:
        configure_logger(
            pkg_name,
            profile="cli",
            level=effective_level,
            to_console=True if verbose else None,
        )
    return effective_level


class Context:
    """CLI context object for sharing state between commands."""

    def __init__(self, repo_root: Path | None = None) -> None:
        """Initialize CLI context.

        Parameters
        ----------
        repo_root : Path, optional
            Repository root directory. If not provided, will be auto-detected.
        """
        self.verbose: bool = False
        self.repo_root: Path = repo_root or detect_repo_root()
        self._settings: PipelineSettings | None = None
        self._command_executor: CommandExecutor | None = None

    @property
    def settings(self) -> PipelineSettings:
        """Pipeline settings loaded from defaults, config files and environment.

        Raises
        ------
        ConfigurationError
            If a config file is malformed
        """
        if self._settings is None:
            self._settings = PipelineSettings.load(self.repo_root)
        return self._settings

    @property
    def command_executor(self) -> CommandExecutor:
        """Get command executor instance, creating if necessary."""
        if self._command_executor is None:
            self._command_executor = CommandExecutor()
        return self._command_executor


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging mirrored to stderr",
)
@click.option(
    "--log-level",
    type=click.Choice(ALL_LOG_LEVELS),
    help="Set logging level",
)
@click.option(
    "--repo-root",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=EnvVars.REPO_ROOT,
    help="Repository under test (default: auto-detected)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_level: str | None,
    repo_root: Path | None,
) -> None:
    """matrixci - feature-matrix test pipeline against a provisioned database.

    \b
    Resolves a pinned dependency from Cargo.lock, provisions the database its
    schema needs and runs the cargo-hack feature matrix against it.
    """  # noqa: W605
    ctx.obj = Context(repo_root.resolve() if repo_root else None)
    ctx.obj.verbose = verbose

    if _configure_logging(verbose, log_level):
        logger.info("matrixci starting with repo root: %s", ctx.obj.repo_root)


cli.add_command(test.group)
cli.add_command(lock.group)


def main() -> None:
    """Serve as the main entry point for the CLI."""
    cli(prog_name="matrixci", complete_var="_MATRIXCI_COMPLETE")


if __name__ == "__main__":
    main()
