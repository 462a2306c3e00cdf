"""Feature-matrix test commands for matrixci."""

import asyncio
from pathlib import Path

import click

from matrixci.core.constants import Icons
from matrixci.core.decorators import handle_exceptions
from matrixci.core.utils import CliOutput
from matrixci.managers.pipeline import PipelineOrchestrator
from matrixci_logging import get_cli_logger

logger = get_cli_logger(__name__)


@click.group(name="test")
@click.pass_context
def group(ctx: click.Context) -> None:
    """Run the feature matrix against the provisioned database."""


@group.command(
    name="run",
    context_settings={"ignore_unknown_options": True},
)
@click.option(
    "--lockfile",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Lockfile to resolve the dependency from (default: Cargo.lock)",
)
@click.option(
    "--dependency",
    type=str,
    default=None,
    help="Dependency providing the remote init scripts",
)
@click.option(
    "--no-cleanup",
    is_flag=True,
    help="Leave the compose project running after the tests",
)
@click.option(
    "--build/--no-build",
    default=True,
    help="Build the toolchain image before running",
)
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
@handle_exceptions
def run(
    ctx: click.Context,
    lockfile: Path | None,
    dependency: str | None,
    no_cleanup: bool,
    build: bool,
    extra_args: tuple[str, ...],
) -> None:
    """Resolve, provision and run the feature matrix.

    \b
    Arguments after -- are passed to `cargo test`; a second -- separates
    test-harness arguments. The harness always runs with --test-threads 1.

    \b
    Examples:
      matrixci test run
      matrixci test run --no-build -- --no-fail-fast
      matrixci test run -- -- --nocapture
    """  # noqa: W605
    settings = ctx.obj.settings.with_overrides(
        lockfile=lockfile.resolve() if lockfile else None,
        dependency=dependency,
    )
    orchestrator = PipelineOrchestrator(settings, ctx.obj.command_executor)
    logger.debug("Extra test arguments: %s", list(extra_args))

    CliOutput.info(f"{Icons.TEST} Running feature matrix in {settings.repo_root}")
    result = asyncio.run(
        orchestrator.run_pipeline(
            list(extra_args),
            build=build,
            cleanup=not no_cleanup,
        ),
    )

    CliOutput.relay(result.output)
    if result.succeeded:
        CliOutput.success(f"{Icons.SUCCESS} Feature matrix passed")
    else:
        CliOutput.error(f"Feature matrix failed (exit {result.exit_code})")
    ctx.exit(result.exit_code)


@group.command(
    name="plan",
    context_settings={"ignore_unknown_options": True},
)
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
@handle_exceptions
def plan(ctx: click.Context, extra_args: tuple[str, ...]) -> None:
    """Print the matrix command without touching Docker or the network."""
    settings = ctx.obj.settings
    orchestrator = PipelineOrchestrator(settings, ctx.obj.command_executor)

    CliOutput.plain(f"cargo-hack {settings.matrix.tool_version}")
    CliOutput.plain(f"hack args: {' '.join(settings.matrix.to_hack_args())}")
    CliOutput.plain(" ".join(orchestrator.plan(list(extra_args))))
