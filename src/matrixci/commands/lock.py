"""Lockfile commands for matrixci."""

from pathlib import Path

import click

from matrixci.core.decorators import handle_exceptions
from matrixci.core.utils import CliOutput
from matrixci.services.lockfile import RevisionResolverService


@click.group(name="lock")
@click.pass_context
def group(ctx: click.Context) -> None:
    """Inspect the lockfile of the repository under test."""


@group.command(name="resolve")
@click.option(
    "--lockfile",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Lockfile to read (default: Cargo.lock)",
)
@click.option(
    "--dependency",
    type=str,
    default=None,
    help="Dependency to resolve",
)
@click.pass_context
@handle_exceptions
def resolve(ctx: click.Context, lockfile: Path | None, dependency: str | None) -> None:
    """Print the origin and pinned commit of a git dependency."""
    settings = ctx.obj.settings
    resolver = RevisionResolverService(
        settings.repo_root,
        ctx.obj.command_executor,
        canonical_origin=settings.canonical_origin,
    )
    revision = resolver.resolve_from_file(
        lockfile.resolve() if lockfile else settings.lockfile,
        dependency or settings.dependency,
    )

    CliOutput.plain(f"origin: {revision.repository_origin}")
    CliOutput.plain(f"commit: {revision.commit}")
    if not revision.is_resolved:
        CliOutput.warning("No pinned commit found; the fetch stage would fail")
