"""Run the resolve, provision and test stages of one pipeline."""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from matrixci.core.config import PipelineSettings
from matrixci.core.models import MatrixRunResult, ResolvedRevision, ServiceSpec, ToolchainSpec
from matrixci.managers.base import BaseOrchestrator
from matrixci.managers.docker import ComposeEnvironment
from matrixci.services.docker import (
    ComposeGeneratorService,
    GitSourceService,
    ServiceProvisionerService,
)
from matrixci.services.lockfile import RevisionResolverService
from matrixci.services.test import MatrixTestService, build_matrix_command
from matrixci_logging import get_cli_logger

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor

logger = get_cli_logger(__name__)


class PipelineOrchestrator(BaseOrchestrator):
    """Coordinates the pipeline stages for one repository.

    Stages run strictly in order. An error in a stage propagates and the later
    stages never start.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        command_executor: Optional["CommandExecutor"] = None,
    ) -> None:
        """Initialize the pipeline orchestrator.

        Parameters
        ----------
        settings : PipelineSettings
            Settings of this run
        command_executor : CommandExecutor, optional
            Command executor shared by all services
        """
        self.settings = settings
        super().__init__(settings.repo_root, command_executor)

    def _register_services(self) -> None:
        """Register the services of every pipeline stage."""
        self.register_service(
            RevisionResolverService,
            canonical_origin=self.settings.canonical_origin,
        )
        git_source = self.register_service(GitSourceService)
        self.register_service(
            ServiceProvisionerService,
            git_source=git_source,
            remote_subtree=self.settings.remote_init_subtree,
            init_mount=self.settings.init_mount,
        )
        self.register_service(ComposeGeneratorService)
        self.register_service(
            MatrixTestService,
            binding_name=self.settings.service_name,
        )

    @property
    def toolchain(self) -> ToolchainSpec:
        return ToolchainSpec(
            image=self.settings.toolchain_image,
            tool_version=self.settings.matrix.tool_version,
            workdir=self.settings.toolchain_workdir,
            rustflags=self.settings.rustflags,
        )

    def resolve_revision(self, lockfile: Path | None = None) -> ResolvedRevision:
        """Resolve the pinned revision of the configured dependency."""
        resolver = self.get_service(RevisionResolverService)
        return resolver.resolve_from_file(
            lockfile or self.settings.lockfile,
            self.settings.dependency,
        )

    async def provision(self, revision: ResolvedRevision) -> ServiceSpec:
        """Declare the database service for ``revision``."""
        provisioner = self.get_service(ServiceProvisionerService)
        return await provisioner.provision(
            revision,
            self.settings.local_init_sources,
            self.settings.credentials,
            self.settings.db_image,
        )

    def create_environment(self, build: bool = True, cleanup: bool = True) -> ComposeEnvironment:
        """Create the isolated toolchain environment of this run."""
        return ComposeEnvironment(
            self.repo_root,
            self.toolchain,
            command_executor=self.command_executor,
            generator=self.get_service(ComposeGeneratorService),
            build=build,
            cleanup=cleanup,
        )

    def plan(self, extra_args: list[str] | None = None) -> list[str]:
        """Return the matrix command a run would execute.

        Nothing is resolved or fetched; the service is declared from local
        settings only.
        """
        service = ServiceSpec(
            image=self.settings.db_image,
            credentials=self.settings.credentials,
            init_sources=tuple(self.settings.local_init_sources),
        )
        return build_matrix_command(service, self.settings.matrix, extra_args)

    async def run_pipeline(
        self,
        extra_args: list[str] | None = None,
        build: bool = True,
        cleanup: bool = True,
    ) -> MatrixRunResult:
        """Resolve, provision and run the feature matrix.

        Parameters
        ----------
        extra_args : list[str], optional
            Extra arguments for the test invocation
        build : bool
            Build the toolchain image before running
        cleanup : bool
            Tear the environment down afterwards

        Returns
        -------
        MatrixRunResult
            Output and exit code of the matrix run

        Raises
        ------
        MatrixCIError
            If any stage fails before the matrix tool runs
        """
        revision = await asyncio.to_thread(self.resolve_revision)
        service = await self.provision(revision)

        env = self.create_environment(build=build, cleanup=cleanup)
        tester = self.get_service(MatrixTestService)
        result = await tester.run(env, service, self.settings.matrix, extra_args)

        logger.info(
            "Pipeline finished for %s@%s with exit code %d",
            revision.repository_origin,
            revision.commit,
            result.exit_code,
        )
        return result
