"""Isolated toolchain environment backed by Docker Compose.

A ``ComposeEnvironment`` collects service bindings and environment variables,
then materializes them as a compose project for the duration of a ``session``.
Leaving the session tears the project down, whether the body succeeded or not.
"""

import asyncio
import contextlib
import re
import subprocess
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from matrixci.core.constants import ToolchainDefaults
from matrixci.core.errors import CommandExecutionError, ConfigurationError
from matrixci.core.models import ServiceSpec, ToolchainSpec
from matrixci.core.paths import DockerConstants
from matrixci.managers.docker.docker_executor import DockerComposeExecutor
from matrixci.services.docker.compose_generator_service import ComposeGeneratorService
from matrixci_logging import get_cli_logger

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor

logger = get_cli_logger(__name__)


def project_name_for(repo_root: Path) -> str:
    """Compose project name derived from the repository directory."""
    slug = re.sub(r"[^a-z0-9_-]", "-", repo_root.name.lower()).strip("-")
    return f"{DockerConstants.DEFAULT_PROJECT}-{slug}" if slug else DockerConstants.DEFAULT_PROJECT


class ComposeSession:
    """A running compose project; commands run in the toolchain service."""

    def __init__(self, executor: DockerComposeExecutor, toolchain_name: str) -> None:
        self.executor = executor
        self.toolchain_name = toolchain_name

    async def exec(self, command: list[str]) -> "subprocess.CompletedProcess[str]":
        """Run ``command`` in a fresh toolchain container and capture its output."""
        return await asyncio.to_thread(
            self.executor.run_service,
            self.toolchain_name,
            command,
            capture_output=True,
            check=False,
        )


class ComposeEnvironment:
    """Builder for the isolated environment the feature matrix runs in."""

    def __init__(
        self,
        repo_root: Path,
        toolchain: ToolchainSpec,
        command_executor: Optional["CommandExecutor"] = None,
        generator: ComposeGeneratorService | None = None,
        project_name: str | None = None,
        build: bool = True,
        cleanup: bool = True,
    ) -> None:
        self.repo_root = repo_root
        self.toolchain = toolchain
        self.command_executor = command_executor
        self.generator = generator or ComposeGeneratorService(repo_root, command_executor)
        self.project_name = project_name or project_name_for(repo_root)
        self.build = build
        self.cleanup = cleanup
        self.toolchain_name = ToolchainDefaults.NAME
        self.bindings: dict[str, ServiceSpec] = {}
        self.env: dict[str, str] = {}

    def with_service_binding(self, name: str, service: ServiceSpec) -> "ComposeEnvironment":
        """Bind ``service`` under the host name ``name``."""
        if name == self.toolchain_name:
            msg = f"Service binding name '{name}' is reserved for the toolchain"
            raise ConfigurationError(msg)
        self.bindings[name] = service
        return self

    def with_env_variable(self, key: str, value: str) -> "ComposeEnvironment":
        """Set an environment variable in the toolchain service."""
        self.env[key] = value
        return self

    def _binding(self) -> tuple[str, ServiceSpec]:
        if len(self.bindings) != 1:
            msg = f"Exactly one service binding is supported, got {len(self.bindings)}"
            raise ConfigurationError(msg)
        return next(iter(self.bindings.items()))

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[ComposeSession]:
        """Materialize the environment for the duration of the ``async with`` block.

        Raises
        ------
        ConfigurationError
            If the environment cannot be rendered
        CommandExecutionError
            If the toolchain image fails to build
        """
        binding, service = self._binding()
        compose_file = await asyncio.to_thread(
            self.generator.generate,
            self.project_name,
            binding,
            service,
            self.toolchain,
            self.toolchain_name,
            self.env,
        )
        executor = DockerComposeExecutor(
            compose_file,
            project_name=self.project_name,
            command_executor=self.command_executor,
            cwd=self.repo_root,
        )

        try:
            if self.build:
                logger.info("Building toolchain image (cargo-hack %s)", self.toolchain.tool_version)
                await asyncio.to_thread(executor.build, [self.toolchain_name])
            yield ComposeSession(executor, self.toolchain_name)
        finally:
            if self.cleanup:
                await self._teardown(executor)
            else:
                logger.info("Skipping teardown of compose project %s", self.project_name)

    async def _teardown(self, executor: DockerComposeExecutor) -> None:
        try:
            await asyncio.to_thread(executor.down, remove_volumes=True)
            logger.debug("Tore down compose project %s", self.project_name)
        except CommandExecutionError as e:
            # Never mask the error that ended the session
            logger.error("Failed to tear down compose project %s: %s", self.project_name, e)
