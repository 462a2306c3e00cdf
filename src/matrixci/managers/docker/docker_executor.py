"""Docker Compose command execution.

Provides centralized execution of docker compose commands against one generated
compose file and project.
"""

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from matrixci.core.paths import DockerConstants
from matrixci_logging import get_cli_logger

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor

logger = get_cli_logger(__name__)


class DockerComposeExecutor:
    """Centralized executor for all docker compose commands."""

    def __init__(
        self,
        compose_file: Path,
        project_name: str = DockerConstants.DEFAULT_PROJECT,
        command_executor: Optional["CommandExecutor"] = None,
        cwd: Path | None = None,
    ):
        """Initialize the executor.

        Parameters
        ----------
        compose_file : Path
            Path to the generated docker-compose.yaml
        project_name : str
            Docker compose project name
        command_executor : CommandExecutor, optional
            Command executor instance
        cwd : Path, optional
            Working directory for docker commands (defaults to the compose dir)
        """
        self.compose_file = compose_file
        self.project_name = project_name
        self.cwd = cwd or compose_file.parent
        self._command_executor = command_executor

    @property
    def command_executor(self) -> "CommandExecutor":
        """Get command executor instance, creating if necessary."""
        if self._command_executor is None:
            from matrixci.services.command_executor import CommandExecutor

            self._command_executor = CommandExecutor()
        return self._command_executor

    def execute(
        self,
        args: list[str],
        capture_output: bool = True,
        **kwargs,
    ) -> "subprocess.CompletedProcess[str]":
        """Execute a docker compose command.

        Parameters
        ----------
        args : list[str]
            Docker compose arguments (e.g., ["up", "-d", "service"])
        capture_output : bool
            Whether to capture output
        **kwargs
            Additional arguments for self.command_executor.execute

        Returns
        -------
        CompletedProcess
            Result of the command execution
        """
        cmd = self._build_command(args)
        logger.debug("docker %s", " ".join(cmd[1:]))
        return self.command_executor.execute(
            cmd,
            capture_output=capture_output,
            cwd=self.cwd,
            **kwargs,
        )

    def _build_command(self, args: list[str]) -> list[str]:
        """Build the complete docker compose command."""
        return [
            "docker",
            "compose",
            "-f",
            str(self.compose_file),
            "--project-name",
            self.project_name,
            *args,
        ]

    def build(self, services: list[str] | None = None) -> "subprocess.CompletedProcess[str]":
        """Build images of compose services (all if None)."""
        return self.execute(["build", "--quiet", *(services or [])])

    def run_service(
        self,
        service: str,
        command: list[str] | None = None,
        remove: bool = True,
        capture_output: bool = True,
        check: bool = False,
        **kwargs,
    ) -> "subprocess.CompletedProcess[str]":
        """Run a one-off command in a service.

        Dependencies of the service are started first, as declared in the
        compose file. The command's exit status is returned, not raised, unless
        ``check`` is set.

        Parameters
        ----------
        service : str
            Service to run
        command : list[str], optional
            Command to run in service
        remove : bool
            Remove container after run
        capture_output : bool
            Whether to capture output
        check : bool
            Raise on a non-zero exit status
        **kwargs
            Additional arguments for self.command_executor.execute

        Returns
        -------
        CompletedProcess
            Result of the run command
        """
        args = ["run"]
        if remove:
            args.append("--rm")
        args.append(service)
        if command:
            args.extend(command)
        return self.execute(args, capture_output=capture_output, check=check, **kwargs)

    def down(
        self,
        remove_volumes: bool = True,
        timeout: int | None = None,
    ) -> "subprocess.CompletedProcess[str]":
        """Stop and remove all containers of the project.

        Parameters
        ----------
        remove_volumes : bool
            Whether to remove volumes
        timeout : int, optional
            Timeout in seconds for stopping containers
        """
        args = ["down", "--remove-orphans"]
        if remove_volumes:
            args.append("-v")
        if timeout is not None:
            args.extend(["--timeout", str(timeout)])
        return self.execute(args)
