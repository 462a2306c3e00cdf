"""Command executor service.

Provides unified subprocess execution with environment management and consistent
error handling.
"""

import asyncio
import os
import subprocess
from pathlib import Path
from typing import Any

from matrixci.core.constants import ExitCode
from matrixci.core.errors import CommandExecutionError
from matrixci_logging import get_cli_logger

logger = get_cli_logger(__name__)


def has_stderr_noise(stderr: str | None) -> bool:
    """Whether stderr holds anything besides whitespace."""
    return bool(stderr and stderr.strip())


class CommandExecutor:
    """Centralized command executor.

    This is the ONLY class in matrixci that should execute subprocesses.
    All services and managers must use it for consistency.

    Examples
    --------
    >>> executor = CommandExecutor()
    >>> result = executor.execute(["git", "--version"], capture_output=True)
    """

    def __init__(self, base_env: dict[str, str] | None = None) -> None:
        """Initialize command executor.

        Parameters
        ----------
        base_env : dict[str, str], optional
            Environment every command starts from, defaults to ``os.environ``
        """
        self._base_env = dict(os.environ) if base_env is None else dict(base_env)

    def build_environment(
        self,
        env_overrides: dict[str, str] | None = None,
    ) -> dict[str, str] | None:
        """Build command environment with overrides.

        Returns None if no overrides (subprocess uses default environment).
        """
        if not env_overrides:
            return None
        command_env = self._base_env.copy()
        command_env.update(env_overrides)
        return command_env

    def execute(
        self,
        cmd: list[str] | str,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        check: bool = True,
        timeout: float | None = None,
        capture_output: bool = True,
        fail_on_stderr: bool = False,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess[str]:
        """Execute a command.

        Parameters
        ----------
        cmd : list[str] or str
            Command to execute
        cwd : Path, optional
            Working directory
        env : dict[str, str], optional
            Environment variables to add/override
        check : bool
            Whether to raise exception on failure
        timeout : float, optional
            Timeout in seconds
        capture_output : bool
            Capture stdout/stderr instead of inheriting them
        fail_on_stderr : bool
            Treat any non-whitespace stderr as fatal, even on exit code 0
        **kwargs : Any
            Additional arguments passed to subprocess

        Returns
        -------
        subprocess.CompletedProcess[str]
            Result of command execution

        Raises
        ------
        CommandExecutionError
            If command fails and check=True, or stderr is noisy and
            fail_on_stderr=True
        """
        if isinstance(cmd, str):
            cmd = cmd.split()

        logger.debug("Executing: %s", " ".join(cmd))
        if cwd:
            logger.debug("Working directory: %s", cwd)

        result = self._run_subprocess(
            cmd,
            cwd=cwd,
            env=self.build_environment(env),
            capture_output=capture_output,
            timeout=timeout,
            check=check,
            **kwargs,
        )

        if fail_on_stderr and capture_output and has_stderr_noise(result.stderr):
            msg = f"Command wrote to stderr: {' '.join(cmd)}\n{result.stderr.strip()}"
            raise CommandExecutionError(
                msg,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result

    async def execute_async(
        self,
        cmd: list[str] | str,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess[str]:
        """Execute a command on a worker thread and await its completion.

        Accepts the same arguments as ``execute``.
        """
        return await asyncio.to_thread(self.execute, cmd, **kwargs)

    def _run_subprocess(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        capture_output: bool = True,
        timeout: float | None = None,
        check: bool = True,
        **kwargs: Any,
    ) -> subprocess.CompletedProcess[str]:
        """Run subprocess with error handling."""
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                cwd=cwd,
                env=env,
                capture_output=capture_output,
                text=True,
                timeout=timeout,
                check=False,
                **kwargs,
            )

            if check and result.returncode != 0:
                cmd_str = " ".join(cmd)
                error_msg = f"Command failed (exit {result.returncode}): {cmd_str}"
                if result.stderr:
                    error_msg += f"\n{result.stderr.strip()}"
                raise CommandExecutionError(
                    error_msg,
                    returncode=result.returncode,
                    stderr=result.stderr or "",
                )

            return result

        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout}s: {' '.join(cmd)}"
            if check:
                raise CommandExecutionError(error_msg, ExitCode.TIMEOUT) from e
            return subprocess.CompletedProcess(cmd, ExitCode.TIMEOUT, "", str(e))

        except FileNotFoundError as e:
            error_msg = f"Command not found: {cmd[0]}"
            if check:
                raise CommandExecutionError(error_msg, ExitCode.NOT_FOUND) from e
            return subprocess.CompletedProcess(cmd, ExitCode.NOT_FOUND, "", str(e))


__all__ = ["CommandExecutor", "has_stderr_noise"]
