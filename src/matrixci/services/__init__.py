"""Services used by the matrixci pipeline."""

from matrixci.services.command_executor import CommandExecutor

__all__ = ["CommandExecutor"]
