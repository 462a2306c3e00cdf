"""Docker Compose management for matrixci."""

from .compose_environment import ComposeEnvironment
from .docker_executor import DockerComposeExecutor

__all__ = ["ComposeEnvironment", "DockerComposeExecutor"]
