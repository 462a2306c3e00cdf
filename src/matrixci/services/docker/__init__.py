"""Docker-related services for matrixci."""

from .compose_generator_service import ComposeGeneratorService
from .git_source_service import GitSourceService
from .service_provisioner_service import ServiceProvisionerService

__all__ = [
    "ComposeGeneratorService",
    "GitSourceService",
    "ServiceProvisionerService",
]
