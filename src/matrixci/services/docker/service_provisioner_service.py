"""Assemble the database service declaration for a pipeline run."""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from matrixci.core.constants import LockfileDefaults, ServiceDefaults
from matrixci.core.errors import ProvisioningError
from matrixci.core.models import (
    DatabaseCredentials,
    InitSource,
    LocalPath,
    ResolvedRevision,
    ServiceSpec,
)
from matrixci.managers.base.service import BaseService
from matrixci.services.docker.git_source_service import GitSourceService

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor


class ServiceProvisionerService(BaseService):
    """Builds the ``ServiceSpec`` of the database the tests run against.

    Initialization scripts come from local directories of the repository under
    test, followed by a subtree of the resolved dependency's repository. The
    service is only declared here; the execution environment starts it.
    """

    def __init__(
        self,
        repo_root: Path,
        command_executor: Optional["CommandExecutor"] = None,
        git_source: GitSourceService | None = None,
        remote_subtree: str = LockfileDefaults.REMOTE_INIT_SUBTREE,
        init_mount: str = ServiceDefaults.INIT_MOUNT,
    ) -> None:
        self.remote_subtree = remote_subtree
        self.init_mount = init_mount
        super().__init__(repo_root, command_executor)
        self.git_source = git_source or GitSourceService(
            repo_root,
            self.command_executor,
        )

    def _check_local_sources(self, sources: list[InitSource]) -> None:
        for source in sources:
            root = source.content_root
            if isinstance(root, LocalPath) and not root.resolve(self.repo_root).is_dir():
                msg = f"Init script directory does not exist: {root.path}"
                raise ProvisioningError(msg)

    async def provision(
        self,
        revision: ResolvedRevision,
        local_init_sources: list[InitSource],
        credentials: DatabaseCredentials,
        image: str,
    ) -> ServiceSpec:
        """Declare the database service.

        Parameters
        ----------
        revision : ResolvedRevision
            Revision of the dependency providing the remote init scripts
        local_init_sources : list[InitSource]
            Local init script directories, in execution order
        credentials : DatabaseCredentials
            Database name, user and password
        image : str
            Pinned database image

        Returns
        -------
        ServiceSpec
            Service with ``init_sources == [*local_init_sources, remote]``

        Raises
        ------
        ProvisioningError
            If a local directory is missing or the remote fetch fails
        """
        self._check_local_sources(local_init_sources)

        remote_tree = await self.git_source.fetch_subtree(
            revision.repository_origin,
            revision.commit,
            self.remote_subtree,
        )
        remote = InitSource(remote_tree, self.init_mount)

        spec = ServiceSpec(
            image=image,
            credentials=credentials,
            init_sources=(*local_init_sources, remote),
        )
        self.log_info(
            "Provisioned service %s with %d init sources",
            spec.image,
            len(spec.init_sources),
        )
        return spec
