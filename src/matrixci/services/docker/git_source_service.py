"""Fetch a subtree of a remote git repository at an exact revision."""

import re
import shutil
from pathlib import Path

from matrixci.core.errors import CommandExecutionError, ProvisioningError
from matrixci.core.models import FetchedTree
from matrixci.core.paths import CachePaths
from matrixci.managers.base.service import BaseService

COMPLETE_MARKER = ".matrixci-fetched"

# git must never stop to ask for credentials in a pipeline
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def _safe_component(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", value)


def _checkout_name(origin: str, commit: str) -> str:
    repo = origin.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git") or "source"
    return f"{_safe_component(repo)}-{_safe_component(commit)}"


class GitSourceService(BaseService):
    """Shallow-fetches single revisions into ``.cache/matrixci/sources``.

    Every git call runs with ``fail_on_stderr``: the commands are made quiet, so
    anything they print to stderr is treated as a failure.
    """

    def checkout_dir(self, origin: str, commit: str) -> Path:
        """Cache directory of one revision.

        Raises
        ------
        ProvisioningError
            If the directory would not sit directly inside the sources cache
        """
        sources = CachePaths.sources_dir(self.repo_root).resolve()
        checkout = (sources / _checkout_name(origin, commit)).resolve()
        if checkout.parent != sources:
            msg = f"Refusing checkout directory {checkout} outside {sources}"
            raise ProvisioningError(msg)
        return checkout

    async def fetch_subtree(self, origin: str, commit: str, subtree: str) -> FetchedTree:
        """Fetch ``subtree`` of ``origin`` at ``commit``.

        Parameters
        ----------
        origin : str
            Repository URL
        commit : str
            Exact revision to check out
        subtree : str
            Directory inside the repository that must exist at that revision

        Returns
        -------
        FetchedTree
            Reference to the checked out subtree

        Raises
        ------
        ProvisioningError
            If the revision is empty, the fetch fails, or the subtree is missing
        """
        if not commit:
            msg = f"Cannot fetch {origin}: the revision could not be resolved"
            raise ProvisioningError(msg)

        checkout = self.checkout_dir(origin, commit)
        tree = FetchedTree(origin, commit, subtree, checkout)

        if (checkout / COMPLETE_MARKER).is_file() and tree.path.is_dir():
            self.log_debug("Reusing fetched %s@%s at %s", origin, commit, checkout)
            return tree

        if checkout.exists():
            shutil.rmtree(checkout)
        self.ensure_directory(checkout.parent)

        self.log_info("Fetching %s@%s", origin, commit)
        try:
            await self._git("-c", "init.defaultBranch=main", "init", "--quiet", str(checkout))
            await self._git("-C", str(checkout), "remote", "add", "origin", origin)
            await self._git(
                "-C", str(checkout), "fetch", "--quiet", "--depth", "1", "origin", commit,
            )
            await self._git(
                "-C",
                str(checkout),
                "-c",
                "advice.detachedHead=false",
                "checkout",
                "--quiet",
                "FETCH_HEAD",
            )
        except CommandExecutionError as e:
            msg = f"Failed to fetch {origin}@{commit}: {e}"
            raise ProvisioningError(msg) from e

        if not tree.path.is_dir():
            msg = f"Path '{subtree}' does not exist in {origin}@{commit}"
            raise ProvisioningError(msg)

        (checkout / COMPLETE_MARKER).write_text(commit + "\n", encoding="utf-8")
        return tree

    async def _git(self, *args: str) -> None:
        await self.command_executor.execute_async(
            ["git", *args],
            env=_GIT_ENV,
            capture_output=True,
            fail_on_stderr=True,
        )
