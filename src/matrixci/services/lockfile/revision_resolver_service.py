"""Resolve the pinned git revision of a dependency from a Cargo lockfile.

The lockfile is searched textually: the dependency's ``name = "..."`` line is
located and its ``source = "..."`` field is looked up within a few lines of it.
This keeps working when unrelated parts of the lockfile format drift.
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from matrixci.core.constants import LockfileDefaults
from matrixci.core.errors import ConfigurationError, DependencyNotFoundError
from matrixci.core.models import LockfileEntry, ResolvedRevision
from matrixci.managers.base.service import BaseService
from matrixci_logging import get_cli_logger

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor

logger = get_cli_logger(__name__)

_SOURCE_FIELD = re.compile(r'^\s*source\s*=\s*"(?P<value>[^"]*)"')
_BLOCK_HEADER = re.compile(r"^\s*\[")

# git+<repository-url>?branch=<branch>#<commit>
_GIT_SOURCE = re.compile(r"^git\+(?P<uri>\S+)$")
_COMMIT = re.compile(r"#(?P<commit>\S+)$")
_ORIGIN = re.compile(r"^(?P<origin>[a-zA-Z][a-zA-Z0-9+.-]*://[^?#\s]+)")
# commit hashes, tags and branch names; never a path
_REVISION = re.compile(r"^[0-9A-Za-z_][0-9A-Za-z._-]*$")


def _name_pattern(dependency_name: str) -> re.Pattern[str]:
    return re.compile(rf'^\s*name\s*=\s*"{re.escape(dependency_name)}"\s*$')


def is_revision(value: str) -> bool:
    """Whether ``value`` has the shape of a git revision identifier."""
    return bool(_REVISION.match(value)) and ".." not in value


def _block_window(lines: list[str], index: int, context: int) -> list[str]:
    """Lines around ``index`` that belong to the same declaration block."""
    window = []
    for i in range(index - 1, max(index - context, 0) - 1, -1):
        if not lines[i].strip() or _BLOCK_HEADER.match(lines[i]):
            break
        window.insert(0, lines[i])
    for i in range(index + 1, min(index + context, len(lines) - 1) + 1):
        if not lines[i].strip() or _BLOCK_HEADER.match(lines[i]):
            break
        window.append(lines[i])
    return window


def parse_lockfile_entry(
    lockfile_text: str,
    dependency_name: str,
    context: int = LockfileDefaults.CONTEXT_LINES,
) -> LockfileEntry:
    """Extract the declaration of ``dependency_name`` from lockfile text.

    Parameters
    ----------
    lockfile_text : str
        Raw lockfile contents
    dependency_name : str
        Dependency to look up
    context : int
        How many lines around the ``name`` line may hold the source field

    Returns
    -------
    LockfileEntry
        The dependency name and its raw source string

    Raises
    ------
    DependencyNotFoundError
        If the dependency is not declared or has no source field nearby
    """
    lines = lockfile_text.splitlines()
    name_line = _name_pattern(dependency_name)

    for index, line in enumerate(lines):
        if not name_line.match(line):
            continue
        for candidate in _block_window(lines, index, context):
            match = _SOURCE_FIELD.match(candidate)
            if match:
                return LockfileEntry(dependency_name, match.group("value"))
        raise DependencyNotFoundError(
            dependency_name,
            f"no source field within {context} lines of its declaration",
        )

    raise DependencyNotFoundError(dependency_name, "not declared in lockfile")


def parse_source_uri(
    source_uri: str,
    canonical_origin: str = LockfileDefaults.CANONICAL_ORIGIN,
) -> ResolvedRevision:
    """Split a ``git+<url>?branch=<b>#<commit>`` source into origin and commit.

    Never raises: a source that does not match falls back to
    ``canonical_origin`` and/or an empty commit.
    """
    git_source = _GIT_SOURCE.match(source_uri.strip())
    uri = git_source.group("uri") if git_source else ""

    commit_match = _COMMIT.search(uri)
    origin_match = _ORIGIN.match(uri)

    commit = commit_match.group("commit") if commit_match else ""
    if commit and not is_revision(commit):
        commit = ""
    origin = origin_match.group("origin") if origin_match else canonical_origin

    if not commit or not origin_match:
        logger.warning(
            "Source '%s' is not a pinned git source; using origin=%s commit=%r",
            source_uri,
            origin,
            commit,
        )
    return ResolvedRevision(repository_origin=origin, commit=commit)


def resolve(
    lockfile_text: str,
    dependency_name: str,
    canonical_origin: str = LockfileDefaults.CANONICAL_ORIGIN,
) -> ResolvedRevision:
    """Resolve the repository origin and commit of one dependency.

    Raises
    ------
    DependencyNotFoundError
        If the dependency or its source field is missing
    """
    entry = parse_lockfile_entry(lockfile_text, dependency_name)
    return parse_source_uri(entry.source_uri, canonical_origin)


class RevisionResolverService(BaseService):
    """Reads the lockfile of the repository under test and resolves revisions."""

    def __init__(
        self,
        repo_root: Path,
        command_executor: Optional["CommandExecutor"] = None,
        canonical_origin: str = LockfileDefaults.CANONICAL_ORIGIN,
    ) -> None:
        self.canonical_origin = canonical_origin
        super().__init__(repo_root, command_executor)

    def read_lockfile(self, lockfile: Path) -> str:
        """Read lockfile text.

        Raises
        ------
        ConfigurationError
            If the lockfile cannot be read
        """
        path = lockfile if lockfile.is_absolute() else self.repo_root / lockfile
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Cannot read lockfile {path}: {e}"
            raise ConfigurationError(msg) from e

    def resolve_from_file(self, lockfile: Path, dependency_name: str) -> ResolvedRevision:
        """Resolve ``dependency_name`` from the lockfile at ``lockfile``."""
        text = self.read_lockfile(lockfile)
        revision = resolve(text, dependency_name, self.canonical_origin)
        self.log_info(
            "Resolved %s to %s@%s",
            dependency_name,
            revision.repository_origin,
            revision.commit or "<unresolved>",
        )
        return revision
