"""Value objects passed between pipeline stages.

All of them are built fresh for one pipeline run and never mutated.
"""

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote


@dataclass(frozen=True)
class LockfileEntry:
    """A dependency declaration found in a lockfile."""

    name: str
    source_uri: str


@dataclass(frozen=True)
class ResolvedRevision:
    """Origin and revision of a git dependency.

    ``commit`` is empty when the lockfile source could not be parsed. That is a
    tolerated, degraded state: the fetch that needs the commit is where it
    fails.
    """

    repository_origin: str
    commit: str = ""

    @property
    def is_resolved(self) -> bool:
        return bool(self.commit)


@dataclass(frozen=True)
class LocalPath:
    """Content root inside the repository under test."""

    path: Path

    def resolve(self, repo_root: Path) -> Path:
        return self.path if self.path.is_absolute() else repo_root / self.path


@dataclass(frozen=True)
class FetchedTree:
    """Subtree of a remote repository checked out at one revision."""

    origin: str
    commit: str
    subtree: str
    checkout_dir: Path

    @property
    def path(self) -> Path:
        return self.checkout_dir / self.subtree

    def resolve(self, repo_root: Path) -> Path:  # noqa: ARG002
        return self.path


@dataclass(frozen=True)
class InitSource:
    """A directory of initialization scripts and where it is mounted."""

    content_root: LocalPath | FetchedTree
    mount_path: str

    @property
    def is_remote(self) -> bool:
        return isinstance(self.content_root, FetchedTree)


@dataclass(frozen=True)
class DatabaseCredentials:
    """Named secrets of the database service."""

    database: str
    user: str
    password: str = field(repr=False)

    def as_env(self) -> dict[str, str]:
        """Environment expected by the postgres image."""
        return {
            "POSTGRES_DB": self.database,
            "POSTGRES_USER": self.user,
            "POSTGRES_PASSWORD": self.password,
        }

    def connection_url(self, host: str) -> str:
        user = quote(self.user, safe="")
        password = quote(self.password, safe="")
        return f"postgresql://{user}:{password}@{host}/{quote(self.database, safe='')}"


@dataclass(frozen=True)
class ServiceSpec:
    """Declaration of the database service bound into the test environment.

    Parameters
    ----------
    image : str
        Pinned image tag
    credentials : DatabaseCredentials
        Database name, user and password
    init_sources : tuple[InitSource, ...]
        Initialization script directories, in execution order
    requires_serial_tests : bool
        Test cases create and destroy shared state (roles) in this service, so
        the test harness must run one test at a time against it
    """

    image: str
    credentials: DatabaseCredentials
    init_sources: tuple[InitSource, ...]
    requires_serial_tests: bool = True


@dataclass(frozen=True)
class ToolchainSpec:
    """Isolated environment with the Rust toolchain and ``cargo-hack``."""

    image: str
    tool_version: str
    workdir: str = "/workspace"
    rustflags: str = ""


@dataclass(frozen=True)
class MatrixRunResult:
    """Captured outcome of one feature-matrix run."""

    command: tuple[str, ...]
    output: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
