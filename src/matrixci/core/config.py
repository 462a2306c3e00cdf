"""Typed pipeline settings assembled from defaults, YAML files and environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from matrixci.core.constants import EnvVars
from matrixci.core.errors import ConfigurationError
from matrixci.core.models import DatabaseCredentials, InitSource, LocalPath
from matrixci.core.paths import ProjectPaths
from matrixci.core.project_config import load_merged_config
from matrixci.core.scope import MatrixConfig
from matrixci.core.yaml import YamlOperationError
from matrixci_logging import get_cli_logger

logger = get_cli_logger(__name__)

_REPO_MARKERS = (ProjectPaths.LOCKFILE, Path(".git"))


def detect_repo_root(start: Path | None = None) -> Path:
    """Find the repository root.

    ``MATRIXCI_REPO_ROOT`` wins; otherwise walk up from ``start`` (default: the
    working directory) to the first directory holding a lockfile or ``.git``.
    Falls back to ``start`` itself.
    """
    env_root = os.environ.get(EnvVars.REPO_ROOT)
    if env_root:
        return Path(env_root).resolve()

    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _REPO_MARKERS):
            return candidate
    return start


def _section(cfg: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return one top-level config section, which must be a mapping."""
    if not isinstance(cfg, Mapping) or name not in cfg:
        msg = f"Missing configuration section: '{name}'"
        raise ConfigurationError(msg)
    section = cfg[name]
    if not isinstance(section, Mapping):
        msg = f"Configuration section '{name}' must be a mapping, got {type(section).__name__}"
        raise ConfigurationError(msg)
    return section


@dataclass(frozen=True)
class PipelineSettings:
    """Everything one pipeline run needs to know."""

    repo_root: Path
    lockfile: Path
    dependency: str
    canonical_origin: str
    remote_init_subtree: str
    service_name: str
    db_image: str
    credentials: DatabaseCredentials
    init_mount: str
    local_init_dirs: tuple[str, ...]
    toolchain_image: str
    toolchain_workdir: str
    rustflags: str
    matrix: MatrixConfig

    @property
    def local_init_sources(self) -> list[InitSource]:
        """Local init directories, in declared order."""
        return [
            InitSource(LocalPath(Path(d)), self.init_mount)
            for d in self.local_init_dirs
        ]

    def with_overrides(self, **changes: Any) -> "PipelineSettings":
        """Return a copy with CLI overrides applied (``None`` values ignored)."""
        applied = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **applied) if applied else self

    @classmethod
    def from_mapping(
        cls,
        repo_root: Path,
        cfg: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
    ) -> "PipelineSettings":
        """Build settings from a merged config mapping.

        Raises
        ------
        ConfigurationError
            If a required section is missing or malformed
        """
        env = os.environ if environ is None else environ
        lock = _section(cfg, "lockfile")
        service = _section(cfg, "service")
        toolchain = _section(cfg, "toolchain")
        matrix = _section(cfg, "matrix")

        local_init_dirs = service.get("local_init_dirs") or []
        if not isinstance(local_init_dirs, list):
            msg = "Configuration option 'service.local_init_dirs' must be a list"
            raise ConfigurationError(msg)

        lockfile = Path(lock.get("path") or ProjectPaths.LOCKFILE)
        if not lockfile.is_absolute():
            lockfile = repo_root / lockfile

        try:
            credentials = DatabaseCredentials(
                database=env.get(EnvVars.DB_NAME) or str(service["database"]),
                user=env.get(EnvVars.DB_USER) or str(service["user"]),
                password=env.get(EnvVars.DB_PASSWORD) or str(service["password"]),
            )

            return cls(
                repo_root=repo_root,
                lockfile=lockfile,
                dependency=str(lock["dependency"]),
                canonical_origin=str(lock["canonical_origin"]),
                remote_init_subtree=str(lock["remote_init_subtree"]),
                service_name=str(service["name"]),
                db_image=env.get(EnvVars.DB_IMAGE) or str(service["image"]),
                credentials=credentials,
                init_mount=str(service["init_mount"]),
                local_init_dirs=tuple(str(d) for d in local_init_dirs),
                toolchain_image=env.get(EnvVars.TOOLCHAIN_IMAGE) or str(toolchain["image"]),
                toolchain_workdir=str(toolchain["workdir"]),
                rustflags=str(toolchain.get("rustflags") or ""),
                matrix=MatrixConfig.from_mapping(matrix),
            )
        except KeyError as e:
            msg = f"Missing configuration option: {e}"
            raise ConfigurationError(msg) from e

    @classmethod
    def load(cls, repo_root: Path | None = None) -> "PipelineSettings":
        """Load settings for ``repo_root`` (auto-detected when omitted)."""
        if repo_root is None:
            repo_root = detect_repo_root()
        try:
            cfg = load_merged_config(repo_root)
        except YamlOperationError as e:
            raise ConfigurationError(str(e)) from e
        logger.debug("Loaded configuration for %s", repo_root)
        return cls.from_mapping(repo_root, cfg)
