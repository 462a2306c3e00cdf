"""Path constants for matrixci."""

from pathlib import Path


class ProjectPaths:
    """Standard project paths relative to repo root."""

    LOCKFILE = Path("Cargo.lock")
    MATRIXCI_CONFIG = Path(".matrixci.yaml")


class CachePaths:
    """Cache directory paths."""

    @staticmethod
    def root(repo_root: Path) -> Path:
        """Get the matrixci cache directory (<repo>/.cache/matrixci)."""
        return repo_root / ".cache" / "matrixci"

    @staticmethod
    def sources_dir(repo_root: Path) -> Path:
        """Get the directory holding fetched remote source trees.

        Parameters
        ----------
        repo_root : Path
            Repository root directory

        Returns
        -------
        Path
            Path to .cache/matrixci/sources
        """
        return CachePaths.root(repo_root) / "sources"

    @staticmethod
    def initdb_dir(repo_root: Path) -> Path:
        """Get the staged database initialization directory."""
        return CachePaths.root(repo_root) / "initdb"

    @staticmethod
    def toolchain_context(repo_root: Path) -> Path:
        """Get the (empty) build context of the toolchain image."""
        return CachePaths.root(repo_root) / "toolchain"

    @staticmethod
    def compose_file(repo_root: Path) -> Path:
        """Get the generated docker-compose file path."""
        return CachePaths.root(repo_root) / "docker-compose.yaml"


class DockerConstants:
    """Docker-related constants."""

    DEFAULT_PROJECT = "matrixci"
    TEMPLATE_NAME = "docker-compose.yaml.j2"
